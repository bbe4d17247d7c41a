from fastapi import APIRouter

from .analyze import router as analyze_router
from .health import router as health_router
from .rules import router as rules_router


api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(rules_router)
api_router.include_router(analyze_router)
