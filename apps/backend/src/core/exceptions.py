class DomainError(Exception):
    """Base class for domain-specific errors."""

    pass


class PromptRejectedError(DomainError):
    """Exception raised when a submitted prompt cannot be analyzed."""

    pass
