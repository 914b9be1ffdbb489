"""Exceptions raised by the storage, service and AI layers."""


class EduAssessError(Exception):
    """Base exception for EduAssess errors."""
    pass


class ValidationFailed(EduAssessError):
    """Request data was rejected before anything was written."""
    pass


class InvalidStatusTransition(EduAssessError):
    """A submission status update would move the lifecycle backward."""

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move submission from '{current.value}' to '{requested.value}'")


class AiProviderError(EduAssessError):
    """The AI provider could not be reached or returned an unusable response."""

    def __init__(self, message: str, provider: str = None, status_code: int = None):
        self.provider = provider
        self.status_code = status_code
        super().__init__(message)


class AccessDenied(EduAssessError):
    """The caller may see the resource but not perform this action on it."""
    pass
