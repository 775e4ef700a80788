"""
Domain errors raised by the portal services.

Routers do not catch these; main.py renders every PortalError as
{"detail": ...} with the error's status code.
"""


class PortalError(Exception):
    status_code = 500

    def __init__(self, detail: str, status_code: int = None):
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class ValidationError(PortalError):
    """User input failed a precondition. Raised before any network call."""
    status_code = 400


class NotFoundError(PortalError):
    status_code = 404


class PermissionDeniedError(PortalError):
    status_code = 403


class PremiumRequiredError(PermissionDeniedError):
    pass


class ConflictError(PortalError):
    """Duplicate application, already shortlisted, or an action already in flight."""
    status_code = 409


class TransientServiceError(PortalError):
    """Store, storage, or parsing service failure. Safe to retry."""
    status_code = 502


class ExtractionError(PortalError):
    status_code = 422


class ResumeNotFoundError(NotFoundError):
    pass
