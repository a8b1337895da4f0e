"""
Error taxonomy shared by services and routes.

Every error carries the HTTP status it maps to and a short message that is
safe to show to the user. The Flask error handlers in app.py turn them into
the usual {"success": False, "message": ..., "errors": ...} body.
"""


class PortalError(Exception):
    status_code = 500
    message = "Something went wrong. Please try again."

    def __init__(self, message=None, errors=None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        self.errors = errors or {}

    def to_payload(self):
        payload = {"success": False, "message": self.message}
        if self.errors:
            payload["errors"] = self.errors
        return payload


class ValidationError(PortalError):
    """Field-level input problems. Raised before anything reaches the store."""
    status_code = 400
    message = "Validation failed"


class NotFoundError(PortalError):
    status_code = 404
    message = "Not found"


class AccessDeniedError(PortalError):
    status_code = 403
    message = "Admin access required"


class AuthenticationRequired(PortalError):
    status_code = 401
    message = "Authentication required"


# provider code -> (http status, user-facing message)
PROVIDER_ERRORS = {
    "invalid-credential": (401, "Invalid email or password"),
    "too-many-requests": (429, "Too many failed attempts. Please try again later."),
    "user-disabled": (403, "This account has been disabled. Please contact support."),
    "email-already-in-use": (409, "This email is already registered"),
    "weak-password": (400, "Password must be at least 6 characters"),
    "invalid-email": (400, "Please enter a valid email format"),
    "network-request-failed": (503, "Could not reach the authentication service. Please try again."),
}
DEFAULT_PROVIDER_ERROR = (401, "Login failed. Please try again.")


class ProviderAuthError(PortalError):
    """Failure reported by the identity provider, mapped to a fixed message."""

    def __init__(self, code, detail=None):
        status, message = PROVIDER_ERRORS.get(code, DEFAULT_PROVIDER_ERROR)
        super().__init__(message)
        self.code = code
        self.status_code = status
        self.detail = detail

    def __str__(self):
        if self.detail:
            return f"{self.code}: {self.detail}"
        return self.code


class PartialFailure(PortalError):
    """
    A primary action succeeded but a secondary cleanup step did not.

    Never raised to the client: it is logged and attached to the response of
    the primary action, which is still reported as successful.
    """
    status_code = 200
    message = "Completed with errors"

    def __init__(self, message=None, cause=None):
        super().__init__(message)
        self.cause = cause
