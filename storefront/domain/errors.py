"""Error taxonomy shared by every storefront service.

Services raise these; the API layer renders them as
``{"error": {"code", "message"}}`` with the matching HTTP status.
"""

class StorefrontError(Exception):
    code = "unknown"
    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}

class Unauthenticated(StorefrontError):
    code = "unauthenticated"
    http_status = 401

class PermissionDenied(StorefrontError):
    code = "permission-denied"
    http_status = 403

class InvalidArgument(StorefrontError):
    code = "invalid-argument"
    http_status = 400

class NotFound(StorefrontError):
    code = "not-found"
    http_status = 404

class FailedPrecondition(StorefrontError):
    code = "failed-precondition"
    http_status = 412

class ResourceExhausted(StorefrontError):
    code = "resource-exhausted"
    http_status = 429

class Internal(StorefrontError):
    code = "internal"
    http_status = 500

class GatewayError(Exception):
    """Failure reported by a third-party gateway (payment or messaging)."""

    def __init__(self, message: str, code=None):
        super().__init__(message)
        self.message = message
        self.code = code
