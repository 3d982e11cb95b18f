"""
Error taxonomy for ProdBay services.

Services raise these exceptions; the API layer renders them as the standard
error envelope::

    {"success": false, "error": {"code": "NOT_FOUND", "message": "..."}}
"""

from typing import Any, Dict, Optional


class ProdBayError(Exception):
    """Base class for errors that map onto an API error response."""

    code = "INTERNAL_SERVER_ERROR"
    status_code = 500

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        error = {"code": self.code, "message": self.message}
        if self.details:
            error["details"] = self.details
        return error


class NotFoundError(ProdBayError):
    code = "NOT_FOUND"
    status_code = 404


class InvalidRequestError(ProdBayError):
    code = "INVALID_REQUEST"
    status_code = 400


class ConflictError(ProdBayError):
    code = "CONFLICT"
    status_code = 409


class ExternalServiceError(ProdBayError):
    """An upstream dependency (LLM, email function) failed or returned garbage."""

    code = "EXTERNAL_SERVICE_ERROR"
    status_code = 502


class StoreUnavailableError(ProdBayError):
    """The persistent store was never configured or failed to initialize."""

    code = "DATABASE_UNAVAILABLE"
    status_code = 503
