"""
API Client Exceptions
"""

from typing import Any, Dict, List, Optional, Type

from ..exceptions import ArgumentError, HwSecureError, Phase


class ApiError(HwSecureError):
    """
    Base exception for API call failures.

    Attributes:
        status_code: HTTP status, None when no response arrived
        body: Raw response text, if any
        errors: Server error entries ({"message", "code", "fieldName", ...})
        rate_limit: Snapshot from the failing response, if any
        phase: Stage that produced the error
    """
    phase = Phase.TRANSPORT
    transient = False

    def __init__(
        self,
        message: str = "",
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
        rate_limit: Any = None,
        phase: Optional[Phase] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.errors = errors or []
        self.rate_limit = rate_limit
        if phase is not None:
            self.phase = phase

    @property
    def error_code(self) -> Optional[str]:
        """Code of the first server-reported error."""
        if self.errors:
            return self.errors[0].get("code")
        return None

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"[{self.status_code}] {self.message}"
        return self.message


class BadRequestError(ApiError):
    pass


class UnauthorizedError(ApiError):
    pass


class ForbiddenError(ApiError):
    pass


class NotFoundError(ApiError):
    pass


class ConflictError(ApiError):
    pass


class RateLimitedError(ApiError):
    pass


class ServerError(ApiError):
    transient = True


class ApiTimeoutError(ApiError):
    transient = True


class NetworkUnreachableError(ApiError):
    transient = True


class UnexpectedStatusError(ApiError):
    pass


class ResponseIntegrityError(ApiError):
    """Response body failed decryption, verification or parsing."""
    phase = Phase.RESPONSE_UNPROTECTION

    def __init__(self, message: str = "", protection_error: Optional[Exception] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.protection_error = protection_error


STATUS_ERRORS: Dict[int, Type[ApiError]] = {
    400: BadRequestError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
    429: RateLimitedError,
}


def error_class_for_status(status_code: int) -> Type[ApiError]:
    if status_code in STATUS_ERRORS:
        return STATUS_ERRORS[status_code]
    if 500 <= status_code < 600:
        return ServerError
    return UnexpectedStatusError


__all__ = [
    "ApiError",
    "ArgumentError",
    "BadRequestError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "RateLimitedError",
    "ServerError",
    "ApiTimeoutError",
    "NetworkUnreachableError",
    "UnexpectedStatusError",
    "ResponseIntegrityError",
    "error_class_for_status",
]
