"""
API Client Package

Secure transport for the payouts REST API: request building, payload
protection, rate limit tracking and typed error mapping.
"""

from .client import TransportClient
from .endpoints import ENDPOINTS, Endpoint, EndpointClient
from .exceptions import (
    ApiError,
    BadRequestError,
    UnauthorizedError,
    ForbiddenError,
    NotFoundError,
    ConflictError,
    RateLimitedError,
    ServerError,
    ApiTimeoutError,
    NetworkUnreachableError,
    UnexpectedStatusError,
    ResponseIntegrityError,
)
from .models import ApiResponse, ListResponse, MultipartPart, RequestSpec
from .throttling import RateLimitSnapshot, RateLimitTracker
from .uri import build_path

__all__ = [
    "TransportClient",
    "EndpointClient",
    "Endpoint",
    "ENDPOINTS",
    "RequestSpec",
    "MultipartPart",
    "ApiResponse",
    "ListResponse",
    "RateLimitSnapshot",
    "RateLimitTracker",
    "build_path",
    "ApiError",
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
]
