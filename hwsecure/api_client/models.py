"""
API Client Data Models
"""

from dataclasses import dataclass, field
from typing import IO, Any, Dict, List, Optional, Union

from .throttling import RateLimitSnapshot


@dataclass
class MultipartPart:
    """One binary part of a multipart upload."""
    name: str
    contents: Union[bytes, IO[bytes]]
    filename: Optional[str] = None
    content_type: Optional[str] = None


@dataclass
class RequestSpec:
    """
    Everything needed to issue one API call.

    Attributes:
        method: HTTP method (GET, POST, PUT, ...)
        path: URI template with {name} placeholders
        path_params: Placeholder bindings; every placeholder must be bound
        query: Query parameters; None values are dropped
        body: JSON record to send, protected when encryption is configured
        multipart_data: JSON metadata part of a multipart upload
        multipart: Binary parts; multipart requests are never protected
        headers: Extra request headers
    """
    method: str
    path: str
    path_params: Dict[str, Any] = field(default_factory=dict)
    query: Dict[str, Any] = field(default_factory=dict)
    body: Any = None
    multipart_data: Any = None
    multipart: Optional[List[MultipartPart]] = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def is_multipart(self) -> bool:
        return self.multipart is not None


@dataclass
class ApiResponse:
    """Parsed response body with the rate limit state it arrived with."""
    body: Any
    rate_limit: RateLimitSnapshot
    status_code: int = 200


@dataclass
class ListResponse:
    """One page of a list endpoint."""
    count: int
    data: List[Dict[str, Any]]
    links: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_body(cls, body: Any) -> "ListResponse":
        if not body:
            return cls(count=0, data=[])
        return cls(
            count=body.get("count", len(body.get("data", []))),
            data=list(body.get("data", [])),
            links=list(body.get("links", [])),
        )

    def __len__(self) -> int:
        return len(self.data)

    def __iter__(self):
        return iter(self.data)
