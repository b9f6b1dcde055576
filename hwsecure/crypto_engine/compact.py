"""
Compact serialization helpers shared by the JWS and JWE codecs.
"""

import json
import re
from typing import Any, Dict, List

from jose.utils import base64url_decode, base64url_encode

from .exceptions import MalformedTokenError

_B64URL = re.compile(r"^[A-Za-z0-9_-]*$")


def canonical_json(obj: Any) -> bytes:
    """Serialize with sorted keys and no insignificant whitespace."""
    try:
        text = json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise MalformedTokenError(f"Payload is not JSON serializable: {e}") from e
    return text.encode("utf-8")


def b64url_encode(data: bytes) -> str:
    return base64url_encode(data).decode("ascii")


def b64url_decode(segment: str) -> bytes:
    """
    Strictly decode one base64url segment (no padding, no stray characters).

    Raises:
        MalformedTokenError: If the segment is not valid base64url
    """
    if not _B64URL.match(segment) or len(segment) % 4 == 1:
        raise MalformedTokenError("Invalid base64url segment")
    try:
        decoded = base64url_decode(segment.encode("ascii"))
    except ValueError as e:
        raise MalformedTokenError("Invalid base64url segment") from e

    # Unused trailing bits must be zero; only one spelling per value
    if b64url_encode(decoded) != segment:
        raise MalformedTokenError("Non-canonical base64url segment")
    return decoded


def split_compact(token: Any, count: int) -> List[str]:
    if isinstance(token, bytes):
        try:
            token = token.decode("ascii")
        except UnicodeDecodeError as e:
            raise MalformedTokenError("Token is not ASCII") from e
    if not isinstance(token, str):
        raise MalformedTokenError("Token must be a string")

    segments = token.strip().split(".")
    if len(segments) != count:
        raise MalformedTokenError(f"Expected {count} segments, got {len(segments)}")
    return segments


def decode_header(segment: str) -> Dict[str, Any]:
    raw = b64url_decode(segment)
    try:
        header = json.loads(raw.decode("utf-8"))
    except ValueError as e:
        raise MalformedTokenError("Header is not valid JSON") from e
    if not isinstance(header, dict):
        raise MalformedTokenError("Header must be a JSON object")
    return header
