"""
URI template expansion for API paths.
"""

import re
from typing import Any, Mapping
from urllib.parse import quote

from ..exceptions import ArgumentError

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")


def placeholders(template: str) -> list[str]:
    """Placeholder names in order of appearance."""
    return _PLACEHOLDER.findall(template)


def build_path(template: str, params: Mapping[str, Any]) -> str:
    """
    Substitute {name} placeholders with percent-encoded values.

    Examples:
        >>> build_path("/rest/{version}/users/{user-token}",
        ...            {"version": "v4", "user-token": "usr-1"})
        '/rest/v4/users/usr-1'

    Raises:
        ArgumentError: If a placeholder has no (or an empty) binding
    """
    missing = [
        name for name in placeholders(template)
        if params.get(name) is None or params.get(name) == ""
    ]
    if missing:
        raise ArgumentError(f"Missing path parameter(s): {', '.join(missing)}")

    return _PLACEHOLDER.sub(lambda m: quote(str(params[m.group(1)]), safe=""), template)
