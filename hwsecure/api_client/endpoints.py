"""
Endpoint table and glue.

Each endpoint is a path template, an HTTP verb and a few flags; the
EndpointClient turns a call into a RequestSpec for the transport layer.
Records are plain dicts in both directions.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Optional

from ..exceptions import ArgumentError
from .client import TransportClient
from .models import ListResponse, MultipartPart, RequestSpec
from .uri import placeholders

logger = logging.getLogger(__name__)

_PAGING = frozenset({"createdBefore", "createdAfter", "sortBy", "limit", "offset"})


@dataclass(frozen=True)
class Endpoint:
    name: str
    method: str
    path: str
    program_aware: bool = False
    list_response: bool = False
    multipart: bool = False
    filters: Optional[FrozenSet[str]] = None


ENDPOINTS: Dict[str, Endpoint] = {
    e.name: e
    for e in (
        # Users
        Endpoint("create_user", "POST", "/rest/{version}/users", program_aware=True),
        Endpoint("get_user", "GET", "/rest/{version}/users/{user-token}"),
        Endpoint("update_user", "PUT", "/rest/{version}/users/{user-token}"),
        Endpoint(
            "list_users", "GET", "/rest/{version}/users", list_response=True,
            filters=_PAGING | {"clientUserId", "email", "programToken", "status",
                               "verificationStatus", "taxVerificationStatus"},
        ),
        Endpoint(
            "create_user_status_transition", "POST",
            "/rest/{version}/users/{user-token}/status-transitions",
        ),
        Endpoint(
            "list_user_status_transitions", "GET",
            "/rest/{version}/users/{user-token}/status-transitions",
            list_response=True, filters=_PAGING | {"transition"},
        ),
        Endpoint(
            "get_authentication_token", "POST",
            "/rest/{version}/users/{user-token}/authentication-token",
        ),
        Endpoint(
            "upload_documents_for_user", "PUT", "/rest/{version}/users/{user-token}",
            multipart=True,
        ),
        # Payments
        Endpoint("create_payment", "POST", "/rest/{version}/payments", program_aware=True),
        Endpoint("get_payment", "GET", "/rest/{version}/payments/{payment-token}"),
        Endpoint(
            "list_payments", "GET", "/rest/{version}/payments", list_response=True,
            filters=_PAGING | {"clientPaymentId", "releaseDate", "status"},
        ),
        # Transfers
        Endpoint("create_transfer", "POST", "/rest/{version}/transfers"),
        Endpoint("get_transfer", "GET", "/rest/{version}/transfers/{transfer-token}"),
        # Balances
        Endpoint(
            "list_balances_for_user", "GET", "/rest/{version}/users/{user-token}/balances",
            list_response=True, filters=_PAGING | {"currency"},
        ),
        # Webhooks
        Endpoint(
            "get_webhook_notification", "GET",
            "/rest/{version}/webhook-notifications/{webhook-notification-token}",
        ),
    )
}


def _parameter_name(placeholder: str) -> str:
    """'user-token' -> 'userToken'"""
    head, *rest = placeholder.split("-")
    return head + "".join(part.capitalize() for part in rest)


class EndpointClient:
    """
    Calls endpoints from the table through a TransportClient.

    The program token default is carried by this instance and is applied
    only to program-aware records that do not already set programToken.
    """

    def __init__(
        self,
        transport: TransportClient,
        api_version: Optional[str] = None,
        program_token: Optional[str] = None,
    ):
        self.transport = transport
        self.api_version = api_version or transport.settings.api_version
        self.program_token = (
            program_token if program_token is not None else transport.settings.program_token
        )

    def apply_program_token(self, record: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        record = dict(record or {})
        if self.program_token and not record.get("programToken"):
            record["programToken"] = self.program_token
        return record

    def build(
        self,
        name: str,
        path_params: Optional[Dict[str, Any]] = None,
        body: Any = None,
        query: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        data: Any = None,
        parts: Optional[List[MultipartPart]] = None,
    ) -> RequestSpec:
        """
        Build the RequestSpec for an endpoint call.

        Raises:
            ArgumentError: On an unknown endpoint, a missing token or an invalid filter
        """
        endpoint = ENDPOINTS.get(name)
        if endpoint is None:
            raise ArgumentError(f"Unknown endpoint: {name}")

        params = {"version": self.api_version, **(path_params or {})}
        for placeholder in placeholders(endpoint.path):
            if not params.get(placeholder):
                raise ArgumentError(f"{_parameter_name(placeholder)} is required!")

        query = dict(query or {})
        if query and endpoint.filters is not None:
            unknown = set(query) - endpoint.filters
            if unknown:
                raise ArgumentError(f"Invalid filter: {', '.join(sorted(unknown))}")

        if endpoint.program_aware:
            body = self.apply_program_token(body)

        logger.debug("Endpoint %s -> %s %s", name, endpoint.method, endpoint.path)

        if endpoint.multipart:
            if not parts:
                raise ArgumentError("At least one document part is required!")
            return RequestSpec(
                endpoint.method, endpoint.path, params, query,
                multipart_data=data, multipart=list(parts), headers=dict(headers or {}),
            )

        return RequestSpec(
            endpoint.method, endpoint.path, params, query,
            body=body, headers=dict(headers or {}),
        )

    def _result(self, name: str, body: Any) -> Any:
        if ENDPOINTS[name].list_response:
            return ListResponse.from_body(body)
        return body

    async def call(self, name: str, **kwargs) -> Any:
        """Call an endpoint and return its record (or ListResponse)."""
        response = await self.transport.send(self.build(name, **kwargs))
        return self._result(name, response.body)

    def call_sync(self, name: str, **kwargs) -> Any:
        response = self.transport.send_sync(self.build(name, **kwargs))
        return self._result(name, response.body)
