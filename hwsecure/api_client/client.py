"""
Secure Transport Client

Issues one API call per RequestSpec: builds the URL, protects the body
when payload encryption is configured, sends it with basic authentication,
records rate limit headers, maps failures to typed errors and verifies the
response body.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import SDK_VERSION, ClientSettings
from ..crypto_engine import CONTENT_TYPE as JOSE_CONTENT_TYPE
from ..crypto_engine import PayloadProtector, ProtectionError
from ..exceptions import ArgumentError
from .exceptions import (
    ApiError,
    ApiTimeoutError,
    NetworkUnreachableError,
    ResponseIntegrityError,
    error_class_for_status,
)
from .models import ApiResponse, MultipartPart, RequestSpec
from .throttling import RateLimitSnapshot, RateLimitTracker
from .uri import build_path

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
USER_AGENT = f"hwsecure Python SDK v{SDK_VERSION}"


class TransportClient:
    """
    Client for the payouts REST API with optional payload protection.

    Args:
        settings: Client settings (credentials, server, timeout, encryption)
        protector: Explicit PayloadProtector; built from settings.encryption
            when omitted
        tracker: Shared RateLimitTracker; a new one is created when omitted

    Example:
        >>> client = TransportClient(ClientSettings(username="u", password="p"))
        >>> response = await client.get("/rest/{version}/users/{user-token}",
        ...                             {"version": "v4", "user-token": "usr-1"})
        >>> response.body["token"], response.rate_limit.remaining
    """

    def __init__(
        self,
        settings: ClientSettings,
        protector: Optional[PayloadProtector] = None,
        tracker: Optional[RateLimitTracker] = None,
    ):
        if not settings.username or not settings.password.get_secret_value():
            raise ArgumentError("You need to specify your API username and password!")

        self.settings = settings
        if protector is None and settings.encryption is not None:
            protector = PayloadProtector.from_settings(settings.encryption)
        self.protector = protector
        self.throttling = tracker or RateLimitTracker()

        self._async_client: Optional[httpx.AsyncClient] = None
        self._sync_client: Optional[httpx.Client] = None

        logger.info(
            "API client for %s (encryption %s)",
            settings.server, "enabled" if self.encryption_enabled else "disabled",
        )

    @property
    def encryption_enabled(self) -> bool:
        return self.protector is not None

    @property
    def rate_limit(self) -> RateLimitSnapshot:
        """Snapshot from the most recent response."""
        return self.throttling.snapshot

    def _client_options(self) -> Dict[str, Any]:
        return {
            "base_url": self.settings.server,
            "timeout": self.settings.timeout,
            "auth": httpx.BasicAuth(
                self.settings.username, self.settings.password.get_secret_value()
            ),
            "headers": {"User-Agent": USER_AGENT},
        }

    def _get_async_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._async_client is None or self._async_client.is_closed:
            self._async_client = httpx.AsyncClient(**self._client_options())
        return self._async_client

    def _get_sync_client(self) -> httpx.Client:
        """Get or create the blocking HTTP client."""
        if self._sync_client is None or self._sync_client.is_closed:
            self._sync_client = httpx.Client(**self._client_options())
        return self._sync_client

    async def aclose(self) -> None:
        if self._async_client is not None:
            await self._async_client.aclose()
        self.close()

    def close(self) -> None:
        if self._sync_client is not None:
            self._sync_client.close()

    async def __aenter__(self) -> "TransportClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def __enter__(self) -> "TransportClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # --------------------------------------
    # Request building
    # --------------------------------------

    def _multipart_files(self, spec: RequestSpec) -> List[Any]:
        files: List[Any] = []
        if spec.multipart_data is not None:
            files.append(("data", (None, json.dumps(spec.multipart_data), JSON_CONTENT_TYPE)))
        for part in spec.multipart:
            files.append((
                part.name,
                (part.filename or part.name, part.contents,
                 part.content_type or "application/octet-stream"),
            ))
        return files

    def build_request(self, spec: RequestSpec) -> Dict[str, Any]:
        """
        Turn a RequestSpec into httpx request arguments.

        Runs entirely before any network activity.

        Raises:
            ArgumentError: If a path placeholder is unbound or the body is not JSON
            ProtectionError: If the body cannot be protected
        """
        request: Dict[str, Any] = {
            "method": spec.method.upper(),
            "url": build_path(spec.path, spec.path_params),
            "params": {k: v for k, v in spec.query.items() if v is not None},
        }
        headers = {
            "Accept": JOSE_CONTENT_TYPE if self.encryption_enabled else JSON_CONTENT_TYPE,
        }

        if spec.is_multipart:
            request["files"] = self._multipart_files(spec)
        elif spec.body is not None:
            if self.encryption_enabled:
                request["content"] = self.protector.protect(spec.body).encode("ascii")
                headers["Content-Type"] = JOSE_CONTENT_TYPE
            else:
                try:
                    request["content"] = json.dumps(spec.body).encode("utf-8")
                except (TypeError, ValueError) as e:
                    raise ArgumentError(f"Request body is not JSON serializable: {e}") from e
                headers["Content-Type"] = JSON_CONTENT_TYPE

        headers.update(spec.headers)
        request["headers"] = headers
        return request

    # --------------------------------------
    # Response handling
    # --------------------------------------

    def _error_from_response(self, response: httpx.Response, snapshot: RateLimitSnapshot) -> ApiError:
        text = response.text
        message = f"HTTP {response.status_code}"
        errors: List[Dict[str, Any]] = []

        try:
            data = json.loads(text) if text.strip() else None
        except ValueError:
            data = None

        if isinstance(data, dict) and isinstance(data.get("errors"), list):
            errors = [e for e in data["errors"] if isinstance(e, dict)]
            if errors and errors[0].get("message"):
                message = errors[0]["message"]

        logger.warning(
            "%s %s failed with %d", response.request.method, response.request.url.path,
            response.status_code,
        )
        return error_class_for_status(response.status_code)(
            message,
            status_code=response.status_code,
            body=text,
            errors=errors,
            rate_limit=snapshot,
        )

    def _parse_body(self, response: httpx.Response, snapshot: RateLimitSnapshot) -> Any:
        content = response.content
        if not content.strip():
            return {}

        if self.encryption_enabled:
            try:
                return self.protector.unprotect(content)
            except ProtectionError as e:
                logger.error("Response failed verification: %s", type(e).__name__)
                raise ResponseIntegrityError(
                    f"Response failed verification: {e.message}",
                    protection_error=e,
                    status_code=response.status_code,
                    rate_limit=snapshot,
                ) from e

        try:
            return response.json()
        except ValueError as e:
            raise ResponseIntegrityError(
                "Response body is not valid JSON",
                status_code=response.status_code,
                body=response.text,
                rate_limit=snapshot,
            ) from e

    def process_response(self, response: httpx.Response) -> ApiResponse:
        """
        Record rate limits, map errors and decode the body.

        Raises:
            ApiError: For non-2xx responses
            ResponseIntegrityError: If a 2xx body fails verification or parsing
        """
        snapshot = self.throttling.update(response.headers)

        logger.debug(
            "%s %s -> %d", response.request.method, response.request.url.path,
            response.status_code,
        )

        if not response.is_success:
            raise self._error_from_response(response, snapshot)

        return ApiResponse(
            body=self._parse_body(response, snapshot),
            rate_limit=snapshot,
            status_code=response.status_code,
        )

    def _transport_error(self, error: httpx.RequestError) -> ApiError:
        if isinstance(error, httpx.TimeoutException):
            logger.error("API request timed out after %ss", self.settings.timeout)
            return ApiTimeoutError(f"Request timed out after {self.settings.timeout}s")
        if isinstance(error, httpx.DecodingError):
            logger.error("Response body could not be decoded: %s", error)
            return ResponseIntegrityError(f"Response body could not be decoded: {error}")
        logger.error("API server not reachable: %s", error)
        return NetworkUnreachableError(f"API server not reachable: {error}")

    # --------------------------------------
    # Sending
    # --------------------------------------

    async def send(self, spec: RequestSpec) -> ApiResponse:
        """
        Send a request asynchronously.

        Args:
            spec: The request to issue

        Returns:
            ApiResponse with the decoded body and the fresh rate limit snapshot

        Raises:
            ArgumentError: If the request cannot be built
            ProtectionError: If the request body cannot be protected
            ApiError: On HTTP, network or response verification failures
        """
        request = self.build_request(spec)
        client = self._get_async_client()

        try:
            response = await client.request(**request)
        except httpx.RequestError as e:
            raise self._transport_error(e) from e

        return self.process_response(response)

    def send_sync(self, spec: RequestSpec) -> ApiResponse:
        """
        Send a request synchronously.

        Same contract as send().
        """
        request = self.build_request(spec)
        client = self._get_sync_client()

        try:
            response = client.request(**request)
        except httpx.RequestError as e:
            raise self._transport_error(e) from e

        return self.process_response(response)

    # --------------------------------------
    # Helpers
    # --------------------------------------

    async def get(
        self,
        path: str,
        path_params: Optional[Dict[str, Any]] = None,
        query: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> ApiResponse:
        return await self.send(RequestSpec(
            "GET", path, path_params or {}, query or {}, headers=headers or {},
        ))

    async def post(
        self,
        path: str,
        path_params: Optional[Dict[str, Any]] = None,
        body: Any = None,
        query: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> ApiResponse:
        return await self.send(RequestSpec(
            "POST", path, path_params or {}, query or {}, body=body, headers=headers or {},
        ))

    async def put(
        self,
        path: str,
        path_params: Optional[Dict[str, Any]] = None,
        body: Any = None,
        query: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> ApiResponse:
        return await self.send(RequestSpec(
            "PUT", path, path_params or {}, query or {}, body=body, headers=headers or {},
        ))

    async def put_multipart(
        self,
        path: str,
        path_params: Optional[Dict[str, Any]],
        data: Any,
        parts: List[MultipartPart],
    ) -> ApiResponse:
        return await self.send(RequestSpec(
            "PUT", path, path_params or {}, multipart_data=data, multipart=parts,
        ))
