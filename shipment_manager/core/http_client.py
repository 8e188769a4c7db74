"""
HTTP transport for carrier gateways.

Thin synchronous wrapper over httpx. It does not retry, back off or break
circuits; carriers get exactly the calls they issue. Every failure is raised
as a TransportError subclass so the gateway edge can convert it into a
Violation.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import httpx

from shipment_manager.core.config import settings

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Network level failure - no response was received."""

    def __init__(self, message: str, method: str = "", url: str = ""):
        self.method = method
        self.url = url
        super().__init__(message)


class HTTPStatusError(TransportError):
    """Carrier answered with a 4xx/5xx status."""

    def __init__(self, response: "TransportResponse", method: str = "", url: str = ""):
        self.response = response
        super().__init__(
            f"HTTP {response.status} returned for \"{url}\".",
            method=method,
            url=url,
        )

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.response.status < 500


class DecodingError(TransportError):
    """Response body could not be decoded as JSON."""

    def __init__(self, response: "TransportResponse", method: str = "", url: str = ""):
        self.response = response
        super().__init__(f"Response from \"{url}\" is not valid JSON.", method=method, url=url)


@dataclass
class ClientOptions:
    """Carrier supplied request defaults (base URL and auth material)."""
    base_url: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    auth: Optional[Tuple[str, str]] = None
    bearer_token: Optional[str] = None

    def build_headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = dict(self.headers)
        if self.bearer_token:
            headers["Authorization"] = f"Bearer {self.bearer_token}"
        headers.update(extra or {})
        return headers

    def resolve_url(self, url: str) -> str:
        if url.startswith(("http://", "https://")) or not self.base_url:
            return url
        return self.base_url.rstrip("/") + "/" + url.lstrip("/")


@dataclass
class TransportResponse:
    status: int
    raw_body: bytes
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def text(self) -> str:
        return self.raw_body.decode("utf-8", errors="replace")

    def json(self, strict: bool = True) -> Any:
        """
        Decode the body as JSON.

        Args:
            strict: Raise DecodingError on invalid JSON; otherwise return {}

        Returns:
            Decoded body, {} for an empty body
        """
        if not self.raw_body:
            return {}
        try:
            return json.loads(self.raw_body)
        except ValueError:
            if strict:
                raise DecodingError(self)
            return {}


class HttpTransport:
    """
    Synchronous carrier transport.

    Usage:
        transport = HttpTransport()
        response = transport.request("GET", "profile", options=ClientOptions(base_url=...))
    """

    def __init__(self, client: Optional[httpx.Client] = None, timeout: Optional[float] = None):
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self._client = client or httpx.Client(
            timeout=self.timeout,
            headers={"User-Agent": settings.HTTP_USER_AGENT},
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def request(
        self,
        method: str,
        url: str,
        options: Optional[ClientOptions] = None,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        raise_for_status: bool = True,
    ) -> TransportResponse:
        """
        Issue one HTTP call.

        Args:
            method: HTTP method
            url: Absolute URL or path relative to ``options.base_url``
            options: Carrier client options
            json: JSON body
            params: Query string parameters
            headers: Extra headers for this call only
            raise_for_status: Raise HTTPStatusError for 4xx/5xx

        Returns:
            TransportResponse with status, headers and raw body
        """
        options = options or ClientOptions()
        full_url = options.resolve_url(url)

        try:
            response = self._client.request(
                method,
                full_url,
                json=json,
                params=params,
                headers=options.build_headers(headers),
                auth=options.auth,
            )
        except httpx.HTTPError as e:
            raise TransportError(str(e) or e.__class__.__name__, method=method, url=full_url) from e

        result = TransportResponse(
            status=response.status_code,
            raw_body=response.content,
            headers=dict(response.headers),
        )
        if raise_for_status and response.status_code >= 400:
            raise HTTPStatusError(result, method=method, url=full_url)
        return result

    def request_json(self, method: str, url: str, **kwargs) -> Any:
        """Issue a call and decode its JSON body."""
        response = self.request(method, url, **kwargs)
        try:
            return response.json()
        except DecodingError as e:
            raise DecodingError(response, method=method, url=url) from e
