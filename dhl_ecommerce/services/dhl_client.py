"""
DHL eCommerce Solutions API Client

Implements client-credentials authentication and the v4 shipping APIs:
- Access token (cached per base URL + client id)
- Label creation
- Manifest creation and download
- Product / rate lookup
- Tracking by package id or tracking id

Every call returns the parsed JSON body on 200. Any other status raises
HttpStatusError; transport failures are raised by httpx unmodified. There
are no retries: a 401 on a cached token that has not reached its midlife
is surfaced as-is, without a forced refresh.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from dhl_ecommerce.core.config import ClientOptions
from dhl_ecommerce.core.exceptions import AuthenticationError, HttpStatusError
from dhl_ecommerce.core.token_cache import CachedToken, TokenCache
from dhl_ecommerce.services.dimensional_weight import DEFAULT_DIVISOR, apply_dimensional_weight

logger = logging.getLogger(__name__)

# Auth endpoint
ACCESS_TOKEN_PATH = "/auth/v4/accesstoken"

# API endpoints
LABEL_PATH = "/shipping/v4/label"
MANIFEST_PATH = "/shipping/v4/manifest"
PRODUCTS_PATH = "/shipping/v4/products"
TRACKING_PATH = "/tracking/v4/package"

DEFAULT_LABEL_FORMAT = "ZPL"

# Sentinel: "use the client's configured timeout"
_DEFAULT_TIMEOUT: Any = object()


@dataclass(frozen=True)
class LabelOptions:
    """Label request options. format is ZPL or PNG."""
    format: str = DEFAULT_LABEL_FORMAT


def _parse_body(response: httpx.Response) -> Any:
    """JSON body when there is one, raw text otherwise."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class DHLEcommerceClient:
    """
    DHL eCommerce Solutions API client.

    Resolves a bearer token through the TokenCache before every carrier
    call and normalizes non-200 responses into HttpStatusError.
    """

    def __init__(
        self,
        options: Optional[ClientOptions] = None,
        token_cache: Optional[TokenCache] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.options = options or ClientOptions.from_settings()
        self.token_cache = token_cache if token_cache is not None else TokenCache()
        self._http_client = http_client
        self._owns_http_client = http_client is None

    @property
    def credentials(self):
        return self.options.credentials

    @property
    def base_url(self) -> str:
        return self.options.credentials.environment_url

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.options.timeout)
            self._owns_http_client = True
        return self._http_client

    async def close(self):
        """Close HTTP client if this instance created it."""
        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "DHLEcommerceClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def _timeout_kwargs(self, timeout) -> Dict[str, Any]:
        if timeout is _DEFAULT_TIMEOUT:
            return {}
        return {"timeout": timeout}

    def _build_url(self, path: str) -> httpx.URL:
        """Join base URL and path; a malformed URL surfaces as a TransportError."""
        try:
            return httpx.URL(f"{self.base_url}{path}")
        except httpx.InvalidURL as e:
            raise httpx.UnsupportedProtocol(str(e)) from e

    # ==================== Authentication ====================

    async def _exchange_credentials(self, timeout=_DEFAULT_TIMEOUT) -> CachedToken:
        """POST the client credentials to the token endpoint."""
        client = await self._get_http_client()
        url = self._build_url(ACCESS_TOKEN_PATH)

        # Transport errors propagate unmodified
        response = await client.post(
            url,
            data={
                "client_id": self.credentials.client_id,
                "client_secret": self.credentials.client_secret,
                "grant_type": "client_credentials",
            },
            headers={
                "Accept": "application/json",
                "Content-Type": "application/x-www-form-urlencoded",
            },
            **self._timeout_kwargs(timeout),
        )
        logger.debug(f"DHL eCS POST {ACCESS_TOKEN_PATH} -> {response.status_code}")

        body = _parse_body(response)
        if response.status_code != 200:
            logger.error(f"DHL eCS token exchange failed: {response.status_code} - {str(body)[:500]}")
            raise AuthenticationError(status=response.status_code, body=body)

        if not isinstance(body, dict) or not body.get("access_token"):
            logger.error("DHL eCS token exchange returned 200 without an access_token")
            raise AuthenticationError(
                status=response.status_code,
                body=body,
                message="Token response missing access_token",
            )
        return CachedToken.from_response(body)

    async def get_access_token(self, timeout=_DEFAULT_TIMEOUT) -> CachedToken:
        """
        Return a live access token, exchanging credentials on a cache miss.

        Raises:
            AuthenticationError: the exchange returned a non-200 status or no token
            httpx.TransportError: the exchange never reached the server, or the
                base URL is malformed
        """
        key = TokenCache.cache_key(self.base_url, self.credentials.client_id)
        return await self.token_cache.resolve(
            key, lambda: self._exchange_credentials(timeout=timeout)
        )

    # ==================== Request Dispatch ====================

    async def _make_request(
        self,
        method: str,
        path: str,
        data: Optional[Any] = None,
        timeout=_DEFAULT_TIMEOUT,
    ) -> Any:
        """Make authenticated API request."""
        token = await self.get_access_token(timeout=timeout)
        client = await self._get_http_client()
        url = self._build_url(path)

        headers = {
            "Accept": "application/json",
            "Authorization": token.authorization,
        }

        if method.upper() == "GET":
            response = await client.get(url, headers=headers, **self._timeout_kwargs(timeout))
        elif method.upper() == "POST":
            response = await client.post(
                url, headers=headers, json=data, **self._timeout_kwargs(timeout)
            )
        else:
            raise ValueError(f"Unsupported HTTP method: {method}")

        logger.debug(f"DHL eCS {method} {path} -> {response.status_code}")

        body = _parse_body(response)
        if response.status_code != 200:
            logger.error(f"DHL eCS API error: {response.status_code} - {str(body)[:500]}")
            raise HttpStatusError(status=response.status_code, body=body)

        return body

    # ==================== Labels ====================

    async def create_label(
        self,
        request: Dict[str, Any],
        options: Optional[LabelOptions] = None,
        timeout=_DEFAULT_TIMEOUT,
    ) -> Any:
        """
        Create a shipping label.

        Args:
            request: Label request body
            options: Label options; format defaults to ZPL
        """
        options = options or LabelOptions()
        path = f"{LABEL_PATH}?format={quote(options.format or DEFAULT_LABEL_FORMAT, safe='')}"
        return await self._make_request("POST", path, data=request, timeout=timeout)

    # ==================== Manifests ====================

    async def create_manifest(self, request: Dict[str, Any], timeout=_DEFAULT_TIMEOUT) -> Any:
        """Create a manifest for labels handed off at a pickup."""
        return await self._make_request("POST", MANIFEST_PATH, data=request, timeout=timeout)

    async def download_manifest(self, pickup: str, request_id: str, timeout=_DEFAULT_TIMEOUT) -> Any:
        """Download a manifest created by create_manifest()."""
        path = f"{MANIFEST_PATH}/{quote(str(pickup), safe='')}/{quote(str(request_id), safe='')}"
        return await self._make_request("GET", path, timeout=timeout)

    # ==================== Products / Rating ====================

    async def find_products(
        self,
        request: Dict[str, Any],
        apply_dim_weight: bool = False,
        divisor: float = DEFAULT_DIVISOR,
        timeout=_DEFAULT_TIMEOUT,
    ) -> Any:
        """
        Look up available products and rates for a shipment.

        Args:
            request: Products request body
            apply_dim_weight: Run the dimensional weight rule on request first
            divisor: Divisor for the dimensional weight rule
        """
        if apply_dim_weight:
            apply_dimensional_weight(request, divisor)
        return await self._make_request("POST", PRODUCTS_PATH, data=request, timeout=timeout)

    def apply_dimensional_weight(self, request: Dict[str, Any], divisor: float = DEFAULT_DIVISOR) -> None:
        apply_dimensional_weight(request, divisor)

    # ==================== Tracking ====================

    async def get_tracking_by_package_id(self, package_id: str, timeout=_DEFAULT_TIMEOUT) -> Any:
        path = f"{TRACKING_PATH}?packageId={quote(str(package_id), safe='')}"
        return await self._make_request("GET", path, timeout=timeout)

    async def get_tracking_by_tracking_id(self, tracking_id: str, timeout=_DEFAULT_TIMEOUT) -> Any:
        path = f"{TRACKING_PATH}?trackingId={quote(str(tracking_id), safe='')}"
        return await self._make_request("GET", path, timeout=timeout)
