"""Base classes and error types for enrichment providers."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

import httpx
from pydantic import BaseModel

from jetai.core.redact import redact_sensitive

logger = logging.getLogger(__name__)

ParamsT = TypeVar("ParamsT", bound=BaseModel)
ResultT = TypeVar("ResultT", bound=BaseModel)


# ============ Errors ============


class ToolError(Exception):
    """Base exception for enrichment errors."""

    def __init__(self, message: str, tool_name: str, details: dict | None = None):
        self.message = redact_sensitive(message)
        self.tool_name = tool_name
        self.details = details or {}
        super().__init__(self.message)


class APIClientError(ToolError):
    """Transport or HTTP status failure."""


class RateLimitError(APIClientError):
    """HTTP 429 from a provider."""


class AuthenticationError(APIClientError):
    """HTTP 401/403 from a provider."""


class ProviderDeniedError(ToolError):
    """Provider answered but signalled denial or an empty result."""


class EnrichmentUnavailable(ToolError):
    """Both providers of a pair failed."""

    def __init__(self, primary_error: str, fallback_error: str, tool_name: str):
        self.primary_error = redact_sensitive(primary_error)
        self.fallback_error = redact_sensitive(fallback_error)
        super().__init__(
            f"{self.label} unavailable: primary failed ({self.primary_error}); "
            f"fallback failed ({self.fallback_error})",
            tool_name=tool_name,
            details={"primary": self.primary_error, "fallback": self.fallback_error},
        )

    label = "enrichment"


class WeatherUnavailable(EnrichmentUnavailable):
    label = "weather"


class GeocodeUnavailable(EnrichmentUnavailable):
    label = "geocoding"


class RouteUnavailable(EnrichmentUnavailable):
    label = "routes"


# ============ Error Classification ============


class ToolErrorType:
    """Classification of provider errors for logs."""

    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    AUTHENTICATION = "authentication"
    SERVICE_UNAVAILABLE = "service_unavailable"
    NETWORK_ERROR = "network_error"
    INVALID_RESPONSE = "invalid_response"
    UNKNOWN = "unknown"


def classify_error(error: Exception) -> str:
    """Classify an exception into a ToolErrorType."""
    if isinstance(error, RateLimitError):
        return ToolErrorType.RATE_LIMIT
    if isinstance(error, AuthenticationError):
        return ToolErrorType.AUTHENTICATION
    if isinstance(error, httpx.TimeoutException):
        return ToolErrorType.TIMEOUT

    error_msg = str(error).lower()
    if "rate" in error_msg or "429" in error_msg or "quota" in error_msg:
        return ToolErrorType.RATE_LIMIT
    elif "timeout" in error_msg or "timed out" in error_msg:
        return ToolErrorType.TIMEOUT
    elif "401" in error_msg or "403" in error_msg or "auth" in error_msg or "denied" in error_msg:
        return ToolErrorType.AUTHENTICATION
    elif "503" in error_msg or "502" in error_msg or "unavailable" in error_msg:
        return ToolErrorType.SERVICE_UNAVAILABLE
    elif "connection" in error_msg or "network" in error_msg or "request error" in error_msg:
        return ToolErrorType.NETWORK_ERROR
    elif "json" in error_msg or "parse" in error_msg or "validation" in error_msg:
        return ToolErrorType.INVALID_RESPONSE
    else:
        return ToolErrorType.UNKNOWN


# ============ HTTP Client ============


class BaseAsyncAPIClient(ABC):
    """Base class for async API clients with common functionality."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        max_retries: int = 1,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "BaseAsyncAPIClient":
        """Enter async context."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=await self._get_headers(),
            transport=self.transport,
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @abstractmethod
    async def _get_headers(self) -> dict[str, str]:
        """Get headers for API requests. Override in subclasses."""

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict | None = None,
        json_data: dict | None = None,
        **kwargs: Any,
    ) -> Any:
        """Make an async HTTP request with retry on 5xx and transport errors."""
        if not self._client:
            raise APIClientError(
                "Client not initialized. Use async context manager.",
                tool_name=self.__class__.__name__,
            )

        url = endpoint if endpoint.startswith("/") else f"/{endpoint}"
        last_error: Exception | None = None

        for attempt in range(self.max_retries):
            try:
                response = await self._client.request(
                    method=method,
                    url=url,
                    params=params,
                    json=json_data,
                    **kwargs,
                )

                if response.status_code in (401, 403):
                    raise AuthenticationError(
                        f"Authentication failed: HTTP {response.status_code}",
                        tool_name=self.__class__.__name__,
                        details={"status_code": response.status_code},
                    )

                if response.status_code == 429:
                    raise RateLimitError(
                        "Rate limit exceeded",
                        tool_name=self.__class__.__name__,
                        details={"status_code": 429},
                    )

                response.raise_for_status()
                return response.json()

            except httpx.HTTPStatusError as e:
                last_error = APIClientError(
                    f"HTTP error: {e.response.status_code}",
                    tool_name=self.__class__.__name__,
                    details={"status_code": e.response.status_code},
                )
                if e.response.status_code < 500:
                    raise last_error
                logger.warning(
                    f"{self.__class__.__name__} attempt {attempt + 1}/{self.max_retries} "
                    f"failed: HTTP {e.response.status_code}"
                )

            except httpx.RequestError as e:
                last_error = APIClientError(
                    f"Request error: {type(e).__name__}: {e}",
                    tool_name=self.__class__.__name__,
                )
                logger.warning(
                    f"{self.__class__.__name__} attempt {attempt + 1}/{self.max_retries} "
                    f"failed: {type(e).__name__}"
                )

        if last_error:
            raise last_error
        raise APIClientError(
            "Max retries exceeded",
            tool_name=self.__class__.__name__,
        )

    async def get(
        self, endpoint: str, params: dict | None = None, **kwargs: Any
    ) -> Any:
        """Make an async GET request."""
        return await self._request("GET", endpoint, params=params, **kwargs)

    async def post(
        self,
        endpoint: str,
        json_data: dict | None = None,
        params: dict | None = None,
        **kwargs: Any,
    ) -> Any:
        """Make an async POST request."""
        return await self._request(
            "POST", endpoint, params=params, json_data=json_data, **kwargs
        )


# ============ Provider Contract ============


class EnrichmentProvider(ABC, Generic[ParamsT, ResultT]):
    """One side of a fallback pair: a raw call plus its normalizer."""

    #: Value written to the result's _source tag.
    source: str = ""

    @abstractmethod
    async def call(self, params: ParamsT) -> Any:
        """Fetch the provider's native response."""

    @abstractmethod
    def normalize(self, raw: Any, params: ParamsT) -> ResultT:
        """Map the native response onto the shared shape.

        Raises ProviderDeniedError when the response carries no usable data.
        """

    async def fetch(self, params: ParamsT) -> ResultT:
        raw = await self.call(params)
        return self.normalize(raw, params)
