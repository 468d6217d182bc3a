import httpx
import logging
from typing import Any, Optional
from panikkar.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

class PanikkarApiError(Exception):
    """Error calling the marketplace backend API."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

class BaseClient:
    """
    Base HTTP client for the marketplace backend API.
    Single responsibility: HTTP configuration and error mapping.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        if settings.API_PORT:
            self.base_url = f"{settings.API_URL}:{settings.API_PORT}/api/v{settings.API_VERSION}"
        else:
            self.base_url = f"{settings.API_URL}/api/v{settings.API_VERSION}"

        self.headers = {
            "Content-Type": "application/json",
            "x-api-token": settings.API_TOKEN
        }

        # reusable HTTP client
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(10.0, connect=5.0),
            headers=self.headers,
            limits=httpx.Limits(max_keepalive_connections=5, max_connections=10)
        )

    async def _make_request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """
        Sends a request and maps transport errors to PanikkarApiError.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            url: Relative or absolute URL
            **kwargs: Extra httpx arguments

        Returns:
            httpx.Response: Server response (any status code)

        Raises:
            PanikkarApiError: timeout or connection failure
        """
        full_url = url if url.startswith('http') else f"{self.base_url}/{url.lstrip('/')}"
        try:
            logger.debug(f"[API] {method} {full_url}")
            response = await self.client.request(method, full_url, **kwargs)
            logger.debug(f"[API] {method} {full_url} -> {response.status_code}")
        except httpx.TimeoutException as e:
            logger.error(f"[API] Timeout on {method} {url}")
            raise PanikkarApiError("Timeout talking to the backend API") from e
        except httpx.RequestError as e:
            logger.error(f"[API] Connection error on {method} {url}: {e}")
            raise PanikkarApiError(f"Connection error: {e}") from e

        if response.status_code >= 500:
            logger.error(f"[API] Error {response.status_code}: {response.text}")
            raise PanikkarApiError(f"Backend error {response.status_code}", response.status_code)

        return response

    def _data(self, response: httpx.Response, expected=(200, 201)) -> Any:
        """
        Returns the "data" member of a successful response.

        Raises:
            PanikkarApiError: the status code is not one of the expected ones
        """
        if response.status_code not in expected:
            logger.error(f"[API] Unexpected {response.status_code}: {response.text}")
            raise PanikkarApiError(f"Unexpected status {response.status_code}", response.status_code)
        return response.json().get("data")

    async def close(self):
        """Closes the HTTP client."""
        await self.client.aclose()
        logger.debug("[API] HTTP client closed")
