"""Base HTTP client with status-code error mapping and request logging."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx
import structlog

from scf_reconciler.clients.exceptions import (
    APIError,
    AuthenticationError,
    AuthorizationError,
    ClientError,
    ConflictError,
    NetworkError,
    RateLimitError,
    ResourceNotFoundError,
    ServerError,
)

logger = structlog.get_logger(__name__)


class BaseAPIClient(ABC):
    """Abstract base class for blocking JSON API clients.

    Requests are issued exactly once. Failures are raised as the
    ``APIError`` family so that callers can tell a missing resource
    (``ResourceNotFoundError``) apart from every other failure.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 30,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """Initialize the base API client.

        Args:
            base_url: Base URL for the API
            timeout_seconds: Request timeout in seconds
            user_agent: Custom user agent string
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

        headers = {
            "User-Agent": user_agent or self._get_default_user_agent(),
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout_seconds),
            headers=headers,
            follow_redirects=True,
            transport=transport,
        )

        # Numbers request ids in debug logs
        self._request_count = 0

        self._logger = logger.bind(
            client_type=self.__class__.__name__,
            base_url=self.base_url,
        )

    def __enter__(self) -> "BaseAPIClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client:
            self._client.close()

    @abstractmethod
    def _get_auth_headers(self) -> Dict[str, str]:
        """Get authentication headers for requests.

        Returns:
            Dictionary of authentication headers
        """
        pass

    def _get_default_user_agent(self) -> str:
        from scf_reconciler.version import __version__
        return f"scf-reconciler/{__version__}"

    def _make_request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """Make an HTTP request and map unsuccessful responses to errors.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE)
            path: API endpoint path (relative to base URL)
            params: Query parameters
            json_data: JSON request body
            headers: Additional headers

        Returns:
            HTTP response object

        Raises:
            APIError: If the request fails or returns a non-2xx status
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        request_headers = self._get_auth_headers()
        if headers:
            request_headers.update(headers)

        self._request_count += 1
        request_id = f"req_{self._request_count}"

        self._logger.debug(
            "Making API request",
            request_id=request_id,
            method=method,
            url=url,
            params=params,
            has_json_data=json_data is not None,
        )

        try:
            response = self._client.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                headers=request_headers,
            )
        except httpx.RequestError as e:
            self._logger.error(
                "Network error during API request",
                request_id=request_id,
                error=str(e),
            )
            raise NetworkError(f"Network error: {e}") from e

        self._logger.debug(
            "API request completed",
            request_id=request_id,
            status_code=response.status_code,
            response_size=len(response.content),
        )

        if response.is_success:
            return response

        raise self._error_for_response(response)

    def _error_for_response(self, response: httpx.Response) -> APIError:
        """Build the typed error for an unsuccessful response."""
        status = response.status_code
        text = response.text

        if status == 401:
            return AuthenticationError("Authentication failed", status_code=status, response_text=text)
        if status == 403:
            return AuthorizationError("Authorization failed", status_code=status, response_text=text)
        if status == 404:
            return ResourceNotFoundError("Resource not found", status_code=status, response_text=text)
        if status == 409:
            return ConflictError("Conflict with current state", status_code=status, response_text=text)
        if status == 429:
            return RateLimitError(
                "Rate limit exceeded",
                status_code=status,
                response_text=text,
                retry_after=self._get_retry_after(response),
            )
        if 400 <= status < 500:
            return ClientError(f"Client error: {status}", status_code=status, response_text=text)
        if 500 <= status < 600:
            return ServerError(f"Server error: {status}", status_code=status, response_text=text)
        return APIError(f"Unexpected status code: {status}", status_code=status, response_text=text)

    def _get_retry_after(self, response: httpx.Response) -> Optional[int]:
        retry_after = response.headers.get("Retry-After")
        if retry_after:
            try:
                return int(retry_after)
            except ValueError:
                return None
        return None

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Make a GET request and return the decoded JSON body.

        Raises:
            APIError: If the request fails or the body is not valid JSON
        """
        response = self._make_request("GET", path, params=params)
        return self._decode(response)

    def send_json(
        self,
        method: str,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """Send a JSON body and return the decoded response, if any.

        Returns ``None`` for empty bodies (e.g. ``204 No Content``).
        """
        response = self._make_request(method, path, json_data=json_data)
        if not response.content:
            return None
        return self._decode(response)

    def delete(self, path: str) -> None:
        """Make a DELETE request, discarding any response body."""
        self._make_request("DELETE", path)

    def _decode(self, response: httpx.Response) -> Dict[str, Any]:
        try:
            return response.json()
        except ValueError as e:
            raise APIError(
                f"Failed to parse JSON response: {e}",
                status_code=response.status_code,
                response_text=response.text,
            ) from e
