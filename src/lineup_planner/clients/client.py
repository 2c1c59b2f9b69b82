"""HTTP plumbing shared by the backend clients."""

import logging
from time import sleep

import httpx

from .exceptions import (
    APIError,
    ConflictError,
    ConnectionError,
    NotFoundError,
    RateLimitError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 1.0

# A create that timed out may already have been applied on the backend.
RETRY_ON_TIMEOUT = frozenset({"GET", "PATCH", "DELETE"})

STATUS_ERRORS: dict[int, type[APIError]] = {
    404: NotFoundError,
    409: ConflictError,
    429: RateLimitError,
}


class Client:
    """Base class for backend clients.

    Wraps a lazily created ``httpx.Client`` and maps failed responses to
    ``APIError`` subclasses. A request that could not connect is retried
    whatever its method, because nothing reached the backend. A request that
    timed out after being sent is retried only if repeating it is harmless
    (see ``RETRY_ON_TIMEOUT``).

    Config keys:
        base_url (required): Root URL of the backend
        timeout: Request timeout in seconds (default: 30)
        retry_attempts: Attempts per request, at least 1 (default: 3)
        retry_delay: Seconds to wait between attempts (default: 1)
        headers: Headers sent with every request
    """

    def __init__(self, config: dict):
        if not config.get("base_url"):
            raise ValueError("config must include 'base_url'")

        self._config = config
        self._client: httpx.Client | None = None

    @property
    def base_url(self) -> str:
        return str(self._config["base_url"]).rstrip("/")

    @property
    def timeout(self) -> float:
        return float(self._config.get("timeout", DEFAULT_TIMEOUT))

    @property
    def retry_attempts(self) -> int:
        return max(1, int(self._config.get("retry_attempts", DEFAULT_RETRY_ATTEMPTS)))

    @property
    def retry_delay(self) -> float:
        return float(self._config.get("retry_delay", DEFAULT_RETRY_DELAY))

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._config.get("headers", {}))

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self.headers,
            )
        return self._client

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _raise_for_status(self, response: httpx.Response) -> httpx.Response:
        """Turn a failed response into the matching APIError.

        Raises:
            NotFoundError: For 404 responses
            ConflictError: For 409 responses
            RateLimitError: For 429 responses
            APIError: For any other non-2xx response
        """
        if response.is_success:
            return response

        status_code = response.status_code
        details = self._error_details(response)
        error_class = STATUS_ERRORS.get(status_code)
        if error_class is not None:
            raise error_class(f"{error_class.__name__} ({status_code}): {response.url}", details=details)
        raise APIError(f"API error {status_code}: {response.url}", status_code=status_code, details=details)

    def _error_details(self, response: httpx.Response) -> str | None:
        """Error message from a PostgREST style body, e.g. {"message": ...}."""
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            return body.get("message") or body.get("error")
        return None

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Send a request, retrying transport failures.

        Args:
            method: HTTP method
            path: Path relative to base_url
            **kwargs: Passed on to httpx.Client.request

        Raises:
            ConnectionError: If every attempt failed, or a non-repeatable
                request timed out
            APIError: If the backend answered with a non-2xx status
        """
        method = method.upper()
        failure: Exception | None = None

        for attempt in range(1, self.retry_attempts + 1):
            try:
                response = self.client.request(method, path, **kwargs)
            except httpx.ConnectTimeout as e:
                failure = e
            except httpx.TimeoutException as e:
                if method not in RETRY_ON_TIMEOUT:
                    raise ConnectionError(f"{method} {path} timed out") from e
                failure = e
            except httpx.ConnectError as e:
                failure = e
            else:
                return self._raise_for_status(response)

            logger.warning(f"{method} {path} failed (attempt {attempt}/{self.retry_attempts}): {failure}")
            if attempt < self.retry_attempts:
                sleep(self.retry_delay)

        raise ConnectionError(
            f"{method} {path} failed after {self.retry_attempts} attempts"
        ) from failure

    def get(self, path: str, **kwargs) -> httpx.Response:
        return self._request("GET", path, **kwargs)

    def post(self, path: str, **kwargs) -> httpx.Response:
        return self._request("POST", path, **kwargs)

    def patch(self, path: str, **kwargs) -> httpx.Response:
        return self._request("PATCH", path, **kwargs)

    def delete(self, path: str, **kwargs) -> httpx.Response:
        return self._request("DELETE", path, **kwargs)
