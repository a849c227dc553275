"""Client for http.cat, which serves one cat picture per HTTP status code."""

import httpx
import structlog

from catlog.errors import FetchError

log = structlog.get_logger()

DEFAULT_BASE_URL = "https://http.cat"


class HttpCatClient:
    """Fetch cat images for status codes. No retries: a miss is just skipped."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def image_url(self, status_code: int) -> str:
        """URL of the cat picture for a status code."""
        return f"{self.base_url}/{status_code}"

    def fetch(self, status_code: int) -> bytes:
        """Download the cat picture for a status code.

        Raises:
            FetchError: On any HTTP or transport failure
        """
        url = self.image_url(status_code)
        try:
            response = httpx.get(url, timeout=self.timeout, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            log.debug("http.cat returned an error", url=url, status=e.response.status_code)
            raise FetchError(status_code, f"HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            log.debug("http.cat request failed", url=url, error=str(e))
            raise FetchError(status_code, str(e)) from e

        log.debug("Fetched cat image", url=url, size=len(response.content))
        return response.content
