"""HTTP client for the Google Drive REST API with retry logic."""

import asyncio
from pathlib import Path
from typing import Any

import httpx
import structlog

log = structlog.stdlib.get_logger()

DRIVE_API_URL = "https://www.googleapis.com/drive/v3"


class DriveHttpClient:
    """Thin Drive v3 client: bearer token auth, retries with exponential backoff.

    Obtaining and refreshing ``access_token`` is the caller's job.
    """

    def __init__(
        self,
        access_token: str,
        timeout: float = 30.0,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        base_url: str = DRIVE_API_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the Drive HTTP client.

        Args:
            access_token: OAuth access token with Drive read scope
            timeout: Request timeout in seconds
            max_retries: Maximum number of retry attempts
            base_delay: Base delay for exponential backoff in seconds
            max_delay: Maximum delay between retries in seconds
            base_url: API root, overridable for tests
            transport: Optional httpx transport (e.g. ``httpx.MockTransport``)
        """
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.base_url = base_url.rstrip("/")

        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={
                "Authorization": f"Bearer {access_token}",
                "User-Agent": "game-unifier/0.1",
            },
            follow_redirects=True,
            limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
            transport=transport,
        )

        log.info("Drive HTTP client initialized", timeout=timeout, max_retries=max_retries)

    async def get_json(self, endpoint: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        """GET an API endpoint and decode the JSON body."""
        response = await self._get(f"{self.base_url}/{endpoint.lstrip('/')}", params=params)
        return response.json()

    async def download_file(self, file_id: str, path: Path, chunk_size: int = 65536) -> None:
        """Stream a file's content to ``path``.

        Raises:
            httpx.HTTPError: If the download fails after all retries
            OSError: If the file cannot be written
        """
        url = f"{self.base_url}/files/{file_id}"
        path.parent.mkdir(parents=True, exist_ok=True)

        for attempt in range(self.max_retries + 1):
            try:
                async with self._client.stream("GET", url, params={"alt": "media"}) as response:
                    response.raise_for_status()
                    downloaded = 0
                    with open(path, "wb") as f:
                        async for chunk in response.aiter_bytes(chunk_size):
                            f.write(chunk)
                            downloaded += len(chunk)

                log.info("File download completed", file_id=file_id, path=str(path), size=downloaded)
                return

            except (httpx.HTTPStatusError, httpx.RequestError) as e:
                log.warning(
                    "File download failed",
                    file_id=file_id,
                    attempt=attempt + 1,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                if path.exists():
                    path.unlink()
                if not self._should_retry(e, attempt):
                    raise
                await self._backoff(attempt)

        raise RuntimeError("Unexpected end of retry loop")

    async def _get(self, url: str, params: dict[str, str] | None = None) -> httpx.Response:
        for attempt in range(self.max_retries + 1):
            try:
                log.debug("Making Drive API request", url=url, attempt=attempt + 1)
                response = await self._client.get(url, params=params)
                response.raise_for_status()
                return response

            except (httpx.HTTPStatusError, httpx.RequestError) as e:
                log.warning(
                    "Drive API request failed",
                    url=url,
                    attempt=attempt + 1,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                if not self._should_retry(e, attempt):
                    raise
                await self._backoff(attempt)

        raise RuntimeError("Unexpected end of retry loop")

    def _should_retry(self, error: Exception, attempt: int) -> bool:
        if attempt >= self.max_retries:
            return False
        if isinstance(error, httpx.HTTPStatusError):
            status = error.response.status_code
            # Client errors are final, except rate limiting
            return status == 429 or status >= 500
        return True

    async def _backoff(self, attempt: int) -> None:
        delay = min(self.base_delay * (2 ** attempt), self.max_delay)
        log.info("Retrying after delay", delay=delay)
        await asyncio.sleep(delay)

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        await self._client.aclose()
        log.info("Drive HTTP client closed")

    async def __aenter__(self) -> "DriveHttpClient":
        return self

    async def __aexit__(self, exc_type: type[Exception] | None, exc_val: Exception | None, exc_tb: Any) -> None:
        await self.close()
