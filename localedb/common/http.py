"""HTTP client with retries and timeouts for raw source downloads."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import Any, Callable, TypeVar

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from localedb.common.constants import USER_AGENT
from localedb.common.errors import StageError
from localedb.common.fs import ensure_dir

RETRYABLE_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}
DOWNLOAD_CHUNK_BYTES = 1024 * 128

T = TypeVar("T")


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 20.0
    read: float = 120.0


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 4
    multiplier: float = 1.0
    max_wait: float = 30.0


class HttpRequestError(StageError):
    error_code = "HTTP_ERROR"


class RetryableHttpError(HttpRequestError):
    pass


class HttpClient:
    def __init__(
        self,
        *,
        timeout: TimeoutConfig | None = None,
        retry: RetryConfig | None = None,
    ) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.retry = retry or RetryConfig()
        self.session = requests.Session()

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _headers(self, accept: str) -> dict[str, str]:
        return {"User-Agent": USER_AGENT, "Accept": accept}

    def _raise_for_status_or_retry(self, response: requests.Response) -> None:
        status = response.status_code
        if status in RETRYABLE_STATUS_CODES:
            raise RetryableHttpError(f"Retryable HTTP status: {status}")
        if status >= 400:
            raise HttpRequestError(f"HTTP status: {status}")

    def _with_retries(self, func: Callable[[], T]) -> T:
        @retry(
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.retry.multiplier,
                max=self.retry.max_wait,
                jitter=1.0,
            ),
            retry=retry_if_exception_type(RetryableHttpError),
            reraise=True,
        )
        def _wrapped() -> T:
            return func()

        return _wrapped()

    def _send(self, url: str, *, accept: str, stream: bool = False) -> requests.Response:
        try:
            response = self.session.request(
                method="GET",
                url=url,
                headers=self._headers(accept),
                timeout=(self.timeout.connect, self.timeout.read),
                stream=stream,
            )
        except requests.ConnectionError as exc:
            raise RetryableHttpError(f"Connection failed for {url}") from exc
        except requests.RequestException as exc:
            raise HttpRequestError(f"Request failed for {url}") from exc
        self._raise_for_status_or_retry(response)
        return response

    def get_json(self, url: str) -> Any:
        def _fetch() -> Any:
            response = self._send(url, accept="application/json")
            try:
                return response.json()
            except ValueError as exc:
                raise HttpRequestError(f"Invalid JSON payload from {url}") from exc

        return self._with_retries(_fetch)

    def download(self, url: str, target_path: Path) -> Path:
        """Stream ``url`` to ``target_path``; a partial file never replaces a good one."""
        ensure_dir(target_path.parent)
        partial_path = target_path.with_name(target_path.name + ".part")

        def _fetch() -> Path:
            response = self._send(url, accept="*/*", stream=True)
            try:
                with partial_path.open("wb") as f:
                    for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_BYTES):
                        if chunk:
                            f.write(chunk)
            except requests.RequestException as exc:
                raise RetryableHttpError(f"Download interrupted for {url}") from exc
            partial_path.replace(target_path)
            return target_path

        try:
            return self._with_retries(_fetch)
        finally:
            if partial_path.exists():
                partial_path.unlink()
