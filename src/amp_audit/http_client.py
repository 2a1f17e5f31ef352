from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum

import requests
from requests import exceptions as req_exc

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 20.0


class FetchErrorKind(str, Enum):
    TIMEOUT = "timeout"
    CONNECTION = "connection"
    HTTP_STATUS = "http_status"
    OTHER = "other"


class FetchError(Exception):
    """A single request failed; ``kind`` says how."""

    def __init__(self, kind: FetchErrorKind, url: str, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.url = url
        self.message = message

    def __str__(self) -> str:
        return f"HTTP GET failure at {self.url}: {self.message}"


@dataclass(frozen=True)
class FetchResult:
    url: str
    final_url: str
    status_code: int
    headers: dict[str, str]
    fetched_at: float
    body: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def content_type(self) -> str | None:
        for key, value in self.headers.items():
            if key.lower() == "content-type":
                return value
        return None

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class HttpClient:
    def __init__(
        self,
        session: requests.Session,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        headers: dict[str, str] | None = None,
    ) -> None:
        self._session = session
        self._timeout_s = timeout_s
        self._headers = dict(headers or {})

    @property
    def timeout_s(self) -> float:
        return self._timeout_s

    def get(self, url: str) -> FetchResult:
        """Fetch *url* once. Any status code is returned to the caller."""

        logger.debug("GET %s", url)
        try:
            resp = self._session.get(
                url, timeout=self._timeout_s, headers=self._headers or None
            )
        except req_exc.Timeout as e:
            raise FetchError(
                FetchErrorKind.TIMEOUT,
                url,
                f"no response within {self._timeout_s:g} seconds ({e})",
            ) from e
        except req_exc.ConnectionError as e:
            raise FetchError(FetchErrorKind.CONNECTION, url, str(e)) from e
        except req_exc.RequestException as e:
            raise FetchError(FetchErrorKind.OTHER, url, str(e)) from e

        result = FetchResult(
            url=url,
            final_url=str(resp.url or url),
            status_code=int(resp.status_code),
            headers={k: str(v) for k, v in resp.headers.items()},
            fetched_at=time.time(),
            body=resp.content,
        )
        logger.debug("HTTP %s for %s", result.status_code, url)
        return result

    def get_page(self, url: str) -> FetchResult:
        """Like :meth:`get`, but a non-2xx status is a :class:`FetchError`."""

        result = self.get(url)
        if not result.ok:
            raise FetchError(
                FetchErrorKind.HTTP_STATUS,
                url,
                f"status code {result.status_code}",
            )
        return result
