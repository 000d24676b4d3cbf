"""HTTP request execution on top of urllib."""

import io
import json
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from yt_dlp.utils import update_url_query

from .errors import ProtocolAnomaly, RequestFailure, TransientRejection
from .models import CONTENT_LENGTH_UNKNOWN

DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class HttpResponse:
    status: int
    body: bytes
    url: str
    headers: Dict[str, str] = field(default_factory=dict)

    def text(self) -> str:
        return self.body.decode("utf-8", "replace")


def assert_success_with_content(response: HttpResponse, context: str) -> None:
    """Raise unless *response* is a 2xx with a body.

    400 and 403 are surfaced as :class:`TransientRejection` so callers can
    retry them with a different client identity.
    """
    status = response.status
    if status == 403:
        raise TransientRejection(f"Not success status code: {status}", status, {"url": response.url})
    if status == 400:
        raise TransientRejection(
            f"Invalid status code for {context}: {status}", status, {"url": response.url}
        )
    if not 200 <= status < 300:
        raise ProtocolAnomaly(
            f"Invalid status code for {context}: {status}",
            {"url": response.url, "body": response.text()[:2000]},
        )
    if not response.body:
        raise ProtocolAnomaly(f"Empty response for {context}", {"url": response.url})


def _request_failed(url: str, exc: BaseException) -> RequestFailure:
    reason = getattr(exc, "reason", None) or exc
    return RequestFailure(f"Request failed: {reason}", {"url": url})


class HttpInterface:
    """Thin request executor. One instance may be shared between threads."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        proxy: Optional[str] = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        handlers = []
        if proxy:
            handlers.append(urllib.request.ProxyHandler({"http": proxy, "https": proxy}))
        self._opener = urllib.request.build_opener(*handlers)

    def _headers(self, headers: Optional[Dict[str, str]]) -> Dict[str, str]:
        merged = {"User-Agent": self.user_agent}
        merged.update(headers or {})
        return merged

    def execute(self, request: urllib.request.Request) -> HttpResponse:
        """Run *request*; HTTP error statuses are returned, not raised."""
        try:
            with self._opener.open(request, timeout=self.timeout) as response:
                return HttpResponse(
                    status=response.status,
                    body=response.read(),
                    url=response.geturl(),
                    headers=dict(response.headers.items()),
                )
        except urllib.error.HTTPError as exc:
            return HttpResponse(
                status=exc.code,
                body=exc.read() or b"",
                url=request.full_url,
                headers=dict(exc.headers.items()) if exc.headers else {},
            )
        except (urllib.error.URLError, OSError) as exc:
            raise _request_failed(request.full_url, exc) from exc

    def get(self, url: str, headers: Optional[Dict[str, str]] = None) -> HttpResponse:
        return self.execute(urllib.request.Request(url, headers=self._headers(headers), method="GET"))

    def post_json(
        self, url: str, payload: Dict[str, Any], headers: Optional[Dict[str, str]] = None
    ) -> HttpResponse:
        data = json.dumps(payload).encode("utf-8")
        request_headers = self._headers(headers)
        request_headers.setdefault("Content-Type", "application/json")
        return self.execute(
            urllib.request.Request(url, data=data, headers=request_headers, method="POST")
        )

    def open(self, url: str, headers: Optional[Dict[str, str]] = None):
        """Open a streaming response. Caller closes it."""
        request = urllib.request.Request(url, headers=self._headers(headers), method="GET")
        try:
            return self._opener.open(request, timeout=self.timeout)
        except urllib.error.HTTPError as exc:
            exc.close()
            assert_success_with_content(HttpResponse(exc.code, b"", url), "audio stream")
            raise
        except (urllib.error.URLError, OSError) as exc:
            raise _request_failed(url, exc) from exc


class PersistentHttpStream(io.RawIOBase):
    """Seekable reader over a format URL.

    Seeking reopens the connection with a ``range`` query parameter, the way
    the player requests byte ranges from the video servers.
    """

    def __init__(self, http: HttpInterface, url: str, content_length: int = CONTENT_LENGTH_UNKNOWN) -> None:
        super().__init__()
        self.http = http
        self.url = url
        self.content_length = content_length
        self.position = 0
        self._response = None

    def _url_for_position(self) -> str:
        if self.position == 0:
            return self.url
        end = "" if self.content_length == CONTENT_LENGTH_UNKNOWN else str(self.content_length - 1)
        return update_url_query(self.url, {"range": f"{self.position}-{end}"})

    def connect(self) -> "PersistentHttpStream":
        if self._response is None:
            self._response = self.http.open(self._url_for_position())
        return self

    def _disconnect(self) -> None:
        if self._response is not None:
            self._response.close()
            self._response = None

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return self.content_length != CONTENT_LENGTH_UNKNOWN

    def tell(self) -> int:
        return self.position

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        if whence == io.SEEK_CUR:
            offset += self.position
        elif whence == io.SEEK_END:
            if not self.seekable():
                raise io.UnsupportedOperation("content length unknown")
            offset += self.content_length
        if offset != self.position:
            self._disconnect()
            self.position = offset
        return self.position

    def readinto(self, buffer) -> int:
        if self.seekable() and self.position >= self.content_length:
            return 0
        self.connect()
        read = self._response.readinto(buffer)
        self.position += read or 0
        return read

    def close(self) -> None:
        self._disconnect()
        super().close()
