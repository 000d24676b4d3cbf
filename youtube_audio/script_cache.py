"""Process-wide cache of the player script reference."""

import json
from typing import Callable, Optional

from .errors import ProtocolAnomaly
from .logger import ResolverLogger
from .models import EMBED_URL, PLAYER_SCRIPT_TTL_MS, CachedPlayerScript, current_millis
from .transport import HttpInterface, assert_success_with_content

JS_URL_MARKER = '"jsUrl":"'


def extract_between(text: str, start: str, end: str) -> Optional[str]:
    start_index = text.find(start)
    if start_index < 0:
        return None
    start_index += len(start)
    end_index = text.find(end, start_index)
    if end_index < 0:
        return None
    return text[start_index:end_index]


class PlayerScriptCache:
    """Latest known player script reference, refreshed from the embed page.

    The cached value is a frozen :class:`CachedPlayerScript` swapped in with a
    single assignment, so readers never see a half-written entry. Refreshes
    are not serialized: callers racing past a stale entry each fetch the
    embed page and the last write wins.
    """

    def __init__(
        self,
        http: HttpInterface,
        ttl_ms: int = PLAYER_SCRIPT_TTL_MS,
        clock: Callable[[], int] = current_millis,
        logger: Optional[ResolverLogger] = None,
    ) -> None:
        self.http = http
        self.ttl_ms = ttl_ms
        self.clock = clock
        self.logger = logger or ResolverLogger()
        self._cached: Optional[CachedPlayerScript] = None

    @property
    def cached(self) -> Optional[CachedPlayerScript]:
        return self._cached

    def store(self, url: str) -> str:
        self._cached = CachedPlayerScript(url, self.clock())
        return url

    def current(self, video_id: str) -> str:
        """Any cached reference, fetching one only when nothing is cached."""
        cached = self._cached
        if cached is None:
            return self.fetch(video_id)
        return cached.url

    def ensure_fresh(self, video_id: str) -> str:
        cached = self._cached
        if cached is not None and cached.is_fresh(self.clock(), self.ttl_ms):
            return cached.url
        return self.fetch(video_id)

    def fetch(self, video_id: str) -> str:
        response = self.http.get(EMBED_URL + video_id)
        assert_success_with_content(response, "youtube embed video id")

        html = response.text()
        encoded_url = extract_between(html, JS_URL_MARKER, '"')
        if encoded_url is None:
            raise ProtocolAnomaly("no jsUrl found", {"html": html})

        # The marker value is a JSON string literal and may contain escapes
        script_url = json.loads(f'"{encoded_url}"')
        self.logger.debug(f"Fetched player script {script_url}", video_id=video_id)
        return self.store(script_url)
