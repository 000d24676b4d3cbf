"""Data models, enums, and constants for YouTube audio resolution."""

import time
import urllib.parse
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional

from yt_dlp.utils import int_or_none, traverse_obj


# Endpoints
BASE_URL = "https://www.youtube.com"
PLAYER_URL = "https://youtubei.googleapis.com/youtubei/v1/player"
VISITOR_ID_URL = "https://youtubei.googleapis.com/youtubei/v1/visitor_id"
EMBED_URL = BASE_URL + "/embed/"
THIRD_PARTY_EMBED_URL = "https://google.com"

# Player params used for the restriction bypass
PLAYER_PARAMS = "CgIQBg"
PLAYER_PARAMS_WEB = "8AEB"

PLAYER_SCRIPT_TTL_MS = 600_000  # 10 minutes
CONTENT_LENGTH_UNKNOWN = -1

MIME_AUDIO_WEBM = "audio/webm"


class PlayabilityOutcome(Enum):
    """Classification of a player response's playability status."""
    PLAYABLE = "playable"
    REQUIRES_LOGIN = "requires_login"
    DOES_NOT_EXIST = "does_not_exist"
    CONTENT_CHECK_REQUIRED = "content_check_required"
    LIVE_STREAM_OFFLINE = "live_stream_offline"
    PREMIERE_TRAILER = "premiere_trailer"
    NON_EMBEDDABLE = "non_embeddable"


class ContainerKind(Enum):
    """Container family a decoder is picked for."""
    MATROSKA = "matroska"
    MPEG = "mpeg"

    @classmethod
    def for_mime_type(cls, mime_type: str) -> "ContainerKind":
        if mime_type.endswith("/webm"):
            return cls.MATROSKA
        return cls.MPEG


def current_millis() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class CachedPlayerScript:
    """Player script reference and the time it was fetched."""
    url: str
    timestamp_ms: int

    def is_fresh(self, now_ms: int, ttl_ms: int = PLAYER_SCRIPT_TTL_MS) -> bool:
        return now_ms - self.timestamp_ms < ttl_ms


@dataclass(frozen=True)
class ContentType:
    """Mime type plus codec list, e.g. ``audio/webm; codecs="opus"``."""
    mime_type: str
    codecs: str

    @classmethod
    def parse(cls, value: Optional[str]) -> "ContentType":
        if not value:
            return cls("", "")
        mime_type, _, params = value.partition(";")
        codecs = ""
        for param in params.split(";"):
            key, _, raw = param.strip().partition("=")
            if key == "codecs":
                codecs = raw.strip().strip('"')
        return cls(mime_type.strip().lower(), codecs)

    def __str__(self) -> str:
        if self.codecs:
            return f'{self.mime_type}; codecs="{self.codecs}"'
        return self.mime_type


class FormatInfo(Enum):
    """Supported container/codec combinations, most preferred first."""
    WEBM_OPUS = ("audio/webm", "opus")
    WEBM_VORBIS = ("audio/webm", "vorbis")
    MP4_AAC_LC = ("audio/mp4", "mp4a.40.2")
    WEBM_VIDEO_VORBIS = ("video/webm", "vorbis")
    MP4_VIDEO_AAC_LC = ("video/mp4", "mp4a.40.2")

    def __init__(self, mime_type: str, codec: str) -> None:
        self.mime_type = mime_type
        self.codec = codec

    @property
    def rank(self) -> int:
        return list(FormatInfo).index(self)

    @classmethod
    def get(cls, content_type: ContentType) -> Optional["FormatInfo"]:
        codecs = [codec.strip() for codec in content_type.codecs.split(",")]
        for info in cls:
            if info.mime_type == content_type.mime_type and info.codec in codecs:
                return info
        return None


@dataclass(frozen=True)
class TrackFormat:
    """One encoded stream offered by the player response."""
    content_type: ContentType
    itag: Optional[int]
    bitrate: int
    content_length: int
    audio_channels: int
    url: str
    is_default_audio_track: bool = True
    signature: Optional[str] = None
    signature_key: Optional[str] = None

    @property
    def info(self) -> Optional[FormatInfo]:
        return FormatInfo.get(self.content_type)

    @property
    def is_ciphered(self) -> bool:
        return self.signature is not None


@dataclass(frozen=True)
class TrackMetadata:
    """Classified player response for the requested video."""
    video_id: str
    player_response: Dict[str, Any]
    player_script_url: Optional[str] = None

    @classmethod
    def from_main_result(cls, video_id: str, result: Dict[str, Any]) -> "TrackMetadata":
        """Build from a raw player result, which may wrap the response."""
        player_response = result
        wrapped = traverse_obj(result, "playerResponse", expected_type=dict)
        if wrapped:
            player_response = wrapped
        script_url = traverse_obj(
            result, ("assets", "js"), ("player", "assets", "js"), expected_type=str
        )
        return cls(video_id=video_id, player_response=player_response, player_script_url=script_url)

    def with_player_script_url(self, url: str) -> "TrackMetadata":
        return replace(self, player_script_url=url)

    @property
    def response_video_id(self) -> Optional[str]:
        return traverse_obj(self.player_response, ("videoDetails", "videoId"), expected_type=str)

    @property
    def title(self) -> str:
        return traverse_obj(self.player_response, ("videoDetails", "title"), expected_type=str) or "Unknown title"

    @property
    def author(self) -> str:
        return traverse_obj(self.player_response, ("videoDetails", "author"), expected_type=str) or "Unknown artist"

    @property
    def length_seconds(self) -> Optional[int]:
        return int_or_none(traverse_obj(self.player_response, ("videoDetails", "lengthSeconds")))

    @property
    def is_live(self) -> bool:
        return bool(traverse_obj(self.player_response, ("videoDetails", "isLive")))

    def get_formats(self) -> List[TrackFormat]:
        from .formats import parse_formats

        return parse_formats(self.player_response)


@dataclass(frozen=True)
class FormatWithUrl:
    """A chosen format together with its signed URL."""
    details: TrackFormat
    signed_url: str
    player_script_url: Optional[str]

    def get_fallback(self) -> Optional["FormatWithUrl"]:
        """Swap the first host listed in ``mn`` for the next one, if any."""
        query = urllib.parse.urlparse(self.signed_url).query
        hosts_value = urllib.parse.parse_qs(query).get("mn")
        if not hosts_value:
            return None

        hosts = hosts_value[0].split(",")
        if len(hosts) < 2 or not hosts[0]:
            return None

        return replace(self, signed_url=self.signed_url.replace(hosts[0], hosts[1], 1))


@dataclass
class ErrorPattern:
    """Tracks one category of resolution failures."""
    error_type: str
    count: int = 0
    video_ids: List[str] = field(default_factory=list)
    sample_messages: List[str] = field(default_factory=list)
    suspicious: int = 0
    last_seen: Optional[float] = None

    def record(self, video_id: Optional[str], message: str, suspicious: bool = False) -> None:
        self.count += 1
        self.last_seen = time.time()
        if suspicious:
            self.suspicious += 1
        if video_id and video_id not in self.video_ids:
            self.video_ids.append(video_id)
        # First three distinct messages are enough to spot a pattern
        if len(self.sample_messages) < 3 and message not in self.sample_messages:
            self.sample_messages.append(message)
