"""Shared collaborators for resolving YouTube audio tracks."""

import re
from typing import Optional

from .details import TrackDetailsResolver
from .logger import ResolverLogger
from .models import TrackMetadata
from .script_cache import PlayerScriptCache
from .signature import DirectUrlSignatureResolver, SignatureResolver
from .track import YoutubeAudioTrack
from .transport import DEFAULT_TIMEOUT, HttpInterface
from .visitor import VisitorTracker

VIDEO_ID_PATTERN = re.compile(r"^[0-9A-Za-z_-]{11}$")
VIDEO_URL_PATTERN = re.compile(r"(?:v=|youtu\.be/|/shorts/|/embed/|/live/)([0-9A-Za-z_-]{11})")


def extract_video_id(value: str) -> Optional[str]:
    """Video id from a bare id or a watch/short/embed URL."""
    cleaned = value.strip()
    if VIDEO_ID_PATTERN.match(cleaned):
        return cleaned
    match = VIDEO_URL_PATTERN.search(cleaned)
    return match.group(1) if match else None


class YoutubeAudioSource:
    """Owns one HTTP interface, one player script cache and one resolver.

    Everything that should be shared process-wide (the script cache in
    particular) hangs off this object, so create one and reuse it.
    """

    def __init__(
        self,
        http: Optional[HttpInterface] = None,
        signature_resolver: Optional[SignatureResolver] = None,
        logger: Optional[ResolverLogger] = None,
        visitor_data: Optional[str] = None,
    ) -> None:
        self.http = http or HttpInterface()
        self.logger = logger or ResolverLogger()
        self.signature_resolver = signature_resolver or DirectUrlSignatureResolver(self.http)
        self.script_cache = PlayerScriptCache(self.http, logger=self.logger)
        self.details_resolver = TrackDetailsResolver(
            self.http,
            self.signature_resolver,
            script_cache=self.script_cache,
            visitor_tracker=VisitorTracker(self.http, visitor_data),
            logger=self.logger,
        )

    @classmethod
    def from_args(cls, args, logger: Optional[ResolverLogger] = None) -> "YoutubeAudioSource":
        http = HttpInterface(
            timeout=getattr(args, "timeout", None) or DEFAULT_TIMEOUT,
            proxy=getattr(args, "proxy", None),
        )
        return cls(http=http, logger=logger, visitor_data=getattr(args, "visitor_data", None))

    def load_details(self, video_id: str) -> Optional[TrackMetadata]:
        return self.details_resolver.resolve(video_id, require_formats=False)

    def load_track(self, identifier: str) -> Optional[YoutubeAudioTrack]:
        """Track for a video id or URL, or None if the video does not exist."""
        video_id = extract_video_id(identifier)
        if video_id is None:
            raise ValueError(f"not a YouTube video identifier: {identifier}")

        details = self.load_details(video_id)
        if details is None:
            self.logger.info("Video does not exist.", video_id=video_id)
            return None

        return YoutubeAudioTrack(video_id, self, is_stream=details.is_live, title=details.title)
