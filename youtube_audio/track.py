"""Stream access for a single YouTube audio track."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import IO, Any, Callable, Iterable, Iterator, Optional, TypeVar

from .clients import WEB, ClientIdentity
from .errors import Severity, TransientRejection, UserFacingRejection
from .formats import find_best_supported_format
from .logger import ResolverLogger
from .models import (
    CONTENT_LENGTH_UNKNOWN,
    MIME_AUDIO_WEBM,
    PLAYER_PARAMS_WEB,
    ContainerKind,
    FormatWithUrl,
)
from .transport import PersistentHttpStream

T = TypeVar("T")


class AudioDecoder(ABC):
    """Demuxes a container byte stream into audio frames."""

    @abstractmethod
    def decode(self, container: ContainerKind, stream: IO[bytes]) -> Iterable[Any]:
        """Yield decoded frames until the stream ends."""


@dataclass
class OpenedAudio:
    """A resolved format with its byte stream, ready for a decoder."""
    format: FormatWithUrl
    container: ContainerKind
    stream: IO[bytes]
    is_stream: bool

    def close(self) -> None:
        self.stream.close()

    def __enter__(self) -> "OpenedAudio":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False


def web_fallback_identity() -> ClientIdentity:
    return WEB.with_root_field("params", PLAYER_PARAMS_WEB)


class YoutubeAudioTrack:
    """Picks the audio format for a video and opens it for decoding.

    The first attempt uses the resolver's default identity. If the provider
    answers 403 or 400, the whole chain (details, format, signed URL, open)
    is retried once with the WEB identity and its own player params.
    """

    def __init__(self, video_id: str, source, is_stream: bool = False, title: Optional[str] = None) -> None:
        self.video_id = video_id
        self.source = source
        self.is_stream = is_stream
        self.title = title

    @property
    def logger(self) -> ResolverLogger:
        return self.source.logger

    def load_best_format_with_url(self, client: Optional[ClientIdentity]) -> FormatWithUrl:
        details = self.source.details_resolver.resolve(self.video_id, True, client)

        if details is None:
            raise UserFacingRejection("This video is not available", Severity.COMMON)

        if details.is_live:
            self.is_stream = True

        fmt = find_best_supported_format(details.get_formats())
        signed_url = self.source.signature_resolver.resolve_format_url(details.player_script_url, fmt)
        return FormatWithUrl(fmt, signed_url, details.player_script_url)

    def _with_client_fallback(self, step: Callable[[FormatWithUrl], T]) -> T:
        client: Optional[ClientIdentity] = None

        while True:
            try:
                return step(self.load_best_format_with_url(client))
            except TransientRejection as exc:
                if client is not None or exc.status_code not in TransientRejection.RETRYABLE_STATUS_CODES:
                    raise
                self.logger.warning(
                    f"Encountered {exc.status_code} when requesting formats with default client, "
                    "re-requesting with WEB client.",
                    video_id=self.video_id,
                )
                client = web_fallback_identity()

    def resolve_playable_url(self) -> FormatWithUrl:
        """Best format and its signed URL, without opening it."""
        return self._with_client_fallback(lambda fmt: fmt)

    def is_indefinite(self, fmt: FormatWithUrl) -> bool:
        return self.is_stream or fmt.details.content_length == CONTENT_LENGTH_UNKNOWN

    def _open(self, fmt: FormatWithUrl) -> OpenedAudio:
        self.logger.debug(f"Starting track from URL: {fmt.signed_url}", video_id=self.video_id)
        mime_type = fmt.details.content_type.mime_type

        if self.is_indefinite(fmt):
            if mime_type == MIME_AUDIO_WEBM:
                raise UserFacingRejection("YouTube WebM streams are currently not supported.", Severity.COMMON)
            stream = PersistentHttpStream(self.source.http, fmt.signed_url).connect()
            return OpenedAudio(fmt, ContainerKind.MPEG, stream, is_stream=True)

        stream = PersistentHttpStream(self.source.http, fmt.signed_url, fmt.details.content_length).connect()
        return OpenedAudio(fmt, ContainerKind.for_mime_type(mime_type), stream, is_stream=False)

    def open(self) -> OpenedAudio:
        """Resolve and connect, as a finite seekable file or an open-ended stream."""
        return self._with_client_fallback(self._open)

    def process(self, decoder: AudioDecoder) -> Iterator[Any]:
        """Decoded frames of this track."""
        with self.open() as audio:
            yield from decoder.decode(audio.container, audio.stream)
