"""Format parsing and best audio format selection."""

import urllib.parse
from typing import Any, Dict, List, Optional

from yt_dlp.utils import int_or_none, traverse_obj, url_or_none

from .errors import NoSupportedFormatError, ProtocolAnomaly
from .models import CONTENT_LENGTH_UNKNOWN, MIME_AUDIO_WEBM, ContentType, TrackFormat


def _parse_format(entry: Dict[str, Any]) -> Optional[TrackFormat]:
    signature = None
    signature_key = None
    url = url_or_none(entry.get("url"))

    cipher = entry.get("signatureCipher") or entry.get("cipher")
    if url is None and cipher:
        params = urllib.parse.parse_qs(cipher)
        url = url_or_none(traverse_obj(params, ("url", 0)))
        signature = traverse_obj(params, ("s", 0))
        signature_key = traverse_obj(params, ("sp", 0)) or "signature"

    if url is None:
        return None

    content_length = int_or_none(entry.get("contentLength"))
    audio_is_default = traverse_obj(entry, ("audioTrack", "audioIsDefault"))

    return TrackFormat(
        content_type=ContentType.parse(entry.get("mimeType")),
        itag=int_or_none(entry.get("itag")),
        bitrate=int_or_none(entry.get("bitrate")) or 0,
        content_length=CONTENT_LENGTH_UNKNOWN if content_length is None else content_length,
        audio_channels=int_or_none(entry.get("audioChannels")) or 2,
        url=url,
        is_default_audio_track=True if audio_is_default is None else bool(audio_is_default),
        signature=signature,
        signature_key=signature_key,
    )


def parse_formats(player_response: Dict[str, Any]) -> List[TrackFormat]:
    """All formats from ``streamingData`` that carry a usable URL."""
    streaming_data = traverse_obj(player_response, "streamingData", expected_type=dict)
    if not streaming_data:
        raise ProtocolAnomaly(
            "No streaming data in player response.",
            {"playabilityStatus": player_response.get("playabilityStatus")},
        )

    formats = []
    for key in ("formats", "adaptiveFormats"):
        for entry in streaming_data.get(key) or []:
            if not isinstance(entry, dict):
                continue
            parsed = _parse_format(entry)
            if parsed is not None:
                formats.append(parsed)
    return formats


def is_better_format(fmt: TrackFormat, other: Optional[TrackFormat]) -> bool:
    """Whether *fmt* should replace the incumbent *other*."""
    info = fmt.info
    if info is None:
        return False
    if other is None:
        return True
    if info.mime_type == MIME_AUDIO_WEBM and fmt.audio_channels > 2:
        # Opus/Vorbis in WebM with more than two channels cannot be decoded
        return False
    if info.rank != other.info.rank:
        return info.rank < other.info.rank
    return fmt.bitrate > other.bitrate


def find_best_supported_format(formats: List[TrackFormat]) -> TrackFormat:
    best: Optional[TrackFormat] = None

    for fmt in formats:
        if not fmt.is_default_audio_track:
            continue
        if is_better_format(fmt, best):
            best = fmt

    if best is None:
        seen: List[str] = []
        for fmt in formats:
            label = str(fmt.content_type)
            if label not in seen:
                seen.append(label)
        raise NoSupportedFormatError(seen)

    return best
