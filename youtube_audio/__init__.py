"""YouTube audio stream resolution package."""

from .classifier import check_playability_status, get_unplayable_reason
from .clients import (
    ANDROID,
    CLIENT_CHOICES,
    TV_EMBEDDED,
    WEB,
    ClientIdentity,
    default_identity,
    get_identity,
)
from .config import apply_environment_defaults, load_ids_from_file, parse_args, positive_int
from .details import TrackDetailsResolver
from .errors import (
    ErrorAnalyzer,
    NoSupportedFormatError,
    ProtocolAnomaly,
    RequestFailure,
    Severity,
    TrackResolutionError,
    TransientRejection,
    UserFacingRejection,
)
from .formats import find_best_supported_format, is_better_format, parse_formats
from .health_check import run_health_check
from .logger import ResolverLogger
from .models import (
    CONTENT_LENGTH_UNKNOWN,
    PLAYER_SCRIPT_TTL_MS,
    CachedPlayerScript,
    ContainerKind,
    FormatWithUrl,
    PlayabilityOutcome,
    TrackFormat,
    TrackMetadata,
)
from .script_cache import PlayerScriptCache
from .signature import DirectUrlSignatureResolver, ExtractedScript, SignatureResolver
from .source import YoutubeAudioSource, extract_video_id
from .track import AudioDecoder, OpenedAudio, YoutubeAudioTrack
from .transport import HttpInterface, HttpResponse

__all__ = [
    # Main entry points
    "YoutubeAudioSource",
    "YoutubeAudioTrack",
    "TrackDetailsResolver",
    "PlayerScriptCache",
    "run_health_check",
    "parse_args",
    "apply_environment_defaults",
    "load_ids_from_file",
    "positive_int",
    "extract_video_id",
    # Classification and selection
    "check_playability_status",
    "get_unplayable_reason",
    "find_best_supported_format",
    "is_better_format",
    "parse_formats",
    # Client identities
    "ClientIdentity",
    "ANDROID",
    "WEB",
    "TV_EMBEDDED",
    "CLIENT_CHOICES",
    "default_identity",
    "get_identity",
    # Models
    "CachedPlayerScript",
    "ContainerKind",
    "FormatWithUrl",
    "PlayabilityOutcome",
    "TrackFormat",
    "TrackMetadata",
    "OpenedAudio",
    # Collaborators
    "AudioDecoder",
    "SignatureResolver",
    "DirectUrlSignatureResolver",
    "ExtractedScript",
    "HttpInterface",
    "HttpResponse",
    "ResolverLogger",
    # Errors
    "ErrorAnalyzer",
    "Severity",
    "TrackResolutionError",
    "UserFacingRejection",
    "ProtocolAnomaly",
    "RequestFailure",
    "TransientRejection",
    "NoSupportedFormatError",
    # Constants
    "CONTENT_LENGTH_UNKNOWN",
    "PLAYER_SCRIPT_TTL_MS",
]
