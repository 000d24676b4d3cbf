"""Exceptions and error analysis for YouTube audio resolution."""

import sys
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from .models import ErrorPattern


class Severity(Enum):
    """How surprising a failure is."""
    COMMON = "common"
    SUSPICIOUS = "suspicious"


class TrackResolutionError(Exception):
    """Base class for every failure raised while resolving a track."""

    def __init__(
        self,
        message: str,
        severity: Severity = Severity.COMMON,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.severity = severity
        self.context: Dict[str, Any] = dict(context or {})

    def describe(self) -> str:
        """Message followed by the attached diagnostic context."""
        lines = [self.message]
        for key, value in self.context.items():
            lines.append(f"  {key}: {value}")
        return "\n".join(lines)


class UserFacingRejection(TrackResolutionError):
    """The video cannot be played for a known policy reason."""


class ProtocolAnomaly(TrackResolutionError):
    """The provider response did not have the expected shape."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, Severity.SUSPICIOUS, context)


class TransientRejection(TrackResolutionError):
    """Access denied (403) or bad request (400) from the provider."""

    RETRYABLE_STATUS_CODES = (400, 403)

    def __init__(self, message: str, status_code: int, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, Severity.COMMON, context)
        self.status_code = status_code


class RequestFailure(TrackResolutionError):
    """The request never produced an HTTP response (DNS, connect, timeout)."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, Severity.COMMON, context)


class NoSupportedFormatError(UserFacingRejection):
    """None of the offered formats can be decoded."""

    def __init__(self, available_types: Iterable[str]) -> None:
        self.available_types: List[str] = list(available_types)
        super().__init__(
            "No supported audio streams available, available types: "
            + ", ".join(self.available_types),
            Severity.SUSPICIOUS,
        )


class ErrorAnalyzer:
    """Groups resolution failures by cause and suggests what to do about them."""

    CATEGORIES = (
        "private_video",
        "age_restricted",
        "unplayable",
        "unsupported_format",
        "access_denied",
        "bad_request",
        "protocol_anomaly",
        "network_error",
        "unknown",
    )

    def __init__(self) -> None:
        self.patterns: Dict[str, ErrorPattern] = {
            name: ErrorPattern(name) for name in self.CATEGORIES
        }
        self.total_errors = 0
        self.error_log_path: Optional[str] = None

    def set_error_log_path(self, path: Optional[str]) -> None:
        self.error_log_path = path

    @staticmethod
    def categorize(exc: BaseException) -> str:
        lowered = str(exc).lower()

        if isinstance(exc, (RequestFailure, OSError)):
            return "network_error"
        if isinstance(exc, TransientRejection):
            return "access_denied" if exc.status_code == 403 else "bad_request"
        if isinstance(exc, NoSupportedFormatError):
            return "unsupported_format"
        if isinstance(exc, ProtocolAnomaly):
            return "protocol_anomaly"
        if isinstance(exc, UserFacingRejection):
            if "private" in lowered:
                return "private_video"
            if any(x in lowered for x in ("age verification", "age-restricted", "confirm your age", "inappropriate")):
                return "age_restricted"
            return "unplayable"
        return "unknown"

    def categorize_and_record(self, video_id: Optional[str], exc: BaseException) -> str:
        """Categorize a failure and record it. Returns the category."""
        self.total_errors += 1
        category = self.categorize(exc)
        suspicious = getattr(exc, "severity", Severity.SUSPICIOUS) is Severity.SUSPICIOUS
        message = str(exc).strip()

        self.patterns[category].record(video_id, message, suspicious=suspicious)

        if self.error_log_path:
            detail = exc.describe() if isinstance(exc, TrackResolutionError) else message
            self._append_to_error_log(video_id, category, detail)

        return category

    def _append_to_error_log(self, video_id: Optional[str], category: str, message: str) -> None:
        try:
            timestamp = datetime.now().isoformat()
            with open(self.error_log_path, "a", encoding="utf-8") as f:
                f.write(f"[{timestamp}] [{category}] {video_id or 'unknown'}: {message}\n")
        except OSError as e:
            print(f"Warning: Failed to write to error log: {e}", file=sys.stderr)

    def get_recommendations(self) -> List[str]:
        if self.total_errors == 0:
            return ["No errors detected - every track resolved."]

        recommendations = []
        counts = {name: pattern.count for name, pattern in self.patterns.items()}

        if counts["private_video"]:
            recommendations.append(
                f"Private videos ({counts['private_video']}): nothing to do, the owner restricted them."
            )
        if counts["age_restricted"]:
            recommendations.append(
                f"Age-restricted ({counts['age_restricted']}): the TV embedded client could not bypass "
                "the age gate. These need an authenticated session."
            )
        if counts["unplayable"]:
            recommendations.append(
                f"Unplayable ({counts['unplayable']}): region, copyright or live-stream restrictions. "
                "Check the reasons in the error log."
            )
        if counts["unsupported_format"]:
            recommendations.append(
                f"Unsupported formats ({counts['unsupported_format']}): no decodable audio stream was offered."
            )
        if counts["access_denied"]:
            recommendations.append(
                f"Access denied ({counts['access_denied']}): the fallback client was also rejected. "
                "Try --proxy, a fresh --visitor-data, or wait before retrying."
            )
        if counts["bad_request"]:
            recommendations.append(
                f"Bad requests ({counts['bad_request']}): the player endpoint rejected the payload. "
                "Client versions may be outdated."
            )
        if counts["protocol_anomaly"]:
            recommendations.append(
                f"Protocol anomalies ({counts['protocol_anomaly']}): responses did not look as expected. "
                "YouTube may have changed its API; inspect the raw documents in the error log."
            )
        if counts["network_error"]:
            recommendations.append(
                f"Network errors ({counts['network_error']}): requests never got an HTTP response. "
                "Check connectivity, --proxy and --timeout."
            )
        if counts["unknown"]:
            recommendations.append(
                f"Unknown errors ({counts['unknown']}): check the error log for details."
            )
        return recommendations

    def print_summary(self) -> None:
        if self.total_errors == 0:
            print("\nNo errors detected.")
            return

        print("\n" + "=" * 70)
        print("Error Pattern Analysis")
        print("=" * 70)
        print(f"Total errors: {self.total_errors}\n")

        ranked = sorted(self.patterns.items(), key=lambda item: item[1].count, reverse=True)
        for name, pattern in ranked:
            if pattern.count == 0:
                continue
            print(f"{name.replace('_', ' ').title()}: {pattern.count} occurrences ({pattern.suspicious} suspicious)")
            print(f"  Affected videos: {', '.join(pattern.video_ids) or 'n/a'}")
            if pattern.sample_messages:
                print(f"  Sample: {pattern.sample_messages[0][:80]}")
            print()

        print("=" * 70)
        print("Recommendations")
        print("=" * 70)
        for rec in self.get_recommendations():
            print(f"{rec}\n")

        if self.error_log_path:
            print(f"Detailed error log: {self.error_log_path}")
