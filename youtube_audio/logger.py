"""Console logger that prefixes messages with the client and video in use."""

import sys
import threading
from typing import Optional

from .errors import ErrorAnalyzer, Severity, TrackResolutionError


class ResolverLogger:
    """Prints resolution progress and keeps failure counters.

    Messages carry a ``[client=... video_id=...]`` prefix so interleaved output
    from concurrent resolutions stays readable. Rejections that are expected
    for a known policy reason are counted but not echoed.
    """

    EXPECTED_FRAGMENTS = (
        "private video",
        "requires age verification",
        "video unavailable",
        "this video is unavailable",
        "not available in your country",
        "playback on other websites has been disabled",
    )

    def __init__(
        self,
        verbose: bool = False,
        error_analyzer: Optional[ErrorAnalyzer] = None,
    ) -> None:
        self.verbose = verbose
        self.rejections = 0
        self.anomalies = 0
        self.other_errors = 0
        self._error_analyzer = error_analyzer
        self._lock = threading.Lock()

    @staticmethod
    def _format_with_context(
        message: str, client: Optional[str] = None, video_id: Optional[str] = None
    ) -> str:
        context_parts = []
        if client:
            context_parts.append(f"client={client}")
        if video_id:
            context_parts.append(f"video_id={video_id}")
        if context_parts:
            return f"[{' '.join(context_parts)}] {message}"
        return message

    def _is_expected(self, text: str) -> bool:
        lowered = text.lower()
        return any(fragment in lowered for fragment in self.EXPECTED_FRAGMENTS)

    def _print(self, message: str, file=None, **context) -> None:
        print(self._format_with_context(message, **context), file=file or sys.stdout)

    def debug(self, message: str, **context) -> None:
        if self.verbose:
            self._print(message, **context)

    def info(self, message: str, **context) -> None:
        self._print(message, **context)

    def warning(self, message: str, **context) -> None:
        self._print(message, file=sys.stderr, **context)

    def error(self, message: str, **context) -> None:
        self._print(message, file=sys.stderr, **context)

    def record_exception(self, exc: BaseException, video_id: Optional[str] = None) -> None:
        """Count a failed resolution and forward it to the error analyzer."""
        text = str(exc)
        with self._lock:
            if isinstance(exc, TrackResolutionError) and exc.severity is Severity.COMMON:
                self.rejections += 1
            elif isinstance(exc, TrackResolutionError):
                self.anomalies += 1
            else:
                self.other_errors += 1
            if self._error_analyzer:
                self._error_analyzer.categorize_and_record(video_id, exc)

        if not self._is_expected(text):
            self.error(text, video_id=video_id)
        if self.verbose and isinstance(exc, TrackResolutionError) and exc.context:
            self.debug(exc.describe(), video_id=video_id)
