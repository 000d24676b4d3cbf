"""Signature resolution collaborator."""

import re
import threading
import urllib.parse
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional

from yt_dlp.utils import int_or_none

from .errors import Severity, UserFacingRejection
from .models import BASE_URL, TrackFormat
from .transport import HttpInterface, assert_success_with_content

SIGNATURE_TIMESTAMP_PATTERN = re.compile(r"(?:signatureTimestamp|sts)\s*:\s*(?P<sts>[0-9]{5})")


@dataclass(frozen=True)
class ExtractedScript:
    script_url: str
    script_timestamp: Optional[int]


class SignatureResolver(ABC):
    """Turns a player script reference into request tokens and signed URLs."""

    @abstractmethod
    def get_extracted_script(self, script_url: str) -> ExtractedScript:
        """Signature timestamp for the given player script."""

    @abstractmethod
    def resolve_format_url(self, script_url: Optional[str], fmt: TrackFormat) -> str:
        """Playable URL for *fmt*, signed with the given player script."""


class DirectUrlSignatureResolver(SignatureResolver):
    """Reads the signature timestamp from the player script and passes direct
    format URLs through unchanged.

    Ciphered formats need a resolver that can run the script's transforms; this
    one rejects them.
    """

    def __init__(self, http: HttpInterface) -> None:
        self.http = http
        self._scripts: Dict[str, ExtractedScript] = {}
        self._lock = threading.Lock()

    def get_extracted_script(self, script_url: str) -> ExtractedScript:
        with self._lock:
            cached = self._scripts.get(script_url)
        if cached is not None:
            return cached

        response = self.http.get(urllib.parse.urljoin(BASE_URL, script_url))
        assert_success_with_content(response, "player script")

        match = SIGNATURE_TIMESTAMP_PATTERN.search(response.text())
        extracted = ExtractedScript(script_url, int_or_none(match.group("sts")) if match else None)
        with self._lock:
            self._scripts[script_url] = extracted
        return extracted

    def resolve_format_url(self, script_url: Optional[str], fmt: TrackFormat) -> str:
        if fmt.is_ciphered:
            raise UserFacingRejection(
                "This format needs signature deciphering, which is not available.",
                Severity.SUSPICIOUS,
                {"itag": fmt.itag, "playerScript": script_url},
            )
        return fmt.url
