"""Visitor token used in the player request context."""

import json
import threading
from typing import Optional

from yt_dlp.utils import traverse_obj

from .clients import ANDROID
from .errors import ProtocolAnomaly
from .models import VISITOR_ID_URL
from .transport import HttpInterface, assert_success_with_content


class VisitorTracker:
    """Fetches a visitor token once and hands it out to every request."""

    def __init__(self, http: HttpInterface, visitor_data: Optional[str] = None) -> None:
        self.http = http
        self._visitor_data = visitor_data
        self._lock = threading.Lock()

    def visitor_id(self) -> str:
        with self._lock:
            if self._visitor_data is None:
                self._visitor_data = self._fetch()
            return self._visitor_data

    def reset(self) -> None:
        with self._lock:
            self._visitor_data = None

    def _fetch(self) -> str:
        response = self.http.post_json(VISITOR_ID_URL, ANDROID.to_payload(), ANDROID.request_headers())
        assert_success_with_content(response, "visitor id")

        text = response.text()
        try:
            document = json.loads(text)
        except ValueError as exc:
            raise ProtocolAnomaly("Failed to parse visitor id response.", {"response": text}) from exc

        visitor_data = traverse_obj(document, ("responseContext", "visitorData"), expected_type=str)
        if not visitor_data:
            raise ProtocolAnomaly("No visitor data in response.", {"response": text})
        return visitor_data
