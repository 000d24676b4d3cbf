"""Track detail resolution against the Innertube player endpoint.

A resolution fetches the player response with the default (embedded Android)
identity, classifies its playability status, and re-fetches at most once with
an escalated identity when the status asks for it:

    PREMIERE_TRAILER -> WEB, then unwrap the trailer's player response
    REQUIRES_LOGIN   -> TV_EMBEDDED
    NON_EMBEDDABLE   -> ANDROID with bypass params

The returned metadata must describe the requested video. A mismatch on the
first pass restarts the whole resolution once with the WEB identity; a second
mismatch is terminal.
"""

import json
from typing import Any, Dict, Optional

from yt_dlp.utils import traverse_obj

from .classifier import check_playability_status
from .clients import (
    ANDROID,
    TV_EMBEDDED,
    WEB,
    ClientIdentity,
    default_identity,
    embedded_web_identity,
)
from .errors import ProtocolAnomaly, Severity, TrackResolutionError, TransientRejection, UserFacingRejection
from .logger import ResolverLogger
from .models import PLAYER_PARAMS, PLAYER_URL, PlayabilityOutcome, TrackMetadata
from .script_cache import PlayerScriptCache
from .signature import SignatureResolver
from .transport import HttpInterface, assert_success_with_content
from .visitor import VisitorTracker


def identity_for_outcome(outcome: Optional[PlayabilityOutcome]) -> ClientIdentity:
    """Identity to re-fetch with after the first pass returned *outcome*."""
    if outcome is PlayabilityOutcome.PREMIERE_TRAILER:
        # Trailer payloads are only unwrapped for WEB
        return WEB
    if outcome is PlayabilityOutcome.NON_EMBEDDABLE:
        return ANDROID.with_root_field("params", PLAYER_PARAMS)
    if outcome is PlayabilityOutcome.REQUIRES_LOGIN:
        return TV_EMBEDDED
    return default_identity()


class TrackDetailsResolver:
    """Loads classified player responses for video ids."""

    def __init__(
        self,
        http: HttpInterface,
        signature_resolver: SignatureResolver,
        script_cache: Optional[PlayerScriptCache] = None,
        visitor_tracker: Optional[VisitorTracker] = None,
        logger: Optional[ResolverLogger] = None,
    ) -> None:
        self.http = http
        self.signature_resolver = signature_resolver
        self.logger = logger or ResolverLogger()
        self.script_cache = script_cache or PlayerScriptCache(http, logger=self.logger)
        self.visitor_tracker = visitor_tracker or VisitorTracker(http)

    def resolve(
        self,
        video_id: str,
        require_formats: bool = True,
        client_override: Optional[ClientIdentity] = None,
    ) -> Optional[TrackMetadata]:
        """Classified metadata for *video_id*, or None if it does not exist."""
        override = client_override

        while True:
            main_info = self.load_track_info(video_id, None, override)

            try:
                data = self.load_base_response(main_info, video_id)
                if data is None:
                    return None

                response_video_id = data.response_video_id
                if response_video_id != video_id:
                    if override is None:
                        self.logger.warning(
                            f"Received different YouTube video ({response_video_id}, want: {video_id}) "
                            "to what was requested, retrying with WEB client...",
                            video_id=video_id,
                        )
                        override = WEB
                        continue

                    raise UserFacingRejection(
                        "Video returned by YouTube isn't what was requested",
                        Severity.COMMON,
                        {"playerResponse": json.dumps(data.player_response)},
                    )

                return self.augment_with_player_script(data, video_id, require_formats)
            except ProtocolAnomaly as exc:
                exc.context.setdefault("mainJson", json.dumps(main_info))
                raise
            except TrackResolutionError:
                raise
            except Exception as exc:
                raise ProtocolAnomaly(
                    "Error when extracting data", {"mainJson": json.dumps(main_info)}
                ) from exc

    def load_base_response(self, main_info: Dict[str, Any], video_id: str) -> Optional[TrackMetadata]:
        data = TrackMetadata.from_main_result(video_id, main_info)
        status = check_playability_status(data.player_response, False)

        if status is PlayabilityOutcome.DOES_NOT_EXIST:
            return None

        if status is PlayabilityOutcome.PREMIERE_TRAILER:
            track_info = self.load_track_info(video_id, status)
            trailer = traverse_obj(
                track_info,
                ("playabilityStatus", "errorScreen", "ypcTrailerRenderer", "unserializedPlayerResponse"),
            )
            if isinstance(trailer, str):
                trailer = json.loads(trailer)
            if not isinstance(trailer, dict):
                raise ProtocolAnomaly("Premiere trailer has no player response.", {"response": json.dumps(track_info)})
            data = TrackMetadata.from_main_result(video_id, trailer)
            status = check_playability_status(data.player_response, True)

        if status is PlayabilityOutcome.REQUIRES_LOGIN:
            track_info = self.load_track_info(video_id, status)
            data = TrackMetadata.from_main_result(video_id, track_info)
            status = check_playability_status(data.player_response, True)

        if status is PlayabilityOutcome.NON_EMBEDDABLE:
            track_info = self.load_track_info(video_id, status)
            data = TrackMetadata.from_main_result(video_id, track_info)
            check_playability_status(data.player_response, True)

        return data

    def build_payload(self, identity: ClientIdentity, video_id: str) -> Dict[str, Any]:
        script_url = self.script_cache.current(video_id)
        extracted = self.signature_resolver.get_extracted_script(script_url)

        return (
            identity.with_root_field("racyCheckOk", True)
            .with_root_field("contentCheckOk", True)
            .with_root_field("videoId", video_id)
            .with_client_field("visitorData", self.visitor_tracker.visitor_id())
            .with_playback_signature_timestamp(extracted.script_timestamp)
            .to_payload()
        )

    def load_track_info(
        self,
        video_id: str,
        outcome: Optional[PlayabilityOutcome] = None,
        client_override: Optional[ClientIdentity] = None,
    ) -> Dict[str, Any]:
        """POST to the player endpoint and parse the JSON body.

        A 400 on the first, un-escalated request is retried once with the
        embedded WEB identity.
        """
        identity = client_override or identity_for_outcome(outcome)
        escalated = client_override is not None or outcome is not None

        while True:
            payload = self.build_payload(identity, video_id)
            self.logger.debug(f"Loading track info with payload: {json.dumps(payload)}", client=identity.name, video_id=video_id)

            response = self.http.post_json(PLAYER_URL, payload, identity.request_headers())
            try:
                assert_success_with_content(response, "video page response")
            except TransientRejection as exc:
                if exc.status_code == 400 and not escalated:
                    self.logger.warning(
                        "Player request rejected with 400, retrying with embedded WEB client.",
                        client=identity.name,
                        video_id=video_id,
                    )
                    identity = embedded_web_identity()
                    escalated = True
                    continue
                exc.context.setdefault("payload", json.dumps(payload))
                raise

            text = response.text()
            try:
                document = json.loads(text)
            except ValueError as exc:
                raise ProtocolAnomaly(
                    "Received unexpected response from YouTube.",
                    {"payload": json.dumps(payload), "response": text},
                ) from exc

            if not isinstance(document, dict):
                raise ProtocolAnomaly(
                    "Received unexpected response from YouTube.",
                    {"payload": json.dumps(payload), "response": text},
                )
            return document

    def augment_with_player_script(
        self, data: TrackMetadata, video_id: str, require_formats: bool
    ) -> TrackMetadata:
        if data.player_script_url:
            self.script_cache.store(data.player_script_url)
            return data
        if not require_formats:
            return data
        return data.with_player_script_url(self.script_cache.ensure_fresh(video_id))
