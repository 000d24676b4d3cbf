"""Playability status classification for player responses."""

from typing import Any, Dict

from yt_dlp.utils import traverse_obj

from .errors import ProtocolAnomaly, Severity, UserFacingRejection
from .models import PlayabilityOutcome

PRIVATE_FRAGMENTS = ("this video is private", "private video")
AGE_GATE_FRAGMENTS = (
    "inappropriate for some users",
    "confirm your age",
    "age-restricted",
)
NON_EMBEDDABLE_FRAGMENT = "playback on other websites has been disabled by the video owner"


def get_unplayable_reason(status_block: Dict[str, Any]) -> str:
    """Human readable reason, preferring the structured sub-reason."""
    reason = traverse_obj(status_block, "reason", expected_type=str) or ""
    subreason = traverse_obj(
        status_block, ("errorScreen", "playerErrorMessageRenderer", "subreason"), expected_type=dict
    )
    if not subreason:
        return reason

    simple_text = traverse_obj(subreason, "simpleText", expected_type=str)
    if simple_text is not None:
        return simple_text

    runs = subreason.get("runs")
    if isinstance(runs, list):
        return "".join(f"{run.get('text', '')}\n" for run in runs if isinstance(run, dict))

    return reason


def check_playability_status(player_response: Dict[str, Any], second_check: bool) -> PlayabilityOutcome:
    """Classify *player_response* or raise when it can never be played.

    ``second_check`` marks a classification made after an escalated
    re-fetch; an age gate still present at that point is terminal.
    """
    status_block = traverse_obj(player_response, "playabilityStatus", expected_type=dict)
    if status_block is None:
        raise ProtocolAnomaly("No playability status block.")

    status = traverse_obj(status_block, "status", expected_type=str)
    if status is None:
        raise ProtocolAnomaly("No playability status field.", {"playabilityStatus": status_block})

    if status == "OK":
        return PlayabilityOutcome.PLAYABLE

    if status == "ERROR":
        reason = traverse_obj(status_block, "reason", expected_type=str) or ""
        if "unavailable" in reason.lower():
            return PlayabilityOutcome.DOES_NOT_EXIST
        raise UserFacingRejection(reason or "This video cannot be played.", Severity.COMMON)

    if status == "UNPLAYABLE":
        reason = get_unplayable_reason(status_block)
        if NON_EMBEDDABLE_FRAGMENT in reason.lower():
            return PlayabilityOutcome.NON_EMBEDDABLE
        raise UserFacingRejection(reason, Severity.COMMON)

    if status == "LOGIN_REQUIRED":
        reason = (traverse_obj(status_block, "reason", expected_type=str) or "").lower()
        if any(fragment in reason for fragment in PRIVATE_FRAGMENTS):
            raise UserFacingRejection("This is a private video.", Severity.COMMON)
        if second_check and any(fragment in reason for fragment in AGE_GATE_FRAGMENTS):
            raise UserFacingRejection(
                "This video requires age verification.",
                Severity.SUSPICIOUS,
                {"cause": "age gate was not bypassed by the escalated client"},
            )
        return PlayabilityOutcome.REQUIRES_LOGIN

    if status == "CONTENT_CHECK_REQUIRED":
        raise UserFacingRejection(get_unplayable_reason(status_block), Severity.COMMON)

    if status == "LIVE_STREAM_OFFLINE":
        if traverse_obj(status_block, ("errorScreen", "ypcTrailerRenderer")) is not None:
            return PlayabilityOutcome.PREMIERE_TRAILER
        raise UserFacingRejection(get_unplayable_reason(status_block), Severity.COMMON)

    raise UserFacingRejection("This video cannot be viewed anonymously.", Severity.COMMON)
