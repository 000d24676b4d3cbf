"""Tests for playability status classification."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import youtube_audio as ya


def response(status, reason=None, **extra):
    block = {"status": status}
    if reason is not None:
        block["reason"] = reason
    block.update(extra)
    return {"playabilityStatus": block}


def test_ok_is_playable():
    assert ya.check_playability_status(response("OK"), False) is ya.PlayabilityOutcome.PLAYABLE


def test_unavailable_error_means_video_does_not_exist():
    outcome = ya.check_playability_status(response("ERROR", "This video is unavailable"), False)
    assert outcome is ya.PlayabilityOutcome.DOES_NOT_EXIST


def test_other_error_is_terminal_with_reason():
    with pytest.raises(ya.UserFacingRejection) as excinfo:
        ya.check_playability_status(response("ERROR", "This video has been removed by the uploader"), False)
    assert excinfo.value.message == "This video has been removed by the uploader"
    assert excinfo.value.severity is ya.Severity.COMMON


def test_unplayable_embed_disabled_is_non_embeddable():
    outcome = ya.check_playability_status(
        response("UNPLAYABLE", "Playback on other websites has been disabled by the video owner."),
        False,
    )
    assert outcome is ya.PlayabilityOutcome.NON_EMBEDDABLE


def test_unplayable_prefers_structured_subreason():
    payload = response(
        "UNPLAYABLE",
        "Video unplayable",
        errorScreen={
            "playerErrorMessageRenderer": {
                "subreason": {"simpleText": "The uploader has not made this video available in your country"}
            }
        },
    )
    with pytest.raises(ya.UserFacingRejection) as excinfo:
        ya.check_playability_status(payload, False)
    assert excinfo.value.message == "The uploader has not made this video available in your country"


def test_subreason_runs_are_joined_with_newlines():
    status_block = {
        "reason": "flat",
        "errorScreen": {
            "playerErrorMessageRenderer": {
                "subreason": {"runs": [{"text": "First line"}, {"text": "Second line"}]}
            }
        },
    }
    assert ya.get_unplayable_reason(status_block) == "First line\nSecond line\n"


def test_reason_falls_back_to_flat_reason():
    assert ya.get_unplayable_reason({"reason": "Flat reason"}) == "Flat reason"


def test_private_video_is_terminal():
    with pytest.raises(ya.UserFacingRejection, match="private video"):
        ya.check_playability_status(response("LOGIN_REQUIRED", "This video is private"), False)


def test_age_gate_first_pass_requires_login():
    outcome = ya.check_playability_status(
        response("LOGIN_REQUIRED", "This video may be inappropriate for some users."), False
    )
    assert outcome is ya.PlayabilityOutcome.REQUIRES_LOGIN


def test_age_gate_second_pass_is_suspicious_failure():
    with pytest.raises(ya.UserFacingRejection) as excinfo:
        ya.check_playability_status(
            response("LOGIN_REQUIRED", "This video may be inappropriate for some users."), True
        )
    assert excinfo.value.message == "This video requires age verification."
    assert excinfo.value.severity is ya.Severity.SUSPICIOUS


def test_other_login_reason_on_second_pass_still_requires_login():
    outcome = ya.check_playability_status(response("LOGIN_REQUIRED", "Sign in"), True)
    assert outcome is ya.PlayabilityOutcome.REQUIRES_LOGIN


def test_content_check_required_is_terminal():
    with pytest.raises(ya.UserFacingRejection, match="may be inappropriate"):
        ya.check_playability_status(
            response("CONTENT_CHECK_REQUIRED", "The following content may be inappropriate"), False
        )


def test_offline_live_stream_without_trailer_is_terminal():
    payload = response(
        "LIVE_STREAM_OFFLINE",
        "Offline",
        errorScreen={"playerErrorMessageRenderer": {"subreason": {"simpleText": "Premieres in 3 hours"}}},
    )
    with pytest.raises(ya.UserFacingRejection) as excinfo:
        ya.check_playability_status(payload, False)
    assert excinfo.value.message == "Premieres in 3 hours"


def test_offline_live_stream_with_trailer_is_premiere_trailer():
    payload = response("LIVE_STREAM_OFFLINE", "Offline", errorScreen={"ypcTrailerRenderer": {"x": 1}})
    assert ya.check_playability_status(payload, False) is ya.PlayabilityOutcome.PREMIERE_TRAILER


def test_unknown_status_cannot_be_viewed_anonymously():
    with pytest.raises(ya.UserFacingRejection, match="cannot be viewed anonymously"):
        ya.check_playability_status(response("SOMETHING_NEW"), False)


def test_missing_status_block_is_protocol_anomaly():
    with pytest.raises(ya.ProtocolAnomaly, match="No playability status block"):
        ya.check_playability_status({"videoDetails": {}}, False)


def test_missing_status_field_is_protocol_anomaly():
    with pytest.raises(ya.ProtocolAnomaly, match="No playability status field"):
        ya.check_playability_status({"playabilityStatus": {"reason": "?"}}, False)
