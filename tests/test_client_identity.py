from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import youtube_audio as ya
from youtube_audio.clients import embedded_web_identity
from youtube_audio.models import PLAYER_PARAMS, THIRD_PARTY_EMBED_URL


def test_with_methods_return_copies():
    derived = ya.ANDROID.with_client_field("clientScreen", "EMBED").with_root_field("params", "x")

    assert derived is not ya.ANDROID
    assert "clientScreen" not in ya.ANDROID.client_fields
    assert "params" not in ya.ANDROID.root_fields
    assert derived.client_fields["clientScreen"] == "EMBED"
    assert derived.root_fields["params"] == "x"


def test_identity_is_frozen():
    with pytest.raises(AttributeError):
        ya.WEB.client_version = "1.0"


def test_default_identity_payload():
    payload = ya.default_identity().with_playback_signature_timestamp(20000).to_payload()

    client = payload["context"]["client"]
    assert client["clientName"] == "ANDROID"
    assert client["clientScreen"] == "EMBED"
    assert payload["context"]["thirdParty"] == {"embedUrl": THIRD_PARTY_EMBED_URL}
    assert payload["params"] == PLAYER_PARAMS
    assert payload["playbackContext"]["contentPlaybackContext"]["signatureTimestamp"] == 20000


def test_payload_without_timestamp_has_no_playback_context():
    assert "playbackContext" not in ya.WEB.to_payload()


def test_embedded_web_identity():
    identity = embedded_web_identity()
    payload = identity.to_payload()

    assert payload["context"]["client"]["clientName"] == "WEB"
    assert payload["context"]["client"]["clientScreen"] == "EMBED"
    assert payload["context"]["thirdParty"]["embedUrl"] == THIRD_PARTY_EMBED_URL


def test_request_headers_carry_client_name_and_version():
    headers = ya.TV_EMBEDDED.request_headers()

    assert headers["X-YouTube-Client-Name"] == "85"
    assert headers["X-YouTube-Client-Version"] == ya.TV_EMBEDDED.client_version
    assert "User-Agent" not in headers


def test_get_identity_rejects_unknown_names():
    assert ya.get_identity("web") is ya.WEB
    with pytest.raises(ValueError, match="Unknown client identity"):
        ya.get_identity("ios")


def test_canonical_field_maps_are_read_only():
    with pytest.raises(TypeError):
        ya.ANDROID.client_fields["clientScreen"] = "EMBED"
    with pytest.raises(TypeError):
        ya.default_identity().root_fields["params"] = "x"

    assert "clientScreen" not in ya.ANDROID.client_fields
