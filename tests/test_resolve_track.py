from __future__ import annotations

import json
import sys
import urllib.error
from pathlib import Path
from types import SimpleNamespace

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import resolve_track
import youtube_audio as ya
from youtube_audio.models import CachedPlayerScript, ContentType

PLAYABLE_ID = "dQw4w9WgXcQ"
MISSING_ID = "bbbbbbbbbbb"
PRIVATE_ID = "ccccccccccc"
OFFLINE_ID = "ddddddddddd"


def make_resolved():
    fmt = ya.TrackFormat(
        content_type=ContentType.parse('audio/webm; codecs="opus"'),
        itag=251,
        bitrate=160000,
        content_length=3500000,
        audio_channels=2,
        url="https://rr1.googlevideo.com/videoplayback?itag=251",
    )
    return ya.FormatWithUrl(fmt, fmt.url + "&sig=signed", "/s/player/abc/base.js")


class FakeTrack:
    def __init__(self, video_id):
        self.video_id = video_id

    def resolve_playable_url(self):
        if self.video_id == PRIVATE_ID:
            raise ya.UserFacingRejection("This is a private video.")
        return make_resolved()


class FakeSource:
    def __init__(self):
        self.loaded = []
        self.script_cache = SimpleNamespace(cached=CachedPlayerScript("/s/player/abc/base.js", 1))

    def load_track(self, video_id):
        self.loaded.append(video_id)
        if video_id == OFFLINE_ID:
            raise urllib.error.URLError("timed out")
        if video_id == MISSING_ID:
            return None
        return FakeTrack(video_id)


def install_fake_source(monkeypatch):
    source = FakeSource()
    monkeypatch.setattr(
        resolve_track.YoutubeAudioSource, "from_args", classmethod(lambda cls, args, logger=None: source)
    )
    return source


def test_json_output_for_each_identifier(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    source = install_fake_source(monkeypatch)

    code = resolve_track.main(["--json", PLAYABLE_ID, f"https://youtu.be/{MISSING_ID}"])

    assert code == 0
    lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert lines[0]["status"] == "ok"
    assert lines[0]["codecs"] == "opus"
    assert lines[0]["url"].endswith("&sig=signed")
    assert lines[1] == {"video_id": MISSING_ID, "status": "not_found"}
    assert source.loaded == [PLAYABLE_ID, MISSING_ID]


def test_failures_set_exit_code_and_reach_error_log(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    install_fake_source(monkeypatch)
    log_path = tmp_path / "errors.log"

    code = resolve_track.main(["--error-log", str(log_path), PLAYABLE_ID, PRIVATE_ID, "not a video!"])

    assert code == 1
    content = log_path.read_text(encoding="utf-8")
    assert f"[private_video] {PRIVATE_ID}" in content
    assert "not a video!" in content


def test_no_identifiers_is_an_error(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)

    assert resolve_track.main([]) == 1
    assert "Provide video ids" in capsys.readouterr().err


def test_forced_client_skips_ladder():
    calls = []

    class Details:
        def resolve(self, video_id, require_formats=True, client_override=None):
            calls.append(client_override)
            return None

    source = SimpleNamespace(details_resolver=Details())

    result = resolve_track.resolve_video(source, PLAYABLE_ID, "tv_embedded")

    assert result["status"] == "not_found"
    assert calls == [ya.TV_EMBEDDED]


def health_args():
    return SimpleNamespace(test_video=PLAYABLE_ID, proxy=None, visitor_data=None, verbose=False)


def test_health_check_reports_healthy(capsys):
    assert ya.run_health_check(health_args(), source=FakeSource()) == 0
    out = capsys.readouterr().out
    assert "Status: HEALTHY" in out
    assert "/s/player/abc/base.js" in out


def test_health_check_reports_rejection(capsys):
    def rejected(video_id):
        raise ya.TransientRejection("Not success status code: 403", 403)

    source = FakeSource()
    source.load_track = rejected

    assert ya.run_health_check(health_args(), source=source) == 1
    out = capsys.readouterr().out
    assert "Status: UNHEALTHY" in out
    assert "HTTP 403" in out


def test_network_error_does_not_abort_batch(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    source = install_fake_source(monkeypatch)

    code = resolve_track.main(["--json", OFFLINE_ID, PLAYABLE_ID])

    assert code == 1
    lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert [line["video_id"] for line in lines] == [PLAYABLE_ID]
    assert source.loaded == [OFFLINE_ID, PLAYABLE_ID]


def test_health_check_writes_error_log(tmp_path, capsys):
    log_path = tmp_path / "health.log"
    args = health_args()
    args.test_video = OFFLINE_ID
    args.error_log = str(log_path)

    assert ya.run_health_check(args, source=FakeSource()) == 1
    assert "Status: UNHEALTHY" in capsys.readouterr().out
    assert f"[network_error] {OFFLINE_ID}" in log_path.read_text(encoding="utf-8")
