#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
resolve_track.py

Resolve the best playable audio stream for one or more YouTube videos.

Usage:
    python resolve_track.py dQw4w9WgXcQ
    python resolve_track.py --ids-file ids.txt --workers 4 --json
    python resolve_track.py --health-check
"""

from __future__ import annotations

import json
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional

from youtube_audio import (
    ErrorAnalyzer,
    FormatWithUrl,
    ResolverLogger,
    TrackResolutionError,
    YoutubeAudioSource,
    apply_environment_defaults,
    extract_video_id,
    get_identity,
    load_ids_from_file,
    parse_args,
    run_health_check,
)
from youtube_audio.formats import find_best_supported_format


def describe_result(video_id: str, resolved: Optional[FormatWithUrl]) -> Dict:
    if resolved is None:
        return {"video_id": video_id, "status": "not_found"}

    fmt = resolved.details
    return {
        "video_id": video_id,
        "status": "ok",
        "mime_type": fmt.content_type.mime_type,
        "codecs": fmt.content_type.codecs,
        "bitrate": fmt.bitrate,
        "audio_channels": fmt.audio_channels,
        "content_length": fmt.content_length,
        "url": resolved.signed_url,
        "player_script": resolved.player_script_url,
    }


def resolve_video(source: YoutubeAudioSource, identifier: str, client_name: Optional[str] = None) -> Dict:
    """Resolve one identifier. Failures propagate to the caller."""
    video_id = extract_video_id(identifier)
    if video_id is None:
        raise ValueError(f"not a YouTube video identifier: {identifier}")

    if client_name:
        # Forced identity: no escalation ladder, no WEB fallback
        client = get_identity(client_name)
        details = source.details_resolver.resolve(video_id, True, client)
        if details is None:
            return describe_result(video_id, None)
        fmt = find_best_supported_format(details.get_formats())
        signed_url = source.signature_resolver.resolve_format_url(details.player_script_url, fmt)
        return describe_result(video_id, FormatWithUrl(fmt, signed_url, details.player_script_url))

    track = source.load_track(video_id)
    if track is None:
        return describe_result(video_id, None)
    return describe_result(video_id, track.resolve_playable_url())


def print_result(result: Dict, as_json: bool) -> None:
    if as_json:
        print(json.dumps(result))
        return
    if result["status"] != "ok":
        print(f"{result['video_id']}: {result['status']}")
        return
    print(
        f"{result['video_id']}: {result['mime_type']} ({result['codecs']}) "
        f"{result['bitrate']} bps, {result['audio_channels']} ch"
    )
    print(f"  {result['url']}")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    apply_environment_defaults(args)

    if args.health_check:
        return run_health_check(args)

    identifiers = list(args.videos)
    if args.ids_file:
        try:
            identifiers.extend(load_ids_from_file(args.ids_file))
        except OSError as exc:
            print(f"Error: Failed to read {args.ids_file}: {exc}", file=sys.stderr)
            return 1

    if not identifiers:
        print("Error: Provide video ids, --ids-file, or --health-check", file=sys.stderr)
        return 1

    analyzer = ErrorAnalyzer()
    analyzer.set_error_log_path(args.error_log)
    logger = ResolverLogger(verbose=args.verbose, error_analyzer=analyzer)
    source = YoutubeAudioSource.from_args(args, logger=logger)

    def run(identifier: str) -> bool:
        try:
            result = resolve_video(source, identifier, args.client)
        except (TrackResolutionError, ValueError, OSError) as exc:
            logger.record_exception(exc, video_id=extract_video_id(identifier) or identifier)
            return False
        print_result(result, args.json)
        return True

    with ThreadPoolExecutor(max_workers=args.workers) as executor:
        outcomes = list(executor.map(run, identifiers))

    if not args.json:
        analyzer.print_summary()

    return 0 if all(outcomes) else 1


if __name__ == "__main__":
    sys.exit(main())
