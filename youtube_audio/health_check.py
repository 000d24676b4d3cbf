"""Health check: resolve a known video and report the outcome."""

import time

from .errors import ErrorAnalyzer, TrackResolutionError, TransientRejection
from .logger import ResolverLogger
from .source import YoutubeAudioSource


def run_health_check(args, source: YoutubeAudioSource = None) -> int:
    """Resolve ``args.test_video`` end to end. Returns a process exit code."""

    print("=" * 80)
    print("YouTube Audio Resolver Health Check".center(80))
    print("=" * 80)
    print()
    print(f"Test video: {args.test_video}")
    print(f"Proxy: {args.proxy or 'none'}")
    print(f"Visitor data: {'provided' if args.visitor_data else 'fetched on demand'}")
    print()

    analyzer = ErrorAnalyzer()
    analyzer.set_error_log_path(getattr(args, "error_log", None))
    logger = ResolverLogger(verbose=args.verbose, error_analyzer=analyzer)
    if source is None:
        source = YoutubeAudioSource.from_args(args, logger=logger)

    start_time = time.time()
    resolved = None
    error = None

    try:
        track = source.load_track(args.test_video)
        if track is not None:
            resolved = track.resolve_playable_url()
    except (TrackResolutionError, OSError) as exc:
        error = exc
        logger.record_exception(exc, video_id=args.test_video)

    elapsed = time.time() - start_time

    print()
    print("=" * 80)
    print("Health Check Results".center(80))
    print("=" * 80)

    if resolved is not None:
        fmt = resolved.details
        print("✓ Status: HEALTHY")
        print(f"✓ Response time: {elapsed:.2f}s")
        print(f"✓ Selected format: {fmt.content_type} @ {fmt.bitrate} bps")
        cached = source.script_cache.cached
        if cached is not None:
            print(f"✓ Player script: {cached.url}")
        return 0

    print("✗ Status: UNHEALTHY")
    print(f"✗ Response time: {elapsed:.2f}s")
    if error is None:
        print("✗ The test video was reported as not existing. Pick another --test-video.")
    elif isinstance(error, TransientRejection):
        print(f"✗ Rejected with HTTP {error.status_code} even after the WEB client fallback.")
        print("  Your IP may be rate limited. Try --proxy or wait before retrying.")
    else:
        print(f"✗ {error}")
        print()
        for rec in analyzer.get_recommendations():
            print(rec)
    return 1
