"""Configuration and argument parsing for the track resolver."""

import argparse
import json
import os
import re
import sys
from typing import Any, Dict, List, Optional, Sequence

from .clients import CLIENT_CHOICES
from .transport import DEFAULT_TIMEOUT

# Environment variable names
ENV_VISITOR_DATA = "YOUTUBE_AUDIO_VISITOR_DATA"
ENV_PROXY = "YOUTUBE_AUDIO_PROXY"
ENV_ERROR_LOG = "YOUTUBE_AUDIO_ERROR_LOG"

DEFAULT_CONFIG_PATH = "config.json"
DEFAULT_TEST_VIDEO = "dQw4w9WgXcQ"

VALID_CONFIG_KEYS = {
    "proxy",
    "timeout",
    "visitor_data",
    "client",
    "workers",
    "verbose",
    "json",
    "error_log",
    "test_video",
}


def positive_int(value: str) -> int:
    """Return *value* parsed as a positive integer for argparse."""
    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise argparse.ArgumentTypeError("Expected a positive integer") from exc

    if parsed <= 0:
        raise argparse.ArgumentTypeError("Expected a positive integer")
    return parsed


def positive_float(value: str) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise argparse.ArgumentTypeError("Expected a positive number") from exc

    if parsed <= 0:
        raise argparse.ArgumentTypeError("Expected a positive number")
    return parsed


def load_config_file(config_path: str) -> Dict[str, Any]:
    """Load defaults from a JSON config file.

    Missing or unreadable files yield an empty dict; unknown keys are
    reported and dropped.
    """
    if not os.path.exists(config_path):
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = json.load(f)
    except json.JSONDecodeError as exc:
        print(f"Warning: Failed to parse config file {config_path}: {exc}. Ignoring.", file=sys.stderr)
        return {}
    except OSError as exc:
        print(f"Warning: Failed to read config file {config_path}: {exc}. Ignoring.", file=sys.stderr)
        return {}

    if not isinstance(config, dict):
        print(f"Warning: Config file {config_path} must contain a JSON object. Ignoring.", file=sys.stderr)
        return {}

    invalid_keys = set(config) - VALID_CONFIG_KEYS
    if invalid_keys:
        print(f"Warning: Unknown config keys ignored: {', '.join(sorted(invalid_keys))}", file=sys.stderr)

    return {k: v for k, v in config.items() if k in VALID_CONFIG_KEYS}


def _config_path_from_argv(argv: Sequence[str]) -> str:
    if "--config" in argv:
        index = list(argv).index("--config")
        if index + 1 < len(argv):
            return argv[index + 1]
    return DEFAULT_CONFIG_PATH


def build_parser(config: Dict[str, Any]) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Resolve playable audio streams for YouTube videos."
    )
    parser.add_argument(
        "videos",
        nargs="*",
        help="Video ids or watch URLs to resolve",
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to JSON configuration file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument("--ids-file", help="Path to a text file with one video id or URL per line")
    parser.add_argument(
        "--client",
        choices=CLIENT_CHOICES,
        default=config.get("client"),
        help="Force a client identity instead of the default escalation ladder",
    )
    parser.add_argument("--proxy", default=config.get("proxy"), help="Proxy URL for all requests")
    parser.add_argument(
        "--timeout",
        type=positive_float,
        default=config.get("timeout", DEFAULT_TIMEOUT),
        help=f"Request timeout in seconds (default: {DEFAULT_TIMEOUT:g})",
    )
    parser.add_argument(
        "--visitor-data",
        default=config.get("visitor_data"),
        help="Visitor token to send instead of fetching a fresh one",
    )
    parser.add_argument(
        "--workers",
        type=positive_int,
        default=config.get("workers", 1),
        help="Number of videos resolved concurrently (default: 1)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        default=config.get("json", False),
        help="Print results as JSON lines",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=config.get("verbose", False),
        help="Print request payloads and diagnostic context",
    )
    parser.add_argument("--error-log", default=config.get("error_log"), help="Append failures to this file")
    parser.add_argument(
        "--health-check",
        action="store_true",
        help="Resolve a known video and report whether the player API is reachable",
    )
    parser.add_argument(
        "--test-video",
        default=config.get("test_video", DEFAULT_TEST_VIDEO),
        help=f"Video used by --health-check (default: {DEFAULT_TEST_VIDEO})",
    )
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments on top of config file defaults."""
    if argv is None:
        argv = sys.argv[1:]

    config_path = _config_path_from_argv(argv)
    config = load_config_file(config_path)
    if config:
        print(f"Loaded configuration from {config_path}", file=sys.stderr)

    return build_parser(config).parse_args(argv)


def _normalize_env_str(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def apply_environment_defaults(args, environ: Optional[Dict[str, str]] = None) -> None:
    """Fill options the command line and config left empty from the environment."""
    if environ is None:
        environ = os.environ

    if not getattr(args, "visitor_data", None):
        args.visitor_data = _normalize_env_str(environ.get(ENV_VISITOR_DATA))

    if not getattr(args, "proxy", None):
        args.proxy = _normalize_env_str(environ.get(ENV_PROXY))

    if not getattr(args, "error_log", None):
        error_log = _normalize_env_str(environ.get(ENV_ERROR_LOG))
        args.error_log = os.path.expanduser(error_log) if error_log else None


def load_ids_from_file(path: str) -> List[str]:
    """Video identifiers from a file, skipping blanks and ``#`` comments."""
    identifiers: List[str] = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            comment_match = re.search(r"\s#", stripped)
            if comment_match:
                stripped = stripped[: comment_match.start()].rstrip()
            identifiers.append(stripped)
    return identifiers
