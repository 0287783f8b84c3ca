"""Command line entry point for pixscrub."""

from __future__ import annotations

import argparse
import logging
import sys

from .config import load_config
from .core import SanitizeError, SanitizeOptions, sanitize
from .tools.logging_config import configure_logging

logger = logging.getLogger("pixscrub")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        "pixscrub",
        description="Mirror a directory tree, replacing every PNG, GIF and JPEG with a blank placeholder",
    )
    parser.add_argument("--source", required=True, help="Existing directory of media to sanitize")
    parser.add_argument("--target", required=True, help="Directory to create for the sanitized copy (must not exist)")
    parser.add_argument("--config", help="JSON configuration file (default: $PIXSCRUB_CONFIG)")
    parser.add_argument("--verbose", action="store_true", help="Log every copy, placeholder and link")
    parser.add_argument("--log-file", help="Also write logs to this file")
    return parser


def _die(msg: str, code: int) -> int:
    print(f"pixscrub: {msg}", file=sys.stderr)
    return code


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except OSError as exc:
        return _die(f"cannot read config: {exc}", 2)

    log_cfg = config.get("logging")
    if not isinstance(log_cfg, dict):
        log_cfg = {}
    level = "DEBUG" if args.verbose else log_cfg.get("level")
    try:
        configure_logging(level, args.log_file or log_cfg.get("file"))
    except OSError as exc:
        return _die(f"cannot open log file: {exc}", 2)
    # Pillow plugins trace every chunk at DEBUG.
    logging.getLogger("PIL").setLevel(logging.INFO)

    try:
        options = SanitizeOptions.from_config(config)
    except (TypeError, ValueError) as exc:
        return _die(f"invalid configuration: {exc}", 2)

    try:
        report = sanitize(args.source, args.target, options)
    except SanitizeError as exc:
        logger.debug("Run aborted", exc_info=True)
        return _die(str(exc), 1)

    logger.info(
        "Done: %d link(s), %d placeholder(s), %d verbatim file(s) in %s",
        report.links,
        report.placeholders,
        report.copied,
        report.target,
    )
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
