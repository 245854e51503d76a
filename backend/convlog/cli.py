"""Convert a tenhou.net/6 log into mjai events.

Read a tenhou.net/6 JSON log from a file (or stdin) and write the
reconstructed mjai event stream as JSON lines or MessagePack.

Usage:
    convlog log.json
    convlog log.json -o log.jsonl --hide-names
    cat log.json | convlog --format msgpack -o log.mpk

Defaults come from CONVLOG_* environment variables (see ConvertSettings);
command-line flags override them.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import structlog

from convlog.logic.exceptions import ConvertError
from convlog.logic.match import convert_match
from convlog.messaging.encoder import events_to_jsonl, events_to_msgpack
from convlog.settings import ConvertSettings
from convlog.tenhou import LogLoadError, load_log_from_file, load_log_from_string
from shared.logging import setup_logging

logger = structlog.get_logger()


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Convert a tenhou.net/6 log into mjai events")
    parser.add_argument(
        "input",
        nargs="?",
        type=Path,
        help="path to a tenhou.net/6 JSON log (default: read stdin)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="output file (default: stdout)",
    )
    parser.add_argument(
        "--format",
        choices=("jsonl", "msgpack"),
        help="output format (default: jsonl)",
    )
    parser.add_argument(
        "--hide-names",
        action="store_true",
        default=None,
        help="replace player names with Aさん..Dさん",
    )
    return parser.parse_args(argv)


def run(argv: list[str] | None = None) -> int:
    """Run the converter and return the process exit code."""
    args = _parse_args(argv)
    settings = ConvertSettings()
    output_format = args.format or settings.output_format
    hide_names = settings.hide_names if args.hide_names is None else args.hide_names

    setup_logging(log_dir=settings.log_dir, level=settings.log_level, log_format=settings.log_format)

    try:
        match = load_log_from_file(args.input) if args.input else load_log_from_string(sys.stdin.read())
        if hide_names:
            match = match.anonymized()
        events = convert_match(match)
    except LogLoadError as exc:
        logger.error("failed to load log", error=str(exc))
        return 1
    except ConvertError as exc:
        logger.error(
            "failed to convert log",
            error=str(exc),
            round_index=exc.round_index,
            honba=exc.honba,
            seat=exc.seat,
        )
        return 1

    if output_format == "msgpack":
        data = events_to_msgpack(events)
        if args.output:
            args.output.write_bytes(data)
        else:
            sys.stdout.buffer.write(data)
    else:
        text = events_to_jsonl(events)
        if args.output:
            args.output.write_text(text, encoding="utf-8")
        else:
            sys.stdout.write(text)

    logger.info("log converted", num_events=len(events), output=str(args.output or "-"), format=output_format)
    return 0


def main() -> None:
    sys.exit(run())

