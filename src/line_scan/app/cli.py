from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from line_scan.adapters.line_source import FileLineSource
from line_scan.adapters.output_sink import FileOutputSink, StdoutOutputSink
from line_scan.config.loader import ConfigError, default_config, load_config
from line_scan.domain.errors import ScanError
from line_scan.domain.messages import MatchedLine
from line_scan.domain.predicates import Predicate, build_predicate
from line_scan.observability.logging import LogSink, build_log_sink
from line_scan.ports.line_source import LineSource
from line_scan.ports.output_sink import OutputSink
from line_scan.usecases.config_models import AppConfig, LoggingConfig, OutputConfig
from line_scan.usecases.scan import scan

# Exit codes follow grep: match found, nothing matched, error.
EXIT_MATCH = 0
EXIT_NO_MATCH = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="line-scan",
        description="Print the lines of a text file that match a pattern",
    )
    parser.add_argument("pattern", help="Substring (default), regex or exact line to match")
    parser.add_argument("path", help="Path to the text file to scan")
    parser.add_argument("--config", help="Path to YAML config")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("-E", "--regex", action="store_true", help="Treat pattern as a regular expression")
    mode.add_argument("-x", "--exact", action="store_true", help="Match whole lines only")
    parser.add_argument("-i", "--ignore-case", action="store_true")
    parser.add_argument("-v", "--invert", action="store_true", help="Select non-matching lines")
    parser.add_argument("-n", "--line-numbers", action="store_true")
    parser.add_argument("-m", "--max-count", type=_positive_int, help="Stop after N matches")
    parser.add_argument("--output", help="Write matches to this file instead of stdout")
    parser.add_argument("--encoding", help="Input text encoding")
    parser.add_argument("--decode-errors", choices=["strict", "replace"])
    parser.add_argument("--log-jsonl", help="Append structured scan logs to this JSONL file")
    parser.add_argument("--verbose", action="store_true", help="Emit debug logs")
    return parser


def parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    # Parse CLI arguments; caller passes argv for testability.
    return build_parser().parse_args(argv)


def apply_overrides(config: AppConfig, args: argparse.Namespace) -> None:
    # CLI flags take precedence over config; absent flags leave config untouched.
    if args.regex:
        config.match.mode = "regex"
    elif args.exact:
        config.match.mode = "exact"
    if args.ignore_case:
        config.match.ignore_case = True
    if args.invert:
        config.match.invert = True

    if args.encoding is not None:
        config.source.encoding = args.encoding
    if args.decode_errors is not None:
        config.source.decode_errors = args.decode_errors

    if args.line_numbers:
        config.output.line_numbers = True
    if args.max_count is not None:
        config.output.max_count = args.max_count
    if args.output is not None:
        config.output.file_path = args.output

    if args.log_jsonl is not None:
        config.logging = LoggingConfig(sink="jsonl", path=args.log_jsonl, level=config.logging.level)
    if args.verbose:
        if config.logging.sink == "none":
            config.logging.sink = "stderr"
        config.logging.level = "debug"


def format_match(match: MatchedLine, *, line_numbers: bool) -> str:
    if line_numbers:
        return f"{match.line_no}:{match.text}"
    return match.text


def build_output_sink(config: OutputConfig, stdout: TextIO | None = None) -> OutputSink:
    if config.file_path is None:
        return StdoutOutputSink(stdout)
    return FileOutputSink(Path(config.file_path), atomic_replace=config.atomic_replace)


def write_matches(
    source: LineSource,
    predicate: Predicate,
    config: AppConfig,
    *,
    output_sink: OutputSink,
    log_sink: LogSink,
) -> int:
    # Pull only as many matches as needed; leaving the block releases the file.
    written = 0
    max_count = config.output.max_count
    with scan(source, predicate, log_sink=log_sink) as matches:
        for match in matches:
            output_sink.write_line(format_match(match, line_numbers=config.output.line_numbers))
            written += 1
            if max_count is not None and written >= max_count:
                break
    return written


def run(
    argv: Sequence[str] | None = None,
    *,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> int:
    # Thin orchestration wrapper: config -> predicate -> scan -> sink.
    err = stderr if stderr is not None else sys.stderr
    args = parse_args(argv)
    try:
        config = load_config(Path(args.config)) if args.config else default_config()
        apply_overrides(config, args)
        predicate = build_predicate(
            args.pattern,
            mode=config.match.mode,
            ignore_case=config.match.ignore_case,
            invert=config.match.invert,
        )
        source = FileLineSource.from_path(
            args.path,
            encoding=config.source.encoding,
            decode_errors=config.source.decode_errors,
        )
        log_sink = build_log_sink(config.logging)
    except (ConfigError, ValueError, OSError) as exc:
        err.write(f"line-scan: {exc}\n")
        return EXIT_ERROR

    output_sink = build_output_sink(config.output, stdout)
    try:
        written = write_matches(
            source,
            predicate,
            config,
            output_sink=output_sink,
            log_sink=log_sink,
        )
        output_sink.close()
    except (ScanError, OSError) as exc:
        # A failed scan must not replace a previous result with partial output.
        output_sink.discard()
        err.write(f"line-scan: {exc}\n")
        return EXIT_ERROR
    finally:
        log_sink.close()
    return EXIT_MATCH if written else EXIT_NO_MATCH


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return number
