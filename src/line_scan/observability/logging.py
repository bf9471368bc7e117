from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, TextIO, runtime_checkable

if TYPE_CHECKING:
    from line_scan.usecases.config_models import LoggingConfig

LEVELS = {"debug": 10, "info": 20, "warning": 30, "error": 40}


@dataclass(frozen=True, slots=True)
class LogMessage:
    # Structured log payload; rendered as one compact JSON object per line.
    level: str
    message: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    fields: dict[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.level or not self.message:
            raise ValueError("LogMessage requires non-empty level/message")
        if self.level not in LEVELS:
            raise ValueError(f"Unknown log level: {self.level!r}")


@runtime_checkable
class LogSink(Protocol):
    def emit(self, message: LogMessage) -> None:
        """Consume one LogMessage."""
        raise NotImplementedError("LogSink is a port; use a concrete adapter.")

    def close(self) -> None:
        """Release resources held by the sink."""
        raise NotImplementedError("LogSink is a port; use a concrete adapter.")


class NullLogSink:
    def emit(self, message: LogMessage) -> None:
        _ = message

    def close(self) -> None:
        return None


class StreamLogSink:
    # Structured log sink over a text stream (stderr by default, so logs never mix with matches).
    def __init__(self, stream: TextIO | None = None, *, min_level: str = "info") -> None:
        self._stream = stream
        self._min_level = LEVELS[min_level]

    def emit(self, message: LogMessage) -> None:
        if LEVELS[message.level] < self._min_level:
            return
        stream = self._stream if self._stream is not None else sys.stderr
        stream.write(_render(message) + "\n")

    def close(self) -> None:
        # Borrowed stream: flush only.
        stream = self._stream if self._stream is not None else sys.stderr
        stream.flush()


class JsonlLogSink:
    # File-backed structured log sink; appends so repeated runs accumulate.
    def __init__(self, path: Path, *, min_level: str = "info") -> None:
        self._path = path
        self._min_level = LEVELS[min_level]
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._file: TextIO | None = self._path.open("a", encoding="utf-8")

    def emit(self, message: LogMessage) -> None:
        if self._file is None:
            raise RuntimeError(f"JsonlLogSink for {self._path} is closed")
        if LEVELS[message.level] < self._min_level:
            return
        self._file.write(_render(message) + "\n")
        self._file.flush()

    def close(self) -> None:
        if self._file is None:
            return
        self._file.close()
        self._file = None


def build_log_sink(config: LoggingConfig | None) -> LogSink:
    # Sink selection mirrors the logging section of the YAML config.
    if config is None or config.sink == "none":
        return NullLogSink()
    if config.sink == "stderr":
        return StreamLogSink(min_level=config.level)
    if config.path is None:
        raise ValueError("logging.path is required when sink is 'jsonl'")
    return JsonlLogSink(Path(config.path), min_level=config.level)


def log_to_dict(message: LogMessage) -> dict[str, object]:
    return {
        "level": message.level,
        "message": message.message,
        "timestamp": message.timestamp.isoformat().replace("+00:00", "Z"),
        "fields": message.fields,
    }


def _render(message: LogMessage) -> str:
    return json.dumps(log_to_dict(message), separators=(",", ":"), ensure_ascii=False, default=str)
