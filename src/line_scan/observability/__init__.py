from .logging import (
    JsonlLogSink,
    LogMessage,
    LogSink,
    NullLogSink,
    StreamLogSink,
    build_log_sink,
)

__all__ = [
    "JsonlLogSink",
    "LogMessage",
    "LogSink",
    "NullLogSink",
    "StreamLogSink",
    "build_log_sink",
]
