from .line_source import FileLineHandle, FileLineSource, InMemoryLineHandle, InMemoryLineSource
from .output_sink import FileOutputSink, StdoutOutputSink

# Public adapter exports are optional but make wiring simpler.
__all__ = [
    "FileLineHandle",
    "FileLineSource",
    "FileOutputSink",
    "InMemoryLineHandle",
    "InMemoryLineSource",
    "StdoutOutputSink",
]
