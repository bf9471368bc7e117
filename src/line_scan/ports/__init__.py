from .line_source import LineHandle, LineSource
from .output_sink import OutputSink

# Public port exports keep wiring explicit at composition time.
__all__ = [
    "LineHandle",
    "LineSource",
    "OutputSink",
]
