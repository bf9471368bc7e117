from __future__ import annotations

import pytest

from line_scan.adapters.line_source import FileLineSource, InMemoryLineSource
from line_scan.adapters.output_sink import FileOutputSink, StdoutOutputSink
from line_scan.ports.line_source import LineHandle, LineSource
from line_scan.ports.output_sink import OutputSink


def test_line_source_port_default_raises() -> None:
    # Direct port calls without an adapter are wiring errors (port methods raise by default).
    class _PortOnly(LineSource):
        pass

    port = _PortOnly()  # type: ignore[misc]
    with pytest.raises(NotImplementedError):
        port.open()
    with pytest.raises(NotImplementedError):
        port.describe()


def test_line_handle_port_default_raises() -> None:
    class _PortOnly(LineHandle):
        pass

    port = _PortOnly()  # type: ignore[misc]
    with pytest.raises(NotImplementedError):
        iter(port)
    with pytest.raises(NotImplementedError):
        port.close()


def test_output_sink_port_default_raises() -> None:
    class _PortOnly(OutputSink):
        pass

    port = _PortOnly()  # type: ignore[misc,abstract]
    with pytest.raises(NotImplementedError):
        port.write_line("banana")
    with pytest.raises(NotImplementedError):
        port.close()
    with pytest.raises(NotImplementedError):
        port.discard()


def test_adapters_satisfy_ports(tmp_path) -> None:
    assert isinstance(FileLineSource(tmp_path / "x.txt"), LineSource)
    assert isinstance(InMemoryLineSource([]), LineSource)
    assert isinstance(InMemoryLineSource([]).open(), LineHandle)
    assert isinstance(FileOutputSink(tmp_path / "out.txt"), OutputSink)
    assert isinstance(StdoutOutputSink(), OutputSink)
