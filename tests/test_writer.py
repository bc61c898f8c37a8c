from __future__ import annotations

import io

import pytest

from adread.errors import SinkError
from adread.timestamps import Timestamp, timestamp
from adread.writer import RecordWriter, format_value


class CountingSink(io.StringIO):
    def __init__(self) -> None:
        super().__init__()
        self.flushes = 0

    def flush(self) -> None:
        self.flushes += 1
        super().flush()


class ClosedPipe(io.StringIO):
    def write(self, _text: str) -> int:
        raise BrokenPipeError(32, "Broken pipe")


def test_timestamp_truncates_to_microseconds() -> None:
    assert timestamp(1_700_000_000_123_456_789) == Timestamp(1_700_000_000, 123_456)
    assert timestamp(999) == Timestamp(0, 0)


def test_timestamp_before_epoch_keeps_positive_microseconds() -> None:
    assert timestamp(-1_000) == Timestamp(-1, 999_999)


def test_timestamp_defaults_to_wall_clock(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("adread.timestamps.time.time_ns", lambda: 5_000_001_000)
    assert timestamp() == Timestamp(5, 1)


def test_header_and_record_format() -> None:
    sink = CountingSink()
    writer = RecordWriter(sink)
    writer.write_header(["A", "B", "C"])
    writer.write_record(Timestamp(12, 34), [1.23456, -0.5, 5.0])
    assert sink.getvalue() == "seconds,microseconds,A,B,C\n12,34,1.235,-0.500,5.000\n"
    assert sink.flushes == 2
    assert writer.rows_written == 1


def test_names_needing_quotes() -> None:
    sink = io.StringIO()
    RecordWriter(sink).write_header(["T, inlet", "P"])
    assert sink.getvalue() == 'seconds,microseconds,"T, inlet",P\n'


def test_record_requires_header() -> None:
    writer = RecordWriter(io.StringIO())
    with pytest.raises(RuntimeError):
        writer.write_record(Timestamp(0, 0), [1.0])


def test_header_only_once() -> None:
    writer = RecordWriter(io.StringIO())
    writer.write_header(["A"])
    with pytest.raises(RuntimeError):
        writer.write_header(["A"])


def test_sink_errors_are_fatal() -> None:
    writer = RecordWriter(ClosedPipe())
    with pytest.raises(SinkError) as excinfo:
        writer.write_header(["A"])
    assert isinstance(excinfo.value.__cause__, BrokenPipeError)


@pytest.mark.parametrize(
    "value, text",
    [(1.23456, "1.235"), (-0.5, "-0.500"), (0.0, "0.000"), (float("nan"), "NaN"), (float("inf"), "+Inf"), (float("-inf"), "-Inf")],
)
def test_format_value(value: float, text: str) -> None:
    assert format_value(value) == text
