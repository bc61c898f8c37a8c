from __future__ import annotations

import csv
import math
from typing import Iterable, Sequence, TextIO

from .errors import SinkError
from .timestamps import Timestamp

HEADER_PREFIX = ("seconds", "microseconds")


def format_value(value: float) -> str:
    """Fixed point, 3 decimals; non-finite values spelled NaN, +Inf, -Inf."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return f"{value:.3f}"


class RecordWriter:
    """
    Streams the header and one row per tick to a text sink. Each row is
    flushed as soon as it is written so a live reader sees it right away.
    """

    def __init__(self, sink: TextIO):
        self.sink = sink
        self._writer = csv.writer(sink, lineterminator="\n")
        self._header_written = False
        self.rows_written = 0

    def write_header(self, names: Iterable[str]) -> None:
        if self._header_written:
            raise RuntimeError("Header already written")
        self._emit([*HEADER_PREFIX, *names])
        self._header_written = True

    def write_record(self, ts: Timestamp, values: Sequence[float]) -> None:
        if not self._header_written:
            raise RuntimeError("write_header() must be called before the first record")
        row = [str(ts.seconds), str(ts.microseconds)]
        row.extend(format_value(value) for value in values)
        self._emit(row)
        self.rows_written += 1

    def _emit(self, row: Sequence[str]) -> None:
        try:
            self._writer.writerow(row)
            self.sink.flush()
        except OSError as exc:
            raise SinkError(f"Output write failed: {exc}") from exc
