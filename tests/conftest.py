from __future__ import annotations

from typing import Callable, Dict, List, Optional

import pytest

from adread.config import parse_config


class FakeAdc:
    """Returns fixed voltages; optionally fails or runs a hook on each read."""

    def __init__(
        self,
        volts: Dict[int, float],
        fail_on: Optional[tuple[int, int]] = None,
        hook: Optional[Callable[[int, int], None]] = None,
    ):
        self.volts = volts
        self.fail_on = fail_on  # (tick, cnum)
        self.hook = hook
        self.reads: List[int] = []
        self.tick = 0
        self.closed = False
        self._first_cnum = min(volts) if volts else None

    def read_volts(self, cnum: int) -> float:
        if not self.reads or cnum == self._first_cnum:
            self.tick += 1
        self.reads.append(cnum)
        if self.hook is not None:
            self.hook(self.tick, cnum)
        if self.fail_on == (self.tick, cnum):
            raise IOError(f"bus error on channel {cnum}")
        return self.volts[cnum]

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def two_channel_config():
    return parse_config(
        """
        channels:
          - name: A
            cnum: 0
            units: volts
            c: [0, 1]
          - name: B
            cnum: 1
            units: degC
            c: [1, 0, 1]
        """
    )


@pytest.fixture
def four_channel_config():
    return parse_config(
        """
        channels:
          - {name: Ain3, cnum: 3, units: volts, c: [0., 1.]}
          - {name: Ain4, cnum: 4, units: volts, c: [0., 1.]}
          - {name: Ain5, cnum: 5, units: volts, c: [0., 1.]}
          - {name: Ain6, cnum: 6, units: volts, c: [0., 1.]}
        """
    )


@pytest.fixture
def fake_adc():
    return FakeAdc
