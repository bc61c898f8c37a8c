from __future__ import annotations

import enum
import logging
import threading
import time
from typing import Callable, List, Optional

from .calibration import Calibrator
from .config import AdcConfig
from .drivers import AdcDriver
from .errors import ConfigurationError, ReadError
from .timestamps import Timestamp, timestamp
from .writer import RecordWriter

logger = logging.getLogger(__name__)

# Let the A/D settle after initialisation before the first sample
SETTLE_SEC = 0.25


class SamplerState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class Sampler:
    """
    Fixed-interval acquisition loop: one sample right after the settling
    delay, then one per interval until the stop event is set.

    Ticks never overlap. When a tick takes longer than the interval the
    missed slots are dropped and the schedule is realigned.
    """

    def __init__(
        self,
        config: AdcConfig,
        driver: AdcDriver,
        writer: RecordWriter,
        interval: float,
        settle: float = SETTLE_SEC,
        clock: Callable[[], int] = time.time_ns,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        if interval <= 0:
            raise ConfigurationError(f"Sampling interval must be positive, got {interval}")
        self.config = config
        self.driver = driver
        self.writer = writer
        self.interval = float(interval)
        self.settle = max(float(settle), 0.0)
        self.calibrator = Calibrator(config)
        self.state = SamplerState.IDLE
        self.ticks = 0
        self.missed = 0
        self._clock = clock
        self._monotonic = monotonic

    def sample(self, ts_ns: Optional[int] = None) -> Timestamp:
        """Run one tick: read every channel, calibrate, write a single row."""
        ts = timestamp(self._clock() if ts_ns is None else ts_ns)
        raw: List[float] = []
        for channel in self.config.channels:
            try:
                raw.append(float(self.driver.read_volts(channel.cnum)))
            except ReadError:
                raise
            except Exception as exc:
                raise ReadError(f"Reading channel '{channel.name}' (cnum {channel.cnum}) failed: {exc}") from exc
        self.writer.write_record(ts, self.calibrator.apply(raw))
        self.ticks += 1
        return ts

    def run(self, stop_event: threading.Event) -> None:
        if self.state is not SamplerState.IDLE:
            raise RuntimeError(f"Sampler cannot be started from state '{self.state.value}'")
        self.state = SamplerState.RUNNING
        try:
            self.writer.write_header(self.config.names)
            if stop_event.wait(self.settle):
                return
            self.sample()
            next_tick = self._monotonic() + self.interval
            while not stop_event.wait(max(next_tick - self._monotonic(), 0.0)):
                self.sample()
                next_tick += self.interval
                now = self._monotonic()
                if now >= next_tick:
                    skipped = int((now - next_tick) // self.interval) + 1
                    self.missed += skipped
                    next_tick += skipped * self.interval
                    logger.warning("Sampling fell behind, skipped %d tick(s)", skipped)
        finally:
            self.state = SamplerState.STOPPED
            logger.debug("Sampler stopped after %d ticks (%d missed)", self.ticks, self.missed)


class SamplerThread(threading.Thread):
    """
    Runs a sampler in the background. A fatal error is kept in
    ``last_exception`` for the main thread, and the stop event is set on exit
    so whoever waits on it wakes up.
    """

    def __init__(self, sampler: Sampler, stop_event: threading.Event):
        super().__init__(name="adread-sampler", daemon=True)
        self.sampler = sampler
        self.stop_event = stop_event
        self.last_exception: Optional[Exception] = None

    def run(self) -> None:
        try:
            self.sampler.run(self.stop_event)
        except Exception as exc:
            self.last_exception = exc
        finally:
            self.stop_event.set()
