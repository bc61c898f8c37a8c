from __future__ import annotations

from typing import List, Sequence

import numpy as np
from numpy.polynomial import polynomial as P

from .config import AdcConfig
from .errors import ConfigurationError


def evaluate(x: float, coefficients: Sequence[float]) -> float:
    """
    Evaluate ``y = c[0] + x*(c[1] + x*(c[2] + ...))``.

    A single coefficient is a constant offset; ``[0, 1]`` passes ``x`` through.
    """
    c = np.asarray(coefficients, dtype=float)
    if c.ndim != 1 or c.size == 0:
        raise ConfigurationError("Calibration needs at least one coefficient")
    return float(P.polyval(float(x), c))


class Calibrator:
    """
    Converts one tick's raw voltages into physical values. Coefficient arrays
    are built once, so an empty calibration is rejected before sampling.
    """

    def __init__(self, config: AdcConfig):
        self._coeffs: List[np.ndarray] = []
        for channel in config.channels:
            c = np.asarray(channel.c, dtype=float)
            if c.ndim != 1 or c.size == 0:
                raise ConfigurationError(f"Channel '{channel.name}' has no calibration coefficients")
            self._coeffs.append(c)

    def __len__(self) -> int:
        return len(self._coeffs)

    def apply(self, raw: Sequence[float]) -> List[float]:
        if len(raw) != len(self._coeffs):
            raise ValueError(f"Expected {len(self._coeffs)} raw values, got {len(raw)}")
        return [float(P.polyval(float(x), c)) for x, c in zip(raw, self._coeffs)]
