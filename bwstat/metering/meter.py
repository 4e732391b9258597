#!/usr/bin/env python3
"""
bwstat Meter

A byte meter with a running total and a smoothed rate.

Bytes are accumulated on ``mark()`` and folded into the rate on ``tick()``,
which the owning counter calls at a fixed interval. The rate is an
exponentially weighted moving average of the per-tick throughput.
"""

import math
import threading

from ..core.constants import RATE_TIME_CONSTANT


class Meter:
    """Thread-safe byte meter."""

    __slots__ = ('_lock', '_total', '_pending', '_rate', '_time_constant')

    def __init__(self, time_constant: float = RATE_TIME_CONSTANT):
        self._lock = threading.Lock()
        self._total = 0
        self._pending = 0
        self._rate = 0.0
        self._time_constant = time_constant

    def mark(self, size: int):
        """Record ``size`` bytes."""
        if size <= 0:
            return
        with self._lock:
            self._total += size
            self._pending += size

    def tick(self, elapsed: float):
        """Fold bytes seen since the last tick into the rate."""
        if elapsed <= 0:
            return
        with self._lock:
            instant = self._pending / elapsed
            self._pending = 0
            if self._time_constant <= 0:
                self._rate = instant
            else:
                alpha = 1.0 - math.exp(-elapsed / self._time_constant)
                self._rate += alpha * (instant - self._rate)
            # Decayed rates snap to zero so idle meters read 0B/s
            if self._rate < 1e-3:
                self._rate = 0.0

    @property
    def total(self) -> int:
        with self._lock:
            return self._total

    @property
    def rate(self) -> float:
        with self._lock:
            return self._rate

    def snapshot(self):
        """Return (total, rate) read atomically."""
        with self._lock:
            return self._total, self._rate

