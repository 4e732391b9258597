#!/usr/bin/env python3
"""
bwstat Bandwidth Counter

Thread-safe traffic metering for a node: whole-node totals plus
per-peer and per-protocol meters.

Features:
- Memory-bounded per-peer/per-protocol tracking with LRU eviction
- Background ticker that advances every meter's smoothed rate
- Online/offline switch reported through ``is_operational()``
"""

import time
import threading
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..core.constants import (
    DEFAULT_TICK_INTERVAL,
    DEFAULT_MAX_PEERS,
    DEFAULT_MAX_PROTOCOLS,
    RATE_TIME_CONSTANT,
)
from ..core.types import BandwidthSample, ProtocolID
from .meter import Meter
from .reporter import Reporter

logger = logging.getLogger("bwstat")


@dataclass
class CounterConfig:
    """Configuration for the bandwidth counter."""

    # Maximum entries to track (LRU eviction when exceeded)
    max_peers: int = DEFAULT_MAX_PEERS
    max_protocols: int = DEFAULT_MAX_PROTOCOLS

    # Rate settings
    tick_interval: float = DEFAULT_TICK_INTERVAL
    time_constant: float = RATE_TIME_CONSTANT


class LRUDict(OrderedDict):
    """
    OrderedDict with LRU eviction and max size.

    Use with an external lock for compound operations.
    """

    def __init__(self, max_size: int = 10000, *args, **kwargs):
        self.max_size = max_size
        super().__init__(*args, **kwargs)

    def __setitem__(self, key, value):
        if key in self:
            self.move_to_end(key)
        super().__setitem__(key, value)

        # Evict oldest if over limit
        while len(self) > self.max_size:
            oldest = next(iter(self))
            del self[oldest]

    def get_or_create(self, key, factory):
        """Get existing item or create new one."""
        if key in self:
            self.move_to_end(key)
            return self[key]

        value = factory()
        self[key] = value
        return value


class _MeterPair:
    """Inbound and outbound meters for one dimension key."""

    __slots__ = ('inbound', 'outbound')

    def __init__(self, time_constant: float):
        self.inbound = Meter(time_constant)
        self.outbound = Meter(time_constant)

    def tick(self, elapsed: float):
        self.inbound.tick(elapsed)
        self.outbound.tick(elapsed)

    def sample(self) -> BandwidthSample:
        total_in, rate_in = self.inbound.snapshot()
        total_out, rate_out = self.outbound.snapshot()
        return BandwidthSample(
            total_in=total_in,
            total_out=total_out,
            rate_in=rate_in,
            rate_out=rate_out,
        )


class BandwidthCounter(Reporter):
    """
    Node traffic meter.

    Usage:
        counter = BandwidthCounter()
        counter.start()

        counter.log_recv(512, "/bwstat/echo/1.0.0", peer_id)
        counter.log_sent(512, "/bwstat/echo/1.0.0", peer_id)

        totals = counter.get_totals()
        per_peer = counter.get_for_peer(peer_id)
    """

    def __init__(self, config: CounterConfig = None, online: bool = True):
        """
        Initialize the counter.

        Args:
            config: Configuration settings (uses defaults if None)
            online: Initial operational state
        """
        self.config = config or CounterConfig()

        self._totals = _MeterPair(self.config.time_constant)
        self._peers: LRUDict = LRUDict(max_size=self.config.max_peers)
        self._protocols: LRUDict = LRUDict(max_size=self.config.max_protocols)

        self._online = online

        # Threading
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._ticker: Optional[threading.Thread] = None
        self._last_tick = time.monotonic()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self):
        """Start the background rate ticker."""
        if self._ticker and self._ticker.is_alive():
            return
        self._stop_event.clear()
        self._last_tick = time.monotonic()
        self._ticker = threading.Thread(
            target=self._tick_loop,
            name="bwstat-meter-ticker",
            daemon=True
        )
        self._ticker.start()
        logger.info(f"Bandwidth counter started (tick={self.config.tick_interval}s)")

    def stop(self):
        """Stop the background rate ticker."""
        self._stop_event.set()
        if self._ticker and self._ticker.is_alive():
            self._ticker.join(timeout=2.0)
        self._ticker = None
        logger.info("Bandwidth counter stopped")

    def _tick_loop(self):
        while not self._stop_event.wait(self.config.tick_interval):
            try:
                self.tick()
            except Exception as e:
                logger.error(f"Error updating bandwidth meters: {e}")

    def tick(self, now: float = None):
        """Advance every meter's rate by the time since the previous tick."""
        if now is None:
            now = time.monotonic()
        with self._lock:
            elapsed = now - self._last_tick
            self._last_tick = now
            pairs = [self._totals]
            pairs.extend(self._peers.values())
            pairs.extend(self._protocols.values())
        for pair in pairs:
            pair.tick(elapsed)

    # =========================================================================
    # RECORDING
    # =========================================================================

    def _pairs_for(self, protocol: Optional[ProtocolID], peer_id) -> Tuple[_MeterPair, ...]:
        factory = lambda: _MeterPair(self.config.time_constant)
        with self._lock:
            pairs = [self._totals]
            if peer_id is not None:
                pairs.append(self._peers.get_or_create(peer_id, factory))
            if protocol:
                pairs.append(self._protocols.get_or_create(protocol, factory))
        return tuple(pairs)

    def log_sent(self, size: int, protocol: Optional[ProtocolID] = None, peer_id=None):
        """Record ``size`` bytes sent to ``peer_id`` over ``protocol``."""
        for pair in self._pairs_for(protocol, peer_id):
            pair.outbound.mark(size)

    def log_recv(self, size: int, protocol: Optional[ProtocolID] = None, peer_id=None):
        """Record ``size`` bytes received from ``peer_id`` over ``protocol``."""
        for pair in self._pairs_for(protocol, peer_id):
            pair.inbound.mark(size)

    # =========================================================================
    # REPORTER INTERFACE
    # =========================================================================

    def get_totals(self) -> BandwidthSample:
        return self._totals.sample()

    def get_for_peer(self, peer_id) -> BandwidthSample:
        with self._lock:
            pair = self._peers.get(peer_id)
        return pair.sample() if pair else BandwidthSample()

    def get_for_protocol(self, protocol: ProtocolID) -> BandwidthSample:
        with self._lock:
            pair = self._protocols.get(protocol)
        return pair.sample() if pair else BandwidthSample()

    def is_operational(self) -> bool:
        return self._online

    # =========================================================================
    # MANAGEMENT
    # =========================================================================

    def set_online(self, online: bool):
        """Switch the node between online and offline mode."""
        if online != self._online:
            logger.info(f"Metering {'online' if online else 'offline'}")
        self._online = online

    def reset(self):
        """Clear all meters."""
        with self._lock:
            self._totals = _MeterPair(self.config.time_constant)
            self._peers.clear()
            self._protocols.clear()
            self._last_tick = time.monotonic()
        logger.info("Bandwidth counters reset")

    def get_summary(self) -> Dict[str, int]:
        """Tracked entry counts, for status output."""
        with self._lock:
            return {
                'peers': len(self._peers),
                'protocols': len(self._protocols),
                'max_peers': self._peers.max_size,
                'max_protocols': self._protocols.max_size,
            }
