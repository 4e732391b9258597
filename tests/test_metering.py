#!/usr/bin/env python3
"""
bwstat Metering Tests

Tests for the byte meter, the LRU tracking dictionary and the node
bandwidth counter.
"""

import os
import sys
import time
import math
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from bwstat.core.types import BandwidthSample
from bwstat.metering import BandwidthCounter, CounterConfig, LRUDict, Meter
from bwstat.peer import PeerID

PEER_A = PeerID.from_public_key(b"\x08\x01\x12\x20" + b"\x01" * 32)
PEER_B = PeerID.from_public_key(b"\x08\x01\x12\x20" + b"\x02" * 32)
PEER_C = PeerID.from_public_key(b"\x08\x01\x12\x20" + b"\x03" * 32)


class MeterTests(unittest.TestCase):
    """Tests for Meter"""

    def test_total_accumulates(self):
        meter = Meter()
        meter.mark(100)
        meter.mark(50)
        meter.mark(0)
        meter.mark(-5)
        self.assertEqual(meter.total, 150)
        self.assertEqual(meter.rate, 0.0)

    def test_rate_without_smoothing(self):
        meter = Meter(time_constant=0)
        meter.mark(1000)
        meter.tick(2.0)
        self.assertAlmostEqual(meter.rate, 500.0)

        meter.tick(1.0)
        self.assertEqual(meter.rate, 0.0)
        self.assertEqual(meter.total, 1000)

    def test_rate_smoothing(self):
        meter = Meter(time_constant=40.0)
        meter.mark(1000)
        meter.tick(1.0)
        expected = 1000 * (1 - math.exp(-1 / 40.0))
        self.assertAlmostEqual(meter.rate, expected)

        # Idle ticks decay towards zero
        meter.tick(1.0)
        self.assertLess(meter.rate, expected)
        self.assertGreater(meter.rate, 0.0)

    def test_idle_rate_snaps_to_zero(self):
        meter = Meter(time_constant=1.0)
        meter.mark(1)
        meter.tick(1.0)
        for _ in range(20):
            meter.tick(1.0)
        self.assertEqual(meter.rate, 0.0)

    def test_non_positive_elapsed_ignored(self):
        meter = Meter(time_constant=0)
        meter.mark(10)
        meter.tick(0)
        meter.tick(-1)
        self.assertEqual(meter.rate, 0.0)
        meter.tick(1.0)
        self.assertAlmostEqual(meter.rate, 10.0)

    def test_snapshot(self):
        meter = Meter(time_constant=0)
        meter.mark(64)
        meter.tick(1.0)
        self.assertEqual(meter.snapshot(), (64, 64.0))


class LRUDictTests(unittest.TestCase):

    def test_evicts_oldest(self):
        lru = LRUDict(max_size=2)
        lru['a'] = 1
        lru['b'] = 2
        lru['c'] = 3
        self.assertEqual(list(lru), ['b', 'c'])

    def test_get_or_create_refreshes(self):
        lru = LRUDict(max_size=2)
        lru['a'] = 1
        lru['b'] = 2
        self.assertEqual(lru.get_or_create('a', lambda: 99), 1)
        lru['c'] = 3
        self.assertEqual(list(lru), ['a', 'c'])
        self.assertEqual(lru.get_or_create('d', lambda: 4), 4)
        self.assertIn('d', lru)


class BandwidthCounterTests(unittest.TestCase):
    """Tests for BandwidthCounter"""

    def setUp(self):
        self.counter = BandwidthCounter(CounterConfig(time_constant=0, max_peers=2))

    def tearDown(self):
        self.counter.stop()

    def test_dimensions(self):
        """Traffic is recorded against totals, peer and protocol"""
        self.counter.log_recv(100, "/bwstat/echo/1.0.0", PEER_A)
        self.counter.log_sent(40, "/bwstat/echo/1.0.0", PEER_A)
        self.counter.log_sent(10)

        self.assertEqual(self.counter.get_totals().total_in, 100)
        self.assertEqual(self.counter.get_totals().total_out, 50)

        peer = self.counter.get_for_peer(PEER_A)
        self.assertEqual((peer.total_in, peer.total_out), (100, 40))

        proto = self.counter.get_for_protocol("/bwstat/echo/1.0.0")
        self.assertEqual((proto.total_in, proto.total_out), (100, 40))

    def test_unknown_scope_reports_zero(self):
        self.assertEqual(self.counter.get_for_peer(PEER_B), BandwidthSample())
        self.assertEqual(self.counter.get_for_protocol("/missing"), BandwidthSample())

    def test_tick_updates_rates(self):
        start = time.monotonic() + 10.0
        self.counter.tick(now=start)
        self.counter.log_recv(300, "/p", PEER_A)
        self.counter.log_sent(150, "/p", PEER_A)
        self.counter.tick(now=start + 1.5)

        totals = self.counter.get_totals()
        self.assertAlmostEqual(totals.rate_in, 200.0)
        self.assertAlmostEqual(totals.rate_out, 100.0)
        self.assertAlmostEqual(self.counter.get_for_peer(PEER_A).rate_in, 200.0)
        self.assertAlmostEqual(self.counter.get_for_protocol("/p").rate_out, 100.0)

    def test_peer_eviction(self):
        for peer in (PEER_A, PEER_B, PEER_C):
            self.counter.log_recv(1, None, peer)

        self.assertEqual(self.counter.get_for_peer(PEER_A), BandwidthSample())
        self.assertEqual(self.counter.get_for_peer(PEER_C).total_in, 1)
        self.assertEqual(self.counter.get_totals().total_in, 3)
        self.assertEqual(self.counter.get_summary()['peers'], 2)

    def test_online_switch(self):
        self.assertTrue(self.counter.is_operational())
        self.counter.set_online(False)
        self.assertFalse(self.counter.is_operational())
        self.assertFalse(BandwidthCounter(online=False).is_operational())

    def test_reset(self):
        self.counter.log_recv(10, "/p", PEER_A)
        self.counter.reset()
        self.assertEqual(self.counter.get_totals(), BandwidthSample())
        self.assertEqual(self.counter.get_summary()['protocols'], 0)

    def test_background_ticker(self):
        counter = BandwidthCounter(CounterConfig(time_constant=0, tick_interval=0.05))
        counter.start()
        try:
            counter.log_recv(1000)
            deadline = time.monotonic() + 2.0
            while counter.get_totals().rate_in == 0 and time.monotonic() < deadline:
                time.sleep(0.01)
            self.assertGreater(counter.get_totals().rate_in, 0)
        finally:
            counter.stop()


if __name__ == "__main__":
    unittest.main()
