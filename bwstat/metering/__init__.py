#!/usr/bin/env python3
"""
bwstat Metering Module

Traffic metering subsystem: the ``Reporter`` interface bandwidth queries
read from, and ``BandwidthCounter``, the node's implementation of it.
"""

from .reporter import Reporter
from .meter import Meter
from .counter import BandwidthCounter, CounterConfig, LRUDict

__all__ = [
    'Reporter',
    'Meter',
    'BandwidthCounter',
    'CounterConfig',
    'LRUDict',
]
