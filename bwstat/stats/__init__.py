#!/usr/bin/env python3
"""
bwstat Bandwidth Statistics Module

Resolves a query scope (node totals, one peer, or one protocol) and
streams bandwidth samples for it, once or at a polling interval.
"""

from .resolver import resolve_scope
from .stream import SampleStream
from .api import stream, query_bandwidth, get_bandwidth

__all__ = [
    'resolve_scope',
    'SampleStream',
    'stream',
    'query_bandwidth',
    'get_bandwidth',
]
