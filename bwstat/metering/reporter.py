#!/usr/bin/env python3
"""
bwstat Metering Reporter Interface

The read-only view of a node's traffic metering subsystem that bandwidth
queries are served from.
"""

from abc import ABC, abstractmethod

from ..core.types import BandwidthSample, ProtocolID


class Reporter(ABC):
    """
    Source of bandwidth samples.

    Implementations must be safe for concurrent readers; queries never
    lock or mutate reporter state.
    """

    @abstractmethod
    def get_totals(self) -> BandwidthSample:
        """Whole-node counters."""

    @abstractmethod
    def get_for_peer(self, peer_id) -> BandwidthSample:
        """Counters for traffic exchanged with one peer."""

    @abstractmethod
    def get_for_protocol(self, protocol: ProtocolID) -> BandwidthSample:
        """Counters for traffic carried by one protocol."""

    @abstractmethod
    def is_operational(self) -> bool:
        """Whether the node is online and able to serve metrics."""
