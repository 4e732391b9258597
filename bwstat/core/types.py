#!/usr/bin/env python3
"""
bwstat Core Types

Type definitions and data structures used throughout bwstat.
Uses dataclasses for clean, immutable data structures with type hints.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from .constants import DEFAULT_POLL_INTERVAL


# =============================================================================
# TYPE ALIASES
# =============================================================================

# Protocol identifiers are opaque strings such as "/ipfs/bitswap"
ProtocolID = str


# =============================================================================
# SAMPLE STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class BandwidthSample:
    """
    Immutable snapshot of bandwidth counters.

    Totals are in bytes, rates in bytes per second.
    """
    total_in: int = 0
    total_out: int = 0
    rate_in: float = 0.0
    rate_out: float = 0.0

    def __post_init__(self):
        for name in ('total_in', 'total_out', 'rate_in', 'rate_out'):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire representation."""
        return {
            'TotalIn': self.total_in,
            'TotalOut': self.total_out,
            'RateIn': self.rate_in,
            'RateOut': self.rate_out,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BandwidthSample':
        """Create from the wire representation."""
        return cls(
            total_in=int(data.get('TotalIn', 0)),
            total_out=int(data.get('TotalOut', 0)),
            rate_in=float(data.get('RateIn', 0.0)),
            rate_out=float(data.get('RateOut', 0.0)),
        )


# =============================================================================
# REQUEST STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class ScopeRequest:
    """
    Raw scope selection as supplied by the caller.

    At most one of ``peer`` and ``proto`` may be set; this is enforced
    when the request is resolved, not here.
    """
    peer: Optional[str] = None
    proto: Optional[str] = None


@dataclass(frozen=True)
class PollConfig:
    """
    Validated polling configuration.

    Use ``PollConfig.from_options`` to build one from raw option values.
    """
    enabled: bool = False
    interval: float = 1.0

    @classmethod
    def from_options(cls, enabled: bool = False,
                     interval: Union[str, float, None] = DEFAULT_POLL_INTERVAL) -> 'PollConfig':
        """
        Validate raw option values.

        Args:
            enabled: Whether to sample repeatedly
            interval: Duration string ("500ms", "2h45m") or seconds

        Returns:
            PollConfig

        Raises:
            InvalidInterval: If interval is not a positive duration
        """
        from ..duration import parse_interval
        return cls(enabled=bool(enabled), interval=parse_interval(interval))


# =============================================================================
# TARGET STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class TotalsTarget:
    """Whole-node aggregate counters."""

    def describe(self) -> str:
        return "totals"


@dataclass(frozen=True)
class PeerTarget:
    """Counters for a single remote peer."""
    peer_id: Any  # bwstat.peer.PeerID

    def describe(self) -> str:
        return f"peer {self.peer_id}"


@dataclass(frozen=True)
class ProtocolTarget:
    """Counters for a single wire protocol."""
    protocol: ProtocolID

    def describe(self) -> str:
        return f"protocol {self.protocol}"


Target = Union[TotalsTarget, PeerTarget, ProtocolTarget]


# =============================================================================
# STREAM STATE
# =============================================================================

class StreamState(Enum):
    """Lifecycle states of a sample stream."""
    INIT = "init"
    SAMPLING = "sampling"
    WAITING = "waiting"
    TERMINATED = "terminated"
