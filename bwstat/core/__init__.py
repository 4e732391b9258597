#!/usr/bin/env python3
"""
bwstat Core Module

Provides shared constants, types, and exceptions used across all bwstat modules.
"""

from .constants import (
    DEFAULT_POLL_INTERVAL,
    PROTOCOL_ECHO,
    PROTOCOL_SINK,
    SUPPORTED_PROTOCOLS,
)

from .types import (
    BandwidthSample,
    ScopeRequest,
    PollConfig,
    TotalsTarget,
    PeerTarget,
    ProtocolTarget,
    Target,
    StreamState,
)

from .exceptions import (
    BwStatError,
    QueryError,
    MalformedInput,
    ConflictingScope,
    InvalidInterval,
    NotOperational,
    ConfigurationError,
)

__all__ = [
    # Constants
    'DEFAULT_POLL_INTERVAL',
    'PROTOCOL_ECHO',
    'PROTOCOL_SINK',
    'SUPPORTED_PROTOCOLS',
    # Types
    'BandwidthSample',
    'ScopeRequest',
    'PollConfig',
    'TotalsTarget',
    'PeerTarget',
    'ProtocolTarget',
    'Target',
    'StreamState',
    # Exceptions
    'BwStatError',
    'QueryError',
    'MalformedInput',
    'ConflictingScope',
    'InvalidInterval',
    'NotOperational',
    'ConfigurationError',
]
