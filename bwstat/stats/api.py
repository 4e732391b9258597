#!/usr/bin/env python3
"""
bwstat Bandwidth Statistics API

Request-scoped entry points for bandwidth queries.
Designed for the control socket and for embedding in other tools.
"""

import threading
import logging
from typing import Optional, Union

from ..core.constants import DEFAULT_POLL_INTERVAL
from ..core.types import BandwidthSample, PollConfig, ScopeRequest
from ..metering.reporter import Reporter
from .resolver import resolve_scope
from .stream import SampleStream

logger = logging.getLogger("bwstat")


def stream(request: ScopeRequest, poll: PollConfig,
           cancel: Optional[threading.Event] = None,
           reporter: Reporter = None) -> SampleStream:
    """
    Open a bandwidth sample stream.

    Args:
        request: Peer or protocol filter (or neither for totals)
        poll: Validated polling configuration
        cancel: Cancellation signal for the request
        reporter: Metering subsystem to sample

    Returns:
        Started SampleStream; iterate it to receive samples

    Raises:
        ConflictingScope: If both peer and protocol are set
        MalformedInput: If the peer ID does not decode
        NotOperational: If the node cannot serve metrics

    Example:
        >>> with stream(ScopeRequest(proto="/ipfs/bitswap"), PollConfig(),
        ...             reporter=counter) as samples:
        ...     for sample in samples:
        ...         print(sample.total_in)
    """
    if reporter is None:
        raise ValueError("reporter is required")

    target = resolve_scope(request)
    return SampleStream(reporter, target, poll, cancel).start()


def query_bandwidth(reporter: Reporter,
                    peer: Optional[str] = None,
                    proto: Optional[str] = None,
                    poll: bool = False,
                    interval: Union[str, float] = DEFAULT_POLL_INTERVAL,
                    cancel: Optional[threading.Event] = None) -> SampleStream:
    """
    Open a bandwidth sample stream from raw option values.

    Scope is validated before the interval, and both before the node's
    operational state is checked.

    Args:
        reporter: Metering subsystem to sample
        peer: Base58 peer ID filter
        proto: Protocol ID filter
        poll: Sample repeatedly until cancelled
        interval: Time between samples when polling ("1s", "500ms", ...)
        cancel: Cancellation signal for the request

    Returns:
        Started SampleStream

    Raises:
        ConflictingScope, MalformedInput, InvalidInterval, NotOperational
    """
    target = resolve_scope(ScopeRequest(peer=peer, proto=proto))
    poll_config = PollConfig.from_options(poll, interval)
    return SampleStream(reporter, target, poll_config, cancel).start()


def get_bandwidth(reporter: Reporter, peer: Optional[str] = None,
                  proto: Optional[str] = None) -> BandwidthSample:
    """
    Take a single bandwidth sample.

    Example:
        >>> sample = get_bandwidth(counter, proto="/bwstat/echo/1.0.0")
        >>> print(sample.rate_in)
    """
    target = resolve_scope(ScopeRequest(peer=peer, proto=proto))
    samples = []
    SampleStream(reporter, target, PollConfig(enabled=False)).run(samples.append)
    return samples[0]
