#!/usr/bin/env python3
"""
bwstat Scope Resolver

Turns the caller's raw scope options into exactly one query target.
"""

import logging

from ..core.exceptions import ConflictingScope
from ..core.types import ScopeRequest, Target, TotalsTarget, PeerTarget, ProtocolTarget
from ..peer import decode_peer_id, validate_protocol

logger = logging.getLogger("bwstat")


def resolve_scope(request: ScopeRequest) -> Target:
    """
    Resolve a scope request.

    Args:
        request: Raw peer/protocol filters

    Returns:
        TotalsTarget, PeerTarget or ProtocolTarget

    Raises:
        ConflictingScope: If both a peer and a protocol are given
        MalformedInput: If the peer ID does not decode or the protocol is empty
    """
    has_peer = request.peer is not None
    has_proto = request.proto is not None

    if has_peer and has_proto:
        raise ConflictingScope()

    if has_peer:
        target = PeerTarget(decode_peer_id(request.peer))
    elif has_proto:
        target = ProtocolTarget(validate_protocol(request.proto))
    else:
        target = TotalsTarget()

    logger.debug(f"Resolved bandwidth scope: {target.describe()}")
    return target
