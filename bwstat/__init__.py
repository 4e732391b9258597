#!/usr/bin/env python3
"""
bwstat - Node Bandwidth Statistics

Queries the traffic metering subsystem of a running node for whole-node,
per-peer, or per-protocol bandwidth, either once or at a polling interval.
"""

# Import version information from single source of truth
from .__version__ import (
    __version__,
    __author__,
    __license__,
    __description__,
    get_version,
    get_version_info,
    has_feature,
    get_available_features,
)

# Public API
__all__ = [
    '__version__',
    '__author__',
    '__license__',
    '__description__',
    'get_version',
    'get_version_info',
    'has_feature',
    'get_available_features',
]

# Avoid circular imports - modules will be imported where needed
