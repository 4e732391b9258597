#!/usr/bin/env python3
"""
bwstat Version Information

This is the single source of truth for version information.
All other version references should import from here.

Usage:
    from bwstat.__version__ import __version__, has_feature

    print(f"bwstat v{__version__}")
    if has_feature('polling'):
        print("Polling bandwidth queries available")
"""
from pathlib import Path

# Read version from VERSION file (single source of truth)
_version_file = Path(__file__).parent.parent / 'VERSION'
try:
    with open(_version_file, 'r') as f:
        __version__ = f.read().strip()
except FileNotFoundError:
    try:
        from importlib.metadata import version as _dist_version
        __version__ = _dist_version('bwstat')
    except Exception:
        __version__ = '0.0.0-dev'

# Package metadata
__author__ = 'bwstat contributors'
__license__ = 'MIT'
__description__ = 'Bandwidth statistics query engine for peer-to-peer nodes'

# Version info tuple for programmatic comparison
try:
    VERSION_INFO = tuple(int(x) for x in __version__.split('-')[0].split('.'))
except (ValueError, AttributeError):
    VERSION_INFO = (0, 0, 0)

# Feature flags based on version
FEATURES = {
    'totals': VERSION_INFO >= (0, 1, 0),
    'peer_scope': VERSION_INFO >= (0, 1, 0),
    'protocol_scope': VERSION_INFO >= (0, 1, 0),
    'polling': VERSION_INFO >= (0, 2, 0),
    'control_socket': VERSION_INFO >= (0, 2, 0),
    'json_output': VERSION_INFO >= (0, 3, 0),
}


def get_version() -> str:
    """Return the version string."""
    return __version__


def get_version_info() -> tuple:
    """
    Return version as tuple for programmatic comparison.

    Returns:
        tuple: Version tuple (e.g., (0, 3, 0))
    """
    return VERSION_INFO


def has_feature(feature: str) -> bool:
    """
    Check if a feature is available in this version.

    Args:
        feature: Feature name (e.g., 'polling', 'json_output')

    Returns:
        bool: True if feature is available, False otherwise
    """
    return FEATURES.get(feature, False)


def get_available_features() -> dict:
    """Get dictionary of all features and their availability."""
    return FEATURES.copy()


def get_version_banner() -> str:
    """
    Get formatted version banner for display.

    Returns:
        str: Multi-line version banner
    """
    enabled = [name.upper() for name, avail in FEATURES.items() if avail]
    beta_indicator = ' [BETA]' if VERSION_INFO[0] == 0 else ''
    return (
        f"\n  bwstat v{__version__}{beta_indicator} - Node Bandwidth Statistics\n"
        f"  Features: {' + '.join(enabled)}\n"
    )


__all__ = [
    '__version__',
    '__author__',
    '__license__',
    '__description__',
    'VERSION_INFO',
    'FEATURES',
    'get_version',
    'get_version_info',
    'has_feature',
    'get_available_features',
    'get_version_banner',
]
