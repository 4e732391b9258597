#!/usr/bin/env python3
"""
bwstat Daemon Commands Module

Runs the node in the foreground from the command line.
"""

from ..logger import setup_logging
from ..service import run_service


def run_foreground(debug: bool = False, offline: bool = False, listen_port: int = None) -> int:
    """
    Run a bwstat node in the foreground

    Args:
        debug: Enable debug logging
        offline: Start with networking disabled
        listen_port: Override the configured swarm port

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    from .. import config

    setup_logging(console=True, log_level='DEBUG' if debug else None)
    return run_service(
        debug=debug,
        offline=offline,
        listen_port=listen_port,
        socket_path=config.CONTROL_SOCKET
    )
