#!/usr/bin/env python3
"""
bwstat Argument Parser Module

Sets up command-line argument parsing with validation.
"""

import argparse

from ..core.constants import DEFAULT_POLL_INTERVAL


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser with all bwstat commands

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="bwstat",
        description="bwstat - bandwidth statistics for a peer-to-peer node",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run a node in the foreground
  bwstat --daemon

  # Node-wide bandwidth totals and rates
  bwstat --stats-bw

  # Bandwidth used by one protocol, refreshed every 500ms
  bwstat --stats-bw -t /bwstat/echo/1.0.0 --poll -i 500ms

  # Bandwidth exchanged with one peer, as JSON
  bwstat --stats-bw -p 12D3KooW... --json
        """
    )

    def validated_port(value):
        try:
            port = int(value)
        except ValueError:
            raise argparse.ArgumentTypeError(f"Invalid port: {value}")
        if not (0 <= port <= 65535):
            raise argparse.ArgumentTypeError(f"Port out of range: {value}")
        return port

    group = parser.add_mutually_exclusive_group(required=True)

    group.add_argument('--daemon', action='store_true',
                       help='Run a node in the foreground')
    group.add_argument('--stats-bw', action='store_true',
                       help='Print bandwidth information')
    group.add_argument('--id', action='store_true',
                       help='Show the node peer ID')
    group.add_argument('--stats-help', action='store_true',
                       help='Show bandwidth statistics help')
    group.add_argument('--version', action='store_true',
                       help='Show version information')

    # Bandwidth query parameters
    parser.add_argument('--peer', '-p', type=str,
                        help='Specify a peer to print bandwidth for')
    parser.add_argument('--proto', '-t', type=str,
                        help='Specify a protocol to print bandwidth for')
    parser.add_argument('--poll', action='store_true',
                        help='Print bandwidth at an interval (default: false)')
    parser.add_argument('--interval', '-i', type=str, default=DEFAULT_POLL_INTERVAL,
                        help='Time interval to wait between updating output, if --poll '
                             'is set (e.g. "500ms", "1.5s"; default: %(default)s)')
    parser.add_argument('--json', action='store_true',
                        help='Output as JSON')
    parser.add_argument('--pretty', action='store_true',
                        help='Pretty print JSON output')

    # Node parameters
    parser.add_argument('--offline', action='store_true',
                        help='Run the node with networking disabled')
    parser.add_argument('--listen-port', type=validated_port,
                        help='TCP port for peer connections (0 = any free port)')

    # Runtime configuration parameters
    parser.add_argument('--config-dir', type=str,
                        help='Configuration directory path')
    parser.add_argument('--log-file', type=str,
                        help='Log file path')
    parser.add_argument('--socket', type=str,
                        help='Control socket path')
    parser.add_argument('--log-level', type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='Set logging level')
    parser.add_argument('--log-compress', action='store_true',
                        help='Enable compression of rotated log files')
    parser.add_argument('--debug', action='store_true',
                        help='Enable debug mode with verbose logging')

    return parser
