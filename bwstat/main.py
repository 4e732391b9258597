#!/usr/bin/env python3
"""
bwstat - Main Module

Entry point with modular CLI command handling. Command implementations
live in the cli/ subdirectory:
    - cli/parser.py: Argument parsing setup
    - cli/daemon_commands.py: Running the node
    - cli/stats_commands.py: Bandwidth queries and identity
    - cli/executor.py: Command orchestration
"""

import sys
import argparse

from .cli import create_argument_parser, execute_command


def main(argv=None) -> int:
    """
    Main entry point

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    try:
        parser = create_argument_parser()

        try:
            args = parser.parse_args(argv)
        except argparse.ArgumentTypeError as e:
            print(f"Argument validation error: {e}")
            return 1

        return execute_command(args)

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 1
    except Exception as e:
        print(f"Unexpected error: {e}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
