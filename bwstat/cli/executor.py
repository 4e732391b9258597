#!/usr/bin/env python3
"""
bwstat Command Executor Module

Orchestrates command execution based on parsed arguments.
"""

import os
from argparse import Namespace

from . import daemon_commands
from . import stats_commands


def update_global_config(args: Namespace) -> None:
    """
    Update global configuration variables based on command-line arguments

    Args:
        args: Parsed command-line arguments
    """
    from .. import config

    if args.config_dir:
        config.set_config_dir(args.config_dir)

    if args.log_file:
        config.LOG_FILE = os.path.abspath(args.log_file)

    if args.socket:
        config.CONTROL_SOCKET = os.path.abspath(args.socket)

    if args.log_level:
        config.LOG_LEVEL = args.log_level

    if args.log_compress:
        config.LOG_COMPRESS = True


def execute_command(args: Namespace) -> int:
    """
    Execute the appropriate command based on parsed arguments

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    update_global_config(args)

    if args.daemon:
        return daemon_commands.run_foreground(
            debug=args.debug,
            offline=args.offline,
            listen_port=args.listen_port
        )

    elif args.stats_bw:
        return stats_commands.handle_stats_bw(args)

    elif args.id:
        return stats_commands.handle_id(args)

    elif args.stats_help:
        return stats_commands.handle_stats_help(args)

    elif args.version:
        from ..__version__ import get_version_banner
        print(get_version_banner())
        return 0

    print("No command specified")
    return 1
