#!/usr/bin/env python3
"""
bwstat CLI Module

Provides command-line interface functionality organized by concern:
- daemon_commands: Running the node in the foreground
- stats_commands: Bandwidth queries and node identity
- parser: Argument parsing setup
- executor: Command orchestration
"""

__all__ = [
    'create_argument_parser',
    'execute_command',
]

from .parser import create_argument_parser
from .executor import execute_command
