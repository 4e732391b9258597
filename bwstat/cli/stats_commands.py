#!/usr/bin/env python3
"""
bwstat CLI - Bandwidth Statistics Command Handlers

Handles:
- --stats-bw: bandwidth totals and rates for the node, a peer or a protocol
- --id: the node's peer ID
- --stats-help: usage notes

Queries are answered by the running daemon over the control socket.
"""

import os
import sys
import json
from argparse import Namespace

from ..core.exceptions import BwStatError, ControlProtocolError
from ..core.types import BandwidthSample, PollConfig, ScopeRequest
from ..control import ControlSocket
from ..formatting import SampleRenderer
from ..identity import NodeIdentity
from ..logger import setup_cli_logging
from ..stats.resolver import resolve_scope


def _output_json(data, pretty: bool = False):
    """Output data as JSON."""
    if pretty:
        print(json.dumps(data, indent=2, default=str))
    else:
        print(json.dumps(data, default=str))


def handle_stats_bw(args: Namespace) -> int:
    """Handle --stats-bw command."""
    from .. import config

    setup_cli_logging(args.debug)

    renderer = SampleRenderer(polling=args.poll, use_json=args.json, pretty=args.pretty)
    responses = None
    try:
        # Reject bad options without contacting the daemon
        resolve_scope(ScopeRequest(peer=args.peer, proto=args.proto))
        PollConfig.from_options(args.poll, args.interval)

        responses = ControlSocket.stream_command('stats', {
            'action': 'bw',
            'peer': args.peer,
            'proto': args.proto,
            'poll': args.poll,
            'interval': args.interval,
        }, socket_path=config.CONTROL_SOCKET)

        for response in responses:
            data = response.get('data')
            if not isinstance(data, dict):
                raise ControlProtocolError("sample response without data")
            try:
                sample = BandwidthSample.from_dict(data)
            except (KeyError, TypeError, ValueError) as e:
                raise ControlProtocolError(f"invalid sample: {e}")
            sys.stdout.write(renderer.render(sample))
            sys.stdout.flush()

    except KeyboardInterrupt:
        pass
    except BwStatError as e:
        sys.stdout.write(renderer.finish())
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        if responses is not None:
            responses.close()

    sys.stdout.write(renderer.finish())
    sys.stdout.flush()
    return 0


def handle_id(args: Namespace) -> int:
    """
    Handle --id command.

    Asks the running daemon first; without one, reads the identity
    key from the configuration directory.
    """
    from .. import config

    setup_cli_logging(args.debug)

    try:
        info = ControlSocket.send_command('id', socket_path=config.CONTROL_SOCKET)['data']
    except BwStatError:
        if not os.path.exists(config.IDENTITY_FILE):
            print(f"Error: no identity found in {config.CONFIG_DIR}. "
                  f"Run 'bwstat --daemon' once to create one", file=sys.stderr)
            return 1
        try:
            identity = NodeIdentity.load(config.IDENTITY_FILE)
        except BwStatError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        info = {'peer_id': str(identity.peer_id), 'online': False}

    if args.json:
        _output_json(info, args.pretty)
        return 0

    print(f"Peer ID: {info.get('peer_id')}")
    print(f"Online:  {'yes' if info.get('online') else 'no'}")
    if info.get('address'):
        print(f"Address: {info['address']}")
    return 0


def handle_stats_help(args: Namespace) -> int:
    """Handle --stats-help command."""
    help_text = """
================================================================================
                       bwstat Bandwidth Statistics Help
================================================================================

OVERVIEW
--------
Prints information about bandwidth usage of a running node. By default the
totals for all traffic are shown. Filter the output to one peer or one
protocol with --peer or --proto (not both).

Example:

    > bwstat --stats-bw -t /bwstat/echo/1.0.0
    Bandwidth
    TotalIn: 5.0MB
    TotalOut: 0B
    RateIn: 343B/s
    RateOut: 0B/s

COMMANDS
--------

  --stats-bw                Print bandwidth information
  --id                      Show the node peer ID
  --daemon                  Run a node in the foreground

OPTIONS
-------

  -p, --peer <ID>           Peer to print bandwidth for
  -t, --proto <PROTOCOL>    Protocol to print bandwidth for
  --poll                    Print bandwidth at an interval until Ctrl-C
  -i, --interval <DUR>      Time between updates with --poll (default: 1s)
                            Units: ns, us, ms, s, m, h ("300ms", "1.5h", "2h45m")
  --json                    Output as JSON
  --pretty                  Pretty-print JSON output

NOTES
-----
Queries need a running node. Start one with 'bwstat --daemon'.
A node started with --offline cannot answer bandwidth queries.

================================================================================
"""
    print(help_text)
    return 0
