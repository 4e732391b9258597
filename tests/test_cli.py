#!/usr/bin/env python3
"""
bwstat CLI Tests

Tests for argument parsing and the bandwidth/identity command handlers.
"""

import io
import os
import sys
import json
import shutil
import tempfile
import unittest
from contextlib import redirect_stdout, redirect_stderr

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from bwstat import config
from bwstat.cli import create_argument_parser
from bwstat.control import ControlSocket
from bwstat.core.types import BandwidthSample
from bwstat.identity import NodeIdentity
from bwstat.main import main

from fakes import FakeReporter

QM_PEER = "QmepgFW7BHEtU4pZJdxaNiv75mKLLRQnPi1KaaXmQN4V1a"

_CONFIG_NAMES = ('CONFIG_DIR', 'NODE_CONFIG_FILE', 'IDENTITY_FILE', 'PID_FILE',
                 'LOG_FILE', 'CONTROL_SOCKET', 'LOG_LEVEL', 'LOG_COMPRESS')


class ParserTests(unittest.TestCase):
    """Tests for create_argument_parser"""

    def setUp(self):
        self.parser = create_argument_parser()

    def test_stats_bw_defaults(self):
        args = self.parser.parse_args(['--stats-bw'])
        self.assertTrue(args.stats_bw)
        self.assertIsNone(args.peer)
        self.assertIsNone(args.proto)
        self.assertFalse(args.poll)
        self.assertEqual(args.interval, "1s")
        self.assertFalse(args.json)

    def test_short_options(self):
        args = self.parser.parse_args(['--stats-bw', '-t', '/ipfs/bitswap', '-i', '500ms', '--poll'])
        self.assertEqual(args.proto, '/ipfs/bitswap')
        self.assertEqual(args.interval, '500ms')
        self.assertTrue(args.poll)

        args = self.parser.parse_args(['--stats-bw', '-p', QM_PEER])
        self.assertEqual(args.peer, QM_PEER)

    def test_command_required(self):
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                self.parser.parse_args([])

    def test_commands_exclusive(self):
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                self.parser.parse_args(['--stats-bw', '--daemon'])

    def test_listen_port_validated(self):
        self.assertEqual(self.parser.parse_args(['--daemon', '--listen-port', '0']).listen_port, 0)
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                self.parser.parse_args(['--daemon', '--listen-port', '99999'])


class CommandTests(unittest.TestCase):
    """Tests for running commands through main()"""

    def setUp(self):
        self.saved = {name: getattr(config, name) for name in _CONFIG_NAMES}
        self.temp_dir = tempfile.mkdtemp(prefix="bw")
        self.socket_path = os.path.join(self.temp_dir, "ctl.sock")
        self.server = None

    def tearDown(self):
        if self.server:
            self.server.stop_server()
        for name, value in self.saved.items():
            setattr(config, name, value)
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def run_main(self, *argv):
        stdout, stderr = io.StringIO(), io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            code = main(list(argv) + ['--socket', self.socket_path, '--config-dir', self.temp_dir])
        return code, stdout.getvalue(), stderr.getvalue()

    def start_daemon(self, reporter):
        self.server = ControlSocket(reporter, self.socket_path,
                                    node_info={'peer_id': 'test-node', 'online': True,
                                               'address': '127.0.0.1:4011'})
        self.assertTrue(self.server.start_server())

    def test_no_daemon(self):
        code, _, err = self.run_main('--stats-bw')
        self.assertEqual(code, 1)
        self.assertIn("this command must be run in online mode", err)

    def test_conflicting_scope(self):
        code, out, err = self.run_main('--stats-bw', '-p', QM_PEER, '-t', '/ipfs/bitswap')
        self.assertEqual(code, 1)
        self.assertIn("please only specify peer OR protocol", err)
        self.assertEqual(out, "")

    def test_invalid_interval(self):
        code, _, err = self.run_main('--stats-bw', '--poll', '-i', 'often')
        self.assertEqual(code, 1)
        self.assertIn("Invalid polling interval", err)

    def test_text_output(self):
        self.start_daemon(FakeReporter(totals=BandwidthSample(5000000, 0, 343.0, 0.0)))
        code, out, _ = self.run_main('--stats-bw')

        self.assertEqual(code, 0)
        self.assertEqual(out, "Bandwidth\nTotalIn: 5.0MB\nTotalOut: 0B\nRateIn: 343B/s\nRateOut: 0B/s\n")

    def test_json_output(self):
        self.start_daemon(FakeReporter(protocols={
            '/ipfs/bitswap': BandwidthSample(10, 20, 1.5, 2.5)
        }))
        code, out, _ = self.run_main('--stats-bw', '-t', '/ipfs/bitswap', '--json')

        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out), {"TotalIn": 10, "TotalOut": 20, "RateIn": 1.5, "RateOut": 2.5})

    def test_offline_daemon(self):
        self.start_daemon(FakeReporter(operational=False))
        code, out, err = self.run_main('--stats-bw')
        self.assertEqual(code, 1)
        self.assertIn("online mode", err)

    def test_id_from_daemon(self):
        self.start_daemon(FakeReporter())
        code, out, _ = self.run_main('--id')
        self.assertEqual(code, 0)
        self.assertIn("Peer ID: test-node", out)
        self.assertIn("Address: 127.0.0.1:4011", out)

    def test_id_without_daemon(self):
        identity = NodeIdentity.generate()
        identity.save(os.path.join(self.temp_dir, "identity.pem"))

        code, out, _ = self.run_main('--id', '--json')
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out), {'peer_id': str(identity.peer_id), 'online': False})

    def test_id_without_identity(self):
        code, _, err = self.run_main('--id')
        self.assertEqual(code, 1)
        self.assertIn("no identity", err)

    def test_stats_help(self):
        code, out, _ = self.run_main('--stats-help')
        self.assertEqual(code, 0)
        self.assertIn("--stats-bw", out)
        self.assertIn("--interval", out)

    def test_version(self):
        code, out, _ = self.run_main('--version')
        self.assertEqual(code, 0)
        self.assertIn("bwstat v", out)


class VersionTests(unittest.TestCase):

    def test_version_api(self):
        import bwstat
        self.assertEqual(bwstat.get_version(), bwstat.__version__)
        self.assertEqual(len(bwstat.get_version_info()), 3)
        self.assertTrue(bwstat.has_feature("totals"))
        self.assertFalse(bwstat.has_feature("no-such-feature"))
        self.assertIn("polling", bwstat.get_available_features())


if __name__ == "__main__":
    unittest.main()
