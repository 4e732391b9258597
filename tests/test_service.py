#!/usr/bin/env python3
"""
bwstat Node Service Tests

End-to-end tests: a node with a swarm listener and control socket,
queried the way the CLI queries it.
"""

import os
import sys
import time
import shutil
import tempfile
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from bwstat.config import NodeConfig
from bwstat.control import ControlSocket, get_control_socket
from bwstat.core.constants import PROTOCOL_ECHO
from bwstat.core.exceptions import NotOperational
from bwstat.identity import NodeIdentity
from bwstat.service import Node
from bwstat.swarm import dial


class NodeTests(unittest.TestCase):
    """Tests for Node start-up and bandwidth queries through the control socket"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp(prefix="bw")
        self.socket_path = os.path.join(self.temp_dir, "ctl.sock")
        self.identity = NodeIdentity.generate()
        self.node = None

    def tearDown(self):
        if self.node:
            self.node.stop()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def start_node(self, **overrides):
        settings = {'listen_port': 0, 'tick_interval': 0.05}
        settings.update(overrides)
        self.node = Node(NodeConfig(**settings), self.identity, self.socket_path)
        self.assertTrue(self.node.start())
        return self.node

    def query(self, **params):
        params.setdefault('action', 'bw')
        return list(ControlSocket.stream_command('stats', params, socket_path=self.socket_path,
                                                 timeout=5.0))

    def test_id_reports_address(self):
        node = self.start_node()
        info = ControlSocket.send_command('id', socket_path=self.socket_path)['data']

        self.assertEqual(info['peer_id'], str(self.identity.peer_id))
        self.assertTrue(info['online'])
        host, port = node.swarm.address
        self.assertEqual(info['address'], f"{host}:{port}")

    def test_peer_traffic_visible_in_queries(self):
        node = self.start_node()
        peer = NodeIdentity.generate()

        conn, _ = dial(node.swarm.address, peer.peer_id, PROTOCOL_ECHO)
        try:
            conn.sendall(b'z' * 2048)
            received = 0
            while received < 2048:
                chunk = conn.recv(4096)
                if not chunk:
                    break
                received += len(chunk)
        finally:
            conn.close()

        deadline = time.monotonic() + 3.0
        while time.monotonic() < deadline:
            data = self.query(peer=str(peer.peer_id))[0]['data']
            if data['TotalOut'] == 2048:
                break
            time.sleep(0.05)

        self.assertEqual(data['TotalIn'], 2048)
        self.assertEqual(data['TotalOut'], 2048)
        self.assertEqual(self.query(proto=PROTOCOL_ECHO)[0]['data']['TotalIn'], 2048)
        self.assertEqual(self.query()[0]['data']['TotalIn'], 2048)

    def test_offline_node_refuses_queries(self):
        node = self.start_node(online=False)
        self.assertIsNone(node.swarm)
        self.assertFalse(ControlSocket.send_command('id', socket_path=self.socket_path)['data']['online'])

        with self.assertRaises(NotOperational):
            self.query()

    def test_stop_removes_socket(self):
        node = self.start_node()
        self.assertIsNotNone(get_control_socket())
        node.stop()
        self.node = None

        self.assertIsNone(get_control_socket())
        self.assertFalse(os.path.exists(self.socket_path))


if __name__ == "__main__":
    unittest.main()
