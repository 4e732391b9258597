#!/usr/bin/env python3
"""
bwstat Service Module

Runs a node: identity, bandwidth counter, swarm listener and control socket.
"""
import os
import sys
import signal
import logging
import threading
from typing import Optional

from . import config
from .config import NodeConfig, load_node_config, save_node_config, ensure_config_dir
from .control import initialize_control_socket, shutdown_control_socket
from .identity import NodeIdentity, load_or_create_identity
from .metering.counter import BandwidthCounter, CounterConfig
from .swarm import SwarmListener

logger = logging.getLogger("bwstat")

# Event to signal termination
stop_event = threading.Event()


class Node:
    """A running node and the components it owns."""

    def __init__(self, node_config: NodeConfig, identity: NodeIdentity,
                 socket_path: Optional[str] = None):
        self.config = node_config
        self.identity = identity
        self.socket_path = socket_path or config.CONTROL_SOCKET

        self.counter = BandwidthCounter(
            CounterConfig(
                max_peers=node_config.max_peers,
                max_protocols=node_config.max_protocols,
                tick_interval=node_config.tick_interval,
            ),
            online=node_config.online
        )
        self.swarm: Optional[SwarmListener] = None

    def start(self) -> bool:
        """
        Start metering, networking (when online) and the control socket.

        Returns:
            True if every component started
        """
        self.counter.start()

        if self.config.online:
            self.swarm = SwarmListener(
                self.counter, self.identity,
                host=self.config.listen_host,
                port=self.config.listen_port
            )
            if not self.swarm.start():
                self.swarm = None
                self.counter.stop()
                return False
        else:
            logger.info("Node running in offline mode - networking disabled")

        if not initialize_control_socket(self.counter, self.socket_path, self.info()):
            self.stop()
            return False

        logger.info(f"Node {self.identity.peer_id} started")
        return True

    def stop(self):
        """Stop all components."""
        shutdown_control_socket()

        if self.swarm:
            self.swarm.stop()
            self.swarm = None

        totals = self.counter.get_totals()
        tracked = self.counter.get_summary()
        logger.info(f"Final bandwidth: in={totals.total_in}B out={totals.total_out}B, "
                    f"peers={tracked['peers']}, protocols={tracked['protocols']}")
        self.counter.stop()

    def info(self) -> dict:
        """Node details reported by the 'id' control command."""
        info = {
            'peer_id': str(self.identity.peer_id),
            'online': self.config.online,
        }
        if self.swarm:
            host, port = self.swarm.address
            info['address'] = f"{host}:{port}"
        return info


def handle_signal(signum, frame):
    """
    Signal handler for graceful shutdown

    Args:
        signum (int): Signal number
        frame: Current stack frame
    """
    logger.info(f"Received signal {signum}, shutting down...")
    stop_event.set()


def run_service(debug=False, offline=False, listen_port=None, socket_path=None) -> int:
    """
    Main service function

    Args:
        debug (bool): Verbose logging
        offline (bool): Start with networking disabled
        listen_port (int): Override the configured swarm port
        socket_path (str): Override the control socket path

    Returns:
        int: Exit code
    """
    if debug:
        logger.setLevel(logging.DEBUG)
        logger.debug("Debug mode enabled - verbose logging activated")

    logger.info(f"Starting bwstat node (PID: {os.getpid()})...")
    logger.info(f"Python version: {sys.version.split()[0]}")
    logger.info(f"Configuration directory: {config.CONFIG_DIR}")

    ensure_config_dir()

    node_config = load_node_config()
    if not os.path.exists(config.NODE_CONFIG_FILE):
        save_node_config(node_config)
    if offline:
        node_config.online = False
    if listen_port is not None:
        node_config.listen_port = listen_port
        node_config._validate()

    identity = load_or_create_identity()

    try:
        with open(config.PID_FILE, 'w') as f:
            f.write(str(os.getpid()))
    except OSError as e:
        logger.error(f"Failed to write PID file: {e}")

    signal.signal(signal.SIGTERM, handle_signal)
    signal.signal(signal.SIGINT, handle_signal)

    node = Node(node_config, identity, socket_path)
    stop_event.clear()
    if not node.start():
        logger.error("Node failed to start")
        return 1

    try:
        while not stop_event.wait(1.0):
            pass
    except KeyboardInterrupt:
        logger.info("bwstat node stopped by keyboard interrupt")
        stop_event.set()

    node.stop()

    try:
        os.remove(config.PID_FILE)
    except OSError:
        pass

    logger.info("bwstat node stopped")
    return 0
