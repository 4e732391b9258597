#!/usr/bin/env python3
"""
bwstat Swarm Listener

Peer-facing TCP listener of a node. Every byte exchanged with a peer after
the handshake is metered against that peer and the negotiated protocol.

Wire format:
    peer -> node   {"peer_id": "<base58>", "protocol": "/bwstat/echo/1.0.0"}\\n
    node -> peer   {"peer_id": "<node id>", "protocol": "...", "status": "ok"}\\n
    ... protocol bytes ...

On a bad handshake the node answers {"status": "error", "error": "..."}
and closes the connection.

Protocols:
    /bwstat/echo/1.0.0  - every byte received is sent back
    /bwstat/sink/1.0.0  - received bytes are discarded
"""

import json
import socket
import threading
import logging
from typing import Optional, Set, Tuple

from .core.constants import (
    PROTOCOL_ECHO,
    SUPPORTED_PROTOCOLS,
    SWARM_BUFFER_SIZE,
    MAX_HANDSHAKE_SIZE,
    HANDSHAKE_TIMEOUT,
)
from .core.exceptions import MalformedInput
from .identity import NodeIdentity
from .metering.counter import BandwidthCounter
from .peer import PeerID, decode_peer_id

logger = logging.getLogger("bwstat")


class HandshakeError(Exception):
    """Raised when a peer's handshake cannot be accepted."""
    pass


def _read_line(conn: socket.socket) -> Tuple[bytes, bytes]:
    """Read up to the first newline; returns (line, bytes read past it)."""
    buffer = b''
    while b'\n' not in buffer:
        if len(buffer) > MAX_HANDSHAKE_SIZE:
            raise HandshakeError("handshake too long")
        chunk = conn.recv(MAX_HANDSHAKE_SIZE)
        if not chunk:
            raise HandshakeError("connection closed during handshake")
        buffer += chunk
    line, _, rest = buffer.partition(b'\n')
    return line, rest


def _send_json(conn: socket.socket, message: dict):
    conn.sendall((json.dumps(message) + '\n').encode('utf-8'))


class SwarmListener:
    """Accepts peer connections and serves the built-in protocols."""

    def __init__(self, counter: BandwidthCounter, identity: NodeIdentity,
                 host: str = "127.0.0.1", port: int = 0):
        """
        Args:
            counter: Meter that records peer traffic
            identity: Local node identity, announced in handshakes
            host: Bind address
            port: Bind port (0 = any free port)
        """
        self.counter = counter
        self.identity = identity
        self.host = host
        self.port = port

        self.server_socket: Optional[socket.socket] = None
        self.stop_event = threading.Event()
        self.listen_thread: Optional[threading.Thread] = None

        self._connections: Set[socket.socket] = set()
        self._connections_lock = threading.Lock()

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port)."""
        if self.server_socket:
            return self.server_socket.getsockname()[:2]
        return self.host, self.port

    def start(self) -> bool:
        """
        Bind and start accepting peers.

        Returns:
            True if successful, False otherwise
        """
        try:
            self.server_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            self.server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            self.server_socket.bind((self.host, self.port))
            self.server_socket.listen(16)
            self.server_socket.settimeout(1.0)
        except OSError as e:
            logger.error(f"Could not bind swarm listener to {self.host}:{self.port}: {e}")
            if self.server_socket:
                self.server_socket.close()
                self.server_socket = None
            return False

        self.stop_event.clear()
        self.listen_thread = threading.Thread(
            target=self._accept_loop, name="bwstat-swarm", daemon=True
        )
        self.listen_thread.start()

        host, port = self.address
        logger.info(f"Swarm listening on {host}:{port}")
        return True

    def stop(self):
        """Stop accepting peers and close open connections."""
        self.stop_event.set()

        if self.listen_thread and self.listen_thread.is_alive():
            self.listen_thread.join(timeout=2.0)

        if self.server_socket:
            self.server_socket.close()
            self.server_socket = None

        with self._connections_lock:
            connections = list(self._connections)
        for conn in connections:
            try:
                conn.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass

        logger.info("Swarm listener stopped")

    def _accept_loop(self):
        while not self.stop_event.is_set():
            try:
                conn, addr = self.server_socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if not self.stop_event.is_set():
                    logger.error(f"Error in swarm accept loop: {e}")
                break

            threading.Thread(
                target=self._handle_connection,
                args=(conn, addr),
                daemon=True
            ).start()

    def _handle_connection(self, conn: socket.socket, addr):
        with self._connections_lock:
            self._connections.add(conn)
        try:
            conn.settimeout(HANDSHAKE_TIMEOUT)
            try:
                peer_id, protocol, rest = self._handshake(conn)
            except HandshakeError as e:
                logger.warning(f"Rejected peer connection from {addr[0]}:{addr[1]}: {e}")
                _send_json(conn, {'status': 'error', 'error': str(e)})
                return

            _send_json(conn, {
                'peer_id': str(self.identity.peer_id),
                'protocol': protocol,
                'status': 'ok',
            })
            logger.debug(f"Peer {peer_id.short()} connected from {addr[0]}:{addr[1]} using {protocol}")

            conn.settimeout(1.0)
            self._serve(conn, peer_id, protocol, rest)
            logger.debug(f"Peer {peer_id.short()} disconnected")

        except OSError as e:
            if not self.stop_event.is_set():
                logger.debug(f"Peer connection from {addr[0]}:{addr[1]} failed: {e}")
        finally:
            with self._connections_lock:
                self._connections.discard(conn)
            conn.close()

    def _handshake(self, conn: socket.socket) -> Tuple[PeerID, str, bytes]:
        line, rest = _read_line(conn)
        try:
            hello = json.loads(line.decode('utf-8'))
        except (UnicodeDecodeError, ValueError):
            raise HandshakeError("handshake is not valid JSON")

        if not isinstance(hello, dict):
            raise HandshakeError("handshake must be a JSON object")

        try:
            peer_id = decode_peer_id(hello.get('peer_id'))
        except MalformedInput as e:
            raise HandshakeError(str(e))

        protocol = hello.get('protocol')
        if protocol not in SUPPORTED_PROTOCOLS:
            raise HandshakeError(f"protocol not supported: {protocol}")

        return peer_id, protocol, rest

    def _serve(self, conn: socket.socket, peer_id: PeerID, protocol: str, pending: bytes):
        if pending:
            self._consume(conn, peer_id, protocol, pending)

        while not self.stop_event.is_set():
            try:
                data = conn.recv(SWARM_BUFFER_SIZE)
            except socket.timeout:
                continue
            if not data:
                return
            self._consume(conn, peer_id, protocol, data)

    def _consume(self, conn: socket.socket, peer_id: PeerID, protocol: str, data: bytes):
        self.counter.log_recv(len(data), protocol, peer_id)
        if protocol == PROTOCOL_ECHO:
            conn.sendall(data)
            self.counter.log_sent(len(data), protocol, peer_id)


def dial(address: Tuple[str, int], peer_id: PeerID, protocol: str,
         timeout: float = HANDSHAKE_TIMEOUT) -> Tuple[socket.socket, PeerID]:
    """
    Connect to a node and negotiate ``protocol``.

    Args:
        address: Node (host, port)
        peer_id: Local peer ID to announce
        protocol: Protocol to speak

    Returns:
        (connected socket, remote peer ID)

    Raises:
        HandshakeError: If the node refuses the handshake
        OSError: If the connection fails
    """
    conn = socket.create_connection(address, timeout=timeout)
    try:
        _send_json(conn, {'peer_id': str(peer_id), 'protocol': protocol})
        line, rest = _read_line(conn)
        reply = json.loads(line.decode('utf-8'))
        if reply.get('status') != 'ok':
            raise HandshakeError(reply.get('error', 'handshake refused'))
        if rest:
            raise HandshakeError("unexpected data after handshake reply")
        return conn, decode_peer_id(reply.get('peer_id'))
    except Exception:
        conn.close()
        raise
