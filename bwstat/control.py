#!/usr/bin/env python3
"""
bwstat Control Socket Module

Provides inter-process communication between CLI commands and the running daemon.
Uses a Unix domain socket for secure, local communication.

Architecture:
- Daemon listens on control socket
- CLI commands connect and send one JSON request line
- Daemon answers with one or more JSON response lines; bandwidth
  polls stream one line per sample until the client disconnects

Supported commands:
- ping: Liveness check
- id: Node peer ID and listen address
- stats (action=bw): Bandwidth samples for totals, a peer, or a protocol
"""

import os
import json
import socket
import threading
import logging
import time
from typing import Any, Dict, Iterator, Optional

from .core.constants import (
    DEFAULT_POLL_INTERVAL,
    STATUS_SUCCESS,
    STATUS_ERROR,
    STATUS_NOT_FOUND,
    STATUS_INVALID_REQUEST,
)
from .core.exceptions import (
    BwStatError,
    QueryError,
    NotOperational,
    ControlProtocolError,
    REMOTE_ERRORS,
)
from .metering.reporter import Reporter
from .stats.api import query_bandwidth

logger = logging.getLogger("bwstat")

# Longest accepted request line
MAX_REQUEST_SIZE = 65536


class ControlSocket:
    """Control socket for daemon communication"""

    # Default socket path
    SOCKET_PATH = "/tmp/bwstat_control.sock"

    # Request timeout
    REQUEST_TIMEOUT = 5.0

    # Response codes
    SUCCESS = STATUS_SUCCESS
    ERROR = STATUS_ERROR
    NOT_FOUND = STATUS_NOT_FOUND
    INVALID_REQUEST = STATUS_INVALID_REQUEST

    def __init__(self, reporter: Reporter, socket_path: str = None,
                 node_info: Optional[Dict[str, Any]] = None):
        """
        Initialize control socket

        Args:
            reporter: Metering subsystem that bandwidth queries read from
            socket_path: Path to Unix domain socket
            node_info: Static node details returned by the 'id' command
        """
        self.reporter = reporter
        self.socket_path = socket_path or self.SOCKET_PATH
        self.node_info = node_info or {}
        self.server_socket: Optional[socket.socket] = None
        self.stop_event = threading.Event()
        self.listen_thread: Optional[threading.Thread] = None

    # =========================================================================
    # SERVER SIDE
    # =========================================================================

    def start_server(self) -> bool:
        """
        Start the control socket server (daemon side)

        Returns:
            True if successful, False otherwise
        """
        try:
            # Remove stale socket file
            if os.path.exists(self.socket_path):
                os.unlink(self.socket_path)

            self.server_socket = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            self.server_socket.bind(self.socket_path)
            self.server_socket.listen(5)
            self.server_socket.settimeout(1.0)

            # Only the owner may query the daemon
            os.chmod(self.socket_path, 0o600)

            self.stop_event.clear()
            self.listen_thread = threading.Thread(
                target=self._listen_loop, name="bwstat-control", daemon=True
            )
            self.listen_thread.start()

            logger.info(f"Control socket started: {self.socket_path}")
            return True

        except OSError as e:
            logger.error(f"Failed to start control socket: {e}")
            if self.server_socket:
                self.server_socket.close()
                self.server_socket = None
            return False

    def stop_server(self):
        """Stop the control socket server"""
        logger.info("Stopping control socket server...")

        self.stop_event.set()

        if self.listen_thread and self.listen_thread.is_alive():
            self.listen_thread.join(timeout=2.0)

        if self.server_socket:
            self.server_socket.close()
            self.server_socket = None

        if os.path.exists(self.socket_path):
            try:
                os.unlink(self.socket_path)
            except OSError as e:
                logger.warning(f"Could not remove control socket {self.socket_path}: {e}")

        logger.info("Control socket stopped")

    def _listen_loop(self):
        """Main listening loop for control socket"""
        while not self.stop_event.is_set():
            try:
                conn, _ = self.server_socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if not self.stop_event.is_set():
                    logger.error(f"Error in control socket listen loop: {e}")
                    time.sleep(1)
                continue

            threading.Thread(
                target=self._handle_connection,
                args=(conn,),
                daemon=True
            ).start()

    def _handle_connection(self, conn: socket.socket):
        """
        Handle incoming control socket connection

        Args:
            conn: Client connection socket
        """
        try:
            conn.settimeout(self.REQUEST_TIMEOUT)

            with conn.makefile('rb') as reader:
                line = reader.readline(MAX_REQUEST_SIZE)
            if not line:
                return

            try:
                request = json.loads(line.decode('utf-8'))
            except (UnicodeDecodeError, ValueError) as e:
                logger.warning(f"Invalid JSON in control request: {e}")
                self._send(conn, {
                    'status': self.INVALID_REQUEST,
                    'error': 'Invalid JSON format'
                })
                return

            if not isinstance(request, dict):
                self._send(conn, {
                    'status': self.INVALID_REQUEST,
                    'error': 'Request must be a JSON object'
                })
                return

            self._process_request(conn, request)

        except OSError as e:
            logger.debug(f"Control connection closed: {e}")
        except Exception as e:
            logger.error(f"Error handling control connection: {e}")
            try:
                self._send(conn, {'status': self.ERROR, 'error': str(e)})
            except OSError:
                pass
        finally:
            conn.close()

    @staticmethod
    def _send(conn: socket.socket, response: Dict[str, Any]):
        conn.sendall((json.dumps(response) + '\n').encode('utf-8'))

    def _process_request(self, conn: socket.socket, request: Dict[str, Any]):
        """
        Route a control request and write its response(s)

        Args:
            conn: Client connection socket
            request: Request dictionary with 'command' and optional parameters
        """
        command = request.get('command')

        if not command:
            self._send(conn, {
                'status': self.INVALID_REQUEST,
                'error': 'Missing command field'
            })
            return

        logger.debug(f"Processing control command: {command}")

        if command == 'ping':
            self._send(conn, {'status': self.SUCCESS, 'message': 'pong'})
        elif command == 'id':
            self._send(conn, {'status': self.SUCCESS, 'data': self.node_info})
        elif command == 'stats':
            self._handle_stats(conn, request)
        else:
            self._send(conn, {
                'status': self.INVALID_REQUEST,
                'error': f'Unknown command: {command}'
            })

    def _handle_stats(self, conn: socket.socket, request: Dict[str, Any]):
        """Handle statistics requests"""
        action = request.get('action', 'bw')

        if action != 'bw':
            self._send(conn, {
                'status': self.INVALID_REQUEST,
                'error': f'Unknown stats action: {action}'
            })
            return

        self._handle_stats_bw(conn, request)

    def _handle_stats_bw(self, conn: socket.socket, request: Dict[str, Any]):
        """Stream bandwidth samples until the stream ends or the client leaves"""
        cancel = threading.Event()

        try:
            samples = query_bandwidth(
                self.reporter,
                peer=request.get('peer'),
                proto=request.get('proto'),
                poll=bool(request.get('poll', False)),
                interval=request.get('interval', DEFAULT_POLL_INTERVAL),
                cancel=cancel
            )
        except QueryError as e:
            logger.info(f"Rejected bandwidth query: {e}")
            self._send(conn, {
                'status': self.INVALID_REQUEST,
                'error': str(e),
                'error_type': type(e).__name__
            })
            return

        # Watch for the client hanging up while the stream waits
        conn.settimeout(1.0)
        watcher = threading.Thread(
            target=self._watch_disconnect,
            args=(conn, cancel),
            daemon=True
        )
        watcher.start()

        sent = 0
        try:
            with samples:
                for sample in samples:
                    self._send(conn, {'status': self.SUCCESS, 'data': sample.to_dict()})
                    sent += 1
        finally:
            cancel.set()
            logger.debug(f"Bandwidth query finished after {sent} samples")

    def _watch_disconnect(self, conn: socket.socket, cancel: threading.Event):
        while not cancel.is_set():
            if self.stop_event.is_set():
                break
            try:
                if not conn.recv(1024):
                    break
            except socket.timeout:
                continue
            except OSError:
                break
        cancel.set()

    # =========================================================================
    # CLIENT SIDE
    # =========================================================================

    @staticmethod
    def _connect(socket_path: str, timeout: Optional[float]) -> socket.socket:
        if not os.path.exists(socket_path):
            raise NotOperational()

        client_socket = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        client_socket.settimeout(timeout)
        try:
            client_socket.connect(socket_path)
        except (ConnectionRefusedError, FileNotFoundError):
            client_socket.close()
            raise NotOperational()
        except OSError:
            client_socket.close()
            raise
        return client_socket

    @staticmethod
    def _raise_for_status(response: Dict[str, Any]):
        status = response.get('status')
        if status == STATUS_SUCCESS:
            return

        message = response.get('error', 'unknown error')
        error_class = REMOTE_ERRORS.get(response.get('error_type'))
        if error_class is not None:
            raise error_class.from_message(message)
        raise BwStatError(message)

    @staticmethod
    def stream_command(command: str, params: Dict[str, Any] = None,
                       socket_path: str = None,
                       timeout: Optional[float] = None) -> Iterator[Dict[str, Any]]:
        """
        Send a command and yield each response line (client side)

        Args:
            command: Command name
            params: Optional command parameters
            socket_path: Path to control socket
            timeout: Per-read timeout in seconds (None blocks)

        Yields:
            Successful response dictionaries

        Raises:
            NotOperational: If no daemon is listening
            QueryError: If the daemon rejected the query
            ControlProtocolError: If a response line is not valid JSON
        """
        socket_path = socket_path or ControlSocket.SOCKET_PATH

        request = {'command': command, 'timestamp': time.time()}
        if params:
            request.update(params)

        client_socket = ControlSocket._connect(socket_path, timeout)
        try:
            client_socket.sendall((json.dumps(request) + '\n').encode('utf-8'))

            with client_socket.makefile('rb') as reader:
                for line in reader:
                    try:
                        response = json.loads(line.decode('utf-8'))
                    except (UnicodeDecodeError, ValueError) as e:
                        raise ControlProtocolError(str(e))
                    if not isinstance(response, dict):
                        raise ControlProtocolError("response is not a JSON object")

                    ControlSocket._raise_for_status(response)
                    yield response
        finally:
            client_socket.close()

    @staticmethod
    def send_command(command: str, params: Dict[str, Any] = None,
                     socket_path: str = None, timeout: float = REQUEST_TIMEOUT) -> Dict[str, Any]:
        """
        Send a command and return its first response (client side)

        Raises:
            NotOperational: If no daemon is listening
            ControlProtocolError: If the daemon closed without answering
        """
        responses = ControlSocket.stream_command(command, params, socket_path, timeout)
        try:
            for response in responses:
                return response
        finally:
            responses.close()
        raise ControlProtocolError("daemon closed the connection without a response")


# Global control socket instance
_control_socket: Optional[ControlSocket] = None


def get_control_socket() -> Optional[ControlSocket]:
    """Get the global control socket instance"""
    return _control_socket


def initialize_control_socket(reporter: Reporter, socket_path: str = None,
                              node_info: Optional[Dict[str, Any]] = None) -> bool:
    """
    Initialize the global control socket

    Returns:
        True if successful, False otherwise
    """
    global _control_socket

    _control_socket = ControlSocket(reporter, socket_path, node_info)
    if not _control_socket.start_server():
        _control_socket = None
        return False
    return True


def shutdown_control_socket():
    """Shutdown the global control socket"""
    global _control_socket

    if _control_socket:
        _control_socket.stop_server()
        _control_socket = None
