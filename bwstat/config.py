#!/usr/bin/env python3
"""
bwstat Configuration Module

Holds path and logging defaults and loads the node configuration file.
Module-level values may be overridden from the command line before any
component reads them.
"""

import os
import json
import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from .core.constants import (
    DEFAULT_LISTEN_HOST,
    DEFAULT_LISTEN_PORT,
    DEFAULT_TICK_INTERVAL,
    DEFAULT_MAX_PEERS,
    DEFAULT_MAX_PROTOCOLS,
)
from .core.exceptions import ConfigParseError, ConfigValidationError

# Paths to config files
CONFIG_DIR = os.environ.get("BWSTAT_CONFIG_DIR", os.path.expanduser("~/.bwstat"))
NODE_CONFIG_FILE = os.path.join(CONFIG_DIR, "node.json")
IDENTITY_FILE = os.path.join(CONFIG_DIR, "identity.pem")

# Daemon settings
PID_FILE = os.path.join(CONFIG_DIR, "bwstat.pid")
CONTROL_SOCKET = os.environ.get("BWSTAT_CONTROL_SOCKET", "/tmp/bwstat_control.sock")
LOG_FILE = os.path.join(CONFIG_DIR, "logs", "bwstat.log")
LOG_LEVEL = "INFO"

# Log rotation settings
LOG_MAX_SIZE = 10 * 1024 * 1024  # 10 MB
LOG_BACKUP_COUNT = 5
LOG_COMPRESS = False

logger = logging.getLogger("bwstat")


def set_config_dir(path: str):
    """Point every config-dir-relative path at ``path``."""
    global CONFIG_DIR, NODE_CONFIG_FILE, IDENTITY_FILE, PID_FILE, LOG_FILE

    CONFIG_DIR = os.path.abspath(path)
    NODE_CONFIG_FILE = os.path.join(CONFIG_DIR, "node.json")
    IDENTITY_FILE = os.path.join(CONFIG_DIR, "identity.pem")
    PID_FILE = os.path.join(CONFIG_DIR, "bwstat.pid")
    LOG_FILE = os.path.join(CONFIG_DIR, "logs", "bwstat.log")


def ensure_config_dir():
    """Create the configuration directory if it doesn't exist."""
    if not os.path.exists(CONFIG_DIR):
        os.makedirs(CONFIG_DIR, exist_ok=True)
        logger.info(f"Created configuration directory: {CONFIG_DIR}")


@dataclass
class NodeConfig:
    """
    Node configuration.

    Attributes:
        listen_host: Address the swarm listener binds to
        listen_port: Port the swarm listener binds to (0 = any free port)
        online: Start with networking enabled; offline nodes refuse
                bandwidth queries
        tick_interval: Seconds between meter rate updates
        max_peers: Peers tracked before LRU eviction
        max_protocols: Protocols tracked before LRU eviction
    """
    listen_host: str = DEFAULT_LISTEN_HOST
    listen_port: int = DEFAULT_LISTEN_PORT
    online: bool = True
    tick_interval: float = DEFAULT_TICK_INTERVAL
    max_peers: int = DEFAULT_MAX_PEERS
    max_protocols: int = DEFAULT_MAX_PROTOCOLS

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self):
        if not isinstance(self.listen_host, str) or not self.listen_host:
            raise ConfigValidationError('listen_host', self.listen_host, "must be a non-empty string")

        if not isinstance(self.listen_port, int) or not (0 <= self.listen_port <= 65535):
            raise ConfigValidationError('listen_port', self.listen_port, "must be 0-65535")

        if not isinstance(self.online, bool):
            raise ConfigValidationError('online', self.online, "must be true or false")

        if not isinstance(self.tick_interval, (int, float)) or self.tick_interval <= 0:
            raise ConfigValidationError('tick_interval', self.tick_interval, "must be positive")

        for field_name in ('max_peers', 'max_protocols'):
            value = getattr(self, field_name)
            if not isinstance(value, int) or value < 1:
                raise ConfigValidationError(field_name, value, "must be a positive integer")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'NodeConfig':
        """Create from dictionary, ignoring unknown keys."""
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        unknown = sorted(k for k in data if k not in known_fields)
        if unknown:
            logger.warning(f"Ignoring unknown node config keys: {', '.join(unknown)}")
        filtered = {k: v for k, v in data.items() if k in known_fields}
        return cls(**filtered)

    def __str__(self) -> str:
        return (
            f"NodeConfig(listen={self.listen_host}:{self.listen_port}, "
            f"online={self.online}, tick={self.tick_interval}s)"
        )


def load_node_config(config_path: Optional[str] = None) -> NodeConfig:
    """
    Load node configuration from file.

    A missing file yields the defaults.

    Args:
        config_path: Path to configuration file (default: NODE_CONFIG_FILE)

    Returns:
        NodeConfig instance

    Raises:
        ConfigParseError: If the file is not a JSON object
        ConfigValidationError: If a value is invalid
    """
    config_path = config_path or NODE_CONFIG_FILE

    if not os.path.exists(config_path):
        logger.debug(f"Node config not found at {config_path}, using defaults")
        return NodeConfig()

    try:
        with open(config_path, 'r') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigParseError(config_path, str(e))

    if not isinstance(data, dict):
        raise ConfigParseError(config_path, "expected a JSON object")

    config = NodeConfig.from_dict(data)
    logger.info(f"Loaded node config from {config_path}: {config}")
    return config


def save_node_config(config: NodeConfig, config_path: Optional[str] = None):
    """
    Save node configuration to file.

    Args:
        config: Configuration to save
        config_path: Path to configuration file (default: NODE_CONFIG_FILE)
    """
    config_path = config_path or NODE_CONFIG_FILE

    directory = os.path.dirname(config_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    # Write atomically via temp file
    temp_path = config_path + '.tmp'
    with open(temp_path, 'w') as f:
        json.dump(config.to_dict(), f, indent=2)
    os.replace(temp_path, config_path)

    logger.info(f"Saved node config to {config_path}")
