#!/usr/bin/env python3
"""
bwstat Core Constants

Centralized constants for peer identity encoding, duration parsing,
network defaults and the control socket protocol.

All magic numbers and protocol-specific values should be defined here
to ensure consistency across the codebase.
"""

# =============================================================================
# PEER IDENTITY CONSTANTS
# =============================================================================

# Bitcoin base58 alphabet (no 0, O, I, l)
BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"

# Multihash function codes
MULTIHASH_IDENTITY = 0x00
MULTIHASH_SHA2_256 = 0x12

# Accepted multihash functions and their required digest length (None = any)
MULTIHASH_DIGEST_LENGTHS = {
    MULTIHASH_IDENTITY: None,
    MULTIHASH_SHA2_256: 32,
}

# Public keys up to this size are inlined with the identity hash
MAX_INLINE_KEY_LENGTH = 42

# Protobuf-encoded Ed25519 public key prefix: field 1 (KeyType) = 1,
# field 2 (Data) length-delimited with 32 bytes
ED25519_KEY_TYPE = 1
ED25519_PUBKEY_PROTOBUF_PREFIX = b'\x08\x01\x12\x20'
ED25519_PUBKEY_LENGTH = 32


# =============================================================================
# DURATION CONSTANTS
# =============================================================================

# Unit suffix -> seconds
DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,  # micro sign
    "μs": 1e-6,  # greek mu
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

DEFAULT_POLL_INTERVAL = "1s"

# Longest representable duration: int64 nanoseconds
MAX_DURATION_SECONDS = (2 ** 63 - 1) / 1e9


# =============================================================================
# PROTOCOL IDENTIFIERS
# =============================================================================

PROTOCOL_ECHO = "/bwstat/echo/1.0.0"
PROTOCOL_SINK = "/bwstat/sink/1.0.0"

SUPPORTED_PROTOCOLS = (PROTOCOL_ECHO, PROTOCOL_SINK)


# =============================================================================
# NETWORK CONSTANTS
# =============================================================================

DEFAULT_LISTEN_HOST = "127.0.0.1"
DEFAULT_LISTEN_PORT = 4011

# Read buffer for swarm connections
SWARM_BUFFER_SIZE = 65536

# Handshake line limit
MAX_HANDSHAKE_SIZE = 4096

# Seconds allowed for a peer to complete its handshake
HANDSHAKE_TIMEOUT = 5.0


# =============================================================================
# METERING CONSTANTS
# =============================================================================

# Meter sweep interval in seconds
DEFAULT_TICK_INTERVAL = 1.0

# EWMA time constant in seconds for rate smoothing
RATE_TIME_CONSTANT = 40.0

# Maximum tracked entries before LRU eviction
DEFAULT_MAX_PEERS = 10000
DEFAULT_MAX_PROTOCOLS = 1000


# =============================================================================
# CONTROL SOCKET CONSTANTS
# =============================================================================

STATUS_SUCCESS = 0
STATUS_ERROR = 1
STATUS_NOT_FOUND = 2
STATUS_INVALID_REQUEST = 3

# How often blocked hand-offs re-check for cancellation (seconds)
DELIVERY_POLL_INTERVAL = 0.1
