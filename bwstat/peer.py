#!/usr/bin/env python3
"""
bwstat Peer Identity Module

Encodes and decodes peer identifiers.

A peer ID is a multihash of the peer's public key:

    <varint hash code> <varint digest length> <digest>

rendered as base58btc text. Small keys (Ed25519) are inlined with the
identity hash and render as "12D3KooW...", larger keys are hashed with
sha2-256 and render as "Qm...".
"""

import hashlib
from dataclasses import dataclass
from typing import Tuple

from .core.constants import (
    BASE58_ALPHABET,
    MULTIHASH_IDENTITY,
    MULTIHASH_SHA2_256,
    MULTIHASH_DIGEST_LENGTHS,
    MAX_INLINE_KEY_LENGTH,
)
from .core.exceptions import MalformedInput
from .core.types import ProtocolID

_BASE58_INDEX = {char: index for index, char in enumerate(BASE58_ALPHABET)}


# =============================================================================
# BASE58
# =============================================================================

def b58encode(data: bytes) -> str:
    """Encode bytes as base58btc text."""
    # Leading zero bytes map one-to-one to leading '1' characters
    zeros = len(data) - len(data.lstrip(b'\x00'))
    number = int.from_bytes(data, 'big')

    chars = []
    while number:
        number, remainder = divmod(number, 58)
        chars.append(BASE58_ALPHABET[remainder])

    return BASE58_ALPHABET[0] * zeros + ''.join(reversed(chars))


def b58decode(text: str) -> bytes:
    """
    Decode base58btc text.

    Raises:
        ValueError: If text contains characters outside the alphabet
    """
    number = 0
    for char in text:
        try:
            number = number * 58 + _BASE58_INDEX[char]
        except KeyError:
            raise ValueError(f"invalid base58 character {char!r}")

    zeros = len(text) - len(text.lstrip(BASE58_ALPHABET[0]))
    body = number.to_bytes((number.bit_length() + 7) // 8, 'big') if number else b''
    return b'\x00' * zeros + body


# =============================================================================
# MULTIHASH
# =============================================================================

def _read_uvarint(data: bytes, offset: int) -> Tuple[int, int]:
    """Read an unsigned varint, returning (value, next offset)."""
    value = 0
    shift = 0
    while True:
        if offset >= len(data):
            raise ValueError("truncated varint")
        byte = data[offset]
        offset += 1
        value |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return value, offset
        shift += 7
        if shift > 63:
            raise ValueError("varint overflows 64 bits")


def _write_uvarint(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def parse_multihash(data: bytes) -> Tuple[int, bytes]:
    """
    Split a multihash into (hash code, digest).

    Raises:
        ValueError: If the multihash is truncated, has trailing bytes,
                    uses an unsupported hash, or has the wrong digest length
    """
    code, offset = _read_uvarint(data, 0)
    length, offset = _read_uvarint(data, offset)
    digest = data[offset:]

    if len(digest) != length:
        raise ValueError(f"digest length {len(digest)} does not match declared {length}")

    if code not in MULTIHASH_DIGEST_LENGTHS:
        raise ValueError(f"unsupported multihash code 0x{code:02x}")

    expected = MULTIHASH_DIGEST_LENGTHS[code]
    if expected is not None and length != expected:
        raise ValueError(f"expected {expected}-byte digest for code 0x{code:02x}, got {length}")

    if code == MULTIHASH_IDENTITY and length == 0:
        raise ValueError("empty identity multihash")

    return code, digest


def encode_multihash(code: int, digest: bytes) -> bytes:
    return _write_uvarint(code) + _write_uvarint(len(digest)) + digest


# =============================================================================
# PEER ID
# =============================================================================

@dataclass(frozen=True)
class PeerID:
    """Peer identifier holding the raw multihash bytes."""
    raw: bytes

    def __str__(self) -> str:
        return b58encode(self.raw)

    def short(self) -> str:
        """Abbreviated form for log lines."""
        text = str(self)
        return f"<peer {text[:2]}*{text[-6:]}>"

    @classmethod
    def from_public_key(cls, encoded_key: bytes) -> 'PeerID':
        """
        Derive the peer ID of a protobuf-encoded public key.

        Keys small enough are inlined with the identity hash, others
        are hashed with sha2-256.
        """
        if len(encoded_key) <= MAX_INLINE_KEY_LENGTH:
            return cls(encode_multihash(MULTIHASH_IDENTITY, encoded_key))
        return cls(encode_multihash(MULTIHASH_SHA2_256, hashlib.sha256(encoded_key).digest()))


def decode_peer_id(text: str) -> PeerID:
    """
    Decode a peer ID from its canonical base58btc text form.

    Args:
        text: Peer ID string, e.g. "QmepgFW7BHEtU4pZJdxaNiv75mKLLRQnPi1KaaXmQN4V1a"

    Returns:
        PeerID

    Raises:
        MalformedInput: If the text does not decode to a supported multihash
    """
    if not isinstance(text, str) or not text.strip():
        raise MalformedInput("peer ID", text, "empty peer ID")

    text = text.strip()
    try:
        raw = b58decode(text)
        parse_multihash(raw)
    except ValueError as e:
        raise MalformedInput("peer ID", text, str(e))

    return PeerID(raw)


def validate_protocol(protocol: str) -> ProtocolID:
    """
    Validate a protocol identifier.

    Protocol identifiers are opaque; any non-empty string is accepted.

    Raises:
        MalformedInput: If the identifier is empty
    """
    if not isinstance(protocol, str) or not protocol:
        raise MalformedInput("protocol ID", protocol, "empty protocol ID")
    return ProtocolID(protocol)
