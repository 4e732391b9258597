#!/usr/bin/env python3
"""
bwstat Peer ID Tests

Tests for base58 and multihash encoding of peer identifiers.
"""

import os
import sys
import hashlib
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from bwstat.core.constants import MULTIHASH_IDENTITY, MULTIHASH_SHA2_256
from bwstat.core.exceptions import MalformedInput
from bwstat.peer import (
    PeerID,
    b58encode,
    b58decode,
    decode_peer_id,
    encode_multihash,
    parse_multihash,
    validate_protocol,
)

# sha2-256 peer ID
QM_PEER = "QmepgFW7BHEtU4pZJdxaNiv75mKLLRQnPi1KaaXmQN4V1a"


class Base58Tests(unittest.TestCase):
    """Tests for base58btc encoding"""

    def test_known_values(self):
        self.assertEqual(b58encode(b"hello world"), "StV1DL6CwTryKyV")
        self.assertEqual(b58decode("StV1DL6CwTryKyV"), b"hello world")

    def test_leading_zeros(self):
        """Leading zero bytes map to leading '1' characters"""
        self.assertEqual(b58encode(b"\x00\x00\x01"), "112")
        self.assertEqual(b58decode("112"), b"\x00\x00\x01")
        self.assertEqual(b58encode(b""), "")
        self.assertEqual(b58decode(""), b"")

    def test_invalid_character(self):
        for text in ("0abc", "OIl", "abc!"):
            with self.subTest(text=text):
                with self.assertRaises(ValueError):
                    b58decode(text)


class MultihashTests(unittest.TestCase):
    """Tests for multihash parsing"""

    def test_sha256(self):
        digest = hashlib.sha256(b"key").digest()
        code, parsed = parse_multihash(encode_multihash(MULTIHASH_SHA2_256, digest))
        self.assertEqual(code, MULTIHASH_SHA2_256)
        self.assertEqual(parsed, digest)

    def test_wrong_digest_length(self):
        with self.assertRaises(ValueError):
            parse_multihash(encode_multihash(MULTIHASH_SHA2_256, b"\x01" * 20))

    def test_truncated(self):
        raw = encode_multihash(MULTIHASH_SHA2_256, b"\x01" * 32)
        with self.assertRaises(ValueError):
            parse_multihash(raw[:-1])
        with self.assertRaises(ValueError):
            parse_multihash(b"\x12")

    def test_unsupported_code(self):
        with self.assertRaises(ValueError):
            parse_multihash(encode_multihash(0x13, b"\x01" * 64))

    def test_empty_identity(self):
        with self.assertRaises(ValueError):
            parse_multihash(encode_multihash(MULTIHASH_IDENTITY, b""))


class PeerIDTests(unittest.TestCase):
    """Tests for PeerID decoding and derivation"""

    def test_decode_sha256_peer(self):
        peer = decode_peer_id(QM_PEER)
        self.assertEqual(str(peer), QM_PEER)
        code, digest = parse_multihash(peer.raw)
        self.assertEqual(code, MULTIHASH_SHA2_256)
        self.assertEqual(len(digest), 32)

    def test_decode_strips_whitespace(self):
        self.assertEqual(decode_peer_id(f"  {QM_PEER}\n"), decode_peer_id(QM_PEER))

    def test_equal_ids_are_hashable_keys(self):
        counts = {decode_peer_id(QM_PEER): 1}
        self.assertEqual(counts[decode_peer_id(QM_PEER)], 1)

    def test_small_key_inlined(self):
        """Keys up to 42 bytes use the identity hash"""
        key = b"\x08\x01\x12\x20" + b"\x07" * 32
        peer = PeerID.from_public_key(key)
        code, digest = parse_multihash(peer.raw)
        self.assertEqual(code, MULTIHASH_IDENTITY)
        self.assertEqual(digest, key)
        self.assertTrue(str(peer).startswith("12D3KooW"))
        self.assertEqual(decode_peer_id(str(peer)), peer)

    def test_large_key_hashed(self):
        key = b"\x08\x00\x12" + b"\x05" * 300
        peer = PeerID.from_public_key(key)
        code, digest = parse_multihash(peer.raw)
        self.assertEqual(code, MULTIHASH_SHA2_256)
        self.assertEqual(digest, hashlib.sha256(key).digest())
        self.assertTrue(str(peer).startswith("Qm"))

    def test_malformed(self):
        for text in ("", "   ", "not-a-peer", "QmShort", "0OIl", None, 42):
            with self.subTest(text=text):
                with self.assertRaises(MalformedInput):
                    decode_peer_id(text)

    def test_malformed_message_names_field(self):
        with self.assertRaises(MalformedInput) as ctx:
            decode_peer_id("QmShort")
        self.assertEqual(ctx.exception.field, "peer ID")
        self.assertIn("QmShort", str(ctx.exception))

    def test_short_form(self):
        short = decode_peer_id(QM_PEER).short()
        self.assertTrue(short.startswith("<peer Qm*"))
        self.assertTrue(short.endswith(QM_PEER[-6:] + ">"))


class ProtocolTests(unittest.TestCase):

    def test_any_non_empty_string(self):
        self.assertEqual(validate_protocol("/ipfs/bitswap"), "/ipfs/bitswap")
        self.assertEqual(validate_protocol("anything"), "anything")

    def test_empty(self):
        with self.assertRaises(MalformedInput):
            validate_protocol("")


if __name__ == "__main__":
    unittest.main()
