#!/usr/bin/env python3
"""
bwstat Node Identity

Each node owns an Ed25519 key pair. Its peer ID is derived from the
protobuf-encoded public key, so the same key always yields the same ID.
The private key is kept PEM-encoded in the configuration directory.
"""

import os
import logging
from typing import Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from .core.constants import ED25519_PUBKEY_PROTOBUF_PREFIX
from .core.exceptions import IdentityError
from .peer import PeerID

logger = logging.getLogger("bwstat")


class NodeIdentity:
    """Private key and derived peer ID of a node."""

    def __init__(self, private_key: Ed25519PrivateKey):
        self.private_key = private_key
        self.peer_id = PeerID.from_public_key(self.public_key_bytes())

    def public_key_bytes(self) -> bytes:
        """Protobuf-encoded public key."""
        raw = self.private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw
        )
        return ED25519_PUBKEY_PROTOBUF_PREFIX + raw

    @classmethod
    def generate(cls) -> 'NodeIdentity':
        return cls(Ed25519PrivateKey.generate())

    def save(self, key_path: str):
        """Write the private key to ``key_path`` readable by the owner only."""
        pem = self.private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption()
        )
        directory = os.path.dirname(key_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        fd = os.open(key_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, 'wb') as f:
            f.write(pem)

    @classmethod
    def load(cls, key_path: str) -> 'NodeIdentity':
        """
        Read a private key written by ``save``.

        Raises:
            IdentityError: If the file is unreadable or not an Ed25519 key
        """
        try:
            with open(key_path, 'rb') as f:
                private_key = serialization.load_pem_private_key(f.read(), password=None)
        except (OSError, ValueError, TypeError) as e:
            raise IdentityError(key_path, str(e))

        if not isinstance(private_key, Ed25519PrivateKey):
            raise IdentityError(key_path, f"unsupported key type {type(private_key).__name__}")

        return cls(private_key)


def load_or_create_identity(key_path: Optional[str] = None) -> NodeIdentity:
    """
    Load the node identity, generating and saving a new one on first use.

    Args:
        key_path: Key file (default: config.IDENTITY_FILE)
    """
    if key_path is None:
        from . import config
        key_path = config.IDENTITY_FILE

    if os.path.exists(key_path):
        identity = NodeIdentity.load(key_path)
        logger.info(f"Loaded node identity {identity.peer_id}")
        return identity

    identity = NodeIdentity.generate()
    try:
        identity.save(key_path)
    except OSError as e:
        raise IdentityError(key_path, str(e))
    logger.info(f"Generated node identity {identity.peer_id} ({key_path})")
    return identity
