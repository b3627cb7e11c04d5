"""Utility helpers for ed25519 key management, signatures and hashing."""

from __future__ import annotations

import hashlib

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

PUBLIC_KEY_LENGTH = 32
PRIVATE_KEY_LENGTH = 32
SIGNATURE_LENGTH = 64
DIGEST_LENGTH = 32

def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()

def compute_blueprint_id(code: bytes) -> bytes:
    """Blueprint id of uploaded contract code: its sha256."""
    return sha256(code)

def _private_key_to_bytes(private_key: Ed25519PrivateKey) -> bytes:
    return private_key.private_bytes(
        serialization.Encoding.Raw,
        serialization.PrivateFormat.Raw,
        serialization.NoEncryption(),
    )

def _public_key_to_bytes(public_key: Ed25519PublicKey) -> bytes:
    return public_key.public_bytes(serialization.Encoding.Raw, serialization.PublicFormat.Raw)

def load_private_key(private_key: bytes) -> Ed25519PrivateKey:
    if len(private_key) != PRIVATE_KEY_LENGTH:
        raise ValueError(f"Private key must be {PRIVATE_KEY_LENGTH} bytes, got {len(private_key)}")
    return Ed25519PrivateKey.from_private_bytes(private_key)

def load_public_key(public_key: bytes) -> Ed25519PublicKey:
    if len(public_key) != PUBLIC_KEY_LENGTH:
        raise ValueError(f"Public key must be {PUBLIC_KEY_LENGTH} bytes, got {len(public_key)}")
    return Ed25519PublicKey.from_public_bytes(public_key)

def generate_ed25519_keypair() -> tuple[bytes, bytes]:
    """Generate a random keypair as (private_key, public_key) raw bytes."""
    private_key = Ed25519PrivateKey.generate()
    return _private_key_to_bytes(private_key), _public_key_to_bytes(private_key.public_key())

def deterministic_keypair_from_seed(seed: bytes) -> tuple[bytes, bytes]:
    """Keypair whose private key is the first 32 bytes of ``seed`` (zero padded)."""
    if len(seed) < PRIVATE_KEY_LENGTH:
        seed = seed.ljust(PRIVATE_KEY_LENGTH, b"\x00")
    private_key = Ed25519PrivateKey.from_private_bytes(seed[:PRIVATE_KEY_LENGTH])
    return _private_key_to_bytes(private_key), _public_key_to_bytes(private_key.public_key())

def derive_public_key(private_key: bytes) -> bytes:
    return _public_key_to_bytes(load_private_key(private_key).public_key())

def sign_message(private_key: bytes, message: bytes) -> bytes:
    """Sign ``message`` and return the raw 64-byte ed25519 signature."""
    return load_private_key(private_key).sign(message)

def verify_signature(public_key: bytes, message: bytes, signature: bytes) -> bool:
    """
    Verify an ed25519 signature.

    Returns False for a well-formed signature that does not verify, or one
    of the wrong length.

    Raises:
        ValueError: If the public key is not 32 bytes or not a valid point
    """
    verifier = load_public_key(public_key)
    if len(signature) != SIGNATURE_LENGTH:
        return False
    try:
        verifier.verify(signature, message)
        return True
    except InvalidSignature:
        return False

def sign_message_hex(private_hex: str, message: bytes) -> str:
    return sign_message(bytes.fromhex(private_hex), message).hex()

def verify_signature_hex(public_hex: str, message: bytes, signature_hex: str) -> bool:
    return verify_signature(bytes.fromhex(public_hex), message, bytes.fromhex(signature_hex))
