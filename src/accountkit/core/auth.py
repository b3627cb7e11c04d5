"""
Authorization requests and payloads.

An ``AuthorizationRequest`` carries a nonce, an expiration ledger and a
signature over the payload digest. The digest binds network, nonce,
expiration and the invocation itself. The host recomputes it for the call
being made, consumes the nonce, and only then asks the authorizing account
for a verdict, so a signature cannot be replayed on another network, for
another call, or twice.
"""

from __future__ import annotations

import hashlib
import json
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence, Tuple

from .address import Address
from .crypto_utils import sign_message

AUTH_DOMAIN = b"accountkit.authorization.v1"

# Function name signed by an account deploying a contract from its own address
DEPLOY_FUNCTION = "__deploy__"

# Ledgers a signature stays valid for when the signer does not choose
DEFAULT_VALIDITY_LEDGERS = 100


class AuthVerdict(Enum):
    """Outcome of an account's authorization check."""
    ACCEPT = "accept"
    REJECT = "reject"

    @property
    def accepted(self) -> bool:
        return self is AuthVerdict.ACCEPT


@dataclass(frozen=True)
class InvocationContext:
    """One contract call being authorized."""

    contract: Address
    function: str
    args: Tuple[Any, ...] = ()

    def encode(self) -> bytes:
        """Canonical byte encoding, stable across processes."""
        body = {
            "contract": str(self.contract),
            "function": self.function,
            "args": list(self.args),
        }
        return json.dumps(
            body,
            sort_keys=True,
            separators=(",", ":"),
            default=_encode_value,
        ).encode("utf-8")


@dataclass(frozen=True)
class AuthorizationRequest:
    """
    Signed authorization presented to the host; never persisted.

    The host rebuilds the payload from its own network id, ``nonce``,
    ``expiration_ledger`` and the call actually being made, and rejects the
    request unless ``payload`` matches it.
    """

    nonce: int
    expiration_ledger: int
    payload: bytes
    signature: bytes


def _encode_value(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return {"bytes": bytes(value).hex()}
    if isinstance(value, Address):
        return {"address": str(value)}
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Cannot encode {type(value).__name__} in an invocation context")


def build_authorization_payload(
    network_id: bytes,
    nonce: int,
    expiration_ledger: int,
    invocation: InvocationContext,
) -> bytes:
    """
    Digest an account owner signs to authorize ``invocation``.

    Args:
        network_id: sha256 of the network passphrase
        nonce: Replay-protection nonce (signed 64-bit)
        expiration_ledger: Last ledger the signature is valid for (unsigned 32-bit)
        invocation: The call being authorized

    Returns:
        32-byte payload digest
    """
    if len(network_id) != 32:
        raise ValueError(f"Network id must be 32 bytes, got {len(network_id)}")
    preimage = (
        AUTH_DOMAIN
        + network_id
        + struct.pack(">q", nonce)
        + struct.pack(">I", expiration_ledger)
        + hashlib.sha256(invocation.encode()).digest()
    )
    return hashlib.sha256(preimage).digest()


def deployment_invocation(
    deployer: Address,
    blueprint: bytes,
    salt: bytes,
    init_args: Sequence[Any] = (),
) -> InvocationContext:
    """Invocation an account signs to deploy ``blueprint`` from its own address."""
    return InvocationContext(
        deployer,
        DEPLOY_FUNCTION,
        (bytes(blueprint), bytes(salt), tuple(init_args)),
    )


def sign_authorization(
    private_key: bytes,
    network_id: bytes,
    nonce: int,
    expiration_ledger: int,
    invocation: InvocationContext,
) -> AuthorizationRequest:
    """Build and sign the authorization of ``invocation`` with ``private_key``."""
    payload = build_authorization_payload(network_id, nonce, expiration_ledger, invocation)
    return AuthorizationRequest(
        nonce=nonce,
        expiration_ledger=expiration_ledger,
        payload=payload,
        signature=sign_message(private_key, payload),
    )
