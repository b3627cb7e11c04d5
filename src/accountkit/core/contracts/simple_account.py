"""
Simple Account.

A contract account owned by exactly one ed25519 public key. The key is both
the identity and the only authority: every operation performed as this
account is gated by one signature check against it.

- No owner rotation, no deactivation
- No multi-signature, session keys or per-operation policy
- The authorization context is accepted but never inspected
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from ..auth import AuthVerdict
from ..crypto_utils import DIGEST_LENGTH, PUBLIC_KEY_LENGTH, SIGNATURE_LENGTH
from ..vm.exceptions import (
    AlreadyInitializedError,
    InvalidArgumentError,
    InvalidSignatureError,
    MalformedSignatureError,
    MissingPublicKeyError,
    SignatureError,
)
from .base import Contract

logger = logging.getLogger(__name__)

OWNER_KEY = "Owner"


class SimpleAccount(Contract):
    """Contract account authorized by a single owner key."""

    EXPORTS = ("get_owner",)

    def initialize(self, owner_key: bytes) -> None:
        """
        Store the owner public key.

        Args:
            owner_key: 32-byte ed25519 public key

        Raises:
            AlreadyInitializedError: If an owner is already stored
            InvalidArgumentError: If the key is not 32 bytes
        """
        if self.storage.has(OWNER_KEY):
            raise AlreadyInitializedError(
                "owner is already set",
                details={"account": str(self.address)},
            )
        if not isinstance(owner_key, (bytes, bytearray)) or len(owner_key) != PUBLIC_KEY_LENGTH:
            raise InvalidArgumentError(
                f"Owner key must be {PUBLIC_KEY_LENGTH} bytes",
                details={"account": str(self.address)},
            )

        self.storage.set(OWNER_KEY, bytes(owner_key))

        logger.info(
            "Account initialized",
            extra={
                "event": "account.initialized",
                "account": self.address.short(16),
                "owner": bytes(owner_key).hex()[:16],
            }
        )

    def get_owner(self) -> Optional[bytes]:
        """Owner public key, or None before initialization."""
        return self.storage.get(OWNER_KEY, None)

    # ==================== Authorization ====================

    def check_authorization(
        self,
        payload_digest: bytes,
        signature: bytes,
        context: Sequence[Any] = (),
    ) -> AuthVerdict:
        """
        Decide whether ``signature`` authorizes an operation as this account.

        Called by the host whenever an operation names this account as its
        authority. ``context`` describes the operations being authorized and
        does not influence the verdict.

        Returns:
            AuthVerdict.ACCEPT if the owner signed ``payload_digest``,
            AuthVerdict.REJECT otherwise
        """
        try:
            self._validate_signature(payload_digest, signature)
        except SignatureError as exc:
            logger.warning(
                "Authorization rejected",
                extra={
                    "event": "account.auth_rejected",
                    "account": self.address.short(16),
                    "reason": type(exc).__name__,
                    "error": exc.message,
                }
            )
            return AuthVerdict.REJECT
        return AuthVerdict.ACCEPT

    # ==================== Internal ====================

    def _validate_signature(self, payload_digest: bytes, signature: bytes) -> bool:
        """
        Validate an ed25519 signature over ``payload_digest`` by the owner.

        Returns:
            True if the signature is valid

        Raises:
            MissingPublicKeyError: If no owner key is stored
            MalformedSignatureError: If the digest or signature format is invalid
            InvalidSignatureError: If signature verification fails
            SignatureError: If a cryptographic error occurs during verification
        """
        account = self.address.short(16)

        owner_key = self.get_owner()
        if not owner_key:
            logger.error(
                "Signature validation failed: no owner key",
                extra={
                    "event": "account.signature_validation_failed",
                    "account": account,
                    "reason": "no_public_key",
                }
            )
            raise MissingPublicKeyError(f"Account {account} has no owner key set")

        if not isinstance(signature, (bytes, bytearray)) or not signature:
            raise MalformedSignatureError("Missing signature")

        if len(signature) != SIGNATURE_LENGTH:
            logger.error(
                "Signature validation failed: invalid signature length",
                extra={
                    "event": "account.signature_validation_failed",
                    "account": account,
                    "reason": "invalid_signature_length",
                    "expected": SIGNATURE_LENGTH,
                    "actual": len(signature),
                }
            )
            raise MalformedSignatureError(
                f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)} bytes"
            )

        if not isinstance(payload_digest, (bytes, bytearray)) or len(payload_digest) != DIGEST_LENGTH:
            raise MalformedSignatureError(f"Signature payload must be a {DIGEST_LENGTH}-byte digest")

        try:
            is_valid = self.env.crypto.ed25519_verify(
                owner_key, bytes(payload_digest), bytes(signature)
            )
        except ValueError as e:
            raise MalformedSignatureError(f"Invalid signature format: {e}")
        except (TypeError, AttributeError, RuntimeError) as e:
            logger.error(
                "Signature validation error: cryptographic failure",
                extra={
                    "event": "account.signature_validation_error",
                    "account": account,
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
                exc_info=True
            )
            raise SignatureError(f"Signature verification failed: {e}") from e

        if not is_valid:
            raise InvalidSignatureError(f"Signature does not match owner of account {account}")

        logger.debug(
            "Signature validation succeeded",
            extra={
                "event": "account.signature_validation_success",
                "account": account,
            }
        )
        return True
