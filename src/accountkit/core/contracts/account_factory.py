"""
Account Factory.

Deploys ``SimpleAccount`` instances at addresses derived from the factory's
own address and the owner's public key, so a user's account address is known
before it exists.

``create`` requires no authorization: anyone may deploy the account for any
key, including a third party paying for someone else's deployment. The
address is fixed by (factory, key) and only the key holder can pass the
account's authorization check afterwards.
"""

from __future__ import annotations

import logging

from ..address import Address
from ..crypto_utils import PUBLIC_KEY_LENGTH
from ..vm.exceptions import (
    AlreadyInitializedError,
    ContractExistsError,
    InvalidArgumentError,
    MissingBlueprintError,
)
from .base import Contract

logger = logging.getLogger(__name__)

BLUEPRINT_KEY = "wasm"
BLUEPRINT_LENGTH = 32


class AccountFactory(Contract):
    """Deterministic, permissionless deployer of single-key accounts."""

    EXPORTS = ("create", "get_address", "get_blueprint")

    def initialize(self, blueprint_id: bytes) -> None:
        """
        Store the blueprint used for every account this factory deploys.

        Args:
            blueprint_id: 32-byte id of the uploaded account code

        Raises:
            AlreadyInitializedError: If a blueprint is already stored
            InvalidArgumentError: If the id is not 32 bytes
        """
        if self.storage.has(BLUEPRINT_KEY):
            raise AlreadyInitializedError(
                "blueprint is already set",
                details={"factory": str(self.address)},
            )
        if not isinstance(blueprint_id, (bytes, bytearray)) or len(blueprint_id) != BLUEPRINT_LENGTH:
            raise InvalidArgumentError(f"Blueprint id must be {BLUEPRINT_LENGTH} bytes")

        self.storage.set(BLUEPRINT_KEY, bytes(blueprint_id))

        logger.info(
            "Factory initialized",
            extra={
                "event": "factory.initialized",
                "factory": self.address.short(16),
                "blueprint": bytes(blueprint_id).hex()[:16],
            }
        )

    def create(self, owner_key: bytes) -> Address:
        """
        Deploy the account owned by ``owner_key``.

        Args:
            owner_key: 32-byte ed25519 public key, used as salt and as the
                account's only constructor argument

        Returns:
            Address of the new account

        Raises:
            MissingBlueprintError: If the factory has no blueprint
            ContractExistsError: If the account for this key already exists
        """
        owner_key = self._require_key(owner_key)
        blueprint = self.get_blueprint()

        try:
            address = self.env.deployer.deploy(blueprint, owner_key, (owner_key,))
        except ContractExistsError as exc:
            logger.info(
                "Account already deployed",
                extra={
                    "event": "factory.account_exists",
                    "factory": self.address.short(16),
                    "address": (exc.address or "")[:16],
                }
            )
            raise

        logger.info(
            "Account created",
            extra={
                "event": "factory.account_created",
                "factory": self.address.short(16),
                "owner": owner_key.hex()[:16],
                "address": address.short(16),
            }
        )
        return address

    def get_address(self, owner_key: bytes) -> Address:
        """
        Address ``create`` would deploy to for ``owner_key``, without deploying.

        Useful for display and for checking whether the account exists.
        """
        return self.env.deployer.deployed_address(self._require_key(owner_key))

    def get_blueprint(self) -> bytes:
        """
        Blueprint id used for new accounts.

        Raises:
            MissingBlueprintError: If the factory was never initialized
        """
        blueprint = self.storage.get(BLUEPRINT_KEY, None)
        if blueprint is None:
            raise MissingBlueprintError("blueprint not set", details={"factory": str(self.address)})
        return blueprint

    @staticmethod
    def _require_key(owner_key: bytes) -> bytes:
        if not isinstance(owner_key, (bytes, bytearray)) or len(owner_key) != PUBLIC_KEY_LENGTH:
            raise InvalidArgumentError(f"Owner key must be {PUBLIC_KEY_LENGTH} bytes")
        return bytes(owner_key)
