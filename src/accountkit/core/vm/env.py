"""
Capabilities a contract receives from its host.

Contracts never reach the host directly. Each call gets a ``ContractEnv``
bundling the calling contract's own storage with two injected capabilities:

- ``Deployer``: deterministic deployment from the current contract
- ``Crypto``: signature verification
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, FrozenSet, Tuple

from ..address import Address
from .storage import InstanceStorage


class Deployer(ABC):
    """Deterministic deployment on behalf of one deployer address."""

    @abstractmethod
    def deployed_address(self, salt: bytes) -> Address:
        """Address a deployment with ``salt`` would use. Pure."""

    @abstractmethod
    def deploy(self, blueprint: bytes, salt: bytes, init_args: Tuple[Any, ...] = ()) -> Address:
        """
        Instantiate ``blueprint`` at ``deployed_address(salt)``.

        Raises:
            ContractExistsError: If a contract already occupies the address
            UnknownBlueprintError: If the blueprint was never uploaded
        """


class Crypto(ABC):
    """Cryptographic primitives, treated by contracts as a black-box oracle."""

    @abstractmethod
    def ed25519_verify(self, public_key: bytes, message: bytes, signature: bytes) -> bool:
        """True if ``signature`` is valid for ``message`` under ``public_key``."""


@dataclass(frozen=True)
class ContractEnv:
    """Everything a contract may touch during one invocation."""

    current_address: Address
    network_id: bytes
    storage: InstanceStorage
    deployer: Deployer
    crypto: Crypto
    # Addresses whose authorization the host verified for this invocation
    authorized: FrozenSet[Address] = frozenset()
