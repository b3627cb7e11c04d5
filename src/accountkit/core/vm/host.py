"""
In-memory contract host.

Reference execution environment for the account contracts:

- Code upload: contract classes are registered under a blueprint id
  (sha256 of their code)
- Deterministic deployment: contract address derived from
  (network id, deployer, salt); deploying onto an occupied address traps.
  Contracts deploy only through their own ``Deployer`` capability; accounts
  deploy only with a signed authorization
- Atomic invocation: every call runs under the host lock and all state
  changes are rolled back if it raises
- Authorization: ``require_auth`` rebuilds the signed payload for the call
  being made, rejects expired or reused nonces, then verifies account keys
  directly and asks contract accounts for a verdict via ``check_authorization``
"""

from __future__ import annotations

import logging
import struct
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, Sequence, Set, Tuple, Type, Union

from .. import config
from ..address import Address, derive_contract_address
from ..auth import (
    AuthorizationRequest,
    AuthVerdict,
    InvocationContext,
    build_authorization_payload,
    deployment_invocation,
)
from ..contracts.base import Contract
from ..crypto_utils import compute_blueprint_id, verify_signature
from .env import ContractEnv, Crypto, Deployer
from .exceptions import (
    AuthorizationError,
    ContractExistsError,
    ContractNotFoundError,
    InvalidArgumentError,
    UnknownBlueprintError,
    UnknownFunctionError,
    get_error_context,
)
from .storage import InstanceStorage

logger = logging.getLogger(__name__)

Authorization = Tuple[Union[Address, str], AuthorizationRequest]


@dataclass
class DeployedContract:
    """A contract instance: its code and its storage."""
    address: Address
    blueprint: bytes
    storage: InstanceStorage


@dataclass
class _Journal:
    """Undo log of one outermost invocation."""
    storages: Dict[Address, Dict[str, Any]] = field(default_factory=dict)
    created: List[Address] = field(default_factory=list)
    nonces: List[Tuple[Address, int]] = field(default_factory=list)


class HostCrypto(Crypto):
    """Crypto capability backed by the ``cryptography`` package."""

    def ed25519_verify(self, public_key: bytes, message: bytes, signature: bytes) -> bool:
        return verify_signature(public_key, message, signature)


class HostDeployer(Deployer):
    """Deployer capability bound to the address of the running contract."""

    def __init__(self, host: HostEnvironment, deployer: Address) -> None:
        self._host = host
        self._deployer = deployer

    def deployed_address(self, salt: bytes) -> Address:
        return self._host.derive_address(self._deployer, salt)

    def deploy(self, blueprint: bytes, salt: bytes, init_args: Tuple[Any, ...] = ()) -> Address:
        return self._host._deploy_contract(self._deployer, blueprint, salt, init_args)


class HostEnvironment:
    """
    Single-process contract host.

    Calls are serialized by a re-entrant lock, so nested calls made by a
    contract (a factory deploying an account) join the enclosing
    invocation and are rolled back with it.
    """

    def __init__(self, network_passphrase: Optional[str] = None, ledger_sequence: int = 0) -> None:
        self.network_passphrase = network_passphrase or config.network_passphrase()
        self.network_id = config.network_id(self.network_passphrase)
        self.crypto = HostCrypto()
        self.ledger_sequence = ledger_sequence

        self._code: Dict[bytes, Type[Contract]] = {}
        self._contracts: Dict[Address, DeployedContract] = {}
        self._nonces: Dict[Address, Set[int]] = {}
        self._lock = threading.RLock()
        self._depth = 0
        self._journal: Optional[_Journal] = None

    def advance_ledger(self, count: int = 1) -> int:
        """Close ``count`` ledgers and return the new sequence number."""
        with self._lock:
            self.ledger_sequence += count
            return self.ledger_sequence

    # ==================== Code ====================

    def upload_contract(self, contract_cls: Type[Contract], code: Optional[bytes] = None) -> bytes:
        """
        Register contract code and return its blueprint id.

        Args:
            contract_cls: Contract class implementing the code
            code: Code bytes to hash; defaults to the class's qualified name

        Returns:
            32-byte blueprint id
        """
        if code is None:
            code = f"{contract_cls.__module__}.{contract_cls.__qualname__}".encode("utf-8")
        blueprint = compute_blueprint_id(code)

        with self._lock:
            existing = self._code.get(blueprint)
            if existing is not None and existing is not contract_cls:
                raise InvalidArgumentError(
                    "Blueprint id already registered for different code",
                    details={"blueprint": blueprint.hex()},
                )
            self._code[blueprint] = contract_cls

        logger.debug(
            "Contract code uploaded",
            extra={
                "event": "host.code_uploaded",
                "blueprint": blueprint.hex()[:16],
                "contract": contract_cls.__name__,
            }
        )
        return blueprint

    def has_blueprint(self, blueprint: bytes) -> bool:
        return bytes(blueprint) in self._code

    # ==================== Deployment ====================

    def derive_address(self, deployer: Union[Address, str], salt: bytes) -> Address:
        """Deterministic address of a deployment by ``deployer`` with ``salt``."""
        try:
            return derive_contract_address(self.network_id, deployer, salt)
        except ValueError as exc:
            raise InvalidArgumentError(str(exc)) from exc

    def deploy_contract(
        self,
        deployer: Union[Address, str],
        blueprint: bytes,
        salt: bytes,
        init_args: Sequence[Any] = (),
        authorization: Optional[AuthorizationRequest] = None,
    ) -> Address:
        """
        Deploy ``blueprint`` from an account, at the address derived from
        (deployer, salt).

        The account must sign ``deployment_invocation(deployer, blueprint,
        salt, init_args)``. Contract addresses cannot deploy through this
        method: a contract deploys only from inside its own invocation.

        Raises:
            AuthorizationError: If the deployer is a contract, or the
                authorization is missing or rejected
            UnknownBlueprintError: If the blueprint was never uploaded
            ContractExistsError: If the address already hosts a contract
        """
        deployer = Address.parse(deployer)

        with self._transaction("deploy"):
            if deployer.is_contract:
                raise AuthorizationError(
                    f"Contract {deployer.short(16)} can only deploy from its own invocation",
                    reason="contract_deployer",
                    details={"deployer": str(deployer)},
                )
            if authorization is None:
                raise AuthorizationError(
                    f"Missing authorization for {deployer.short(16)}",
                    reason="not_authorized",
                )
            invocation = deployment_invocation(deployer, blueprint, salt, init_args)
            self.require_auth(deployer, authorization, invocation)
            return self._deploy_contract(deployer, blueprint, salt, init_args)

    def contract_exists(self, address: Union[Address, str]) -> bool:
        return Address.parse(address) in self._contracts

    def get_contract(self, address: Union[Address, str]) -> DeployedContract:
        address = Address.parse(address)
        instance = self._contracts.get(address)
        if instance is None:
            raise ContractNotFoundError(f"No contract at {address}", details={"address": str(address)})
        return instance

    # ==================== Invocation ====================

    def invoke(
        self,
        address: Union[Address, str],
        function: str,
        *args: Any,
        authorizations: Sequence[Authorization] = (),
    ) -> Any:
        """
        Call an exported contract function as one atomic invocation.

        Every authorization must be signed for exactly this call; the call
        then sees the authorizing addresses as ``env.authorized``. Any
        exception rolls back all state changes made during the call,
        including contracts it deployed and nonces it consumed.

        Raises:
            ContractNotFoundError: If no contract exists at ``address``
            UnknownFunctionError: If ``function`` is not exported
            AuthorizationError: If any authorization is rejected
            VMExecutionError: Whatever trap the contract raises
        """
        with self._transaction(function):
            instance = self.get_contract(address)
            contract_cls = self._code[instance.blueprint]
            if function not in contract_cls.EXPORTS:
                raise UnknownFunctionError(
                    f"{contract_cls.__name__} does not export '{function}'",
                    details={"address": str(instance.address), "function": function},
                )

            authorized: FrozenSet[Address] = frozenset()
            if authorizations:
                invocation = InvocationContext(instance.address, function, tuple(args))
                authorized = frozenset(
                    self.require_auth(authority, request, invocation)
                    for authority, request in authorizations
                )

            contract = self._contract_object(instance, authorized)
            return getattr(contract, function)(*args)

    def require_auth(
        self,
        authority: Union[Address, str],
        request: AuthorizationRequest,
        invocation: InvocationContext,
    ) -> Address:
        """
        Verify that ``authority`` approves ``invocation``.

        The payload is rebuilt from this host's network id, the request's
        nonce and expiration, and ``invocation``; the request must carry
        exactly that payload. Account addresses are then checked as plain
        ed25519 signatures. Contract addresses must implement
        ``check_authorization`` and are asked for a verdict. The nonce is
        consumed on success.

        Returns:
            The authorized address

        Raises:
            AuthorizationError: On any rejection
        """
        authority = Address.parse(authority)

        with self._transaction("require_auth"):
            if request.expiration_ledger < self.ledger_sequence:
                raise AuthorizationError(
                    f"Authorization for {authority.short(16)} expired at ledger {request.expiration_ledger}",
                    reason="expired",
                    details={"ledger_sequence": self.ledger_sequence},
                )
            if request.nonce in self._nonces.get(authority, ()):
                raise AuthorizationError(
                    f"Nonce {request.nonce} already used by {authority.short(16)}",
                    reason="nonce_reused",
                )

            try:
                expected = build_authorization_payload(
                    self.network_id, request.nonce, request.expiration_ledger, invocation
                )
            except (TypeError, ValueError, OverflowError, struct.error) as exc:
                raise InvalidArgumentError(f"Cannot build authorization payload: {exc}") from exc

            if request.payload != expected:
                raise AuthorizationError(
                    f"Authorization for {authority.short(16)} was not signed for this call",
                    reason="payload_mismatch",
                    details={"function": invocation.function},
                )

            if not authority.is_contract:
                try:
                    accepted = self.crypto.ed25519_verify(authority.raw, expected, request.signature)
                except ValueError:
                    accepted = False
                verdict = AuthVerdict.ACCEPT if accepted else AuthVerdict.REJECT
            else:
                contract = self._contract_object(self.get_contract(authority))
                check = getattr(contract, "check_authorization", None)
                if check is None:
                    raise AuthorizationError(
                        f"Contract {authority.short(16)} is not an account",
                        reason="not_an_account",
                    )
                verdict = check(expected, request.signature, (invocation,))

            if verdict is not AuthVerdict.ACCEPT:
                raise AuthorizationError(
                    f"Authorization rejected by {authority.short(16)}",
                    reason="signature_rejected",
                    details={"authority": str(authority)},
                )

            self._nonces.setdefault(authority, set()).add(request.nonce)
            self._journal.nonces.append((authority, request.nonce))
        return authority

    def nonce_used(self, authority: Union[Address, str], nonce: int) -> bool:
        return nonce in self._nonces.get(Address.parse(authority), ())

    # ==================== Internal ====================

    def _deploy_contract(
        self,
        deployer: Address,
        blueprint: bytes,
        salt: bytes,
        init_args: Sequence[Any] = (),
    ) -> Address:
        """
        Deploy on behalf of ``deployer`` without authorization checks.

        Only reached through ``deploy_contract`` after the account deployer
        authorized it, or through the ``HostDeployer`` bound to the running
        contract. The collision check, registration and constructor run as
        one atomic step: concurrent deployments to the same address see
        exactly one success.
        """
        address = self.derive_address(deployer, salt)

        with self._transaction("deploy"):
            if not self.has_blueprint(blueprint):
                raise UnknownBlueprintError(
                    "Blueprint not uploaded",
                    details={"blueprint": bytes(blueprint).hex()},
                )
            contract_cls = self._code[bytes(blueprint)]

            if address in self._contracts:
                raise ContractExistsError(
                    f"Contract already exists at {address}",
                    address=str(address),
                )

            instance = DeployedContract(
                address=address,
                blueprint=bytes(blueprint),
                storage=InstanceStorage(),
            )
            self._contracts[address] = instance
            self._journal.created.append(address)
            self._contract_object(instance).initialize(*init_args)

        logger.info(
            "Contract deployed",
            extra={
                "event": "host.contract_deployed",
                "address": address.short(16),
                "deployer": deployer.short(16),
                "contract": contract_cls.__name__,
            }
        )
        return address

    def _contract_object(
        self,
        instance: DeployedContract,
        authorized: FrozenSet[Address] = frozenset(),
    ) -> Contract:
        # Storage handed to a contract inside an invocation is journaled first
        journal = self._journal
        if journal is not None and instance.address not in journal.storages:
            journal.storages[instance.address] = instance.storage.snapshot()

        env = ContractEnv(
            current_address=instance.address,
            network_id=self.network_id,
            storage=instance.storage,
            deployer=HostDeployer(self, instance.address),
            crypto=self.crypto,
            authorized=authorized,
        )
        return self._code[instance.blueprint](env)

    @contextmanager
    def _transaction(self, label: str) -> Iterator[None]:
        """Serialize and, at the outermost level, journal state for rollback."""
        with self._lock:
            outermost = self._depth == 0
            if outermost:
                self._journal = _Journal()
            self._depth += 1
            try:
                yield
            except Exception as exc:
                if outermost:
                    self._rollback(self._journal)
                    logger.warning(
                        "Invocation trapped, state rolled back",
                        extra={
                            "event": "host.invocation_trapped",
                            "call": label,
                            **get_error_context(exc),
                        }
                    )
                raise
            finally:
                self._depth -= 1
                if outermost:
                    self._journal = None

    def _rollback(self, journal: _Journal) -> None:
        for address in reversed(journal.created):
            self._contracts.pop(address, None)
        for address, data in journal.storages.items():
            instance = self._contracts.get(address)
            if instance is not None:
                instance.storage.restore(data)
        for authority, nonce in journal.nonces:
            self._nonces[authority].discard(nonce)

    def __repr__(self) -> str:
        return (
            f"HostEnvironment(network={self.network_passphrase!r}, "
            f"ledger={self.ledger_sequence}, contracts={len(self._contracts)})"
        )
