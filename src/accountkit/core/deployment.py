"""
Factory deployment.

Uploads the account and factory code to a host and deploys the factory,
signed by the deploying account, with the account blueprint as its
constructor argument.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from . import config
from .address import Address
from .auth import DEFAULT_VALIDITY_LEDGERS, deployment_invocation, sign_authorization
from .config import ConfigurationError
from .contracts.account_factory import AccountFactory
from .contracts.simple_account import SimpleAccount
from .crypto_utils import derive_public_key
from .vm.host import HostEnvironment

logger = logging.getLogger(__name__)

DEFAULT_FACTORY_SALT = b"\x00" * 32


@dataclass(frozen=True)
class FactoryDeployment:
    """Result of deploying a factory."""
    factory: Address
    account_blueprint: bytes
    factory_blueprint: bytes


def deploy_account_factory(
    host: HostEnvironment,
    admin_key: bytes,
    salt: bytes = DEFAULT_FACTORY_SALT,
    account_code: Optional[bytes] = None,
    expected_account_blueprint: Optional[bytes] = None,
    nonce: Optional[int] = None,
) -> FactoryDeployment:
    """
    Upload the contracts and deploy an ``AccountFactory``.

    Args:
        host: Host to deploy on
        admin_key: Private key of the account deploying the factory
        salt: 32-byte salt for the factory address
        account_code: Account code bytes; its sha256 is the blueprint id
        expected_account_blueprint: Blueprint id the account code must hash
            to, defaults to ACCOUNTKIT_SIMPLE_ACCOUNT_WASM_HASH when set
        nonce: Authorization nonce, random when omitted

    Returns:
        Factory address and both blueprint ids

    Raises:
        ConfigurationError: If the account code does not match the
            expected blueprint
    """
    if expected_account_blueprint is None:
        expected_account_blueprint = config.SIMPLE_ACCOUNT_WASM_HASH

    account_blueprint = host.upload_contract(SimpleAccount, account_code)
    if expected_account_blueprint is not None and account_blueprint != expected_account_blueprint:
        raise ConfigurationError(
            f"Account code hashes to {account_blueprint.hex()}, "
            f"expected {bytes(expected_account_blueprint).hex()}"
        )
    factory_blueprint = host.upload_contract(AccountFactory)

    deployer = Address.account(derive_public_key(admin_key))
    init_args = (account_blueprint,)
    authorization = sign_authorization(
        admin_key,
        host.network_id,
        nonce if nonce is not None else secrets.randbelow(2 ** 63),
        host.ledger_sequence + DEFAULT_VALIDITY_LEDGERS,
        deployment_invocation(deployer, factory_blueprint, salt, init_args),
    )
    factory = host.deploy_contract(deployer, factory_blueprint, salt, init_args, authorization=authorization)

    logger.info(
        "Account factory deployed",
        extra={
            "event": "deployment.factory_deployed",
            "factory": factory.short(16),
            "account_blueprint": account_blueprint.hex()[:16],
        }
    )
    return FactoryDeployment(
        factory=factory,
        account_blueprint=account_blueprint,
        factory_blueprint=factory_blueprint,
    )
