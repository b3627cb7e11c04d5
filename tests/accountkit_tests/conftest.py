"""Shared fixtures: a fresh host, a deployed factory and owner keypairs."""

import itertools

import pytest

from accountkit.core.address import Address
from accountkit.core.auth import deployment_invocation, sign_authorization
from accountkit.core.crypto_utils import derive_public_key, deterministic_keypair_from_seed
from accountkit.core.deployment import deploy_account_factory
from accountkit.core.vm.host import HostEnvironment

TEST_PASSPHRASE = "Test SDF Network ; September 2015"


@pytest.fixture
def host():
    """Fresh in-memory host on the test network."""
    return HostEnvironment(network_passphrase=TEST_PASSPHRASE)


@pytest.fixture
def admin_keys():
    """Keypair of the account that deploys the factory."""
    return deterministic_keypair_from_seed(b"admin")


@pytest.fixture
def deployment(host, admin_keys):
    """Factory deployed by the admin account."""
    admin_private, _ = admin_keys
    return deploy_account_factory(host, admin_private, nonce=0)


@pytest.fixture
def factory(deployment):
    return deployment.factory


@pytest.fixture
def owner_keys():
    """(private_key, public_key) of the first account owner."""
    return deterministic_keypair_from_seed(b"owner-1")


@pytest.fixture
def other_keys():
    """(private_key, public_key) of an unrelated key holder."""
    return deterministic_keypair_from_seed(b"owner-2")


@pytest.fixture
def account(host, factory, owner_keys):
    """Account deployed for ``owner_keys``."""
    _, public_key = owner_keys
    return host.invoke(factory, "create", public_key)


@pytest.fixture
def deploy_as(host):
    """Deploy from an account, signing the deployment with its private key."""
    nonces = itertools.count(1000)

    def _deploy(private_key, blueprint, salt, init_args=()):
        deployer = Address.account(derive_public_key(private_key))
        authorization = sign_authorization(
            private_key,
            host.network_id,
            next(nonces),
            host.ledger_sequence + 10,
            deployment_invocation(deployer, blueprint, salt, init_args),
        )
        return host.deploy_contract(deployer, blueprint, salt, init_args, authorization=authorization)

    return _deploy
