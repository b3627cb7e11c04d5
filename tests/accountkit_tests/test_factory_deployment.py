"""
End-to-end scenario: deploy the factory, create accounts for two owners
and use one of them to authorize a call.
"""

import hashlib
import logging

import pytest

from accountkit.core import config
from accountkit.core.address import Address, predict_account_address
from accountkit.core.auth import AuthVerdict
from accountkit.core.config import ConfigurationError
from accountkit.core.contracts import AccountFactory, SimpleAccount
from accountkit.core.crypto_utils import compute_blueprint_id, sign_message
from accountkit.core.deployment import DEFAULT_FACTORY_SALT, deploy_account_factory
from accountkit.core.vm.exceptions import ContractExistsError


class TestDeployAccountFactory:

    def test_factory_is_at_deterministic_address(self, host, deployment, admin_keys):
        _, admin_public = admin_keys
        expected = host.derive_address(Address.account(admin_public), DEFAULT_FACTORY_SALT)

        assert deployment.factory == expected
        assert isinstance(host._contract_object(host.get_contract(deployment.factory)), AccountFactory)

    def test_account_code_sets_blueprint(self, host, admin_keys):
        admin_private, _ = admin_keys

        deployment = deploy_account_factory(host, admin_private, account_code=b"account-v1")

        assert deployment.account_blueprint == compute_blueprint_id(b"account-v1")
        assert host.invoke(deployment.factory, "get_blueprint") == compute_blueprint_id(b"account-v1")

    def test_redeploy_with_same_salt_fails(self, host, deployment, admin_keys):
        admin_private, _ = admin_keys

        with pytest.raises(ContractExistsError):
            deploy_account_factory(host, admin_private)

    def test_second_factory_with_other_salt(self, host, deployment, admin_keys):
        admin_private, _ = admin_keys

        second = deploy_account_factory(host, admin_private, salt=b"\x01" * 32)

        assert second.factory != deployment.factory
        assert second.account_blueprint == deployment.account_blueprint

    def test_deployment_is_logged(self, host, admin_keys, caplog):
        admin_private, _ = admin_keys

        with caplog.at_level(logging.INFO, logger="accountkit.core"):
            deploy_account_factory(host, admin_private)

        events = [getattr(r, "event", None) for r in caplog.records]
        assert "host.contract_deployed" in events
        assert "deployment.factory_deployed" in events

    def test_account_code_must_match_expected_blueprint(self, host, admin_keys):
        admin_private, admin_public = admin_keys

        with pytest.raises(ConfigurationError):
            deploy_account_factory(
                host,
                admin_private,
                account_code=b"account-v2",
                expected_account_blueprint=compute_blueprint_id(b"account-v1"),
            )

        assert not host.contract_exists(host.derive_address(Address.account(admin_public), DEFAULT_FACTORY_SALT))

    def test_pinned_account_hash_from_configuration(self, host, admin_keys, monkeypatch):
        admin_private, _ = admin_keys
        monkeypatch.setattr(config, "SIMPLE_ACCOUNT_WASM_HASH", compute_blueprint_id(b"account-v1"))

        with pytest.raises(ConfigurationError):
            deploy_account_factory(host, admin_private, account_code=b"account-v2")

        deployment = deploy_account_factory(host, admin_private, account_code=b"account-v1")
        assert deployment.account_blueprint == config.SIMPLE_ACCOUNT_WASM_HASH

    def test_deployment_is_signed_by_admin(self, host, admin_keys):
        admin_private, admin_public = admin_keys

        deploy_account_factory(host, admin_private, nonce=7)

        assert host.nonce_used(Address.account(admin_public), 7)


class TestAccountLifecycle:
    """Wallet flow: predict, fund, create, sign."""

    def test_predict_create_and_authorize(self, host, deployment, owner_keys, other_keys):
        owner_private, owner_public = owner_keys
        _, other_public = other_keys
        factory = deployment.factory

        predicted = predict_account_address(owner_public, factory=factory, network_id=host.network_id)
        assert not host.contract_exists(predicted)

        account = host.invoke(factory, "create", owner_public)
        other_account = host.invoke(factory, "create", other_public)

        assert account == predicted
        assert account != other_account
        assert isinstance(host._contract_object(host.get_contract(account)), SimpleAccount)

        payload = hashlib.sha256(b"transfer:100").digest()
        signature = sign_message(owner_private, payload)
        account_object = host._contract_object(host.get_contract(account))
        other_object = host._contract_object(host.get_contract(other_account))

        assert account_object.check_authorization(payload, signature, []) is AuthVerdict.ACCEPT
        assert other_object.check_authorization(payload, signature, []) is AuthVerdict.REJECT
