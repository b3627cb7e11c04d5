"""
Property-based tests for deterministic account addresses.

The account address of an owner key is a pure function of (network,
factory, key): it never changes between calls, agrees with the address
create() deploys to, and distinct keys never share an address.

Uses Hypothesis for property-based testing with random inputs.
"""

from hypothesis import given, settings, strategies as st

from accountkit.core.address import Address, AddressKind, derive_contract_address
from accountkit.core.crypto_utils import deterministic_keypair_from_seed
from accountkit.core.deployment import deploy_account_factory
from accountkit.core.vm.host import HostEnvironment

keys = st.binary(min_size=32, max_size=32)
network_ids = st.binary(min_size=32, max_size=32)
address_kinds = st.sampled_from(list(AddressKind))


def fresh_factory():
    host = HostEnvironment(network_passphrase="Test SDF Network ; September 2015")
    admin_private, _ = deterministic_keypair_from_seed(b"admin")
    deployment = deploy_account_factory(host, admin_private)
    return host, deployment.factory


class TestStrKeyProperties:

    @given(kind=address_kinds, raw=keys)
    @settings(max_examples=200)
    def test_strkey_roundtrip(self, kind, raw):
        address = Address(kind, raw)
        encoded = str(address)

        assert len(encoded) == 56
        assert encoded[0] == ("G" if kind is AddressKind.ACCOUNT else "C")
        assert Address.from_string(encoded) == address


class TestDerivationProperties:

    @given(nid=network_ids, deployer=keys, salt=keys)
    @settings(max_examples=100)
    def test_derivation_is_deterministic(self, nid, deployer, salt):
        factory = Address.contract(deployer)

        assert derive_contract_address(nid, factory, salt) == derive_contract_address(nid, str(factory), salt)

    @given(nid=network_ids, deployer=keys, salt_1=keys, salt_2=keys)
    @settings(max_examples=100)
    def test_distinct_salts_give_distinct_addresses(self, nid, deployer, salt_1, salt_2):
        factory = Address.contract(deployer)
        same = salt_1 == salt_2

        assert (derive_contract_address(nid, factory, salt_1) == derive_contract_address(nid, factory, salt_2)) == same

    @given(nid_1=network_ids, nid_2=network_ids, deployer=keys, salt=keys)
    @settings(max_examples=100)
    def test_network_separates_addresses(self, nid_1, nid_2, deployer, salt):
        factory = Address.contract(deployer)
        same = nid_1 == nid_2

        assert (derive_contract_address(nid_1, factory, salt) == derive_contract_address(nid_2, factory, salt)) == same


class TestFactoryProperties:

    @given(owner_key=keys)
    @settings(max_examples=25, deadline=None)
    def test_create_matches_get_address(self, owner_key):
        host, factory = fresh_factory()
        predicted = host.invoke(factory, "get_address", owner_key)

        created = host.invoke(factory, "create", owner_key)

        assert created == predicted
        assert created == derive_contract_address(host.network_id, factory, owner_key)
        assert host.invoke(created, "get_owner") == owner_key

    @given(key_1=keys, key_2=keys)
    @settings(max_examples=25, deadline=None)
    def test_distinct_keys_get_distinct_accounts(self, key_1, key_2):
        host, factory = fresh_factory()
        same = key_1 == key_2

        address_1 = host.invoke(factory, "get_address", key_1)
        address_2 = host.invoke(factory, "get_address", key_2)

        assert (address_1 == address_2) == same
