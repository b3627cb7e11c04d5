"""
Addresses and deterministic contract id derivation.

Two kinds of address exist: an *account* address is an ed25519 public key,
a *contract* address is a 32-byte contract id. Both are rendered as StrKey
strings: base32 of ``version byte || payload || crc16-xmodem(le)``, giving
``G...`` for accounts and ``C...`` for contracts.

A contract id is a pure function of (network id, deployer address, salt):

    contract_id = sha256(xdr(HashIdPreimage::ContractId{
        network_id,
        ContractIdPreimage::FromAddress{deployer, salt},
    }))

so the address of a contract can be predicted before it is deployed.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

ADDRESS_LENGTH = 32
SALT_LENGTH = 32

# XDR discriminants
ENVELOPE_TYPE_CONTRACT_ID = 8
CONTRACT_ID_PREIMAGE_FROM_ADDRESS = 0
SC_ADDRESS_TYPE_ACCOUNT = 0
SC_ADDRESS_TYPE_CONTRACT = 1
PUBLIC_KEY_TYPE_ED25519 = 0


class AddressError(ValueError):
    """Raised when an address string or byte sequence cannot be parsed."""
    pass


class AddressKind(Enum):
    """Kinds of address, with their StrKey version byte."""
    ACCOUNT = 6 << 3  # 'G'
    CONTRACT = 2 << 3  # 'C'

    @property
    def sc_address_type(self) -> int:
        if self is AddressKind.ACCOUNT:
            return SC_ADDRESS_TYPE_ACCOUNT
        return SC_ADDRESS_TYPE_CONTRACT


# ==================== StrKey ====================


def crc16_xmodem(data: bytes) -> int:
    """CRC16-XModem (poly 0x1021, init 0) of ``data``."""
    return binascii.crc_hqx(data, 0)


def encode_strkey(kind: AddressKind, payload: bytes) -> str:
    if len(payload) != ADDRESS_LENGTH:
        raise AddressError(f"Address payload must be {ADDRESS_LENGTH} bytes, got {len(payload)}")
    versioned = bytes([kind.value]) + payload
    checksum = struct.pack("<H", crc16_xmodem(versioned))
    return base64.b32encode(versioned + checksum).decode("ascii")


def decode_strkey(value: str) -> tuple[AddressKind, bytes]:
    """
    Decode a StrKey string.

    Raises:
        AddressError: If the encoding, version byte, length or checksum is invalid
    """
    try:
        raw = base64.b32decode(value.encode("ascii"), casefold=False)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise AddressError(f"Invalid StrKey encoding: {exc}")

    if len(raw) != 1 + ADDRESS_LENGTH + 2:
        raise AddressError(f"Invalid StrKey length: {len(raw)} bytes")

    versioned, checksum = raw[:-2], raw[-2:]
    if struct.pack("<H", crc16_xmodem(versioned)) != checksum:
        raise AddressError("StrKey checksum mismatch")

    try:
        kind = AddressKind(versioned[0])
    except ValueError:
        raise AddressError(f"Unsupported StrKey version byte: {versioned[0]:#04x}")

    return kind, bytes(versioned[1:])


# ==================== Address ====================


@dataclass(frozen=True)
class Address:
    """A 32-byte account or contract address."""

    kind: AddressKind
    raw: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.raw, (bytes, bytearray)):
            raise AddressError(f"Address bytes must be bytes, got {type(self.raw).__name__}")
        if len(self.raw) != ADDRESS_LENGTH:
            raise AddressError(f"Address must be {ADDRESS_LENGTH} bytes, got {len(self.raw)}")
        object.__setattr__(self, "raw", bytes(self.raw))

    @classmethod
    def contract(cls, contract_id: bytes) -> Address:
        return cls(AddressKind.CONTRACT, contract_id)

    @classmethod
    def account(cls, public_key: bytes) -> Address:
        return cls(AddressKind.ACCOUNT, public_key)

    @classmethod
    def from_string(cls, value: str) -> Address:
        kind, raw = decode_strkey(value)
        return cls(kind, raw)

    @classmethod
    def parse(cls, value: Union[Address, str]) -> Address:
        if isinstance(value, Address):
            return value
        return cls.from_string(value)

    @property
    def is_contract(self) -> bool:
        return self.kind is AddressKind.CONTRACT

    def to_xdr(self) -> bytes:
        """XDR encoding of this address as an ``SCAddress``."""
        if self.kind is AddressKind.ACCOUNT:
            return (
                struct.pack(">i", SC_ADDRESS_TYPE_ACCOUNT)
                + struct.pack(">i", PUBLIC_KEY_TYPE_ED25519)
                + self.raw
            )
        return struct.pack(">i", SC_ADDRESS_TYPE_CONTRACT) + self.raw

    def short(self, length: int = 10) -> str:
        """Truncated form for log records."""
        return str(self)[:length]

    def __str__(self) -> str:
        return encode_strkey(self.kind, self.raw)

    def __repr__(self) -> str:
        return f"Address({self})"


# ==================== Contract id derivation ====================


def contract_id_preimage(network_id: bytes, deployer: Address, salt: bytes) -> bytes:
    """XDR-encoded ``HashIdPreimage::ContractId`` for a deployment from an address."""
    if len(network_id) != 32:
        raise AddressError(f"Network id must be 32 bytes, got {len(network_id)}")
    if len(salt) != SALT_LENGTH:
        raise AddressError(f"Salt must be {SALT_LENGTH} bytes, got {len(salt)}")
    return (
        struct.pack(">i", ENVELOPE_TYPE_CONTRACT_ID)
        + network_id
        + struct.pack(">i", CONTRACT_ID_PREIMAGE_FROM_ADDRESS)
        + deployer.to_xdr()
        + salt
    )


def derive_contract_address(
    network_id: bytes,
    deployer: Union[Address, str],
    salt: bytes,
) -> Address:
    """
    Compute the address a deployer would deploy to with ``salt``.

    Args:
        network_id: sha256 of the network passphrase
        deployer: Address (or StrKey string) of the deploying account or contract
        salt: 32-byte salt (an owner public key, for accounts made by a factory)

    Returns:
        The contract address; no deployment is performed
    """
    preimage = contract_id_preimage(network_id, Address.parse(deployer), salt)
    return Address.contract(hashlib.sha256(preimage).digest())


def predict_account_address(
    owner_key: bytes,
    factory: Optional[Union[Address, str]] = None,
    network_id: Optional[bytes] = None,
) -> Address:
    """
    Predict the account address a factory deploys for ``owner_key``.

    Defaults come from configuration: ACCOUNTKIT_ACCOUNT_FACTORY_ADDRESS and
    the network id of ACCOUNTKIT_NETWORK.
    """
    from . import config

    if factory is None:
        if not config.ACCOUNT_FACTORY_ADDRESS:
            raise config.ConfigurationError("Account factory address not configured")
        factory = config.ACCOUNT_FACTORY_ADDRESS
    if network_id is None:
        network_id = config.network_id()
    return derive_contract_address(network_id, factory, owner_key)
