"""
accountkit Contracts.

- AccountFactory: deterministic, permissionless deployment of accounts
- SimpleAccount: contract account owned by a single ed25519 key
"""

from .account_factory import AccountFactory
from .base import Contract
from .simple_account import SimpleAccount

__all__ = [
    "Contract",
    "AccountFactory",
    "SimpleAccount",
]
