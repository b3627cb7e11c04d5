"""
accountkit - Single-Key Smart Accounts

Deterministic, permissionless provisioning of contract accounts that are
owned by exactly one ed25519 public key.

Main Components:
- AccountFactory: derives and deploys account contracts from a public key
- SimpleAccount: authorizes operations by one signature check
- HostEnvironment: in-memory execution environment hosting both contracts
"""

__version__ = "0.1.0"
__author__ = "accountkit Development Team"

__all__ = []
