"""
Contract execution environment.

The host itself lives in ``accountkit.core.vm.host``; this package exports
the pieces contracts depend on.
"""

from .env import ContractEnv, Crypto, Deployer
from .exceptions import (
    AlreadyInitializedError,
    AuthorizationError,
    ContractExistsError,
    ContractNotFoundError,
    InvalidArgumentError,
    InvalidSignatureError,
    MalformedSignatureError,
    MissingBlueprintError,
    MissingPublicKeyError,
    SignatureError,
    UnknownBlueprintError,
    UnknownFunctionError,
    VMExecutionError,
)
from .storage import InstanceStorage

__all__ = [
    "ContractEnv",
    "Crypto",
    "Deployer",
    "InstanceStorage",
    # Exceptions
    "VMExecutionError",
    "InvalidArgumentError",
    "AlreadyInitializedError",
    "MissingBlueprintError",
    "UnknownBlueprintError",
    "ContractExistsError",
    "ContractNotFoundError",
    "UnknownFunctionError",
    "AuthorizationError",
    "SignatureError",
    "MalformedSignatureError",
    "InvalidSignatureError",
    "MissingPublicKeyError",
]
