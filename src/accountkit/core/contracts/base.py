"""Base class for contracts run by the host."""

from __future__ import annotations

from typing import Tuple

from ..address import Address
from ..vm.env import ContractEnv
from ..vm.exceptions import AuthorizationError, InvalidArgumentError
from ..vm.storage import InstanceStorage


class Contract:
    """
    Stateless contract code bound to one invocation's environment.

    All persistent state lives in ``env.storage``; the host builds a fresh
    instance for every call. ``EXPORTS`` lists the functions callers may
    invoke, and ``initialize`` is the constructor entry point run once at
    deployment.
    """

    EXPORTS: Tuple[str, ...] = ()

    def __init__(self, env: ContractEnv) -> None:
        self.env = env

    @property
    def address(self) -> Address:
        return self.env.current_address

    @property
    def storage(self) -> InstanceStorage:
        return self.env.storage

    def initialize(self, *args) -> None:
        """Constructor entry point. Contracts without state accept no arguments."""
        if args:
            raise InvalidArgumentError(f"{type(self).__name__}.initialize takes no arguments")

    def require_auth(self, address: Address) -> None:
        """
        Trap unless ``address`` authorized the current invocation.

        Raises:
            AuthorizationError: If the host holds no verified authorization
        """
        if address not in self.env.authorized:
            raise AuthorizationError(
                f"Missing authorization for {address.short(16)}",
                reason="not_authorized",
            )
