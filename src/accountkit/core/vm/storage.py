"""
Contract instance storage.

Each deployed contract owns one ``InstanceStorage``: a key-value store whose
lifetime equals the contract's. Contracts only see ``get/set/has``; the host
uses ``snapshot/restore`` to roll back a trapped invocation.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Iterator, Optional

_MISSING = object()


class InstanceStorage:
    """Key-value storage of a single contract instance."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = _MISSING) -> Any:
        """
        Read a value.

        Raises:
            KeyError: If ``key`` is unset and no default is given
        """
        if key in self._data:
            return self._data[key]
        if default is _MISSING:
            raise KeyError(key)
        return default

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def has(self, key: str) -> bool:
        return key in self._data

    def keys(self) -> Iterator[str]:
        return iter(list(self._data))

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    def restore(self, snapshot: Dict[str, Any]) -> None:
        self._data = copy.deepcopy(snapshot)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"InstanceStorage(keys={sorted(self._data)})"
