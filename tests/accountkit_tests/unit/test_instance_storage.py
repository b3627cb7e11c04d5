"""Tests for contract instance storage."""

import pytest

from accountkit.core.vm.storage import InstanceStorage


def test_get_missing_key_raises():
    with pytest.raises(KeyError):
        InstanceStorage().get("Owner")


def test_get_with_default():
    assert InstanceStorage().get("Owner", None) is None


def test_set_and_has():
    storage = InstanceStorage()
    storage.set("wasm", b"\x01" * 32)

    assert storage.has("wasm")
    assert not storage.has("Owner")
    assert storage.get("wasm") == b"\x01" * 32
    assert len(storage) == 1
    assert list(storage.keys()) == ["wasm"]


def test_snapshot_is_isolated():
    storage = InstanceStorage({"items": [1]})
    snapshot = storage.snapshot()

    storage.get("items").append(2)
    storage.set("other", True)

    assert snapshot == {"items": [1]}


def test_restore():
    storage = InstanceStorage({"count": 1})
    snapshot = storage.snapshot()
    storage.set("count", 2)

    storage.restore(snapshot)
    snapshot["count"] = 3

    assert storage.get("count") == 1


def test_repr_lists_keys():
    assert repr(InstanceStorage({"b": 1, "a": 2})) == "InstanceStorage(keys=['a', 'b'])"
