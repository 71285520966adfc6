"""Tests for operation requests and their dispatch onto the store."""
import pytest

from passcli.exceptions import FieldExists, NameCollision
from passcli.operations import (
    Add,
    GenMode,
    GenRequest,
    Get,
    RemoveAccount,
    RemoveAll,
    RemoveField,
    Rename,
    RenameField,
    SetValue,
    apply,
)


class TestGenRequest:

    def test_absent(self):
        assert GenRequest.absent().resolve(16) is None

    def test_default(self):
        request = GenRequest.default()
        assert request.mode is GenMode.DEFAULT
        assert request.resolve(16) == 16

    def test_explicit(self):
        assert GenRequest.explicit(24).resolve(16) == 24

    @pytest.mark.parametrize("length", [None, 0, -3])
    def test_explicit_requires_positive_length(self, length):
        with pytest.raises(ValueError):
            GenRequest(GenMode.EXPLICIT, length)

    def test_default_takes_no_length(self):
        with pytest.raises(ValueError):
            GenRequest(GenMode.DEFAULT, 10)


class TestApply:

    def test_add(self, store):
        assert apply(store, Add("new", "pass", "v")) is None
        assert store.get("new", "pass") == "v"

    def test_add_without_value_creates_empty_account(self, store):
        apply(store, Add("new", "pass"))
        assert store.get_account("new") == {}

    def test_add_conflict_and_overwrite(self, store):
        with pytest.raises(FieldExists):
            apply(store, Add("account 1", "pass", "v"))
        apply(store, Add("account 1", "pass", "v", overwrite=True))
        assert store.get("account 1", "pass") == "v"

    def test_get_variants(self, store, accounts):
        assert apply(store, Get("account 1", "pass")) == "thisispass1"
        assert apply(store, Get("account 2")) == accounts["account 2"]
        assert apply(store, Get()) == accounts

    def test_set_value(self, store):
        apply(store, SetValue("account 1", "pass", "x"))
        assert store.get("account 1", "pass") == "x"

    def test_rename(self, store):
        with pytest.raises(NameCollision):
            apply(store, Rename("account 1", "account 2"))
        apply(store, Rename("account 1", "account 3"))
        assert "account 3" in store

    def test_rename_field(self, store):
        apply(store, RenameField("account 1", "pass2", "backup"))
        assert store.get("account 1", "backup") == "thisispass2"

    def test_removals(self, store):
        apply(store, RemoveField("account 1", "pass2"))
        apply(store, RemoveAccount("account 2"))
        assert store.get_all() == {"account 1": {"pass": "thisispass1"}, "empty": {}}
        apply(store, RemoveAll())
        assert store.empty

    def test_unknown_operation(self, store):
        with pytest.raises(TypeError):
            apply(store, "remove everything")
