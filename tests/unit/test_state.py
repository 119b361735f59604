"""Tests for state records and the UNSET marker."""

import copy
import pickle

import pytest

from scf_reconciler.core.state import UNSET, ResourceState, is_set


class TestUnset:
    """Test the UNSET marker."""

    @pytest.mark.parametrize("value", [None, "", False, 0])
    def test_distinct_from_empty_values(self, value):
        assert UNSET is not value
        assert UNSET != value
        assert is_set(value)

    def test_unset_is_not_set(self):
        assert not is_set(UNSET)

    def test_singleton_survives_copy_and_pickle(self):
        assert copy.deepcopy(UNSET) is UNSET
        assert pickle.loads(pickle.dumps(UNSET)) is UNSET

    def test_repr(self):
        assert repr(UNSET) == "UNSET"


class TestResourceState:
    """Test ResourceState behaviour."""

    def test_missing_attribute_reads_unset(self):
        state = ResourceState("scf_organization", {"name": "acme"})

        assert state.get("quota_id") is UNSET
        assert state["name"] == "acme"
        assert not state.is_set("quota_id")

    def test_handle_is_none_until_set(self):
        assert ResourceState("scf_organization").handle is None
        assert ResourceState("scf_organization", {"id": "p,o"}).handle == "p,o"

    def test_merge_returns_new_record(self):
        state = ResourceState("scf_organization", {"name": "acme", "quota_id": "q1"})

        merged = state.merge({"name": "acme2"})

        assert merged.get("name") == "acme2"
        assert merged.get("quota_id") == "q1"
        assert state.get("name") == "acme"

    def test_values_are_read_only(self):
        source = {"name": "acme"}
        state = ResourceState("scf_organization", source)

        with pytest.raises(TypeError):
            state.values["name"] = "acme2"
        source["name"] = "changed"
        assert state.get("name") == "acme"

    def test_equal_records_hash_alike(self):
        first = ResourceState("scf_organization", {"name": "acme", "suspended": False})
        second = ResourceState("scf_organization", {"suspended": False, "name": "acme"})

        assert first == second
        assert hash(first) == hash(second)
        assert len({first, second}) == 1

    def test_record_survives_copy_and_pickle(self):
        state = ResourceState("scf_organization", {"name": "acme", "quota_id": UNSET})

        assert copy.deepcopy(state) == state
        restored = pickle.loads(pickle.dumps(state))
        assert restored == state
        assert restored.get("quota_id") is UNSET

    def test_only_selects_attributes(self):
        state = ResourceState("scf_organization", {"name": "acme"})

        assert state.only(["name", "quota_id"]) == {"name": "acme", "quota_id": UNSET}

    def test_dict_round_trip_preserves_unset_and_empty_values(self):
        state = ResourceState(
            "scf_organization",
            {"name": "", "suspended": False, "quota_id": UNSET},
        )

        data = state.to_dict()
        assert data == {"name": "", "quota_id": None, "suspended": False}
        assert ResourceState.from_dict("scf_organization", data) == state

    def test_equality_compares_values(self):
        assert ResourceState("t", {"a": "1"}) == ResourceState("t", {"a": "1"})
        assert ResourceState("t", {"a": "1"}) != ResourceState("t", {"a": "2"})
