"""Tests for mapping responses to state and state to payloads."""

import pytest

from scf_reconciler.core.errors import (
    InvalidAttributeError,
    MalformedHandleError,
    MappingError,
    MissingRequiredFieldError,
)
from scf_reconciler.core.mapper import StateMapper
from scf_reconciler.core.state import UNSET, ResourceState
from scf_reconciler.resources import ORGANIZATION, ORGANIZATION_MANAGER, PLATFORM
from tests.conftest import (
    CREATED_AT,
    ORG_ID,
    PLATFORM_ID,
    PROJECT_ID,
    QUOTA_ID,
    OTHER_QUOTA_ID,
    UPDATED_AT,
    USER_ID,
    make_org_manager,
    make_org_manager_create_response,
    make_organization,
    make_platform,
)


@pytest.fixture
def org_mapper():
    return StateMapper(ORGANIZATION)


@pytest.fixture
def manager_mapper():
    return StateMapper(ORGANIZATION_MANAGER)


class TestToState:
    """Test projecting responses onto state records."""

    def test_absent_fields_become_unset(self, org_mapper):
        state = org_mapper.to_state({"guid": "g1", "name": "acme", "quota_id": None}, "proj-1")

        assert state.get("quota_id") is UNSET
        assert state.get("name") == "acme"
        assert state.get("org_id") == "g1"
        assert state.handle == "proj-1,g1"

    def test_every_declared_attribute_is_present(self, org_mapper):
        state = org_mapper.to_state({"guid": "g1"}, "proj-1")

        assert set(state.values) == set(ORGANIZATION.attribute_names)

    def test_scope_falls_back_to_hint(self, org_mapper):
        state = org_mapper.to_state({"guid": "g1"}, "proj-1")

        assert state.get("project_id") == "proj-1"

    def test_mapping_is_idempotent(self, org_mapper):
        response = make_organization()

        first = org_mapper.to_state(response, PROJECT_ID)
        second = org_mapper.to_state(response, PROJECT_ID)

        assert first == second

    def test_copies_typed_values(self, org_mapper):
        state = org_mapper.to_state(make_organization(suspended=False), PROJECT_ID)

        assert state.get("suspended") is False
        assert state.get("created_at") == CREATED_AT.isoformat()
        assert state.get("updated_at") == UPDATED_AT.isoformat()
        assert state.get("quota_id") == QUOTA_ID
        assert state.handle == f"{PROJECT_ID},{ORG_ID}"

    def test_missing_guid_is_required_field_error(self, org_mapper):
        with pytest.raises(MissingRequiredFieldError) as exc_info:
            org_mapper.to_state({"name": "acme"}, "proj-1")

        assert exc_info.value.field == "org_id"
        assert exc_info.value.resource_type == "scf_organization"

    def test_empty_response_is_mapping_error(self, org_mapper):
        with pytest.raises(MappingError):
            org_mapper.to_state(None, "proj-1")

    def test_wrong_boolean_type_is_mapping_error(self, org_mapper):
        with pytest.raises(MappingError) as exc_info:
            org_mapper.to_state({"guid": "g1", "suspended": "yes"}, "proj-1")

        assert exc_info.value.field == "suspended"

    def test_wrong_string_type_is_mapping_error(self, org_mapper):
        with pytest.raises(MappingError):
            org_mapper.to_state({"guid": "g1", "name": 42}, "proj-1")

    def test_retained_attribute_keeps_prior_value(self, manager_mapper):
        created = manager_mapper.to_state(make_org_manager_create_response(), PROJECT_ID)
        refreshed = manager_mapper.to_state(make_org_manager(), PROJECT_ID, prior=created)

        assert created.get("password") == "s3cret"
        assert refreshed.get("password") == "s3cret"

    def test_retained_attribute_without_prior_is_unset(self, manager_mapper):
        state = manager_mapper.to_state(make_org_manager(), PROJECT_ID)

        assert state.get("password") is UNSET

    def test_manager_handle_uses_user_id(self, manager_mapper):
        state = manager_mapper.to_state(make_org_manager(), PROJECT_ID)

        assert state.handle == f"{PROJECT_ID},{USER_ID}"
        assert state.get("org_id") == ORG_ID

    def test_platform_scope_comes_from_caller(self):
        state = StateMapper(PLATFORM).to_state(make_platform(), PROJECT_ID)

        assert state.get("project_id") == PROJECT_ID
        assert state.handle == f"{PROJECT_ID},{PLATFORM_ID}"


class TestAddress:
    """Test deriving remote addresses from state."""

    def test_organization_address_from_handle(self, org_mapper):
        state = ResourceState("scf_organization", {"id": f"{PROJECT_ID},{ORG_ID}"})

        assert org_mapper.address(state) == (PROJECT_ID, ORG_ID)

    def test_manager_is_addressed_by_organization(self, manager_mapper):
        state = ResourceState(
            "scf_organization_manager",
            {"id": f"{PROJECT_ID},{USER_ID}", "org_id": ORG_ID},
        )

        assert manager_mapper.address(state) == (PROJECT_ID, ORG_ID)

    def test_manager_without_org_id_cannot_be_addressed(self, manager_mapper):
        state = ResourceState("scf_organization_manager", {"id": f"{PROJECT_ID},{USER_ID}"})

        with pytest.raises(MalformedHandleError):
            manager_mapper.address(state)

    def test_malformed_handle(self, org_mapper):
        state = ResourceState("scf_organization", {"id": "no-separator"})

        with pytest.raises(MalformedHandleError):
            org_mapper.address(state)

    def test_address_without_handle_uses_attributes(self, org_mapper):
        state = ResourceState("scf_organization", {"project_id": PROJECT_ID, "org_id": ORG_ID})

        assert org_mapper.address(state) == (PROJECT_ID, ORG_ID)


class TestPayloads:
    """Test building mutation payloads."""

    def test_payload_omits_unset_attributes(self, org_mapper):
        state = ResourceState("scf_organization", {"name": "acme", "suspended": UNSET})
        core = ORGANIZATION.groups[0]

        assert org_mapper.to_mutation_payload(state, core) == {"name": "acme"}

    def test_payload_keeps_empty_and_false_values(self, org_mapper):
        state = ResourceState("scf_organization", {"name": "", "suspended": False})
        core = ORGANIZATION.groups[0]

        assert org_mapper.to_mutation_payload(state, core) == {"name": "", "suspended": False}

    def test_create_payload(self, org_mapper):
        state = ResourceState(
            "scf_organization",
            {"name": "acme", "platform_id": PLATFORM_ID, "quota_id": QUOTA_ID},
        )

        assert org_mapper.to_create_payload(state) == {"name": "acme", "platform_id": PLATFORM_ID}


class TestMergeGroup:
    """Test merging a group mutation result into observed state."""

    def test_sent_values_fill_fields_missing_from_response(self, org_mapper):
        observed = org_mapper.to_state(make_organization(), PROJECT_ID)
        core = ORGANIZATION.groups[0]

        merged = org_mapper.merge_group(observed, core, None, {"name": "acme2"})

        assert merged.get("name") == "acme2"
        assert merged.get("quota_id") == QUOTA_ID
        assert merged.get("suspended") is False
        assert merged.handle == observed.handle

    def test_response_values_and_returns_are_merged(self, org_mapper, quota_response):
        observed = org_mapper.to_state(make_organization(updated_at=CREATED_AT), PROJECT_ID)
        quota = ORGANIZATION.groups[1]

        merged = org_mapper.merge_group(observed, quota, quota_response, {"quota_id": OTHER_QUOTA_ID})

        assert merged.get("quota_id") == OTHER_QUOTA_ID
        assert merged.get("updated_at") == UPDATED_AT.isoformat()
        assert merged.get("name") == "acme"


class TestToDesiredState:
    """Test validation of caller-supplied attributes."""

    def test_valid_attributes(self, org_mapper):
        desired = org_mapper.to_desired_state({
            "project_id": PROJECT_ID,
            "name": "acme",
            "suspended": False,
        })

        assert desired.get("name") == "acme"
        assert desired.get("suspended") is False
        assert desired.get("quota_id") is UNSET
        assert desired.handle is None

    def test_unknown_attribute(self, org_mapper):
        with pytest.raises(InvalidAttributeError) as exc_info:
            org_mapper.to_desired_state({"project_id": PROJECT_ID, "name": "acme", "colour": "red"})

        assert exc_info.value.attribute == "colour"

    def test_computed_attribute_cannot_be_set(self, org_mapper):
        with pytest.raises(InvalidAttributeError, match="computed"):
            org_mapper.to_desired_state({"project_id": PROJECT_ID, "name": "acme", "status": "x"})

    def test_required_attribute_missing(self, org_mapper):
        with pytest.raises(InvalidAttributeError, match="required"):
            org_mapper.to_desired_state({"project_id": PROJECT_ID})

    @pytest.mark.parametrize("attributes", [
        {"project_id": "not-a-uuid", "name": "acme"},
        {"project_id": PROJECT_ID, "name": ""},
        {"project_id": PROJECT_ID, "name": "x" * 256},
        {"project_id": PROJECT_ID, "name": "acme", "suspended": "yes"},
        {"project_id": PROJECT_ID, "name": "acme", "quota_id": f"{QUOTA_ID},{QUOTA_ID}"},
    ])
    def test_invalid_values(self, org_mapper, attributes):
        with pytest.raises(InvalidAttributeError):
            org_mapper.to_desired_state(attributes)
