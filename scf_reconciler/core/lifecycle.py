"""Lifecycle operations for reconciled resources.

``ResourceLifecycle`` sequences identity handling, remote calls, state
mapping and drift correction for create, read, update, delete and import.
It keeps no state between calls: every operation receives the states it
needs and returns the new one, and persisting it is up to the caller.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import structlog

from scf_reconciler.clients.exceptions import APIError
from scf_reconciler.core.classifier import Outcome, classify
from scf_reconciler.core.errors import (
    FatalError,
    InvalidFormatError,
    InvalidFragmentError,
    MalformedHandleError,
    MappingError,
)
from scf_reconciler.core.identity import SEPARATOR, build_handle, decode_handle
from scf_reconciler.core.mapper import StateMapper
from scf_reconciler.core.reconciler import DriftReconciler
from scf_reconciler.core.state import HANDLE_ATTRIBUTE, UNSET, ResourceState
from scf_reconciler.resources.base import HandleStyle, ResourceDescriptor

logger = structlog.get_logger(__name__)


class LifecycleOutcome(str, Enum):
    """Terminal outcome of a successful lifecycle operation."""
    CREATED = "created"
    PRESENT = "present"
    REMOVED = "removed"  # the resource no longer exists; discard persisted state
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass(frozen=True)
class LifecycleResult:
    outcome: LifecycleOutcome
    state: Optional[ResourceState] = None


class ResourceLifecycle:
    """Create/read/update/delete/import for one resource type in one region."""

    def __init__(self, descriptor: ResourceDescriptor, client: Any, region: str) -> None:
        self.descriptor = descriptor
        self.client = client
        self.region = region
        self.mapper = StateMapper(descriptor)
        self.reconciler = DriftReconciler(descriptor, client, region, mapper=self.mapper)
        self._logger = logger.bind(resource_type=descriptor.type_name, region=region)

    def _fatal(self, operation: str, error: Exception, **kwargs: Any) -> FatalError:
        return FatalError.from_exception(
            operation, error, resource_type=self.descriptor.type_name, **kwargs
        )

    def create(self, desired: ResourceState) -> LifecycleResult:
        """Create the resource, apply dependent groups and read it back.

        Raises:
            FatalError: If the type cannot be created, the desired state already
                carries a handle, or any remote call or mapping fails
        """
        descriptor = self.descriptor
        if not descriptor.managed:
            raise FatalError("create", "create not supported", resource_type=descriptor.type_name)
        if desired.handle is not None:
            raise FatalError(
                "create",
                f"resource already has handle {desired.handle!r}",
                resource_type=descriptor.type_name,
            )

        scope_id = desired.get(descriptor.handle.scope_field)
        if scope_id is UNSET:
            raise FatalError(
                "create",
                f"{descriptor.handle.scope_field} is required",
                resource_type=descriptor.type_name,
            )
        log = self._logger.bind(project_id=scope_id)

        payload = self.mapper.to_create_payload(desired)
        try:
            created = descriptor.create(self.client, scope_id, self.region, desired, payload)
            state = self.mapper.to_state(created, scope_id, prior=desired)
        except (APIError, MappingError, InvalidFragmentError) as exc:
            log.error("Failed to create resource", error=str(exc))
            raise self._fatal("create", exc) from exc

        _, lookup_id = self.mapper.address(state)
        log = log.bind(handle=state.handle)

        created_fields = set(descriptor.create_fields)
        for group in descriptor.groups:
            pending = [
                name for name in group.fields
                if name not in created_fields and desired.is_set(name)
            ]
            if not pending:
                continue
            group_payload = self.mapper.to_mutation_payload(desired, group)
            log.info("Applying dependent group after create", group=group.name)
            try:
                group.mutate(self.client, scope_id, self.region, lookup_id, group_payload)
            except APIError as exc:
                log.error("Dependent group failed after create", group=group.name, error=str(exc))
                raise self._fatal("create", exc, group=group.name, partial_state=state) from exc

        try:
            response = descriptor.get(self.client, scope_id, self.region, lookup_id)
            state = self.mapper.to_state(response, scope_id, prior=state)
        except (APIError, MappingError, InvalidFragmentError) as exc:
            log.error("Failed to read back created resource", error=str(exc))
            raise self._fatal("create", exc, partial_state=state) from exc

        log.info("Resource created", handle=state.handle)
        return LifecycleResult(LifecycleOutcome.CREATED, state)

    def read(self, state: ResourceState) -> LifecycleResult:
        """Refresh a resource from the service.

        Returns ``REMOVED`` when the service reports that it no longer exists.

        Raises:
            MalformedHandleError: If the state's handle cannot be decoded
            FatalError: On any other remote or mapping failure
        """
        scope_id, lookup_id = self.mapper.address(state)
        log = self._logger.bind(project_id=scope_id, lookup_id=lookup_id)

        try:
            response = self.descriptor.get(self.client, scope_id, self.region, lookup_id)
        except APIError as exc:
            if classify(exc) is Outcome.NOT_FOUND:
                log.info("Resource no longer exists; removing from state")
                return LifecycleResult(LifecycleOutcome.REMOVED)
            log.error("Failed to read resource", error=str(exc))
            raise self._fatal("read", exc) from exc

        try:
            refreshed = self.mapper.to_state(response, scope_id, prior=state)
        except (MappingError, InvalidFragmentError) as exc:
            log.error("Failed to process read response", error=str(exc))
            raise self._fatal("read", exc) from exc

        log.info("Resource read", handle=refreshed.handle)
        return LifecycleResult(LifecycleOutcome.PRESENT, refreshed)

    def update(self, desired: ResourceState, observed: ResourceState) -> LifecycleResult:
        """Correct drift between ``desired`` and the live resource.

        Raises:
            FatalError: If the type is immutable or reconciliation fails
        """
        if not self.descriptor.updatable:
            self._logger.error("Update attempted on immutable resource", handle=observed.handle)
            raise FatalError("update", "update not supported", resource_type=self.descriptor.type_name)
        if observed.handle is None:
            raise FatalError(
                "update", "observed state has no handle", resource_type=self.descriptor.type_name
            )

        result = self.reconciler.reconcile(desired, observed)
        self._logger.info(
            "Resource updated",
            handle=result.state.handle,
            applied_groups=result.applied_groups,
        )
        return LifecycleResult(LifecycleOutcome.UPDATED, result.state)

    def delete(self, state: ResourceState) -> LifecycleResult:
        """Delete the resource. Deleting a resource that is already gone succeeds.

        Raises:
            FatalError: If the type cannot be deleted or the call fails
        """
        if self.descriptor.delete is None:
            raise FatalError("delete", "delete not supported", resource_type=self.descriptor.type_name)

        scope_id, lookup_id = self.mapper.address(state)
        log = self._logger.bind(project_id=scope_id, lookup_id=lookup_id)

        try:
            self.descriptor.delete(self.client, scope_id, self.region, lookup_id)
        except APIError as exc:
            if classify(exc) is Outcome.NOT_FOUND:
                log.info("Resource already deleted")
                return LifecycleResult(LifecycleOutcome.DELETED)
            log.error("Failed to delete resource", error=str(exc))
            raise self._fatal("delete", exc) from exc

        log.info("Resource deleted")
        return LifecycleResult(LifecycleOutcome.DELETED)

    def import_state(self, identifier: str, scope_id: Optional[str] = None) -> LifecycleResult:
        """Adopt an existing resource from its external identifier.

        ``identifier`` is ``scope_id,lookup_id``. An identifier without the
        separator is taken as the lookup id alone, in which case ``scope_id``
        must be supplied.

        Raises:
            InvalidFormatError: If the identifier cannot be split into fragments
            FatalError: If the resource does not exist or cannot be read
        """
        descriptor = self.descriptor
        expected = f"[{descriptor.handle.scope_field}]{SEPARATOR}[{descriptor.lookup_field}]"

        if SEPARATOR in identifier:
            try:
                scope_id, lookup_id = decode_handle(identifier)
            except MalformedHandleError as exc:
                raise InvalidFormatError(
                    f"Expected import identifier with format {expected}, got {identifier!r}",
                    identifier,
                ) from exc
        else:
            if not scope_id:
                raise InvalidFormatError(
                    f"Expected import identifier with format {expected}, got {identifier!r} "
                    f"and no {descriptor.handle.scope_field} to go with it",
                    identifier,
                )
            lookup_id = identifier

        try:
            seeded_handle = build_handle(scope_id, lookup_id)
        except InvalidFragmentError as exc:
            raise InvalidFormatError(str(exc), identifier) from exc

        values = {descriptor.handle.scope_field: scope_id, descriptor.lookup_field: lookup_id}
        if descriptor.lookup_field == descriptor.handle.resource_field:
            if descriptor.handle.style is HandleStyle.COMPOSITE:
                values[HANDLE_ATTRIBUTE] = seeded_handle
            else:
                values[HANDLE_ATTRIBUTE] = lookup_id
        seeded = ResourceState(descriptor.type_name, values)

        result = self.read(seeded)
        if result.outcome is LifecycleOutcome.REMOVED:
            raise FatalError(
                "import",
                f"cannot import non-existent resource {identifier!r}",
                resource_type=descriptor.type_name,
            )
        self._logger.info("Resource imported", handle=result.state.handle)
        return result

    def lookup(self, config: ResourceState) -> LifecycleResult:
        """Read a data source addressed by caller-supplied attributes.

        Unlike ``read``, a missing resource is an error.

        Raises:
            FatalError: If the resource does not exist or cannot be read
        """
        result = self.read(config)
        if result.outcome is LifecycleOutcome.REMOVED:
            scope_id, lookup_id = self.mapper.address(config)
            raise FatalError(
                "read",
                f"{self.descriptor.lookup_field} {lookup_id!r} not found in {scope_id!r}",
                resource_type=self.descriptor.type_name,
            )
        return result
