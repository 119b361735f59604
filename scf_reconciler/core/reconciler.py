"""Drift correction for the update path.

The reconciler re-reads the live resource, compares it with the desired
state one attribute group at a time and issues at most one mutation per
group that drifted, in the order the resource type declares its groups.

A failure aborts the remaining groups. Groups applied before the failure
are not rolled back: the service has no multi-resource transactions, so the
error carries the partially reconciled state and the caller re-runs update to
finish the rest.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

import structlog

from scf_reconciler.clients.exceptions import APIError
from scf_reconciler.core.errors import FatalError, InvalidFragmentError, MappingError
from scf_reconciler.core.mapper import StateMapper
from scf_reconciler.core.state import ResourceState
from scf_reconciler.resources.base import AttributeGroup, ResourceDescriptor

logger = structlog.get_logger(__name__)

OPERATION = "update"


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation pass."""

    state: ResourceState
    applied_groups: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.applied_groups)


class DriftReconciler:
    """Applies the minimal set of group mutations that brings a resource to its desired state."""

    def __init__(
        self,
        descriptor: ResourceDescriptor,
        client: Any,
        region: str,
        mapper: Optional[StateMapper] = None,
    ) -> None:
        self.descriptor = descriptor
        self.client = client
        self.region = region
        self.mapper = mapper or StateMapper(descriptor)
        self._logger = logger.bind(resource_type=descriptor.type_name, region=region)

    def diff(self, desired: ResourceState, observed: ResourceState) -> List[AttributeGroup]:
        """Groups whose fields differ between desired and observed, in evaluation order.

        Attributes the caller left unset are not managed and never count as drift.
        """
        changed = []
        for group in self.descriptor.groups:
            if self._group_differs(group, desired, observed):
                changed.append(group)
        return changed

    def _group_differs(
        self,
        group: AttributeGroup,
        desired: ResourceState,
        observed: ResourceState,
    ) -> bool:
        return any(
            desired.is_set(name) and desired.get(name) != observed.get(name)
            for name in group.fields
        )

    def reconcile(self, desired: ResourceState, observed: ResourceState) -> ReconcileResult:
        """Bring the remote resource in line with ``desired``.

        Args:
            desired: Attributes requested by the caller
            observed: Last reconciled state; must carry the resource handle

        Returns:
            ReconcileResult with the new observed state and the groups applied

        Raises:
            FatalError: If the guard read, a mutation or a mapping fails
        """
        scope_id, lookup_id = self.mapper.address(observed)
        log = self._logger.bind(project_id=scope_id, lookup_id=lookup_id, handle=observed.handle)

        try:
            response = self.descriptor.get(self.client, scope_id, self.region, lookup_id)
            current = self.mapper.to_state(response, scope_id, prior=observed)
        except (APIError, MappingError, InvalidFragmentError) as exc:
            log.error("Failed to read current state before update", error=str(exc))
            raise FatalError.from_exception(
                OPERATION, exc, resource_type=self.descriptor.type_name
            ) from exc

        self._warn_create_only_drift(desired, current, log)

        result = ReconcileResult(state=current)
        for group in self.diff(desired, current):
            payload = self.mapper.to_mutation_payload(desired, group)
            log.info("Correcting drift", group=group.name, attributes=sorted(payload))
            try:
                mutation_response = group.mutate(
                    self.client, scope_id, self.region, lookup_id, payload
                )
                result.state = self.mapper.merge_group(result.state, group, mutation_response, payload)
            except (APIError, MappingError, InvalidFragmentError) as exc:
                log.error(
                    "Group mutation failed",
                    group=group.name,
                    applied_groups=result.applied_groups,
                    error=str(exc),
                )
                raise FatalError.from_exception(
                    OPERATION,
                    exc,
                    group=group.name,
                    resource_type=self.descriptor.type_name,
                    partial_state=result.state,
                ) from exc
            result.applied_groups.append(group.name)

        if not result.changed:
            log.info("No drift detected")
        return result

    def _warn_create_only_drift(self, desired: ResourceState, current: ResourceState, log: Any) -> None:
        for name in self.descriptor.create_only_fields:
            if desired.is_set(name) and desired.get(name) != current.get(name):
                log.warning(
                    "Attribute cannot be changed after create; ignoring drift",
                    attribute=name,
                    desired=desired.get(name),
                    observed=current.get(name),
                )
