"""File-backed persistence of reconciled state for the command line host.

The engine itself never persists anything. The CLI keeps the last state
returned by each lifecycle operation here, one JSON file per resource under
``state_dir/<resource_type>/``, keyed by the resource handle.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote, unquote

import structlog

from scf_reconciler.core.errors import ReconcileError
from scf_reconciler.core.state import ResourceState

logger = structlog.get_logger(__name__)


class StateStoreError(ReconcileError):
    """A persisted state file cannot be read or written."""
    pass


class StateStore:
    """Stores resource state records as JSON files."""

    def __init__(self, state_dir: Path) -> None:
        """Initialize the store.

        Args:
            state_dir: Root directory; created on first write
        """
        self.state_dir = Path(state_dir)
        self._logger = logger.bind(state_dir=str(self.state_dir))

    def _type_dir(self, resource_type: str) -> Path:
        return self.state_dir / resource_type

    def _path(self, resource_type: str, handle: str) -> Path:
        # Handles contain the separator; quote them into a safe file name
        return self._type_dir(resource_type) / f"{quote(handle, safe='')}.json"

    def save(self, state: ResourceState) -> Path:
        """Persist a state record, replacing any previous one for its handle.

        The previous file is kept as ``<name>.json.backup``.

        Raises:
            StateStoreError: If the state has no handle or cannot be written
        """
        handle = state.handle
        if handle is None:
            raise StateStoreError(f"Cannot store {state.resource_type} state without a handle")

        path = self._path(state.resource_type, handle)
        document = {
            "resource_type": state.resource_type,
            "handle": handle,
            "saved_at": datetime.now(timezone.utc).isoformat(),
            "values": state.to_dict(),
        }

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if path.exists():
                path.replace(path.with_suffix(".json.backup"))
            with open(path, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, default=str)
        except OSError as e:
            self._logger.error("Failed to save state", handle=handle, error=str(e))
            raise StateStoreError(f"Failed to save state for {handle!r}: {e}") from e

        self._logger.debug("Saved state", resource_type=state.resource_type, handle=handle, file=str(path))
        return path

    def load(self, resource_type: str, handle: str) -> Optional[ResourceState]:
        """Load the state stored for ``handle``, or ``None`` when there is none.

        Raises:
            StateStoreError: If the file exists but cannot be parsed
        """
        path = self._path(resource_type, handle)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, ValueError) as e:
            self._logger.error("Failed to load state", handle=handle, error=str(e))
            raise StateStoreError(f"Failed to load state for {handle!r}: {e}") from e

        if document.get("resource_type") != resource_type or not isinstance(document.get("values"), dict):
            raise StateStoreError(f"State file {path} does not hold a {resource_type} record")

        return ResourceState.from_dict(resource_type, document["values"])

    def delete(self, resource_type: str, handle: str) -> bool:
        """Remove the stored state for ``handle``.

        Returns:
            True if a record was removed, False if none existed
        """
        path = self._path(resource_type, handle)
        if not path.exists():
            return False

        path.unlink()
        backup = path.with_suffix(".json.backup")
        if backup.exists():
            backup.unlink()
        self._logger.debug("Deleted state", resource_type=resource_type, handle=handle)
        return True

    def list_handles(self, resource_type: str) -> List[str]:
        """Handles with stored state for a resource type, sorted."""
        type_dir = self._type_dir(resource_type)
        if not type_dir.is_dir():
            return []
        return sorted(unquote(path.stem) for path in type_dir.glob("*.json"))
