from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Protocol, Sequence, Set

from .model import LocationAssignment


class MasterDataRepository(Protocol):
    """Generic access to the master-data tables (see `tables.TABLE_SPECS`)."""

    def list_rows(self, table: str, *, active_only: bool) -> Sequence[Dict[str, Any]]:
        """Rows ordered by created_at, newest first."""

        raise NotImplementedError

    def get_row(self, table: str, row_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def insert(self, table: str, data: Mapping[str, Any]) -> str:
        raise NotImplementedError

    def update(self, table: str, row_id: str, data: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def soft_delete(self, table: str, row_id: str) -> bool:
        raise NotImplementedError

    def options(self, table: str, *, label_column: str = "name") -> Sequence[Dict[str, Any]]:
        """Active (id, label) rows ordered by label."""

        raise NotImplementedError

    def list_children(self, table: str, *, parent_column: str, parent_id: str) -> Sequence[Dict[str, Any]]:
        raise NotImplementedError

    def existing_ids(self, table: str, ids: Sequence[str], *, active_only: bool = True) -> Set[str]:
        raise NotImplementedError


class LocationAssignmentRepository(Protocol):
    def get(self, user_id: str) -> Optional[LocationAssignment]:
        raise NotImplementedError

    def list_all(self) -> Sequence[LocationAssignment]:
        raise NotImplementedError

    def upsert(self, assignment: LocationAssignment) -> None:
        """Insert or replace the single assignment row of `assignment.user_id`."""

        raise NotImplementedError
