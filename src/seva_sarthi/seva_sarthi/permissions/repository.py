from __future__ import annotations

from typing import Protocol, Sequence

from .model import ModulePermission, PermissionFlags


class PermissionRepository(Protocol):
    def list_for_role(self, role: str) -> Sequence[ModulePermission]:
        raise NotImplementedError

    def list_for_user(self, user_id: str) -> Sequence[ModulePermission]:
        raise NotImplementedError

    def replace_for_user(self, user_id: str, rows: Sequence[ModulePermission]) -> None:
        """Delete every row of the user, then insert `rows`."""

        raise NotImplementedError

    def upsert_for_role(self, *, role: str, module_name: str, flags: PermissionFlags) -> None:
        raise NotImplementedError
