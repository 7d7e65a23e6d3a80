from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import CustomRole, HierarchyPermission, RoleLevel


class RoleRepository(Protocol):
    def list_hierarchy(self) -> Sequence[RoleLevel]:
        raise NotImplementedError

    def get_level(self, role: str) -> Optional[int]:
        raise NotImplementedError

    def update_hierarchy(self, role_id: str, *, level: int, parent_role: Optional[str]) -> bool:
        raise NotImplementedError

    def list_hierarchy_permissions(self) -> Sequence[HierarchyPermission]:
        raise NotImplementedError

    def upsert_hierarchy_permission(self, permission: HierarchyPermission) -> None:
        raise NotImplementedError

    def list_custom_roles(self) -> Sequence[CustomRole]:
        """Active custom roles ordered by level, roles without a level last."""

        raise NotImplementedError
