from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RoleLevel:
    """One rung of the role hierarchy; lower level = more senior."""

    id: str
    role: str
    level: int
    parent_role: Optional[str] = None


@dataclass(frozen=True)
class HierarchyPermission:
    """What a holder of `higher_role` may do to members holding `lower_role`."""

    higher_role: str
    lower_role: str
    can_view: bool = False
    can_edit: bool = False
    can_delete: bool = False
    can_export: bool = False
    can_assign_locations: bool = False
    id: Optional[str] = None


@dataclass(frozen=True)
class CustomRole:
    id: str
    role_name: str
    display_name: str
    description: Optional[str] = None
    level: Optional[int] = None
    is_system_role: bool = False
    is_active: bool = True
