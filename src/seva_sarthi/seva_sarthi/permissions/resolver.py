from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..core.constants import ALL_MODULES
from ..core.enums import SystemRole
from .model import ModulePermission, PermissionFlags, PermissionMap


def resolve_permissions(
    role: Optional[str],
    role_rows: Iterable[ModulePermission],
    user_rows: Iterable[ModulePermission],
    *,
    modules: Sequence[str] = ALL_MODULES,
) -> PermissionMap:
    """Merge role-level and user-level permission rows into a module -> action map.

    Role rows are applied first, user rows then replace the whole entry of their
    module. A super_admin gets every action on every known module.
    """

    merged: PermissionMap = {}

    for row in role_rows:
        merged[row.module_name] = row.flags.as_dict()

    for row in user_rows:
        merged[row.module_name] = row.flags.as_dict()

    if role == SystemRole.SUPER_ADMIN.value:
        for module in modules:
            merged[module] = PermissionFlags.all().as_dict()

    return merged


def has_permission(permissions: PermissionMap, module: str, action: str) -> bool:
    return bool(permissions.get(module, {}).get(action, False))
