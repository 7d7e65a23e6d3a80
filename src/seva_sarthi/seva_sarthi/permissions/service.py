from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from ..common.logging_utils import get_logger
from ..common.validators import require_non_empty
from ..core.constants import ALL_ACTIONS, ALL_MODULES
from ..core.enums import PermissionAction, PermissionModule
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..karyakars.repository import ProfileRepository
from ..security.service import SecurityAuditService
from .model import ModulePermission, PermissionFlags, PermissionMap
from .repository import PermissionRepository
from .resolver import has_permission, resolve_permissions

logger = get_logger(__name__)


def _flags_from(data: Mapping[str, Any]) -> PermissionFlags:
    unknown = set(data) - set(ALL_ACTIONS)
    if unknown:
        raise ValidationError(f"Unknown permission action(s): {', '.join(sorted(unknown))}")
    return PermissionFlags.from_row({k: bool(v) for k, v in data.items()})


def _check_module(module: str) -> str:
    if module not in ALL_MODULES:
        raise ValidationError(f"Unknown permission module: {module}")
    return module


class PermissionService:
    """Use case: resolve module x action permissions and manage overrides."""

    def __init__(self, permissions: PermissionRepository, profiles: ProfileRepository, audit: SecurityAuditService):
        self._permissions = permissions
        self._profiles = profiles
        self._audit = audit

    def get_permissions(self, user_id: str) -> PermissionMap:
        profile = self._profiles.get_by_id(user_id)
        if not profile or not profile.is_active:
            return {}
        return resolve_permissions(
            profile.role,
            self._permissions.list_for_role(profile.role),
            self._permissions.list_for_user(user_id),
        )

    def has_permission(self, user_id: str, module: str, action: str) -> bool:
        return has_permission(self.get_permissions(user_id), module, action)

    def require(
        self,
        *,
        user_id: Optional[str],
        module: str,
        action: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        """Raise AuthorizationError (and audit the attempt) unless the user holds module.action."""

        if user_id and self.has_permission(user_id, module, action):
            return
        self._audit.log_unauthorized_access(
            user_id=user_id,
            module=module,
            action=action,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        raise AuthorizationError(f"You don't have permission to {action} {module}")

    def get_user_overrides(self, user_id: str) -> Dict[str, Dict[str, bool]]:
        return {row.module_name: row.flags.as_dict() for row in self._permissions.list_for_user(user_id)}

    def save_user_permissions(
        self,
        *,
        actor_id: str,
        user_id: str,
        rows: Mapping[str, Mapping[str, Any]],
    ) -> Dict[str, Dict[str, bool]]:
        """Replace every override of `user_id`; modules with no flag set are dropped."""

        self.require(user_id=actor_id, module=PermissionModule.ADMIN.value, action=PermissionAction.EDIT.value)
        if not self._profiles.get_by_id(user_id):
            raise NotFoundError("User not found")

        to_store: list[ModulePermission] = []
        for module, flags_data in (rows or {}).items():
            flags = _flags_from(flags_data or {})
            _check_module(module)
            if flags.any():
                to_store.append(ModulePermission(module_name=module, flags=flags, user_id=user_id))

        self._permissions.replace_for_user(user_id, to_store)
        logger.info("permissions of user %s replaced by %s (%d module(s))", user_id, actor_id, len(to_store))
        return {row.module_name: row.flags.as_dict() for row in to_store}

    def list_role_permissions(self, role: str) -> Dict[str, Dict[str, bool]]:
        role = require_non_empty(role, "Role")
        return {row.module_name: row.flags.as_dict() for row in self._permissions.list_for_role(role)}

    def set_role_permission(
        self,
        *,
        actor_id: str,
        role: str,
        module: str,
        flags: Mapping[str, Any],
    ) -> Dict[str, bool]:
        self.require(user_id=actor_id, module=PermissionModule.ADMIN.value, action=PermissionAction.EDIT.value)
        role = require_non_empty(role, "Role")
        module = _check_module(module)
        parsed = _flags_from(flags or {})
        self._permissions.upsert_for_role(role=role, module_name=module, flags=parsed)
        logger.info("role permission %s/%s set by %s: %s", role, module, actor_id, parsed.as_dict())
        return parsed.as_dict()
