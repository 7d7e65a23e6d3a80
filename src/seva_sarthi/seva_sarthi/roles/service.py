from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from ..common.logging_utils import get_logger
from ..common.validators import require_non_empty
from ..core.constants import UNRANKED_ROLE_LEVEL
from ..core.enums import PermissionAction, PermissionModule, SystemRole
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..karyakars.repository import ProfileRepository
from ..permissions.service import PermissionService
from ..security.service import SecurityAuditService
from .model import HierarchyPermission
from .repository import RoleRepository

logger = get_logger(__name__)

_ROLE_CHANGE_MODULE = "user_management"
_ROLE_CHANGE_ACTION = "role_change"


class RoleService:
    """Use case: role hierarchy checks, hierarchy maintenance and custom role lookups."""

    def __init__(
        self,
        roles: RoleRepository,
        profiles: ProfileRepository,
        permissions: PermissionService,
        audit: SecurityAuditService,
    ):
        self._roles = roles
        self._profiles = profiles
        self._permissions = permissions
        self._audit = audit

    # --- hierarchy checks -------------------------------------------------

    def get_level(self, role: Optional[str]) -> Optional[int]:
        if not role:
            return None
        return self._roles.get_level(role)

    def validate_role_assignment(self, assigner_role: Optional[str], target_role: Optional[str]) -> bool:
        """True when `assigner_role` may hand out `target_role`.

        super_admin may assign anything; otherwise both roles need a level and the
        assigner's level must be strictly lower (more senior) than the target's.
        """

        if assigner_role == SystemRole.SUPER_ADMIN.value:
            return True
        assigner_level = self.get_level(assigner_role)
        target_level = self.get_level(target_role)
        if assigner_level is None or target_level is None:
            return False
        return assigner_level < target_level

    def validate_role_change(
        self,
        *,
        actor_id: str,
        target_user_id: str,
        new_role: str,
        reason: Optional[str] = None,
    ) -> None:
        """Apply a role change if the actor outranks both the member's current and new role."""

        new_role = require_non_empty(new_role, "Role")

        actor = self._profiles.get_by_id(actor_id)
        if not actor or not actor.is_active:
            self._deny(actor_id)
            raise AuthorizationError("User profile not found")

        target = self._profiles.get_by_id(target_user_id)
        if not target:
            raise NotFoundError("User not found")

        if self.get_level(new_role) is None and actor.role != SystemRole.SUPER_ADMIN.value:
            self._deny(actor_id)
            raise AuthorizationError("Role hierarchy not found")

        if not self.validate_role_assignment(actor.role, new_role) or not self.validate_role_assignment(
            actor.role, target.role
        ):
            self._deny(actor_id)
            raise AuthorizationError("Insufficient permissions")

        if target.role == new_role:
            return

        self._profiles.set_role(target_user_id, new_role)
        self._audit.log_role_change(
            actor_id=actor_id,
            target_user_id=target_user_id,
            old_role=target.role,
            new_role=new_role,
            reason=reason,
        )

    def _deny(self, actor_id: Optional[str]) -> None:
        self._audit.log_unauthorized_access(user_id=actor_id, module=_ROLE_CHANGE_MODULE, action=_ROLE_CHANGE_ACTION)

    def get_assignable_roles(self, role: Optional[str]) -> List[str]:
        level = self.get_level(role)
        if level is None:
            level = UNRANKED_ROLE_LEVEL
        return [r.role for r in self._roles.list_hierarchy() if r.level > level]

    # --- hierarchy maintenance -------------------------------------------

    def list_hierarchy(self) -> List[dict]:
        return [
            {"id": r.id, "role": r.role, "level": r.level, "parent_role": r.parent_role}
            for r in self._roles.list_hierarchy()
        ]

    def update_hierarchy(self, *, actor_id: str, role_id: str, level: Any, parent_role: Optional[str]) -> None:
        self._permissions.require(user_id=actor_id, module=PermissionModule.ADMIN.value, action=PermissionAction.EDIT.value)
        try:
            level = int(level)
        except (TypeError, ValueError):
            raise ValidationError("Level must be a number")
        if level < 1:
            raise ValidationError("Level must be at least 1")

        if not self._roles.update_hierarchy(role_id, level=level, parent_role=(parent_role or "").strip() or None):
            raise NotFoundError("Role hierarchy entry not found")
        logger.info("role hierarchy %s set to level %s by %s", role_id, level, actor_id)

    def list_hierarchy_permissions(self) -> List[dict]:
        return [
            {
                "id": p.id,
                "higher_role": p.higher_role,
                "lower_role": p.lower_role,
                "can_view": p.can_view,
                "can_edit": p.can_edit,
                "can_delete": p.can_delete,
                "can_export": p.can_export,
                "can_assign_locations": p.can_assign_locations,
            }
            for p in self._roles.list_hierarchy_permissions()
        ]

    def save_hierarchy_permission(self, *, actor_id: str, data: Mapping[str, Any]) -> None:
        self._permissions.require(user_id=actor_id, module=PermissionModule.ADMIN.value, action=PermissionAction.EDIT.value)
        higher = require_non_empty(data.get("higher_role"), "Higher role")
        lower = require_non_empty(data.get("lower_role"), "Lower role")
        if higher == lower:
            raise ValidationError("Higher and lower role must differ")

        self._roles.upsert_hierarchy_permission(
            HierarchyPermission(
                higher_role=higher,
                lower_role=lower,
                can_view=bool(data.get("can_view")),
                can_edit=bool(data.get("can_edit")),
                can_delete=bool(data.get("can_delete")),
                can_export=bool(data.get("can_export")),
                can_assign_locations=bool(data.get("can_assign_locations")),
            )
        )

    # --- custom roles -----------------------------------------------------

    def role_options(self) -> List[Dict[str, str]]:
        out = []
        for r in self._roles.list_custom_roles():
            label = f"{r.display_name} (Level {r.level})" if r.level else r.display_name
            out.append({"value": r.role_name, "label": label})
        return out

    def display_name(self, role: str) -> str:
        for r in self._roles.list_custom_roles():
            if r.role_name == role:
                return r.display_name or role
        return role

    def role_level(self, role: str) -> Optional[int]:
        for r in self._roles.list_custom_roles():
            if r.role_name == role:
                return r.level
        return None
