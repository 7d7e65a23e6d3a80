from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..common.datetime_utils import parse_iso_date
from ..common.logging_utils import get_logger
from ..common.validators import optional_text, validate_email, validate_phone, validate_text, validate_uuid
from ..core.constants import MAX_TEXT_LENGTH
from ..core.enums import MasterTable, PermissionAction, PermissionModule
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..karyakars.repository import ProfileRepository
from ..permissions.service import PermissionService
from ..roles.service import RoleService
from .model import LocationAssignment
from .repository import LocationAssignmentRepository, MasterDataRepository
from .tables import FieldSpec, TableSpec, get_table_spec

logger = get_logger(__name__)

_TEXTAREA_MAX_LENGTH = 2000


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class MasterDataService:
    """Use case: CRUD over mandirs / kshetras / villages / mandals and lookup tables."""

    def __init__(self, master: MasterDataRepository, permissions: PermissionService):
        self._master = master
        self._permissions = permissions

    # --- validation -------------------------------------------------------

    def _coerce(self, field: FieldSpec, value: Any) -> Any:
        if _blank(value):
            if field.required:
                raise ValidationError(f"{field.label} is required")
            return None

        if field.type == "text":
            return validate_text(str(value), field.label, max_length=field.max_length or MAX_TEXT_LENGTH)
        if field.type == "textarea":
            return optional_text(str(value), field.label, max_length=_TEXTAREA_MAX_LENGTH)
        if field.type == "email":
            return validate_email(str(value), field.label)
        if field.type == "phone":
            return validate_phone(str(value).strip(), field.label)
        if field.type == "date":
            return parse_iso_date(str(value).strip())
        if field.type == "time":
            try:
                return datetime.strptime(str(value).strip()[:5], "%H:%M").strftime("%H:%M:00")
            except ValueError:
                raise ValidationError(f"{field.label} must be HH:MM")
        if field.type == "number":
            try:
                return int(value)
            except (TypeError, ValueError):
                raise ValidationError(f"{field.label} must be a number")
        if field.type == "boolean":
            return bool(value)
        if field.type == "select":
            ref_id = validate_uuid(str(value).strip(), field.label)
            if field.foreign_key and ref_id not in self._master.existing_ids(field.foreign_key, [ref_id]):
                raise ValidationError(f"Selected {field.label.lower()} does not exist or is inactive")
            return ref_id
        raise ValueError(f"Unsupported field type {field.type!r}")

    def _clean(self, spec: TableSpec, data: Mapping[str, Any], *, partial: bool) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for field in spec.fields:
            if partial and field.name not in data:
                continue
            out[field.name] = self._coerce(field, data.get(field.name))
        return out

    def _ensure_role_name_free(self, role_name: Optional[str], *, row_id: Optional[str] = None) -> None:
        if not role_name:
            return
        wanted = role_name.strip().lower()
        for row in self._master.list_rows(MasterTable.CUSTOM_ROLES.value, active_only=False):
            if row["id"] != row_id and str(row.get("role_name") or "").strip().lower() == wanted:
                raise ValidationError(f"Role name {role_name} already exists")

    def _require(self, actor_id: str, action: PermissionAction) -> None:
        self._permissions.require(user_id=actor_id, module=PermissionModule.ADMIN.value, action=action.value)

    # --- operations -------------------------------------------------------

    def list(self, table: str) -> List[Dict[str, Any]]:
        spec = get_table_spec(table)
        return list(self._master.list_rows(spec.table, active_only=spec.active_only_listing))

    def get(self, table: str, row_id: str) -> Dict[str, Any]:
        spec = get_table_spec(table)
        row = self._master.get_row(spec.table, row_id)
        if not row:
            raise NotFoundError(f"{spec.title} not found")
        return row

    def create(self, *, actor_id: str, table: str, data: Mapping[str, Any]) -> str:
        spec = get_table_spec(table)
        self._require(actor_id, PermissionAction.ADD)
        values = self._clean(spec, data or {}, partial=False)
        if spec.table == MasterTable.CUSTOM_ROLES.value:
            self._ensure_role_name_free(values.get("role_name"))
            values["is_system_role"] = False
        row_id = self._master.insert(spec.table, values)
        logger.info("%s %s created by %s", spec.table, row_id, actor_id)
        return row_id

    def update(self, *, actor_id: str, table: str, row_id: str, data: Mapping[str, Any]) -> None:
        spec = get_table_spec(table)
        self._require(actor_id, PermissionAction.EDIT)
        existing = self.get(spec.table, row_id)
        if spec.table == MasterTable.CUSTOM_ROLES.value and existing.get("is_system_role"):
            raise ValidationError("System roles cannot be modified")

        values = self._clean(spec, data or {}, partial=True)
        if spec.table == MasterTable.CUSTOM_ROLES.value:
            self._ensure_role_name_free(values.get("role_name"), row_id=row_id)
        if spec.parent_column and values.get(spec.parent_column) == row_id:
            raise ValidationError(f"{spec.title} cannot be its own parent")
        if values and not self._master.update(spec.table, row_id, values):
            raise ValidationError(f"Failed to update {spec.title.lower()}")
        logger.info("%s %s updated by %s", spec.table, row_id, actor_id)

    def delete(self, *, actor_id: str, table: str, row_id: str) -> None:
        spec = get_table_spec(table)
        self._require(actor_id, PermissionAction.DELETE)
        existing = self.get(spec.table, row_id)
        if spec.table == MasterTable.CUSTOM_ROLES.value and existing.get("is_system_role"):
            raise ValidationError("System roles cannot be deleted")
        self._master.soft_delete(spec.table, row_id)
        logger.info("%s %s deactivated by %s", spec.table, row_id, actor_id)

    def foreign_key_options(self, table: str) -> List[Dict[str, str]]:
        spec = get_table_spec(table)
        rows = self._master.options(spec.table, label_column=spec.label_column)
        return [{"value": r["id"], "label": r["label"]} for r in rows if r.get("id") and r.get("label")]

    def hierarchy_children(self, table: str, parent_id: str) -> List[Dict[str, Any]]:
        spec = get_table_spec(table)
        if not spec.parent_column:
            raise ValidationError(f"{spec.title} has no parent level")
        return list(self._master.list_children(spec.table, parent_column=spec.parent_column, parent_id=parent_id))

    def form_fields(self, table: str) -> List[Dict[str, Any]]:
        spec = get_table_spec(table)
        return [
            {
                "name": f.name,
                "label": f.label,
                "type": f.type,
                "required": f.required,
                "foreign_key": f.foreign_key,
                "max_length": f.max_length,
            }
            for f in spec.fields
        ]


_ASSIGNMENT_TABLES = (
    ("mandir_ids", MasterTable.MANDIRS.value),
    ("kshetra_ids", MasterTable.KSHETRAS.value),
    ("village_ids", MasterTable.VILLAGES.value),
    ("mandal_ids", MasterTable.MANDALS.value),
)


class LocationAssignmentService:
    """Use case: decide which parts of the hierarchy a member administers."""

    def __init__(
        self,
        assignments: LocationAssignmentRepository,
        master: MasterDataRepository,
        profiles: ProfileRepository,
        roles: RoleService,
    ):
        self._assignments = assignments
        self._master = master
        self._profiles = profiles
        self._roles = roles

    def get_assignment(self, user_id: str) -> Optional[dict]:
        a = self._assignments.get(user_id)
        return a.as_dict() if a else None

    def list_assignments(self) -> List[dict]:
        return [a.as_dict() for a in self._assignments.list_all()]

    def assign(
        self,
        *,
        actor_id: str,
        user_id: str,
        mandir_ids: Sequence[str] = (),
        kshetra_ids: Sequence[str] = (),
        village_ids: Sequence[str] = (),
        mandal_ids: Sequence[str] = (),
    ) -> dict:
        actor = self._profiles.get_by_id(actor_id)
        if not actor or not actor.is_active:
            raise AuthorizationError("User profile not found")
        target = self._profiles.get_by_id(user_id)
        if not target:
            raise NotFoundError("User not found")

        # super_admin passes validate_role_assignment unconditionally
        if not self._roles.validate_role_assignment(actor.role, target.role):
            raise AuthorizationError("You cannot assign locations to a user of this role")

        given = {
            "mandir_ids": mandir_ids,
            "kshetra_ids": kshetra_ids,
            "village_ids": village_ids,
            "mandal_ids": mandal_ids,
        }
        cleaned: Dict[str, List[str]] = {}
        for key, table in _ASSIGNMENT_TABLES:
            ids = list(dict.fromkeys(str(i) for i in (given[key] or []) if str(i).strip()))
            found = self._master.existing_ids(table, ids, active_only=False) if ids else set()
            missing = [i for i in ids if i not in found]
            if missing:
                raise ValidationError(f"Unknown {table}: {', '.join(missing)}")
            cleaned[key] = ids

        existing = self._assignments.get(user_id)
        assignment = LocationAssignment(
            id=existing.id if existing else None,
            user_id=user_id,
            assigned_by=actor_id,
            **cleaned,
        )
        self._assignments.upsert(assignment)
        logger.info("locations assigned to %s by %s", user_id, actor_id)
        return assignment.as_dict()
