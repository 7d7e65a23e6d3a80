from __future__ import annotations

import re
from typing import Any, BinaryIO, Dict, List, Mapping, Optional, Sequence

from werkzeug.security import generate_password_hash

from ..common.datetime_utils import calculate_age, fmt_date, fmt_dt, parse_optional_date
from ..common.logging_utils import get_logger
from ..common.validators import (
    optional_text,
    require_min_length,
    validate_email,
    validate_phone,
    validate_text,
    validate_uuid,
)
from ..core.constants import (
    BLOOD_GROUPS,
    DEFAULT_MEMBER_ROLE,
    EDUCATION_LEVELS,
    MARITAL_STATUSES,
    MAX_SKILL_LENGTH,
    MEMBER_EMAIL_DOMAIN,
    PASSWORD_MIN_LENGTH,
    SATSANGI_CATEGORIES,
    VEHICLE_TYPES,
)
from ..core.enums import MasterTable, PermissionAction, PermissionModule
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..locations.repository import MasterDataRepository
from ..permissions.service import PermissionService
from ..roles.service import RoleService
from ..storage.service import FileStorageService
from .model import AdditionalDetails, KaryakarFilters, Profile
from .repository import AdditionalDetailsRepository, ProfileRepository

logger = get_logger(__name__)

# profile column -> master-data table it references
_REFERENCE_COLUMNS = {
    "profession_id": MasterTable.PROFESSIONS.value,
    "seva_type_id": MasterTable.SEVA_TYPES.value,
    "mandir_id": MasterTable.MANDIRS.value,
    "kshetra_id": MasterTable.KSHETRAS.value,
    "village_id": MasterTable.VILLAGES.value,
    "mandal_id": MasterTable.MANDALS.value,
}

_OWN_PROFILE_FIELDS = (
    "full_name",
    "email",
    "mobile_number",
    "whatsapp_number",
    "is_whatsapp_same_as_mobile",
    "date_of_birth",
    "profession_id",
    "seva_type_id",
    "mandir_id",
    "kshetra_id",
    "village_id",
    "mandal_id",
)


def default_email(mobile_number: str) -> str:
    return f"{re.sub(r'[^0-9]', '', mobile_number)}@{MEMBER_EMAIL_DOMAIN}"


def default_password(mobile_number: str) -> str:
    return f"{re.sub(r'[^0-9]', '', mobile_number)}123"


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


class KaryakarService:
    """Use case: register and maintain member profiles."""

    def __init__(
        self,
        profiles: ProfileRepository,
        roles: RoleService,
        permissions: PermissionService,
        master: MasterDataRepository,
        storage: FileStorageService,
    ):
        self._profiles = profiles
        self._roles = roles
        self._permissions = permissions
        self._master = master
        self._storage = storage

    @staticmethod
    def to_public(p: Profile) -> dict:
        return {
            "id": p.id,
            "full_name": p.full_name,
            "email": p.email,
            "mobile_number": p.mobile_number,
            "whatsapp_number": p.whatsapp_number,
            "is_whatsapp_same_as_mobile": p.is_whatsapp_same_as_mobile,
            "date_of_birth": fmt_date(p.date_of_birth),
            "age": p.age,
            "profession_id": p.profession_id,
            "seva_type_id": p.seva_type_id,
            "mandir_id": p.mandir_id,
            "kshetra_id": p.kshetra_id,
            "village_id": p.village_id,
            "mandal_id": p.mandal_id,
            "profile_photo_url": p.profile_photo_url,
            "notes": p.notes,
            "role": p.role,
            "is_active": p.is_active,
            "created_at": fmt_dt(p.created_at),
        }

    # --- field parsing ----------------------------------------------------

    def _parse(self, data: Mapping[str, Any], *, partial: bool, current: Optional[Profile] = None) -> Dict[str, Any]:
        """Validate profile input; with `partial` only the keys present are returned."""

        out: Dict[str, Any] = {}

        def given(key: str) -> bool:
            return not partial or key in data

        if given("full_name"):
            out["full_name"] = validate_text(data.get("full_name"), "Full name")
        if given("mobile_number"):
            out["mobile_number"] = validate_phone((data.get("mobile_number") or "").strip(), "Mobile number")
        if given("email") and (data.get("email") or "").strip():
            out["email"] = validate_email(data.get("email"))

        same = _truthy(data.get("is_whatsapp_same_as_mobile")) if given("is_whatsapp_same_as_mobile") else None
        if same is not None:
            out["is_whatsapp_same_as_mobile"] = same
        if same:
            mobile = out.get("mobile_number") or (current.mobile_number if current else None)
            out["whatsapp_number"] = mobile
        elif given("whatsapp_number"):
            whatsapp = (data.get("whatsapp_number") or "").strip()
            out["whatsapp_number"] = validate_phone(whatsapp, "WhatsApp number") if whatsapp else None

        if given("date_of_birth"):
            dob = parse_optional_date(data.get("date_of_birth"))
            out["date_of_birth"] = dob
            out["age"] = calculate_age(dob) if dob else None

        for column, table in _REFERENCE_COLUMNS.items():
            if not given(column):
                continue
            raw = (data.get(column) or "").strip() if isinstance(data.get(column), str) else data.get(column)
            if not raw:
                out[column] = None
                continue
            ref_id = validate_uuid(str(raw), column)
            if ref_id not in self._master.existing_ids(table, [ref_id]):
                raise ValidationError(f"Selected {column[:-3].replace('_', ' ')} does not exist or is inactive")
            out[column] = ref_id

        if given("notes"):
            out["notes"] = optional_text(data.get("notes"), "Notes", max_length=2000)

        return out

    def _ensure_email_free(self, email: Optional[str], *, user_id: Optional[str] = None) -> None:
        if not email:
            return
        existing = self._profiles.get_by_email(email)
        if existing and existing.id != user_id:
            raise ValidationError("Email is already registered")

    # --- queries ----------------------------------------------------------

    def list(self, filters: Optional[KaryakarFilters] = None) -> List[dict]:
        return list(self._profiles.list_view(filters or KaryakarFilters()))

    def get(self, user_id: str) -> dict:
        profile = self._profiles.get_by_id(user_id)
        if not profile:
            raise NotFoundError("Karyakar not found")
        return self.to_public(profile)

    def stats(self) -> dict:
        total = active = 0
        by_role: Dict[str, int] = {}
        for row in self._profiles.role_counts():
            count = int(row["total"])
            total += count
            if row["is_active"]:
                active += count
            by_role[row["role"]] = by_role.get(row["role"], 0) + count
        return {"total": total, "active": active, "inactive": total - active, "by_role": by_role}

    # --- commands ---------------------------------------------------------

    def register(self, *, actor_id: Optional[str], data: Mapping[str, Any]) -> str:
        """Create a member together with its login account.

        Without an email/password the member logs in with `<mobile>@sevasarthi.org`
        and `<mobile>123`. `actor_id=None` is self sign-up (always role sevak).
        """

        role = DEFAULT_MEMBER_ROLE
        if actor_id is not None:
            self._permissions.require(
                user_id=actor_id, module=PermissionModule.KARYAKARS.value, action=PermissionAction.ADD.value
            )
            requested = (data.get("role") or "").strip()
            if requested and requested != DEFAULT_MEMBER_ROLE:
                actor = self._profiles.get_by_id(actor_id)
                if not actor or not self._roles.validate_role_assignment(actor.role, requested):
                    raise AuthorizationError("You cannot assign this role")
                role = requested

        fields = self._parse(data, partial=False)
        fields["email"] = fields.get("email") or default_email(fields["mobile_number"])
        self._ensure_email_free(fields["email"])

        password = data.get("password") or default_password(fields["mobile_number"])
        require_min_length(password, "Password", PASSWORD_MIN_LENGTH)

        fields["role"] = role
        fields["password_hash"] = generate_password_hash(password)
        fields["is_active"] = True
        fields.setdefault("is_whatsapp_same_as_mobile", False)

        user_id = self._profiles.create(fields)
        logger.info("registered karyakar %s (%s) by %s", user_id, role, actor_id or "self")
        return user_id

    def update(self, *, actor_id: str, user_id: str, data: Mapping[str, Any]) -> dict:
        self._permissions.require(
            user_id=actor_id, module=PermissionModule.KARYAKARS.value, action=PermissionAction.EDIT.value
        )
        current = self._profiles.get_by_id(user_id)
        if not current:
            raise NotFoundError("Karyakar not found")

        fields = self._parse(data, partial=True, current=current)
        self._ensure_email_free(fields.get("email"), user_id=user_id)

        # Role first: a refused role change must leave the profile untouched.
        new_role = (data.get("role") or "").strip()
        if new_role and new_role != current.role:
            self._roles.validate_role_change(
                actor_id=actor_id,
                target_user_id=user_id,
                new_role=new_role,
                reason=data.get("reason"),
            )

        if fields:
            self._profiles.update_fields(user_id, fields)
        return self.get(user_id)

    def set_active(self, *, actor_id: str, user_id: str, is_active: bool) -> None:
        self._permissions.require(
            user_id=actor_id, module=PermissionModule.KARYAKARS.value, action=PermissionAction.EDIT.value
        )
        if not self._profiles.get_by_id(user_id):
            raise NotFoundError("Karyakar not found")
        self._profiles.set_active(user_id, is_active=bool(is_active))
        logger.info("karyakar %s %s by %s", user_id, "activated" if is_active else "deactivated", actor_id)

    def update_own_profile(self, *, user_id: str, data: Mapping[str, Any]) -> dict:
        current = self._profiles.get_by_id(user_id)
        if not current:
            raise NotFoundError("Profile not found")

        allowed = {k: v for k, v in data.items() if k in _OWN_PROFILE_FIELDS}
        fields = self._parse(allowed, partial=True, current=current)
        self._ensure_email_free(fields.get("email"), user_id=user_id)
        if fields:
            self._profiles.update_fields(user_id, fields)
        return self.get(user_id)

    def upload_photo(
        self,
        *,
        user_id: str,
        filename: Optional[str],
        stream: BinaryIO,
        content_type: Optional[str],
        size: int,
    ) -> str:
        if not self._profiles.get_by_id(user_id):
            raise NotFoundError("Profile not found")
        url = self._storage.save_profile_photo(
            user_id=user_id,
            filename=filename,
            stream=stream,
            content_type=content_type,
            size=size,
        )
        self._profiles.update_fields(user_id, {"profile_photo_url": url})
        return url


def _choice(data: Mapping[str, Any], key: str, label: str, choices: Sequence[str]) -> Optional[str]:
    value = (data.get(key) or "").strip() if isinstance(data.get(key), str) else data.get(key)
    if not value:
        return None
    if value not in choices:
        raise ValidationError(f"{label} must be one of: {', '.join(choices)}")
    return value


def _string_list(data: Mapping[str, Any], key: str) -> List[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"{key} must be a list")
    return [str(v).strip() for v in value if str(v).strip()]


class AdditionalDetailsService:
    """Use case: the optional education / vehicle / skills record of a karyakar.

    Viewing needs `karyakars.view` (members may always read their own record),
    saving needs `karyakars.edit`.
    """

    def __init__(self, details: AdditionalDetailsRepository, profiles: ProfileRepository, permissions: PermissionService):
        self._details = details
        self._profiles = profiles
        self._permissions = permissions

    @staticmethod
    def to_public(d: AdditionalDetails) -> dict:
        return {
            "id": d.id,
            "karyakar_id": d.karyakar_id,
            "education_level": d.education_level,
            "education_institution": d.education_institution,
            "education_field": d.education_field,
            "vehicle_types": list(d.vehicle_types),
            "blood_group": d.blood_group,
            "marital_status": d.marital_status,
            "satsangi_category": d.satsangi_category,
            "skills": list(d.skills),
            "additional_info": dict(d.additional_info),
            "updated_at": fmt_dt(d.updated_at),
        }

    def _require_karyakar(self, karyakar_id: str) -> Profile:
        profile = self._profiles.get_by_id(karyakar_id)
        if not profile:
            raise NotFoundError("Karyakar not found")
        return profile

    def get(self, *, actor_id: str, karyakar_id: str) -> Optional[dict]:
        """The stored record, or None when nothing has been filled in yet."""

        if actor_id != karyakar_id:
            self._permissions.require(
                user_id=actor_id, module=PermissionModule.KARYAKARS.value, action=PermissionAction.VIEW.value
            )
        self._require_karyakar(karyakar_id)
        details = self._details.get(karyakar_id)
        return self.to_public(details) if details else None

    def save(self, *, actor_id: str, karyakar_id: str, data: Mapping[str, Any]) -> dict:
        """Insert or replace the record; omitted fields are cleared."""

        self._permissions.require(
            user_id=actor_id, module=PermissionModule.KARYAKARS.value, action=PermissionAction.EDIT.value
        )
        self._require_karyakar(karyakar_id)

        vehicles = list(dict.fromkeys(_string_list(data, "vehicle_types")))
        unknown = [v for v in vehicles if v not in VEHICLE_TYPES]
        if unknown:
            raise ValidationError(f"Unknown vehicle type: {unknown[0]}")

        skills = list(
            dict.fromkeys(validate_text(s, "Skill", max_length=MAX_SKILL_LENGTH) for s in _string_list(data, "skills"))
        )

        info = data.get("additional_info") or {}
        if not isinstance(info, dict):
            raise ValidationError("additional_info must be an object")

        current = self._details.get(karyakar_id)
        details = AdditionalDetails(
            id=current.id if current else None,
            karyakar_id=karyakar_id,
            education_level=_choice(data, "education_level", "Education level", EDUCATION_LEVELS),
            education_institution=optional_text(data.get("education_institution"), "Education institution"),
            education_field=optional_text(data.get("education_field"), "Field of study"),
            vehicle_types=vehicles,
            blood_group=_choice(data, "blood_group", "Blood group", BLOOD_GROUPS),
            marital_status=_choice(data, "marital_status", "Marital status", MARITAL_STATUSES),
            satsangi_category=_choice(data, "satsangi_category", "Satsangi category", SATSANGI_CATEGORIES),
            skills=skills,
            additional_info=info,
        )
        self._details.upsert(details)
        logger.info("additional details of %s saved by %s", karyakar_id, actor_id)
        return self.to_public(self._details.get(karyakar_id) or details)
