from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Profile:
    """A registered member (karyakar) together with its login credentials.

    Note: password fields never leave the service layer; controllers serialize
    through `KaryakarService.to_public`.
    """

    id: str
    full_name: str
    mobile_number: str
    role: str
    is_active: bool = True
    email: Optional[str] = None
    whatsapp_number: Optional[str] = None
    is_whatsapp_same_as_mobile: bool = False
    date_of_birth: Optional[date] = None
    age: Optional[int] = None
    profession_id: Optional[str] = None
    seva_type_id: Optional[str] = None
    mandir_id: Optional[str] = None
    kshetra_id: Optional[str] = None
    village_id: Optional[str] = None
    mandal_id: Optional[str] = None
    profile_photo_url: Optional[str] = None
    notes: Optional[str] = None
    password_hash: Optional[str] = None
    password_reset_token: Optional[str] = None
    password_reset_expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class KaryakarFilters:
    search: str = ""
    role: str = ""
    # "active" / "inactive" / "" (any)
    status: str = ""
    mandir_id: str = ""
    kshetra_id: str = ""
    village_id: str = ""
    mandal_id: str = ""
    profession_id: str = ""
    seva_type_id: str = ""
    created_since: Optional[datetime] = None


@dataclass(frozen=True)
class AdditionalDetails:
    """Optional background of a karyakar: education, vehicles, skills and so on."""

    karyakar_id: str
    education_level: Optional[str] = None
    education_institution: Optional[str] = None
    education_field: Optional[str] = None
    vehicle_types: List[str] = field(default_factory=list)
    blood_group: Optional[str] = None
    marital_status: Optional[str] = None
    satsangi_category: Optional[str] = None
    skills: List[str] = field(default_factory=list)
    additional_info: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
