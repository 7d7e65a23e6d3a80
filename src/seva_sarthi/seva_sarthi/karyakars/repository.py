from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Protocol, Sequence

from .model import AdditionalDetails, KaryakarFilters, Profile


class ProfileRepository(Protocol):
    """Persistence for member profiles.

    Note: services depend on this interface; MySQL and in-memory fakes implement it.
    """

    def get_by_id(self, user_id: str) -> Optional[Profile]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Profile]:
        raise NotImplementedError

    def get_by_reset_token(self, token: str) -> Optional[Profile]:
        raise NotImplementedError

    def create(self, fields: Mapping[str, Any]) -> str:
        """Insert a profile; `fields` are column -> value. Returns the new id."""

        raise NotImplementedError

    def update_fields(self, user_id: str, fields: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def set_active(self, user_id: str, *, is_active: bool) -> bool:
        raise NotImplementedError

    def set_role(self, user_id: str, role: str) -> bool:
        raise NotImplementedError

    def set_password_hash(self, user_id: str, password_hash: str) -> bool:
        raise NotImplementedError

    def set_reset_token(self, user_id: str, *, token: Optional[str], expires_at: Optional[datetime]) -> bool:
        raise NotImplementedError

    def list_view(self, filters: KaryakarFilters) -> Sequence[dict]:
        """Profiles joined with location / lookup names, newest first."""

        raise NotImplementedError

    def list_basic(self, *, exclude_user_id: Optional[str] = None, search: str = "", role: str = "") -> Sequence[dict]:
        raise NotImplementedError

    def role_counts(self) -> Sequence[Dict[str, Any]]:
        """Rows of {role, is_active, total}."""

        raise NotImplementedError


class AdditionalDetailsRepository(Protocol):
    """One optional additional-details record per karyakar."""

    def get(self, karyakar_id: str) -> Optional[AdditionalDetails]:
        raise NotImplementedError

    def upsert(self, details: AdditionalDetails) -> None:
        raise NotImplementedError
