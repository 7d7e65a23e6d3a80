from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Mapping, Optional, Tuple

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_local
from ..common.logging_utils import get_logger
from ..common.rate_limiter import RateLimiter
from ..common.validators import require_min_length, require_non_empty, validate_email, validate_password
from ..core.constants import DEFAULT_PASSWORD_RESET_HOURS, PASSWORD_MIN_LENGTH
from ..core.enums import SecurityEventType, SystemRole
from ..core.exceptions import AuthenticationError, AuthorizationError, RateLimitError, ValidationError
from ..karyakars.model import Profile
from ..karyakars.repository import ProfileRepository
from ..karyakars.service import KaryakarService
from ..security.service import SecurityAuditService
from .tokens import AccessTokenSigner

logger = get_logger(__name__)

_BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session (and return to API clients) after login."""

    user_id: str
    full_name: str
    email: Optional[str]
    role: str
    profile_photo_url: Optional[str] = None

    @classmethod
    def from_profile(cls, p: Profile) -> "SessionUser":
        return cls(
            user_id=p.id,
            full_name=p.full_name,
            email=p.email,
            role=p.role,
            profile_photo_url=p.profile_photo_url,
        )

    def as_dict(self) -> dict:
        return {
            "id": self.user_id,
            "full_name": self.full_name,
            "email": self.email,
            "role": self.role,
            "profile_photo_url": self.profile_photo_url,
        }


def extract_bearer(authorization: Optional[str]) -> str:
    if not authorization or not authorization.startswith(_BEARER_PREFIX):
        raise AuthenticationError("Missing or invalid authorization header")
    token = authorization[len(_BEARER_PREFIX):].strip()
    if not token:
        raise AuthenticationError("Missing or invalid authorization header")
    return token


class AuthService:
    """Use case: sign-in / sign-up, bearer tokens and the two password functions."""

    def __init__(
        self,
        profiles: ProfileRepository,
        karyakars: KaryakarService,
        tokens: AccessTokenSigner,
        limiter: RateLimiter,
        audit: SecurityAuditService,
        *,
        reset_hours: int = DEFAULT_PASSWORD_RESET_HOURS,
    ):
        self._profiles = profiles
        self._karyakars = karyakars
        self._tokens = tokens
        self._limiter = limiter
        self._audit = audit
        self._reset_hours = int(reset_hours)

    # --- sign in / up -----------------------------------------------------

    def sign_in(
        self,
        email: str,
        password: str,
        *,
        client_key: str = "",
        ip_address: Optional[str] = None,
    ) -> Tuple[SessionUser, str]:
        email = (email or "").strip().lower()
        limiter_key = f"{email}|{client_key}"

        if not self._limiter.attempt(limiter_key):
            self._audit.log_failed_login(email=email, reason="rate_limited", ip_address=ip_address)
            raise RateLimitError("Too many login attempts. Please try again later.")

        user = self._profiles.get_by_email(email) if email else None
        if not user or not user.is_active or not user.password_hash:
            self._audit.log_failed_login(email=email, reason="unknown_or_inactive", ip_address=ip_address)
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder or corrupted hashes
            ok = False

        if not ok:
            self._audit.log_failed_login(email=email, reason="invalid_password", ip_address=ip_address)
            raise AuthenticationError("Invalid email or password")

        self._limiter.reset(limiter_key)
        logger.info("user %s signed in", user.id)
        return SessionUser.from_profile(user), self._tokens.issue(user.id)

    def sign_up(self, data: Mapping[str, Any]) -> SessionUser:
        validate_email(data.get("email"))
        require_non_empty(data.get("password"), "Password")
        validate_password(data.get("password"))
        user_id = self._karyakars.register(actor_id=None, data=data)
        profile = self._profiles.get_by_id(user_id)
        if not profile:
            raise ValidationError("Sign up failed")
        return SessionUser.from_profile(profile)

    def verify_token(self, token: str) -> str:
        return self._tokens.verify(token)

    def user_from_authorization(self, authorization: Optional[str]) -> Profile:
        """Resolve an `Authorization: Bearer ...` header to an active profile (401 otherwise)."""

        user_id = self.verify_token(extract_bearer(authorization))
        profile = self._profiles.get_by_id(user_id)
        if not profile or not profile.is_active:
            raise AuthenticationError("Invalid token or unauthorized")
        return profile

    def session_user(self, user_id: str) -> Optional[SessionUser]:
        profile = self._profiles.get_by_id(user_id)
        if not profile or not profile.is_active:
            return None
        return SessionUser.from_profile(profile)

    # --- password functions -----------------------------------------------

    def change_user_password(self, *, authorization: Optional[str], user_id: Any, new_password: Any) -> None:
        """Super admin sets another member's password."""

        caller = self.user_from_authorization(authorization)
        if caller.role != SystemRole.SUPER_ADMIN.value:
            raise AuthorizationError("Insufficient permissions. Only super_admin can change passwords.")

        if not isinstance(new_password, str) or len(new_password) < PASSWORD_MIN_LENGTH:
            raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")

        target = self._profiles.get_by_id(str(user_id or ""))
        if not target:
            raise ValidationError("User not found")

        self._profiles.set_password_hash(target.id, generate_password_hash(new_password))
        self._audit.log_event(
            SecurityEventType.PASSWORD_CHANGE,
            user_id=caller.id,
            details={"target_user_id": target.id},
        )
        logger.info("password of %s changed by %s", target.id, caller.id)

    def change_own_password(self, *, user_id: str, current_password: str, new_password: str) -> None:
        profile = self._profiles.get_by_id(user_id)
        if not profile or not profile.password_hash or not check_password_hash(profile.password_hash, current_password or ""):
            raise AuthenticationError("Current password is incorrect")
        validate_password(new_password)
        self._profiles.set_password_hash(user_id, generate_password_hash(new_password))
        self._audit.log_event(SecurityEventType.PASSWORD_CHANGE, user_id=user_id, details={"target_user_id": user_id})

    def send_password_reset(self, *, email: str, reset_url: str) -> None:
        """Issue a reset token and deliver the link; silent for unknown emails."""

        email = validate_email(email)
        reset_url = require_non_empty(reset_url, "Reset URL")

        profile = self._profiles.get_by_email(email)
        self._audit.log_event(
            SecurityEventType.PASSWORD_RESET_REQUEST,
            user_id=profile.id if profile else None,
            details={"email": email, "known": bool(profile)},
        )
        if not profile or not profile.is_active:
            return

        token = secrets.token_urlsafe(32)
        expires_at = now_local() + timedelta(hours=self._reset_hours)
        self._profiles.set_reset_token(profile.id, token=token, expires_at=expires_at)

        separator = "&" if "?" in reset_url else "?"
        link = f"{reset_url}{separator}token={token}"
        # No mail transport is configured; the link is handed over through the log.
        logger.info("password reset link for %s (valid until %s): %s", email, expires_at.isoformat(), link)

    def reset_password(self, *, token: str, new_password: str) -> None:
        token = require_non_empty(token, "Token")
        profile = self._profiles.get_by_reset_token(token)
        expires_at = profile.password_reset_expires_at if profile else None
        if not profile or not expires_at or expires_at < now_local():
            raise ValidationError("Reset link is invalid or has expired")

        validate_password(new_password)
        require_min_length(new_password, "Password", PASSWORD_MIN_LENGTH)
        # set_password_hash also clears the reset token
        self._profiles.set_password_hash(profile.id, generate_password_hash(new_password))
        self._audit.log_event(SecurityEventType.PASSWORD_CHANGE, user_id=profile.id, details={"via": "reset_link"})
