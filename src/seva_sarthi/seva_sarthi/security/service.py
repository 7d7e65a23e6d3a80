from __future__ import annotations

from typing import Any, Dict, Optional

from ..common.datetime_utils import fmt_dt
from ..common.logging_utils import get_logger
from ..core.constants import DEFAULT_AUDIT_LIMIT
from ..core.enums import SecurityEventType
from .repository import SecurityEventRepository

logger = get_logger(__name__)


class SecurityAuditService:
    """Use case: record and review security events.

    Writing an event never raises: a failed audit insert is logged and the
    surrounding request carries on.
    """

    def __init__(self, events: SecurityEventRepository):
        self._events = events

    def log_event(
        self,
        event_type: SecurityEventType | str,
        *,
        user_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        event_type = event_type.value if isinstance(event_type, SecurityEventType) else str(event_type)
        details = dict(details or {})
        logger.warning("security event %s user=%s details=%s", event_type, user_id, details)
        try:
            self._events.insert(
                event_type=event_type,
                user_id=user_id,
                details=details,
                ip_address=ip_address,
                user_agent=(user_agent or "")[:512] or None,
            )
        except Exception:
            logger.exception("Failed to persist security event %s", event_type)

    def log_role_change(
        self,
        *,
        actor_id: str,
        target_user_id: str,
        old_role: str,
        new_role: str,
        reason: Optional[str] = None,
    ) -> None:
        self.log_event(
            SecurityEventType.ROLE_CHANGE,
            user_id=actor_id,
            details={"target_user_id": target_user_id, "old_role": old_role, "new_role": new_role, "reason": reason},
        )

    def log_failed_login(self, *, email: str, reason: str, ip_address: Optional[str] = None) -> None:
        self.log_event(
            SecurityEventType.FAILED_LOGIN,
            details={"email": email, "reason": reason},
            ip_address=ip_address,
        )

    def log_unauthorized_access(
        self,
        *,
        user_id: Optional[str],
        module: str,
        action: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        self.log_event(
            SecurityEventType.UNAUTHORIZED_ACCESS,
            user_id=user_id,
            details={"module": module, "action": action},
            ip_address=ip_address,
            user_agent=user_agent,
        )

    def list_events(self, *, event_type: Optional[str] = None, limit: int = DEFAULT_AUDIT_LIMIT) -> list[dict]:
        rows = self._events.list_recent(event_type=event_type or None, limit=int(limit))
        return [
            {
                "id": e.id,
                "event_type": e.event_type,
                "user_id": e.user_id,
                "details": e.details,
                "ip_address": e.ip_address,
                "user_agent": e.user_agent,
                "created_at": fmt_dt(e.created_at),
            }
            for e in rows
        ]
