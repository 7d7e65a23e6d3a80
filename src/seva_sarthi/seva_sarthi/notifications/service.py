from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from ..common.validators import validate_text
from ..core.enums import NotificationType
from ..core.exceptions import NotFoundError, ValidationError
from .repository import NotificationRepository


class NotificationService:
    def __init__(self, notifications: NotificationRepository):
        self._notifications = notifications

    def list(self, user_id: str, *, limit: int = 50) -> List[dict]:
        return [n.as_dict() for n in self._notifications.list_for_user(user_id, limit=int(limit))]

    def unread_count(self, user_id: str) -> int:
        return self._notifications.count_unread(user_id)

    def mark_read(self, user_id: str, notification_id: str) -> None:
        if not self._notifications.mark_read(user_id, notification_id):
            raise NotFoundError("Notification not found")

    def mark_all_read(self, user_id: str) -> int:
        return self._notifications.mark_all_read(user_id)

    def create(
        self,
        *,
        user_id: str,
        title: str,
        message: str,
        type: str | NotificationType = NotificationType.INFO,
        expires_at: Optional[datetime] = None,
    ) -> str:
        try:
            kind = NotificationType(type)
        except ValueError:
            raise ValidationError(f"Unknown notification type: {type}")
        return self._notifications.create(
            user_id=user_id,
            title=validate_text(title, "Title"),
            message=validate_text(message, "Message", max_length=2000),
            type=kind,
            expires_at=expires_at,
        )
