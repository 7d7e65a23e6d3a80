from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import NotificationType
from .model import Notification


class NotificationRepository(Protocol):
    def list_for_user(self, user_id: str, *, limit: int = 50) -> Sequence[Notification]:
        """Newest first, expired notifications excluded."""

        raise NotImplementedError

    def count_unread(self, user_id: str) -> int:
        raise NotImplementedError

    def mark_read(self, user_id: str, notification_id: str) -> bool:
        raise NotImplementedError

    def mark_all_read(self, user_id: str) -> int:
        raise NotImplementedError

    def create(
        self,
        *,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType,
        expires_at: Optional[datetime] = None,
    ) -> str:
        raise NotImplementedError
