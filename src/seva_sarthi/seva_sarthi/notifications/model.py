from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import fmt_dt
from ..core.enums import NotificationType


@dataclass(frozen=True)
class Notification:
    id: str
    user_id: str
    title: str
    message: str
    type: NotificationType = NotificationType.INFO
    is_read: bool = False
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "message": self.message,
            "type": self.type.value,
            "is_read": self.is_read,
            "created_at": fmt_dt(self.created_at),
            "expires_at": fmt_dt(self.expires_at),
        }
