from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import fmt_dt


@dataclass(frozen=True)
class ChatRoom:
    id: str
    created_by: str
    name: Optional[str] = None
    is_group: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "is_group": self.is_group,
            "created_by": self.created_by,
            "created_at": fmt_dt(self.created_at),
            "updated_at": fmt_dt(self.updated_at),
        }


@dataclass(frozen=True)
class Message:
    id: str
    room_id: str
    sender_id: str
    content: Optional[str]
    message_type: str = "text"
    is_deleted: bool = False
    created_at: Optional[datetime] = None
    sender_name: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "room_id": self.room_id,
            "sender_id": self.sender_id,
            "sender_name": self.sender_name,
            "content": self.content,
            "message_type": self.message_type,
            "created_at": fmt_dt(self.created_at),
        }
