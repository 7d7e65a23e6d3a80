from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import ChatRoom, Message


class ChatRepository(Protocol):
    def create_room(self, *, name: str, is_group: bool, created_by: str, participant_ids: Sequence[str]) -> str:
        """Create the room and its participant rows together."""

        raise NotImplementedError

    def is_participant(self, room_id: str, user_id: str) -> bool:
        raise NotImplementedError

    def add_message(self, *, room_id: str, sender_id: str, content: str, message_type: str = "text") -> str:
        """Insert a message and bump the room's updated_at."""

        raise NotImplementedError

    def list_rooms(self, user_id: str) -> Sequence[ChatRoom]:
        """Rooms the user takes part in, most recently active first."""

        raise NotImplementedError

    def list_messages(self, *, user_id: str, room_id: Optional[str] = None, limit: int = 50) -> Sequence[Message]:
        """Newest first, soft-deleted messages excluded; without room_id every room of the user."""

        raise NotImplementedError

    def get_message(self, message_id: str) -> Optional[Message]:
        raise NotImplementedError

    def soft_delete_message(self, message_id: str) -> bool:
        raise NotImplementedError
