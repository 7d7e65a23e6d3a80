from __future__ import annotations

from typing import List, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.logging_utils import get_logger
from ..common.validators import validate_text
from ..core.constants import DEFAULT_MESSAGE_LIMIT
from ..core.enums import PermissionAction, PermissionModule
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..karyakars.repository import ProfileRepository
from ..permissions.service import PermissionService
from .repository import ChatRepository

logger = get_logger(__name__)

_MAX_MESSAGE_LENGTH = 4000


class ChatService:
    """Use case: internal communication between members."""

    def __init__(self, chat: ChatRepository, profiles: ProfileRepository, permissions: PermissionService):
        self._chat = chat
        self._profiles = profiles
        self._permissions = permissions

    def list_recipients(self, *, user_id: str, search: str = "", role: str = "") -> List[dict]:
        return list(self._profiles.list_basic(exclude_user_id=user_id, search=(search or "").strip(), role=role or ""))

    def send_message(self, *, actor_id: str, recipients: Sequence[str], content: str) -> dict:
        """Start a new room with the recipients and post the first message into it."""

        self._permissions.require(
            user_id=actor_id, module=PermissionModule.COMMUNICATION.value, action=PermissionAction.ADD.value
        )
        if not content or not str(content).strip() or not recipients:
            raise ValidationError("Please enter a message and select recipients")
        text = validate_text(str(content), "Message", max_length=_MAX_MESSAGE_LENGTH)

        recipient_ids = [r for r in dict.fromkeys(str(r) for r in recipients) if r and r != actor_id]
        if not recipient_ids:
            raise ValidationError("Please select at least one recipient")
        for rid in recipient_ids:
            profile = self._profiles.get_by_id(rid)
            if not profile or not profile.is_active:
                raise ValidationError(f"Unknown recipient: {rid}")

        room_id = self._chat.create_room(
            name=f"Group Chat - {now_local().date().isoformat()}",
            is_group=len(recipient_ids) > 1,
            created_by=actor_id,
            participant_ids=recipient_ids + [actor_id],
        )
        message_id = self._chat.add_message(room_id=room_id, sender_id=actor_id, content=text)
        logger.info("room %s opened by %s with %d recipient(s)", room_id, actor_id, len(recipient_ids))
        return {"room_id": room_id, "message_id": message_id}

    def post_to_room(self, *, actor_id: str, room_id: str, content: str) -> str:
        if not self._chat.is_participant(room_id, actor_id):
            raise AuthorizationError("You are not a participant of this conversation")
        text = validate_text(content, "Message", max_length=_MAX_MESSAGE_LENGTH)
        return self._chat.add_message(room_id=room_id, sender_id=actor_id, content=text)

    def list_rooms(self, *, user_id: str) -> List[dict]:
        return [r.as_dict() for r in self._chat.list_rooms(user_id)]

    def list_messages(self, *, user_id: str, room_id: Optional[str] = None, limit: int = DEFAULT_MESSAGE_LIMIT) -> List[dict]:
        if room_id and not self._chat.is_participant(room_id, user_id):
            raise AuthorizationError("You are not a participant of this conversation")
        limit = max(1, min(int(limit), 200))
        return [m.as_dict() for m in self._chat.list_messages(user_id=user_id, room_id=room_id or None, limit=limit)]

    def delete_message(self, *, actor_id: str, message_id: str) -> None:
        message = self._chat.get_message(message_id)
        if not message or message.is_deleted:
            raise NotFoundError("Message not found")
        if message.sender_id != actor_id:
            raise AuthorizationError("Only the sender can delete a message")
        self._chat.soft_delete_message(message_id)
