from __future__ import annotations

from flask import Flask, request

from ..common.web import current_user_id, json_body, login_required, ok, permission_required
from ..container import Container
from ..core.constants import DEFAULT_MESSAGE_LIMIT
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/chat/recipients", methods=["GET"], endpoint="chat_recipients")
    @permission_required("communication", "view")
    def chat_recipients():
        return ok(
            container.chat_service.list_recipients(
                user_id=current_user_id(),
                search=request.args.get("search", ""),
                role="" if request.args.get("role") in (None, "all") else request.args["role"],
            )
        )

    @app.route("/api/chat/rooms", methods=["GET"], endpoint="chat_rooms")
    @permission_required("communication", "view")
    def chat_rooms():
        return ok(container.chat_service.list_rooms(user_id=current_user_id()))

    @app.route("/api/chat/messages", methods=["GET"], endpoint="chat_messages")
    @permission_required("communication", "view")
    def chat_messages():
        try:
            limit = int(request.args.get("limit") or DEFAULT_MESSAGE_LIMIT)
        except ValueError:
            raise ValidationError("limit must be a number")
        return ok(
            container.chat_service.list_messages(
                user_id=current_user_id(), room_id=request.args.get("room_id") or None, limit=limit
            )
        )

    @app.route("/api/chat/messages", methods=["POST"], endpoint="send_message")
    @login_required
    def send_message():
        data = json_body()
        recipients = data.get("recipients") or []
        if not isinstance(recipients, list):
            raise ValidationError("recipients must be a list")
        result = container.chat_service.send_message(
            actor_id=current_user_id(), recipients=recipients, content=data.get("content", "")
        )
        return ok(result, status=201, message="Message sent successfully")

    @app.route("/api/chat/rooms/<room_id>/messages", methods=["POST"], endpoint="post_to_room")
    @login_required
    def post_to_room(room_id: str):
        message_id = container.chat_service.post_to_room(
            actor_id=current_user_id(), room_id=room_id, content=json_body().get("content", "")
        )
        return ok({"id": message_id}, status=201)

    @app.route("/api/chat/messages/<message_id>", methods=["DELETE"], endpoint="delete_message")
    @login_required
    def delete_message(message_id: str):
        container.chat_service.delete_message(actor_id=current_user_id(), message_id=message_id)
        return ok(message="Message deleted")
