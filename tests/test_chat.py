from __future__ import annotations

import pytest

from seva_sarthi.core.exceptions import AuthorizationError, NotFoundError, ValidationError


@pytest.fixture
def chat(container):
    return container.chat_service


@pytest.fixture
def sender(make_user, grant):
    grant("karyakar", "communication", "view", "add")
    return make_user("karyakar", full_name="Sender")


def test_send_message_opens_room(chat, sender, make_user):
    a, b = make_user(full_name="A"), make_user(full_name="B")

    result = chat.send_message(actor_id=sender.id, recipients=[a.id, b.id, a.id, sender.id], content="Jay Swaminarayan")

    rooms = chat.list_rooms(user_id=a.id)
    assert [r["id"] for r in rooms] == [result["room_id"]]
    assert rooms[0]["is_group"] is True
    assert rooms[0]["name"].startswith("Group Chat - ")
    messages = chat.list_messages(user_id=b.id, room_id=result["room_id"])
    assert [m["content"] for m in messages] == ["Jay Swaminarayan"]


def test_direct_message_is_not_a_group(chat, sender, make_user):
    result = chat.send_message(actor_id=sender.id, recipients=[make_user().id], content="hi")
    assert chat.list_rooms(user_id=sender.id)[0]["id"] == result["room_id"]
    assert chat.list_rooms(user_id=sender.id)[0]["is_group"] is False


def test_send_message_validation(chat, sender, make_user):
    with pytest.raises(ValidationError, match="select recipients"):
        chat.send_message(actor_id=sender.id, recipients=[], content="hi")
    with pytest.raises(ValidationError, match="select recipients"):
        chat.send_message(actor_id=sender.id, recipients=[make_user().id], content="  ")
    with pytest.raises(ValidationError, match="at least one recipient"):
        chat.send_message(actor_id=sender.id, recipients=[sender.id], content="hi")
    with pytest.raises(ValidationError, match="Unknown recipient"):
        chat.send_message(actor_id=sender.id, recipients=[make_user(is_active=False).id], content="hi")


def test_send_message_needs_communication_add(chat, make_user):
    with pytest.raises(AuthorizationError):
        chat.send_message(actor_id=make_user("sevak").id, recipients=[make_user().id], content="hi")


def test_only_participants_read_and_post(chat, sender, make_user):
    member, outsider = make_user(), make_user()
    room_id = chat.send_message(actor_id=sender.id, recipients=[member.id], content="hi")["room_id"]

    chat.post_to_room(actor_id=member.id, room_id=room_id, content="hello back")
    assert [m["content"] for m in chat.list_messages(user_id=sender.id, room_id=room_id)] == ["hello back", "hi"]

    with pytest.raises(AuthorizationError):
        chat.post_to_room(actor_id=outsider.id, room_id=room_id, content="let me in")
    with pytest.raises(AuthorizationError):
        chat.list_messages(user_id=outsider.id, room_id=room_id)


def test_messages_without_room_cover_all_my_rooms(chat, sender, make_user):
    member = make_user()
    chat.send_message(actor_id=sender.id, recipients=[member.id], content="one")
    chat.send_message(actor_id=sender.id, recipients=[make_user().id], content="two")

    assert [m["content"] for m in chat.list_messages(user_id=sender.id)] == ["two", "one"]
    assert [m["content"] for m in chat.list_messages(user_id=member.id)] == ["one"]
    assert len(chat.list_messages(user_id=sender.id, limit=0)) == 1


def test_only_sender_deletes(chat, sender, make_user):
    member = make_user()
    result = chat.send_message(actor_id=sender.id, recipients=[member.id], content="oops")

    with pytest.raises(AuthorizationError):
        chat.delete_message(actor_id=member.id, message_id=result["message_id"])
    chat.delete_message(actor_id=sender.id, message_id=result["message_id"])

    assert chat.list_messages(user_id=member.id, room_id=result["room_id"]) == []
    with pytest.raises(NotFoundError):
        chat.delete_message(actor_id=sender.id, message_id=result["message_id"])


def test_recipients_exclude_self_and_inactive(chat, sender, make_user):
    make_user(full_name="Bhavesh")
    make_user(full_name="Bharat", role="sevak", is_active=False)

    names = [r["full_name"] for r in chat.list_recipients(user_id=sender.id)]
    assert "Sender" not in names
    assert names == ["Bhavesh"]
    assert chat.list_recipients(user_id=sender.id, search="zzz") == []


def test_multi_line_message_is_stored_as_written(chat, sender, make_user):
    a = make_user(full_name="A")
    content = "Meeting agenda:\n1. Budget < 500\n2. Attendance > 20"

    result = chat.send_message(actor_id=sender.id, recipients=[a.id], content=content)

    messages = chat.list_messages(user_id=a.id, room_id=result["room_id"])
    assert [m["content"] for m in messages] == [content]
