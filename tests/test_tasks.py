from __future__ import annotations

from datetime import date

import pytest

from seva_sarthi.core.exceptions import AuthorizationError, NotFoundError, ValidationError


@pytest.fixture
def tasks(container):
    return container.task_service


@pytest.fixture
def lead(make_user, grant):
    grant("mandal_sanchalak", "tasks", "view", "add")
    return make_user("mandal_sanchalak", full_name="Lead")


@pytest.fixture
def worker(make_user):
    return make_user("karyakar", full_name="Worker")


def _create(tasks, lead, worker, **extra):
    data = {"title": "Prepare sabha hall", "assigned_to": worker.id, **extra}
    return tasks.create_task(actor_id=lead.id, data=data)


def test_create_task_defaults_and_names(tasks, lead, worker):
    task = tasks.get_task(_create(tasks, lead, worker))

    assert task["status"] == "pending"
    assert task["priority"] == "medium"
    assert task["task_type"] == "general"
    assert task["assigned_by_name"] == "Lead"
    assert task["assigned_to_name"] == "Worker"


def test_create_task_notifies_assignee(tasks, container, lead, worker):
    _create(tasks, lead, worker)

    notes = container.notification_service.list(worker.id)
    assert [n["title"] for n in notes] == ["New task assigned"]
    assert notes[0]["message"] == "You have been assigned: Prepare sabha hall"


def test_self_assigned_task_sends_no_notification(tasks, container, lead):
    tasks.create_task(actor_id=lead.id, data={"title": "Note to self", "assigned_to": lead.id})
    assert container.notification_service.unread_count(lead.id) == 0


def test_create_task_requires_add_permission(tasks, worker, make_user):
    with pytest.raises(AuthorizationError):
        tasks.create_task(actor_id=worker.id, data={"title": "X"})


def test_create_task_validation(tasks, lead, make_user):
    with pytest.raises(ValidationError, match="Title is required"):
        tasks.create_task(actor_id=lead.id, data={"title": " "})
    with pytest.raises(ValidationError, match="Invalid priority"):
        tasks.create_task(actor_id=lead.id, data={"title": "X", "priority": "urgent"})
    with pytest.raises(ValidationError, match="inactive"):
        tasks.create_task(actor_id=lead.id, data={"title": "X", "assigned_to": make_user(is_active=False).id})


def test_task_locations_must_exist(tasks, lead, worker, repos):
    mandir = repos.master.insert("mandirs", {"name": "Sarangpur"})
    closed = repos.master.insert("villages", {"name": "Old Village", "is_active": False})

    task = tasks.get_task(_create(tasks, lead, worker, mandir_id=mandir))
    assert task["mandir_id"] == mandir

    with pytest.raises(ValidationError, match="Selected kshetra does not exist"):
        _create(tasks, lead, worker, kshetra_id="5d0f6c1e-2b3a-4c5d-8e9f-0a1b2c3d4e5f")
    with pytest.raises(ValidationError, match="Selected village does not exist"):
        _create(tasks, lead, worker, village_id=closed)


def test_status_moves_forward_only(tasks, lead, worker):
    task_id = _create(tasks, lead, worker)

    with pytest.raises(ValidationError, match="Cannot move"):
        tasks.update_status(actor_id=worker.id, task_id=task_id, status="completed")

    tasks.update_status(actor_id=worker.id, task_id=task_id, status="in_progress")
    tasks.update_status(actor_id=worker.id, task_id=task_id, status="completed")
    assert tasks.get_task(task_id)["status"] == "completed"

    with pytest.raises(ValidationError, match="cannot be changed"):
        tasks.update_status(actor_id=worker.id, task_id=task_id, status="pending")


def test_only_assignee_changes_status(tasks, lead, worker):
    task_id = _create(tasks, lead, worker)
    with pytest.raises(AuthorizationError):
        tasks.update_status(actor_id=lead.id, task_id=task_id, status="in_progress")


def test_list_scopes(tasks, lead, worker):
    mine = _create(tasks, lead, worker)
    tasks.create_task(actor_id=lead.id, data={"title": "Unassigned"})

    assert [t["id"] for t in tasks.list_tasks(user_id=worker.id, scope="assigned")] == [mine]
    assert len(tasks.list_tasks(user_id=lead.id, scope="created")) == 2
    assert tasks.list_tasks(user_id=lead.id, scope="assigned") == []
    with pytest.raises(ValidationError):
        tasks.list_tasks(user_id=lead.id, scope="everything")


def test_dashboard_stats_and_chart(tasks, lead, worker):
    _create(tasks, lead, worker, due_date="2026-01-10")
    started = _create(tasks, lead, worker, due_date="2026-03-01")
    tasks.update_status(actor_id=worker.id, task_id=started, status="in_progress")

    stats = tasks.dashboard_stats(user_id=worker.id, today=date(2026, 2, 1))
    assert stats == {"total": 2, "completed": 0, "pending": 1, "in_progress": 1, "overdue": 1}

    chart = tasks.status_chart(user_id=worker.id)
    assert chart == [
        {"status": "pending", "count": 1},
        {"status": "in_progress", "count": 1},
        {"status": "completed", "count": 0},
    ]


def test_due_calendar_groups_by_day(tasks, lead, worker):
    a = _create(tasks, lead, worker, due_date="2026-02-03")
    b = _create(tasks, lead, worker, due_date="2026-02-03")
    _create(tasks, lead, worker, due_date="2026-03-01")

    calendar = tasks.due_calendar(user_id=worker.id, year=2026, month=2)
    assert list(calendar) == ["2026-02-03"]
    assert [t["id"] for t in calendar["2026-02-03"]] == [a, b]

    with pytest.raises(ValidationError):
        tasks.due_calendar(user_id=worker.id, year=2026, month=13)


def test_creator_edits_without_edit_permission(tasks, container, lead, worker, make_user):
    task_id = tasks.create_task(actor_id=lead.id, data={"title": "Draft"})

    result = tasks.update_task(actor_id=lead.id, task_id=task_id, data={"priority": "high", "assigned_to": worker.id})
    assert result["priority"] == "high"
    assert result["title"] == "Draft"
    assert container.notification_service.unread_count(worker.id) == 1

    with pytest.raises(AuthorizationError):
        tasks.update_task(actor_id=make_user("karyakar").id, task_id=task_id, data={"title": "Hijack"})


def test_delete_task(tasks, admin, lead, worker):
    task_id = _create(tasks, lead, worker)

    with pytest.raises(AuthorizationError):
        tasks.delete_task(actor_id=worker.id, task_id=task_id)
    tasks.delete_task(actor_id=admin.id, task_id=task_id)
    with pytest.raises(NotFoundError):
        tasks.get_task(task_id)


def test_comments(tasks, lead, worker, make_user):
    task_id = _create(tasks, lead, worker)

    tasks.add_comment(actor_id=worker.id, task_id=task_id, text="Started on it")
    tasks.add_comment(actor_id=lead.id, task_id=task_id, text="<b>Thanks</b>")

    comments = tasks.list_comments(task_id)
    assert [c["comment"] for c in comments] == ["Started on it", "Thanks"]

    with pytest.raises(AuthorizationError):
        tasks.add_comment(actor_id=make_user("sevak").id, task_id=task_id, text="hi")
    with pytest.raises(ValidationError):
        tasks.add_comment(actor_id=worker.id, task_id=task_id, text="   ")
