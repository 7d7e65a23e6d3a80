from __future__ import annotations

import itertools
import uuid
from dataclasses import fields as dc_fields, replace
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence

import pytest
from werkzeug.security import generate_password_hash

from seva_sarthi.chat.model import ChatRoom, Message
from seva_sarthi.container import AppSettings, Container, Repositories, build_services
from seva_sarthi.core.constants import SYSTEM_ROLE_LEVELS
from seva_sarthi.core.enums import NotificationType, TaskStatus
from seva_sarthi.karyakars.model import AdditionalDetails, KaryakarFilters, Profile
from seva_sarthi.locations.model import LocationAssignment
from seva_sarthi.notifications.model import Notification
from seva_sarthi.permissions.model import ModulePermission, PermissionFlags
from seva_sarthi.roles.model import CustomRole, HierarchyPermission, RoleLevel
from seva_sarthi.security.model import SecurityEvent
from seva_sarthi.tasks.model import Task, TaskComment

_PROFILE_FIELDS = {f.name for f in dc_fields(Profile)}
_TASK_FIELDS = {f.name for f in dc_fields(Task)}


class Clock:
    """Strictly increasing timestamps so "newest first" ordering is deterministic."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 9, 0, 0)):
        self._ticks = itertools.count()
        self._start = start

    def __call__(self) -> datetime:
        return self._start + timedelta(seconds=next(self._ticks))


def _id() -> str:
    return str(uuid.uuid4())


class InMemoryProfiles:
    def __init__(self, clock: Clock):
        self._clock = clock
        self.rows: Dict[str, Profile] = {}
        # table -> id -> name, for the joined listing
        self.lookup_names: Dict[str, Dict[str, str]] = {}

    def get_by_id(self, user_id: str) -> Optional[Profile]:
        return self.rows.get(user_id)

    def get_by_email(self, email: str) -> Optional[Profile]:
        email = (email or "").lower()
        return next((p for p in self.rows.values() if (p.email or "").lower() == email), None)

    def get_by_reset_token(self, token: str) -> Optional[Profile]:
        return next((p for p in self.rows.values() if token and p.password_reset_token == token), None)

    def create(self, fields: Mapping[str, Any]) -> str:
        user_id = fields.get("id") or _id()
        data = {k: v for k, v in fields.items() if k in _PROFILE_FIELDS and k != "id"}
        self.rows[user_id] = Profile(id=user_id, created_at=self._clock(), **data)
        return user_id

    def update_fields(self, user_id: str, fields: Mapping[str, Any]) -> bool:
        if user_id not in self.rows:
            return False
        self.rows[user_id] = replace(self.rows[user_id], **dict(fields))
        return True

    def set_active(self, user_id: str, *, is_active: bool) -> bool:
        return self.update_fields(user_id, {"is_active": is_active})

    def set_role(self, user_id: str, role: str) -> bool:
        return self.update_fields(user_id, {"role": role})

    def set_password_hash(self, user_id: str, password_hash: str) -> bool:
        return self.update_fields(
            user_id,
            {"password_hash": password_hash, "password_reset_token": None, "password_reset_expires_at": None},
        )

    def set_reset_token(self, user_id: str, *, token: Optional[str], expires_at: Optional[datetime]) -> bool:
        return self.update_fields(user_id, {"password_reset_token": token, "password_reset_expires_at": expires_at})

    def _name(self, table: str, row_id: Optional[str]) -> Optional[str]:
        return self.lookup_names.get(table, {}).get(row_id or "")

    def list_view(self, filters: KaryakarFilters) -> Sequence[dict]:
        out = []
        for p in sorted(self.rows.values(), key=lambda p: p.created_at, reverse=True):
            if filters.search:
                term = filters.search.lower()
                haystack = [(p.full_name or "").lower(), (p.email or "").lower(), p.mobile_number or ""]
                if not any(term in h for h in haystack):
                    continue
            if filters.role and p.role != filters.role:
                continue
            if filters.status == "active" and not p.is_active:
                continue
            if filters.status == "inactive" and p.is_active:
                continue
            if any(
                getattr(filters, c) and getattr(p, c) != getattr(filters, c)
                for c in ("mandir_id", "kshetra_id", "village_id", "mandal_id", "profession_id", "seva_type_id")
            ):
                continue
            if filters.created_since and p.created_at < filters.created_since:
                continue
            out.append(
                {
                    "id": p.id,
                    "full_name": p.full_name,
                    "email": p.email,
                    "mobile_number": p.mobile_number,
                    "date_of_birth": p.date_of_birth,
                    "role": p.role,
                    "is_active": p.is_active,
                    "created_at": p.created_at,
                    "mandir_id": p.mandir_id,
                    "mandir_name": self._name("mandirs", p.mandir_id),
                    "village_name": self._name("villages", p.village_id),
                    "mandal_name": self._name("mandals", p.mandal_id),
                    "profession_name": self._name("professions", p.profession_id),
                    "seva_type_name": self._name("seva_types", p.seva_type_id),
                }
            )
        return out

    def list_basic(self, *, exclude_user_id: Optional[str] = None, search: str = "", role: str = "") -> Sequence[dict]:
        out = []
        for p in sorted(self.rows.values(), key=lambda p: p.full_name):
            if not p.is_active or p.id == exclude_user_id:
                continue
            if search and search.lower() not in p.full_name.lower():
                continue
            if role and p.role != role:
                continue
            out.append({"id": p.id, "full_name": p.full_name, "role": p.role, "profile_photo_url": p.profile_photo_url})
        return out

    def role_counts(self) -> Sequence[Dict[str, Any]]:
        counts: Dict[tuple, int] = {}
        for p in self.rows.values():
            counts[(p.role, p.is_active)] = counts.get((p.role, p.is_active), 0) + 1
        return [{"role": r, "is_active": a, "total": n} for (r, a), n in counts.items()]


class InMemoryAdditionalDetails:
    def __init__(self, clock: Clock):
        self._clock = clock
        self.rows: Dict[str, AdditionalDetails] = {}

    def get(self, karyakar_id: str) -> Optional[AdditionalDetails]:
        return self.rows.get(karyakar_id)

    def upsert(self, details: AdditionalDetails) -> None:
        current = self.rows.get(details.karyakar_id)
        self.rows[details.karyakar_id] = replace(
            details,
            id=current.id if current else _id(),
            created_at=current.created_at if current else self._clock(),
            updated_at=self._clock(),
        )


class InMemoryPermissions:
    def __init__(self):
        self.role_rows: Dict[str, Dict[str, PermissionFlags]] = {}
        self.user_rows: Dict[str, List[ModulePermission]] = {}

    def list_for_role(self, role: str) -> Sequence[ModulePermission]:
        return [
            ModulePermission(module_name=m, flags=f, role=role) for m, f in self.role_rows.get(role, {}).items()
        ]

    def list_for_user(self, user_id: str) -> Sequence[ModulePermission]:
        return list(self.user_rows.get(user_id, []))

    def replace_for_user(self, user_id: str, rows: Sequence[ModulePermission]) -> None:
        self.user_rows[user_id] = list(rows)

    def upsert_for_role(self, *, role: str, module_name: str, flags: PermissionFlags) -> None:
        self.role_rows.setdefault(role, {})[module_name] = flags


class InMemoryRoles:
    def __init__(self):
        self.hierarchy: Dict[str, RoleLevel] = {}
        for role, level in SYSTEM_ROLE_LEVELS.items():
            rid = _id()
            self.hierarchy[rid] = RoleLevel(id=rid, role=role, level=level)
        self.hierarchy_permissions: Dict[tuple, HierarchyPermission] = {}
        self.custom_roles: List[CustomRole] = []

    def list_hierarchy(self) -> Sequence[RoleLevel]:
        return sorted(self.hierarchy.values(), key=lambda r: r.level)

    def get_level(self, role: str) -> Optional[int]:
        return next((r.level for r in self.hierarchy.values() if r.role == role), None)

    def update_hierarchy(self, role_id: str, *, level: int, parent_role: Optional[str]) -> bool:
        if role_id not in self.hierarchy:
            return False
        self.hierarchy[role_id] = replace(self.hierarchy[role_id], level=level, parent_role=parent_role)
        return True

    def list_hierarchy_permissions(self) -> Sequence[HierarchyPermission]:
        return list(self.hierarchy_permissions.values())

    def upsert_hierarchy_permission(self, permission: HierarchyPermission) -> None:
        key = (permission.higher_role, permission.lower_role)
        existing = self.hierarchy_permissions.get(key)
        self.hierarchy_permissions[key] = replace(permission, id=existing.id if existing else _id())

    def list_custom_roles(self) -> Sequence[CustomRole]:
        active = [r for r in self.custom_roles if r.is_active]
        return sorted(active, key=lambda r: (r.level is None, r.level or 0))


class InMemoryMasterData:
    def __init__(self, clock: Clock):
        self._clock = clock
        self.tables: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def _table(self, table: str) -> Dict[str, Dict[str, Any]]:
        return self.tables.setdefault(table, {})

    def list_rows(self, table: str, *, active_only: bool) -> Sequence[Dict[str, Any]]:
        rows = [dict(r) for r in self._table(table).values() if r["is_active"] or not active_only]
        return sorted(rows, key=lambda r: r["created_at"], reverse=True)

    def get_row(self, table: str, row_id: str) -> Optional[Dict[str, Any]]:
        row = self._table(table).get(row_id)
        return dict(row) if row else None

    def insert(self, table: str, data: Mapping[str, Any]) -> str:
        row_id = _id()
        row = {"is_active": True, **dict(data), "id": row_id, "created_at": self._clock()}
        self._table(table)[row_id] = row
        return row_id

    def update(self, table: str, row_id: str, data: Mapping[str, Any]) -> bool:
        row = self._table(table).get(row_id)
        if not row:
            return False
        row.update(dict(data))
        return True

    def soft_delete(self, table: str, row_id: str) -> bool:
        return self.update(table, row_id, {"is_active": False})

    def options(self, table: str, *, label_column: str = "name") -> Sequence[Dict[str, Any]]:
        rows = [
            {"id": r["id"], "label": r.get(label_column)} for r in self._table(table).values() if r["is_active"]
        ]
        return sorted(rows, key=lambda r: r["label"] or "")

    def list_children(self, table: str, *, parent_column: str, parent_id: str) -> Sequence[Dict[str, Any]]:
        rows = [dict(r) for r in self._table(table).values() if r["is_active"] and r.get(parent_column) == parent_id]
        return sorted(rows, key=lambda r: r.get("name") or "")

    def existing_ids(self, table: str, ids: Sequence[str], *, active_only: bool = True) -> set:
        rows = self._table(table)
        return {i for i in ids if i in rows and (rows[i]["is_active"] or not active_only)}


class InMemoryAssignments:
    def __init__(self):
        self.rows: Dict[str, LocationAssignment] = {}

    def get(self, user_id: str) -> Optional[LocationAssignment]:
        return self.rows.get(user_id)

    def list_all(self) -> Sequence[LocationAssignment]:
        return list(self.rows.values())

    def upsert(self, assignment: LocationAssignment) -> None:
        self.rows[assignment.user_id] = replace(assignment, id=assignment.id or _id())


class InMemoryTasks:
    def __init__(self, clock: Clock, profiles: InMemoryProfiles):
        self._clock = clock
        self._profiles = profiles
        self.rows: Dict[str, Task] = {}
        self.comments: List[TaskComment] = []

    def _named(self, t: Task) -> Task:
        by = self._profiles.get_by_id(t.assigned_by)
        to = self._profiles.get_by_id(t.assigned_to) if t.assigned_to else None
        return replace(t, assigned_by_name=by.full_name if by else None, assigned_to_name=to.full_name if to else None)

    def get(self, task_id: str) -> Optional[Task]:
        t = self.rows.get(task_id)
        return self._named(t) if t else None

    def create(self, fields: Mapping[str, Any]) -> str:
        task_id = _id()
        data = {k: v for k, v in fields.items() if k in _TASK_FIELDS}
        self.rows[task_id] = Task(id=task_id, created_at=self._clock(), **data)
        return task_id

    def update_fields(self, task_id: str, fields: Mapping[str, Any]) -> bool:
        if task_id not in self.rows:
            return False
        self.rows[task_id] = replace(self.rows[task_id], **dict(fields))
        return True

    def set_status(self, task_id: str, status: TaskStatus) -> bool:
        return self.update_fields(task_id, {"status": status})

    def delete(self, task_id: str) -> bool:
        return self.rows.pop(task_id, None) is not None

    def _newest(self) -> List[Task]:
        return sorted(self.rows.values(), key=lambda t: t.created_at, reverse=True)

    def list_for_user(self, user_id: str, *, scope: str = "all") -> Sequence[Task]:
        out = []
        for t in self._newest():
            if scope == "assigned" and t.assigned_to != user_id:
                continue
            if scope == "created" and t.assigned_by != user_id:
                continue
            if scope == "all" and user_id not in (t.assigned_to, t.assigned_by):
                continue
            out.append(self._named(t))
        return out

    def list_report(self, *, status: Optional[TaskStatus] = None, since: Optional[datetime] = None) -> Sequence[dict]:
        return [
            self._named(t).as_dict()
            for t in self._newest()
            if (status is None or t.status == status) and (since is None or t.created_at >= since)
        ]

    def list_due_between(self, user_id: str, *, start: date, end: date) -> Sequence[Task]:
        return [
            self._named(t)
            for t in sorted(self.rows.values(), key=lambda t: (t.due_date or date.min, t.created_at))
            if user_id in (t.assigned_to, t.assigned_by) and t.due_date and start <= t.due_date <= end
        ]

    def add_comment(self, *, task_id: str, user_id: str, comment: str) -> str:
        comment_id = _id()
        self.comments.append(
            TaskComment(id=comment_id, task_id=task_id, user_id=user_id, comment=comment, created_at=self._clock())
        )
        return comment_id

    def list_comments(self, task_id: str) -> Sequence[TaskComment]:
        return [c for c in self.comments if c.task_id == task_id]


class InMemoryChat:
    def __init__(self, clock: Clock):
        self._clock = clock
        self.rooms: Dict[str, ChatRoom] = {}
        self.participants: Dict[str, List[str]] = {}
        self.messages: Dict[str, Message] = {}

    def create_room(self, *, name: str, is_group: bool, created_by: str, participant_ids: Sequence[str]) -> str:
        room_id = _id()
        now = self._clock()
        self.rooms[room_id] = ChatRoom(
            id=room_id, name=name, is_group=is_group, created_by=created_by, created_at=now, updated_at=now
        )
        self.participants[room_id] = list(dict.fromkeys(participant_ids))
        return room_id

    def is_participant(self, room_id: str, user_id: str) -> bool:
        return user_id in self.participants.get(room_id, [])

    def add_message(self, *, room_id: str, sender_id: str, content: str, message_type: str = "text") -> str:
        message_id = _id()
        now = self._clock()
        self.messages[message_id] = Message(
            id=message_id,
            room_id=room_id,
            sender_id=sender_id,
            content=content,
            message_type=message_type,
            created_at=now,
        )
        self.rooms[room_id] = replace(self.rooms[room_id], updated_at=now)
        return message_id

    def list_rooms(self, user_id: str) -> Sequence[ChatRoom]:
        mine = [r for r in self.rooms.values() if self.is_participant(r.id, user_id)]
        return sorted(mine, key=lambda r: r.updated_at, reverse=True)

    def list_messages(self, *, user_id: str, room_id: Optional[str] = None, limit: int = 50) -> Sequence[Message]:
        rows = [
            m
            for m in self.messages.values()
            if not m.is_deleted
            and (m.room_id == room_id if room_id else self.is_participant(m.room_id, user_id))
        ]
        return sorted(rows, key=lambda m: m.created_at, reverse=True)[:limit]

    def get_message(self, message_id: str) -> Optional[Message]:
        return self.messages.get(message_id)

    def soft_delete_message(self, message_id: str) -> bool:
        if message_id not in self.messages:
            return False
        self.messages[message_id] = replace(self.messages[message_id], is_deleted=True)
        return True


class InMemoryNotifications:
    def __init__(self, clock: Clock):
        self._clock = clock
        self.rows: Dict[str, Notification] = {}

    def _live(self, user_id: str) -> List[Notification]:
        now = datetime.now()
        rows = [n for n in self.rows.values() if n.user_id == user_id and (n.expires_at is None or n.expires_at > now)]
        return sorted(rows, key=lambda n: n.created_at, reverse=True)

    def list_for_user(self, user_id: str, *, limit: int = 50) -> Sequence[Notification]:
        return self._live(user_id)[:limit]

    def count_unread(self, user_id: str) -> int:
        return sum(1 for n in self._live(user_id) if not n.is_read)

    def mark_read(self, user_id: str, notification_id: str) -> bool:
        n = self.rows.get(notification_id)
        if not n or n.user_id != user_id:
            return False
        self.rows[notification_id] = replace(n, is_read=True)
        return True

    def mark_all_read(self, user_id: str) -> int:
        changed = 0
        for n in self._live(user_id):
            if not n.is_read:
                self.rows[n.id] = replace(n, is_read=True)
                changed += 1
        return changed

    def create(
        self,
        *,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType,
        expires_at: Optional[datetime] = None,
    ) -> str:
        nid = _id()
        self.rows[nid] = Notification(
            id=nid, user_id=user_id, title=title, message=message, type=type, created_at=self._clock(), expires_at=expires_at
        )
        return nid


class InMemorySecurityEvents:
    def __init__(self, clock: Clock):
        self._clock = clock
        self.events: List[SecurityEvent] = []

    def insert(self, *, event_type, user_id, details, ip_address, user_agent) -> str:
        eid = _id()
        self.events.append(
            SecurityEvent(
                id=eid,
                event_type=event_type,
                created_at=self._clock(),
                user_id=user_id,
                details=dict(details),
                ip_address=ip_address,
                user_agent=user_agent,
            )
        )
        return eid

    def list_recent(self, *, event_type: Optional[str] = None, limit: int = 100) -> Sequence[SecurityEvent]:
        rows = [e for e in self.events if not event_type or e.event_type == event_type]
        return sorted(rows, key=lambda e: e.created_at, reverse=True)[:limit]

    def of_type(self, event_type: str) -> List[SecurityEvent]:
        return [e for e in self.events if e.event_type == event_type]


class InMemorySearch:
    def __init__(self, profiles: InMemoryProfiles, tasks: InMemoryTasks, master: InMemoryMasterData):
        self._profiles = profiles
        self._tasks = tasks
        self._master = master

    def search_profiles(self, term: str, *, limit: int) -> Sequence[dict]:
        term = term.lower()
        hits = [
            {"id": p.id, "full_name": p.full_name, "email": p.email, "mobile_number": p.mobile_number, "role": p.role}
            for p in sorted(self._profiles.rows.values(), key=lambda p: p.full_name)
            if any(term in (v or "").lower() for v in (p.full_name, p.email, p.mobile_number, p.notes))
        ]
        return hits[:limit]

    def search_tasks(self, term: str, *, limit: int) -> Sequence[dict]:
        term = term.lower()
        hits = [
            {"id": t.id, "title": t.title, "description": t.description, "status": t.status.value}
            for t in self._tasks._newest()
            if term in t.title.lower() or term in (t.description or "").lower()
        ]
        return hits[:limit]

    def search_locations(self, table: str, term: str, *, limit: int) -> Sequence[dict]:
        term = term.lower()
        hits = [
            {"id": r["id"], "name": r["name"], "detail": r.get("description") or r.get("district")}
            for r in sorted(self._master.list_rows(table, active_only=True), key=lambda r: r["name"])
            if term in r["name"].lower()
        ]
        return hits[:limit]


# --- fixtures ---------------------------------------------------------------


@pytest.fixture
def repos() -> Repositories:
    clock = Clock()
    profiles = InMemoryProfiles(clock)
    master = InMemoryMasterData(clock)
    tasks = InMemoryTasks(clock, profiles)
    return Repositories(
        profiles=profiles,
        permissions=InMemoryPermissions(),
        roles=InMemoryRoles(),
        master=master,
        assignments=InMemoryAssignments(),
        tasks=tasks,
        chat=InMemoryChat(clock),
        notifications=InMemoryNotifications(clock),
        security_events=InMemorySecurityEvents(clock),
        search=InMemorySearch(profiles, tasks, master),
        additional_details=InMemoryAdditionalDetails(clock),
    )


@pytest.fixture
def container(repos: Repositories, tmp_path) -> Container:
    settings = AppSettings(secret_key="test-secret", upload_folder=str(tmp_path / "uploads"))
    return build_services(repos, settings)


@pytest.fixture
def make_user(repos: Repositories):
    counter = itertools.count(1)

    def _make(
        role: str = "sevak",
        *,
        full_name: Optional[str] = None,
        email: Optional[str] = None,
        password: str = "Secret@123",
        is_active: bool = True,
        **extra: Any,
    ) -> Profile:
        n = next(counter)
        user_id = repos.profiles.create(
            {
                "full_name": full_name or f"Member {n}",
                "email": email or f"member{n}@example.org",
                "mobile_number": f"98765{n:05d}",
                "role": role,
                "is_active": is_active,
                "password_hash": generate_password_hash(password),
                **extra,
            }
        )
        return repos.profiles.get_by_id(user_id)

    return _make


@pytest.fixture
def grant(repos: Repositories):
    """grant("karyakar", "tasks", "view", "add") gives a role-level permission row."""

    def _grant(role: str, module: str, *actions: str) -> None:
        repos.permissions.upsert_for_role(
            role=role, module_name=module, flags=PermissionFlags(**{a: True for a in actions})
        )

    return _grant


@pytest.fixture
def admin(make_user) -> Profile:
    return make_user("super_admin", full_name="Admin", email="admin@sevasarthi.org")


@pytest.fixture
def app(container: Container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    from seva_sarthi.main import create_app

    return create_app(container)


@pytest.fixture
def client(app):
    return app.test_client()
