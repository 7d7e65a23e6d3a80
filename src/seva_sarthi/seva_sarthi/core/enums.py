from __future__ import annotations

from enum import Enum


class SystemRole(str, Enum):
    """Built-in roles. Custom roles may add more role names (stored as plain strings)."""

    SUPER_ADMIN = "super_admin"
    SANT_NIRDESHAK = "sant_nirdeshak"
    SAH_NIRDESHAK = "sah_nirdeshak"
    MANDAL_SANCHALAK = "mandal_sanchalak"
    KARYAKAR = "karyakar"
    SEVAK = "sevak"


class PermissionModule(str, Enum):
    """Modules gated by the module x action permission matrix."""

    KARYAKARS = "karyakars"
    TASKS = "tasks"
    COMMUNICATION = "communication"
    REPORTS = "reports"
    ADMIN = "admin"


class PermissionAction(str, Enum):
    VIEW = "view"
    ADD = "add"
    EDIT = "edit"
    DELETE = "delete"
    EXPORT = "export"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskType(str, Enum):
    GENERAL = "general"
    PERSONAL = "personal"


class SecurityEventType(str, Enum):
    ROLE_CHANGE = "role_change"
    FAILED_LOGIN = "failed_login"
    UNAUTHORIZED_ACCESS = "unauthorized_access"
    PASSWORD_CHANGE = "password_change"
    PASSWORD_RESET_REQUEST = "password_reset_request"


class MasterTable(str, Enum):
    """Lookup / location tables managed through the generic master-data screens."""

    MANDIRS = "mandirs"
    KSHETRAS = "kshetras"
    VILLAGES = "villages"
    MANDALS = "mandals"
    PROFESSIONS = "professions"
    SEVA_TYPES = "seva_types"
    CUSTOM_ROLES = "custom_roles"


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
