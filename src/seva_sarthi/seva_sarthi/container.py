from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .auth.service import AuthService
from .auth.tokens import AccessTokenSigner
from .chat.mysql_chat_repository import MySQLChatRepository
from .chat.repository import ChatRepository
from .chat.service import ChatService
from .common.rate_limiter import RateLimiter
from .core.constants import DEFAULT_LOGIN_MAX_ATTEMPTS, DEFAULT_LOGIN_WINDOW_SECONDS, DEFAULT_PASSWORD_RESET_HOURS, MAX_PHOTO_BYTES
from .database.connection import DBConfig, DatabaseConnection
from .karyakars.mysql_additional_details_repository import MySQLAdditionalDetailsRepository
from .karyakars.mysql_profile_repository import MySQLProfileRepository
from .karyakars.repository import AdditionalDetailsRepository, ProfileRepository
from .karyakars.service import AdditionalDetailsService, KaryakarService
from .locations.mysql_location_assignment_repository import MySQLLocationAssignmentRepository
from .locations.mysql_master_data_repository import MySQLMasterDataRepository
from .locations.repository import LocationAssignmentRepository, MasterDataRepository
from .locations.service import LocationAssignmentService, MasterDataService
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.repository import NotificationRepository
from .notifications.service import NotificationService
from .permissions.mysql_permission_repository import MySQLPermissionRepository
from .permissions.repository import PermissionRepository
from .permissions.service import PermissionService
from .reports.service import ReportService
from .roles.mysql_role_repository import MySQLRoleRepository
from .roles.repository import RoleRepository
from .roles.service import RoleService
from .search.mysql_search_repository import MySQLSearchRepository
from .search.repository import SearchRepository
from .search.service import SearchService
from .security.mysql_security_event_repository import MySQLSecurityEventRepository
from .security.repository import SecurityEventRepository
from .security.service import SecurityAuditService
from .storage.service import FileStorageService
from .tasks.mysql_task_repository import MySQLTaskRepository
from .tasks.repository import TaskRepository
from .tasks.service import TaskService


@dataclass(frozen=True)
class AppSettings:
    secret_key: str
    upload_folder: str = "uploads"
    max_photo_bytes: int = MAX_PHOTO_BYTES
    token_max_age_seconds: int = 8 * 3600
    password_reset_hours: int = DEFAULT_PASSWORD_RESET_HOURS
    login_max_attempts: int = DEFAULT_LOGIN_MAX_ATTEMPTS
    login_window_seconds: int = DEFAULT_LOGIN_WINDOW_SECONDS
    public_base_url: str = "http://localhost:5000"

    @classmethod
    def from_module(cls, settings: Any) -> "AppSettings":
        def opt(name: str, default: Any) -> Any:
            return getattr(settings, name, default)

        return cls(
            secret_key=str(getattr(settings, "SECRET_KEY")),
            upload_folder=str(opt("UPLOAD_FOLDER", cls.upload_folder)),
            max_photo_bytes=int(opt("MAX_PHOTO_BYTES", cls.max_photo_bytes)),
            token_max_age_seconds=int(opt("TOKEN_MAX_AGE_SECONDS", cls.token_max_age_seconds)),
            password_reset_hours=int(opt("PASSWORD_RESET_HOURS", cls.password_reset_hours)),
            login_max_attempts=int(opt("LOGIN_MAX_ATTEMPTS", cls.login_max_attempts)),
            login_window_seconds=int(opt("LOGIN_WINDOW_SECONDS", cls.login_window_seconds)),
            public_base_url=str(opt("PUBLIC_BASE_URL", cls.public_base_url)).rstrip("/"),
        )


@dataclass(frozen=True)
class Repositories:
    profiles: ProfileRepository
    permissions: PermissionRepository
    roles: RoleRepository
    master: MasterDataRepository
    assignments: LocationAssignmentRepository
    tasks: TaskRepository
    chat: ChatRepository
    notifications: NotificationRepository
    security_events: SecurityEventRepository
    search: SearchRepository
    additional_details: AdditionalDetailsRepository


@dataclass(frozen=True)
class Container:
    settings: AppSettings
    repos: Repositories

    security_audit_service: SecurityAuditService
    permission_service: PermissionService
    role_service: RoleService
    master_data_service: MasterDataService
    location_assignment_service: LocationAssignmentService
    storage_service: FileStorageService
    karyakar_service: KaryakarService
    additional_details_service: AdditionalDetailsService
    auth_service: AuthService
    notification_service: NotificationService
    task_service: TaskService
    chat_service: ChatService
    report_service: ReportService
    search_service: SearchService

    conn: Optional[DatabaseConnection] = None


def build_services(repos: Repositories, settings: AppSettings, *, conn: Optional[DatabaseConnection] = None) -> Container:
    audit = SecurityAuditService(repos.security_events)
    permission_service = PermissionService(repos.permissions, repos.profiles, audit)
    role_service = RoleService(repos.roles, repos.profiles, permission_service, audit)
    master_data_service = MasterDataService(repos.master, permission_service)
    location_assignment_service = LocationAssignmentService(repos.assignments, repos.master, repos.profiles, role_service)
    storage_service = FileStorageService(settings.upload_folder, max_photo_bytes=settings.max_photo_bytes)
    karyakar_service = KaryakarService(repos.profiles, role_service, permission_service, repos.master, storage_service)
    additional_details_service = AdditionalDetailsService(repos.additional_details, repos.profiles, permission_service)
    auth_service = AuthService(
        repos.profiles,
        karyakar_service,
        AccessTokenSigner(settings.secret_key, max_age_seconds=settings.token_max_age_seconds),
        RateLimiter(max_attempts=settings.login_max_attempts, window_seconds=settings.login_window_seconds),
        audit,
        reset_hours=settings.password_reset_hours,
    )
    notification_service = NotificationService(repos.notifications)
    task_service = TaskService(repos.tasks, repos.profiles, permission_service, notification_service, repos.master)
    chat_service = ChatService(repos.chat, repos.profiles, permission_service)
    report_service = ReportService(repos.profiles, repos.tasks, permission_service)
    search_service = SearchService(repos.search)

    return Container(
        settings=settings,
        repos=repos,
        security_audit_service=audit,
        permission_service=permission_service,
        role_service=role_service,
        master_data_service=master_data_service,
        location_assignment_service=location_assignment_service,
        storage_service=storage_service,
        karyakar_service=karyakar_service,
        additional_details_service=additional_details_service,
        auth_service=auth_service,
        notification_service=notification_service,
        task_service=task_service,
        chat_service=chat_service,
        report_service=report_service,
        search_service=search_service,
        conn=conn,
    )


def build_container(*, db_config: dict, settings: AppSettings) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    repos = Repositories(
        profiles=MySQLProfileRepository(conn),
        permissions=MySQLPermissionRepository(conn),
        roles=MySQLRoleRepository(conn),
        master=MySQLMasterDataRepository(conn),
        assignments=MySQLLocationAssignmentRepository(conn),
        tasks=MySQLTaskRepository(conn),
        chat=MySQLChatRepository(conn),
        notifications=MySQLNotificationRepository(conn),
        security_events=MySQLSecurityEventRepository(conn),
        search=MySQLSearchRepository(conn),
        additional_details=MySQLAdditionalDetailsRepository(conn),
    )
    return build_services(repos, settings, conn=conn)
