from __future__ import annotations

from flask import Flask

from ..common.web import current_user_id, json_body, login_required, ok, permission_required
from ..container import Container
from ..core.constants import ALL_ACTIONS, ALL_MODULES


def register(app: Flask, container: Container) -> None:
    @app.route("/api/permissions/me", methods=["GET"], endpoint="my_permissions")
    @login_required
    def my_permissions():
        return ok(container.permission_service.get_permissions(current_user_id()))

    @app.route("/api/permissions/catalog", methods=["GET"], endpoint="permission_catalog")
    @login_required
    def permission_catalog():
        return ok({"modules": list(ALL_MODULES), "actions": list(ALL_ACTIONS)})

    @app.route("/api/admin/users/<user_id>/permissions", methods=["GET"], endpoint="user_permissions")
    @permission_required("admin", "view")
    def user_permissions(user_id: str):
        return ok(
            {
                "overrides": container.permission_service.get_user_overrides(user_id),
                "effective": container.permission_service.get_permissions(user_id),
            }
        )

    @app.route("/api/admin/users/<user_id>/permissions", methods=["PUT"], endpoint="save_user_permissions")
    @login_required
    def save_user_permissions(user_id: str):
        saved = container.permission_service.save_user_permissions(
            actor_id=current_user_id(),
            user_id=user_id,
            rows=json_body().get("permissions") or {},
        )
        return ok(saved, message="Permissions updated successfully")

    @app.route("/api/admin/roles/<role>/permissions", methods=["GET"], endpoint="role_permissions")
    @permission_required("admin", "view")
    def role_permissions(role: str):
        return ok(container.permission_service.list_role_permissions(role))

    @app.route("/api/admin/roles/<role>/permissions/<module>", methods=["PUT"], endpoint="set_role_permission")
    @login_required
    def set_role_permission(role: str, module: str):
        flags = container.permission_service.set_role_permission(
            actor_id=current_user_id(),
            role=role,
            module=module,
            flags=json_body(),
        )
        return ok(flags, message="Role permission saved")
