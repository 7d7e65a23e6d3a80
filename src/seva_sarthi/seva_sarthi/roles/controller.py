from __future__ import annotations

from flask import Flask

from ..common.web import current_user_id, json_body, login_required, ok, permission_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/roles", methods=["GET"], endpoint="role_options")
    @login_required
    def role_options():
        return ok(container.role_service.role_options())

    @app.route("/api/roles/assignable", methods=["GET"], endpoint="assignable_roles")
    @login_required
    def assignable_roles():
        me = container.auth_service.session_user(current_user_id())
        return ok(container.role_service.get_assignable_roles(me.role if me else None))

    @app.route("/api/admin/role-hierarchy", methods=["GET"], endpoint="role_hierarchy")
    @permission_required("admin", "view")
    def role_hierarchy():
        return ok(container.role_service.list_hierarchy())

    @app.route("/api/admin/role-hierarchy/<role_id>", methods=["PUT"], endpoint="update_role_hierarchy")
    @login_required
    def update_role_hierarchy(role_id: str):
        data = json_body()
        container.role_service.update_hierarchy(
            actor_id=current_user_id(),
            role_id=role_id,
            level=data.get("level"),
            parent_role=data.get("parent_role"),
        )
        return ok(message="Role hierarchy updated")

    @app.route("/api/admin/hierarchy-permissions", methods=["GET"], endpoint="hierarchy_permissions")
    @permission_required("admin", "view")
    def hierarchy_permissions():
        return ok(container.role_service.list_hierarchy_permissions())

    @app.route("/api/admin/hierarchy-permissions", methods=["PUT"], endpoint="save_hierarchy_permission")
    @login_required
    def save_hierarchy_permission():
        container.role_service.save_hierarchy_permission(actor_id=current_user_id(), data=json_body())
        return ok(message="Hierarchy permission saved")

    @app.route("/api/admin/users/<user_id>/role", methods=["PUT"], endpoint="change_user_role")
    @login_required
    def change_user_role(user_id: str):
        data = json_body()
        container.role_service.validate_role_change(
            actor_id=current_user_id(),
            target_user_id=user_id,
            new_role=(data.get("role") or "").strip(),
            reason=data.get("reason"),
        )
        return ok(message="Role updated successfully")
