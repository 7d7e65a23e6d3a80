from __future__ import annotations

from flask import Flask

from ..common.web import current_user_id, json_body, login_required, ok, permission_required
from ..container import Container


def _id_list(data: dict, key: str) -> list:
    value = data.get(key) or []
    return list(value) if isinstance(value, (list, tuple)) else [value]


def register(app: Flask, container: Container) -> None:
    # --- master data ------------------------------------------------------

    @app.route("/api/master/<table>", methods=["GET"], endpoint="master_list")
    @login_required
    def master_list(table: str):
        return ok(container.master_data_service.list(table))

    @app.route("/api/master/<table>/fields", methods=["GET"], endpoint="master_fields")
    @login_required
    def master_fields(table: str):
        return ok(container.master_data_service.form_fields(table))

    @app.route("/api/master/<table>/options", methods=["GET"], endpoint="master_options")
    @login_required
    def master_options(table: str):
        return ok(container.master_data_service.foreign_key_options(table))

    @app.route("/api/master/<table>/children/<parent_id>", methods=["GET"], endpoint="master_children")
    @login_required
    def master_children(table: str, parent_id: str):
        return ok(container.master_data_service.hierarchy_children(table, parent_id))

    @app.route("/api/master/<table>/<row_id>", methods=["GET"], endpoint="master_get")
    @login_required
    def master_get(table: str, row_id: str):
        return ok(container.master_data_service.get(table, row_id))

    @app.route("/api/master/<table>", methods=["POST"], endpoint="master_create")
    @login_required
    def master_create(table: str):
        row_id = container.master_data_service.create(actor_id=current_user_id(), table=table, data=json_body())
        return ok({"id": row_id}, status=201, message="Created successfully")

    @app.route("/api/master/<table>/<row_id>", methods=["PUT"], endpoint="master_update")
    @login_required
    def master_update(table: str, row_id: str):
        container.master_data_service.update(actor_id=current_user_id(), table=table, row_id=row_id, data=json_body())
        return ok(message="Updated successfully")

    @app.route("/api/master/<table>/<row_id>", methods=["DELETE"], endpoint="master_delete")
    @login_required
    def master_delete(table: str, row_id: str):
        container.master_data_service.delete(actor_id=current_user_id(), table=table, row_id=row_id)
        return ok(message="Deleted successfully")

    # --- location assignments --------------------------------------------

    @app.route("/api/admin/location-assignments", methods=["GET"], endpoint="location_assignments")
    @permission_required("admin", "view")
    def location_assignments():
        return ok(container.location_assignment_service.list_assignments())

    @app.route("/api/admin/location-assignments/<user_id>", methods=["GET"], endpoint="location_assignment")
    @login_required
    def location_assignment(user_id: str):
        return ok(container.location_assignment_service.get_assignment(user_id))

    @app.route("/api/admin/location-assignments/<user_id>", methods=["PUT"], endpoint="assign_locations")
    @login_required
    def assign_locations(user_id: str):
        data = json_body()
        assignment = container.location_assignment_service.assign(
            actor_id=current_user_id(),
            user_id=user_id,
            mandir_ids=_id_list(data, "mandir_ids"),
            kshetra_ids=_id_list(data, "kshetra_ids"),
            village_ids=_id_list(data, "village_ids"),
            mandal_ids=_id_list(data, "mandal_ids"),
        )
        return ok(assignment, message="Location assignment saved")
