from __future__ import annotations

import os

from flask import Flask, request, send_from_directory

from ..common.web import current_user_id, json_body, login_required, ok, permission_required
from ..container import Container
from ..core.exceptions import ValidationError
from .model import KaryakarFilters


def _filters_from_args() -> KaryakarFilters:
    args = request.args
    return KaryakarFilters(
        search=(args.get("search") or "").strip(),
        role="" if args.get("role") in (None, "", "all") else args["role"],
        status="" if args.get("status") in (None, "", "all") else args["status"],
        mandir_id=args.get("mandir_id") or "",
        kshetra_id=args.get("kshetra_id") or "",
        village_id=args.get("village_id") or "",
        mandal_id=args.get("mandal_id") or "",
        profession_id=args.get("profession_id") or "",
        seva_type_id=args.get("seva_type_id") or "",
    )


def register(app: Flask, container: Container) -> None:
    @app.route("/api/karyakars", methods=["GET"], endpoint="karyakars")
    @permission_required("karyakars", "view")
    def karyakars():
        return ok(container.karyakar_service.list(_filters_from_args()))

    @app.route("/api/karyakars/stats", methods=["GET"], endpoint="karyakar_stats")
    @permission_required("karyakars", "view")
    def karyakar_stats():
        return ok(container.karyakar_service.stats())

    @app.route("/api/karyakars/<user_id>", methods=["GET"], endpoint="karyakar")
    @permission_required("karyakars", "view")
    def karyakar(user_id: str):
        return ok(container.karyakar_service.get(user_id))

    @app.route("/api/karyakars", methods=["POST"], endpoint="add_karyakar")
    @login_required
    def add_karyakar():
        user_id = container.karyakar_service.register(actor_id=current_user_id(), data=json_body())
        return ok(container.karyakar_service.get(user_id), status=201, message="Karyakar registered successfully")

    @app.route("/api/karyakars/<user_id>", methods=["PUT"], endpoint="edit_karyakar")
    @login_required
    def edit_karyakar(user_id: str):
        profile = container.karyakar_service.update(actor_id=current_user_id(), user_id=user_id, data=json_body())
        return ok(profile, message="Karyakar updated successfully")

    @app.route("/api/karyakars/<user_id>/status", methods=["PUT"], endpoint="karyakar_status")
    @login_required
    def karyakar_status(user_id: str):
        data = json_body()
        if "is_active" not in data:
            raise ValidationError("is_active is required")
        container.karyakar_service.set_active(
            actor_id=current_user_id(), user_id=user_id, is_active=bool(data["is_active"])
        )
        return ok(message="Status updated")

    @app.route("/api/karyakars/<user_id>/additional-details", methods=["GET"], endpoint="karyakar_additional_details")
    @login_required
    def karyakar_additional_details(user_id: str):
        return ok(container.additional_details_service.get(actor_id=current_user_id(), karyakar_id=user_id))

    @app.route("/api/karyakars/<user_id>/additional-details", methods=["PUT"], endpoint="save_karyakar_additional_details")
    @login_required
    def save_karyakar_additional_details(user_id: str):
        details = container.additional_details_service.save(
            actor_id=current_user_id(), karyakar_id=user_id, data=json_body()
        )
        return ok(details, message="Additional details saved successfully")

    # --- own profile ------------------------------------------------------

    @app.route("/api/profile", methods=["GET"], endpoint="my_profile")
    @login_required
    def my_profile():
        return ok(container.karyakar_service.get(current_user_id()))

    @app.route("/api/profile", methods=["PUT"], endpoint="update_my_profile")
    @login_required
    def update_my_profile():
        profile = container.karyakar_service.update_own_profile(user_id=current_user_id(), data=json_body())
        return ok(profile, message="Profile updated successfully")

    @app.route("/api/profile/photo", methods=["POST"], endpoint="upload_my_photo")
    @login_required
    def upload_my_photo():
        f = request.files.get("photo")
        if f is None:
            raise ValidationError("Please choose a photo to upload")

        f.stream.seek(0, os.SEEK_END)
        size = f.stream.tell()
        f.stream.seek(0)

        url = container.karyakar_service.upload_photo(
            user_id=current_user_id(),
            filename=f.filename,
            stream=f.stream,
            content_type=f.mimetype,
            size=size,
        )
        return ok({"profile_photo_url": url}, message="Photo uploaded")

    @app.route("/uploads/<path:filename>", methods=["GET"], endpoint="uploaded_file")
    def uploaded_file(filename: str):
        response = send_from_directory(container.storage_service.root.resolve(), filename)
        response.headers["X-Content-Type-Options"] = "nosniff"
        return response
