from __future__ import annotations

from flask import Flask, jsonify, request, session

from ..common.logging_utils import get_logger
from ..common.web import client_ip, current_user_id, json_body, login_required, ok
from ..container import Container
from ..core.exceptions import DomainError

logger = get_logger(__name__)


def register(app: Flask, container: Container) -> None:
    def _function_error(e: DomainError):
        return jsonify({"error": str(e)}), e.status_code

    @app.route("/api/auth/sign-in", methods=["POST"], endpoint="sign_in")
    def sign_in():
        data = json_body()
        s_user, token = container.auth_service.sign_in(
            data.get("email", ""),
            data.get("password", ""),
            client_key=client_ip() or "",
            ip_address=client_ip(),
        )
        session.clear()
        session["user_id"] = s_user.user_id
        session["role"] = s_user.role
        session.permanent = bool(data.get("remember_me"))
        return ok(s_user.as_dict(), access_token=token, message="Signed in successfully")

    @app.route("/api/auth/sign-up", methods=["POST"], endpoint="sign_up")
    def sign_up():
        s_user = container.auth_service.sign_up(json_body())
        return ok(s_user.as_dict(), status=201, message="Account created. Please sign in.")

    @app.route("/api/auth/sign-out", methods=["POST"], endpoint="sign_out")
    def sign_out():
        session.clear()
        return ok(message="Signed out")

    @app.route("/api/auth/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        user_id = current_user_id()
        s_user = container.auth_service.session_user(user_id)
        return ok(
            s_user.as_dict() if s_user else None,
            permissions=container.permission_service.get_permissions(user_id),
            assignable_roles=container.role_service.get_assignable_roles(s_user.role if s_user else None),
        )

    @app.route("/api/auth/password", methods=["POST"], endpoint="change_own_password")
    @login_required
    def change_own_password():
        data = json_body()
        container.auth_service.change_own_password(
            user_id=current_user_id(),
            current_password=data.get("current_password", ""),
            new_password=data.get("new_password", ""),
        )
        return ok(message="Password updated")

    @app.route("/api/auth/reset-password", methods=["POST"], endpoint="reset_password")
    def reset_password():
        data = json_body()
        container.auth_service.reset_password(token=data.get("token", ""), new_password=data.get("new_password", ""))
        return ok(message="Password has been reset. Please sign in.")

    # Password "functions": called with a bearer token, answer {"error": ...} on failure.

    @app.route("/functions/v1/change-user-password", methods=["POST"], endpoint="fn_change_user_password")
    def fn_change_user_password():
        try:
            data = json_body()
            container.auth_service.change_user_password(
                authorization=request.headers.get("Authorization"),
                user_id=data.get("userId"),
                new_password=data.get("newPassword"),
            )
        except DomainError as e:
            logger.warning("change-user-password refused: %s", e)
            return _function_error(e)
        return jsonify({"success": True, "message": "Password changed successfully"}), 200

    @app.route("/functions/v1/send-password-reset", methods=["POST"], endpoint="fn_send_password_reset")
    def fn_send_password_reset():
        try:
            data = json_body()
            reset_url = data.get("resetUrl") or f"{container.settings.public_base_url}/auth/reset-password"
            container.auth_service.send_password_reset(email=data.get("userEmail", ""), reset_url=reset_url)
        except DomainError as e:
            return _function_error(e)
        return jsonify({"success": True, "message": "If the account exists, a reset link has been sent"}), 200
