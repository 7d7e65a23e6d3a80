"""HTTP helpers shared by every controller: auth guards, JSON payloads and error mapping."""

from __future__ import annotations

from datetime import date, datetime, time
from functools import wraps
from typing import TYPE_CHECKING, Any, Dict, Optional

from flask import Flask, current_app, g, jsonify, request, session
from flask.json.provider import DefaultJSONProvider
from werkzeug.exceptions import HTTPException

from ..core.exceptions import AuthenticationError, DomainError, ValidationError
from .logging_utils import get_logger

if TYPE_CHECKING:
    from ..container import Container

logger = get_logger(__name__)

CONTAINER_KEY = "seva_sarthi.container"


class IsoJSONProvider(DefaultJSONProvider):
    """Serialize dates and times as ISO-8601 instead of HTTP dates."""

    @staticmethod
    def default(o: Any) -> Any:
        if isinstance(o, (datetime, date, time)):
            return o.isoformat()
        return DefaultJSONProvider.default(o)


def get_container() -> "Container":
    return current_app.extensions[CONTAINER_KEY]


def client_ip() -> Optional[str]:
    return request.remote_addr


def user_agent() -> Optional[str]:
    return request.headers.get("User-Agent")


def current_user_id() -> str:
    return g.user_id


def json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def ok(data: Any = None, *, status: int = 200, **extra: Any):
    payload: Dict[str, Any] = {"success": True}
    if data is not None:
        payload["data"] = data
    payload.update(extra)
    return jsonify(payload), status


def login_required(view):
    """Accept either the Flask session or an `Authorization: Bearer` token."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        container = get_container()
        user_id = session.get("user_id")
        if user_id:
            if not container.auth_service.session_user(user_id):
                session.clear()
                raise AuthenticationError("Your session has ended. Please sign in again.")
        else:
            authorization = request.headers.get("Authorization")
            if not authorization:
                raise AuthenticationError("Please sign in to continue")
            user_id = container.auth_service.user_from_authorization(authorization).id
        g.user_id = user_id
        return view(*args, **kwargs)

    return wrapper


def permission_required(module: str, action: str):
    def decorator(view):
        @wraps(view)
        def guarded(*args, **kwargs):
            get_container().permission_service.require(
                user_id=current_user_id(),
                module=module,
                action=action,
                ip_address=client_ip(),
                user_agent=user_agent(),
            )
            return view(*args, **kwargs)

        return login_required(guarded)

    return decorator


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        if e.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, e)
        return jsonify({"success": False, "message": str(e)}), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"success": False, "message": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.path)
        message = "Internal server error"
        if app.config.get("DEBUG"):
            message = f"{message}: {e}"
        return jsonify({"success": False, "message": message}), 500
