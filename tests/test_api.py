from __future__ import annotations

import io

import pytest


def _sign_in(client, email, password="Secret@123"):
    return client.post("/api/auth/sign-in", json={"email": email, "password": password})


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def test_requests_without_auth_get_401(client):
    res = client.get("/api/auth/me")
    assert res.status_code == 401
    assert res.get_json() == {"success": False, "message": "Please sign in to continue"}


def test_sign_in_sets_session_and_returns_token(client, make_user, grant):
    grant("karyakar", "tasks", "view")
    make_user("karyakar", email="hari@example.org")

    res = _sign_in(client, "hari@example.org")
    assert res.status_code == 200
    body = res.get_json()
    assert body["success"] is True
    assert body["data"]["role"] == "karyakar"
    assert body["access_token"]

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.get_json()["data"]["email"] == "hari@example.org"
    assert me.get_json()["permissions"]["tasks"]["view"] is True


def test_wrong_password_is_401(client, make_user):
    make_user(email="hari@example.org")
    res = _sign_in(client, "hari@example.org", "nope")
    assert res.status_code == 401
    assert res.get_json()["message"] == "Invalid email or password"


def test_bearer_token_without_session(app, make_user):
    make_user("karyakar", email="hari@example.org")
    token = _sign_in(app.test_client(), "hari@example.org").get_json()["access_token"]

    fresh = app.test_client()
    assert fresh.get("/api/notifications", headers=_bearer(token)).status_code == 200
    assert fresh.get("/api/notifications", headers=_bearer("garbage")).status_code == 401


def test_sign_out_clears_session(client, make_user):
    make_user(email="hari@example.org")
    _sign_in(client, "hari@example.org")

    client.post("/api/auth/sign-out")
    assert client.get("/api/auth/me").status_code == 401


def test_deactivated_user_loses_session(client, make_user, repos):
    user = make_user(email="hari@example.org")
    _sign_in(client, "hari@example.org")
    repos.profiles.set_active(user.id, is_active=False)

    res = client.get("/api/auth/me")
    assert res.status_code == 401
    assert "session has ended" in res.get_json()["message"]


def test_missing_permission_is_403_and_audited(client, make_user, repos):
    make_user("sevak", email="sevak@example.org")
    _sign_in(client, "sevak@example.org")

    res = client.get("/api/karyakars")
    assert res.status_code == 403
    assert res.get_json()["success"] is False
    event = repos.security_events.of_type("unauthorized_access")[-1]
    assert event.details == {"module": "karyakars", "action": "view"}
    assert event.ip_address == "127.0.0.1"


def test_admin_manages_master_data(client, admin):
    _sign_in(client, admin.email)

    created = client.post("/api/master/mandirs", json={"name": "Shree Mandir"})
    assert created.status_code == 201
    row_id = created.get_json()["data"]["id"]

    listing = client.get("/api/master/mandirs").get_json()["data"]
    assert [r["name"] for r in listing] == ["Shree Mandir"]
    assert client.get("/api/master/mandirs/options").get_json()["data"] == [{"value": row_id, "label": "Shree Mandir"}]

    assert client.delete(f"/api/master/mandirs/{row_id}").status_code == 200
    assert client.get("/api/master/mandirs").get_json()["data"] == []
    assert client.get("/api/master/users").status_code == 400


def test_validation_error_is_400(client, admin):
    _sign_in(client, admin.email)
    res = client.post("/api/karyakars", json={"full_name": "", "mobile_number": "9876543210"})
    assert res.status_code == 400
    assert res.get_json() == {"success": False, "message": "Full name is required"}


def test_non_object_body_is_rejected(client, admin):
    _sign_in(client, admin.email)
    res = client.post("/api/tasks", json=["not", "an", "object"])
    assert res.status_code == 400


def test_unknown_route_is_json_404(client):
    res = client.get("/api/nothing-here")
    assert res.status_code == 404
    assert res.get_json()["success"] is False


def test_task_flow_over_http(client, app, admin, make_user):
    worker = make_user("karyakar", email="worker@example.org")
    _sign_in(client, admin.email)
    task_id = client.post("/api/tasks", json={"title": "Decorate", "assigned_to": worker.id}).get_json()["data"]["id"]

    worker_client = app.test_client()
    _sign_in(worker_client, "worker@example.org")
    notes = worker_client.get("/api/notifications").get_json()
    assert notes["unread"] == 1

    res = worker_client.put(f"/api/tasks/{task_id}/status", json={"status": "in_progress"})
    assert res.status_code == 200
    assert worker_client.get(f"/api/tasks/{task_id}").get_json()["data"]["status"] == "in_progress"


def test_report_export_download(client, admin):
    _sign_in(client, admin.email)

    res = client.get("/api/reports/karyakars/export?format=csv")
    assert res.status_code == 200
    assert res.mimetype == "text/csv"
    assert "attachment" in res.headers["Content-Disposition"]
    assert res.data.startswith(b"\xef\xbb\xbf")


def test_search_endpoint(client, admin):
    _sign_in(client, admin.email)
    assert client.get("/api/search?q=a").get_json()["data"] == []


def test_function_change_user_password(client, admin, make_user):
    target = make_user()
    token = _sign_in(client, admin.email).get_json()["access_token"]

    res = client.post(
        "/functions/v1/change-user-password",
        json={"userId": target.id, "newPassword": "fresh1"},
        headers=_bearer(token),
    )
    assert res.status_code == 200
    assert res.get_json() == {"success": True, "message": "Password changed successfully"}
    assert _sign_in(client, target.email, "fresh1").status_code == 200


@pytest.mark.parametrize(
    "headers, body, status",
    [
        ({}, {"userId": "x", "newPassword": "fresh1"}, 401),
        (None, {"userId": "x", "newPassword": "abc"}, 400),
        (None, {"userId": "missing", "newPassword": "fresh1"}, 400),
    ],
)
def test_function_change_user_password_errors(client, admin, headers, body, status):
    if headers is None:
        headers = _bearer(_sign_in(client, admin.email).get_json()["access_token"])

    res = client.post("/functions/v1/change-user-password", json=body, headers=headers)
    assert res.status_code == status
    assert set(res.get_json()) == {"error"}


def test_function_change_user_password_needs_super_admin(client, make_user):
    make_user("sant_nirdeshak", email="sant@example.org")
    token = _sign_in(client, "sant@example.org").get_json()["access_token"]

    res = client.post(
        "/functions/v1/change-user-password", json={"userId": "x", "newPassword": "fresh1"}, headers=_bearer(token)
    )
    assert res.status_code == 403
    assert "super_admin" in res.get_json()["error"]


def test_function_send_password_reset(client, make_user, repos):
    user = make_user(email="hari@example.org")

    res = client.post("/functions/v1/send-password-reset", json={"userEmail": "hari@example.org"})
    assert res.status_code == 200
    token = repos.profiles.get_by_id(user.id).password_reset_token

    res = client.post("/api/auth/reset-password", json={"token": token, "new_password": "Reset@123"})
    assert res.status_code == 200
    assert _sign_in(client, "hari@example.org", "Reset@123").status_code == 200

    bad = client.post("/functions/v1/send-password-reset", json={"userEmail": "not-an-email"})
    assert bad.status_code == 400
    assert bad.get_json() == {"error": "Invalid email format"}


def test_uploaded_photo_is_served_as_image_without_sniffing(client, make_user):
    make_user(email="hari@example.org")
    _sign_in(client, "hari@example.org")

    rejected = client.post(
        "/api/profile/photo",
        data={"photo": (io.BytesIO(b"<script>alert(1)</script>"), "evil.html", "image/png")},
        content_type="multipart/form-data",
    )
    assert rejected.status_code == 400

    res = client.post(
        "/api/profile/photo",
        data={"photo": (io.BytesIO(b"\x89PNG\r\n"), "me.png", "image/png")},
        content_type="multipart/form-data",
    )
    assert res.status_code == 200
    url = res.get_json()["data"]["profile_photo_url"]

    served = client.get(url)
    assert served.status_code == 200
    assert served.mimetype == "image/png"
    assert served.headers["X-Content-Type-Options"] == "nosniff"
    served.close()
