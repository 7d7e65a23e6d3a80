from __future__ import annotations

from seva_sarthi.security.service import SecurityAuditService


class BrokenEvents:
    def insert(self, **kwargs):
        raise RuntimeError("database is down")


def test_list_events_newest_first_with_filter(container):
    audit = container.security_audit_service
    audit.log_failed_login(email="a@example.org", reason="invalid_password", ip_address="10.0.0.1")
    audit.log_role_change(actor_id="u1", target_user_id="u2", old_role="sevak", new_role="karyakar")
    audit.log_failed_login(email="b@example.org", reason="invalid_password")

    events = audit.list_events()
    assert [e["event_type"] for e in events] == ["failed_login", "role_change", "failed_login"]
    assert events[-1]["ip_address"] == "10.0.0.1"

    logins = audit.list_events(event_type="failed_login", limit=1)
    assert [e["details"]["email"] for e in logins] == ["b@example.org"]


def test_audit_failure_does_not_propagate():
    SecurityAuditService(BrokenEvents()).log_event("role_change", user_id="u1")


def test_security_events_endpoint(client, admin, make_user):
    client.post("/api/auth/sign-in", json={"email": "nobody@example.org", "password": "x"})
    client.post("/api/auth/sign-in", json={"email": admin.email, "password": "Secret@123"})

    res = client.get("/api/admin/security-events?event_type=failed_login&limit=9999")
    assert res.status_code == 200
    assert [e["details"]["reason"] for e in res.get_json()["data"]] == ["unknown_or_inactive"]
