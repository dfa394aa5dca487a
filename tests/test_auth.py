"""Staff panel login, sessions and the admin CLI."""

from datetime import datetime, timedelta

from models import db
from models.audit_log import AuditLog
from models.employee import Employee, TechnicianAlias
from models.session import Session
from security.password import verify_password
from tests.conftest import STAFF_PASSWORD, login


class TestLogin:

    def test_login_sets_cookies(self, client, staff):
        resp = client.post("/auth/login", json={"email": " Dora@Salon.test ", "password": STAFF_PASSWORD})
        assert resp.status_code == 200
        assert resp.get_json()["employee"]["name"] == "Dora Alviter"
        assert client.get_cookie("salon_staff_session") is not None
        assert client.get_cookie("csrf_token") is not None

        # only the hash of the token is stored
        raw = client.get_cookie("salon_staff_session").value
        assert Session.query.filter_by(token_hash=raw).count() == 0
        assert AuditLog.query.filter_by(action="LOGIN_SUCCESS").count() == 1

    def test_me(self, client, staff):
        login(client, "desk@salon.test")
        body = client.get("/auth/me").get_json()
        assert body["role"] == "admin"
        assert sorted(body["roles"]) == ["ADMIN", "EMPLOYEE"]

    def test_wrong_password(self, client, staff):
        resp = client.post("/auth/login", json={"email": "dora@salon.test", "password": "nope"})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Invalid credentials"
        assert AuditLog.query.filter_by(action="LOGIN_FAIL").count() == 1

    def test_inactive_employee_cannot_login(self, client, staff):
        resp = client.post("/auth/login", json={"email": "kim@salon.test", "password": STAFF_PASSWORD})
        assert resp.status_code == 401

    def test_missing_fields(self, client, staff):
        assert client.post("/auth/login", json={"email": "dora@salon.test"}).status_code == 400

    def test_me_requires_session(self, client, staff):
        assert client.get("/auth/me").status_code == 401


class TestSessions:

    def test_logout_revokes_session(self, client, staff):
        headers = login(client, "dora@salon.test")
        assert client.post("/auth/logout", headers=headers).status_code == 200
        assert Session.query.one().revoked is True
        assert client.get("/auth/me").status_code == 401

    def test_new_login_revokes_older_sessions(self, app, staff):
        first, second = app.test_client(), app.test_client()
        login(first, "dora@salon.test")
        login(second, "dora@salon.test")
        assert first.get("/auth/me").status_code == 401
        assert second.get("/auth/me").status_code == 200

    def test_idle_session_expires(self, client, staff):
        login(client, "dora@salon.test")
        sess = Session.query.one()
        sess.last_seen_at = datetime.utcnow() - timedelta(hours=1)
        db.session.commit()
        assert client.get("/auth/me").status_code == 401

    def test_deactivated_employee_loses_access(self, client, staff):
        login(client, "dora@salon.test")
        staff.dora.is_active = False
        db.session.commit()
        assert client.get("/bookings/me").status_code == 401


class TestSecurityHeaders:

    def test_json_responses_carry_headers(self, client):
        resp = client.get("/health")
        assert resp.headers["X-Frame-Options"] == "DENY"
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert "default-src 'none'" in resp.headers["Content-Security-Policy"]


class TestCli:

    def test_create_employee(self, app, staff):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["create-employee", "Lena Ruiz", "Lena@Salon.test",
                                     "--password", "s3cret-pass", "--specialty", "pedicure"])
        assert "created" in result.output

        lena = Employee.query.filter_by(email="lena@salon.test").one()
        assert lena.specialty == "pedicure"
        assert [r.name for r in lena.roles] == ["EMPLOYEE"]
        assert verify_password("s3cret-pass", lena.password_hash)

    def test_duplicate_employee(self, app, staff):
        result = app.test_cli_runner().invoke(args=["create-employee", "Dora Alviter", "other@salon.test"])
        assert "already exists" in result.output

    def test_add_alias(self, app, staff):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["add-alias", "Dora Alviter", "Dee"])
        assert "'dee' now resolves to Dora Alviter" in result.output
        assert TechnicianAlias.query.filter_by(fragment="dee").one().employee_id == staff.dora.id

        result = runner.invoke(args=["add-alias", "Dora Alviter", "ara"])
        assert "already in use" in result.output
