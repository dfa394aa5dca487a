"""Front-desk views: technicians, aliases, booking lists, workload and the audit trail."""

import pytest

from models.audit_log import AuditLog
from models.email_log import EmailLog
from models.employee import TechnicianAlias
from services.booking_writer import write_bookings
from services.status import update_booking_status
from tests.conftest import login, make_payload, split_payload


@pytest.fixture
def admin_headers(client, staff):
    return login(client, "desk@salon.test")


class TestAccess:

    @pytest.mark.parametrize("path", ["/admin/employees", "/admin/bookings", "/admin/workload", "/admin/audit-logs"])
    def test_technicians_are_forbidden(self, client, staff, path):
        login(client, "dora@salon.test")
        assert client.get(path).status_code == 403

    def test_anonymous_is_unauthorized(self, client, staff):
        assert client.get("/admin/bookings").status_code == 401


class TestEmployees:

    def test_list_includes_aliases_and_inactive(self, client, admin_headers):
        rows = client.get("/admin/employees").get_json()
        by_name = {r["name"]: r for r in rows}
        assert by_name["Aracely Orozco"]["aliases"] == ["ara"]
        assert by_name["Aracely Orozco"]["specialty"] == "pedicure"
        assert by_name["Kim Tran"]["is_active"] is False

    def test_add_and_remove_alias(self, client, staff, admin_headers):
        resp = client.post(f"/admin/employees/{staff.dora.id}/aliases", headers=admin_headers,
                           json={"fragment": "  Dori "})
        assert resp.status_code == 201
        assert resp.get_json()["fragment"] == "dori"

        resp = client.delete(f"/admin/employees/{staff.dora.id}/aliases?fragment=dori", headers=admin_headers)
        assert resp.status_code == 200
        assert TechnicianAlias.query.filter_by(fragment="dori").count() == 0

    def test_alias_fragment_is_unique(self, client, staff, admin_headers):
        resp = client.post(f"/admin/employees/{staff.dora.id}/aliases", headers=admin_headers,
                           json={"fragment": "ara"})
        assert resp.status_code == 409

    def test_alias_for_unknown_employee(self, client, staff, admin_headers):
        resp = client.post("/admin/employees/999/aliases", headers=admin_headers, json={"fragment": "x"})
        assert resp.status_code == 404

    def test_remove_missing_alias(self, client, staff, admin_headers):
        resp = client.delete(f"/admin/employees/{staff.dora.id}/aliases", headers=admin_headers,
                             json={"fragment": "nobody"})
        assert resp.status_code == 404


class TestBookingList:

    def _seed(self):
        write_bookings(split_payload())
        write_bookings(make_payload(customer_first_name="Jules", customer_last_name="Park",
                                    customer_email="jules@example.com", appointment_date="2026-11-05"))

    def test_filters(self, client, staff, admin_headers):
        self._seed()

        body = client.get("/admin/bookings").get_json()
        assert body["count"] == 3

        body = client.get(f"/admin/bookings?employee_id={staff.aracely.id}").get_json()
        assert [b["segment"] for b in body["data"]] == ["pedicure"]

        body = client.get("/admin/bookings?date_from=2026-11-03&date_to=2026-11-30").get_json()
        assert [b["customer_first_name"] for b in body["data"]] == ["Jules"]

        body = client.get("/admin/bookings?search=JULES").get_json()
        assert body["count"] == 1

    def test_status_filters(self, client, staff, admin_headers):
        self._seed()
        body = client.get("/admin/bookings?payment_status=paid").get_json()
        assert body["count"] == 0
        assert client.get("/admin/bookings?appointment_status=done").status_code == 400
        assert client.get("/admin/bookings?date_from=11/05/2026").status_code == 400


class TestWorkload:

    def test_counts_per_technician(self, client, staff, admin_headers):
        write_bookings(split_payload())
        write_bookings(make_payload(appointment_time="1:00 PM"))

        rows = {r["employee_name"]: r for r in client.get("/admin/workload").get_json()["data"]}
        assert rows["Dora Alviter"]["total_appointments"] == 2
        assert rows["Dora Alviter"]["total_duration"] == 90
        assert rows["Dora Alviter"]["pending_appointments"] == 2
        assert rows["Aracely Orozco"]["total_appointments"] == 1
        assert rows["Aracely Orozco"]["total_duration"] == 60
        # technicians without bookings still get a row
        assert rows["Kim Tran"]["total_appointments"] == 0

    def test_date_window(self, client, staff, admin_headers):
        write_bookings(make_payload())
        rows = {r["employee_name"]: r for r in
                client.get("/admin/workload?date_from=2026-12-01").get_json()["data"]}
        assert rows["Dora Alviter"]["total_appointments"] == 0


class TestHistoryAndAudit:

    def test_booking_history(self, client, staff, admin_headers):
        booking = write_bookings(make_payload()).bookings[0]
        update_booking_status(booking, staff.dora, appointment_status="completed")
        update_booking_status(booking, staff.admin, payment_status="paid")

        rows = client.get(f"/admin/bookings/{booking.id}/history").get_json()
        assert [r["status_type"] for r in rows] == ["appointment", "payment"]
        assert client.get("/admin/bookings/999/history").status_code == 404

    def test_audit_log_filters(self, client, staff, admin_headers):
        client.post("/auth/login", json={"email": "dora@salon.test", "password": "wrong"})

        rows = client.get("/admin/audit-logs?action=LOGIN_FAIL").get_json()
        assert len(rows) == 1
        assert rows[0]["metadata"] == {"email": "dora@salon.test"}

        rows = client.get(f"/admin/audit-logs?employee_id={staff.admin.id}").get_json()
        assert {r["action"] for r in rows} == {"LOGIN_SUCCESS"}


class TestCustomerEmails:

    def test_email_log_for_booking(self, client, staff, admin_headers, outbox):
        booking = client.post("/bookings", headers=admin_headers, json=make_payload()).get_json()["bookings"][0]
        rows = client.get(f"/admin/bookings/{booking['id']}/emails").get_json()
        assert [(r["email_type"], r["status"]) for r in rows] == [("booking_confirmation", "sent")]
        assert rows[0]["recipient"] == "maya@example.com"
        assert client.get("/admin/bookings/999/emails").status_code == 404

    def test_manual_reminder(self, client, staff, admin_headers, outbox):
        booking = write_bookings(make_payload()).bookings[0]
        resp = client.post(f"/admin/bookings/{booking.id}/reminders", headers=admin_headers,
                           json={"reminder_type": "same_day"})
        assert resp.status_code == 200
        assert "today" in outbox[0]["subject"]

        rows = client.get(f"/admin/bookings/{booking.id}/emails").get_json()
        assert [r["email_type"] for r in rows] == ["same_day_reminder"]
        event = AuditLog.query.filter_by(action="REMINDER_MANUAL_SEND").one()
        assert event.employee_id == staff.admin.id

    def test_manual_reminder_failure_is_reported(self, client, staff, admin_headers):
        # SMTP is not configured in tests
        booking = write_bookings(make_payload()).bookings[0]
        resp = client.post(f"/admin/bookings/{booking.id}/reminders", headers=admin_headers,
                           json={"reminder_type": "day_before"})
        assert resp.status_code == 502
        assert EmailLog.query.filter_by(booking_id=booking.id).one().status == "failed"

    def test_manual_reminder_validation(self, client, staff, admin_headers):
        booking = write_bookings(make_payload()).bookings[0]
        resp = client.post(f"/admin/bookings/{booking.id}/reminders", headers=admin_headers,
                           json={"reminder_type": "weekly"})
        assert resp.status_code == 400
        resp = client.post("/admin/bookings/999/reminders", headers=admin_headers,
                           json={"reminder_type": "same_day"})
        assert resp.status_code == 404

    def test_technicians_cannot_send_reminders(self, client, staff):
        booking = write_bookings(make_payload()).bookings[0]
        headers = login(client, "dora@salon.test")
        resp = client.post(f"/admin/bookings/{booking.id}/reminders", headers=headers,
                           json={"reminder_type": "same_day"})
        assert resp.status_code == 403
