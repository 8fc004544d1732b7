# tests/test_api.py - HTTP surface of the rent ledger and notices

from datetime import date

import pytest
from flask_jwt_extended import create_access_token

MID_MARCH = "2024-03-15T10:00:00"


@pytest.fixture
def overview(client, auth_headers):
    def _get(**params):
        params.setdefault("as_of", MID_MARCH)
        return client.get("/api/rent/overview", headers=auth_headers, query_string=params)
    return _get


class TestHealthAndAuth:
    def test_health(self, client):
        resp = client.get("/api/health")

        assert resp.status_code == 200
        assert resp.get_json()["status"] == "ok"

    def test_requires_token(self, client):
        assert client.get("/api/rent/overview").status_code == 401

    def test_unknown_manager(self, app, client):
        token = create_access_token(identity="nobody")

        resp = client.get("/api/notices", headers={"Authorization": f"Bearer {token}"})

        assert resp.status_code == 404
        assert resp.get_json()["error"] == "not_found"


class TestRentRoutes:
    def test_overview_includes_projection(self, overview, tenant):
        body = overview().get_json()

        assert body["summary"]["total"] == 1
        assert body["summary"]["counts"]["overdue"] == 1
        assert body["summary"]["overdue_amount"] == 1500.0
        [row] = body["rent_records"]
        assert row["kind"] == "projected"
        assert row["id"] is None
        assert row["period"] == "2024-03"
        assert row["due_date"] == "2024-03-01"
        assert row["tenant"]["name"] == "Jordan Lee"

    def test_overview_status_filter(self, overview, tenant):
        assert overview(status="paid").get_json()["rent_records"] == []

    def test_overview_rejects_bad_as_of(self, overview, tenant):
        resp = overview(as_of="yesterday")

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "validation_error"

    def test_projected_payment_materializes_the_month(self, client, auth_headers, overview, tenant):
        resp = client.post(
            f"/api/rent/projections/{tenant.id}/2024-03/payments",
            headers=auth_headers,
            json={"amount_paid": 1500, "paid_date": "2024-03-15", "payment_method": "check"},
        )

        assert resp.status_code == 201
        record = resp.get_json()
        assert record["status"] == "paid"
        assert record["payment_method"] == "check"

        [row] = overview().get_json()["rent_records"]
        assert row["kind"] == "persisted"
        assert row["id"] == record["id"]

    def test_payment_on_record(self, client, auth_headers, tenant, make_record):
        record = make_record(tenant, date(2024, 3, 1), status="overdue")

        resp = client.post(
            f"/api/rent/records/{record.id}/payments",
            headers=auth_headers,
            json={"amount_paid": "500.00", "paid_date": "2024-03-10"},
        )

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "partial"
        assert body["balance"] == 1000.0

    def test_payment_on_paid_record(self, client, auth_headers, tenant, make_record):
        record = make_record(tenant, date(2024, 3, 1), status="paid", amount_paid=1500)

        resp = client.post(
            f"/api/rent/records/{record.id}/payments",
            headers=auth_headers,
            json={"amount_paid": 10, "paid_date": "2024-03-10"},
        )

        assert resp.status_code == 409
        assert resp.get_json()["error"] == "invalid_transition"

    def test_payment_validation(self, client, auth_headers, tenant, make_record):
        record = make_record(tenant, date(2024, 3, 1))

        resp = client.post(
            f"/api/rent/records/{record.id}/payments",
            headers=auth_headers,
            json={"amount_paid": -5, "paid_date": "2024-03-10"},
        )

        assert resp.status_code == 400

    def test_other_managers_record(self, app, client, other_manager, tenant, make_record):
        record = make_record(tenant, date(2024, 3, 1))
        token = create_access_token(identity=other_manager.user_id)

        resp = client.post(
            f"/api/rent/records/{record.id}/payments",
            headers={"Authorization": f"Bearer {token}"},
            json={"amount_paid": 10, "paid_date": "2024-03-10"},
        )

        assert resp.status_code == 404

    def test_create_record(self, client, auth_headers, tenant):
        resp = client.post(
            "/api/rent/records",
            headers=auth_headers,
            json={"tenant_id": tenant.id, "due_date": "2024-02-01"},
        )

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["status"] == "pending"
        assert body["amount_due"] == 1500.0

    def test_create_record_for_existing_month(self, client, auth_headers, tenant, make_record):
        record = make_record(tenant, date(2024, 2, 1))

        resp = client.post(
            "/api/rent/records",
            headers=auth_headers,
            json={"tenant_id": tenant.id, "due_date": "2024-02-10", "amount_paid": 1500, "paid_date": "2024-02-10"},
        )

        assert resp.status_code == 200
        assert resp.get_json()["id"] == record.id
        assert resp.get_json()["status"] == "paid"

    def test_create_record_with_conflicting_amount(self, client, auth_headers, tenant, make_record):
        make_record(tenant, date(2024, 2, 1))

        resp = client.post(
            "/api/rent/records",
            headers=auth_headers,
            json={"tenant_id": tenant.id, "due_date": "2024-02-01", "amount_due": 900},
        )

        assert resp.status_code == 409
        assert resp.get_json()["error"] == "conflict"

    def test_projected_payment_for_month_not_yet_due(self, client, auth_headers, tenant, record_count):
        future = date.today().year + 1

        resp = client.post(
            f"/api/rent/projections/{tenant.id}/{future}-01/payments",
            headers=auth_headers,
            json={"amount_paid": 1500, "paid_date": date.today().isoformat()},
        )

        assert resp.status_code == 400
        assert record_count() == 0

    def test_oversized_payment(self, client, auth_headers, tenant, make_record):
        record = make_record(tenant, date(2024, 3, 1))

        resp = client.post(
            f"/api/rent/records/{record.id}/payments",
            headers=auth_headers,
            json={"amount_paid": "1e30", "paid_date": "2024-03-10"},
        )

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "validation_error"

    def test_create_record_requires_due_date(self, client, auth_headers, tenant):
        resp = client.post("/api/rent/records", headers=auth_headers, json={"tenant_id": tenant.id})

        assert resp.status_code == 400
        assert resp.get_json()["message"] == "due_date is required"

    def test_late_fee_and_mark_overdue(self, client, auth_headers, tenant, make_record):
        record = make_record(tenant, date(2024, 2, 1))

        resp = client.post("/api/rent/mark-overdue", headers=auth_headers, query_string={"as_of": MID_MARCH})
        assert resp.get_json()["updated_count"] == 1

        resp = client.post(f"/api/rent/records/{record.id}/late-fee", headers=auth_headers, json={})
        body = resp.get_json()["rent_record"]
        assert body["status"] == "overdue"
        assert body["late_fees"] == 50.0
        assert body["balance"] == 1550.0


class TestNoticeRoutes:
    def test_notice_for_projected_month(self, client, auth_headers, tenant, record_count):
        resp = client.post(
            "/api/notices",
            headers=auth_headers,
            json={"tenant_id": tenant.id, "period": "2024-03", "amount_owed": 1500},
        )

        assert resp.status_code == 201
        notice = resp.get_json()
        assert notice["status"] == "generated"
        assert notice["days_to_pay"] == 30
        assert notice["rent_record_id"] is not None
        assert [e["action"] for e in notice["events"]] == ["generated"]
        assert record_count() == 1

    def test_notice_for_month_not_yet_due(self, client, auth_headers, tenant, record_count):
        future = date.today().year + 1

        resp = client.post(
            "/api/notices",
            headers=auth_headers,
            json={"tenant_id": tenant.id, "period": f"{future}-01", "amount_owed": 1500},
        )

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "validation_error"
        assert record_count() == 0

    def test_notice_rejects_sub_cent_amount(self, client, auth_headers, tenant, make_record):
        record = make_record(tenant, date(2024, 3, 1), status="overdue")

        resp = client.post(
            "/api/notices",
            headers=auth_headers,
            json={"tenant_id": tenant.id, "rent_record_id": record.id, "amount_owed": "0.001"},
        )

        assert resp.status_code == 400

    def test_notice_needs_a_record_or_period(self, client, auth_headers, tenant):
        resp = client.post(
            "/api/notices", headers=auth_headers, json={"tenant_id": tenant.id, "amount_owed": 1500},
        )

        assert resp.status_code == 400
        assert resp.get_json()["message"] == "rent_record_id or period is required"

    def test_notice_rejects_bad_jurisdiction(self, client, auth_headers, tenant):
        resp = client.post(
            "/api/notices",
            headers=auth_headers,
            json={"tenant_id": tenant.id, "period": "2024-03", "amount_owed": 1500, "jurisdiction": "ZZ"},
        )

        assert resp.status_code == 400

    def test_notice_lifecycle(self, client, auth_headers, tenant, make_record):
        record = make_record(tenant, date(2024, 3, 1), status="overdue")
        notice = client.post(
            "/api/notices",
            headers=auth_headers,
            json={"tenant_id": tenant.id, "rent_record_id": record.id, "amount_owed": "1500.00"},
        ).get_json()

        resp = client.post(f"/api/notices/{notice['id']}/actions", headers=auth_headers, json={"action": "sent"})
        assert resp.status_code == 200
        assert resp.get_json()["notice"]["status"] == "served"

        doc = client.get(f"/api/notices/{notice['id']}/document", headers=auth_headers)
        assert doc.status_code == 200
        assert doc.mimetype == "text/plain"
        assert "$1,500.00" in doc.get_data(as_text=True)

        pdf = client.get(f"/api/notices/{notice['id']}/pdf", headers=auth_headers)
        assert pdf.status_code == 200
        assert pdf.mimetype == "application/pdf"
        assert pdf.data.startswith(b"%PDF")

        # paying in full closes the notice
        client.post(
            f"/api/rent/records/{record.id}/payments",
            headers=auth_headers,
            json={"amount_paid": 1500, "paid_date": "2024-03-20"},
        )
        listed = client.get("/api/notices", headers=auth_headers).get_json()
        assert listed["notices"][0]["status"] == "resolved"
        assert [e["action"] for e in listed["notices"][0]["events"]] == ["generated", "sent", "downloaded"]

        resp = client.post(f"/api/notices/{notice['id']}/resolve", headers=auth_headers)
        assert resp.status_code == 409

    def test_action_on_missing_notice(self, client, auth_headers):
        resp = client.post("/api/notices/999/actions", headers=auth_headers, json={"action": "sent"})

        assert resp.status_code == 202
        assert resp.get_json() == {"recorded": False}

    def test_unknown_action(self, client, auth_headers):
        resp = client.post("/api/notices/999/actions", headers=auth_headers, json={"action": "shred"})

        assert resp.status_code == 400

    def test_expire(self, client, auth_headers, tenant, make_record):
        record = make_record(tenant, date(2024, 3, 1), status="overdue")
        client.post(
            "/api/notices",
            headers=auth_headers,
            json={"tenant_id": tenant.id, "rent_record_id": record.id, "amount_owed": 1500, "days_to_pay": 3},
        )

        resp = client.post("/api/notices/expire", headers=auth_headers, query_string={"as_of": "2100-01-01"})

        assert resp.get_json()["expired_count"] == 1
