from app.common.exceptions import UpstreamError
from app.core.config import settings


def test_create_then_read_round_trip(client, as_user, create_transaction):
    created = create_transaction(amount=50, description="Snacks", created_by="Mary Member")

    response = client.get(f"/api/sheets/read/{created['key']}", headers=as_user("basic"))
    assert response.status_code == 200
    record = response.json()["record"]
    assert record["amount"] == 50
    assert record["description"] == "Snacks"
    assert record["status"] == "Pending"
    assert record["createdBy"] == "Mary Member"
    assert record["approvedBy"] == ""
    assert response.headers["ETag"] == f'"{record["etag"]}"'


def test_create_forces_pending_and_defaults_author(client, as_user, sheets):
    payload = {
        "account": "MIYF",
        "date": "2024-03-10",
        "type": "Income",
        "who": "Offering",
        "amount": 120.5,
        "description": "Sunday offering",
        "status": "Approved",
    }
    response = client.post("/api/sheets/create", json=payload, headers=as_user("admin"))
    assert response.status_code == 200
    record = response.json()["record"]
    assert record["status"] == "Pending"
    assert record["createdBy"] == "Tom Treasurer"
    assert len(sheets.snapshot(settings.GOOGLE_SHEET_NAME)) == 2


def test_create_rejects_missing_fields(client, as_user):
    response = client.post("/api/sheets/create", json={"account": "MIYF"}, headers=as_user("basic"))
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Missing or invalid fields"


def test_requests_without_token_are_rejected(client):
    response = client.get("/api/sheets/read")
    assert response.status_code in (401, 403)


def test_read_filters(client, as_user, create_transaction):
    create_transaction(type="Income", date="2024-01-05", who="Offering")
    create_transaction(type="Expense", date="2024-02-10", who="Grace Bakery")
    create_transaction(type="Expense", date="2024-03-15", who="Hall rental")

    headers = as_user("basic")
    expenses = client.get("/api/sheets/read", params={"type": "Expense"}, headers=headers).json()
    assert expenses["total"] == 2

    february = client.get(
        "/api/sheets/read",
        params={"start_date": "2024-02-01", "end_date": "2024-02-29"},
        headers=headers,
    ).json()
    assert [r["who"] for r in february["records"]] == ["Grace Bakery"]

    search = client.get("/api/sheets/read", params={"search": "hall"}, headers=headers).json()
    assert search["total"] == 1


def test_update_amount_keeps_key_and_creator(client, as_user, create_transaction):
    created = create_transaction(amount=50)

    response = client.put(f"/api/sheets/update/{created['key']}", json={"amount": 75}, headers=as_user("basic"))
    assert response.status_code == 200
    record = response.json()["record"]
    assert record["key"] == created["key"]
    assert record["amount"] == 75
    assert record["createdBy"] == created["createdBy"]
    assert record["createdDate"] == created["createdDate"]
    assert record["lastUserUpdate"] == "Mary Member"


def test_update_writes_edit_audit_row(client, as_user, create_transaction, sheets):
    created = create_transaction(amount=50)
    client.put(f"/api/sheets/update/{created['key']}", json={"amount": 75}, headers=as_user("basic"))

    logs = sheets.snapshot(settings.AUDIT_LOG_SHEET_NAME)[1:]
    assert len(logs) == 1
    assert logs[0][2] == "Edit Record"
    assert logs[0][3] == created["key"]
    assert logs[0][4] == "Amount"


def test_update_unknown_key_is_404(client, as_user):
    response = client.put("/api/sheets/update/missing1", json={"amount": 10}, headers=as_user("admin"))
    assert response.status_code == 404
    assert response.json()["message"] == "Record not found"


def test_basic_user_cannot_edit_others_records(client, as_user, create_transaction):
    created = create_transaction(user="basic")
    response = client.put(f"/api/sheets/update/{created['key']}", json={"amount": 10}, headers=as_user("other"))
    assert response.status_code == 403


def test_basic_user_cannot_edit_approved_record(client, as_user, create_transaction):
    created = create_transaction(user="basic")
    client.put("/api/sheets/update-record-status", json={"key": created["key"], "status": "Approved"},
               headers=as_user("admin"))

    response = client.put(f"/api/sheets/update/{created['key']}", json={"amount": 10}, headers=as_user("basic"))
    assert response.status_code == 403


def test_same_key_updates_are_last_write_wins(client, as_user, create_transaction):
    created = create_transaction()
    headers = as_user("admin")
    client.put(f"/api/sheets/update/{created['key']}", json={"amount": 60}, headers=headers)
    client.put(f"/api/sheets/update/{created['key']}", json={"amount": 70}, headers=headers)

    record = client.get(f"/api/sheets/read/{created['key']}", headers=headers).json()["record"]
    assert record["amount"] == 70


def test_stale_if_match_is_rejected(client, as_user, create_transaction):
    created = create_transaction()
    headers = as_user("admin")
    etag = client.get(f"/api/sheets/read/{created['key']}", headers=headers).headers["ETag"]

    first = client.put(f"/api/sheets/update/{created['key']}", json={"amount": 60},
                       headers={**headers, "If-Match": etag})
    assert first.status_code == 200

    second = client.put(f"/api/sheets/update/{created['key']}", json={"amount": 70},
                        headers={**headers, "If-Match": etag})
    assert second.status_code == 409

    record = client.get(f"/api/sheets/read/{created['key']}", headers=headers).json()["record"]
    assert record["amount"] == 60


def test_approve_sets_approver_and_audits_once(client, as_user, create_transaction, sheets):
    created = create_transaction()
    body = {"key": created["key"], "status": "Approved"}

    response = client.put("/api/sheets/update-record-status", json=body, headers=as_user("admin"))
    assert response.status_code == 200
    data = response.json()
    assert data["changed"] is True
    assert data["record"]["status"] == "Approved"
    assert data["record"]["approvedBy"] == "Tom Treasurer"
    assert data["record"]["approvedDate"]

    status_rows = [r for r in sheets.snapshot(settings.AUDIT_LOG_SHEET_NAME)[1:] if r[2] == "Update Status"]
    assert len(status_rows) == 1
    assert status_rows[0][5:7] == ["Pending", "Approved"]

    again = client.post("/api/sheets/update-record-status", json=body, headers=as_user("admin"))
    assert again.status_code == 200
    assert again.json()["changed"] is False
    status_rows = [r for r in sheets.snapshot(settings.AUDIT_LOG_SHEET_NAME)[1:] if r[2] == "Update Status"]
    assert len(status_rows) == 1


def test_status_update_requires_admin(client, as_user, create_transaction):
    created = create_transaction()
    response = client.put("/api/sheets/update-record-status",
                          json={"key": created["key"], "status": "Approved"}, headers=as_user("basic"))
    assert response.status_code == 403


def test_delete_removes_exactly_one_row(client, as_user, create_transaction, sheets):
    first = create_transaction(who="First")
    second = create_transaction(who="Second")
    third = create_transaction(who="Third")

    response = client.delete(f"/api/sheets/delete/{second['key']}", headers=as_user("admin"))
    assert response.status_code == 200
    assert response.json()["deletedKey"] == second["key"]

    rows = sheets.snapshot(settings.GOOGLE_SHEET_NAME)
    assert [r[0] for r in rows[1:]] == [first["key"], third["key"]]
    assert client.get(f"/api/sheets/read/{third['key']}", headers=as_user("admin")).status_code == 200
    assert client.get(f"/api/sheets/read/{second['key']}", headers=as_user("admin")).status_code == 404


def test_delete_requires_admin(client, as_user, create_transaction):
    created = create_transaction()
    assert client.delete(f"/api/sheets/delete/{created['key']}", headers=as_user("basic")).status_code == 403


def test_stats_totals_and_monthly(client, as_user, create_transaction):
    create_transaction(type="Income", amount=200, date="2024-01-05")
    create_transaction(type="Expense", amount=50, date="2024-01-20")
    create_transaction(type="Expense", amount=30, date="2024-02-02")

    stats = client.get("/api/sheets/stats", headers=as_user("basic")).json()
    assert stats["totalIncome"] == 200
    assert stats["totalExpense"] == 80
    assert stats["net"] == 120
    assert stats["pendingCount"] == 3
    assert [m["month"] for m in stats["monthly"]] == ["2024-01", "2024-02"]
    assert stats["monthly"][-1]["cumulative"] == 120


def test_audit_failure_does_not_fail_the_write(client, as_user, create_transaction, sheets, monkeypatch):
    created = create_transaction()

    def broken_append(*args, **kwargs):
        raise UpstreamError("Google Sheets request failed")

    monkeypatch.setattr("app.services.audit_log_service.AuditLogService.append", broken_append)
    response = client.put("/api/sheets/update-record-status",
                          json={"key": created["key"], "status": "Approved"}, headers=as_user("admin"))
    assert response.status_code == 200
    assert response.json()["record"]["status"] == "Approved"


def test_basic_user_cannot_approve_through_edit(client, as_user, create_transaction, sheets):
    created = create_transaction(user="basic")

    response = client.put(f"/api/sheets/update/{created['key']}", json={"status": "Approved", "amount": 99},
                          headers=as_user("basic"))
    assert response.status_code == 403

    record = client.get(f"/api/sheets/read/{created['key']}", headers=as_user("admin")).json()["record"]
    assert record["status"] == "Pending"
    assert record["amount"] == 50
    assert sheets.snapshot(settings.AUDIT_LOG_SHEET_NAME)[1:] == []


def test_admin_status_change_through_edit_stamps_approval(client, as_user, create_transaction, sheets):
    created = create_transaction(user="basic")

    response = client.put(f"/api/sheets/update/{created['key']}", json={"status": "Approved", "amount": 80},
                          headers=as_user("admin"))
    assert response.status_code == 200
    record = response.json()["record"]
    assert record["status"] == "Approved"
    assert record["amount"] == 80
    assert record["approvedBy"] == "Tom Treasurer"
    assert record["approvedDate"]

    actions = [r[2] for r in sheets.snapshot(settings.AUDIT_LOG_SHEET_NAME)[1:]]
    assert actions == ["Edit Record", "Update Status"]


def test_basic_user_cannot_attribute_record_to_someone_else(client, as_user, create_transaction):
    created = create_transaction(user="basic", created_by="Tom Treasurer")
    assert created["createdBy"] == "Mary Member"


def test_admin_may_record_on_behalf_of_member(client, as_user, create_transaction):
    created = create_transaction(user="admin", created_by="Mary Member")
    assert created["createdBy"] == "Mary Member"
