from app.core.config import settings


def make_history(client, as_user, create_transaction):
    """One edit by the basic user, one by the other basic user, one status change by the admin."""
    mine = create_transaction(user="basic", who="Mine")
    theirs = create_transaction(user="other", who="Theirs")
    client.put(f"/api/sheets/update/{mine['key']}", json={"amount": 11}, headers=as_user("basic"))
    client.put(f"/api/sheets/update/{theirs['key']}", json={"amount": 12}, headers=as_user("other"))
    client.put("/api/sheets/update-record-status", json={"key": mine["key"], "status": "Approved"},
               headers=as_user("admin"))


def test_admin_sees_all_rows(client, as_user, create_transaction):
    make_history(client, as_user, create_transaction)
    logs = client.get("/api/sheets/audit-log", headers=as_user("admin")).json()["logs"]
    assert len(logs) == 3


def test_basic_user_sees_only_own_rows(client, as_user, create_transaction):
    make_history(client, as_user, create_transaction)
    logs = client.get("/api/sheets/audit-log", headers=as_user("basic")).json()["logs"]
    assert [log["user"] for log in logs] == ["Mary Member"]


def test_basic_clear_is_soft_and_scoped(client, as_user, create_transaction, sheets):
    make_history(client, as_user, create_transaction)

    response = client.delete("/api/sheets/audit-log", headers=as_user("basic"))
    assert response.status_code == 200
    assert response.json()["clearedCount"] == 1

    rows = sheets.snapshot(settings.AUDIT_LOG_SHEET_NAME)[1:]
    assert len(rows) == 3
    assert [r[8] for r in rows] == ["0", "1", "1"]

    assert client.get("/api/sheets/audit-log", headers=as_user("basic")).json()["logs"] == []
    assert len(client.get("/api/sheets/audit-log", headers=as_user("other")).json()["logs"]) == 1


def test_admin_clear_only_counts_visible_rows(client, as_user, create_transaction):
    make_history(client, as_user, create_transaction)
    client.delete("/api/sheets/audit-log", headers=as_user("basic"))

    response = client.delete("/api/sheets/audit-log", headers=as_user("admin"))
    assert response.json()["clearedCount"] == 2

    again = client.delete("/api/sheets/audit-log", headers=as_user("admin"))
    assert again.json()["clearedCount"] == 0


def test_delete_record_is_audited(client, as_user, create_transaction, sheets):
    created = create_transaction()
    client.delete(f"/api/sheets/delete/{created['key']}", headers=as_user("admin"))

    rows = sheets.snapshot(settings.AUDIT_LOG_SHEET_NAME)[1:]
    assert [(r[1], r[2], r[3]) for r in rows] == [("Tom Treasurer", "Delete Record", created["key"])]
