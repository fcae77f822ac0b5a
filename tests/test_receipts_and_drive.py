from app.core.config import settings
from app.integrations.google_drive import public_view_url

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def upload(client, headers, transaction_key, name="receipt.png", content=PNG_BYTES, mime="image/png"):
    return client.post(
        "/api/drive/upload",
        files={"file": (name, content, mime)},
        data={"transactionKey": transaction_key, "description": "Bakery receipt"},
        headers=headers,
    )


def test_upload_names_file_and_makes_it_public(client, as_user, create_transaction, drive):
    created = create_transaction()
    response = upload(client, as_user("basic"), created["key"])
    assert response.status_code == 201

    data = response.json()
    assert data["fileName"].startswith(f"{created['key']}_")
    assert data["fileName"].endswith("_receipt.png")
    assert data["fileUrl"] == public_view_url(data["fileId"])
    assert data["fileSize"] == len(PNG_BYTES)
    assert drive.is_public(data["fileId"])


def test_oversized_upload_never_reaches_drive(client, as_user, drive):
    big = b"\x00" * (15 * 1024 * 1024)
    response = upload(client, as_user("basic"), "abc12345", content=big)

    assert response.status_code == 400
    assert "exceeds the maximum limit of 10MB" in response.json()["message"]
    assert drive.count() == 0


def test_disallowed_type_rejected(client, as_user, drive):
    response = upload(client, as_user("basic"), "abc12345", name="notes.txt", content=b"hello", mime="text/plain")
    assert response.status_code == 400
    assert drive.count() == 0


def test_two_uploads_for_same_record_get_distinct_names(client, as_user, create_transaction):
    created = create_transaction()
    headers = as_user("basic")
    first = upload(client, headers, created["key"]).json()
    second = upload(client, headers, created["key"]).json()
    assert first["fileName"] != second["fileName"]

    listed = client.get("/api/drive/list", params={"transactionKey": created["key"]}, headers=headers).json()
    assert [f["fileId"] for f in listed["receipts"]] == [second["fileId"], first["fileId"]]


def test_check_rename_and_delete_file(client, as_user, drive):
    headers = as_user("basic")
    file_id = upload(client, headers, "abc12345").json()["fileId"]

    assert client.get(f"/api/drive/check/{file_id}", headers=headers).status_code == 200

    renamed = client.patch(f"/api/drive/rename/{file_id}", json={"newName": "bakery.png"}, headers=headers)
    assert renamed.status_code == 200
    assert drive.list_files("bakery")[0].id == file_id

    assert client.delete(f"/api/drive/delete/{file_id}", headers=headers).status_code == 200
    assert client.get(f"/api/drive/check/{file_id}", headers=headers).status_code == 404
    assert client.delete(f"/api/drive/delete/{file_id}", headers=headers).status_code == 404


def test_receipt_lifecycle(client, as_user, create_transaction, drive, sheets):
    created = create_transaction()
    headers = as_user("basic")
    uploaded = upload(client, headers, created["key"]).json()

    response = client.post(
        "/api/sheets/receipts/create",
        json={
            "transactionKey": created["key"],
            "fileName": uploaded["fileName"],
            "fileUrl": uploaded["fileUrl"],
            "fileId": uploaded["fileId"],
        },
        headers=headers,
    )
    assert response.status_code == 201
    receipt_key = response.json()["receiptKey"]
    assert response.json()["receipt"]["uploadBy"] == "Mary Member"

    listed = client.get("/api/sheets/receipts/read", params={"transactionKey": created["key"]}, headers=headers)
    assert [r["receiptKey"] for r in listed.json()["receipts"]] == [receipt_key]

    renamed = client.patch(
        "/api/sheets/receipts/update-display-name",
        json={"receiptKey": receipt_key, "displayName": "Bakery"},
        headers=headers,
    )
    assert renamed.json()["receipt"]["displayName"] == "Bakery"

    deleted = client.delete(f"/api/sheets/receipts/{receipt_key}", headers=headers)
    assert deleted.status_code == 200
    assert drive.count() == 0
    assert sheets.snapshot(settings.RECEIPT_SHEET_NAME)[1:] == []


def test_receipt_for_unknown_transaction_is_404(client, as_user):
    response = client.post(
        "/api/sheets/receipts/create",
        json={"transactionKey": "missing1", "fileName": "a.png", "fileUrl": "u", "fileId": "f"},
        headers=as_user("basic"),
    )
    assert response.status_code == 404
