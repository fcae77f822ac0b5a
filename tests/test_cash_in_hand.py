from app.core.config import settings


def test_balance_is_zero_before_sheet_exists(client, as_user, sheets):
    assert settings.CASH_IN_HAND_SHEET_NAME not in sheets.list_sheet_titles()

    response = client.get("/api/sheets/cash-in-hand", headers=as_user("basic"))
    assert response.status_code == 200
    assert response.json() == {"cashInHand": 0, "count": 0}


def test_first_adjustment_creates_sheet(client, as_user, sheets):
    response = client.post("/api/sheets/cash-in-hand", json={"amount": 500, "description": "Opening"},
                           headers=as_user("admin"))
    assert response.status_code == 201
    assert response.json()["cashInHand"] == 500

    rows = sheets.snapshot(settings.CASH_IN_HAND_SHEET_NAME)
    assert rows[0][0] == "Key"
    assert len(rows) == 2


def test_balance_is_sum_of_adjustments(client, as_user):
    headers = as_user("admin")
    for amount in (500, -120.25, 30):
        assert client.post("/api/sheets/cash-in-hand", json={"amount": amount}, headers=headers).status_code == 201

    data = client.get("/api/sheets/cash-in-hand", headers=headers).json()
    assert data["cashInHand"] == 409.75
    assert data["count"] == 3

    history = client.get("/api/sheets/cash-in-hand/history", headers=headers).json()
    assert [r["amount"] for r in history["records"]] == [500, -120.25, 30]
    assert all(r["createdBy"] == "Tom Treasurer" for r in history["records"])


def test_zero_adjustment_rejected(client, as_user):
    response = client.post("/api/sheets/cash-in-hand", json={"amount": 0}, headers=as_user("admin"))
    assert response.status_code == 400


def test_set_balance_appends_difference(client, as_user):
    headers = as_user("admin")
    client.post("/api/sheets/cash-in-hand", json={"amount": 300}, headers=headers)

    response = client.put("/api/sheets/cash-in-hand", json={"targetBalance": 250}, headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["previousBalance"] == 300
    assert data["record"]["amount"] == -50
    assert data["cashInHand"] == 250

    same = client.put("/api/sheets/cash-in-hand", json={"targetBalance": 250}, headers=headers)
    assert same.status_code == 400


def test_basic_user_cannot_adjust_cash(client, as_user):
    response = client.post("/api/sheets/cash-in-hand", json={"amount": 10}, headers=as_user("basic"))
    assert response.status_code == 403
