from app.core.security import create_access_token
from app.models.user import UserRole
from app.services.user_service import create_user


def test_register_only_first_user(client, db_session):
    payload = {"email": "first@example.com", "password": "secret123", "name": "First User"}
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201
    assert response.json()["role"] == "Super Admin"

    second = client.post("/api/auth/register", json={**payload, "email": "second@example.com"})
    assert second.status_code == 403


def test_login_returns_usable_token(client, users):
    response = client.post("/api/auth/login", json={"email": "member@example.com", "password": "secret123"})
    assert response.status_code == 200
    data = response.json()
    assert data["user"]["role"] == "Basic User"

    me = client.get("/api/users/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "member@example.com"


def test_login_with_wrong_password(client, users):
    response = client.post("/api/auth/login", json={"email": "member@example.com", "password": "wrong-pass"})
    assert response.status_code == 401


def test_token_endpoint_accepts_form_login(client, users):
    response = client.post("/api/auth/token", data={"username": "treasurer@example.com", "password": "secret123"})
    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"


def test_invalid_token_rejected(client, users):
    response = client.get("/api/users/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_allow_listed_email_is_super_admin(users):
    assert users["super_admin"].role == UserRole.super_admin


def test_only_super_admin_lists_users(client, as_user, users):
    assert client.get("/api/users", headers=as_user("admin")).status_code == 403

    response = client.get("/api/users", headers=as_user("super_admin"))
    assert response.status_code == 200
    assert response.json()["total"] == 4


def test_super_admin_creates_user(client, as_user, users):
    payload = {"email": "new@example.com", "password": "secret123", "name": "New Person", "role": "Admin"}
    response = client.post("/api/users", json=payload, headers=as_user("super_admin"))
    assert response.status_code == 201
    assert response.json()["role"] == "Admin"

    duplicate = client.post("/api/users", json=payload, headers=as_user("super_admin"))
    assert duplicate.status_code == 400


def test_role_assignment_rules(client, as_user, users):
    headers = as_user("super_admin")
    basic_uid = users["basic"].uid

    promoted = client.put(f"/api/users/{basic_uid}/role", json={"role": "Admin"}, headers=headers)
    assert promoted.status_code == 200
    assert promoted.json()["role"] == "Admin"

    own = client.put(f"/api/users/{users['super_admin'].uid}/role", json={"role": "Basic User"}, headers=headers)
    assert own.status_code == 400

    missing = client.put("/api/users/USR-NOPE0000/role", json={"role": "Admin"}, headers=headers)
    assert missing.status_code == 404

    by_admin = client.put(f"/api/users/{users['other'].uid}/role", json={"role": "Admin"}, headers=as_user("admin"))
    assert by_admin.status_code == 403


def test_allow_listed_account_cannot_be_demoted(client, db_session, users):
    # A second super admin acting on the allow-listed one
    acting = create_user(db_session, "deputy@example.com", "secret123", "Deputy", UserRole.super_admin)
    headers = {"Authorization": f"Bearer {create_access_token({'sub': acting.email})}"}
    response = client.put(f"/api/users/{users['super_admin'].uid}/role", json={"role": "Admin"}, headers=headers)
    assert response.status_code == 400


def test_change_password(client, as_user, users):
    headers = as_user("basic")
    bad = client.post("/api/users/me/change-password",
                      json={"old_password": "not-right", "new_password": "newsecret1"}, headers=headers)
    assert bad.status_code == 400

    ok = client.post("/api/users/me/change-password",
                     json={"old_password": "secret123", "new_password": "newsecret1"}, headers=headers)
    assert ok.status_code == 200

    login = client.post("/api/auth/login", json={"email": "member@example.com", "password": "newsecret1"})
    assert login.status_code == 200
