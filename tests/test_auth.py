from app.core.security import create_access_token, hash_password
from utils import constants as c

from tests.conftest import auth_headers, fetch, run


def test_login_returns_profile_and_token(client, make_user):
    user = make_user(c.ROLE_SALESMAN, email="ali@example.com", password="pass1234")

    response = client.post("/api/users/login", json={"email": "ALI@example.com", "password": "pass1234"})

    assert response.status_code == 200
    data = response.json()
    assert data["_id"] == str(user["_id"])
    assert data["role"] == c.ROLE_SALESMAN
    assert data["token"]
    assert "password" not in data


def test_login_wrong_password(client, make_user):
    make_user(c.ROLE_SALESMAN, email="ali@example.com", password="pass1234")

    response = client.post("/api/users/login", json={"email": "ali@example.com", "password": "nope"})

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid email or password"


def test_login_inactive_user(client, make_user):
    make_user(c.ROLE_SALESMAN, email="off@example.com", password="pass1234", isActive=False)

    response = client.post("/api/users/login", json={"email": "off@example.com", "password": "pass1234"})

    assert response.status_code == 401


def test_missing_token_is_401(client):
    response = client.get("/api/users/profile")
    assert response.status_code == 401
    assert response.json()["error"] == "Access token required"


def test_bad_token_is_403(client):
    response = client.get("/api/users/profile", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 403
    assert response.json()["error"] == "Invalid or expired token"


def test_expired_token_is_403(client, make_user):
    user = make_user(c.ROLE_SALESMAN)
    token = create_access_token(user["_id"], -1)

    response = client.get("/api/users/profile", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 403


def test_deactivated_user_token_is_401(client, db, make_user):
    user = make_user(c.ROLE_SALESMAN)
    run(db[c.USERS].update_one({"_id": user["_id"]}, {"$set": {"isActive": False}}))

    response = client.get("/api/users/profile", headers=auth_headers(user))

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid or inactive user"


def test_profile_hides_password(client, make_user):
    user = make_user(c.ROLE_SHOPKEEPER)

    response = client.get("/api/users/profile", headers=auth_headers(user))

    assert response.status_code == 200
    assert "password" not in response.json()["user"]


def test_role_gate(client, make_user):
    shopkeeper = make_user(c.ROLE_SHOPKEEPER)

    response = client.get("/api/users", headers=auth_headers(shopkeeper))

    assert response.status_code == 403


def test_superadmin_creates_user(client, db, make_user):
    boss = make_user(c.ROLE_SUPERADMIN)
    body = {
        "name": "New Salesman",
        "email": "New.Salesman@Example.com",
        "password": "secret99",
        "role": "salesman",
        "phone": "0300",
        "address": "Depot",
        "commissionRate": 7,
    }

    response = client.post("/api/users", json=body, headers=auth_headers(boss))

    assert response.status_code == 201
    created = fetch(db, c.USERS, {"email": "new.salesman@example.com"})
    assert created["assignedBy"] == boss["_id"]
    assert created["password"] != "secret99"

    duplicate = client.post("/api/users", json=body, headers=auth_headers(boss))
    assert duplicate.status_code == 400
    assert duplicate.json()["error"] == "Email already exists"


def test_admin_only_lists_field_roles(client, make_user):
    admin = make_user(c.ROLE_ADMIN)
    make_user(c.ROLE_SUPERADMIN)
    make_user(c.ROLE_SALESMAN)

    response = client.get("/api/users", headers=auth_headers(admin))

    roles = {u["role"] for u in response.json()["users"]}
    assert roles <= {c.ROLE_SALESMAN, c.ROLE_SHOPKEEPER}


def _insert_admin(db, email="legacy@example.com", password="admin123", role="superadmin"):
    doc = {
        "username": "legacy",
        "email": email,
        "password": hash_password(password),
        "role": role,
        "isActive": True,
    }
    doc["_id"] = run(db[c.ADMINS].insert_one(doc)).inserted_id
    return doc


def test_legacy_admin_login_and_access(client, db):
    admin = _insert_admin(db)

    response = client.post("/api/admin/login", json={"email": "legacy@example.com", "password": "admin123"})

    assert response.status_code == 200
    data = response.json()
    assert data["admin"]["id"] == str(admin["_id"])
    headers = {"Authorization": f"Bearer {data['token']}"}

    # Legacy admins act as superadmins on the user-facing routes
    assert client.get("/api/users", headers=headers).status_code == 200
    assert fetch(db, c.ADMINS, {"_id": admin["_id"]})["lastLogin"] is not None


def test_legacy_admin_login_requires_fields(client):
    response = client.post("/api/admin/login", json={"email": "legacy@example.com"})
    assert response.status_code == 400
    assert response.json()["error"] == "Email and password are required"


def test_legacy_admin_change_password(client, db):
    admin = _insert_admin(db)
    headers = auth_headers(admin)

    wrong = client.put(
        "/api/admin/change-password",
        json={"currentPassword": "bad", "newPassword": "next123"},
        headers=headers,
    )
    assert wrong.status_code == 400

    ok = client.put(
        "/api/admin/change-password",
        json={"currentPassword": "admin123", "newPassword": "next123"},
        headers=headers,
    )
    assert ok.status_code == 200
    login = client.post("/api/admin/login", json={"email": "legacy@example.com", "password": "next123"})
    assert login.status_code == 200
