"""User API tests."""

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

NEW_USER = {"name": "Al", "email": "a@b.com", "password": "secret1"}


def register(client, **overrides):
    return client.post("/api/users", json={**NEW_USER, **overrides})


def test_register_user(client, db):
    """Registration stores a hash and never returns the password."""
    response = register(client)
    assert response.status_code == 200
    data = response.json()["data"]
    assert "password" not in data
    assert data["email"] == "a@b.com"
    assert data["role"] == "user"
    assert data["cart"] == []

    stored = db["users"].find_one({"email": "a@b.com"})
    assert stored["password"] != "secret1"


def test_register_ignores_role(client):
    """Clients cannot register themselves as admins."""
    response = register(client, role="admin")
    assert response.json()["data"]["role"] == "user"


def test_register_duplicate_email(client):
    register(client)
    response = register(client, name="Other")
    assert response.status_code == 400
    assert response.json()["data"] == "email already registered"


def test_register_duplicate_blocked_by_index(client, db):
    """The unique index rejects duplicates even when the pre-check is bypassed."""
    register(client)
    with pytest.raises(DuplicateKeyError):
        db["users"].insert_one({"name": "Dup", "email": "a@b.com", "password": "x"})


def test_register_missing_fields(client):
    response = client.post("/api/users", json={"name": "Al", "email": "a@b.com"})
    assert response.status_code == 400
    assert response.json()["status"] == "ERR"


def test_register_validation_errors(client):
    response = register(client, name="A", email="nope", password="123")
    assert response.status_code == 400
    fields = {error["field"] for error in response.json()["data"]}
    assert fields == {"name", "email", "password"}


def test_login(client):
    register(client)
    response = client.post("/api/users/login", json={"email": "a@b.com", "password": "secret1"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["token"]
    assert data["email"] == "a@b.com"
    assert "password" not in data


def test_login_token_is_accepted(client):
    register(client)
    token = client.post(
        "/api/users/login", json={"email": "a@b.com", "password": "secret1"}
    ).json()["data"]["token"]

    response = client.get("/api/users/protected", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200


def test_login_wrong_password(client):
    register(client)
    response = client.post("/api/users/login", json={"email": "a@b.com", "password": "wrong1"})
    assert response.status_code == 401
    assert response.json()["status"] == "ERR"


def test_login_unknown_email(client):
    response = client.post(
        "/api/users/login", json={"email": "ghost@example.com", "password": "secret1"}
    )
    assert response.status_code == 401


def test_login_missing_password(client):
    response = client.post("/api/users/login", json={"email": "a@b.com", "password": ""})
    assert response.status_code == 400


def test_list_users_strips_passwords(client):
    register(client)
    register(client, email="b@b.com")

    response = client.get("/api/users")
    assert response.status_code == 200
    users = response.json()["data"]
    assert len(users) == 2
    assert all("password" not in user for user in users)


def test_paginated_users(client, make_user):
    """Pages default to the configured size."""
    for i in range(3):
        make_user(f"User {i}", f"user{i}@example.com", "secret1")

    response = client.get("/api/users/paginated")
    assert response.status_code == 200
    page = response.json()["data"]
    assert page["limit"] == 2
    assert page["total_docs"] == 3
    assert len(page["docs"]) == 2
    assert page["has_next_page"] is True
    assert page["has_prev_page"] is False

    response = client.get("/api/users/paginated", params={"offset": 2})
    page = response.json()["data"]
    assert [user["email"] for user in page["docs"]] == ["user2@example.com"]
    assert page["has_next_page"] is False
    assert page["has_prev_page"] is True


def test_paginated_users_bad_offset(client):
    response = client.get("/api/users/paginated", params={"offset": -1})
    assert response.status_code == 400
    assert response.json()["status"] == "ERR"


def test_get_user(client):
    user_id = register(client).json()["data"]["id"]
    response = client.get(f"/api/users/one/{user_id}")
    assert response.status_code == 200
    assert "password" not in response.json()["data"]


def test_get_user_invalid_id(client):
    response = client.get("/api/users/one/not-an-id")
    assert response.status_code == 400


def test_get_user_not_found(client):
    response = client.get(f"/api/users/one/{ObjectId()}")
    assert response.status_code == 404


def test_protected(client, user_headers):
    response = client.get("/api/users/protected", headers=user_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "OK"


def test_protected_requires_token(client):
    response = client.get("/api/users/protected")
    assert response.status_code == 401


def test_protected_admin(client, admin_headers, user_headers):
    assert client.get("/api/users/protected_adm", headers=admin_headers).status_code == 200
    assert client.get("/api/users/protected_adm", headers=user_headers).status_code == 403


def test_update_user(client, admin_headers):
    user_id = register(client).json()["data"]["id"]
    response = client.put(
        f"/api/users/{user_id}",
        headers=admin_headers,
        json={"role": "admin", "cart": ["card-1"], "password": "hacked1"},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["role"] == "admin"
    assert data["cart"] == ["card-1"]

    # The password was filtered out of the update
    login = client.post("/api/users/login", json={"email": "a@b.com", "password": "secret1"})
    assert login.status_code == 200


def test_update_user_duplicate_email(client, admin_headers):
    register(client)
    user_id = register(client, email="b@b.com").json()["data"]["id"]
    response = client.put(f"/api/users/{user_id}", headers=admin_headers, json={"email": "a@b.com"})
    assert response.status_code == 400


def test_update_user_requires_admin(client, user_headers):
    user_id = register(client).json()["data"]["id"]
    response = client.put(f"/api/users/{user_id}", headers=user_headers, json={"name": "Bob"})
    assert response.status_code == 403


def test_delete_user(client, admin_headers):
    user_id = register(client).json()["data"]["id"]

    response = client.delete(f"/api/users/{user_id}", headers=admin_headers)
    assert response.status_code == 200
    assert "password" not in response.json()["data"]

    assert client.get(f"/api/users/one/{user_id}").status_code == 404


def test_delete_user_not_found(client, admin_headers):
    response = client.delete(f"/api/users/{ObjectId()}", headers=admin_headers)
    assert response.status_code == 404


def test_register_trailing_slash(client):
    """The slash form of the collection path is served directly."""
    response = client.post("/api/users/", json=NEW_USER, follow_redirects=False)
    assert response.status_code == 200
    assert client.get("/api/users/", follow_redirects=False).status_code == 200


@pytest.mark.parametrize(
    "update",
    [
        {"avatar": {"url": "x.png"}},
        {"cart": "abc"},
        {"name": None},
        {"role": "superuser"},
        {"email": "not-an-email"},
    ],
)
def test_update_user_rejects_bad_types(client, admin_headers, db, update):
    """Badly typed values never reach the database, so reads keep working."""
    user_id = register(client).json()["data"]["id"]

    response = client.put(f"/api/users/{user_id}", headers=admin_headers, json=update)
    assert response.status_code == 400
    assert response.json()["status"] == "ERR"

    stored = db["users"].find_one({"_id": ObjectId(user_id)})
    assert stored["name"] == "Al"
    assert stored["cart"] == []
    assert stored["role"] == "user"
    assert client.get("/api/users").status_code == 200
    assert client.get("/api/users/paginated").status_code == 200
    assert client.get(f"/api/users/one/{user_id}").status_code == 200


def test_update_user_sets_avatar(client, admin_headers):
    user_id = register(client).json()["data"]["id"]
    response = client.put(
        f"/api/users/{user_id}", headers=admin_headers, json={"avatar": "me.png", "name": "Bob"}
    )
    assert response.status_code == 200
    assert response.json()["data"]["avatar"] == "me.png"
    assert response.json()["data"]["name"] == "Bob"
