from fastapi.testclient import TestClient

from backtrack.main import create_app


def test_register_login_and_me(client, register):
    headers, actor_id = register("alice")

    login = client.post("/auth/login", json={"username": "alice", "password": "secret123"})
    assert login.status_code == 200
    body = login.json()
    assert body["actor"]["id"] == actor_id
    assert "password_hash" not in body["actor"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.json()["username"] == "alice"
    assert me.json()["role"] == "member"


def test_register_conflict(client, register):
    register("alice")

    response = client.post("/auth/register", json={"username": "alice", "password": "another1"})

    assert response.status_code == 409


def test_register_validates_payload(client):
    response = client.post("/auth/register", json={"username": "al", "password": "x"})

    assert response.status_code == 400


def test_login_with_wrong_password(client, register):
    register("alice")

    response = client.post("/auth/login", json={"username": "alice", "password": "not-it"})

    assert response.status_code == 401


def test_me_requires_token(client):
    assert client.get("/auth/me").status_code == 401


def test_admin_registration_can_be_disabled(settings, media):
    settings.allow_admin_registration = False
    client = TestClient(create_app(settings, media=media))

    response = client.post("/auth/register", json={"username": "eve", "password": "secret123", "role": "admin"})

    assert response.status_code == 403


def test_missing_jwt_secret_is_fatal(settings, media):
    settings.jwt_secret = ""

    try:
        create_app(settings, media=media)
    except ValueError as e:
        assert "JWT_SECRET" in str(e)
    else:
        raise AssertionError("create_app accepted an empty JWT secret")
