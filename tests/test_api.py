from tokenauth.api import app
from tokenauth.database import Base


def test_index_lists_endpoints(client):
    resp = client.get("/")
    assert resp.status_code == 200
    endpoints = resp.json()["endpoints"]
    assert "POST /api/register" in endpoints["public"]
    assert "GET /api/profile" in endpoints["protected"]


def test_list_users_requires_token(client, alice):
    resp = client.get("/api/users")
    assert resp.status_code == 401


def test_list_users_omits_digests(client, alice, alice_token):
    client.post(
        "/api/register",
        json={"username": "bob", "email": "bob@example.com", "password": "hunter22"},
    )
    resp = client.get("/api/users", headers={"Authorization": f"Bearer {alice_token}"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["requestedBy"] == "alice"
    assert data["count"] == 2
    assert [u["username"] for u in data["users"]] == ["alice", "bob"]
    assert all("password_hash" not in u for u in data["users"])


def test_decode_demo(client):
    resp = client.get("/api/decode-demo")
    assert resp.status_code == 200
    data = resp.json()
    assert data["fullToken"].count(".") == 2
    assert data["structure"]["header"]["decoded"]["alg"] == "HS256"
    payload = data["structure"]["payload"]["decoded"]
    assert payload["username"] == "demo_user"
    assert payload["exp"] - payload["iat"] == 3600


def test_invalid_json_body_is_bad_request(client):
    resp = client.post(
        "/api/login",
        content="not json",
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400


def test_rate_limit_on_login(client):
    app.state.limiter.reset()
    app.state.limiter.enabled = True
    statuses = [
        client.post("/api/login", json={"username": "zed", "password": "secret1"}).status_code
        for _ in range(6)
    ]
    assert statuses[:5] == [401] * 5
    assert statuses[5] == 429


def test_unknown_endpoint_points_to_index(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.json() == {
        "detail": "Endpoint not found",
        "tip": "Visit / to see available endpoints",
    }


def test_database_failure_is_json_500(client, session_local):
    Base.metadata.drop_all(bind=session_local.kw["bind"])
    resp = client.post("/api/login", json={"username": "alice", "password": "secret1"})
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Database error"}
