"""API endpoint tests."""

from housespend.models.user import User


def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_register_user(client):
    """Test user registration."""
    response = client.post(
        "/api/v1/auth/register",
        json={"email": "newuser@example.com", "password": "password123", "name": "New User"},
    )
    assert response.status_code == 201
    data = response.json()
    assert "access_token" in data
    assert data["user"]["email"] == "newuser@example.com"
    assert data["user"]["is_admin"] is False


def test_register_duplicate_email(client, auth_headers):
    """Test registration with duplicate email fails."""
    response = client.post(
        "/api/v1/auth/register",
        json={"email": auth_headers.email, "password": "password123", "name": "Duplicate"},
    )
    assert response.status_code == 400
    assert "already registered" in response.json()["detail"]


def test_login(client, auth_headers):
    """Test user login."""
    response = client.post(
        "/api/v1/auth/login", json={"email": auth_headers.email, "password": "testpass123"}
    )
    assert response.status_code == 200
    assert "access_token" in response.json()


def test_login_wrong_password(client, auth_headers):
    """Test login with wrong password."""
    response = client.post(
        "/api/v1/auth/login", json={"email": auth_headers.email, "password": "wrongpass"}
    )
    assert response.status_code == 401


def test_get_current_user(client, auth_headers):
    """Test getting current user info."""
    response = client.get("/api/v1/auth/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["email"] == auth_headers.email


def test_unauthorized_access(client):
    """Test that endpoints require authentication."""
    assert client.get("/api/v1/receipts").status_code in (401, 403)
    response = client.get("/api/v1/stock", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_list_categories(client, auth_headers):
    """Test the seeded categories are listed."""
    response = client.get("/api/v1/categories", headers=auth_headers)
    assert response.status_code == 200
    names = [c["name"] for c in response.json()]
    assert len(names) == 10
    assert "Otros" in names
    assert "Lácteos" in names


# --- First-run setup ---


def test_setup_check_initially_incomplete(client):
    response = client.get("/api/v1/setup/check")
    assert response.status_code == 200
    assert response.json() == {"is_setup_complete": False, "has_api_key": False}


def test_setup_admin_and_api_key(client, db):
    response = client.post(
        "/api/v1/setup/admin",
        json={"email": "admin@example.com", "password": "adminpass123", "name": "Admin"},
    )
    assert response.status_code == 201
    token = response.json()["access_token"]
    assert response.json()["user"]["is_admin"] is True

    response = client.put(
        "/api/v1/setup/api-key",
        headers={"Authorization": f"Bearer {token}"},
        json={"api_key": "sk-ant-test"},
    )
    assert response.status_code == 200
    assert response.json() == {"is_setup_complete": True, "has_api_key": True}
    assert client.get("/api/v1/setup/check").json()["has_api_key"] is True


def test_setup_admin_only_once(client):
    payload = {"email": "admin@example.com", "password": "adminpass123"}
    assert client.post("/api/v1/setup/admin", json=payload).status_code == 201

    payload["email"] = "second@example.com"
    assert client.post("/api/v1/setup/admin", json=payload).status_code == 409


def test_api_key_requires_admin(client, auth_headers, db):
    response = client.put(
        "/api/v1/setup/api-key", headers=auth_headers, json={"api_key": "sk-ant-test"}
    )
    assert response.status_code == 403
    assert db.query(User).filter(User.is_admin.is_(True)).count() == 0
