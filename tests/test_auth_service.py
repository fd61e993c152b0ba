from datetime import timedelta
from fastapi import status
from app.services import auth as auth_service

def test_password_hashing():
    """Test that password hashing and verification works correctly."""
    password = "MySecurePassword123!"
    hashed = auth_service.get_password_hash(password)
    assert hashed != password
    assert auth_service.verify_password(password, hashed)
    assert not auth_service.verify_password("WrongPassword", hashed)

def test_access_token_roundtrip():
    token = auth_service.create_access_token(data={"sub": "someone@acme.com", "role": "admin"})
    payload = auth_service.decode_access_token(token)
    assert payload["sub"] == "someone@acme.com"
    assert payload["type"] == "access"

def test_expired_token_is_flagged():
    token = auth_service.create_access_token(data={"sub": "someone@acme.com"}, expires_delta=timedelta(seconds=-5))
    assert auth_service.decode_access_token(token) == {"error": "TOKEN_EXPIRED"}

def test_tampered_token_is_rejected():
    token = auth_service.create_access_token(data={"sub": "someone@acme.com"})
    assert auth_service.decode_access_token(token + "x") is None

def test_login_success(client, admin_user):
    response = client.post("/api/auth/login", json={"email": admin_user.email, "password": "Password123!"})
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["user"]["role"] == "admin"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == admin_user.email

def test_login_invalid_credentials(client, admin_user):
    response = client.post("/api/auth/login", json={"email": admin_user.email, "password": "wrong"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

def test_create_admin_user_is_single_use(db_session):
    from app.core.init_system import create_admin_user
    from app.models.user import UserRole

    admin = create_admin_user(db_session, "root@acme.com", "S3cret!pass")
    assert admin.role == UserRole.ADMIN
    assert auth_service.verify_password("S3cret!pass", admin.hashed_password)
    assert create_admin_user(db_session, "root@acme.com", "other") is None
