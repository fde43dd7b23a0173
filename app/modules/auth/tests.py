"""
Tests para el módulo de Autenticación

Cubren:
- Duración del token según el tipo de usuario
- Login: credenciales, cuenta inactiva, bloqueo por intentos fallidos
- Inicialización única del sistema
- Revocación de tokens y administración de usuarios
- Abilities fijadas al emitir el token
"""
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from app.core.config import settings
from app.modules.auth.models import AccessToken, User, Role
from app.modules.auth.roles import RoleName, UserType
from app.modules.auth import service as auth_service
from app.modules.auth.utils import (
    DUMMY_PASSWORD_HASH, token_lifetime, create_access_token, decode_access_token
)

LOGIN_URL = "/api/v1/auth/login"
INIT_URL = "/api/v1/auth/initialize"
ME_URL = "/api/v1/auth/me"


def login(client, email, password="Secreta123"):
    return client.post(LOGIN_URL, json={"email": email, "password": password})


def token_duration(token: str) -> timedelta:
    payload = decode_access_token(token)
    return timedelta(seconds=payload["exp"] - payload["iat"])


# ===== DURACIÓN DE TOKENS =====

class TestTokenLifetime:

    def test_lifetime_by_user_type(self):
        assert token_lifetime(UserType.SYSTEM.value) == timedelta(days=7)
        assert token_lifetime(UserType.API_CLIENT.value) == timedelta(hours=24)
        assert token_lifetime(UserType.USER.value) == timedelta(hours=12)

    def test_unknown_user_type_uses_default(self):
        assert token_lifetime("legacy") == timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        assert token_lifetime(None) == timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    @pytest.mark.parametrize("user_type,expected", [
        (UserType.SYSTEM.value, timedelta(days=7)),
        (UserType.API_CLIENT.value, timedelta(hours=24)),
        (UserType.USER.value, timedelta(hours=12)),
    ])
    def test_login_token_expiry(self, client, make_user, sample_company, user_type, expected):
        user = make_user(RoleName.COMPANY_USER, sample_company, user_type=user_type)
        response = login(client, user.email)
        assert response.status_code == 200
        duration = token_duration(response.json()["data"]["access_token"])
        assert abs(duration - expected) <= timedelta(seconds=2)


# ===== LOGIN =====

class TestLogin:

    def test_login_success(self, client, company_admin, db_session):
        response = login(client, company_admin.email)
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert data["token_type"] == "Bearer"
        assert data["user"]["email"] == company_admin.email
        assert data["user"]["company_id"] == str(company_admin.company_id)
        assert "invoices.create" in data["user"]["permissions"]

        db_session.refresh(company_admin)
        assert company_admin.last_login_at is not None
        assert company_admin.last_login_ip is not None

    def test_token_abilities_come_from_role(self, client, make_user, sample_company):
        user = make_user(RoleName.READ_ONLY, sample_company)
        token = login(client, user.email).json()["data"]["access_token"]
        abilities = decode_access_token(token)["abilities"]
        assert "invoices.view" in abilities
        assert "invoices.create" not in abilities

    def test_wrong_password(self, client, company_admin, db_session):
        response = login(client, company_admin.email, "Incorrecta1")
        assert response.status_code == 401
        assert response.json()["error"] == "invalid_credentials"

        db_session.refresh(company_admin)
        assert company_admin.failed_login_attempts == 1

    def test_unknown_email_is_indistinguishable(self, client, company_admin):
        unknown = login(client, "nadie@example.com")
        wrong = login(client, company_admin.email, "Incorrecta1")
        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json() == wrong.json()

    def test_unknown_email_still_verifies_a_hash(self, client, monkeypatch):
        checked = []

        def recording_verify(plain, hashed):
            checked.append(hashed)
            return False

        monkeypatch.setattr(auth_service, "verify_password", recording_verify)
        response = login(client, "nadie@example.com")
        assert response.status_code == 401
        assert checked == [DUMMY_PASSWORD_HASH]

    def test_inactive_user_with_correct_password(self, client, make_user, sample_company):
        user = make_user(RoleName.COMPANY_USER, sample_company, active=False)
        response = login(client, user.email)
        assert response.status_code == 401
        assert response.json()["error"] == "user_inactive"
        assert "data" not in response.json()

    def test_lockout_after_repeated_failures(self, client, company_admin, db_session):
        for _ in range(settings.MAX_LOGIN_ATTEMPTS):
            assert login(client, company_admin.email, "Incorrecta1").status_code == 401

        response = login(client, company_admin.email)
        assert response.status_code == 401
        assert response.json()["error"] == "user_locked"

        db_session.refresh(company_admin)
        assert company_admin.locked_until is not None

    def test_successful_login_resets_failed_attempts(self, client, company_admin, db_session):
        login(client, company_admin.email, "Incorrecta1")
        assert login(client, company_admin.email).status_code == 200
        db_session.refresh(company_admin)
        assert company_admin.failed_login_attempts == 0

    def test_user_without_role_gets_no_abilities(self, client, make_user, sample_company):
        user = make_user(None, sample_company)
        response = login(client, user.email)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user"]["permissions"] == []

        headers = {"Authorization": f"Bearer {data['access_token']}"}
        denied = client.get("/api/v1/branches/", headers=headers)
        assert denied.status_code == 403
        assert denied.json()["error"] == "insufficient_ability"


# ===== TOKENS =====

class TestTokens:

    def test_abilities_fixed_at_issuance(self, client, auth_headers, db_session, roles):
        role = db_session.query(Role).filter(Role.name == RoleName.COMPANY_ADMIN.value).one()
        role.permissions = []
        db_session.commit()

        response = client.get("/api/v1/branches/", headers=auth_headers)
        assert response.status_code == 200

    def test_expired_token(self, client, company_admin, db_session):
        expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
        record = AccessToken(user_id=company_admin.id, name="OLD", abilities=["*"], expires_at=expires_at)
        db_session.add(record)
        db_session.commit()
        token = create_access_token(record.id, company_admin.id, ["*"], expires_at)

        response = client.get(ME_URL, headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["error"] == "token_expired"

    def test_token_without_record_is_rejected(self, client, company_admin):
        token = create_access_token(
            uuid4(), company_admin.id, ["*"], datetime.now(timezone.utc) + timedelta(hours=1)
        )
        response = client.get(ME_URL, headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_logout_revokes_token(self, client, auth_headers):
        assert client.get(ME_URL, headers=auth_headers).status_code == 200
        assert client.post("/api/v1/auth/logout", headers=auth_headers).status_code == 200
        assert client.get(ME_URL, headers=auth_headers).status_code == 401

    def test_me(self, client, auth_headers, company_admin, sample_company):
        response = client.get(ME_URL, headers=auth_headers)
        data = response.json()["data"]
        assert data["email"] == company_admin.email
        assert data["company"] == sample_company.razon_social
        assert data["role"] == "Administrador de Empresa"
        assert "clients.create" in data["abilities"]


# ===== INICIALIZACIÓN =====

class TestInitialize:

    payload = {"name": "Administrador", "email": "root@sistema.pe", "password": "Segura123"}

    def test_initialize_once(self, client, db_session):
        response = client.post(INIT_URL, json=self.payload)
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["user"]["email"] == "root@sistema.pe"
        assert decode_access_token(data["access_token"])["abilities"] == ["*"]
        assert token_duration(data["access_token"]) >= timedelta(days=7) - timedelta(seconds=2)

        user = db_session.query(User).filter(User.email == "root@sistema.pe").one()
        assert user.is_super_admin
        assert user.company_id is None
        assert user.user_type == UserType.SYSTEM.value

        second = client.post(INIT_URL, json={**self.payload, "email": "otro@sistema.pe"})
        assert second.status_code == 400
        assert second.json()["message"] == "Sistema ya inicializado"
        assert db_session.query(User).count() == 1

    def test_initialize_rejected_when_users_exist(self, client, company_admin):
        response = client.post(INIT_URL, json=self.payload)
        assert response.status_code == 400

    @pytest.mark.parametrize("password", ["corta1A", "sinmayusculas1", "SINMINUSCULAS1", "SinNumeros"])
    def test_weak_password(self, client, password):
        response = client.post(INIT_URL, json={**self.payload, "password": password})
        assert response.status_code == 422

    def test_init_token_grants_super_admin_access(self, client):
        token = client.post(INIT_URL, json=self.payload).json()["data"]["access_token"]
        response = client.post(
            "/api/v1/companies/",
            json={"ruc": "20100070970", "razon_social": "EMPRESA INICIAL SAC"},
            headers={"Authorization": f"Bearer {token}"},
        )
        assert response.status_code == 201

    def test_system_info(self, client):
        info = client.get("/api/v1/system/info").json()["data"]
        assert info["system_initialized"] is False
        assert info["database_connected"] is True

        client.post(INIT_URL, json=self.payload)
        info = client.get("/api/v1/system/info").json()["data"]
        assert info["system_initialized"] is True
        assert info["user_count"] == 1
        assert info["roles_count"] == len(RoleName)


# ===== ADMINISTRACIÓN DE USUARIOS =====

class TestUserAdministration:

    def test_create_user(self, client, super_admin_headers, sample_company):
        response = client.post("/api/v1/auth/users", json={
            "name": "Cajero",
            "email": "cajero@principal.pe",
            "password": "Cajero123",
            "role_name": "company_user",
            "company_id": str(sample_company.id),
            "user_type": "user",
        }, headers=super_admin_headers)
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["company_id"] == str(sample_company.id)
        assert data["role"]["name"] == "company_user"

        assert login(client, "cajero@principal.pe", "Cajero123").status_code == 200

    def test_create_user_requires_company_for_non_super_admin(self, client, super_admin_headers):
        response = client.post("/api/v1/auth/users", json={
            "name": "Sin empresa",
            "email": "sinempresa@example.com",
            "password": "Cajero123",
            "role_name": "company_user",
            "user_type": "user",
        }, headers=super_admin_headers)
        assert response.status_code == 422

    def test_create_user_duplicate_email(self, client, super_admin_headers, company_admin, sample_company):
        response = client.post("/api/v1/auth/users", json={
            "name": "Duplicado",
            "email": company_admin.email,
            "password": "Cajero123",
            "role_name": "company_user",
            "company_id": str(sample_company.id),
            "user_type": "user",
        }, headers=super_admin_headers)
        assert response.status_code == 409

    def test_only_super_admin_manages_users(self, client, auth_headers, company_admin):
        response = client.post(f"/api/v1/auth/users/{company_admin.id}/deactivate", headers=auth_headers)
        assert response.status_code == 403
        assert response.json()["error"] == "super_admin_required"

    def test_deactivate_revokes_tokens(self, client, super_admin_headers, company_admin, auth_headers):
        assert client.get(ME_URL, headers=auth_headers).status_code == 200

        response = client.post(f"/api/v1/auth/users/{company_admin.id}/deactivate", headers=super_admin_headers)
        assert response.status_code == 200
        assert response.json()["data"]["active"] is False

        assert client.get(ME_URL, headers=auth_headers).status_code == 401
        assert login(client, company_admin.email).json()["error"] == "user_inactive"

    def test_super_admin_cannot_be_deactivated(self, client, super_admin, super_admin_headers):
        response = client.post(f"/api/v1/auth/users/{super_admin.id}/deactivate", headers=super_admin_headers)
        assert response.status_code == 403

    def test_activate_clears_lockout(self, client, super_admin_headers, company_admin):
        for _ in range(settings.MAX_LOGIN_ATTEMPTS):
            login(client, company_admin.email, "Incorrecta1")
        assert login(client, company_admin.email).json()["error"] == "user_locked"

        response = client.post(f"/api/v1/auth/users/{company_admin.id}/activate", headers=super_admin_headers)
        assert response.status_code == 200
        assert login(client, company_admin.email).status_code == 200

    def test_revoke_tokens(self, client, super_admin_headers, company_admin, token_headers):
        first = token_headers(company_admin)
        token_headers(company_admin)

        response = client.post(f"/api/v1/auth/users/{company_admin.id}/revoke-tokens", headers=super_admin_headers)
        assert response.status_code == 200
        assert response.json()["data"]["revoked_tokens"] == 2
        assert client.get(ME_URL, headers=first).status_code == 401

    def test_unknown_user(self, client, super_admin_headers):
        response = client.post(f"/api/v1/auth/users/{uuid4()}/activate", headers=super_admin_headers)
        assert response.status_code == 404
