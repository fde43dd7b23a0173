"""
Tests de utilidades comunes: validadores peruanos, política multi-tenant,
envelope de respuestas y middleware.
"""
import pytest
from types import SimpleNamespace
from uuid import uuid4

from app.common.exceptions import ApiError, AuthorizationError
from app.common.responses import envelope, paginate
from app.common.tenancy import TenantScope, parse_company_id
from app.common.validators import (
    validate_ruc, validate_dni, validate_ubigeo, validate_serie, validate_documento_identidad
)
from app.modules.auth.roles import RoleName, has_ability
from app.modules.auth.schemas import AuthContext


def make_context(role=RoleName.COMPANY_ADMIN, company_id=None, abilities=None):
    return AuthContext(
        user_id=uuid4(),
        token_id=uuid4(),
        company_id=company_id,
        role=role,
        user_type="user",
        abilities=abilities or [],
    )


# ===== VALIDADORES =====

class TestPeruValidators:

    def test_valid_ruc(self):
        assert validate_ruc("20100070970")
        assert validate_ruc("20131312955")
        assert validate_ruc("20601030013")
        assert validate_ruc("10426357891")

    def test_invalid_ruc(self):
        assert not validate_ruc("20100070971")  # Dígito verificador incorrecto
        assert not validate_ruc("30100070970")  # Prefijo inválido
        assert not validate_ruc("2010007097")   # Muy corto
        assert not validate_ruc("")
        assert not validate_ruc(None)

    def test_dni(self):
        assert validate_dni("12345678")
        assert not validate_dni("1234567")
        assert not validate_dni("1234567A")

    def test_ubigeo(self):
        assert validate_ubigeo("150101")
        assert not validate_ubigeo("15010")

    def test_serie(self):
        assert validate_serie("F001", "F")
        assert validate_serie("fc01", "F")
        assert not validate_serie("B001", "F")
        assert not validate_serie("F0001", "F")

    def test_documento_identidad_by_type(self):
        assert validate_documento_identidad("6", "20100070970") is None
        assert validate_documento_identidad("1", "12345678") is None
        assert validate_documento_identidad("0", "-") is None
        assert "RUC" in validate_documento_identidad("6", "20100070971")
        assert "DNI" in validate_documento_identidad("1", "123")
        assert validate_documento_identidad("9", "123") is not None


# ===== ABILITIES =====

class TestAbilities:

    def test_exact_ability(self):
        assert has_ability(["invoices.view"], "invoices.view")
        assert not has_ability(["invoices.view"], "invoices.create")

    def test_wildcards(self):
        assert has_ability(["*"], "companies.create")
        assert has_ability(["boletas.*"], "boletas.summaries")
        assert not has_ability(["boletas.*"], "invoices.view")

    def test_empty_abilities_grant_nothing(self):
        assert not has_ability([], "clients.view")
        assert not has_ability(None, "clients.view")


# ===== POLÍTICA MULTI-TENANT =====

class TestTenantScope:

    def test_read_without_filter_is_forced_to_own_company(self):
        company_id = uuid4()
        scope = TenantScope(make_context(company_id=company_id))
        assert scope.resolve_read(None) == company_id
        assert scope.resolve_read(str(company_id)) == company_id

    def test_read_other_company_is_denied(self):
        scope = TenantScope(make_context(company_id=uuid4()))
        with pytest.raises(AuthorizationError) as exc:
            scope.resolve_read(uuid4())
        assert exc.value.status_code == 403
        assert exc.value.error == "tenant_mismatch"

    def test_write_without_company_injects_own_company(self):
        company_id = uuid4()
        scope = TenantScope(make_context(company_id=company_id))
        assert scope.require_write_company(None) == company_id

    def test_write_other_company_is_denied(self):
        scope = TenantScope(make_context(company_id=uuid4()))
        with pytest.raises(AuthorizationError):
            scope.resolve_write(str(uuid4()))

    def test_invalid_company_id(self):
        scope = TenantScope(make_context(company_id=uuid4()))
        with pytest.raises(ApiError) as exc:
            scope.resolve_read("no-es-un-uuid")
        assert exc.value.status_code == 422
        with pytest.raises(ApiError):
            parse_company_id(None)

    def test_user_without_company_is_rejected(self):
        scope = TenantScope(make_context(company_id=None))
        with pytest.raises(AuthorizationError) as exc:
            scope.resolve_read(None)
        assert exc.value.error == "company_not_assigned"

    def test_super_admin_bypasses_checks(self):
        other = uuid4()
        scope = TenantScope(make_context(role=RoleName.SUPER_ADMIN))
        assert scope.resolve_read(None) is None
        assert scope.resolve_read(other) == other
        assert scope.resolve_write(other) == other
        assert scope.authorize_company(other) == other
        record = SimpleNamespace(company_id=other)
        assert scope.authorize(record) is record

    def test_super_admin_write_requires_company(self):
        scope = TenantScope(make_context(role=RoleName.SUPER_ADMIN))
        with pytest.raises(ApiError) as exc:
            scope.require_write_company(None)
        assert exc.value.status_code == 422
        assert exc.value.error == "company_id_required"

    def test_authorize_record(self):
        company_id = uuid4()
        scope = TenantScope(make_context(company_id=company_id))
        own = SimpleNamespace(company_id=company_id)
        assert scope.authorize(own) is own

        with pytest.raises(AuthorizationError):
            scope.authorize(SimpleNamespace(company_id=uuid4()))

    def test_record_without_company_is_server_error(self):
        scope = TenantScope(make_context(company_id=uuid4()))
        with pytest.raises(ApiError) as exc:
            scope.authorize(SimpleNamespace(company_id=None))
        assert exc.value.status_code == 500


# ===== RESPUESTAS =====

class FakeQuery:
    def __init__(self, rows):
        self.rows = rows
        self._offset = 0
        self._limit = None

    def count(self):
        return len(self.rows)

    def offset(self, value):
        self._offset = value
        return self

    def limit(self, value):
        self._limit = value
        return self

    def all(self):
        return self.rows[self._offset:self._offset + self._limit]


class TestResponses:

    def test_envelope_drops_empty_keys(self):
        assert envelope(True, data={"a": 1}) == {"success": True, "data": {"a": 1}}
        assert envelope(False, message="Error", error="code") == {
            "success": False, "message": "Error", "error": "code"
        }

    def test_paginate(self):
        items, meta = paginate(FakeQuery(list(range(32))), page=3, per_page=15)
        assert items == [30, 31]
        assert meta == {"current_page": 3, "last_page": 3, "per_page": 15, "total": 32}

    def test_paginate_empty(self):
        items, meta = paginate(FakeQuery([]), page=1, per_page=15)
        assert items == []
        assert meta["last_page"] == 1


class TestHttpLayer:

    def test_security_headers(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert "X-Process-Time" in response.headers

    def test_validation_errors_use_envelope(self, client):
        response = client.post("/api/v1/auth/login", json={"email": "no-es-email"})
        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Errores de validación"
        assert isinstance(body["error"], list)

    def test_missing_token_is_401(self, client):
        response = client.get("/api/v1/companies/")
        assert response.status_code == 401
        assert response.json()["success"] is False
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_invalid_token_is_401(self, client):
        response = client.get("/api/v1/companies/", headers={"Authorization": "Bearer basura"})
        assert response.status_code == 401
        assert response.json()["error"] == "invalid_token"
