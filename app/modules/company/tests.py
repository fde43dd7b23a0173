"""
Tests para el módulo de Empresas
"""
from app.modules.auth.roles import RoleName
from app.modules.company.models import Company

COMPANIES_URL = "/api/v1/companies/"


class TestCompanyCreation:

    def test_super_admin_creates_company(self, client, super_admin_headers, db_session):
        response = client.post(COMPANIES_URL, json={
            "ruc": "20601030013",
            "razon_social": "NUEVA EMPRESA SAC",
            "ubigeo": "150101",
            "usuario_sol": "MODDATOS",
            "clave_sol": "moddatos",
        }, headers=super_admin_headers)
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["ruc"] == "20601030013"
        assert data["activo"] is True
        assert "clave_sol" not in data
        assert "usuario_sol" not in data

        assert db_session.query(Company).filter(Company.ruc == "20601030013").count() == 1

    def test_company_admin_cannot_create(self, client, auth_headers):
        response = client.post(COMPANIES_URL, json={
            "ruc": "20601030013", "razon_social": "NUEVA EMPRESA SAC"
        }, headers=auth_headers)
        assert response.status_code == 403
        assert response.json()["error"] == "super_admin_required"

    def test_invalid_ruc(self, client, super_admin_headers):
        response = client.post(COMPANIES_URL, json={
            "ruc": "20601030014", "razon_social": "RUC MALO SAC"
        }, headers=super_admin_headers)
        assert response.status_code == 422

    def test_duplicate_ruc(self, client, super_admin_headers, sample_company):
        response = client.post(COMPANIES_URL, json={
            "ruc": sample_company.ruc, "razon_social": "DUPLICADA SAC"
        }, headers=super_admin_headers)
        assert response.status_code == 409


class TestCompanyAccess:

    def test_company_admin_lists_only_own_company(self, client, auth_headers, sample_company, other_company):
        response = client.get(COMPANIES_URL, headers=auth_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert [c["id"] for c in data["items"]] == [str(sample_company.id)]
        assert data["pagination"]["total"] == 1

    def test_super_admin_lists_all(self, client, super_admin_headers, sample_company, other_company):
        response = client.get(COMPANIES_URL, headers=super_admin_headers)
        assert response.json()["data"]["pagination"]["total"] == 2

    def test_get_other_company_is_forbidden(self, client, auth_headers, other_company):
        response = client.get(f"{COMPANIES_URL}{other_company.id}", headers=auth_headers)
        assert response.status_code == 403
        assert response.json()["error"] == "tenant_mismatch"

    def test_query_filter_for_other_company_is_rejected(self, client, auth_headers, other_company):
        response = client.get(COMPANIES_URL, params={"company_id": str(other_company.id)}, headers=auth_headers)
        assert response.status_code == 403

    def test_update_own_company(self, client, auth_headers, sample_company):
        response = client.put(f"{COMPANIES_URL}{sample_company.id}", json={
            "nombre_comercial": "PRINCIPAL"
        }, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["data"]["nombre_comercial"] == "PRINCIPAL"

    def test_company_admin_cannot_reactivate_company(self, client, auth_headers, sample_company, db_session):
        sample_company.activo = False
        db_session.commit()

        response = client.put(f"{COMPANIES_URL}{sample_company.id}", json={"activo": True}, headers=auth_headers)
        assert response.status_code == 403
        assert response.json()["error"] == "super_admin_required"
        db_session.refresh(sample_company)
        assert sample_company.activo is False

    def test_company_admin_cannot_switch_to_production(self, client, auth_headers, sample_company, db_session):
        response = client.put(f"{COMPANIES_URL}{sample_company.id}", json={
            "modo_produccion": True, "nombre_comercial": "PRINCIPAL"
        }, headers=auth_headers)
        assert response.status_code == 403
        db_session.refresh(sample_company)
        assert sample_company.modo_produccion is False
        assert sample_company.nombre_comercial != "PRINCIPAL"

    def test_super_admin_changes_company_state(self, client, super_admin_headers, sample_company):
        response = client.put(f"{COMPANIES_URL}{sample_company.id}", json={
            "activo": False, "modo_produccion": True
        }, headers=super_admin_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["activo"] is False
        assert data["modo_produccion"] is True

    def test_read_only_cannot_update(self, client, make_user, token_headers, sample_company):
        headers = token_headers(make_user(RoleName.READ_ONLY, sample_company))
        response = client.put(f"{COMPANIES_URL}{sample_company.id}", json={
            "nombre_comercial": "X"
        }, headers=headers)
        assert response.status_code == 403
        assert response.json()["error"] == "insufficient_ability"

    def test_user_without_company(self, client, make_user, token_headers):
        headers = token_headers(make_user(RoleName.COMPANY_USER))
        response = client.get(COMPANIES_URL, headers=headers)
        assert response.status_code == 403
        assert response.json()["error"] == "company_not_assigned"
