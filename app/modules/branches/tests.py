"""
Tests para el módulo de Sucursales

Verifican el aislamiento por empresa en sus dos capas: la verificación
previa del company_id del request y la autorización de cada registro.
"""
from uuid import uuid4

from app.modules.auth.roles import RoleName
from app.modules.branches.models import Branch

BRANCHES_URL = "/api/v1/branches/"


class TestBranchCreation:

    def test_company_id_is_injected(self, client, auth_headers, sample_company):
        response = client.post(BRANCHES_URL, json={
            "codigo": "0001", "nombre": "Sucursal Miraflores"
        }, headers=auth_headers)
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["company_id"] == str(sample_company.id)
        assert data["activo"] is True

    def test_create_for_other_company_is_rejected(self, client, auth_headers, other_company, db_session):
        response = client.post(BRANCHES_URL, json={
            "company_id": str(other_company.id), "codigo": "0001", "nombre": "Intrusa"
        }, headers=auth_headers)
        assert response.status_code == 403
        assert response.json()["error"] == "tenant_mismatch"
        assert db_session.query(Branch).count() == 0

    def test_super_admin_must_send_company(self, client, super_admin_headers):
        response = client.post(BRANCHES_URL, json={"codigo": "0001", "nombre": "Sin empresa"}, headers=super_admin_headers)
        assert response.status_code == 422
        assert response.json()["error"] == "company_id_required"

    def test_super_admin_creates_for_any_company(self, client, super_admin_headers, other_company):
        response = client.post(BRANCHES_URL, json={
            "company_id": str(other_company.id), "codigo": "0001", "nombre": "Arequipa"
        }, headers=super_admin_headers)
        assert response.status_code == 201
        assert response.json()["data"]["company_id"] == str(other_company.id)

    def test_duplicate_codigo(self, client, auth_headers, sample_branch):
        response = client.post(BRANCHES_URL, json={
            "codigo": sample_branch.codigo, "nombre": "Duplicada"
        }, headers=auth_headers)
        assert response.status_code == 409

    def test_same_codigo_in_other_company_is_allowed(self, client, auth_headers, other_branch):
        response = client.post(BRANCHES_URL, json={
            "codigo": other_branch.codigo, "nombre": "Principal"
        }, headers=auth_headers)
        assert response.status_code == 201

    def test_invalid_codigo(self, client, auth_headers):
        response = client.post(BRANCHES_URL, json={"codigo": "01", "nombre": "Mala"}, headers=auth_headers)
        assert response.status_code == 422


class TestBranchScope:

    def test_list_only_own_branches(self, client, auth_headers, sample_branch, other_branch):
        response = client.get(BRANCHES_URL, headers=auth_headers)
        items = response.json()["data"]["items"]
        assert [b["id"] for b in items] == [str(sample_branch.id)]

    def test_list_with_other_company_filter(self, client, auth_headers, other_company):
        response = client.get(BRANCHES_URL, params={"company_id": str(other_company.id)}, headers=auth_headers)
        assert response.status_code == 403

    def test_super_admin_lists_all(self, client, super_admin_headers, sample_branch, other_branch):
        response = client.get(BRANCHES_URL, headers=super_admin_headers)
        assert response.json()["data"]["pagination"]["total"] == 2

    def test_get_other_company_branch(self, client, auth_headers, other_branch):
        response = client.get(f"{BRANCHES_URL}{other_branch.id}", headers=auth_headers)
        assert response.status_code == 403

    def test_update_other_company_branch(self, client, auth_headers, other_branch, db_session):
        response = client.put(f"{BRANCHES_URL}{other_branch.id}", json={"nombre": "Hackeada"}, headers=auth_headers)
        assert response.status_code == 403
        db_session.refresh(other_branch)
        assert other_branch.nombre != "Hackeada"

    def test_move_branch_to_other_company(self, client, auth_headers, sample_branch, other_company):
        response = client.put(f"{BRANCHES_URL}{sample_branch.id}", json={
            "company_id": str(other_company.id)
        }, headers=auth_headers)
        assert response.status_code == 403

    def test_branch_not_found(self, client, auth_headers):
        response = client.get(f"{BRANCHES_URL}{uuid4()}", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["message"] == "Sucursal no encontrada"

    def test_by_company(self, client, auth_headers, sample_company, sample_branch):
        response = client.get(f"{BRANCHES_URL}company/{sample_company.id}", headers=auth_headers)
        assert response.status_code == 200
        body = response.json()
        assert len(body["data"]) == 1
        assert body["meta"]["company_name"] == sample_company.razon_social
        assert body["meta"]["total_branches"] == 1
        assert body["meta"]["active_branches"] == 1

    def test_by_other_company(self, client, auth_headers, other_company):
        response = client.get(f"{BRANCHES_URL}company/{other_company.id}", headers=auth_headers)
        assert response.status_code == 403


class TestBranchLifecycle:

    def test_update(self, client, auth_headers, sample_branch):
        response = client.put(f"{BRANCHES_URL}{sample_branch.id}", json={
            "nombre": "Sede Central", "ubigeo": "150122"
        }, headers=auth_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["nombre"] == "Sede Central"
        assert data["ubigeo"] == "150122"

    def test_deactivate_and_activate(self, client, auth_headers, sample_branch, db_session):
        response = client.delete(f"{BRANCHES_URL}{sample_branch.id}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Sucursal desactivada exitosamente"
        db_session.refresh(sample_branch)
        assert sample_branch.activo is False

        active = client.get(BRANCHES_URL, params={"activo": True}, headers=auth_headers)
        assert active.json()["data"]["items"] == []

        response = client.post(f"{BRANCHES_URL}{sample_branch.id}/activate", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["data"]["activo"] is True

    def test_company_user_cannot_delete(self, client, make_user, token_headers, sample_company, sample_branch):
        headers = token_headers(make_user(RoleName.COMPANY_USER, sample_company))
        response = client.delete(f"{BRANCHES_URL}{sample_branch.id}", headers=headers)
        assert response.status_code == 403
        assert response.json()["error"] == "insufficient_ability"
