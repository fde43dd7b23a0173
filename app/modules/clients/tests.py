"""
Tests para el módulo de Clientes
"""
from uuid import uuid4

import pytest

from app.modules.auth.roles import RoleName

CLIENTS_URL = "/api/v1/clients/"


def client_payload(**overrides):
    body = {
        "tipo_documento": "1",
        "numero_documento": "12345678",
        "razon_social": "JUAN PEREZ QUISPE",
        "direccion": "Av. Arequipa 1020",
        "ubigeo": "150101",
    }
    body.update(overrides)
    return body


class TestClientCreation:

    def test_create_client(self, client, auth_headers, sample_company):
        response = client.post(CLIENTS_URL, json=client_payload(), headers=auth_headers)
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Cliente creado exitosamente"
        assert body["data"]["company_id"] == str(sample_company.id)
        assert body["data"]["activo"] is True

    @pytest.mark.parametrize("tipo,numero", [
        ("1", "1234567"),        # DNI de 7 dígitos
        ("1", "1234567A"),
        ("6", "20601030014"),    # RUC con dígito verificador incorrecto
        ("6", "12345678"),
    ])
    def test_invalid_document(self, client, auth_headers, tipo, numero):
        response = client.post(CLIENTS_URL, json=client_payload(
            tipo_documento=tipo, numero_documento=numero
        ), headers=auth_headers)
        assert response.status_code == 422

    def test_unknown_document_type(self, client, auth_headers):
        response = client.post(CLIENTS_URL, json=client_payload(tipo_documento="9"), headers=auth_headers)
        assert response.status_code == 422

    def test_client_without_document(self, client, auth_headers):
        response = client.post(CLIENTS_URL, json=client_payload(
            tipo_documento="0", numero_documento="-", razon_social="CLIENTES VARIOS"
        ), headers=auth_headers)
        assert response.status_code == 201

    def test_duplicate_document(self, client, auth_headers, sample_client):
        response = client.post(CLIENTS_URL, json=client_payload(
            tipo_documento="6", numero_documento=sample_client.numero_documento, razon_social="OTRO NOMBRE"
        ), headers=auth_headers)
        assert response.status_code == 409

    def test_same_document_in_other_company(self, client, auth_headers, other_client):
        response = client.post(CLIENTS_URL, json=client_payload(
            tipo_documento="6", numero_documento=other_client.numero_documento, razon_social="CLIENTE"
        ), headers=auth_headers)
        assert response.status_code == 201

    def test_create_for_other_company(self, client, auth_headers, other_company):
        response = client.post(CLIENTS_URL, json=client_payload(
            company_id=str(other_company.id)
        ), headers=auth_headers)
        assert response.status_code == 403
        assert response.json()["error"] == "tenant_mismatch"

    def test_api_client_can_create(self, client, make_user, token_headers, sample_company):
        headers = token_headers(make_user(RoleName.API_CLIENT, sample_company, user_type="api_client"))
        response = client.post(CLIENTS_URL, json=client_payload(), headers=headers)
        assert response.status_code == 201


class TestClientQueries:

    def test_list_is_scoped(self, client, auth_headers, sample_client, other_client):
        response = client.get(CLIENTS_URL, headers=auth_headers)
        items = response.json()["data"]["items"]
        assert [c["id"] for c in items] == [str(sample_client.id)]

    def test_search_filter(self, client, auth_headers, sample_client):
        client.post(CLIENTS_URL, json=client_payload(), headers=auth_headers)

        response = client.get(CLIENTS_URL, params={"search": "perez"}, headers=auth_headers)
        items = response.json()["data"]["items"]
        assert len(items) == 1
        assert items[0]["numero_documento"] == "12345678"

        response = client.get(CLIENTS_URL, params={"tipo_documento": "6"}, headers=auth_headers)
        assert response.json()["data"]["pagination"]["total"] == 1

    def test_search_by_document(self, client, auth_headers, sample_client):
        response = client.get(f"{CLIENTS_URL}search", params={
            "tipo_documento": "6", "numero_documento": sample_client.numero_documento
        }, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["data"]["id"] == str(sample_client.id)

    def test_search_does_not_cross_companies(self, client, auth_headers, other_client):
        response = client.get(f"{CLIENTS_URL}search", params={
            "tipo_documento": "6", "numero_documento": other_client.numero_documento
        }, headers=auth_headers)
        assert response.status_code == 404

    def test_search_ignores_inactive(self, client, auth_headers, sample_client, db_session):
        sample_client.activo = False
        db_session.commit()
        response = client.get(f"{CLIENTS_URL}search", params={
            "tipo_documento": "6", "numero_documento": sample_client.numero_documento
        }, headers=auth_headers)
        assert response.status_code == 404

    def test_by_company(self, client, auth_headers, sample_company, sample_client):
        response = client.get(f"{CLIENTS_URL}company/{sample_company.id}", headers=auth_headers)
        body = response.json()
        assert body["data"]["pagination"]["total"] == 1
        assert body["meta"]["company_name"] == sample_company.razon_social

    def test_by_other_company(self, client, auth_headers, other_company):
        response = client.get(f"{CLIENTS_URL}company/{other_company.id}", headers=auth_headers)
        assert response.status_code == 403

    def test_get_other_company_client(self, client, auth_headers, other_client):
        response = client.get(f"{CLIENTS_URL}{other_client.id}", headers=auth_headers)
        assert response.status_code == 403

    def test_client_not_found(self, client, auth_headers):
        response = client.get(f"{CLIENTS_URL}{uuid4()}", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["message"] == "Cliente no encontrado"


class TestClientUpdates:

    def test_update(self, client, auth_headers, sample_client):
        response = client.put(f"{CLIENTS_URL}{sample_client.id}", json={
            "nombre_comercial": "CORPORATIVO", "telefono": "014445555"
        }, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["data"]["nombre_comercial"] == "CORPORATIVO"

    def test_update_revalidates_document(self, client, auth_headers, sample_client):
        response = client.put(f"{CLIENTS_URL}{sample_client.id}", json={"tipo_documento": "1"}, headers=auth_headers)
        assert response.status_code == 422

    def test_update_to_duplicate_document(self, client, auth_headers, sample_client):
        created = client.post(CLIENTS_URL, json=client_payload(), headers=auth_headers).json()["data"]
        response = client.put(f"{CLIENTS_URL}{created['id']}", json={
            "tipo_documento": "6", "numero_documento": sample_client.numero_documento
        }, headers=auth_headers)
        assert response.status_code == 409

    def test_update_other_company_client(self, client, auth_headers, other_client):
        response = client.put(f"{CLIENTS_URL}{other_client.id}", json={"razon_social": "X"}, headers=auth_headers)
        assert response.status_code == 403

    def test_deactivate_and_activate(self, client, auth_headers, sample_client, db_session):
        response = client.delete(f"{CLIENTS_URL}{sample_client.id}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Cliente desactivado exitosamente"
        db_session.refresh(sample_client)
        assert sample_client.activo is False

        response = client.post(f"{CLIENTS_URL}{sample_client.id}/activate", headers=auth_headers)
        assert response.json()["data"]["activo"] is True

    def test_read_only_cannot_delete(self, client, make_user, token_headers, sample_company, sample_client):
        headers = token_headers(make_user(RoleName.READ_ONLY, sample_company))
        response = client.delete(f"{CLIENTS_URL}{sample_client.id}", headers=headers)
        assert response.status_code == 403
