"""
Tests para comprobantes electrónicos: facturas, boletas, notas de crédito
y resúmenes diarios.

El servicio SUNAT y MinIO se reemplazan por ``FakeSunatGateway`` e
``InMemoryStorage`` (ver conftest.py).
"""
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from app.modules.auth.roles import RoleName
from app.modules.documents.models import Invoice, Boleta, DailySummary, EstadoSunat
from app.modules.sunat.client import HTTP_ERROR, SubmissionResult, SunatError, SunatGatewayError

INVOICES_URL = "/api/v1/invoices/"
BOLETAS_URL = "/api/v1/boletas/"
CREDIT_NOTES_URL = "/api/v1/credit-notes/"

RUC = "20100070970"


def create_document(client, url, headers, payload):
    response = client.post(url, json=payload, headers=headers)
    assert response.status_code == 201, response.json()
    return response.json()["data"]


def business_error(code="2800", message="El dato ingresado en el tipo de documento de identidad del receptor no esta permitido"):
    return SubmissionResult(success=False, error=SunatError(code, message), cdr_code=code)


def transport_error():
    return SubmissionResult(success=False, error=SunatError(HTTP_ERROR, "No se pudo comunicar con el servicio SUNAT: timeout"))


def uuid_of(document: dict) -> UUID:
    return UUID(document["id"])


@pytest.fixture
def invoice(client, auth_headers, document_payload):
    return create_document(client, INVOICES_URL, auth_headers, document_payload("F001"))


# ===== CREACIÓN =====

class TestDocumentCreation:

    def test_create_invoice(self, client, auth_headers, document_payload, sample_company):
        response = client.post(INVOICES_URL, json=document_payload("f001"), headers=auth_headers)
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Factura creada correctamente"
        data = body["data"]
        assert data["company_id"] == str(sample_company.id)
        assert data["tipo_documento"] == "01"
        assert data["serie"] == "F001"
        assert data["correlativo"] == 1
        assert data["numero_completo"] == "F001-1"
        assert data["estado_sunat"] == "PENDIENTE"
        assert Decimal(data["mto_imp_venta"]) == Decimal("118")
        assert data["has_xml"] is False

    def test_correlativo_per_company_and_serie(self, client, auth_headers, other_headers,
                                               document_payload, other_branch, other_client):
        first = create_document(client, INVOICES_URL, auth_headers, document_payload("F001"))
        second = create_document(client, INVOICES_URL, auth_headers, document_payload("F001"))
        other_serie = create_document(client, INVOICES_URL, auth_headers, document_payload("F002"))
        other_company = create_document(client, INVOICES_URL, other_headers, document_payload(
            "F001", branch_id=str(other_branch.id), client_id=str(other_client.id)
        ))

        assert (first["correlativo"], second["correlativo"]) == (1, 2)
        assert other_serie["correlativo"] == 1
        assert other_company["correlativo"] == 1

    @pytest.mark.parametrize("url,serie", [
        (INVOICES_URL, "B001"),
        (INVOICES_URL, "F01"),
        (BOLETAS_URL, "F001"),
    ])
    def test_serie_prefix(self, client, auth_headers, document_payload, url, serie):
        response = client.post(url, json=document_payload(serie), headers=auth_headers)
        assert response.status_code == 422

    def test_requires_detalles(self, client, auth_headers, document_payload):
        response = client.post(INVOICES_URL, json=document_payload(detalles=[]), headers=auth_headers)
        assert response.status_code == 422

    def test_branch_of_other_company(self, client, auth_headers, document_payload, other_branch):
        response = client.post(INVOICES_URL, json=document_payload(branch_id=str(other_branch.id)), headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["message"] == "La sucursal no existe o no pertenece a la empresa"

    def test_inactive_branch(self, client, auth_headers, document_payload, sample_branch, db_session):
        sample_branch.activo = False
        db_session.commit()
        response = client.post(INVOICES_URL, json=document_payload(), headers=auth_headers)
        assert response.status_code == 404

    def test_client_of_other_company(self, client, auth_headers, document_payload, other_client):
        response = client.post(INVOICES_URL, json=document_payload(client_id=str(other_client.id)), headers=auth_headers)
        assert response.status_code == 404

    def test_create_for_other_company(self, client, auth_headers, document_payload, other_company, db_session):
        response = client.post(INVOICES_URL, json=document_payload(company_id=str(other_company.id)), headers=auth_headers)
        assert response.status_code == 403
        assert db_session.query(Invoice).count() == 0

    def test_read_only_cannot_create(self, client, make_user, token_headers, sample_company, document_payload):
        headers = token_headers(make_user(RoleName.READ_ONLY, sample_company))
        response = client.post(INVOICES_URL, json=document_payload(), headers=headers)
        assert response.status_code == 403
        assert response.json()["error"] == "insufficient_ability"

    def test_create_boleta(self, client, auth_headers, document_payload):
        data = create_document(client, BOLETAS_URL, auth_headers, document_payload("B001"))
        assert data["tipo_documento"] == "03"
        assert data["daily_summary_id"] is None


# ===== CONSULTAS =====

class TestDocumentQueries:

    def test_list_is_scoped(self, client, auth_headers, other_headers, invoice):
        own = client.get(INVOICES_URL, headers=auth_headers).json()["data"]
        assert [i["id"] for i in own["items"]] == [invoice["id"]]

        other = client.get(INVOICES_URL, headers=other_headers).json()["data"]
        assert other["items"] == []

    def test_list_filters(self, client, auth_headers, invoice):
        response = client.get(INVOICES_URL, params={"estado_sunat": "ACEPTADO"}, headers=auth_headers)
        assert response.json()["data"]["pagination"]["total"] == 0

        response = client.get(INVOICES_URL, params={
            "estado_sunat": "PENDIENTE", "fecha_desde": date.today().isoformat()
        }, headers=auth_headers)
        assert response.json()["data"]["pagination"]["total"] == 1

    def test_get_other_company_invoice(self, client, other_headers, invoice):
        response = client.get(f"{INVOICES_URL}{invoice['id']}", headers=other_headers)
        assert response.status_code == 403
        assert response.json()["error"] == "tenant_mismatch"

    def test_super_admin_reads_any_company(self, client, super_admin_headers, invoice):
        response = client.get(f"{INVOICES_URL}{invoice['id']}", headers=super_admin_headers)
        assert response.status_code == 200

    def test_not_found(self, client, auth_headers):
        response = client.get(f"{INVOICES_URL}{uuid4()}", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["message"] == "Factura no encontrada"


# ===== ENVÍO A SUNAT =====

class TestSendToSunat:

    def test_accepted(self, client, auth_headers, invoice, fake_gateway, storage, db_session):
        response = client.post(f"{INVOICES_URL}{invoice['id']}/send-sunat", headers=auth_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Factura enviada exitosamente a SUNAT"
        data = body["data"]
        assert data["estado_sunat"] == "ACEPTADO"
        assert data["hash_cpe"] == "hash-cpe-123"
        assert data["has_xml"] is True
        assert data["has_cdr"] is True
        assert data["respuesta_sunat"]["cdr_code"] == "0"

        assert storage.objects[f"{RUC}/invoice/{RUC}-01-F001-1.xml"] == b"<Invoice/>"
        assert storage.objects[f"{RUC}/invoice/R-{RUC}-01-F001-1.zip"] == b"PK-cdr"

        action, kind, payload = fake_gateway.calls[0]
        assert (action, kind) == ("submit", "invoice")
        assert payload["serie"] == "F001"
        assert payload["correlativo"] == 1
        assert payload["company"]["ruc"] == RUC
        assert payload["company"]["usuario_sol"] == "MODDATOS"
        assert payload["client"]["numero_documento"] == "20601030013"

    def test_business_rejection(self, client, auth_headers, invoice, fake_gateway, db_session):
        fake_gateway.result = business_error()

        response = client.post(f"{INVOICES_URL}{invoice['id']}/send-sunat", headers=auth_headers)
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "2800"
        assert body["message"].startswith("Error al enviar a SUNAT: ")
        assert body["data"]["estado_sunat"] == "RECHAZADO"
        assert body["data"]["respuesta_sunat"]["error"]["code"] == "2800"

        stored = db_session.get(Invoice, uuid_of(invoice))
        assert stored.estado_sunat == EstadoSunat.RECHAZADO

    def test_rejected_document_can_be_resent(self, client, auth_headers, invoice, fake_gateway):
        fake_gateway.result = business_error()
        client.post(f"{INVOICES_URL}{invoice['id']}/send-sunat", headers=auth_headers)

        fake_gateway.result = SubmissionResult(success=True, xml="<Invoice/>", cdr=b"PK", hash="h2", cdr_code="0")
        response = client.post(f"{INVOICES_URL}{invoice['id']}/send-sunat", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["data"]["estado_sunat"] == "ACEPTADO"

    def test_transport_failure_keeps_state(self, client, auth_headers, invoice, fake_gateway, db_session, storage):
        fake_gateway.result = transport_error()

        response = client.post(f"{INVOICES_URL}{invoice['id']}/send-sunat", headers=auth_headers)
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == HTTP_ERROR
        assert body["data"]["estado_sunat"] == "PENDIENTE"
        assert storage.objects == {}

        stored = db_session.get(Invoice, uuid_of(invoice))
        assert stored.estado_sunat == EstadoSunat.PENDIENTE
        assert stored.respuesta_sunat is None

    def test_already_accepted(self, client, auth_headers, invoice, fake_gateway):
        client.post(f"{INVOICES_URL}{invoice['id']}/send-sunat", headers=auth_headers)
        response = client.post(f"{INVOICES_URL}{invoice['id']}/send-sunat", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "La factura ya fue aceptada por SUNAT"
        assert len(fake_gateway.calls) == 1

    def test_send_other_company_document(self, client, other_headers, invoice, fake_gateway):
        response = client.post(f"{INVOICES_URL}{invoice['id']}/send-sunat", headers=other_headers)
        assert response.status_code == 403
        assert fake_gateway.calls == []

    def test_send_boleta(self, client, auth_headers, document_payload, storage):
        boleta = create_document(client, BOLETAS_URL, auth_headers, document_payload("B001"))
        response = client.post(f"{BOLETAS_URL}{boleta['id']}/send-sunat", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Boleta enviada exitosamente a SUNAT"
        assert f"{RUC}/boleta/{RUC}-03-B001-1.xml" in storage.objects


# ===== ARTEFACTOS =====

class TestArtifacts:

    def test_download_before_send(self, client, auth_headers, invoice):
        for artifact, message in (("xml", "XML no encontrado"), ("cdr", "CDR no encontrado"), ("pdf", "PDF no encontrado")):
            response = client.get(f"{INVOICES_URL}{invoice['id']}/download-{artifact}", headers=auth_headers)
            assert response.status_code == 404
            assert response.json()["message"] == message

    def test_download_after_send(self, client, auth_headers, invoice):
        client.post(f"{INVOICES_URL}{invoice['id']}/send-sunat", headers=auth_headers)

        xml = client.get(f"{INVOICES_URL}{invoice['id']}/download-xml", headers=auth_headers)
        assert xml.status_code == 200
        assert xml.content == b"<Invoice/>"
        assert xml.headers["content-type"].startswith("application/xml")
        assert xml.headers["content-disposition"] == f'attachment; filename="{RUC}-01-F001-1.xml"'

        cdr = client.get(f"{INVOICES_URL}{invoice['id']}/download-cdr", headers=auth_headers)
        assert cdr.content == b"PK-cdr"
        assert f"R-{RUC}-01-F001-1.zip" in cdr.headers["content-disposition"]

    def test_missing_object_in_storage(self, client, auth_headers, invoice, storage):
        client.post(f"{INVOICES_URL}{invoice['id']}/send-sunat", headers=auth_headers)
        storage.objects.clear()
        response = client.get(f"{INVOICES_URL}{invoice['id']}/download-xml", headers=auth_headers)
        assert response.status_code == 404

    def test_generate_pdf(self, client, auth_headers, invoice, fake_gateway):
        response = client.post(f"{INVOICES_URL}{invoice['id']}/generate-pdf", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["message"] == "PDF generado correctamente"
        assert response.json()["data"]["has_pdf"] is True
        assert fake_gateway.calls[0][0] == "render_pdf"

        pdf = client.get(f"{INVOICES_URL}{invoice['id']}/download-pdf", headers=auth_headers)
        assert pdf.content == b"%PDF-1.4 fake"
        assert pdf.headers["content-type"] == "application/pdf"

    def test_generate_pdf_failure(self, client, auth_headers, invoice, fake_gateway):
        fake_gateway.pdf = SunatGatewayError("No se pudo generar el PDF: timeout")
        response = client.post(f"{INVOICES_URL}{invoice['id']}/generate-pdf", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"] == HTTP_ERROR
        assert response.json()["data"]["has_pdf"] is False

    def test_read_only_cannot_generate_pdf(self, client, make_user, token_headers, sample_company, invoice, fake_gateway):
        headers = token_headers(make_user(RoleName.READ_ONLY, sample_company))
        response = client.post(f"{INVOICES_URL}{invoice['id']}/generate-pdf", headers=headers)
        assert response.status_code == 403
        assert response.json()["error"] == "insufficient_ability"
        assert fake_gateway.calls == []

    def test_read_only_can_download(self, client, make_user, token_headers, sample_company, invoice, auth_headers):
        client.post(f"{INVOICES_URL}{invoice['id']}/send-sunat", headers=auth_headers)
        headers = token_headers(make_user(RoleName.READ_ONLY, sample_company))
        response = client.get(f"{INVOICES_URL}{invoice['id']}/download-xml", headers=headers)
        assert response.status_code == 200

    def test_download_other_company(self, client, auth_headers, other_headers, invoice):
        client.post(f"{INVOICES_URL}{invoice['id']}/send-sunat", headers=auth_headers)
        response = client.get(f"{INVOICES_URL}{invoice['id']}/download-xml", headers=other_headers)
        assert response.status_code == 403


# ===== NOTAS DE CRÉDITO =====

class TestCreditNotes:

    def credit_note_payload(self, document_payload, **overrides):
        body = document_payload(
            "FC01",
            tipo_doc_afectado="01",
            num_doc_afectado="F001-1",
            cod_motivo="01",
        )
        body.update(overrides)
        return body

    def test_create_credit_note(self, client, auth_headers, document_payload):
        response = client.post(CREDIT_NOTES_URL, json=self.credit_note_payload(document_payload), headers=auth_headers)
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Nota de crédito creada correctamente"
        data = body["data"]
        assert data["tipo_documento"] == "07"
        assert data["num_doc_afectado"] == "F001-1"
        assert data["des_motivo"] == "Anulación de la operación"

    def test_custom_des_motivo(self, client, auth_headers, document_payload):
        data = create_document(client, CREDIT_NOTES_URL, auth_headers, self.credit_note_payload(
            document_payload, cod_motivo="07", des_motivo="Devolución de 2 unidades"
        ))
        assert data["des_motivo"] == "Devolución de 2 unidades"

    @pytest.mark.parametrize("overrides", [
        {"serie": "BC01"},                                   # serie de boleta para factura afectada
        {"num_doc_afectado": "B001-1"},                      # documento afectado de otro tipo
        {"num_doc_afectado": "F001"},                        # sin correlativo
        {"cod_motivo": "99"},
        {"tipo_doc_afectado": "07"},
    ])
    def test_invalid_credit_note(self, client, auth_headers, document_payload, overrides):
        response = client.post(CREDIT_NOTES_URL, json=self.credit_note_payload(document_payload, **overrides), headers=auth_headers)
        assert response.status_code == 422

    def test_credit_note_for_boleta(self, client, auth_headers, document_payload):
        data = create_document(client, CREDIT_NOTES_URL, auth_headers, self.credit_note_payload(
            document_payload, serie="BC01", tipo_doc_afectado="03", num_doc_afectado="B001-15"
        ))
        assert data["serie"] == "BC01"

    def test_list_by_tipo_doc_afectado(self, client, auth_headers, document_payload):
        create_document(client, CREDIT_NOTES_URL, auth_headers, self.credit_note_payload(document_payload))
        response = client.get(CREDIT_NOTES_URL, params={"tipo_doc_afectado": "03"}, headers=auth_headers)
        assert response.json()["data"]["items"] == []
        response = client.get(CREDIT_NOTES_URL, params={"tipo_doc_afectado": "01"}, headers=auth_headers)
        assert len(response.json()["data"]["items"]) == 1

    def test_send_credit_note(self, client, auth_headers, document_payload, fake_gateway):
        note = create_document(client, CREDIT_NOTES_URL, auth_headers, self.credit_note_payload(document_payload))
        response = client.post(f"{CREDIT_NOTES_URL}{note['id']}/send-sunat", headers=auth_headers)
        assert response.status_code == 200
        _, kind, payload = fake_gateway.calls[0]
        assert kind == "credit_note"
        assert payload["num_doc_afectado"] == "F001-1"
        assert payload["cod_motivo"] == "01"

    def test_motivos(self, client, auth_headers):
        response = client.get(f"{CREDIT_NOTES_URL}motivos", headers=auth_headers)
        assert response.status_code == 200
        motivos = response.json()["data"]
        assert len(motivos) == 13
        assert motivos[0] == {"code": "01", "name": "Anulación de la operación"}

    def test_not_found(self, client, auth_headers):
        response = client.get(f"{CREDIT_NOTES_URL}{uuid4()}", headers=auth_headers)
        assert response.json()["message"] == "Nota de crédito no encontrada"


# ===== RESUMEN DIARIO DE BOLETAS =====

class TestDailySummary:

    @pytest.fixture
    def boletas(self, client, auth_headers, document_payload):
        return [
            create_document(client, BOLETAS_URL, auth_headers, document_payload("B001"))
            for _ in range(2)
        ]

    def pending(self, client, headers, branch):
        return client.get(f"{BOLETAS_URL}pending-summary", params={
            "branch_id": str(branch.id), "fecha_emision": date.today().isoformat()
        }, headers=headers)

    def create_summary(self, client, headers, branch):
        return client.post(f"{BOLETAS_URL}summary", json={
            "branch_id": str(branch.id), "fecha_resumen": date.today().isoformat()
        }, headers=headers)

    def test_pending_boletas(self, client, auth_headers, sample_branch, boletas):
        response = self.pending(client, auth_headers, sample_branch)
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        assert [b["numero_completo"] for b in body["data"]] == ["B001-1", "B001-2"]

    def test_pending_requires_company_for_super_admin(self, client, super_admin_headers, sample_branch):
        response = self.pending(client, super_admin_headers, sample_branch)
        assert response.status_code == 422

    def test_full_summary_flow(self, client, auth_headers, sample_branch, boletas, fake_gateway, storage, db_session):
        response = self.create_summary(client, auth_headers, sample_branch)
        assert response.status_code == 201
        summary = response.json()["data"]
        identificador = f"RC-{date.today().strftime('%Y%m%d')}-1"
        assert summary["identificador"] == identificador
        assert summary["estado_sunat"] == "PENDIENTE"
        assert len(summary["boletas"]) == 2
        assert self.pending(client, auth_headers, sample_branch).json()["total"] == 0

        response = client.post(f"{BOLETAS_URL}summary/{summary['id']}/send-sunat", headers=auth_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["ticket"] == "1700000000001"
        assert body["data"]["estado_sunat"] == "ENVIADO"
        assert {b["estado_sunat"] for b in body["data"]["boletas"]} == {"ENVIADO"}
        assert storage.objects[f"{RUC}/summary/{RUC}-{identificador}.xml"] == b"<SummaryDocuments/>"

        payload = fake_gateway.calls[0][1]
        assert payload["identificador"] == identificador
        assert sorted(d["serie_numero"] for d in payload["detalles"]) == ["B001-1", "B001-2"]

        response = client.get(f"{BOLETAS_URL}summary/{summary['id']}/status", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["estado_sunat"] == "ACEPTADO"
        assert {b["estado_sunat"] for b in data["boletas"]} == {"ACEPTADO"}
        assert storage.objects[f"{RUC}/summary/R-{RUC}-{identificador}.zip"] == b"PK-cdr-rc"
        assert fake_gateway.calls[-1] == ("get_status", "1700000000001")

    def test_second_summary_same_day(self, client, auth_headers, document_payload, sample_branch, boletas):
        self.create_summary(client, auth_headers, sample_branch)
        create_document(client, BOLETAS_URL, auth_headers, document_payload("B001"))

        response = self.create_summary(client, auth_headers, sample_branch)
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["identificador"].endswith("-2")
        assert [b["numero_completo"] for b in data["boletas"]] == ["B001-3"]

    def test_no_pending_boletas(self, client, auth_headers, sample_branch):
        response = self.create_summary(client, auth_headers, sample_branch)
        assert response.status_code == 400
        assert response.json()["message"] == "No hay boletas pendientes para la sucursal y fecha indicadas"

    def test_status_without_ticket(self, client, auth_headers, sample_branch, boletas):
        summary = self.create_summary(client, auth_headers, sample_branch).json()["data"]
        response = client.get(f"{BOLETAS_URL}summary/{summary['id']}/status", headers=auth_headers)
        assert response.status_code == 400

    def test_status_still_processing(self, client, auth_headers, sample_branch, boletas, fake_gateway):
        fake_gateway.status_result = SubmissionResult(success=True)
        summary = self.create_summary(client, auth_headers, sample_branch).json()["data"]
        client.post(f"{BOLETAS_URL}summary/{summary['id']}/send-sunat", headers=auth_headers)

        response = client.get(f"{BOLETAS_URL}summary/{summary['id']}/status", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["data"]["estado_sunat"] == "ENVIADO"

    def test_rejected_summary_releases_boletas(self, client, auth_headers, sample_branch, boletas, fake_gateway, db_session):
        fake_gateway.status_result = business_error("2223", "El documento ya fue informado")
        summary = self.create_summary(client, auth_headers, sample_branch).json()["data"]
        client.post(f"{BOLETAS_URL}summary/{summary['id']}/send-sunat", headers=auth_headers)

        response = client.get(f"{BOLETAS_URL}summary/{summary['id']}/status", headers=auth_headers)
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "2223"
        assert body["message"].startswith("Error al consultar estado")
        assert body["data"]["estado_sunat"] == "RECHAZADO"
        assert body["data"]["boletas"] == []

        db_session.expire_all()
        released = db_session.query(Boleta).all()
        assert {b.estado_sunat for b in released} == {EstadoSunat.PENDIENTE}
        assert all(b.daily_summary_id is None for b in released)
        assert self.pending(client, auth_headers, sample_branch).json()["total"] == 2

    def test_rejected_summary_cannot_be_resent(self, client, auth_headers, sample_branch, boletas, fake_gateway):
        fake_gateway.status_result = business_error("2223", "El documento ya fue informado")
        summary = self.create_summary(client, auth_headers, sample_branch).json()["data"]
        client.post(f"{BOLETAS_URL}summary/{summary['id']}/send-sunat", headers=auth_headers)
        client.get(f"{BOLETAS_URL}summary/{summary['id']}/status", headers=auth_headers)
        submitted = len(fake_gateway.calls)

        response = client.post(f"{BOLETAS_URL}summary/{summary['id']}/send-sunat", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "El resumen no tiene boletas, genere un nuevo resumen"
        assert len(fake_gateway.calls) == submitted

        retry = self.create_summary(client, auth_headers, sample_branch)
        assert retry.status_code == 201
        assert len(retry.json()["data"]["boletas"]) == 2

    def test_boleta_in_summary_cannot_be_sent_alone(self, client, auth_headers, sample_branch, boletas,
                                                    fake_gateway, db_session):
        self.create_summary(client, auth_headers, sample_branch)

        response = client.post(f"{BOLETAS_URL}{boletas[0]['id']}/send-sunat", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "La boleta forma parte de un resumen diario y se informa a SUNAT con él"
        assert fake_gateway.calls == []

        db_session.expire_all()
        assert db_session.get(Boleta, uuid_of(boletas[0])).estado_sunat == EstadoSunat.PENDIENTE

    def test_send_failure(self, client, auth_headers, sample_branch, boletas, fake_gateway, db_session):
        fake_gateway.summary_result = transport_error()
        summary = self.create_summary(client, auth_headers, sample_branch).json()["data"]

        response = client.post(f"{BOLETAS_URL}summary/{summary['id']}/send-sunat", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"] == HTTP_ERROR

        db_session.expire_all()
        stored = db_session.query(DailySummary).one()
        assert stored.estado_sunat == EstadoSunat.PENDIENTE
        assert stored.ticket is None

    def test_summary_of_other_company(self, client, auth_headers, other_headers, sample_branch, boletas):
        summary = self.create_summary(client, auth_headers, sample_branch).json()["data"]
        response = client.post(f"{BOLETAS_URL}summary/{summary['id']}/send-sunat", headers=other_headers)
        assert response.status_code == 403

    def test_summary_not_found(self, client, auth_headers):
        response = client.get(f"{BOLETAS_URL}summary/{uuid4()}/status", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["message"] == "Resumen diario no encontrado"

    def test_api_client_cannot_manage_summaries(self, client, make_user, token_headers, sample_company, sample_branch):
        headers = token_headers(make_user(RoleName.API_CLIENT, sample_company, user_type="api_client"))
        response = self.create_summary(client, headers, sample_branch)
        assert response.status_code == 403
