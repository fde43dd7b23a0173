"""
Tests del cliente HTTP del servicio puente SUNAT (httpx.MockTransport).
"""
import base64
import json

import httpx
import pytest

from app.modules.sunat.client import HTTP_ERROR, SunatGateway, SunatGatewayError


def gateway_for(handler) -> SunatGateway:
    return SunatGateway(
        base_url="http://sunat-bridge.test/api",
        token="secreto",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


PAYLOAD = {"serie": "F001", "correlativo": 1, "company": {"ruc": "20100070970"}}


class TestSubmit:

    def test_accepted_document(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={
                "success": True,
                "xml": "<Invoice/>",
                "cdr_zip": base64.b64encode(b"PK-cdr").decode(),
                "hash": "abc123",
                "cdr_response": {"code": "0", "description": "La Factura numero F001-1, ha sido aceptada"},
            })

        result = gateway_for(handler).submit("invoice", PAYLOAD)

        assert result.success
        assert result.xml == "<Invoice/>"
        assert result.cdr == b"PK-cdr"
        assert result.hash == "abc123"
        assert result.cdr_code == "0"
        assert result.error is None

        request = requests[0]
        assert request.method == "POST"
        assert request.url.path == "/api/documents/invoice"
        assert request.headers["Authorization"] == "Bearer secreto"
        assert json.loads(request.content)["serie"] == "F001"

    def test_business_error(self):
        def handler(request):
            return httpx.Response(400, json={
                "success": False,
                "error": {"code": "2800", "message": "Tipo de documento del receptor no permitido"},
            })

        result = gateway_for(handler).submit("boleta", PAYLOAD)

        assert not result.success
        assert result.error.code == "2800"
        assert not result.error.is_transport
        assert result.response_data() == {
            "success": False,
            "error": {"code": "2800", "message": "Tipo de documento del receptor no permitido"},
        }

    def test_error_without_details(self):
        result = gateway_for(lambda request: httpx.Response(200, json={"success": False})).submit("invoice", PAYLOAD)
        assert result.error.code == "UNKNOWN"

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        result = gateway_for(handler).submit("invoice", PAYLOAD)

        assert not result.success
        assert result.error.code == HTTP_ERROR
        assert result.error.is_transport

    @pytest.mark.parametrize("response", [
        httpx.Response(502, text="<html>Bad Gateway</html>"),
        httpx.Response(500, json={"detail": "boom"}),
        httpx.Response(200, json=["no", "es", "objeto"]),
    ])
    def test_invalid_responses_are_transport_errors(self, response):
        result = gateway_for(lambda request: response).submit("credit_note", PAYLOAD)
        assert result.error.code == HTTP_ERROR

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            gateway_for(lambda request: httpx.Response(200, json={})).submit("debit_note", PAYLOAD)


class TestSummaries:

    def test_submit_summary_returns_ticket(self):
        def handler(request):
            assert request.url.path == "/api/summaries"
            return httpx.Response(200, json={"success": True, "xml": "<SummaryDocuments/>", "ticket": "1700000000001"})

        result = gateway_for(handler).submit_summary({"identificador": "RC-20261017-1"})
        assert result.success
        assert result.ticket == "1700000000001"

    def test_status_sends_credentials_in_body(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"success": True, "cdr_zip": base64.b64encode(b"PK").decode()})

        credentials = {"ruc": "20100070970", "usuario_sol": "MODDATOS", "clave_sol": "moddatos"}
        result = gateway_for(handler).get_status("1700000000001", credentials)

        assert result.cdr == b"PK"
        request = requests[0]
        assert request.method == "POST"
        assert request.url.path == "/api/summaries/1700000000001/status"
        assert "moddatos" not in str(request.url)
        assert json.loads(request.content) == {"company": credentials}


class TestRenderPdf:

    def test_pdf(self):
        def handler(request):
            assert request.url.path == "/api/pdf/invoice"
            return httpx.Response(200, content=b"%PDF-1.4", headers={"Content-Type": "application/pdf"})

        assert gateway_for(handler).render_pdf("invoice", PAYLOAD) == b"%PDF-1.4"

    def test_pdf_failure(self):
        with pytest.raises(SunatGatewayError) as exc:
            gateway_for(lambda request: httpx.Response(500)).render_pdf("invoice", PAYLOAD)
        assert exc.value.code == HTTP_ERROR
