"""
Cliente HTTP del servicio puente de envío a SUNAT.

El puente genera y firma el XML UBL, lo envía a SUNAT y devuelve el CDR
(constancia de recepción). Este módulo solo habla HTTP con el puente.

Endpoints del puente:
- POST /documents/{kind}            envío síncrono (factura, boleta, nota de crédito)
- POST /summaries                   envío asíncrono de resumen diario, devuelve ticket
- POST /summaries/{ticket}/status   consulta del ticket
- POST /pdf/{kind}                  representación impresa

Los errores de transporte se reportan con código ``HTTP_ERROR`` y no se
reintentan: reenviar un comprobante es decisión del usuario.
"""
import base64
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

HTTP_ERROR = "HTTP_ERROR"

DOCUMENT_KINDS = ("invoice", "boleta", "credit_note")


class SunatGatewayError(Exception):
    """El puente no pudo generar la representación solicitada."""

    def __init__(self, message: str, code: str = HTTP_ERROR):
        self.message = message
        self.code = code
        super().__init__(message)


@dataclass
class SunatError:
    code: str
    message: str

    @property
    def is_transport(self) -> bool:
        return self.code == HTTP_ERROR


@dataclass
class SubmissionResult:
    success: bool
    xml: Optional[str] = None
    cdr: Optional[bytes] = None
    hash: Optional[str] = None
    cdr_code: Optional[str] = None
    cdr_description: Optional[str] = None
    ticket: Optional[str] = None
    error: Optional[SunatError] = None

    def response_data(self) -> dict:
        """Resumen serializable para guardar en ``respuesta_sunat``."""
        data = {
            "success": self.success,
            "hash": self.hash,
            "cdr_code": self.cdr_code,
            "cdr_description": self.cdr_description,
            "ticket": self.ticket,
        }
        if self.error:
            data["error"] = {"code": self.error.code, "message": self.error.message}
        return {k: v for k, v in data.items() if v is not None}


def _transport_failure(exc: Exception) -> SubmissionResult:
    return SubmissionResult(
        success=False,
        error=SunatError(HTTP_ERROR, f"No se pudo comunicar con el servicio SUNAT: {exc}"),
    )


class SunatGateway:
    """
    Usage:
        gateway = SunatGateway()
        result = gateway.submit("invoice", payload)
        if result.success:
            ...
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = (base_url or settings.SUNAT_BRIDGE_URL).rstrip("/")
        self.token = token if token is not None else settings.SUNAT_BRIDGE_TOKEN
        self.timeout = timeout or settings.SUNAT_TIMEOUT
        self.transport = transport

    def _headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        with httpx.Client(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=self._headers(),
            transport=self.transport,
        ) as client:
            return client.request(method, path, **kwargs)

    def _request_json(self, method: str, path: str, **kwargs) -> dict:
        response = self._request(method, path, **kwargs)
        # El puente responde 4xx con JSON para errores de negocio; HTML o vacío es un fallo de transporte
        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            raise httpx.HTTPStatusError(
                f"Respuesta no JSON del servicio SUNAT (HTTP {response.status_code})",
                request=response.request,
                response=response,
            )
        if response.status_code >= 500 and not isinstance(data.get("error"), dict):
            raise httpx.HTTPStatusError(
                f"Error HTTP {response.status_code} del servicio SUNAT",
                request=response.request,
                response=response,
            )
        return data

    @staticmethod
    def _parse_result(data: dict) -> SubmissionResult:
        cdr_response = data.get("cdr_response") or {}
        cdr_zip = data.get("cdr_zip")
        error = data.get("error")

        result = SubmissionResult(
            success=bool(data.get("success")),
            xml=data.get("xml"),
            cdr=base64.b64decode(cdr_zip) if cdr_zip else None,
            hash=data.get("hash"),
            cdr_code=cdr_response.get("code"),
            cdr_description=cdr_response.get("description"),
            ticket=data.get("ticket"),
        )
        if not result.success:
            if isinstance(error, dict):
                result.error = SunatError(str(error.get("code") or "UNKNOWN"), error.get("message") or "Error desconocido")
            else:
                result.error = SunatError("UNKNOWN", str(error or "Error desconocido"))
        return result

    def submit(self, kind: str, payload: dict[str, Any]) -> SubmissionResult:
        """Enviar un comprobante (envío síncrono con CDR)."""
        if kind not in DOCUMENT_KINDS:
            raise ValueError(f"Tipo de documento no soportado: {kind}")

        logger.info(f"Submitting {kind} {payload.get('serie')}-{payload.get('correlativo')} to SUNAT")
        try:
            data = self._request_json("POST", f"/documents/{kind}", json=payload)
        except httpx.HTTPError as e:
            logger.error(f"SUNAT bridge transport error: {e}")
            return _transport_failure(e)

        result = self._parse_result(data)
        if not result.success:
            logger.warning(f"SUNAT rejected {kind}: {result.error.code} {result.error.message}")
        return result

    def submit_summary(self, payload: dict[str, Any]) -> SubmissionResult:
        """Enviar un resumen diario. SUNAT responde con un ticket."""
        logger.info(f"Submitting daily summary {payload.get('identificador')} to SUNAT")
        try:
            data = self._request_json("POST", "/summaries", json=payload)
        except httpx.HTTPError as e:
            logger.error(f"SUNAT bridge transport error: {e}")
            return _transport_failure(e)
        return self._parse_result(data)

    def get_status(self, ticket: str, credentials: Optional[dict] = None) -> SubmissionResult:
        """Consultar el estado de un ticket de resumen diario."""
        try:
            data = self._request_json("POST", f"/summaries/{ticket}/status", json={"company": credentials or {}})
        except httpx.HTTPError as e:
            logger.error(f"SUNAT bridge transport error: {e}")
            return _transport_failure(e)
        return self._parse_result(data)

    def render_pdf(self, kind: str, payload: dict[str, Any]) -> bytes:
        """Representación impresa del comprobante."""
        try:
            response = self._request("POST", f"/pdf/{kind}", json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"SUNAT bridge PDF error: {e}")
            raise SunatGatewayError(f"No se pudo generar el PDF: {e}")
        return response.content


def get_sunat_gateway() -> SunatGateway:
    return SunatGateway()
