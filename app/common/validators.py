"""
Validadores específicos para Perú (documentos de identidad y comprobantes SUNAT)
"""
import re
from typing import Optional


# Catálogo 06 SUNAT: tipo de documento de identidad
TIPOS_DOCUMENTO_IDENTIDAD = {
    "0": "Sin documento",
    "1": "DNI",
    "4": "Carnet de extranjería",
    "6": "RUC",
    "7": "Pasaporte",
}

RUC_WEIGHTS = [5, 4, 3, 2, 7, 6, 5, 4, 3, 2]


def validate_ruc(ruc: str) -> bool:
    """
    Valida RUC peruano.
    - 11 dígitos
    - Prefijo 10, 15, 16, 17 (persona natural) o 20 (persona jurídica)
    - Dígito verificador módulo 11
    """
    cleaned = re.sub(r'\s', '', ruc or '')

    if not cleaned.isdigit() or len(cleaned) != 11:
        return False

    if cleaned[:2] not in ("10", "15", "16", "17", "20"):
        return False

    suma = sum(int(d) * w for d, w in zip(cleaned[:10], RUC_WEIGHTS))
    digito = 11 - (suma % 11)
    if digito == 10:
        digito = 0
    elif digito == 11:
        digito = 1

    return digito == int(cleaned[-1])


def validate_dni(dni: str) -> bool:
    """DNI peruano: exactamente 8 dígitos."""
    cleaned = re.sub(r'\s', '', dni or '')
    return cleaned.isdigit() and len(cleaned) == 8


def validate_ubigeo(ubigeo: str) -> bool:
    """Código de ubigeo INEI: 6 dígitos (departamento, provincia, distrito)."""
    return bool(re.fullmatch(r'\d{6}', ubigeo or ''))


def validate_serie(serie: str, prefix: str) -> bool:
    """
    Serie de comprobante electrónico: letra de tipo + 3 caracteres alfanuméricos.
    Ej: F001 (factura), B001 (boleta).
    """
    return bool(re.fullmatch(rf'{prefix}[A-Z0-9]{{3}}', (serie or '').upper()))


def validate_documento_identidad(tipo_documento: str, numero: str) -> Optional[str]:
    """
    Valida un número de documento según su tipo (catálogo 06).

    Returns:
        None si es válido, o el mensaje de error.
    """
    if tipo_documento not in TIPOS_DOCUMENTO_IDENTIDAD:
        return f"Tipo de documento inválido. Debe ser uno de: {', '.join(TIPOS_DOCUMENTO_IDENTIDAD)}"

    if tipo_documento == "6" and not validate_ruc(numero):
        return "RUC inválido. Debe tener 11 dígitos y un dígito verificador correcto"

    if tipo_documento == "1" and not validate_dni(numero):
        return "DNI inválido. Debe tener exactamente 8 dígitos"

    if tipo_documento in ("4", "7") and not re.fullmatch(r'[A-Za-z0-9]{1,12}', numero or ''):
        return "Número de documento inválido. Máximo 12 caracteres alfanuméricos"

    return None
