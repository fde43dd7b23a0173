"""
Módulo de Clientes - API SUNAT

Receptores de los comprobantes, aislados por company_id.
Validaciones de documento de identidad según catálogo 06 de SUNAT
(DNI de 8 dígitos, RUC con dígito verificador).
"""
