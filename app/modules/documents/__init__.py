"""
Módulo de Comprobantes Electrónicos - API SUNAT

Modelos, schemas y servicio compartidos por facturas (01), boletas (03)
y notas de crédito (07), más el resumen diario de boletas.

Componentes:
- models.py: modelos SQLAlchemy y estados SUNAT
- schemas.py: validación de series, motivos y serialización
- service.py: creación, envío a SUNAT, artefactos y resúmenes
- router.py: endpoints comunes registrados por cada tipo de comprobante
"""
