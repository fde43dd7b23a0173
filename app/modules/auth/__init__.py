"""
Módulo de Autenticación - API SUNAT

- Login con bloqueo por intentos fallidos
- Tokens con abilities y expiración fijadas al emitirse
  (system 7 días, api_client 24 horas, user 12 horas)
- Inicialización única del sistema (primer super administrador)
- Administración de usuarios y revocación de tokens
"""
