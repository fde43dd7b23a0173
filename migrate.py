#!/usr/bin/env python3
"""
Script para gestionar el esquema de base de datos y los datos base.
"""
import sys
from pathlib import Path

# Agregar el directorio raíz al path
root_dir = Path(__file__).parent
sys.path.insert(0, str(root_dir))

from app.core.config import settings
from app.database.database import Base, SessionLocal, sync_engine
from app.modules.auth.roles import seed_roles_and_permissions

# Registrar todos los modelos en Base.metadata
import app.modules.auth.models
import app.modules.company.models
import app.modules.branches.models
import app.modules.clients.models
import app.modules.documents.models


def create_tables():
    """Crear las tablas que no existan."""
    Base.metadata.create_all(bind=sync_engine)
    print(f"Tablas creadas en {sync_engine.url.render_as_string(hide_password=True)}")


def seed_roles():
    """Crear o actualizar el catálogo de roles."""
    db = SessionLocal()
    try:
        created = seed_roles_and_permissions(db)
        db.commit()
        print(f"Roles sincronizados ({created} nuevos)")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def drop_tables():
    """Eliminar todas las tablas (solo fuera de producción)."""
    if settings.ENVIRONMENT == "production":
        print("Error: drop-tables no está permitido en producción")
        sys.exit(1)
    Base.metadata.drop_all(bind=sync_engine)
    print("Tablas eliminadas")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Uso:")
        print("  python migrate.py create-tables   # Crear tablas")
        print("  python migrate.py seed-roles      # Sincronizar roles y permisos")
        print("  python migrate.py drop-tables     # Eliminar tablas (no producción)")
        sys.exit(1)

    action = sys.argv[1]

    if action == "create-tables":
        create_tables()
    elif action == "seed-roles":
        seed_roles()
    elif action == "drop-tables":
        drop_tables()
    else:
        print(f"Acción desconocida: {action}")
        sys.exit(1)
