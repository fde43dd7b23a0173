"""
Fixtures compartidas por los tests de todos los módulos.

La base de datos es SQLite en memoria (StaticPool: una sola conexión
compartida por los tests y la aplicación). El gateway SUNAT y MinIO se
reemplazan con dobles en memoria mediante ``app.dependency_overrides``.
"""
import os

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["DEBUG"] = "false"

from datetime import date
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from app.main import app as fastapi_app
from app.database.database import Base, SessionLocal, sync_engine
from app.modules.auth.models import User, Role
from app.modules.auth.roles import RoleName, UserType, seed_roles_and_permissions
from app.modules.auth.service import AuthService
from app.modules.auth.utils import hash_password
from app.modules.branches.models import Branch
from app.modules.clients.models import Client
from app.modules.company.models import Company
from app.modules.files.service import get_file_storage
from app.modules.sunat.client import SubmissionResult, get_sunat_gateway

DEFAULT_PASSWORD = "Secreta123"


class FakeSunatGateway:
    """Doble del puente SUNAT: registra las llamadas y devuelve resultados configurables."""

    def __init__(self):
        self.calls = []
        self.result = SubmissionResult(
            success=True,
            xml="<Invoice/>",
            cdr=b"PK-cdr",
            hash="hash-cpe-123",
            cdr_code="0",
            cdr_description="El comprobante ha sido aceptado",
        )
        self.summary_result = SubmissionResult(success=True, xml="<SummaryDocuments/>", ticket="1700000000001")
        self.status_result = SubmissionResult(
            success=True, cdr=b"PK-cdr-rc", cdr_code="0", cdr_description="El resumen ha sido aceptado"
        )
        self.pdf = b"%PDF-1.4 fake"

    def submit(self, kind, payload):
        self.calls.append(("submit", kind, payload))
        return self.result

    def submit_summary(self, payload):
        self.calls.append(("submit_summary", payload))
        return self.summary_result

    def get_status(self, ticket, credentials=None):
        self.calls.append(("get_status", ticket))
        return self.status_result

    def render_pdf(self, kind, payload):
        self.calls.append(("render_pdf", kind, payload))
        if isinstance(self.pdf, Exception):
            raise self.pdf
        return self.pdf


class InMemoryStorage:
    def __init__(self):
        self.objects = {}

    def put(self, path, data, content_type="application/octet-stream"):
        self.objects[path] = data
        return path

    def download(self, path):
        return self.objects.get(path) if path else None


# ===== BASE DE DATOS =====

@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=sync_engine)
    Base.metadata.create_all(bind=sync_engine)
    yield


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


# ===== APLICACIÓN =====

@pytest.fixture
def fake_gateway():
    return FakeSunatGateway()


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def client(fake_gateway, storage):
    fastapi_app.dependency_overrides[get_sunat_gateway] = lambda: fake_gateway
    fastapi_app.dependency_overrides[get_file_storage] = lambda: storage
    with TestClient(fastapi_app, raise_server_exceptions=False) as test_client:
        yield test_client
    fastapi_app.dependency_overrides.clear()


# ===== DATOS BASE =====

@pytest.fixture
def roles(db_session):
    seed_roles_and_permissions(db_session)
    db_session.commit()
    return {role.name: role for role in db_session.query(Role).all()}


def _company(db_session, ruc: str, razon_social: str, activo: bool = True) -> Company:
    company = Company(
        ruc=ruc,
        razon_social=razon_social,
        direccion="Av. Javier Prado 123",
        ubigeo="150101",
        usuario_sol="MODDATOS",
        clave_sol="moddatos",
        activo=activo,
    )
    db_session.add(company)
    db_session.commit()
    db_session.refresh(company)
    return company


@pytest.fixture
def sample_company(db_session):
    return _company(db_session, "20100070970", "EMPRESA PRINCIPAL SAC")


@pytest.fixture
def other_company(db_session):
    return _company(db_session, "20131312955", "OTRA EMPRESA SAC")


@pytest.fixture
def make_user(db_session, roles):
    """Factory de usuarios: make_user(RoleName.COMPANY_ADMIN, company)."""
    counter = {"n": 0}

    def _make(
        role_name: Optional[RoleName],
        company: Optional[Company] = None,
        user_type: str = UserType.USER.value,
        email: Optional[str] = None,
        password: str = DEFAULT_PASSWORD,
        active: bool = True,
    ) -> User:
        counter["n"] += 1
        user = User(
            name=f"Usuario {counter['n']}",
            email=email or f"user{counter['n']}@example.com",
            password=hash_password(password),
            role=roles[role_name.value] if role_name else None,
            company_id=company.id if company else None,
            user_type=user_type,
            active=active,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


def _headers_for(db_session, user: User) -> dict:
    token, _ = AuthService(db_session).issue_token(user, "TEST_TOKEN", user.get_all_permissions())
    db_session.commit()
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def token_headers(db_session):
    """Emitir un token para un usuario: token_headers(user) -> headers."""
    return lambda user: _headers_for(db_session, user)


@pytest.fixture
def super_admin(make_user):
    return make_user(RoleName.SUPER_ADMIN, user_type=UserType.SYSTEM.value, email="root@example.com")


@pytest.fixture
def company_admin(make_user, sample_company):
    return make_user(RoleName.COMPANY_ADMIN, sample_company, email="admin@principal.pe")


@pytest.fixture
def other_admin(make_user, other_company):
    return make_user(RoleName.COMPANY_ADMIN, other_company, email="admin@otra.pe")


@pytest.fixture
def super_admin_headers(db_session, super_admin):
    return _headers_for(db_session, super_admin)


@pytest.fixture
def auth_headers(db_session, company_admin):
    return _headers_for(db_session, company_admin)


@pytest.fixture
def other_headers(db_session, other_admin):
    return _headers_for(db_session, other_admin)


# ===== SUCURSALES, CLIENTES Y COMPROBANTES =====

def _branch(db_session, company: Company, codigo: str = "0000") -> Branch:
    branch = Branch(company_id=company.id, codigo=codigo, nombre=f"Sucursal {codigo}", direccion="Jr. Lima 456")
    db_session.add(branch)
    db_session.commit()
    db_session.refresh(branch)
    return branch


def _client(db_session, company: Company, numero: str = "20601030013") -> Client:
    record = Client(
        company_id=company.id,
        tipo_documento="6",
        numero_documento=numero,
        razon_social="CLIENTE CORPORATIVO SAC",
        direccion="Calle Los Olivos 789",
    )
    db_session.add(record)
    db_session.commit()
    db_session.refresh(record)
    return record


@pytest.fixture
def sample_branch(db_session, sample_company):
    return _branch(db_session, sample_company)


@pytest.fixture
def other_branch(db_session, other_company):
    return _branch(db_session, other_company)


@pytest.fixture
def sample_client(db_session, sample_company):
    return _client(db_session, sample_company)


@pytest.fixture
def other_client(db_session, other_company):
    return _client(db_session, other_company)


@pytest.fixture
def document_payload(sample_branch, sample_client):
    """Cuerpo base para crear comprobantes; se ajusta la serie según el tipo."""
    def _payload(serie: str = "F001", **overrides) -> dict:
        body = {
            "branch_id": str(sample_branch.id),
            "client_id": str(sample_client.id),
            "serie": serie,
            "fecha_emision": date.today().isoformat(),
            "mto_oper_gravadas": "100.00",
            "mto_igv": "18.00",
            "mto_imp_venta": "118.00",
            "detalles": [
                {
                    "codigo": "P001",
                    "descripcion": "Servicio de consultoría",
                    "cantidad": "1",
                    "mto_valor_unitario": "100.00",
                    "mto_precio_unitario": "118.00",
                    "mto_valor_venta": "100.00",
                    "igv": "18.00",
                }
            ],
        }
        body.update(overrides)
        return body
    return _payload
