# Nombre de archivo: conftest.py
# Ubicación de archivo: tests/conftest.py
# Descripción: Configuraciones comunes para Pytest (PYTHONPATH, store SQLite en memoria y cliente API)

from __future__ import annotations

import os
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:  # pragma: no cover - inicialización
    sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("TESTING", "true")
os.environ.setdefault("WEB_SECRET_KEY", "test-secret")
os.environ.setdefault("ENV", "test")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from core.config import Settings  # noqa: E402
from core.password import hash_password  # noqa: E402
from core.repositories.sql_store import SqlRecordStore  # noqa: E402
from core.storage import LocalBlobStorage  # noqa: E402
from core.store import Mutacion, TABLA_SERVICIOS, TABLA_USUARIOS  # noqa: E402
from db.base import Base  # noqa: E402

PASSWORD = "Senha#123"


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine) -> SqlRecordStore:
    sql_store = SqlRecordStore(engine)
    sql_store.create_all()
    return sql_store


@pytest.fixture
def storage(tmp_path: Path) -> LocalBlobStorage:
    return LocalBlobStorage(base_dir=tmp_path / "storage", public_url="/storage")


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Settings:
    monkeypatch.setenv("TESTING", "true")
    monkeypatch.setenv("REPORTS_DIR", str(tmp_path / "reports"))
    monkeypatch.setenv("STORAGE_DIR", str(tmp_path / "storage"))
    monkeypatch.setenv("SIC_TIMEZONE", "America/Sao_Paulo")
    monkeypatch.setenv("REALTIME_DEBOUNCE_MS", "50")
    return Settings()


@pytest.fixture
def client(store, storage, settings) -> TestClient:
    from api.app.main import create_app

    return TestClient(create_app(store=store, storage=storage, settings=settings))


@pytest.fixture
def crear_usuario(store) -> Callable[..., Dict[str, Any]]:
    """Inserta un usuario con la contraseña de prueba y devuelve la fila."""

    def _crear(email: str, role: str = "user", password: str = PASSWORD) -> Dict[str, Any]:
        return store.mutate(
            Mutacion(
                tabla=TABLA_USUARIOS,
                accion="insert",
                datos={"email": email, "role": role, "password_hash": hash_password(password, rounds=4)},
            )
        )

    return _crear


@pytest.fixture
def insertar_registro(engine, store) -> Callable[..., Dict[str, Any]]:
    """Inserta un registro con ``created_at`` controlado (el store siempre asigna el propio)."""

    tabla = Base.metadata.tables[TABLA_SERVICIOS]

    def _insertar(created_at: datetime, **campos: Any) -> Dict[str, Any]:
        fila = {
            "id": str(uuid.uuid4()),
            "operator_name": "Ana",
            "technician_name": "Carlos",
            "company_name": "FibraSul",
            "contract_number": "C-1",
            "service_type": "Reparo",
            "street": "Rua A",
            "neighborhood": "Centro",
            "cto_location": "CTO-1",
            "area_cx": "CX-1",
            "available_slots": "4",
            "unit": "U1",
            "visited_cxs": "CX-1",
            "general_comments": "ok",
            "images": [],
            **campos,
        }
        fila["created_at"] = created_at.astimezone(timezone.utc).replace(tzinfo=None)
        with engine.begin() as conn:
            conn.execute(tabla.insert().values(**fila))
        return fila

    return _insertar


@pytest.fixture
def login(client) -> Callable[[str, str], Dict[str, str]]:
    """Inicia sesión por la API y devuelve los headers Bearer."""

    def _login(email: str, password: str = PASSWORD) -> Dict[str, str]:
        resp = client.post("/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['token']}"}

    return _login
