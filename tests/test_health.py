# Nombre de archivo: test_health.py
# Ubicación de archivo: tests/test_health.py
# Descripción: Pruebas de health, verificación del store y request id

from __future__ import annotations

from datetime import datetime, timezone


def test_health(client) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert resp.headers["X-Request-ID"]


def test_request_id_se_reutiliza(client) -> None:
    resp = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert resp.headers["X-Request-ID"] == "abc-123"


def test_db_check(client, insertar_registro) -> None:
    insertar_registro(datetime.now(timezone.utc))
    assert client.get("/db-check").json() == {"db": "ok", "service_records": 1}
