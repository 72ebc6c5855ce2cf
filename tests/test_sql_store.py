# Nombre de archivo: test_sql_store.py
# Ubicación de archivo: tests/test_sql_store.py
# Descripción: Pruebas del store SQLAlchemy (consultas, auditoría, eventos y sesiones)

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from core.store import (
    Consulta,
    Mutacion,
    StoreError,
    TABLA_AUDITORIA,
    TABLA_CODIGOS,
    TABLA_SERVICIOS,
    TABLA_SESIONES,
)

BASE = datetime(2024, 9, 12, 12, 0, tzinfo=timezone.utc)


def _servicio(**campos):
    datos = {
        "operator_name": "Ana",
        "technician_name": "Carlos",
        "company_name": "FibraSul",
        "contract_number": "C-1",
        "service_type": "Reparo",
        "general_comments": "ok",
    }
    datos.update(campos)
    return Mutacion(tabla=TABLA_SERVICIOS, accion="insert", datos=datos)


def _auditoria(store):
    return store.query(Consulta(tabla=TABLA_AUDITORIA, orden="created_at")).filas


def test_insert_asigna_id_y_created_at(store) -> None:
    antes = datetime.now(timezone.utc)
    fila = store.mutate(_servicio(created_at=BASE), actor_id="u1")
    assert fila["id"]
    # El timestamp lo asigna el store aunque venga en los datos
    assert fila["created_at"] >= antes - timedelta(seconds=1)
    assert fila["created_at"].tzinfo is not None
    assert fila["images"] == []


def test_insert_update_delete_dejan_auditoria(store) -> None:
    fila = store.mutate(_servicio(), actor_id="u1")
    store.mutate(
        Mutacion(tabla=TABLA_SERVICIOS, accion="update", clave=fila["id"], datos={"neighborhood": "Lapa"}),
        actor_id="u1",
    )
    store.mutate(Mutacion(tabla=TABLA_SERVICIOS, accion="delete", clave=fila["id"]), actor_id="u1")

    logs = _auditoria(store)
    assert [log["action"] for log in logs] == ["INSERT", "UPDATE", "DELETE"]
    assert all(log["record_id"] == fila["id"] and log["user_id"] == "u1" for log in logs)
    assert logs[0]["changes"]["new_data"]["contract_number"] == "C-1"
    assert logs[1]["changes"]["new_data"]["neighborhood"] == "Lapa"
    assert logs[2]["changes"]["deleted_record"]["id"] == fila["id"]


def test_auditoria_de_usuarios_omite_el_hash(store, crear_usuario) -> None:
    crear_usuario("ana@sic.test")
    log = _auditoria(store)[0]
    assert log["table_name"] == "users"
    assert "password_hash" not in log["changes"]["new_data"]
    assert log["changes"]["new_data"]["email"] == "ana@sic.test"


def test_tablas_no_auditadas_y_auditar_false(store) -> None:
    store.mutate(
        Mutacion(
            tabla=TABLA_CODIGOS,
            accion="insert",
            datos={"email": "a@b.c", "code": "123456", "used": False, "expires_at": BASE},
        )
    )
    fila = store.mutate(_servicio())
    store.mutate(
        Mutacion(tabla=TABLA_SERVICIOS, accion="update", clave=fila["id"], datos={"unit": "U9"}, auditar=False)
    )
    assert [log["action"] for log in _auditoria(store)] == ["INSERT"]


def test_delete_inexistente_devuelve_none(store) -> None:
    assert store.mutate(Mutacion(tabla=TABLA_SERVICIOS, accion="delete", clave="nada")) is None
    assert _auditoria(store) == []


def test_consulta_con_filtros_orden_y_conteo(store, insertar_registro) -> None:
    insertar_registro(BASE, contract_number="A")
    insertar_registro(BASE + timedelta(hours=1), contract_number="B", operator_name="")
    insertar_registro(BASE + timedelta(hours=2), contract_number="C")

    consulta = (
        Consulta(tabla=TABLA_SERVICIOS, orden="created_at", descendente=True)
        .where("created_at", "gte", BASE)
        .where("created_at", "lte", BASE + timedelta(hours=1))
    )
    filas = store.query(consulta).filas
    assert [f["contract_number"] for f in filas] == ["B", "A"]
    assert filas[0]["created_at"] == BASE + timedelta(hours=1)

    no_vacios = Consulta(tabla=TABLA_SERVICIOS).where("operator_name", "not_null").where("operator_name", "neq", "")
    assert len(store.query(no_vacios).filas) == 2

    posteriores = Consulta(tabla=TABLA_SERVICIOS).where("created_at", "gt", BASE + timedelta(hours=1))
    assert [f["contract_number"] for f in store.query(posteriores).filas] == ["C"]

    conteo = store.query(Consulta(tabla=TABLA_SERVICIOS, solo_conteo=True))
    assert conteo.conteo == 3 and conteo.filas == []


def test_consulta_con_columnas_y_limite(store, insertar_registro) -> None:
    for horas in range(3):
        insertar_registro(BASE + timedelta(hours=horas))
    filas = store.query(
        Consulta(tabla=TABLA_SERVICIOS, columnas=["id", "created_at"], orden="created_at", limite=2)
    ).filas
    assert len(filas) == 2
    assert set(filas[0]) == {"id", "created_at"}


def test_errores_de_consulta_son_store_error(store) -> None:
    with pytest.raises(StoreError):
        store.query(Consulta(tabla="inexistente"))
    with pytest.raises(StoreError):
        store.query(Consulta(tabla=TABLA_SERVICIOS).where("no_existe", "eq", 1))


def test_orden_por_columna_desconocida_es_store_error(store) -> None:
    with pytest.raises(StoreError):
        store.query(Consulta(tabla=TABLA_SERVICIOS, orden="no_existe"))


def test_falla_del_motor_se_envuelve(store) -> None:
    with store.engine.begin() as conn:
        conn.exec_driver_sql("DROP TABLE service_records")
    with pytest.raises(StoreError) as info:
        store.query(Consulta(tabla=TABLA_SERVICIOS))
    assert info.value.cause is not None


def test_mutaciones_publican_eventos(store) -> None:
    eventos = []
    sub = store.subscribe(TABLA_SERVICIOS, eventos.append)
    auditoria = []
    store.subscribe(TABLA_AUDITORIA, auditoria.append)

    fila = store.mutate(_servicio())
    store.mutate(Mutacion(tabla=TABLA_SERVICIOS, accion="delete", clave=fila["id"]))
    sub.cancel()
    store.mutate(_servicio())

    assert [e.accion for e in eventos] == ["insert", "delete"]
    assert len(auditoria) == 3


def test_get_session_valida_y_expirada(store, crear_usuario) -> None:
    usuario = crear_usuario("ana@sic.test")
    ahora = datetime.now(timezone.utc)
    for token, expira in (("vigente", ahora + timedelta(hours=1)), ("vencida", ahora - timedelta(minutes=1))):
        store.mutate(
            Mutacion(
                tabla=TABLA_SESIONES,
                accion="insert",
                datos={"token": token, "user_id": usuario["id"], "expires_at": expira},
            )
        )

    sesion = store.get_session("vigente")
    assert sesion is not None
    assert sesion.email == "ana@sic.test"
    assert sesion.user_id == usuario["id"]
    assert store.get_session("vencida") is None
    assert store.get_session("otro") is None
    assert store.get_session(None) is None
