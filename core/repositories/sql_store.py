# Nombre de archivo: sql_store.py
# Ubicación de archivo: core/repositories/sql_store.py
# Descripción: Implementación del store sobre SQLAlchemy (consultas, mutaciones auditadas, cambios y sesiones)

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, Optional

from sqlalchemy import Table, func, select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from core.realtime import ChangeNotifier
from core.store import (
    Consulta,
    EventoCambio,
    Filtro,
    Mutacion,
    ResultadoConsulta,
    SesionActiva,
    StoreError,
    TABLA_AUDITORIA,
    TABLA_SERVICIOS,
    TABLA_SESIONES,
    TABLA_USUARIOS,
)
from db.base import Base, load_models

logger = logging.getLogger(__name__)

# Tablas cuyas mutaciones dejan rastro en audit_logs
TABLAS_AUDITADAS = frozenset({TABLA_SERVICIOS, TABLA_USUARIOS})

_ACCION_AUDITORIA = {"insert": "INSERT", "update": "UPDATE", "delete": "DELETE"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: Any) -> Any:
    """Los drivers sin zona horaria (SQLite) devuelven datetimes naive en UTC."""

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    return value


def _jsonable(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


class SqlRecordStore:
    """Store relacional que cumple el contrato ``RecordStore``."""

    def __init__(self, engine: Engine, notifier: ChangeNotifier | None = None) -> None:
        load_models()
        self.engine = engine
        self.notifier = notifier or ChangeNotifier()
        self._tablas: Dict[str, Table] = dict(Base.metadata.tables)

    def create_all(self) -> None:
        Base.metadata.create_all(self.engine)

    # --- Consultas -------------------------------------------------------------------

    def _tabla(self, nombre: str) -> Table:
        try:
            return self._tablas[nombre]
        except KeyError as exc:
            raise StoreError(f"Tabla desconocida: {nombre}") from exc

    @staticmethod
    def _pk(tabla: Table) -> str:
        return list(tabla.primary_key.columns)[0].name

    def _condicion(self, tabla: Table, filtro: Filtro):
        try:
            columna = tabla.c[filtro.campo]
        except KeyError as exc:
            raise StoreError(f"Columna desconocida: {tabla.name}.{filtro.campo}") from exc
        valor = _as_utc(filtro.valor)
        if filtro.operador == "eq":
            return columna == valor
        if filtro.operador == "neq":
            return columna != valor
        if filtro.operador == "gt":
            return columna > valor
        if filtro.operador == "gte":
            return columna >= valor
        if filtro.operador == "lte":
            return columna <= valor
        if filtro.operador == "not_null":
            return columna.is_not(None)
        raise StoreError(f"Operador no soportado: {filtro.operador}")

    def query(self, consulta: Consulta) -> ResultadoConsulta:
        tabla = self._tabla(consulta.tabla)
        condiciones = [self._condicion(tabla, f) for f in consulta.filtros]
        try:
            with self.engine.connect() as conn:
                if consulta.solo_conteo:
                    stmt = select(func.count()).select_from(tabla).where(*condiciones)
                    conteo = int(conn.execute(stmt).scalar_one())
                    return ResultadoConsulta(filas=[], conteo=conteo)

                if consulta.columnas:
                    try:
                        columnas = [tabla.c[c] for c in consulta.columnas]
                    except KeyError as exc:
                        raise StoreError(f"Columna desconocida en {tabla.name}: {exc}") from exc
                    stmt = select(*columnas)
                else:
                    stmt = select(tabla)
                stmt = stmt.where(*condiciones)
                if consulta.orden:
                    try:
                        columna_orden = tabla.c[consulta.orden]
                    except KeyError as exc:
                        raise StoreError(f"Columna de orden desconocida: {tabla.name}.{consulta.orden}") from exc
                    stmt = stmt.order_by(columna_orden.desc() if consulta.descendente else columna_orden.asc())
                if consulta.limite is not None:
                    stmt = stmt.limit(consulta.limite)
                rows = conn.execute(stmt).mappings().all()
        except SQLAlchemyError as exc:
            logger.warning("action=store_query tabla=%s error=%s", consulta.tabla, exc)
            raise StoreError(f"Falha ao consultar {consulta.tabla}", exc) from exc

        filas = [{k: _as_utc(v) for k, v in row.items()} for row in rows]
        logger.debug("action=store_query tabla=%s filtros=%s filas=%s", consulta.tabla, len(condiciones), len(filas))
        return ResultadoConsulta(filas=filas, conteo=len(filas))

    # --- Mutaciones ------------------------------------------------------------------

    def _leer(self, conn: Connection, tabla: Table, clave: Any) -> Optional[Dict[str, Any]]:
        pk = tabla.c[self._pk(tabla)]
        row = conn.execute(select(tabla).where(pk == clave)).mappings().first()
        if row is None:
            return None
        return {k: _as_utc(v) for k, v in row.items()}

    def _auditar(
        self,
        conn: Connection,
        tabla: Table,
        accion: str,
        clave: Any,
        fila: Dict[str, Any],
        actor_id: str | None,
    ) -> None:
        if tabla.name not in TABLAS_AUDITADAS:
            return
        datos = {k: v for k, v in fila.items() if k != "password_hash"}
        cambios = {"deleted_record": _jsonable(datos)} if accion == "delete" else {"new_data": _jsonable(datos)}
        conn.execute(
            self._tabla(TABLA_AUDITORIA).insert().values(
                id=str(uuid.uuid4()),
                user_id=actor_id,
                action=_ACCION_AUDITORIA[accion],
                table_name=tabla.name,
                record_id=str(clave),
                changes=cambios,
                created_at=_utcnow(),
            )
        )

    def mutate(self, mutacion: Mutacion, *, actor_id: str | None = None) -> Optional[Dict[str, Any]]:
        tabla = self._tabla(mutacion.tabla)
        pk_name = self._pk(tabla)
        datos = {k: _as_utc(v) for k, v in mutacion.datos.items() if k in tabla.c}
        resultado: Optional[Dict[str, Any]] = None
        try:
            with self.engine.begin() as conn:
                if mutacion.accion == "insert":
                    if pk_name == "id" and not datos.get("id"):
                        datos["id"] = str(uuid.uuid4())
                    if "created_at" in tabla.c and (tabla.name == TABLA_SERVICIOS or "created_at" not in datos):
                        # El timestamp de creación lo asigna siempre el store
                        datos["created_at"] = _utcnow()
                    clave = datos.get(pk_name)
                    conn.execute(tabla.insert().values(**datos))
                    resultado = self._leer(conn, tabla, clave)
                elif mutacion.accion == "update":
                    clave = mutacion.clave
                    datos.pop(pk_name, None)
                    if tabla.name == TABLA_SERVICIOS:
                        datos.pop("created_at", None)
                    if datos:
                        conn.execute(tabla.update().where(tabla.c[pk_name] == clave).values(**datos))
                    resultado = self._leer(conn, tabla, clave)
                elif mutacion.accion == "delete":
                    clave = mutacion.clave
                    resultado = self._leer(conn, tabla, clave)
                    if resultado is not None:
                        conn.execute(tabla.delete().where(tabla.c[pk_name] == clave))
                else:
                    raise StoreError(f"Acción no soportada: {mutacion.accion}")

                if resultado is not None and mutacion.auditar:
                    self._auditar(conn, tabla, mutacion.accion, clave, resultado, actor_id)
        except SQLAlchemyError as exc:
            logger.warning(
                "action=store_mutate tabla=%s accion=%s error=%s", mutacion.tabla, mutacion.accion, exc
            )
            raise StoreError(f"Falha ao gravar em {mutacion.tabla}", exc) from exc

        if resultado is not None:
            logger.info(
                "action=store_mutate tabla=%s accion=%s clave=%s actor=%s",
                mutacion.tabla,
                mutacion.accion,
                clave,
                actor_id,
            )
            self.notifier.publish(EventoCambio(tabla=mutacion.tabla, accion=mutacion.accion))
            if mutacion.auditar and tabla.name in TABLAS_AUDITADAS:
                self.notifier.publish(EventoCambio(tabla=TABLA_AUDITORIA, accion="insert"))
        return resultado

    # --- Cambios y sesión ------------------------------------------------------------

    def subscribe(self, tabla: str, callback: Callable[[EventoCambio], None]):
        return self.notifier.subscribe(tabla, callback)

    def get_session(self, token: str | None) -> Optional[SesionActiva]:
        if not token:
            return None
        sesiones = self._tabla(TABLA_SESIONES)
        usuarios = self._tabla(TABLA_USUARIOS)
        stmt = (
            select(sesiones.c.token, sesiones.c.user_id, sesiones.c.expires_at, usuarios.c.email)
            .join(usuarios, usuarios.c.id == sesiones.c.user_id)
            .where(sesiones.c.token == token)
        )
        try:
            with self.engine.connect() as conn:
                row = conn.execute(stmt).mappings().first()
        except SQLAlchemyError as exc:
            logger.warning("action=store_get_session error=%s", exc)
            raise StoreError("Falha ao verificar a sessão", exc) from exc
        if row is None:
            return None
        expires_at = _as_utc(row["expires_at"])
        if expires_at <= _utcnow():
            return None
        return SesionActiva(
            token=row["token"],
            user_id=row["user_id"],
            email=row["email"],
            expires_at=expires_at,
        )


__all__ = ["SqlRecordStore", "TABLAS_AUDITADAS"]
