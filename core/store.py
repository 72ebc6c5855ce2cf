# Nombre de archivo: store.py
# Ubicación de archivo: core/store.py
# Descripción: Contrato del store externo (consultas, mutaciones, cambios y sesión) y sus errores

"""Interfaz del colaborador de persistencia.

Cada componente recibe un ``RecordStore`` explícito en lugar de importar un
cliente global; en producción lo implementa ``SqlRecordStore`` y en pruebas
puede sustituirse por un doble.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Literal, Optional, Protocol

Operador = Literal["eq", "neq", "gt", "gte", "lte", "not_null"]
Accion = Literal["insert", "update", "delete"]

TABLA_SERVICIOS = "service_records"
TABLA_USUARIOS = "users"
TABLA_AUDITORIA = "audit_logs"
TABLA_PREGUNTAS = "security_questions"
TABLA_CODIGOS = "password_reset_codes"
TABLA_SESIONES = "auth_sessions"


class StoreError(Exception):
    """Fallo de transporte, permisos o consulta malformada en el store."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class FetchError(StoreError):
    """Fallo al obtener registros; el llamador ofrece reintento manual."""


@dataclass(slots=True)
class Filtro:
    campo: str
    operador: Operador
    valor: Any = None


@dataclass(slots=True)
class Consulta:
    """Filtro conjuntivo sobre una única tabla."""

    tabla: str
    filtros: List[Filtro] = field(default_factory=list)
    columnas: Optional[List[str]] = None
    orden: Optional[str] = None
    descendente: bool = False
    limite: Optional[int] = None
    solo_conteo: bool = False

    def where(self, campo: str, operador: Operador, valor: Any = None) -> "Consulta":
        self.filtros.append(Filtro(campo, operador, valor))
        return self


@dataclass(slots=True)
class ResultadoConsulta:
    filas: List[Dict[str, Any]]
    conteo: Optional[int] = None


@dataclass(slots=True)
class Mutacion:
    tabla: str
    accion: Accion
    datos: Dict[str, Any] = field(default_factory=dict)
    clave: Any = None
    auditar: bool = True


@dataclass(slots=True)
class EventoCambio:
    """Aviso genérico de cambio; no lleva el diff."""

    tabla: str
    accion: Accion


@dataclass(slots=True)
class SesionActiva:
    token: str
    user_id: str
    email: str
    expires_at: datetime


class Suscripcion(Protocol):
    def cancel(self) -> None:
        """Deja de recibir eventos."""


class RecordStore(Protocol):
    """Contrato mínimo que consume la aplicación."""

    def query(self, consulta: Consulta) -> ResultadoConsulta:
        """Ejecuta la consulta; lanza ``StoreError`` ante cualquier fallo."""

    def mutate(self, mutacion: Mutacion, *, actor_id: str | None = None) -> Optional[Dict[str, Any]]:
        """Inserta, actualiza o borra una fila y devuelve la fila resultante."""

    def subscribe(self, tabla: str, callback: Callable[[EventoCambio], None]) -> Suscripcion:
        """Registra un callback para cambios en la tabla."""

    def get_session(self, token: str | None) -> Optional[SesionActiva]:
        """Devuelve la sesión vigente asociada al token, si existe."""


__all__ = [
    "Consulta",
    "EventoCambio",
    "FetchError",
    "Filtro",
    "Mutacion",
    "RecordStore",
    "ResultadoConsulta",
    "SesionActiva",
    "StoreError",
    "Suscripcion",
    "TABLA_AUDITORIA",
    "TABLA_CODIGOS",
    "TABLA_PREGUNTAS",
    "TABLA_SERVICIOS",
    "TABLA_SESIONES",
    "TABLA_USUARIOS",
]
