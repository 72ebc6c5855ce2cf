# Nombre de archivo: registros.py
# Ubicación de archivo: core/services/registros.py
# Descripción: Alta, edición y borrado de registros de servicio con validaciones y aviso de duplicado

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from core.services.auth_service import UsuarioActual
from core.services.errors import DuplicadoPendiente, NoEncontrado, PermisoDenegado, RegistroInvalido
from core.store import Mutacion, RecordStore, TABLA_SERVICIOS
from modules.informes_servicios import config as servicios_config
from modules.informes_servicios.fetcher import existe_duplicado_reciente
from modules.informes_servicios.schemas import (
    ServiceRecord,
    ServiceRecordCreate,
    ServiceRecordUpdate,
    TipoServicio,
)

logger = logging.getLogger(__name__)

TIPOS_VALIDOS = frozenset(t.value for t in TipoServicio)

# Columnas NOT NULL que una edición no puede vaciar
CAMPOS_OBLIGATORIOS = ("operator_name", "technician_name", "company_name", "contract_number", "service_type")


def operador_por_defecto(email: str) -> str:
    """Nombre sugerido a partir del correo: ``ana.souza@x`` → ``Ana``."""

    nombre = email.split("@")[0].split(".")[0]
    return nombre[:1].upper() + nombre[1:]


def _validar_tipo(service_type: str) -> None:
    if service_type not in TIPOS_VALIDOS:
        raise RegistroInvalido(f"Tipo de serviço inválido: {service_type}")


def _validar_imagenes(imagenes) -> None:
    if len(imagenes) > servicios_config.MAX_IMAGENES:
        raise RegistroInvalido(f"Máximo de {servicios_config.MAX_IMAGENES} imagens permitido")


def _exigir_admin(usuario: UsuarioActual, accion: str) -> None:
    if not usuario.es_admin:
        logger.warning("action=%s result=denied user_id=%s role=%s", accion, usuario.id, usuario.role)
        raise PermisoDenegado("Apenas administradores podem alterar registros")


def crear_registro(
    store: RecordStore,
    datos: ServiceRecordCreate,
    usuario: UsuarioActual,
    *,
    confirmar_duplicado: bool = False,
    ahora: Optional[datetime] = None,
) -> ServiceRecord:
    """Guarda una visita nueva.

    Un contrato ya registrado en la última hora no se rechaza: la primera vez se
    lanza ``DuplicadoPendiente`` y el alta solo procede con ``confirmar_duplicado``.
    """

    if usuario.es_visitante:
        raise PermisoDenegado("Visitantes não podem registrar serviços")
    if not (datos.general_comments or "").strip():
        raise RegistroInvalido('O campo "Espelho do Clean Up" é obrigatório')
    if not datos.contract_number.strip():
        raise RegistroInvalido("O número do contrato é obrigatório")
    _validar_tipo(datos.service_type)
    _validar_imagenes(datos.images)

    contrato = datos.contract_number.strip()
    if not confirmar_duplicado and existe_duplicado_reciente(store, contrato, ahora):
        logger.info("action=crear_registro stage=duplicate_warning contrato=%s", contrato)
        raise DuplicadoPendiente(contrato, servicios_config.AVISO_DUPLICADO)

    fila = datos.model_dump()
    fila["contract_number"] = contrato
    fila["operator_name"] = fila["operator_name"].strip() or operador_por_defecto(usuario.email)
    fila["created_by"] = usuario.id
    creado = store.mutate(Mutacion(tabla=TABLA_SERVICIOS, accion="insert", datos=fila), actor_id=usuario.id)
    registro = ServiceRecord.model_validate(creado)
    logger.info(
        "action=crear_registro stage=ok id=%s contrato=%s confirmado=%s",
        registro.id,
        contrato,
        confirmar_duplicado,
    )
    return registro


def actualizar_registro(
    store: RecordStore,
    record_id: str,
    cambios: ServiceRecordUpdate,
    usuario: UsuarioActual,
) -> ServiceRecord:
    """Edición de administrador; id y timestamp de creación nunca cambian."""

    _exigir_admin(usuario, "actualizar_registro")
    datos = cambios.model_dump(exclude_unset=True)
    for campo in CAMPOS_OBLIGATORIOS:
        if campo in datos and not (datos[campo] or "").strip():
            raise RegistroInvalido(f"O campo {campo} não pode ficar vazio")
    if "service_type" in datos:
        _validar_tipo(datos["service_type"])
    if "images" in datos:
        if datos["images"] is None:
            raise RegistroInvalido("A lista de imagens não pode ser nula")
        _validar_imagenes(datos["images"])

    fila = store.mutate(
        Mutacion(tabla=TABLA_SERVICIOS, accion="update", clave=record_id, datos=datos),
        actor_id=usuario.id,
    )
    if fila is None:
        raise NoEncontrado("Registro não encontrado")
    logger.info("action=actualizar_registro stage=ok id=%s campos=%s", record_id, sorted(datos))
    return ServiceRecord.model_validate(fila)


def eliminar_registro(store: RecordStore, record_id: str, usuario: UsuarioActual) -> ServiceRecord:
    _exigir_admin(usuario, "eliminar_registro")
    fila = store.mutate(
        Mutacion(tabla=TABLA_SERVICIOS, accion="delete", clave=record_id),
        actor_id=usuario.id,
    )
    if fila is None:
        raise NoEncontrado("Registro não encontrado")
    logger.info("action=eliminar_registro stage=ok id=%s", record_id)
    return ServiceRecord.model_validate(fila)


__all__ = ["actualizar_registro", "crear_registro", "eliminar_registro", "operador_por_defecto"]
