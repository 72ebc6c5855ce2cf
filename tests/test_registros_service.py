# Nombre de archivo: test_registros_service.py
# Ubicación de archivo: tests/test_registros_service.py
# Descripción: Pruebas de alta, edición y borrado de registros de servicio

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from core.services.auth_service import UsuarioActual
from core.services.errors import DuplicadoPendiente, NoEncontrado, PermisoDenegado, RegistroInvalido
from core.services.registros import (
    actualizar_registro,
    crear_registro,
    eliminar_registro,
    operador_por_defecto,
)
from core.store import Consulta, TABLA_AUDITORIA, TABLA_SERVICIOS
from modules.informes_servicios.fetcher import existe_duplicado_reciente
from modules.informes_servicios.schemas import ServiceRecordCreate, ServiceRecordUpdate

ADMIN = UsuarioActual(id="adm", email="admin@sic.test", role="admin")
OPERADOR = UsuarioActual(id="op", email="maria.souza@sic.test", role="user")
VISITANTE = UsuarioActual(id="vis", email="vis@sic.test", role="visitante")


def _datos(**campos) -> ServiceRecordCreate:
    base = {
        "operator_name": "Ana",
        "technician_name": "Carlos",
        "company_name": "FibraSul",
        "contract_number": "C-100",
        "service_type": "Ativação",
        "neighborhood": "Centro",
        "general_comments": "Cliente ativado",
    }
    base.update(campos)
    return ServiceRecordCreate(**base)


def test_operador_por_defecto() -> None:
    assert operador_por_defecto("maria.souza@sic.test") == "Maria"
    assert operador_por_defecto("joao@sic.test") == "Joao"


def test_alta_normal(store) -> None:
    registro = crear_registro(store, _datos(operator_name=""), OPERADOR)
    assert registro.operator_name == "Maria"
    assert registro.created_by == "op"
    assert registro.created_at.tzinfo is not None

    logs = store.query(Consulta(tabla=TABLA_AUDITORIA)).filas
    assert logs[0]["action"] == "INSERT" and logs[0]["user_id"] == "op"


def test_visitante_no_puede_registrar(store) -> None:
    with pytest.raises(PermisoDenegado):
        crear_registro(store, _datos(), VISITANTE)


@pytest.mark.parametrize(
    "campos",
    [
        {"general_comments": "   "},
        {"general_comments": None},
        {"contract_number": " "},
        {"service_type": "Instalação"},
        {"images": [f"/storage/img{i}.jpg" for i in range(7)]},
    ],
)
def test_validaciones_de_alta(store, campos) -> None:
    with pytest.raises(RegistroInvalido):
        crear_registro(store, _datos(**campos), OPERADOR)
    assert store.query(Consulta(tabla=TABLA_SERVICIOS, solo_conteo=True)).conteo == 0


def test_comentario_obligatorio_mensaje() -> None:
    with pytest.raises(RegistroInvalido, match="Espelho do Clean Up"):
        crear_registro(None, _datos(general_comments=""), OPERADOR)


def test_duplicado_requiere_confirmacion(store) -> None:
    crear_registro(store, _datos(), OPERADOR)

    with pytest.raises(DuplicadoPendiente) as info:
        crear_registro(store, _datos(), OPERADOR)
    assert info.value.contract_number == "C-100"

    confirmado = crear_registro(store, _datos(), OPERADOR, confirmar_duplicado=True)
    assert confirmado.contract_number == "C-100"
    assert store.query(Consulta(tabla=TABLA_SERVICIOS, solo_conteo=True)).conteo == 2


def test_contrato_de_hace_mas_de_una_hora_no_avisa(store, insertar_registro) -> None:
    ahora = datetime.now(timezone.utc)
    insertar_registro(ahora - timedelta(minutes=61), contract_number="C-100")
    assert existe_duplicado_reciente(store, "C-100", ahora) is False
    crear_registro(store, _datos(), OPERADOR, ahora=ahora)

    insertar_registro(ahora - timedelta(minutes=10), contract_number="C-200")
    assert existe_duplicado_reciente(store, "C-200", ahora) is True


def test_contrato_de_exactamente_una_hora_todavia_avisa(store, insertar_registro) -> None:
    ahora = datetime.now(timezone.utc)
    insertar_registro(ahora - timedelta(hours=1), contract_number="C-300")
    assert existe_duplicado_reciente(store, "C-300", ahora) is True
    with pytest.raises(DuplicadoPendiente):
        crear_registro(store, _datos(contract_number="C-300"), OPERADOR, ahora=ahora)


def test_actualizar_solo_admin(store) -> None:
    registro = crear_registro(store, _datos(), OPERADOR)
    with pytest.raises(PermisoDenegado):
        actualizar_registro(store, registro.id, ServiceRecordUpdate(neighborhood="Lapa"), OPERADOR)

    editado = actualizar_registro(store, registro.id, ServiceRecordUpdate(neighborhood="Lapa"), ADMIN)
    assert editado.neighborhood == "Lapa"
    assert editado.contract_number == "C-100"
    assert editado.created_at == registro.created_at

    with pytest.raises(RegistroInvalido):
        actualizar_registro(store, registro.id, ServiceRecordUpdate(service_type="Outro"), ADMIN)
    with pytest.raises(NoEncontrado):
        actualizar_registro(store, "nada", ServiceRecordUpdate(unit="U2"), ADMIN)


@pytest.mark.parametrize("campo", ["operator_name", "technician_name", "company_name", "contract_number", "service_type"])
def test_actualizar_no_vacia_columnas_obligatorias(store, campo) -> None:
    registro = crear_registro(store, _datos(), OPERADOR)
    for valor in (None, "", "   "):
        with pytest.raises(RegistroInvalido):
            actualizar_registro(store, registro.id, ServiceRecordUpdate(**{campo: valor}), ADMIN)
    assert store.query(Consulta(tabla=TABLA_SERVICIOS).where("id", "eq", registro.id)).filas[0][campo]


def test_eliminar_solo_admin(store) -> None:
    registro = crear_registro(store, _datos(), OPERADOR)
    with pytest.raises(PermisoDenegado):
        eliminar_registro(store, registro.id, OPERADOR)

    eliminado = eliminar_registro(store, registro.id, ADMIN)
    assert eliminado.id == registro.id
    with pytest.raises(NoEncontrado):
        eliminar_registro(store, registro.id, ADMIN)

    borrado = [log for log in store.query(Consulta(tabla=TABLA_AUDITORIA)).filas if log["action"] == "DELETE"]
    assert borrado[0]["changes"]["deleted_record"]["contract_number"] == "C-100"
