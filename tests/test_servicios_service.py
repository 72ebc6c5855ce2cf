# Nombre de archivo: test_servicios_service.py
# Ubicación de archivo: tests/test_servicios_service.py
# Descripción: Pruebas del flujo completo de historial, eficiencia, exportación, dashboard y calendario

from __future__ import annotations

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from core.store import FetchError
from modules.informes_servicios import (
    ReportConfig,
    generar_exportacion,
    obtener_calendario,
    obtener_eficiencia,
    obtener_historial,
    obtener_resumen_dashboard,
)
from modules.informes_servicios.fetcher import fetch_service_records
from modules.informes_servicios.schemas import FiltrosHistorial, RangoFechas

SP = ZoneInfo("America/Sao_Paulo")
AHORA = datetime(2024, 9, 12, 15, 30, tzinfo=SP)


@pytest.fixture
def config(tmp_path) -> ReportConfig:
    return ReportConfig(reports_dir=tmp_path / "reports", timezone="America/Sao_Paulo")


@pytest.fixture
def semana(insertar_registro):
    """Registros de la semana del 09/09/2024 y uno del mes anterior."""

    insertar_registro(datetime(2024, 9, 9, 8, 0, tzinfo=SP), operator_name="Ana", contract_number="K-1")
    insertar_registro(datetime(2024, 9, 9, 8, 40, tzinfo=SP), operator_name="Bob", contract_number="K-1")
    insertar_registro(datetime(2024, 9, 12, 9, 0, tzinfo=SP), operator_name="Ana", contract_number="K-2")
    insertar_registro(datetime(2024, 9, 12, 23, 50, tzinfo=SP), operator_name="", contract_number="K-3")
    insertar_registro(datetime(2024, 8, 20, 10, 0, tzinfo=SP), operator_name="Ana", contract_number="K-4")


def test_fetch_filtra_por_rango_y_tipo(store, semana, insertar_registro) -> None:
    insertar_registro(datetime(2024, 9, 10, 10, 0, tzinfo=SP), service_type="Clean Up", contract_number="K-5")
    rango = RangoFechas(start=datetime(2024, 9, 9, tzinfo=SP), end=datetime(2024, 9, 10, 23, 59, tzinfo=SP))
    registros = fetch_service_records(store, rango)
    assert [r.contract_number for r in registros] == ["K-5", "K-1", "K-1"]
    assert len(fetch_service_records(store, rango, service_type="Clean Up")) == 1
    assert len(fetch_service_records(store)) == 6


def test_fetch_con_store_roto() -> None:
    from core.store import StoreError

    class _Roto:
        def query(self, consulta):
            raise StoreError("sem conexão")

    with pytest.raises(FetchError):
        fetch_service_records(_Roto())


def test_historial_de_la_semana(store, semana, config) -> None:
    pagina = obtener_historial(store, FiltrosHistorial(periodo="week"), config, ahora=AHORA)
    assert pagina.total == 4
    assert [r.is_duplicate for r in pagina.items if r.contract_number == "K-1"] == [True, True]
    assert pagina.operadores == ["Ana", "Bob"]


def test_eficiencia_semanal_excluye_operador_vacio(store, semana, config) -> None:
    resultado = obtener_eficiencia(store, "week", config, ahora=AHORA)
    assert resultado.dias_en_periodo == 7
    assert resultado.total_servicios == 3
    ana, bob = resultado.operadores
    assert (ana.operator_name, ana.total_services) == ("Ana", 2)
    assert round(ana.daily_average, 3) == 0.286
    assert round(bob.percentage, 1) == 33.3


def test_eficiencia_con_fecha_seleccionada(store, semana, config) -> None:
    resultado = obtener_eficiencia(store, "month", config, fecha=date(2024, 9, 12), ahora=AHORA)
    assert resultado.dias_en_periodo == 1
    assert [o.operator_name for o in resultado.operadores] == ["Ana"]


def test_exportacion_guardada(store, semana, config) -> None:
    resultado = generar_exportacion(
        store, FiltrosHistorial(periodo="month", busqueda="bob"), config, ahora=AHORA, guardar=True
    )
    assert resultado.nombre == "servicos_12-09-2024.xlsx"
    assert resultado.total_filas == 1
    assert resultado.path == config.reports_dir / resultado.nombre
    assert resultado.path.read_bytes() == resultado.contenido


def test_dashboard(store, semana, config) -> None:
    resumen = obtener_resumen_dashboard(store, config, ahora=AHORA + timedelta(days=1))
    assert resumen.total_servicios == 5
    assert len(resumen.recientes) == 5
    assert resumen.recientes[0].contract_number == "K-3"
    assert resumen.eficiencia == 100
    assert resumen.operadores[0].name == "Ana" and resumen.operadores[0].total == 3


def test_calendario_cuenta_el_mes_mostrado(store, semana, config) -> None:
    calendario = obtener_calendario(store, 2024, 9, config, seleccionado=date(2024, 9, 9), ahora=AHORA)
    assert calendario.conteos == {"2024-09-09": 2, "2024-09-12": 2}
    seleccionados = [d for d in calendario.dias if d.seleccionado]
    assert len(seleccionados) == 1 and seleccionados[0].servicios == 2

    agosto = obtener_calendario(store, 2024, 8, config, ahora=AHORA)
    assert agosto.conteos == {"2024-08-20": 1}
    with pytest.raises(ValueError):
        obtener_calendario(store, 2024, 13, config)
