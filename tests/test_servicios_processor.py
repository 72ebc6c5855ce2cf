# Nombre de archivo: test_servicios_processor.py
# Ubicación de archivo: tests/test_servicios_processor.py
# Descripción: Pruebas de duplicados, estadísticas por operador y utilidades de historial

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from itertools import count
from zoneinfo import ZoneInfo

import pytest

from modules.informes_servicios import processor
from modules.informes_servicios.schemas import ServiceRecord

BASE = datetime(2024, 9, 12, 12, 0, tzinfo=timezone.utc)
_ids = count(1)


def _registro(contrato: str = "C-1", minutos: float = 0, **campos) -> ServiceRecord:
    datos = {
        "id": f"r{next(_ids)}",
        "contract_number": contrato,
        "created_at": BASE + timedelta(minutes=minutos),
        "operator_name": "Ana",
        **campos,
    }
    return ServiceRecord(**datos)


def _flags(anotados):
    return [r.is_duplicate for r in anotados]


def test_contrato_unico_nunca_es_duplicado() -> None:
    registros = [_registro("C-1"), _registro("C-2", 5), _registro("C-3", 10)]
    assert _flags(processor.marcar_duplicados(registros)) == [False, False, False]


def test_59_minutos_es_duplicado_y_60_no() -> None:
    cerca = [_registro("C-1", 0), _registro("C-1", 59)]
    assert _flags(processor.marcar_duplicados(cerca)) == [True, True]

    exacto = [_registro("C-1", 0), _registro("C-1", 60)]
    assert _flags(processor.marcar_duplicados(exacto)) == [False, False]


def test_trio_solo_marca_los_cercanos() -> None:
    # A y B a 30 min; C a 3 h de ambos
    a = _registro("C-9", 0)
    b = _registro("C-9", 30)
    c = _registro("C-9", 180)
    assert _flags(processor.marcar_duplicados([c, b, a])) == [False, True, True]


def test_orden_de_entrada_se_conserva() -> None:
    registros = [_registro("C-1", 120), _registro("C-2", 60), _registro("C-1", 100)]
    anotados = processor.marcar_duplicados(registros)
    assert [r.id for r in anotados] == [r.id for r in registros]
    assert _flags(anotados) == [True, False, True]


def test_marcar_duplicados_es_idempotente() -> None:
    registros = [_registro("C-1", 0), _registro("C-1", 30), _registro("C-2", 0)]
    una_vez = processor.marcar_duplicados(registros)
    dos_veces = processor.marcar_duplicados(una_vez)
    assert _flags(una_vez) == _flags(dos_veces)


def test_mismo_id_repetido_no_cuenta_como_otro_registro() -> None:
    original = _registro("C-1", 0)
    copia = original.model_copy()
    lejano = _registro("C-1", 300)
    assert _flags(processor.marcar_duplicados([original, copia, lejano])) == [False, False, False]


def test_estadisticas_ana_y_bob() -> None:
    registros = [
        _registro(operator_name="Ana"),
        _registro(operator_name="Bob"),
        _registro(operator_name="Ana"),
    ]
    stats = processor.calcular_estadisticas_operadores(registros, 7)
    assert [s.operator_name for s in stats] == ["Ana", "Bob"]
    assert [s.total_services for s in stats] == [2, 1]
    assert round(stats[0].percentage, 1) == 66.7
    assert round(stats[0].daily_average, 3) == 0.286
    assert round(stats[1].percentage, 1) == 33.3
    assert round(stats[1].daily_average, 3) == 0.143


def test_estadisticas_empates_por_aparicion_y_sin_vacios() -> None:
    registros = [
        _registro(operator_name="Bob"),
        _registro(operator_name=""),
        _registro(operator_name="Ana"),
        _registro(operator_name="ana"),
    ]
    stats = processor.calcular_estadisticas_operadores(registros, 1)
    assert [s.operator_name for s in stats] == ["Bob", "Ana", "ana"]
    assert sum(s.percentage for s in stats) == pytest.approx(100.0)


def test_estadisticas_sin_registros() -> None:
    assert processor.calcular_estadisticas_operadores([], 30) == []
    with pytest.raises(ValueError):
        processor.calcular_estadisticas_operadores([], 0)


def test_opciones_operadores_normalizadas() -> None:
    registros = [
        _registro(operator_name="ANA"),
        _registro(operator_name="ana"),
        _registro(operator_name="bob"),
        _registro(operator_name=""),
    ]
    assert processor.opciones_operadores(registros) == ["Ana", "Bob"]


def test_buscar_en_campos_del_historial() -> None:
    registros = [
        _registro(neighborhood="Centro", company_name="FibraSul"),
        _registro(neighborhood="Lapa", street="Rua das Flores"),
        _registro("X-77"),
    ]
    assert len(processor.buscar(registros, "fibrasul")) == 1
    assert len(processor.buscar(registros, "FLORES")) == 1
    assert len(processor.buscar(registros, "x-77")) == 1
    assert len(processor.buscar(registros, "  ")) == 3


def test_paginar() -> None:
    items = list(range(23))
    pagina, numero, total = processor.paginar(items, 3, 10)
    assert pagina == [20, 21, 22]
    assert (numero, total) == (3, 3)
    assert processor.paginar([], 1, 10) == ([], 1, 0)


@pytest.mark.parametrize(
    "valor, esperado",
    [("12", 12), (" 7 vagas", 7), ("3.5", 3), ("abc", 0), ("", 0), (None, 0), ("-2", -2)],
)
def test_parse_vagas(valor, esperado) -> None:
    assert processor.parse_vagas(valor) == esperado


def test_eficiencia_vagas() -> None:
    con_vagas = [_registro(available_slots="4"), _registro(available_slots="0"), _registro(available_slots="x")]
    assert processor.eficiencia_vagas(con_vagas) == 100
    assert processor.eficiencia_vagas([_registro(available_slots="0")]) == 0
    assert processor.eficiencia_vagas([]) == 0


def test_ranking_operadores_sin_normalizar() -> None:
    registros = [_registro(operator_name="Ana"), _registro(operator_name="ana"), _registro(operator_name="Ana")]
    ranking = processor.ranking_operadores(registros)
    assert [(o.name, o.total) for o in ranking] == [("Ana", 2), ("ana", 1)]


def test_conteo_diario_y_calendario() -> None:
    sp = ZoneInfo("America/Sao_Paulo")
    registros = [
        _registro(created_at=datetime(2024, 9, 2, 2, 0, tzinfo=timezone.utc)),  # 1/9 local
        _registro(created_at=datetime(2024, 9, 2, 15, 0, tzinfo=timezone.utc)),
        _registro(created_at=datetime(2024, 9, 2, 16, 0, tzinfo=timezone.utc)),
    ]
    conteos = processor.conteo_diario(registros, sp)
    assert conteos == {"2024-09-01": 1, "2024-09-02": 2}

    dias = processor.construir_calendario(2024, 9, conteos, hoy=date(2024, 9, 12), seleccionado=date(2024, 9, 2))
    assert len(dias) % 7 == 0
    assert dias[0].fecha.weekday() == 0
    assert dias[0].fecha == date(2024, 8, 26) and not dias[0].del_mes
    por_fecha = {d.fecha: d for d in dias}
    assert por_fecha[date(2024, 9, 2)].servicios == 2
    assert por_fecha[date(2024, 9, 2)].seleccionado
    assert por_fecha[date(2024, 9, 12)].es_hoy
    assert dias[-1].fecha.weekday() == 6
