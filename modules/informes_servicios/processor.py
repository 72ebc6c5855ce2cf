# Nombre de archivo: processor.py
# Ubicación de archivo: modules/informes_servicios/processor.py
# Descripción: Detección de duplicados, estadísticas por operador y utilidades de historial/calendario

import calendar
import logging
import math
import re
from collections import Counter
from datetime import date, timedelta, tzinfo
from typing import Dict, List, Optional, Sequence, Tuple, TypeVar

from .config import CAMPOS_BUSQUEDA, VENTANA_DUPLICADO
from .schemas import DiaCalendario, OperadorTotal, OperatorStat, RegistroAnotado, ServiceRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ENTERO_INICIAL = re.compile(r"^\s*([+-]?\d+)")


def parse_vagas(valor: Optional[str]) -> int:
    """Interpreta las vagas como entero tomando los dígitos iniciales; 0 si no hay."""

    if not valor:
        return 0
    match = _ENTERO_INICIAL.match(str(valor))
    return int(match.group(1)) if match else 0


def _vecino_distinto(orden: List[ServiceRecord], pos: int, paso: int) -> Optional[ServiceRecord]:
    actual = orden[pos]
    pos += paso
    while 0 <= pos < len(orden):
        if orden[pos].id != actual.id:
            return orden[pos]
        pos += paso
    return None


def marcar_duplicados(
    registros: Sequence[ServiceRecord],
    ventana: timedelta = VENTANA_DUPLICADO,
) -> List[RegistroAnotado]:
    """Marca cada registro que comparte contrato con otro creado a menos de ``ventana``.

    Dentro de cada contrato los registros se ordenan por timestamp: la distancia
    mínima a otro registro siempre la da un vecino inmediato. La comparación es
    estricta (exactamente una hora no es duplicado). El orden de entrada se
    conserva y el resultado no depende de marcas previas.
    """

    grupos: Dict[str, List[ServiceRecord]] = {}
    for registro in registros:
        grupos.setdefault(registro.contract_number, []).append(registro)

    duplicados = set()
    for grupo in grupos.values():
        if len(grupo) < 2:
            continue
        orden = sorted(grupo, key=lambda r: r.created_at)
        for pos, registro in enumerate(orden):
            for paso in (-1, 1):
                vecino = _vecino_distinto(orden, pos, paso)
                if vecino is not None and abs(registro.created_at - vecino.created_at) < ventana:
                    duplicados.add(registro.id)
                    break

    anotados = [
        RegistroAnotado(**registro.model_dump(exclude={"is_duplicate"}), is_duplicate=registro.id in duplicados)
        for registro in registros
    ]
    logger.debug(
        "action=marcar_duplicados registros=%s contratos=%s duplicados=%s",
        len(anotados),
        len(grupos),
        sum(1 for r in anotados if r.is_duplicate),
    )
    return anotados


def calcular_estadisticas_operadores(
    registros: Sequence[ServiceRecord],
    dias_en_periodo: int,
) -> List[OperatorStat]:
    """Total, porcentaje y promedio diario por operador, de mayor a menor.

    Los empates mantienen el orden de aparición. Los nombres se comparan tal cual
    (sensibles a mayúsculas) y los vacíos no cuentan.
    """

    if dias_en_periodo <= 0:
        raise ValueError("dias_en_periodo debe ser positivo")

    conteo: Dict[str, int] = {}
    for registro in registros:
        nombre = registro.operator_name
        if not nombre:
            continue
        conteo[nombre] = conteo.get(nombre, 0) + 1

    total = sum(conteo.values())
    stats = [
        OperatorStat(
            operator_name=nombre,
            total_services=cantidad,
            percentage=(cantidad / total * 100) if total else 0.0,
            daily_average=cantidad / dias_en_periodo,
        )
        for nombre, cantidad in conteo.items()
    ]
    return sorted(stats, key=lambda s: s.total_services, reverse=True)


def _capitalizar(nombre: str) -> str:
    minusculas = nombre.lower()
    return minusculas[:1].upper() + minusculas[1:]


def opciones_operadores(registros: Sequence[ServiceRecord]) -> List[str]:
    """Lista cosmética para el selector de operador; no afecta el conteo."""

    return sorted({_capitalizar(r.operator_name) for r in registros if r.operator_name})


def barrios_unicos(registros: Sequence[ServiceRecord]) -> List[str]:
    return sorted({r.neighborhood for r in registros if r.neighborhood})


def buscar(registros: Sequence[T], texto: str) -> List[T]:
    """Filtro de texto libre sin distinción de mayúsculas sobre los campos del historial."""

    termino = (texto or "").strip().lower()
    if not termino:
        return list(registros)
    return [
        r
        for r in registros
        if any(termino in (getattr(r, campo, "") or "").lower() for campo in CAMPOS_BUSQUEDA)
    ]


def paginar(items: Sequence[T], pagina: int, por_pagina: int) -> Tuple[List[T], int, int]:
    """Devuelve la porción pedida, la página efectiva y el total de páginas."""

    if por_pagina <= 0:
        raise ValueError("por_pagina debe ser positivo")
    total_paginas = math.ceil(len(items) / por_pagina)
    pagina = max(1, pagina)
    inicio = (pagina - 1) * por_pagina
    return list(items[inicio : inicio + por_pagina]), pagina, total_paginas


def conteo_diario(registros: Sequence[ServiceRecord], zona: tzinfo) -> Dict[str, int]:
    """Cantidad de servicios por día local (``yyyy-mm-dd``)."""

    conteo = Counter(r.created_at.astimezone(zona).date().isoformat() for r in registros)
    return dict(sorted(conteo.items()))


def construir_calendario(
    anio: int,
    mes: int,
    conteos: Dict[str, int],
    hoy: date,
    seleccionado: Optional[date] = None,
) -> List[DiaCalendario]:
    """Semanas completas de lunes a domingo con relleno del mes anterior y siguiente."""

    semanas = calendar.Calendar(firstweekday=calendar.MONDAY)
    return [
        DiaCalendario(
            fecha=dia,
            dia=dia.day,
            del_mes=dia.month == mes,
            es_hoy=dia == hoy,
            seleccionado=dia == seleccionado,
            servicios=conteos.get(dia.isoformat(), 0),
        )
        for dia in semanas.itermonthdates(anio, mes)
    ]


def eficiencia_vagas(registros: Sequence[ServiceRecord]) -> int:
    """Porcentaje de vagas utilizadas redondeado.

    Solo cuentan los registros con vagas positivas y cada uno aporta lo mismo al
    total y a las utilizadas, así que el resultado es 100 cuando hay alguno y 0 si no.
    """

    vagas = [parse_vagas(r.available_slots) for r in registros]
    total = sum(v for v in vagas if v > 0)
    usadas = sum(v for v in vagas if v > 0)
    if total <= 0:
        return 0
    return round(usadas / total * 100)


def ranking_operadores(registros: Sequence[ServiceRecord]) -> List[OperadorTotal]:
    """Conteo bruto por operador para el dashboard, sin normalizar nombres."""

    conteo: Dict[str, int] = {}
    for registro in registros:
        conteo[registro.operator_name] = conteo.get(registro.operator_name, 0) + 1
    ranking = [OperadorTotal(name=nombre, total=total) for nombre, total in conteo.items()]
    return sorted(ranking, key=lambda o: o.total, reverse=True)


__all__ = [
    "barrios_unicos",
    "buscar",
    "calcular_estadisticas_operadores",
    "construir_calendario",
    "conteo_diario",
    "eficiencia_vagas",
    "marcar_duplicados",
    "opciones_operadores",
    "paginar",
    "parse_vagas",
    "ranking_operadores",
]
