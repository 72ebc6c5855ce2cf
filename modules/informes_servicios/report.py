# Nombre de archivo: report.py
# Ubicación de archivo: modules/informes_servicios/report.py
# Descripción: Formateo plano de registros para exportación y generación de la planilla .xlsx

from __future__ import annotations

import io
import logging
from datetime import date, tzinfo
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
from openpyxl.utils import get_column_letter

from .config import COLUMNAS_EXPORTACION, HOJA_EXPORTACION
from .schemas import ServiceRecord

logger = logging.getLogger(__name__)

ENCABEZADOS: List[str] = [encabezado for encabezado, _, _ in COLUMNAS_EXPORTACION]


def _valor(registro: ServiceRecord, campo: str, zona: tzinfo) -> str:
    if campo == "created_at":
        return registro.created_at.astimezone(zona).strftime("%d/%m/%Y")
    valor = getattr(registro, campo)
    return "" if valor is None else str(valor)


def formatear_exportacion(registros: Sequence[ServiceRecord], zona: tzinfo) -> List[Dict[str, str]]:
    """Una fila por registro, en el mismo orden, con las columnas fijas de la planilla."""

    return [
        {encabezado: _valor(registro, campo, zona) for encabezado, campo, _ in COLUMNAS_EXPORTACION}
        for registro in registros
    ]


def nombre_archivo(hoy: date) -> str:
    return f"servicos_{hoy:%d-%m-%Y}.xlsx"


def export_xlsx(filas: Sequence[Dict[str, Any]], destino: Optional[Path] = None) -> bytes:
    """Serializa las filas a una hoja ``Serviços`` con anchos sugeridos.

    Si se indica ``destino`` también se guarda el archivo en disco.
    """

    df = pd.DataFrame(list(filas), columns=ENCABEZADOS)
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:  # type: ignore[arg-type]
        df.to_excel(writer, sheet_name=HOJA_EXPORTACION, index=False)
        hoja = writer.sheets[HOJA_EXPORTACION]
        for idx, (_, _, ancho) in enumerate(COLUMNAS_EXPORTACION, start=1):
            hoja.column_dimensions[get_column_letter(idx)].width = ancho
    contenido = buffer.getvalue()

    if destino is not None:
        destino.parent.mkdir(parents=True, exist_ok=True)
        destino.write_bytes(contenido)
        logger.info("action=export_xlsx stage=saved path=%s filas=%s", destino, len(df))
    return contenido


__all__ = ["ENCABEZADOS", "export_xlsx", "formatear_exportacion", "nombre_archivo"]
