# Nombre de archivo: __init__.py
# Ubicación de archivo: modules/informes_servicios/__init__.py
# Descripción: Inicializa el paquete de historial, duplicados y estadísticas de servicios

from .service import (
    ExportResult,
    ReportConfig,
    generar_exportacion,
    obtener_calendario,
    obtener_eficiencia,
    obtener_historial,
    obtener_resumen_dashboard,
)

__all__ = [
    "ExportResult",
    "ReportConfig",
    "generar_exportacion",
    "obtener_calendario",
    "obtener_eficiencia",
    "obtener_historial",
    "obtener_resumen_dashboard",
]
