# Nombre de archivo: config.py
# Ubicación de archivo: modules/informes_servicios/config.py
# Descripción: Configuración y constantes para historial, duplicados, eficiencia y exportación de servicios

import os
from datetime import timedelta
from pathlib import Path
from typing import Dict, List, Tuple

REPORTS_DIR = Path(os.getenv("REPORTS_DIR", "/app/data/reports"))
TIMEZONE = os.getenv("SIC_TIMEZONE", "America/Sao_Paulo")

# Dos registros del mismo contrato a menos de esta distancia son duplicados (estricto)
VENTANA_DUPLICADO = timedelta(hours=1)

# Días nominales por período para el promedio diario (no el lapso real del rango)
DIAS_POR_PERIODO: Dict[str, int] = {
    "day": 1,
    "today": 1,
    "custom": 1,
    "week": 7,
    "month": 30,
}

ITEMS_POR_PAGINA = 10
RECIENTES_DASHBOARD = 5

MAX_IMAGENES = 6
MAX_BYTES_IMAGEN = 5 * 1024 * 1024

# Campos donde aplica la búsqueda libre del historial
CAMPOS_BUSQUEDA: Tuple[str, ...] = (
    "operator_name",
    "company_name",
    "technician_name",
    "service_type",
    "neighborhood",
    "street",
    "contract_number",
    "area_cx",
)

# Columnas de la planilla exportada: (encabezado, campo, ancho sugerido)
COLUMNAS_EXPORTACION: List[Tuple[str, str, int]] = [
    ("Data do Serviço", "created_at", 12),
    ("Tipo de Serviço", "service_type", 15),
    ("Operador", "operator_name", 20),
    ("Técnico", "technician_name", 20),
    ("Empresa", "company_name", 20),
    ("Contrato", "contract_number", 15),
    ("Bairro", "neighborhood", 20),
    ("Endereço", "street", 30),
    ("Localização CTO", "cto_location", 30),
    ("Área/CX", "area_cx", 15),
    ("Vagas Disponíveis", "available_slots", 10),
    ("Unidade", "unit", 15),
    ("CXs Visitadas", "visited_cxs", 15),
    ("Comentários", "general_comments", 50),
]

HOJA_EXPORTACION = "Serviços"

AVISO_DUPLICADO = "ATENÇÃO: Este contrato já foi registrado na última hora!"
