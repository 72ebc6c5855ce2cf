# Nombre de archivo: imagenes.py
# Ubicación de archivo: core/services/imagenes.py
# Descripción: Validación, nombrado y subida de imágenes adjuntas a registros de servicio

from __future__ import annotations

import logging
import secrets
import string
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

from core.services.errors import RegistroInvalido
from core.storage import LocalBlobStorage
from core.store import StoreError
from modules.informes_servicios import config as servicios_config

logger = logging.getLogger(__name__)

PREFIJO = "public"
_ALFABETO = string.ascii_lowercase + string.digits


@dataclass(slots=True)
class ArchivoImagen:
    filename: str
    content_type: str
    content: bytes


def nombre_objeto(filename: str, epoch_ms: Optional[int] = None) -> str:
    """``public/<epoch_ms>-<aleatorio>.<ext>`` conservando la extensión original."""

    epoch_ms = epoch_ms if epoch_ms is not None else int(time.time() * 1000)
    extension = filename.rsplit(".", 1)[-1] if "." in filename else "bin"
    aleatorio = "".join(secrets.choice(_ALFABETO) for _ in range(6))
    return f"{PREFIJO}/{epoch_ms}-{aleatorio}.{extension.lower()}"


def validar_imagen(archivo: ArchivoImagen) -> None:
    if not (archivo.content_type or "").startswith("image/"):
        raise RegistroInvalido("Apenas imagens são permitidas")
    if len(archivo.content) > servicios_config.MAX_BYTES_IMAGEN:
        raise RegistroInvalido("Tamanho máximo por imagem: 5MB")


def subir_imagenes(
    storage: LocalBlobStorage,
    archivos: Sequence[ArchivoImagen],
    existentes: int = 0,
) -> List[str]:
    """Sube un lote de imágenes y devuelve sus URLs públicas en el mismo orden.

    Todo el lote se valida antes de escribir; si algo no cumple no se sube nada.
    Si una subida falla a mitad del lote se borran las ya escritas y se relanza
    el error.
    """

    if existentes + len(archivos) > servicios_config.MAX_IMAGENES:
        raise RegistroInvalido(f"Máximo de {servicios_config.MAX_IMAGENES} imagens permitido")
    for archivo in archivos:
        validar_imagen(archivo)

    subidas: List[str] = []
    urls: List[str] = []
    try:
        for archivo in archivos:
            ruta = nombre_objeto(archivo.filename)
            urls.append(storage.upload(ruta, archivo.content))
            subidas.append(ruta)
    except StoreError:
        if subidas:
            logger.warning("action=subir_imagenes stage=rollback count=%s", len(subidas))
            storage.remove(subidas)
        raise
    logger.info("action=subir_imagenes count=%s existentes=%s", len(urls), existentes)
    return urls


def eliminar_imagen(storage: LocalBlobStorage, url: str) -> str:
    """Borra el objeto usando el último segmento de la URL pública."""

    ruta = f"{PREFIJO}/{url.rstrip('/').rsplit('/', 1)[-1]}"
    storage.remove([ruta])
    return ruta


__all__ = ["ArchivoImagen", "eliminar_imagen", "nombre_objeto", "subir_imagenes", "validar_imagen"]
