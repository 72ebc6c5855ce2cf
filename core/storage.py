# Nombre de archivo: storage.py
# Ubicación de archivo: core/storage.py
# Descripción: Almacenamiento de blobs en disco con URLs públicas (bucket de imágenes de servicio)

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Iterable, List

from core.store import StoreError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LocalBlobStorage:
    """Bucket servido por `StaticFiles` bajo `public_url`.

    Las rutas de objeto son relativas al bucket (p. ej. ``public/1700000000-abc.jpg``).
    """

    base_dir: Path
    public_url: str
    bucket: str = "service-images"

    @property
    def bucket_dir(self) -> Path:
        return self.base_dir / self.bucket

    def _resolve(self, object_path: str) -> Path:
        rel = PurePosixPath(object_path)
        if rel.is_absolute() or ".." in rel.parts:
            raise StoreError(f"Ruta de objeto inválida: {object_path}")
        return self.bucket_dir.joinpath(*rel.parts)

    def public_url_for(self, object_path: str) -> str:
        return f"{self.public_url}/{self.bucket}/{object_path}"

    def upload(self, object_path: str, content: bytes) -> str:
        destino = self._resolve(object_path)
        if destino.exists():
            raise StoreError(f"El objeto ya existe: {object_path}")
        try:
            destino.parent.mkdir(parents=True, exist_ok=True)
            destino.write_bytes(content)
        except OSError as exc:
            logger.warning("action=storage_upload path=%s error=%s", object_path, exc)
            raise StoreError("Falha ao enviar arquivo", exc) from exc
        logger.info("action=storage_upload path=%s bytes=%s", object_path, len(content))
        return self.public_url_for(object_path)

    def remove(self, object_paths: Iterable[str]) -> List[str]:
        eliminados: List[str] = []
        for object_path in object_paths:
            destino = self._resolve(object_path)
            try:
                destino.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("action=storage_remove path=%s error=%s", object_path, exc)
                raise StoreError("Falha ao remover arquivo", exc) from exc
            eliminados.append(object_path)
        logger.info("action=storage_remove count=%s", len(eliminados))
        return eliminados


__all__ = ["LocalBlobStorage"]
