# Nombre de archivo: test_imagenes_service.py
# Ubicación de archivo: tests/test_imagenes_service.py
# Descripción: Pruebas de la subida en lote de imágenes y su reversión ante fallos

from __future__ import annotations

import pytest

from core.services.errors import RegistroInvalido
from core.services.imagenes import ArchivoImagen, subir_imagenes
from core.storage import LocalBlobStorage
from core.store import StoreError


class _StorageQueFalla(LocalBlobStorage):
    """Escribe las primeras ``permitidas`` subidas y rechaza la siguiente."""

    def __init__(self, base_dir, permitidas: int) -> None:
        super().__init__(base_dir=base_dir, public_url="/storage")
        self.permitidas = permitidas

    def upload(self, object_path: str, content: bytes) -> str:
        if self.permitidas == 0:
            raise StoreError("Falha ao enviar arquivo")
        self.permitidas -= 1
        return super().upload(object_path, content)


def _archivos(cantidad: int):
    return [ArchivoImagen(filename=f"foto{i}.jpg", content_type="image/jpeg", content=b"\xff\xd8") for i in range(cantidad)]


def _objetos(storage: LocalBlobStorage):
    return [p for p in storage.bucket_dir.rglob("*") if p.is_file()]


def test_lote_completo(storage) -> None:
    urls = subir_imagenes(storage, _archivos(3))
    assert len(urls) == 3
    assert len(_objetos(storage)) == 3


def test_fallo_a_mitad_del_lote_borra_lo_subido(tmp_path) -> None:
    storage = _StorageQueFalla(tmp_path / "storage", permitidas=2)
    with pytest.raises(StoreError):
        subir_imagenes(storage, _archivos(3))
    assert _objetos(storage) == []


def test_fallo_en_la_primera_no_deja_nada(tmp_path) -> None:
    storage = _StorageQueFalla(tmp_path / "storage", permitidas=0)
    with pytest.raises(StoreError):
        subir_imagenes(storage, _archivos(2))
    assert _objetos(storage) == []


def test_lote_invalido_no_sube_nada(storage, monkeypatch) -> None:
    from modules.informes_servicios import config as servicios_config

    monkeypatch.setattr(servicios_config, "MAX_BYTES_IMAGEN", 4)
    archivos = _archivos(1) + [ArchivoImagen(filename="grande.jpg", content_type="image/jpeg", content=b"x" * 5)]
    with pytest.raises(RegistroInvalido):
        subir_imagenes(storage, archivos)
    assert _objetos(storage) == []
