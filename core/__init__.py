# Nombre de archivo: __init__.py
# Ubicación de archivo: core/__init__.py
# Descripción: Inicializa el paquete de utilidades centrales de SISTEMA SIC

"""Utilidades compartidas: configuración, logging, store, auth y almacenamiento."""

from .secrets import get_secret

__all__ = ["get_secret"]
