# Nombre de archivo: errors.py
# Ubicación de archivo: core/services/errors.py
# Descripción: Excepciones de negocio para intake, autenticación y administración

from __future__ import annotations

from datetime import datetime
from typing import Optional


class ServiceError(Exception):
    """Base de los errores de negocio; el mensaje se muestra al usuario."""


class RegistroInvalido(ServiceError, ValueError):
    """Datos de formulario que no cumplen las reglas de alta o edición."""


class DuplicadoPendiente(ServiceError):
    """El contrato ya se registró en la última hora y falta confirmación."""

    def __init__(self, contract_number: str, message: str) -> None:
        super().__init__(message)
        self.contract_number = contract_number


class PermisoDenegado(ServiceError):
    pass


class NoEncontrado(ServiceError):
    pass


class CredencialesInvalidas(ServiceError):
    pass


class CuentaBloqueada(ServiceError):
    def __init__(self, message: str, blocked_until: Optional[datetime] = None) -> None:
        super().__init__(message)
        self.blocked_until = blocked_until


class CodigoInvalido(ServiceError):
    pass


class PasswordInvalido(ServiceError, ValueError):
    """La nueva contraseña no cumple la política mínima."""


__all__ = [
    "CodigoInvalido",
    "CredencialesInvalidas",
    "CuentaBloqueada",
    "DuplicadoPendiente",
    "NoEncontrado",
    "PasswordInvalido",
    "PermisoDenegado",
    "RegistroInvalido",
    "ServiceError",
]
