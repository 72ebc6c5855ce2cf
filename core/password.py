# Nombre de archivo: password.py
# Ubicación de archivo: core/password.py
# Descripción: Hashing bcrypt de contraseñas de operadores y generación de claves temporales

from __future__ import annotations

import logging
import re
import secrets
import string

import bcrypt

LOGGER = logging.getLogger(__name__)

_BCRYPT_MAX_BYTES = 72
_BCRYPT_DEFAULT_COST = 12
_TEMP_ALPHABET = string.ascii_letters + string.digits
_ESPECIALES = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")
MIN_LENGTH = 8


def _to_bytes(password: str) -> bytes:
    encoded = password.encode("utf-8")
    if len(encoded) > _BCRYPT_MAX_BYTES:
        LOGGER.warning("action=password stage=truncate max_bytes=%s", _BCRYPT_MAX_BYTES)
        encoded = encoded[:_BCRYPT_MAX_BYTES]
    return encoded


def hash_password(password: str, *, rounds: int = _BCRYPT_DEFAULT_COST) -> str:
    """Genera el hash bcrypt que se guarda en `users.password_hash`."""

    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_to_bytes(password), salt).decode("utf-8")


def verify_password(password: str, hashed: str | None) -> bool:
    """Verifica la contraseña; un hash ausente o corrupto equivale a credencial inválida."""

    if not hashed:
        return False
    try:
        return bool(bcrypt.checkpw(_to_bytes(password), hashed.encode("utf-8")))
    except ValueError as exc:
        LOGGER.warning("action=password stage=verify error=invalid_hash detail=%s", exc)
        return False


def generate_temporary_password(length: int = 16) -> str:
    """Clave aleatoria para usuarios creados por un administrador."""

    return "temp-" + "".join(secrets.choice(_TEMP_ALPHABET) for _ in range(length))


def cumple_politica(password: str) -> bool:
    """Mínimo 8 caracteres con al menos un número y un carácter especial."""

    return (
        len(password) >= MIN_LENGTH
        and any(c.isdigit() for c in password)
        and _ESPECIALES.search(password) is not None
    )


def generate_reset_code(digits: int = 6) -> str:
    return "".join(secrets.choice(string.digits) for _ in range(digits))


__all__ = [
    "cumple_politica",
    "generate_reset_code",
    "generate_temporary_password",
    "hash_password",
    "verify_password",
]
