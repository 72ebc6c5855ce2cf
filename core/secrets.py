# Nombre de archivo: secrets.py
# Ubicación de archivo: core/secrets.py
# Descripción: Lectura de secretos de SISTEMA SIC desde variables de entorno o Docker secrets

"""Secretos del stack (password de PostgreSQL, clave de sesión, SMTP).

Si la variable de entorno no está definida se busca un archivo con el mismo
nombre (en minúsculas) dentro de `/run/secrets`.
"""

from pathlib import Path
from typing import Optional
import os

SECRETS_DIR = Path("/run/secrets")


def get_secret(name: str, default: Optional[str] = None) -> Optional[str]:
    """Obtiene el secreto `name` desde el entorno o desde `SECRETS_DIR`.

    Parameters
    ----------
    name:
        Nombre de la variable de entorno a buscar.
    default:
        Valor a retornar si el secreto no existe o el archivo está vacío.
    """

    value = os.getenv(name)
    if value:
        return value

    secret_file = SECRETS_DIR / name.lower()
    try:
        content = secret_file.read_text(encoding="utf-8").strip()
    except (FileNotFoundError, PermissionError):
        return default
    return content or default
