# Nombre de archivo: deps.py
# Ubicación de archivo: api/app/deps.py
# Descripción: Dependencias FastAPI (store, storage, usuario de sesión, admin y CSRF)

from __future__ import annotations

import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from core.config import Settings
from core.services.auth_service import UsuarioActual, usuario_actual
from core.storage import LocalBlobStorage
from core.store import RecordStore
from modules.informes_servicios import ReportConfig

CSRF_HEADER = "X-CSRF-Token"


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_storage(request: Request) -> LocalBlobStorage:
    return request.app.state.storage


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_report_config(request: Request) -> ReportConfig:
    return request.app.state.report_config


def _bearer(request: Request) -> Optional[str]:
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return None


def session_token(request: Request) -> Optional[str]:
    """Token de sesión desde ``Authorization: Bearer`` o desde la cookie de sesión."""

    return _bearer(request) or request.session.get("token")


def get_current_user(request: Request, store: RecordStore = Depends(get_store)) -> UsuarioActual:
    usuario = usuario_actual(store, session_token(request))
    if usuario is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sessão inválida ou expirada")
    return usuario


def require_admin(usuario: UsuarioActual = Depends(get_current_user)) -> UsuarioActual:
    if not usuario.es_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Acesso restrito a administradores")
    return usuario


def issue_csrf(request: Request) -> str:
    token = secrets.token_urlsafe(32)
    request.session["csrf"] = token
    return token


def verify_csrf(request: Request, settings: Settings = Depends(get_settings_dep)) -> None:
    """Las mutaciones autenticadas por cookie deben repetir el token CSRF en un header."""

    if request.method in ("GET", "HEAD", "OPTIONS") or _bearer(request) or settings.testing:
        return
    esperado = request.session.get("csrf")
    if not esperado or request.headers.get(CSRF_HEADER) != esperado:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Token CSRF inválido")


__all__ = [
    "get_current_user",
    "get_report_config",
    "get_settings_dep",
    "get_storage",
    "get_store",
    "issue_csrf",
    "require_admin",
    "session_token",
    "verify_csrf",
]
