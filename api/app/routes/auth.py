# Nombre de archivo: auth.py
# Ubicación de archivo: api/app/routes/auth.py
# Descripción: Endpoints de login, logout, sesión actual y recuperación de contraseña
"""Rutas de autenticación.

El login guarda el token en la sesión firmada (cookie) y además lo devuelve para
clientes que prefieren enviarlo como ``Authorization: Bearer``.
"""

import logging
import time

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from api.app.deps import (
    get_current_user,
    get_settings_dep,
    get_store,
    issue_csrf,
    session_token,
    verify_csrf,
)
from core.config import Settings
from core.services import auth_service
from core.services.auth_service import UsuarioActual
from core.services.email_service import get_email_service
from core.store import RecordStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    email: str
    password: str


class CambioPasswordRequest(BaseModel):
    current_password: str
    new_password: str


class SolicitudCodigoRequest(BaseModel):
    email: str


class ValidarCodigoRequest(BaseModel):
    email: str
    code: str


class RestablecerCodigoRequest(ValidarCodigoRequest):
    new_password: str


class PreguntaRequest(BaseModel):
    question: str
    answer: str


class RestablecerPreguntaRequest(BaseModel):
    email: str
    security_answer: str
    current_password: str
    new_password: str


def _usuario_json(usuario: UsuarioActual) -> dict:
    return {
        "id": usuario.id,
        "email": usuario.email,
        "role": usuario.role,
        "is_admin": usuario.es_admin,
        "is_visitor": usuario.es_visitante,
    }


def _rate_limited(request: Request, limite: int) -> bool:
    # Rate limiting simple por IP dentro de la sesión (ventana de 60 s)
    ip = request.client.host if request.client else "unknown"
    ahora = time.time()
    rl = request.session.get("rl_login", {"ip": ip, "count": 0, "ts": ahora})
    if rl["ip"] != ip or ahora - rl["ts"] > 60:
        rl = {"ip": ip, "count": 0, "ts": ahora}
    rl["count"] += 1
    request.session["rl_login"] = rl
    return rl["count"] > limite


@router.post("/login")
def login(
    req: LoginRequest,
    request: Request,
    store: RecordStore = Depends(get_store),
    settings: Settings = Depends(get_settings_dep),
):
    if _rate_limited(request, settings.auth.login_rate_limit):
        logger.warning("action=login result=rate_limited email=%s", req.email)
        return JSONResponse(status_code=429, content={"detail": "Muitas tentativas. Aguarde um minuto."})

    sesion, usuario = auth_service.iniciar_sesion(store, req.email, req.password, settings=settings.auth)
    request.session["token"] = sesion.token
    csrf = issue_csrf(request)
    return {
        "token": sesion.token,
        "expires_at": sesion.expires_at.isoformat(),
        "csrf": csrf,
        "user": _usuario_json(usuario),
    }


@router.post("/logout", dependencies=[Depends(verify_csrf)])
def logout(request: Request, store: RecordStore = Depends(get_store)):
    auth_service.cerrar_sesion(store, session_token(request))
    request.session.clear()
    return {"status": "ok"}


@router.get("/me")
def me(request: Request, usuario: UsuarioActual = Depends(get_current_user)):
    return {"user": _usuario_json(usuario), "csrf": request.session.get("csrf")}


@router.post("/password", dependencies=[Depends(verify_csrf)])
def cambiar_password(
    req: CambioPasswordRequest,
    usuario: UsuarioActual = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
):
    auth_service.cambiar_password(store, usuario.id, req.current_password, req.new_password)
    return {"status": "ok"}


@router.post("/security-question", dependencies=[Depends(verify_csrf)])
def definir_pregunta(
    req: PreguntaRequest,
    usuario: UsuarioActual = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
):
    auth_service.definir_pregunta(store, usuario.email, req.question, req.answer)
    return {"status": "ok"}


@router.post("/reset-code")
def solicitar_codigo(
    req: SolicitudCodigoRequest,
    store: RecordStore = Depends(get_store),
    settings: Settings = Depends(get_settings_dep),
):
    auth_service.solicitar_codigo_reset(
        store, req.email, settings=settings.auth, email_service=get_email_service()
    )
    # Misma respuesta exista o no el correo
    return {"status": "ok", "detail": "Se o email estiver cadastrado, um código foi enviado."}


@router.post("/reset-code/validate")
def validar_codigo(req: ValidarCodigoRequest, store: RecordStore = Depends(get_store)):
    auth_service.validar_codigo(store, req.email, req.code)
    return {"valid": True}


@router.post("/reset-code/confirm")
def restablecer_con_codigo(req: RestablecerCodigoRequest, store: RecordStore = Depends(get_store)):
    auth_service.restablecer_con_codigo(store, req.email, req.code, req.new_password)
    return {"status": "ok"}


@router.post("/reset-password")
def restablecer_con_pregunta(
    req: RestablecerPreguntaRequest,
    store: RecordStore = Depends(get_store),
    settings: Settings = Depends(get_settings_dep),
):
    auth_service.restablecer_con_pregunta(
        store,
        req.email,
        req.security_answer,
        req.current_password,
        req.new_password,
        settings=settings.auth,
    )
    return {"status": "ok", "detail": "Senha alterada com sucesso!"}
