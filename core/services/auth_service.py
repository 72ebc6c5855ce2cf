# Nombre de archivo: auth_service.py
# Ubicación de archivo: core/services/auth_service.py
# Descripción: Inicio de sesión, sesiones, cambio y recuperación de contraseña de usuarios SIC

"""Autenticación sobre el store.

Las sesiones se guardan en ``auth_sessions`` y el rol se lee aparte desde ``users``.
La recuperación de contraseña ofrece dos caminos: código de 6 dígitos enviado por
correo y pregunta de seguridad con bloqueo tras intentos fallidos.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from core.config import AuthSettings, get_settings
from core.password import cumple_politica, generate_reset_code, hash_password, verify_password
from core.services.email_service import EmailService
from core.services.errors import (
    CodigoInvalido,
    CredencialesInvalidas,
    CuentaBloqueada,
    NoEncontrado,
    PasswordInvalido,
)
from core.store import (
    Consulta,
    Mutacion,
    RecordStore,
    SesionActiva,
    StoreError,
    TABLA_CODIGOS,
    TABLA_PREGUNTAS,
    TABLA_SESIONES,
    TABLA_USUARIOS,
)

logger = logging.getLogger(__name__)

ROLES = ("admin", "user", "visitante")
ROL_POR_DEFECTO = "user"

MENSAJE_POLITICA = "A senha deve ter no mínimo 8 caracteres, um número e um caractere especial"


@dataclass(slots=True)
class UsuarioActual:
    id: str
    email: str
    role: str = ROL_POR_DEFECTO

    @property
    def es_admin(self) -> bool:
        return self.role == "admin"

    @property
    def es_visitante(self) -> bool:
        return self.role == "visitante"


def _ahora(ahora: Optional[datetime]) -> datetime:
    return ahora or datetime.now(timezone.utc)


def _auth_settings(settings: Optional[AuthSettings]) -> AuthSettings:
    return settings or get_settings().auth


def _validar_politica(password: str) -> None:
    if not cumple_politica(password):
        raise PasswordInvalido(MENSAJE_POLITICA)


def buscar_usuario(store: RecordStore, email: str) -> Optional[Dict[str, Any]]:
    consulta = Consulta(tabla=TABLA_USUARIOS, limite=1).where("email", "eq", email.strip().lower())
    filas = store.query(consulta).filas
    return filas[0] if filas else None


def _usuario_por_id(store: RecordStore, user_id: str) -> Optional[Dict[str, Any]]:
    filas = store.query(Consulta(tabla=TABLA_USUARIOS, limite=1).where("id", "eq", user_id)).filas
    return filas[0] if filas else None


def obtener_rol(store: RecordStore, user_id: Optional[str]) -> str:
    """Rol del usuario; ante cualquier fallo se asume el rol sin privilegios."""

    if not user_id:
        return ROL_POR_DEFECTO
    try:
        consulta = Consulta(tabla=TABLA_USUARIOS, columnas=["role"], limite=1).where("id", "eq", user_id)
        filas = store.query(consulta).filas
    except StoreError as exc:
        logger.warning("action=obtener_rol user_id=%s error=%s", user_id, exc)
        return ROL_POR_DEFECTO
    if not filas or not filas[0].get("role"):
        return ROL_POR_DEFECTO
    return str(filas[0]["role"])


def iniciar_sesion(
    store: RecordStore,
    email: str,
    password: str,
    *,
    settings: Optional[AuthSettings] = None,
    ahora: Optional[datetime] = None,
) -> tuple[SesionActiva, UsuarioActual]:
    ahora = _ahora(ahora)
    cfg = _auth_settings(settings)
    fila = buscar_usuario(store, email)
    if fila is None or not verify_password(password, fila.get("password_hash")):
        logger.warning(
            "action=login result=fail reason=%s email=%s",
            "no_user" if fila is None else "bad_password",
            email,
        )
        raise CredencialesInvalidas("Email ou senha inválidos")

    token = secrets.token_urlsafe(32)
    expires_at = ahora + timedelta(hours=cfg.session_ttl_hours)
    store.mutate(
        Mutacion(
            tabla=TABLA_SESIONES,
            accion="insert",
            datos={"token": token, "user_id": fila["id"], "created_at": ahora, "expires_at": expires_at},
        ),
        actor_id=fila["id"],
    )
    store.mutate(
        Mutacion(
            tabla=TABLA_USUARIOS,
            accion="update",
            clave=fila["id"],
            datos={"last_sign_in_at": ahora},
            auditar=False,
        ),
        actor_id=fila["id"],
    )
    usuario = UsuarioActual(id=fila["id"], email=fila["email"], role=fila.get("role") or ROL_POR_DEFECTO)
    logger.info("action=login result=success email=%s role=%s", usuario.email, usuario.role)
    return SesionActiva(token=token, user_id=usuario.id, email=usuario.email, expires_at=expires_at), usuario


def usuario_actual(store: RecordStore, token: Optional[str]) -> Optional[UsuarioActual]:
    sesion = store.get_session(token)
    if sesion is None:
        return None
    return UsuarioActual(id=sesion.user_id, email=sesion.email, role=obtener_rol(store, sesion.user_id))


def cerrar_sesion(store: RecordStore, token: Optional[str]) -> None:
    if not token:
        return
    store.mutate(Mutacion(tabla=TABLA_SESIONES, accion="delete", clave=token))
    logger.info("action=logout result=success")


def _guardar_password(store: RecordStore, user_id: str, nueva: str) -> None:
    store.mutate(
        Mutacion(
            tabla=TABLA_USUARIOS,
            accion="update",
            clave=user_id,
            datos={"password_hash": hash_password(nueva)},
            auditar=False,
        ),
        actor_id=user_id,
    )


def cambiar_password(store: RecordStore, user_id: str, actual: str, nueva: str) -> None:
    fila = _usuario_por_id(store, user_id)
    if fila is None:
        raise NoEncontrado("Usuário não encontrado")
    if not verify_password(actual, fila.get("password_hash")):
        raise CredencialesInvalidas("Senha atual incorreta")
    _validar_politica(nueva)
    _guardar_password(store, user_id, nueva)
    logger.info("action=cambiar_password result=success user_id=%s", user_id)


# --- Código de recuperación por correo ----------------------------------------------


def solicitar_codigo_reset(
    store: RecordStore,
    email: str,
    *,
    settings: Optional[AuthSettings] = None,
    email_service: Optional[EmailService] = None,
    ahora: Optional[datetime] = None,
) -> bool:
    """Genera y envía un código de recuperación.

    Devuelve ``False`` cuando el correo no corresponde a un usuario; el llamador
    responde igual en ambos casos.
    """

    ahora = _ahora(ahora)
    cfg = _auth_settings(settings)
    fila = buscar_usuario(store, email)
    if fila is None:
        logger.info("action=reset_code stage=skip reason=no_user email=%s", email)
        return False

    codigo = generate_reset_code()
    store.mutate(
        Mutacion(
            tabla=TABLA_CODIGOS,
            accion="insert",
            datos={
                "email": fila["email"],
                "code": codigo,
                "used": False,
                "created_at": ahora,
                "expires_at": ahora + timedelta(minutes=cfg.reset_code_ttl_minutes),
            },
        )
    )
    if email_service is not None and email_service.is_configured():
        resultado = email_service.send_reset_code(fila["email"], codigo, cfg.reset_code_ttl_minutes)
        if not resultado.success:
            logger.warning("action=reset_code stage=email_failed email=%s error=%s", email, resultado.error)
    logger.info("action=reset_code stage=created email=%s", fila["email"])
    return True


def validar_codigo(
    store: RecordStore, email: str, code: str, ahora: Optional[datetime] = None
) -> Dict[str, Any]:
    """Devuelve el código vigente más reciente; lanza ``CodigoInvalido`` si no hay."""

    consulta = (
        Consulta(tabla=TABLA_CODIGOS, orden="created_at", descendente=True, limite=1)
        .where("email", "eq", email.strip().lower())
        .where("code", "eq", code.strip())
        .where("used", "eq", False)
        .where("expires_at", "gt", _ahora(ahora))
    )
    filas = store.query(consulta).filas
    if not filas:
        raise CodigoInvalido("Código inválido ou expirado")
    return filas[0]


def restablecer_con_codigo(
    store: RecordStore, email: str, code: str, nueva: str, ahora: Optional[datetime] = None
) -> None:
    _validar_politica(nueva)
    vigente = validar_codigo(store, email, code, ahora)
    fila = buscar_usuario(store, email)
    if fila is None:
        raise NoEncontrado("Usuário não encontrado")
    _guardar_password(store, fila["id"], nueva)
    store.mutate(Mutacion(tabla=TABLA_CODIGOS, accion="update", clave=vigente["id"], datos={"used": True}))
    logger.info("action=reset_password stage=code_ok email=%s", fila["email"])


# --- Pregunta de seguridad ----------------------------------------------------------


def definir_pregunta(store: RecordStore, email: str, pregunta: str, respuesta: str) -> None:
    email = email.strip().lower()
    existente = store.query(Consulta(tabla=TABLA_PREGUNTAS, limite=1).where("email", "eq", email)).filas
    datos = {"question": pregunta, "answer": respuesta, "failed_attempts": 0, "blocked_until": None}
    if existente:
        store.mutate(Mutacion(tabla=TABLA_PREGUNTAS, accion="update", clave=email, datos=datos))
    else:
        store.mutate(Mutacion(tabla=TABLA_PREGUNTAS, accion="insert", datos={"email": email, **datos}))


def restablecer_con_pregunta(
    store: RecordStore,
    email: str,
    respuesta: str,
    password_actual: str,
    nueva: str,
    *,
    settings: Optional[AuthSettings] = None,
    ahora: Optional[datetime] = None,
) -> None:
    """Cambia la contraseña validando la pregunta de seguridad y la clave actual.

    Cada respuesta incorrecta suma un intento; al alcanzar el máximo la cuenta
    queda bloqueada durante ``block_minutes``. Un éxito limpia los contadores.
    """

    ahora = _ahora(ahora)
    cfg = _auth_settings(settings)
    email = email.strip().lower()
    _validar_politica(nueva)

    filas = store.query(Consulta(tabla=TABLA_PREGUNTAS, limite=1).where("email", "eq", email)).filas
    if not filas:
        raise NoEncontrado("Usuário não encontrado")
    pregunta = filas[0]

    bloqueado_hasta = pregunta.get("blocked_until")
    if bloqueado_hasta is not None and bloqueado_hasta > ahora:
        raise CuentaBloqueada("Conta bloqueada temporariamente", bloqueado_hasta)

    intentos = int(pregunta.get("failed_attempts") or 0)
    if bloqueado_hasta is not None:
        # El bloqueo venció: se empieza de nuevo
        intentos = 0

    if (pregunta.get("answer") or "").lower() != respuesta.lower():
        intentos += 1
        datos: Dict[str, Any] = {"failed_attempts": intentos, "blocked_until": None}
        if intentos >= cfg.max_attempts:
            datos["blocked_until"] = ahora + timedelta(minutes=cfg.block_minutes)
        store.mutate(Mutacion(tabla=TABLA_PREGUNTAS, accion="update", clave=email, datos=datos))
        logger.warning(
            "action=reset_password stage=bad_answer email=%s intentos=%s bloqueado=%s",
            email,
            intentos,
            datos["blocked_until"] is not None,
        )
        raise CredencialesInvalidas("Resposta de segurança incorreta")

    fila = buscar_usuario(store, email)
    if fila is None:
        raise NoEncontrado("Usuário não encontrado")
    if not verify_password(password_actual, fila.get("password_hash")):
        raise CredencialesInvalidas("Senha atual incorreta")

    _guardar_password(store, fila["id"], nueva)
    store.mutate(
        Mutacion(
            tabla=TABLA_PREGUNTAS,
            accion="update",
            clave=email,
            datos={"failed_attempts": 0, "blocked_until": None},
        )
    )
    logger.info("action=reset_password stage=question_ok email=%s", email)


__all__ = [
    "ROLES",
    "UsuarioActual",
    "buscar_usuario",
    "cambiar_password",
    "cerrar_sesion",
    "definir_pregunta",
    "iniciar_sesion",
    "obtener_rol",
    "restablecer_con_codigo",
    "restablecer_con_pregunta",
    "solicitar_codigo_reset",
    "usuario_actual",
    "validar_codigo",
]
