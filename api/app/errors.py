# Nombre de archivo: errors.py
# Ubicación de archivo: api/app/errors.py
# Descripción: Traducción de excepciones de store y de negocio a respuestas HTTP

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from core.services.errors import (
    CodigoInvalido,
    CredencialesInvalidas,
    CuentaBloqueada,
    DuplicadoPendiente,
    NoEncontrado,
    PermisoDenegado,
)
from core.store import StoreError

logger = logging.getLogger(__name__)


async def _store_error(request: Request, exc: StoreError) -> JSONResponse:
    logger.warning("action=http_error kind=store path=%s error=%s cause=%s", request.url.path, exc, exc.cause)
    return JSONResponse(status_code=503, content={"detail": str(exc), "retry": True})


async def _duplicado(request: Request, exc: DuplicadoPendiente) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={
            "detail": str(exc),
            "contract_number": exc.contract_number,
            "requires_confirmation": True,
        },
    )


async def _bloqueada(request: Request, exc: CuentaBloqueada) -> JSONResponse:
    content = {"detail": str(exc)}
    if exc.blocked_until is not None:
        content["blocked_until"] = exc.blocked_until.isoformat()
    return JSONResponse(status_code=423, content=content)


def _simple(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        logger.info("action=http_error status=%s path=%s error=%s", status_code, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return handler


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StoreError, _store_error)
    app.add_exception_handler(DuplicadoPendiente, _duplicado)
    app.add_exception_handler(CuentaBloqueada, _bloqueada)
    app.add_exception_handler(PermisoDenegado, _simple(403))
    app.add_exception_handler(NoEncontrado, _simple(404))
    app.add_exception_handler(CredencialesInvalidas, _simple(401))
    app.add_exception_handler(CodigoInvalido, _simple(400))
    # RegistroInvalido, PasswordInvalido y períodos desconocidos son ValueError
    app.add_exception_handler(ValueError, _simple(422))


__all__ = ["register_exception_handlers"]
