# Nombre de archivo: crear_admin.py
# Ubicación de archivo: scripts/crear_admin.py
# Descripción: Script utilitario para crear el primer administrador o resetear/verificar su contraseña

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from core.logging import setup_logging
from core.password import hash_password, verify_password
from core.repositories.sql_store import SqlRecordStore
from core.services.auth_service import buscar_usuario
from core.store import Mutacion, StoreError, TABLA_USUARIOS
from db.session import get_engine


def crear(store: SqlRecordStore, email: str, password: str) -> int:
    if buscar_usuario(store, email) is not None:
        print(f"[ERROR] Usuario '{email}' ya existe; usar --mode reset.")
        return 1
    store.mutate(
        Mutacion(
            tabla=TABLA_USUARIOS,
            accion="insert",
            datos={"email": email.strip().lower(), "role": "admin", "password_hash": hash_password(password)},
        )
    )
    print(f"[OK] Administrador '{email}' creado.")
    return 0


def reset(store: SqlRecordStore, email: str, password: str) -> int:
    fila = buscar_usuario(store, email)
    if fila is None:
        print(f"[ERROR] Usuario '{email}' no existe.")
        return 1
    new_hash = hash_password(password)
    store.mutate(
        Mutacion(tabla=TABLA_USUARIOS, accion="update", clave=fila["id"], datos={"password_hash": new_hash}, auditar=False)
    )
    print(f"[OK] Contraseña de '{email}' actualizada. Longitud hash={len(new_hash)}")
    return 0


def verify(store: SqlRecordStore, email: str, password: str) -> int:
    fila = buscar_usuario(store, email)
    if fila is None:
        print(f"[ERROR] Usuario '{email}' no existe.")
        return 1
    ok = verify_password(password, fila.get("password_hash"))
    print(f"[INFO] verify(password) -> {ok}. role={fila.get('role')}")
    return 0 if ok else 3


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Crear, resetear o verificar un administrador")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True, help="Contraseña nueva o a verificar")
    parser.add_argument("--mode", choices=["create", "reset", "verify"], default="verify")
    parser.add_argument("--create-tables", action="store_true", help="Crear tablas si no existen (entornos sin Alembic)")
    args = parser.parse_args(argv)

    setup_logging("scripts", enable_file=False)
    store = SqlRecordStore(get_engine())
    try:
        if args.create_tables:
            store.create_all()
        if args.mode == "create":
            return crear(store, args.email, args.password)
        if args.mode == "reset":
            return reset(store, args.email, args.password)
        return verify(store, args.email, args.password)
    except StoreError as exc:
        print(f"[ERROR] Falló el acceso a la base: {exc} ({exc.cause})")
        return 2


if __name__ == "__main__":
    sys.exit(main())
