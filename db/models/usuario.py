# Nombre de archivo: usuario.py
# Ubicación de archivo: db/models/usuario.py
# Descripción: Modelos SQLAlchemy de usuarios, sesiones, preguntas de seguridad y códigos de reset

from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from db.base import Base


class User(Base):
    """Identidad de autenticación con su rol (admin, user, visitante)."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(128), nullable=False)
    role = Column(String(16), nullable=False, default="user")
    created_at = Column(DateTime(timezone=True), nullable=False)
    last_sign_in_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<User id={self.id} email='{self.email}' role={self.role}>"


class AuthSession(Base):
    __tablename__ = "auth_sessions"

    token = Column(String(64), primary_key=True)
    user_id = Column(String(36), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)


class SecurityQuestion(Base):
    """Pregunta de seguridad usada para el cambio de contraseña sin sesión."""

    __tablename__ = "security_questions"

    email = Column(String(255), primary_key=True)
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)
    failed_attempts = Column(Integer, nullable=False, default=0)
    blocked_until = Column(DateTime(timezone=True), nullable=True)


class PasswordResetCode(Base):
    __tablename__ = "password_reset_codes"

    id = Column(String(36), primary_key=True)
    email = Column(String(255), nullable=False, index=True)
    code = Column(String(12), nullable=False)
    used = Column(Boolean, nullable=False, default=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
