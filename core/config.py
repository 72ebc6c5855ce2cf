# Nombre de archivo: config.py
# Ubicación de archivo: core/config.py
# Descripción: Configuración centralizada (entorno) para los servicios de SISTEMA SIC

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from os import getenv
from pathlib import Path

from core.secrets import get_secret


def _database_url() -> str:
    return getenv(
        "DATABASE_URL",
        f"postgresql+psycopg://{getenv('POSTGRES_USER', 'sic')}:{get_secret('POSTGRES_PASSWORD', 'cambiar-este-password')}@{getenv('POSTGRES_HOST', 'postgres')}:{getenv('POSTGRES_PORT', '5432')}/{getenv('POSTGRES_DB', 'sic')}",
    )


@dataclass(slots=True)
class DatabaseSettings:
    url: str


@dataclass(slots=True)
class StorageSettings:
    """Bucket de imágenes servido como archivos estáticos."""

    base_dir: Path
    public_url: str
    bucket: str


@dataclass(slots=True)
class AuthSettings:
    secret_key: str
    session_ttl_hours: int
    reset_code_ttl_minutes: int
    max_attempts: int
    block_minutes: int
    login_rate_limit: int


@dataclass(slots=True)
class SmtpSettings:
    """Configuración SMTP para envío de correos."""

    host: str
    port: int
    user: str
    password: str
    from_email: str
    from_name: str
    use_tls: bool
    enabled: bool


@dataclass(slots=True)
class Settings:
    database: DatabaseSettings
    storage: StorageSettings
    auth: AuthSettings
    smtp: SmtpSettings
    timezone: str
    reports_dir: Path
    realtime_debounce_ms: int
    testing: bool

    def __init__(self) -> None:
        self.database = DatabaseSettings(url=_database_url())
        self.storage = StorageSettings(
            base_dir=Path(getenv("STORAGE_DIR", "/app/data/storage")),
            public_url=getenv("STORAGE_PUBLIC_URL", "/storage").rstrip("/"),
            bucket=getenv("STORAGE_BUCKET", "service-images"),
        )
        self.auth = AuthSettings(
            secret_key=get_secret("WEB_SECRET_KEY", "dev-secret-change") or "dev-secret-change",
            session_ttl_hours=int(getenv("SESSION_TTL_HOURS", "12")),
            reset_code_ttl_minutes=int(getenv("RESET_CODE_TTL_MINUTES", "15")),
            max_attempts=int(getenv("SECURITY_MAX_ATTEMPTS", "3")),
            block_minutes=int(getenv("SECURITY_BLOCK_MINUTES", "15")),
            login_rate_limit=int(getenv("LOGIN_RATE_LIMIT", "5")),
        )
        self.smtp = SmtpSettings(
            host=getenv("SMTP_HOST", ""),
            port=int(getenv("SMTP_PORT", "587")),
            user=getenv("SMTP_USER", ""),
            password=get_secret("SMTP_PASS", "") or "",
            from_email=getenv("SMTP_FROM_EMAIL", getenv("SMTP_USER", "")),
            from_name=getenv("SMTP_FROM_NAME", "SISTEMA SIC"),
            use_tls=getenv("SMTP_USE_TLS", "true").lower() in ("true", "1", "yes"),
            enabled=bool(getenv("SMTP_HOST")),
        )
        self.timezone = getenv("SIC_TIMEZONE", "America/Sao_Paulo")
        self.reports_dir = Path(getenv("REPORTS_DIR", "/app/data/reports"))
        self.realtime_debounce_ms = int(getenv("REALTIME_DEBOUNCE_MS", "200"))
        self.testing = getenv("TESTING", "false").lower() == "true"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
