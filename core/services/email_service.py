# Nombre de archivo: email_service.py
# Ubicación de archivo: core/services/email_service.py
# Descripción: Envío por SMTP de los códigos de recuperación de contraseña

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import List, Optional

from core.config import SmtpSettings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class EmailResult:
    """Resultado del envío de correo."""

    success: bool
    message: str
    error: Optional[str] = None


class EmailService:
    """Servicio para enviar correos electrónicos."""

    def __init__(self, settings: Optional[SmtpSettings] = None) -> None:
        self.settings = settings or get_settings().smtp

    def is_configured(self) -> bool:
        return self.settings.enabled and bool(self.settings.host)

    def send_email(
        self,
        to: List[str],
        subject: str,
        body: str,
        html_body: Optional[str] = None,
    ) -> EmailResult:
        """Envía un correo en texto plano y, opcionalmente, su alternativa HTML."""

        if not self.is_configured():
            logger.error("action=send_email error=smtp_not_configured")
            return EmailResult(
                success=False,
                message="Serviço de email não configurado",
                error="SMTP_HOST não definido",
            )

        if not to:
            return EmailResult(success=False, message="Nenhum destinatário", error="Lista vazia")

        msg = MIMEMultipart("alternative")
        msg["From"] = formataddr((self.settings.from_name, self.settings.from_email))
        msg["To"] = ", ".join(to)
        msg["Subject"] = subject
        msg.attach(MIMEText(body, "plain", "utf-8"))
        if html_body:
            msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            with smtplib.SMTP(self.settings.host, self.settings.port) as server:
                if self.settings.use_tls:
                    server.starttls()
                if self.settings.user and self.settings.password:
                    server.login(self.settings.user, self.settings.password)
                server.sendmail(self.settings.from_email, to, msg.as_string())
        except smtplib.SMTPAuthenticationError as exc:
            logger.error("action=send_email error=auth_failed detail=%s", exc)
            return EmailResult(success=False, message="Erro de autenticação SMTP", error=str(exc))
        except smtplib.SMTPRecipientsRefused as exc:
            logger.error("action=send_email error=recipients_refused detail=%s", exc)
            return EmailResult(success=False, message="Destinatários recusados", error=str(exc))
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("action=send_email error=smtp_error detail=%s", exc)
            return EmailResult(success=False, message="Erro ao enviar email", error=str(exc))

        logger.info("action=send_email to=%s subject=%s success=true", len(to), subject[:50])
        return EmailResult(success=True, message=f"Email enviado para {len(to)} destinatário(s)")

    def send_reset_code(self, email: str, code: str, ttl_minutes: int) -> EmailResult:
        body = (
            f"Seu código de recuperação de senha é {code}.\n"
            f"Ele expira em {ttl_minutes} minutos.\n\n"
            "Se você não solicitou a recuperação, ignore esta mensagem."
        )
        return self.send_email([email], "SISTEMA SIC - Código de recuperação", body)


# Singleton para uso global
_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Obtiene la instancia singleton del servicio de email."""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
