from email.mime.text import MIMEText
import logging
import smtplib
import ssl
from typing import Optional

from . import config

logger = logging.getLogger(__name__)

ASSUNTO_REDEFINICAO = "Código de Recuperação de Senha"


def _html_redefinicao(codigo: str) -> str:
    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
      <h2 style="color: #333;">Recuperação de Senha</h2>
      <p>Você solicitou a recuperação de sua senha. Use o código abaixo para redefinir sua senha:</p>
      <div style="background-color: #f5f5f5; padding: 20px; text-align: center; margin: 20px 0; border-radius: 8px;">
        <span style="font-size: 32px; font-weight: bold; letter-spacing: 8px; color: #007AFF;">{codigo}</span>
      </div>
      <p>Este código expira em <strong>15 minutos</strong>.</p>
      <p style="color: #666; font-size: 14px;">Se você não solicitou esta recuperação, ignore este e-mail.</p>
    </div>
    """


class EmailSMTP:
    """Envio via servidor SMTP. Erros de rede ou autenticação são propagados."""

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        remetente: str = config.EMAIL_FROM,
        use_tls: bool = True,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.remetente = remetente
        self.use_tls = use_tls

    def enviar_codigo_redefinicao(self, destinatario: str, codigo: str) -> None:
        msg = MIMEText(_html_redefinicao(codigo), "html", "utf-8")
        msg["Subject"] = ASSUNTO_REDEFINICAO
        msg["From"] = self.remetente
        msg["To"] = destinatario

        if self.port == 465:
            server = smtplib.SMTP_SSL(self.host, self.port, context=ssl.create_default_context(), timeout=30)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=30)
        try:
            if self.port != 465 and self.use_tls:
                server.starttls(context=ssl.create_default_context())
            if self.username and self.password:
                server.login(self.username, self.password)
            server.sendmail(self.remetente.split("<")[-1].rstrip(">"), [destinatario], msg.as_string())
        finally:
            server.quit()
        logger.info("E-mail de redefinição enviado via %s", self.host)


class EmailLog:
    """Modo desenvolvimento: o código vai apenas para o log."""

    def enviar_codigo_redefinicao(self, destinatario: str, codigo: str) -> None:
        logger.info("Código de redefinição para %s: %s", destinatario, codigo)


def criar_servico_email():
    if not config.SMTP_HOST:
        logger.warning("SMTP_HOST não configurado; códigos de redefinição serão apenas registrados no log")
        return EmailLog()
    return EmailSMTP(
        config.SMTP_HOST,
        port=config.SMTP_PORT,
        username=config.SMTP_USERNAME,
        password=config.SMTP_PASSWORD,
        remetente=config.EMAIL_FROM,
        use_tls=config.SMTP_USE_TLS,
    )
