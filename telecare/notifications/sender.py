import logging
import smtplib
import ssl
from email.message import EmailMessage

from telecare.core import config


logger = logging.getLogger(__name__)


class SmtpSender:
    def __init__(
        self,
        host: str,
        port: int,
        username: str = '',
        password: str = '',
        use_tls: bool = True,
        from_address: str = config.EMAIL_FROM_ADDRESS,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.from_address = from_address

    def send(self, recipient: str, subject: str, html_body: str) -> None:
        message = EmailMessage()
        message['From'] = self.from_address
        message['To'] = recipient
        message['Subject'] = subject
        message.set_content('This message requires an HTML capable mail client.')
        message.add_alternative(html_body, subtype='html')

        with smtplib.SMTP(self.host, self.port, timeout=30) as server:
            if self.use_tls:
                server.starttls(context=ssl.create_default_context())
            if self.username:
                server.login(self.username, self.password)
            server.send_message(message)

        logger.info('Email "%s" sent to %s via %s', subject, recipient, self.host)


class LogSender:
    """Used when no SMTP server is configured; only logs the message."""

    def send(self, recipient: str, subject: str, html_body: str) -> None:
        logger.info('Email "%s" to %s (SMTP not configured, not delivered)', subject, recipient)


def build_sender():
    if config.SMTP_HOST:
        return SmtpSender(
            host=config.SMTP_HOST,
            port=config.SMTP_PORT,
            username=config.SMTP_USERNAME,
            password=config.SMTP_PASSWORD,
            use_tls=config.SMTP_USE_TLS,
        )
    return LogSender()
