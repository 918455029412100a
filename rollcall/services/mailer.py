"""Outbound mail for personal-code reminders."""
import smtplib
from email.message import EmailMessage
from typing import Optional, Tuple

from rollcall.core import config
from rollcall.core.logging_config import get_logger

logger = get_logger(__name__)


class MailerError(Exception):
    """Raised when a message could not be handed to the mail transport."""


class SmtpMailer:
    def __init__(
        self,
        host: str,
        port: int,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        sender: str = "no-reply@localhost",
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.sender = sender
        self.timeout = timeout

    def send(self, to: str, subject: str, body: str) -> None:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise MailerError(str(e)) from e

        logger.info("mail_sent", to=to, subject=subject)


class LogMailer:
    """Development transport: writes the message to the log instead of sending it."""

    def send(self, to: str, subject: str, body: str) -> None:
        logger.info("mail_not_sent", to=to, subject=subject, body=body)


def get_mailer():
    s = config.settings
    if not s.SMTP_HOST:
        return LogMailer()
    return SmtpMailer(
        host=s.SMTP_HOST,
        port=s.SMTP_PORT,
        username=s.SMTP_USERNAME,
        password=s.SMTP_PASSWORD,
        use_tls=s.SMTP_USE_TLS,
        sender=s.MAIL_FROM,
    )


def personal_code_message(personal_code: str, survey_title: str) -> Tuple[str, str]:
    """Subject and body of the personal-code reminder."""
    subject = f"Your registration code for {survey_title}"
    body = (
        f"Your personal code for {survey_title} is: {personal_code}\n\n"
        "Use this code to look up or edit your registration.\n"
        "If you did not request this message you can ignore it.\n"
    )
    return subject, body
