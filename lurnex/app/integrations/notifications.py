"""
Email notifications for class cancellations and login credentials.

Delivery is best effort: SMTP failures are logged and never raised to the
caller. Without an SMTP server configured, messages are logged and dropped.
"""
import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Iterable, List, Optional

from lurnex.app.core.settings import get_settings
from lurnex.app.core.time import ensure_utc

logger = logging.getLogger(__name__)


def build_message(sender: str, recipients: List[str], subject: str, html: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = sender
    message["Subject"] = subject
    if len(recipients) == 1:
        message["To"] = recipients[0]
    else:
        message["Bcc"] = ", ".join(recipients)
    message.set_content("Your email client does not support HTML messages.")
    message.add_alternative(html, subtype="html")
    return message


def cancellation_body(session, trainer, reason: str, cancelled_by: str) -> str:
    class_time = ensure_utc(session.start_time).strftime("%A, %d %B %Y %H:%M UTC")
    trainer_name = trainer.name if trainer else "N/A"
    return f"""
        <p>Hello,</p>
        <p>This is an automated notification to inform you that the following class has been <strong>cancelled</strong>:</p>
        <ul>
            <li><strong>Class:</strong> {session.title}</li>
            <li><strong>Time:</strong> {class_time}</li>
            <li><strong>Trainer:</strong> {trainer_name}</li>
        </ul>
        <p>
            <strong>Cancelled By:</strong> {cancelled_by.capitalize()}<br/>
            <strong>Reason:</strong> {reason}
        </p>
        <p>No hours will be deducted from student accounts for this class. Please check your dashboard for any schedule updates.</p>
        <p>We apologize for any inconvenience.</p>
        <p>Sincerely,<br/>The Admin Team</p>
    """


def credentials_body(email: str, temporary_password: str) -> str:
    return f"""
        <h1>Welcome to the Platform!</h1>
        <p>Your account has been activated. You can now log in using these credentials:</p>
        <ul>
            <li><strong>Email:</strong> {email}</li>
            <li><strong>Temporary Password:</strong> {temporary_password}</li>
        </ul>
        <p>Please change your password after your first login.</p>
        <p>Thank you!</p>
    """


class EmailNotificationDispatcher:
    def __init__(
        self,
        smtp_server: str,
        smtp_port: int = 587,
        username: str = "",
        password: str = "",
        sender_name: str = "Lurnex LMS",
    ):
        self.smtp_server = smtp_server
        self.smtp_port = smtp_port
        self.username = username
        self.password = password
        self.sender = f'"{sender_name}" <{username}>' if username else sender_name

    @classmethod
    def from_settings(cls, settings=None) -> "EmailNotificationDispatcher":
        settings = settings or get_settings()
        return cls(
            smtp_server=settings.smtp_server,
            smtp_port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            sender_name=settings.email_from_name,
        )

    def _send(self, recipients: Iterable[Optional[str]], subject: str, html: str) -> bool:
        to = list(dict.fromkeys(email for email in recipients if email))
        if not to:
            logger.warning("No recipients for email %r; skipping", subject)
            return False
        if not self.smtp_server:
            logger.info("SMTP not configured; not sending %r to %s", subject, ", ".join(to))
            return False

        message = build_message(self.sender, to, subject, html)
        try:
            with smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=10) as server:
                server.starttls(context=ssl.create_default_context())
                if self.username:
                    server.login(self.username, self.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send %r to %s: %s", subject, ", ".join(to), exc)
            return False
        logger.info("Sent %r to %s recipient(s)", subject, len(to))
        return True

    def notify_cancellation(self, students, trainer, session, reason: str, cancelled_by: str) -> None:
        recipients = [student.email for student in students]
        if trainer is not None:
            recipients.append(trainer.email)
        self._send(
            recipients,
            f"CLASS CANCELLATION: {session.title}",
            cancellation_body(session, trainer, reason, cancelled_by),
        )

    def notify_credentials(self, email: str, temporary_password: str) -> None:
        self._send(
            [email],
            "Welcome to Lurnex LMS! Your Login Credentials",
            credentials_body(email, temporary_password),
        )


_dispatcher_instance = None


def get_notification_dispatcher() -> EmailNotificationDispatcher:
    global _dispatcher_instance
    if _dispatcher_instance is None:
        _dispatcher_instance = EmailNotificationDispatcher.from_settings()
    return _dispatcher_instance
