"""Email notifications for account flows."""

import logging
import smtplib
from dataclasses import dataclass
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from jinja2 import Environment, FileSystemLoader, select_autoescape

from flowauth.config import Settings, get_settings
from flowauth.errors import NotificationError

logger = logging.getLogger("flowauth")

APP_NAME = "Flowauth"
TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"


class NotificationKind(str, Enum):
    VERIFICATION = "verification"
    PASSWORD_RESET = "password_reset"
    WELCOME = "welcome"


SUBJECTS = {
    NotificationKind.VERIFICATION: "Verify Your Email Address",
    NotificationKind.PASSWORD_RESET: "Reset Your Password",
    NotificationKind.WELCOME: f"Welcome to {APP_NAME}!",
}

LINK_PATHS = {
    NotificationKind.VERIFICATION: "/verify-email",
    NotificationKind.PASSWORD_RESET: "/reset-password",
}


class Notifier(Protocol):
    """Delivery channel for account emails.

    ``payload`` carries ``name`` and, for token-bearing kinds, ``token`` (the
    raw secret) and ``expires_in`` (human-readable validity).
    """

    def send(self, recipient: str, kind: NotificationKind, payload: dict[str, Any]) -> None: ...


@dataclass
class RenderedEmail:
    subject: str
    html: str


class EmailRenderer:
    """Renders notification templates into subject + HTML body."""

    def __init__(self, client_url: str) -> None:
        self.client_url = client_url.rstrip("/")
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"]),
        )

    def link_for(self, kind: NotificationKind, token: str) -> str:
        return f"{self.client_url}{LINK_PATHS[kind]}?token={token}"

    def render(self, kind: NotificationKind, payload: dict[str, Any]) -> RenderedEmail:
        context = {
            "app_name": APP_NAME,
            "year": datetime.utcnow().year,
            "name": payload.get("name", ""),
            "expires_in": payload.get("expires_in", ""),
        }
        if kind in LINK_PATHS:
            context["link"] = self.link_for(kind, payload["token"])
        html = self.env.get_template(f"{kind.value}.html").render(**context)
        return RenderedEmail(subject=SUBJECTS[kind], html=html)


class ConsoleNotifier:
    """Development notifier: logs that an email would be sent.

    The message body is never logged because it contains the raw token.
    """

    def __init__(self, renderer: EmailRenderer) -> None:
        self.renderer = renderer

    def send(self, recipient: str, kind: NotificationKind, payload: dict[str, Any]) -> None:
        email = self.renderer.render(kind, payload)
        logger.info("EMAIL (%s) to %s: %s", kind.value, recipient, email.subject)


class SmtpNotifier:
    """Sends email through an SMTP relay."""

    def __init__(
        self,
        renderer: EmailRenderer,
        host: str,
        port: int,
        from_email: str,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self.renderer = renderer
        self.host = host
        self.port = port
        self.from_email = from_email
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def send(self, recipient: str, kind: NotificationKind, payload: dict[str, Any]) -> None:
        """Deliver one email. Raises NotificationError if the relay rejects it or is unreachable."""
        email = self.renderer.render(kind, payload)

        message = MIMEMultipart("alternative")
        message["Subject"] = email.subject
        message["From"] = f"{APP_NAME} <{self.from_email}>"
        message["To"] = recipient
        message.attach(MIMEText(email.html, "html"))

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username:
                    server.login(self.username, self.password)
                server.sendmail(self.from_email, [recipient], message.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send %s email to %s: %s", kind.value, recipient, type(e).__name__)
            raise NotificationError(f"Failed to send {kind.value} email") from e

        logger.info("Email sent to %s: %s", recipient, email.subject)


def build_notifier(settings: Settings) -> Notifier:
    renderer = EmailRenderer(settings.CLIENT_URL)
    if settings.EMAIL_BACKEND == "smtp":
        return SmtpNotifier(
            renderer=renderer,
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            from_email=settings.EMAIL_FROM,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            use_tls=settings.SMTP_USE_TLS,
        )
    return ConsoleNotifier(renderer)


_notifier: Notifier | None = None


def get_notifier() -> Notifier:
    """Get singleton notifier for the configured backend."""
    global _notifier
    if _notifier is None:
        _notifier = build_notifier(get_settings())
    return _notifier
