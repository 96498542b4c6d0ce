from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from .docker_ops import ContainerRef
from .settings import settings

logger = logging.getLogger("pns")


def send_email(subject: str, body: str) -> bool:
    """Send an email if SMTP settings are configured.

    Environment variables:
      - PNS_ENABLE_EMAIL=true
      - PNS_SMTP_HOST / PNS_SMTP_PORT
      - PNS_SMTP_USER / PNS_SMTP_PASSWORD
      - PNS_EMAIL_FROM / PNS_EMAIL_TO
    """
    if not settings.enable_email:
        return False
    if not all(
        [
            settings.smtp_host,
            settings.smtp_port,
            settings.smtp_user,
            settings.smtp_password,
            settings.email_from,
            settings.email_to,
        ]
    ):
        logger.warning("Email alerting is enabled but SMTP settings are incomplete.")
        return False

    msg = MIMEMultipart()
    msg["From"] = settings.email_from
    msg["To"] = settings.email_to
    msg["Subject"] = subject
    msg.attach(MIMEText(body, "plain"))

    try:
        server = smtplib.SMTP(settings.smtp_host, settings.smtp_port)
        try:
            server.starttls()
            server.login(settings.smtp_user, settings.smtp_password)
            server.sendmail(settings.email_from, [settings.email_to], msg.as_string())
        finally:
            server.quit()
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Failed to send alert email: %s", e)
        return False
    return True


def notify_terminated(proxy: ContainerRef | None, error: BaseException) -> bool:
    name = proxy.name if proxy else settings.proxy_container
    subject = f"pns stopped: {name} is no longer kept in sync"
    body = (
        f"Proxy container: {name}\n"
        f"Container id: {proxy.id if proxy else '-'}\n"
        f"Reason: {error}\n"
        f"Cause: {error.__cause__!r}\n"
    )
    return send_email(subject, body)
