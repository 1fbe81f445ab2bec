"""Outgoing e-mail over SMTP.

Transport settings come from SMTP_* environment variables (see
workboard.config). Callers decide whether a failed send is fatal: account
registration carries on without mail, password recovery does not.
"""

import html
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from urllib.parse import urlencode

from workboard.config import Settings, settings
from workboard.logging_config import get_logger

logger = get_logger(__name__)


class MailerNotConfigured(Exception):
    """Raised when sending is attempted without SMTP_HOST."""


def is_configured(cfg: Settings = settings) -> bool:
    return bool(cfg.smtp_host)


def send_email(
    to_email: str,
    subject: str,
    text_body: str,
    html_body: str,
    cfg: Settings = settings,
) -> None:
    """Send an email via SMTP. Raises on failure."""
    if not is_configured(cfg):
        raise MailerNotConfigured("SMTP is not configured")

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{cfg.smtp_from_name} <{cfg.smtp_from_email}>"
    msg["To"] = to_email
    msg.attach(MIMEText(text_body, "plain"))
    msg.attach(MIMEText(html_body, "html"))

    with smtplib.SMTP(cfg.smtp_host, cfg.smtp_port, timeout=15) as server:
        if cfg.smtp_use_tls:
            server.starttls(context=ssl.create_default_context())
        if cfg.smtp_username and cfg.smtp_password:
            server.login(cfg.smtp_username, cfg.smtp_password)
        server.sendmail(cfg.smtp_from_email, to_email, msg.as_string())
    logger.info(f"Sent '{subject}' to {to_email}")


def build_link(path: str, user_id: str, secret: str, cfg: Settings = settings) -> str:
    """Dashboard link carrying a userId/secret pair, e.g. /verify-email?..."""
    query = urlencode({"userId": user_id, "secret": secret})
    return f"{cfg.app_url}{path}?{query}"


def _render(heading: str, intro: str, link: str, action: str) -> tuple[str, str]:
    text = f"{heading}\n\n{intro}\n\n{action}: {link}\n"
    heading, intro, link = html.escape(heading), html.escape(intro), html.escape(link)
    body = f"""<!DOCTYPE html>
<html>
<body style="font-family: -apple-system, Helvetica, Arial, sans-serif; color: #171717;">
  <h2>{heading}</h2>
  <p>{intro}</p>
  <p><a href="{link}" style="display:inline-block;padding:10px 18px;background:#2563eb;color:#ffffff;border-radius:6px;text-decoration:none;">{action}</a></p>
  <p style="font-size:12px;color:#737373;">If the button does not work, open this link: {link}</p>
</body>
</html>"""
    return text, body


def send_verification_email(to_email: str, name: str, user_id: str, secret: str) -> None:
    link = build_link("/verify-email", user_id, secret)
    text, html_body = _render(
        f"Welcome, {name}!",
        "Confirm your e-mail address to finish setting up your account.",
        link,
        "Verify e-mail",
    )
    send_email(to_email, "Verify your e-mail address", text, html_body)


def send_recovery_email(to_email: str, user_id: str, secret: str) -> None:
    link = build_link("/reset-password", user_id, secret)
    text, html_body = _render(
        "Reset your password",
        "Someone asked to reset the password for this account. "
        "If it wasn't you, you can ignore this message.",
        link,
        "Choose a new password",
    )
    send_email(to_email, "Password reset", text, html_body)
