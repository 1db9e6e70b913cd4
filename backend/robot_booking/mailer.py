import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from urllib.parse import quote

from .config import CLIENT_BASE_URL, SMTP_FROM, SMTP_HOST, SMTP_PASSWORD, SMTP_PORT, SMTP_USERNAME

logger = logging.getLogger(__name__)


def reset_link(email: str, token: str) -> str:
    return f"{CLIENT_BASE_URL}/reset-password?token={quote(token)}&email={quote(email)}"


def send_email(to: str, subject: str, html_content: str) -> None:
    if not SMTP_HOST:
        logger.info("SMTP not configured, skipping mail to %s: %s", to, subject)
        return

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = SMTP_FROM
    msg["To"] = to
    msg.attach(MIMEText(html_content, "html"))

    context = ssl.create_default_context()
    if SMTP_PORT == 465:
        server = smtplib.SMTP_SSL(SMTP_HOST, SMTP_PORT, context=context, timeout=30)
    else:
        server = smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=30)
        server.starttls(context=context)
    try:
        if SMTP_USERNAME:
            server.login(SMTP_USERNAME, SMTP_PASSWORD)
        server.sendmail(SMTP_FROM, [to], msg.as_string())
    finally:
        server.quit()
    logger.info("Mail sent to %s via %s", to, SMTP_HOST)


def send_password_reset(email: str, token: str) -> None:
    """Runs as a background task; errors are logged since the response is already sent."""
    link = reset_link(email, token)
    if not SMTP_HOST:
        logger.info("Password reset link for %s: %s", email, link)
        return
    html = (
        "<h2>Återställ ditt lösenord</h2>"
        f"<p>Klicka <a href='{link}'>här</a> för att återställa ditt lösenord.</p>"
        "<p>Om du inte begärt att återställa ditt lösenord kan du bortse från detta mail.</p>"
    )
    try:
        send_email(email, "Återställ ditt lösenord", html)
    except (smtplib.SMTPException, OSError):
        logger.exception("Could not send password reset mail to %s", email)
