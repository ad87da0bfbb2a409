"""Password-reset verification codes: issue, email and check."""
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from roleplay_tutor.core.config import settings
from roleplay_tutor.core.errors import EmailDeliveryError
from roleplay_tutor.core.logging import get_logger
from roleplay_tutor.infrastructure.redis import generate_otp, get_otp_store

logger = get_logger(__name__)

OTP_SUBJECT = "Codice di verifica - Reimposta password"

OTP_TEXT_BODY = """Reimposta la tua password - Phoebe

Ciao,

Hai richiesto di reimpostare la password per il tuo account Phoebe.

Il tuo codice di verifica è: {code}

Inserisci questo codice nell'app Phoebe per completare il processo.

Importante: Questo codice scadrà tra {ttl} minuti. Se non hai richiesto questo reset, ignora questa email.
"""

OTP_HTML_BODY = """<!DOCTYPE html>
<html>
  <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="background-color: #0B3D4D; padding: 20px; text-align: center; border-radius: 8px 8px 0 0;">
      <h1 style="color: white; margin: 0;">Phoebe</h1>
    </div>
    <div style="background-color: #f9f9f9; padding: 30px; border-radius: 0 0 8px 8px;">
      <h2 style="color: #0B3D4D; margin-top: 0;">Reimposta la tua password</h2>
      <p>Ciao,</p>
      <p>Hai richiesto di reimpostare la password per il tuo account Phoebe.</p>
      <p><strong>Il tuo codice di verifica è:</strong></p>
      <div style="text-align: center; margin: 30px 0; font-size: 36px; font-weight: bold; letter-spacing: 8px; color: #0B3D4D;">{code}</div>
      <p style="color: #666; font-size: 12px;">
        <strong>Importante:</strong> Questo codice scadrà tra {ttl} minuti. Se non hai richiesto questo reset, ignora questa email.
      </p>
    </div>
  </body>
</html>
"""


def send_otp_email(email: str, code: str) -> None:
    """Email a verification code.

    Without SMTP configuration the email is logged instead of sent.

    Raises:
        EmailDeliveryError: If the SMTP server rejects or cannot take the message
    """
    if not settings.smtp_host:
        logger.warning("SMTP not configured - logging OTP email instead of sending")
        logger.info(f"OTP EMAIL WOULD BE SENT to {email}: {code}")
        return

    msg = MIMEMultipart("alternative")
    msg["From"] = settings.smtp_from_email
    msg["To"] = email
    msg["Subject"] = OTP_SUBJECT
    msg.attach(MIMEText(OTP_TEXT_BODY.format(code=code, ttl=settings.otp_ttl_minutes), "plain", "utf-8"))
    msg.attach(MIMEText(OTP_HTML_BODY.format(code=code, ttl=settings.otp_ttl_minutes), "html", "utf-8"))

    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as server:
            server.starttls()
            if settings.smtp_username and settings.smtp_password:
                server.login(settings.smtp_username, settings.smtp_password)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send OTP email: {e}")
        raise EmailDeliveryError("Impossibile inviare l'email. Verifica la configurazione SMTP.") from e

    logger.info(f"OTP email sent to {email}")


def issue_password_reset_code(email: str) -> None:
    """Generate, store and email a fresh code for ``email``.

    The code is deleted again when it cannot be stored or delivered, so a
    learner never holds a code they did not receive.

    Raises:
        EmailDeliveryError: If the code could not be stored or sent
    """
    code = generate_otp()
    store = get_otp_store()

    if not store.store(email, code):
        raise EmailDeliveryError("Impossibile generare il codice di verifica.")

    try:
        send_otp_email(email, code)
    except EmailDeliveryError:
        store.delete(email)
        raise


def verify_password_reset_code(email: str, code: str) -> bool:
    return get_otp_store().verify(email, code)
