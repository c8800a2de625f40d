"""
Service d'envoi d'emails SMTP.
Utilisé pour envoyer le lien de réinitialisation du mot de passe.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from autoshop.config import settings

logger = logging.getLogger(__name__)


def send_password_reset_email(
    to_email: str,
    recipient_name: str,
    reset_url: str,
    expires_minutes: int,
) -> None:
    """
    Envoie un email (texte + HTML) contenant le lien de réinitialisation.
    Lève une exception en cas d'échec SMTP ; l'appelant décide quoi en faire.
    """
    msg = MIMEMultipart("alternative")
    msg["From"] = settings.SMTP_FROM
    msg["To"] = to_email
    msg["Subject"] = "Réinitialisation de votre mot de passe (DADJ Auto Shop)"

    text_content = (
        f"Bonjour {recipient_name},\n\n"
        "Nous avons reçu une demande de réinitialisation du mot de passe de votre compte.\n"
        f"Ouvrez ce lien pour choisir un nouveau mot de passe :\n{reset_url}\n\n"
        f"Ce lien expire dans {expires_minutes} minutes.\n"
        "Si vous n'êtes pas à l'origine de cette demande, ignorez cet email."
    )

    html_content = f"""
    <html>
      <body style="font-family: Arial, sans-serif; color: #333; max-width: 600px; margin: auto;">
        <h2 style="color: #000080;">DADJ Auto Shop : réinitialisation du mot de passe</h2>
        <p>Bonjour {recipient_name},</p>
        <p>Nous avons reçu une demande de réinitialisation du mot de passe de votre compte.</p>
        <div style="text-align: center; margin: 30px 0;">
          <a href="{reset_url}"
             style="background-color: #000080; color: white; padding: 12px 24px;
                    text-decoration: none; border-radius: 6px; display: inline-block;">
            Réinitialiser le mot de passe
          </a>
        </div>
        <p style="font-size: 14px; color: #666;">
          Ou copiez ce lien dans votre navigateur :<br>
          <a href="{reset_url}">{reset_url}</a>
        </p>
        <p style="font-size: 14px; color: #666;">
          <strong>Ce lien expire dans {expires_minutes} minutes.</strong>
        </p>
        <hr style="border: none; border-top: 1px solid #eee;" />
        <p style="font-size: 12px; color: #888;">
          Si vous n'êtes pas à l'origine de cette demande, ignorez cet email :
          votre mot de passe reste inchangé.
        </p>
      </body>
    </html>
    """

    msg.attach(MIMEText(text_content, "plain", "utf-8"))
    msg.attach(MIMEText(html_content, "html", "utf-8"))

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
        if settings.SMTP_USE_TLS:
            server.starttls()
        if settings.SMTP_USERNAME:
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        server.send_message(msg)

    logger.info("Email de réinitialisation envoyé à %s", to_email)
