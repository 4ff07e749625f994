"""
Service email transactionnel (SMTP Gmail par défaut).

Envoie les emails de confirmation de commande et de suivi de colis à partir de
templates Jinja2 (templates/emails/). L'envoi SMTP est bloquant: il passe par le
threadpool Starlette pour ne pas bloquer la boucle asyncio.

Toutes les méthodes d'envoi retournent un booléen; les erreurs SMTP sont
journalisées et ne remontent jamais à l'appelant.

Usage:
    notifier = EmailNotifier(settings)
    ok = await notifier.send_order_confirmation("jane@example.com", "Jane", "cs_test_123")
"""
import logging
import smtplib
from datetime import datetime, timezone
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape
from starlette.concurrency import run_in_threadpool

from storefront.config import Settings, TEMPLATES_DIR

logger = logging.getLogger(__name__)

ORDER_CONFIRMATION_SUBJECT = "Your Pawsitive Peace Order is Ready! 🐾"
TRACKING_SUBJECT = "Your Pawsitive Peace Order is On The Way! 🚚"
TEST_SUBJECT = "🧪 Pawsitive Peace Email Test - Simple"

templates = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)


class EmailNotifier:
    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def sender(self) -> str:
        return f"{self.settings.mail_from_name} <{self.settings.email_user}>"

    # --- Rendu des templates (aussi utilisé par les endpoints de prévisualisation) ---

    def render_order_confirmation(self, name: str, order_id: str) -> str:
        return templates.get_template("emails/order_confirmation.html").render(
            customer_name=name,
            order_id=order_id,
            support_email=self.settings.support_email,
        )

    def render_tracking_update(
        self, name: str, order_id: str, tracking_number: str, carrier: str, estimated_delivery: str
    ) -> str:
        return templates.get_template("emails/tracking_update.html").render(
            customer_name=name,
            order_id=order_id,
            tracking_number=tracking_number,
            carrier=carrier,
            estimated_delivery=estimated_delivery,
            support_email=self.settings.support_email,
        )

    def render_test_email(self, sent_at: str) -> str:
        return templates.get_template("emails/test_email.html").render(sent_at=sent_at)

    # --- Envois ---

    async def send_order_confirmation(self, email: str, name: str, order_id: str) -> bool:
        html = self.render_order_confirmation(name, order_id)
        return await self._send(email, ORDER_CONFIRMATION_SUBJECT, html)

    async def send_tracking_update(
        self,
        email: str,
        name: str,
        order_id: str,
        tracking_number: str,
        carrier: str,
        estimated_delivery: str,
    ) -> bool:
        html = self.render_tracking_update(name, order_id, tracking_number, carrier, estimated_delivery)
        return await self._send(email, TRACKING_SUBJECT, html)

    async def send_test_email(self, to: str) -> bool:
        sent_at = datetime.now(timezone.utc).isoformat()
        text = (
            "Email Test Successful!\n\n"
            "If you received this email, your Gmail configuration is working correctly.\n\n"
            f"Time: {sent_at}\n"
        )
        return await self._send(to, TEST_SUBJECT, self.render_test_email(sent_at), text=text)

    async def verify(self) -> bool:
        """Ouvre une connexion SMTP authentifiée (sans envoi) pour valider la configuration."""
        if not self.settings.email_configured:
            logger.warning("Email not verified: EMAIL_USER or EMAIL_PASS not configured.")
            return False
        try:
            await run_in_threadpool(self._login_only)
        except (smtplib.SMTPException, OSError):
            logger.warning("Email configuration verification failed", exc_info=True)
            return False
        logger.info("Email configuration verified successfully")
        return True

    def build_message(self, to: str, subject: str, html: str, text: Optional[str] = None) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to
        if text:
            msg.attach(MIMEText(text, "plain"))
        msg.attach(MIMEText(html, "html"))
        return msg

    async def _send(self, to: str, subject: str, html: str, text: Optional[str] = None) -> bool:
        if not self.settings.email_configured:
            logger.warning("Email not sent: EMAIL_USER or EMAIL_PASS not configured.")
            return False
        msg = self.build_message(to, subject, html, text)
        try:
            await run_in_threadpool(self._send_smtp, msg)
        except (smtplib.SMTPException, OSError):
            logger.exception("Failed to send email to %s (%s)", to, subject)
            return False
        logger.info("Email sent to %s (%s)", to, subject)
        return True

    def _connect(self) -> smtplib.SMTP:
        server = smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port, timeout=self.settings.smtp_timeout)
        try:
            server.ehlo()
            server.starttls()
            server.ehlo()
            server.login(self.settings.email_user, self.settings.email_pass)
        except Exception:
            server.close()
            raise
        return server

    def _login_only(self) -> None:
        with self._connect():
            pass

    def _send_smtp(self, msg: MIMEMultipart) -> None:
        with self._connect() as server:
            server.send_message(msg)
