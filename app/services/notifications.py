"""Verification email delivery (Mailgun)."""
import html
import logging
from abc import ABC, abstractmethod
from urllib.parse import quote

import httpx

from app.config import Settings

logger = logging.getLogger(__name__)

MAILGUN_US_BASE = "https://api.mailgun.net"
MAILGUN_EU_BASE = "https://api.eu.mailgun.net"

VERIFICATION_SUBJECT = "Please verify your email address"


class Notifier(ABC):
    @abstractmethod
    def send_verification_email(self, to_email: str, name: str, token: str) -> bool:
        """Deliver the verification link for `token`. Returns False when delivery failed."""


def verification_url(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/auth/verify-email?token={quote(token)}"


def render_verification_email(name: str, url: str, expire_hours: int) -> tuple[str, str]:
    """Return (text, html) bodies."""
    text = (
        f"Hello {name}, please verify your email by clicking this link: {url}\n"
        f"The link expires in {expire_hours} hours."
    )
    # name is user-supplied
    safe_name = html.escape(name)
    safe_url = html.escape(url, quote=True)
    body = f"""
    <p>Hello {safe_name},</p>
    <p>Please verify your email address by clicking the link below:</p>
    <p><a href="{safe_url}">Verify email</a></p>
    <p>Or copy this link: {safe_url}</p>
    <p>This link expires in {expire_hours} hours. If you did not create an account, you can ignore this email.</p>
    """
    return text, body


class MailgunNotifier(Notifier):
    """Sends through the Mailgun messages API.

    When Mailgun is not configured the link is logged instead; that counts as
    delivered outside production so local sign-ups keep working.
    """

    def __init__(self, settings: Settings, transport: httpx.BaseTransport | None = None):
        self.settings = settings
        self._transport = transport

    def send_verification_email(self, to_email: str, name: str, token: str) -> bool:
        s = self.settings
        url = verification_url(s.base_url, token)
        text, body = render_verification_email(name or "User", url, s.email_verification_expire_hours)
        if not s.mailgun_configured:
            if s.is_production:
                logger.error("Mailgun not configured; verification email to %s NOT SENT", to_email)
                return False
            logger.warning("Mailgun not configured; verification link for %s: %s", to_email, url)
            return True
        return self.send_email(to_email, VERIFICATION_SUBJECT, body, text_content=text)

    def _from_address(self) -> str:
        s = self.settings
        domain = s.mailgun_domain.lower()
        from_addr = s.mailgun_from_email
        from_domain = from_addr.split("@")[-1].lower() if "@" in from_addr else ""
        if domain and from_domain != domain:
            # Mailgun rejects senders outside the sending domain
            from_addr = f"noreply@{domain}"
        return f"{s.mailgun_from_name} <{from_addr}>"

    def send_email(self, to_email: str, subject: str, html_content: str, text_content: str | None = None) -> bool:
        s = self.settings
        base = (s.mailgun_base_url or MAILGUN_US_BASE).rstrip("/")
        domain = s.mailgun_domain.lower()
        data = {
            "from": self._from_address(),
            "to": to_email,
            "subject": subject,
            "text": text_content or "",
            "html": html_content or "",
        }
        auth = ("api", s.mailgun_api_key)
        try:
            with httpx.Client(timeout=10.0, transport=self._transport) as client:
                r = client.post(f"{base}/v3/{domain}/messages", auth=auth, data=data)
                if r.is_success:
                    logger.info("Verification email sent to %s (status=%s)", to_email, r.status_code)
                    return True
                if r.status_code == 401 and base == MAILGUN_US_BASE:
                    logger.warning("Mailgun 401 with US endpoint, retrying with EU endpoint")
                    r = client.post(f"{MAILGUN_EU_BASE}/v3/{domain}/messages", auth=auth, data=data)
                    if r.is_success:
                        logger.info("Verification email sent to %s via EU endpoint", to_email)
                        return True
                logger.error("Mailgun API failed: status=%s to=%s body=%s", r.status_code, to_email, r.text[:500])
                return False
        except httpx.HTTPError as e:
            logger.error("Mailgun request failed: to=%s error=%s: %s", to_email, type(e).__name__, e)
            return False
