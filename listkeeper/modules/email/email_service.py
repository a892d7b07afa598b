"""
Email Service Module
====================

Notification gateway for Listkeeper. Sends the confirmation email through one
of three providers, selected via EMAIL_PROVIDER config:

- 'resend'    (default) Resend REST API
- 'mailslurp' MailSlurp inbox send-and-confirm API
- 'smtp'      any SMTP server with STARTTLS (e.g. Gmail)

Only provider acceptance is confirmed, not delivery to the inbox. Every call
is bounded by EMAIL_TIMEOUT seconds.
"""

import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

import requests

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"
MAILSLURP_API_BASE = "https://api.mailslurp.com"

DEFAULT_TIMEOUT = 60


class SendError(Exception):
    """Base class for notification failures"""


class ProviderUnavailable(SendError):
    """Network failure, timeout, provider outage, or no provider configured"""


class ProviderRejected(SendError):
    """The provider refused the message (bad recipient, bad payload, auth)"""


class EmailService:
    """
    Configurable email service supporting Resend, MailSlurp, and SMTP.

    Configuration (set in Flask app.config):
        EMAIL_PROVIDER: 'resend' (default), 'mailslurp', or 'smtp'
        EMAIL_ADDRESS: Sender email address (default: onboarding@resend.dev)
        EMAIL_BRAND_NAME: Brand name used in subject and body
        EMAIL_TIMEOUT: Connect/response timeout in seconds (default: 60)
        RESEND_API_KEY: Resend API key (provider 'resend')
        MAILSLURP_API_KEY, MAILSLURP_INBOX_ID: sending inbox (provider 'mailslurp')
        EMAIL_HOST, EMAIL_PORT, EMAIL_PASSWORD: SMTP server (provider 'smtp')
    """

    def __init__(self, app=None):
        self.provider = 'resend'
        self.sender_email = None
        self.brand_name = 'our newsletter'
        self.timeout = DEFAULT_TIMEOUT
        self.api_key = None
        self.inbox_id = None
        self.smtp_host = None
        self.smtp_port = 587
        self.smtp_password = None
        self.session = requests.Session()

        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        """Initialize email service with Flask app configuration"""
        self.provider = (app.config.get('EMAIL_PROVIDER') or 'resend').lower()
        logger.info(f"Initializing email service (provider: {self.provider})")

        self.sender_email = app.config.get('EMAIL_ADDRESS', 'onboarding@resend.dev')
        self.brand_name = app.config.get('EMAIL_BRAND_NAME', 'our newsletter')
        self.timeout = float(app.config.get('EMAIL_TIMEOUT') or DEFAULT_TIMEOUT)

        if self.provider == 'mailslurp':
            self._init_mailslurp(app)
        elif self.provider == 'smtp':
            self._init_smtp(app)
        else:
            self._init_resend(app)

    def _init_resend(self, app):
        self.api_key = app.config.get('RESEND_API_KEY')
        if not self.api_key:
            logger.warning("RESEND_API_KEY not configured - email sending disabled")
            return
        logger.info("Resend API client initialized")

    def _init_mailslurp(self, app):
        self.api_key = app.config.get('MAILSLURP_API_KEY')
        self.inbox_id = app.config.get('MAILSLURP_INBOX_ID')
        if not self.api_key or not self.inbox_id:
            logger.warning("MAILSLURP_API_KEY/MAILSLURP_INBOX_ID not configured - email sending disabled")
            return
        logger.info(f"MailSlurp configured (inbox: {self.inbox_id})")

    def _init_smtp(self, app):
        self.smtp_host = app.config.get('EMAIL_HOST', 'smtp.gmail.com')
        self.smtp_port = int(app.config.get('EMAIL_PORT', 587))
        self.smtp_password = app.config.get('EMAIL_PASSWORD')
        if not self.smtp_password:
            logger.warning("EMAIL_PASSWORD not configured - SMTP email sending disabled")
            return
        logger.info(f"SMTP configured: {self.smtp_host}:{self.smtp_port}")

    # ==================== Sending ====================

    def send_email(self, to: str, subject: str, html_body: str,
                   text_body: Optional[str] = None) -> None:
        """
        Send one email via the configured provider.

        Raises:
            ProviderUnavailable: the provider could not be reached in time
            ProviderRejected: the provider refused the message
        """
        recipient = str(to)
        logger.info(f"Sending '{subject}' from {self.sender_email} to {recipient} via {self.provider}")

        if self.provider == 'mailslurp':
            self._send_via_mailslurp(recipient, subject, html_body, text_body)
        elif self.provider == 'smtp':
            self._send_via_smtp(recipient, subject, html_body, text_body)
        else:
            self._send_via_resend(recipient, subject, html_body, text_body)

        logger.info(f"Provider accepted email to {recipient}")

    def _post(self, url, headers, payload):
        """POST JSON to a provider API, translating failures into SendError"""
        try:
            resp = self.session.post(
                url,
                headers=headers,
                json=payload,
                timeout=(self.timeout, self.timeout),
            )
        except (requests.Timeout, requests.ConnectionError) as e:
            raise ProviderUnavailable(f"{self.provider} unreachable: {e}") from e
        except requests.RequestException as e:
            raise ProviderUnavailable(f"{self.provider} request failed: {e}") from e

        if resp.status_code == 429 or resp.status_code >= 500:
            raise ProviderUnavailable(f"{self.provider} returned {resp.status_code}: {resp.text[:200]}")
        if resp.status_code >= 400:
            raise ProviderRejected(f"{self.provider} returned {resp.status_code}: {resp.text[:200]}")
        return resp

    def _send_via_resend(self, recipient: str, subject: str, html_body: str,
                         text_body: Optional[str] = None) -> None:
        """Send a single email via the Resend API"""
        if not self.api_key:
            raise ProviderUnavailable("Resend API key not configured")

        payload = {
            "from": self.sender_email,
            "to": [recipient],
            "subject": subject,
            "html": html_body,
        }
        if text_body:
            payload["text"] = text_body

        resp = self._post(
            RESEND_API_URL,
            {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"},
            payload,
        )
        logger.debug(f"Resend accepted email to {recipient}: {resp.text[:200]}")

    def _send_via_mailslurp(self, recipient: str, subject: str, html_body: str,
                            text_body: Optional[str] = None) -> None:
        """Send a single email from the configured MailSlurp inbox"""
        if not self.api_key or not self.inbox_id:
            raise ProviderUnavailable("MailSlurp API key or inbox not configured")

        payload = {
            "to": [recipient],
            "subject": subject,
            "body": html_body,
            "isHTML": True,
            "useInboxName": True,
            "addTrackingPixel": False,
        }
        self._post(
            f"{MAILSLURP_API_BASE}/inboxes/{self.inbox_id}/confirm",
            {"x-api-key": self.api_key, "Content-Type": "application/json"},
            payload,
        )

    def _send_via_smtp(self, recipient: str, subject: str, html_body: str,
                       text_body: Optional[str] = None) -> None:
        """Send a single email via SMTP (e.g. Gmail)"""
        if not self.smtp_password:
            raise ProviderUnavailable("SMTP password not configured")

        msg = MIMEMultipart('alternative')
        msg['From'] = self.sender_email
        msg['To'] = recipient
        msg['Subject'] = subject

        if text_body:
            msg.attach(MIMEText(text_body, 'plain', 'utf-8'))
        msg.attach(MIMEText(html_body, 'html', 'utf-8'))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                server.starttls()
                server.login(self.sender_email, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPRecipientsRefused, smtplib.SMTPSenderRefused,
                smtplib.SMTPDataError, smtplib.SMTPAuthenticationError) as e:
            raise ProviderRejected(f"SMTP refused message: {e}") from e
        except (smtplib.SMTPException, OSError) as e:
            raise ProviderUnavailable(f"SMTP error: {e}") from e

    # ==================== Confirmation Email ====================

    def send_confirmation(self, to, confirmation_link: str, name: Optional[str] = None) -> None:
        """Send the double opt-in email carrying the confirmation link"""
        subject = f"Welcome to {self.brand_name}!"
        html_body = self._get_confirmation_template(confirmation_link, name)
        greeting = f"Hi {name}," if name else "Hi,"
        text_body = f"""
{greeting}

Welcome to {self.brand_name}!

Visit {confirmation_link} to confirm your subscription.

If you didn't sign up, you can safely ignore this email.
        """
        self.send_email(to, subject, html_body, text_body)

    def _get_confirmation_template(self, confirmation_link: str, name: Optional[str] = None) -> str:
        """Get confirmation email HTML template"""
        greeting = f"Hi {html.escape(name)}," if name else "Hi,"
        link = html.escape(confirmation_link, quote=True)
        brand = html.escape(self.brand_name)
        return f"""
        <!DOCTYPE html>
        <html>
        <body style="font-family: 'Georgia', serif; color: #2a2a2a; background: #f8f6f0; padding: 24px;">
            <div style="max-width: 560px; margin: 0 auto; background: #ffffff; padding: 32px;">
                <p>{greeting}</p>
                <p>Welcome to {brand}!<br/>
                Click <a href="{link}">here</a> to confirm your subscription.</p>
                <p style="color: #666666; font-size: 13px;">
                    If you didn't sign up, you can safely ignore this email.
                </p>
            </div>
        </body>
        </html>
        """


# Global email service instance
email_service = EmailService()
