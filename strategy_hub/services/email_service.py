# strategy_hub/services/email_service.py
"""
Email service for verification and password-reset links.
Without an SMTP relay configured the message is logged instead of sent.
"""
import smtplib
from email.message import EmailMessage
from typing import Optional

from ..utils.config import Settings, get_settings
from ..utils.logger import logger


class EmailService:
    """Service for sending account e-mails (verification, password reset)."""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.base_url = settings.public_base_url
        self.smtp_host = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.smtp_user = settings.smtp_user
        self.smtp_password = settings.smtp_password
        self.from_email = settings.from_email

    def verification_url(self, token: str) -> str:
        return f"{self.base_url}/verify-email?token={token}"

    def reset_url(self, token: str) -> str:
        return f"{self.base_url}/reset-password?token={token}"

    def send_verification_email(self, email: str, token: str) -> bool:
        body = f"""
Hello,

Please confirm your e-mail address by opening the link below:

{self.verification_url(token)}

This link will expire in 24 hours.

If you didn't create an account, please ignore this email.
"""
        return self._send(email, "Verify your e-mail address", body)

    def send_password_reset_email(self, email: str, token: str) -> bool:
        body = f"""
Hello,

A password reset was requested for your account. Choose a new password here:

{self.reset_url(token)}

This link will expire in 1 hour.

If you didn't request a password reset, please ignore this email.
"""
        return self._send(email, "Reset your password", body)

    def _send(self, recipient: str, subject: str, body: str) -> bool:
        """
        Deliver one message. Returns False on SMTP failure; the caller's
        operation does not depend on delivery.
        """
        if not self.smtp_host:
            # Development mode: log instead of sending (never the link itself)
            logger.info(f"[EMAIL SERVICE] '{subject}' for {recipient} (SMTP not configured, not sent)")
            return True

        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.from_email
        message["To"] = recipient
        message.set_content(body)
        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=10) as smtp:
                smtp.starttls()
                if self.smtp_user and self.smtp_password:
                    smtp.login(self.smtp_user, self.smtp_password)
                smtp.send_message(message)
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"[EMAIL SERVICE] Error sending email to {recipient}: {e}")
            return False


# Global instance
email_service = EmailService()
