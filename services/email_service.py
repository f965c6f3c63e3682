import logging
from typing import Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from core.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    """
    Centralized email utility.
    Sends organization invites and password recovery codes via SendGrid.
    """

    def __init__(self, api_key: Optional[str] = None, sender_email: Optional[str] = None):
        self.sendgrid_api_key = api_key
        self.sender_email = sender_email

        self.enabled = bool(self.sendgrid_api_key and self.sender_email)
        if not self.enabled:
            logger.warning("📧 Email service not configured. Missing SENDGRID_API_KEY or MAIL_FROM.")
        else:
            logger.info("📧 Email service configured and ready. Sender: %s", self.sender_email)

    def _send(self, to_email: str, subject: str, html_content: str) -> bool:
        try:
            message = Mail(
                from_email=self.sender_email,
                to_emails=to_email,
                subject=subject,
                html_content=html_content,
            )
            sg = SendGridAPIClient(self.sendgrid_api_key)
            response = sg.send(message)
            logger.info("✅ Email '%s' sent to %s. Status: %s", subject, to_email, response.status_code)
            return True
        except Exception as e:
            logger.exception("❌ Failed to send email to %s: %s", to_email, e)
            return False

    # ============================================================
    # ✅ Invite Email (synchronous for BackgroundTasks)
    # ============================================================
    def send_invite_email(
        self,
        to_email: str,
        invite_link: str,
        role: str,
        org_name: str,
        invited_by: str = "Admin",
    ) -> bool:
        if not self.enabled:
            # Development fallback (no SendGrid setup)
            logger.info("📨 [Mock Email] Invite to: %s", to_email)
            logger.info("Link: %s", invite_link)
            logger.info("Role: %s | Organization: %s", role, org_name)
            return True

        subject = f"You're invited to join {org_name} as {role.title()}"
        html_content = f"""
        <div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <p><strong>{invited_by}</strong> has invited you to join
            <strong>{org_name}</strong> as <strong>{role.title()}</strong>.</p>
            <p><a href="{invite_link}">Accept invite</a></p>
            <p style="word-break: break-all; color: #555;">{invite_link}</p>
        </div>
        """
        return self._send(to_email, subject, html_content)

    # ============================================================
    # ✅ Password Recovery Email
    # ============================================================
    def send_password_recover_email(self, to_email: str, code: str, reset_link: str) -> bool:
        if not self.enabled:
            logger.info("📨 [Mock Email] Password recover to: %s", to_email)
            logger.info("Recover password token: %s", code)
            return True

        subject = "Reset your password"
        html_content = f"""
        <div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <p>We received a request to reset your password.</p>
            <p>Your recovery code: <strong>{code}</strong></p>
            <p><a href="{reset_link}">Choose a new password</a></p>
            <p><small>If you didn't ask for this, you can ignore this e-mail.</small></p>
        </div>
        """
        return self._send(to_email, subject, html_content)


# ============================================================
# ✅ Global instance for app-wide import
# ============================================================
email_service = EmailService(settings.SENDGRID_API_KEY, settings.MAIL_FROM)


def get_email_service() -> EmailService:
    return email_service
