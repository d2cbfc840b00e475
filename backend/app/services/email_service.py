"""
Email Service for SIAKAD
========================
Handles all outgoing student mail:
- Email verification after registration
- Password reset OTP codes
- Password changed notices

Mail is delivered over SMTP with aiosmtplib.
"""

import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional
from datetime import datetime

from app.core.config import settings
from app.core.logging_config import logger


class EmailService:
    """Async email service using SMTP"""

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.start_tls = settings.SMTP_START_TLS
        self.from_email = settings.EMAIL_FROM
        self.from_name = settings.EMAIL_FROM_NAME
        self.institution_name = settings.INSTITUTION_NAME

    @property
    def is_configured(self) -> bool:
        """Check if email service is properly configured"""
        return bool(self.smtp_host and self.smtp_user and self.smtp_password)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Send an email asynchronously.

        Returns True if successful, False otherwise.
        """
        if not self.is_configured:
            logger.warning("[Email] Email service not configured, skipping email send")
            return False

        return await self._send_via_smtp(to_email, subject, html_content, text_content)

    async def _send_via_smtp(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """Send email via SMTP"""
        try:
            message = MIMEMultipart("alternative")
            message["From"] = f"{self.from_name} <{self.from_email}>"
            message["To"] = to_email
            message["Subject"] = subject

            # Plain text first so clients prefer the HTML part
            if text_content:
                message.attach(MIMEText(text_content, "plain"))
            message.attach(MIMEText(html_content, "html"))

            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=self.start_tls
            )

            logger.info(f"[Email/SMTP] Successfully sent email to {to_email}: {subject}")
            return True

        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"[Email/SMTP] Failed to send email to {to_email}: {e}")
            return False

    def _render(self, title: str, greeting_name: Optional[str], body_html: str, footer_note: str = "") -> str:
        """Wrap a message body in the common SIAKAD mail layout"""
        return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <style>
                body {{ font-family: Arial, Helvetica, sans-serif; line-height: 1.6; color: #212529; }}
                .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
                .header {{ background: #0d6efd; color: white; padding: 24px; text-align: center; border-radius: 8px 8px 0 0; }}
                .content {{ background: #f8f9fa; padding: 24px; border-radius: 0 0 8px 8px; }}
                .button {{ display: inline-block; background: #0d6efd; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; font-weight: 600; }}
                .code {{ font-size: 32px; letter-spacing: 8px; font-weight: 700; text-align: center; margin: 24px 0; }}
                .footer {{ text-align: center; margin-top: 24px; font-size: 12px; color: #6c757d; }}
            </style>
        </head>
        <body>
            <div class="container">
                <div class="header">
                    <h2>{title}</h2>
                </div>
                <div class="content">
                    <p>Hello {greeting_name or 'student'},</p>
                    {body_html}
                </div>
                <div class="footer">
                    <p>&copy; {datetime.utcnow().year} {self.institution_name}. SIAKAD.</p>
                    {f'<p>{footer_note}</p>' if footer_note else ''}
                </div>
            </div>
        </body>
        </html>
        """

    async def send_verification_email(
        self,
        to_email: str,
        student_name: str,
        verification_token: str
    ) -> bool:
        """Send email verification link to a newly registered student"""
        verification_link = settings.get_verification_url(verification_token)
        hours = settings.EMAIL_VERIFICATION_EXPIRE_HOURS

        subject = "Verify your email - SIAKAD"

        html_content = self._render(
            "Verify your email address",
            student_name,
            f"""
                    <p>Your SIAKAD account has been created. Please verify your email address to activate login.</p>
                    <p style="text-align: center;">
                        <a href="{verification_link}" class="button">Verify Email Address</a>
                    </p>
                    <p style="font-size: 14px; color: #6c757d;">
                        Or open this link in your browser:<br>
                        <code style="word-break: break-all;">{verification_link}</code>
                    </p>
                    <p style="font-size: 14px; color: #6c757d;">This link expires in {hours} hours.</p>
            """,
            footer_note="If you did not register for SIAKAD, please ignore this email.",
        )

        text_content = f"""
        Hello {student_name or 'student'},

        Please verify your SIAKAD email address by opening this link:
        {verification_link}

        This link expires in {hours} hours.
        """

        return await self.send_email(to_email, subject, html_content, text_content)

    async def send_otp_email(
        self,
        to_email: str,
        student_name: Optional[str],
        otp: str
    ) -> bool:
        """Send the 4-digit password reset code"""
        minutes = settings.OTP_EXPIRE_MINUTES

        subject = "Password reset code - SIAKAD"

        html_content = self._render(
            "Password reset code",
            student_name,
            f"""
                    <p>We received a request to reset your SIAKAD password. Enter this code to continue:</p>
                    <div class="code">{otp}</div>
                    <p style="font-size: 14px; color: #6c757d;">The code expires in {minutes} minutes and can be used once.</p>
            """,
            footer_note="If you did not request a password reset, you can ignore this email.",
        )

        text_content = f"""
        Hello {student_name or 'student'},

        Your SIAKAD password reset code is: {otp}

        The code expires in {minutes} minutes.
        """

        return await self.send_email(to_email, subject, html_content, text_content)

    async def send_password_changed_email(
        self,
        to_email: str,
        student_name: Optional[str]
    ) -> bool:
        """Notify a student that their password was reset"""
        changed_at = datetime.utcnow().strftime("%Y-%m-%d %H:%M UTC")

        subject = "Your password was changed - SIAKAD"

        html_content = self._render(
            "Password changed",
            student_name,
            f"""
                    <p>The password for your SIAKAD account was changed on {changed_at}.</p>
                    <p>If you did not make this change, contact the academic office immediately.</p>
            """,
        )

        text_content = f"""
        Hello {student_name or 'student'},

        The password for your SIAKAD account was changed on {changed_at}.
        If you did not make this change, contact the academic office immediately.
        """

        return await self.send_email(to_email, subject, html_content, text_content)


# Singleton instance
email_service = EmailService()
