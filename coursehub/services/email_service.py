"""
Email Service

Sends password reset links over SMTP.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from fastapi.concurrency import run_in_threadpool

from coursehub.core.config import settings


logger = logging.getLogger(__name__)


def build_reset_link(reset_token: str) -> str:
    """Frontend URL the user follows to choose a new password."""
    return f"{settings.FRONTEND_URL.rstrip('/')}/reset-password?token={reset_token}"


def get_password_reset_email_html(reset_link: str, full_name: str) -> str:
    """Generate HTML content for password reset email."""
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <style>
            body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background-color: #f5f5f5; }}
            .container {{ max-width: 600px; margin: 40px auto; background: white; border-radius: 12px; padding: 40px; }}
            .button {{ display: inline-block; background: #2563eb; color: white; padding: 12px 24px; border-radius: 8px; text-decoration: none; }}
            p {{ color: #374151; line-height: 1.6; }}
        </style>
    </head>
    <body>
        <div class="container">
            <p>Hi {full_name},</p>
            <p>We received a request to reset your CourseHub password.</p>
            <p><a class="button" href="{reset_link}">Reset password</a></p>
            <p>This link expires in <strong>{settings.RESET_TOKEN_EXPIRE_MINUTES} minutes</strong>.</p>
            <p>If you didn't request a password reset, you can ignore this email.</p>
        </div>
    </body>
    </html>
    """


def get_password_reset_email_text(reset_link: str, full_name: str) -> str:
    """Generate plain text content for password reset email."""
    return f"""
Hi {full_name},

We received a request to reset your CourseHub password. Open the link below to choose a new one:

{reset_link}

This link expires in {settings.RESET_TOKEN_EXPIRE_MINUTES} minutes.

If you didn't request a password reset, you can ignore this email.
    """


def _send(to_email: str, subject: str, text: str, html: str) -> None:
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM_ADDRESS}>"
    msg["To"] = to_email
    msg.attach(MIMEText(text, "plain"))
    msg.attach(MIMEText(html, "html"))

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
        server.starttls()
        server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        server.sendmail(settings.EMAIL_FROM_ADDRESS, to_email, msg.as_string())


async def send_password_reset_email(
    to_email: str,
    reset_token: str,
    full_name: str,
) -> bool:
    """
    Send a password reset link.

    Args:
        to_email: Recipient email address.
        reset_token: Signed reset token embedded in the link.
        full_name: User's full name for personalization.

    Returns:
        bool: True if email sent successfully, False otherwise.
    """
    reset_link = build_reset_link(reset_token)

    # Without SMTP credentials in development, log the link instead
    if settings.is_development and not settings.SMTP_USER:
        logger.info("[DEV MODE] Password reset link for %s: %s", to_email, reset_link)
        return True

    try:
        await run_in_threadpool(
            _send,
            to_email,
            "Reset your CourseHub password",
            get_password_reset_email_text(reset_link, full_name),
            get_password_reset_email_html(reset_link, full_name),
        )
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Failed to send password reset email to %s: %s", to_email, e)
        return False

    logger.info("Password reset email sent to %s", to_email)
    return True
