"""
Authentication utility functions for password recovery notifications.

Emails are sent through direct SMTP with retry logic. They run as background
tasks, so failures are logged and never reach the HTTP caller.
"""
import logging
import smtplib
import socket
import ssl
import time
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from ..config import settings

# Set up logging
logger = logging.getLogger(__name__)

# Connection timeout settings
SMTP_TIMEOUT = 30
MAX_RETRIES = 3
RETRY_DELAY = 2


def email_configured() -> bool:
    """
    Check that the SMTP settings needed to send mail are present.

    Returns:
        bool: True if server, sender and credentials are set
    """
    required_configs = [
        settings.mail_server,
        settings.mail_from,
        settings.mail_username,
        settings.mail_password,
    ]
    return all(required_configs)


def _wrap_html(title: str, body: str) -> str:
    return f"""
    <html>
        <head>
            <title>Veterinary Clinic - {title}</title>
            <style>
                body {{ font-family: Arial, sans-serif; line-height: 1.6; }}
                .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
                .header {{ background-color: #2a9d8f; color: white; padding: 10px; text-align: center; }}
                .content {{ padding: 20px; border: 1px solid #ddd; }}
                .button {{ display: inline-block; padding: 10px 20px; background-color: #2a9d8f;
                        color: white; text-decoration: none; border-radius: 5px; margin: 20px 0; }}
                .warning {{ color: #e74c3c; font-weight: bold; }}
                .footer {{ text-align: center; margin-top: 20px; font-size: 12px; color: #777; }}
            </style>
        </head>
        <body>
            <div class="container">
                <div class="header">
                    <h1>Veterinary Clinic</h1>
                </div>
                <div class="content">
                    {body}
                    <p>Best regards,<br>Veterinary Clinic Team</p>
                </div>
                <div class="footer">
                    &copy; {datetime.now().year} Veterinary Clinic. All rights reserved.
                </div>
            </div>
        </body>
    </html>
    """


def send_email(to: str, subject: str, html_content: str) -> bool:
    """
    Send an HTML email, retrying connection problems.

    Args:
        to: Recipient address
        subject: Subject line
        html_content: HTML body

    Returns:
        bool: True if the message was accepted by the SMTP server
    """
    if not email_configured():
        logger.info(f"SMTP not configured, skipping email '{subject}' to {to}")
        return False

    msg = MIMEMultipart()
    msg["From"] = settings.mail_from
    msg["To"] = to
    msg["Subject"] = subject
    msg.attach(MIMEText(html_content, "html"))

    for attempt in range(1, MAX_RETRIES + 1):
        try:
            logger.info(f"Email send attempt {attempt}/{MAX_RETRIES} to {to}")
            with smtplib.SMTP(settings.mail_server, settings.mail_port, timeout=SMTP_TIMEOUT) as server:
                server.ehlo()
                if settings.mail_starttls:
                    server.starttls(context=ssl.create_default_context())
                    server.ehlo()
                server.login(settings.mail_username, settings.mail_password)
                server.send_message(msg)
            logger.info(f"Email sent successfully to {to} on attempt {attempt}")
            return True

        except (smtplib.SMTPAuthenticationError, smtplib.SMTPRecipientsRefused) as e:
            # Retrying will not fix credentials or a refused address
            logger.error(f"Email to {to} rejected on attempt {attempt}: {e}")
            break

        except (smtplib.SMTPException, socket.timeout, OSError) as e:
            logger.warning(f"SMTP error on attempt {attempt}: {e}")
            if attempt < MAX_RETRIES:
                logger.info(f"Retrying in {RETRY_DELAY} seconds...")
                time.sleep(RETRY_DELAY)

    logger.error(f"Failed to send email '{subject}' to {to}")
    return False


def send_password_reset_email(email: str, name: str, reset_url: str, expires_at: datetime) -> bool:
    """
    Send the password reset link.

    Args:
        email: Recipient address
        name: Name used in the greeting
        reset_url: Frontend URL carrying the reset token
        expires_at: When the token stops working (UTC)
    """
    expiry = expires_at.strftime("%B %d, %Y at %I:%M %p UTC")
    body = f"""
                    <p>Hello {name},</p>
                    <p>We received a request to reset the password of your Veterinary Clinic account.</p>
                    <p style="text-align: center;">
                        <a href="{reset_url}" class="button">Reset Password</a>
                    </p>
                    <p><strong>Important:</strong> This link expires on {expiry} and can only be used once.</p>
                    <p>If you can't click the button, copy and paste this link into your browser:</p>
                    <p style="word-break: break-all;">{reset_url}</p>
                    <p class="warning">If you did not request a password reset, please ignore this email.</p>
    """
    return send_email(email, "Veterinary Clinic - Password Reset Request", _wrap_html("Password Reset", body))


def send_password_changed_notification(email: str, name: str) -> bool:
    """Confirm a completed password change."""
    body = f"""
                    <p>Hello {name},</p>
                    <p><strong>Your password has been successfully changed.</strong></p>
                    <p class="warning">If you did not make this change, please contact the clinic immediately.</p>
    """
    return send_email(email, "Veterinary Clinic - Password Changed", _wrap_html("Password Changed", body))
