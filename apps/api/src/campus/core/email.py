"""
Email Service using Resend

Transactional emails for authentication flows and school onboarding.
When no API key is configured the email is logged instead of sent.
"""

import asyncio
import logging
from html import escape

import resend

from campus.core.config import settings

logger = logging.getLogger(__name__)

resend.api_key = settings.resend_api_key

_LAYOUT = """
<!DOCTYPE html>
<html>
<head>
    <style>
        body {{ font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }}
        .container {{ max-width: 600px; margin: 0 auto; padding: 40px 20px; }}
        .header {{ color: #1a365d; margin-bottom: 24px; }}
        .button {{ display: inline-block; background-color: #1a365d; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; margin: 24px 0; }}
        .code {{ font-size: 32px; letter-spacing: 8px; font-weight: bold; color: #1a365d; }}
        .footer {{ margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }}
    </style>
</head>
<body>
    <div class="container">
        <h1 class="header">{title}</h1>
        {body}
        <div class="footer">
            <p>If you didn't request this, you can safely ignore this email.</p>
            <p>Campus - School Management System</p>
        </div>
    </div>
</body>
</html>
"""


def _render(title: str, body: str) -> str:
    return _LAYOUT.format(title=escape(title), body=body)


def _link_block(url: str, label: str) -> str:
    return f"""
        <a href="{url}" class="button">{escape(label)}</a>
        <p>Or copy and paste this link into your browser:</p>
        <p style="word-break: break-all; color: #3b82f6;">{url}</p>
    """


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
) -> bool:
    """
    Send an email using Resend.

    Returns:
        True if email was sent (or logged in place of sending)
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return True

    try:
        params: resend.Emails.SendParams = {
            "from": settings.email_from,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }

        # Run sync Resend call in thread pool to avoid blocking event loop
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


async def send_otp_email(to_email: str, name: str, code: str, purpose: str) -> bool:
    """Send a one-time verification code."""
    body = f"""
        <p>Hello {escape(name)},</p>
        <p>Your verification code for <strong>{escape(purpose)}</strong> is:</p>
        <p class="code">{escape(code)}</p>
        <p><strong>This code expires in {settings.otp_expire_minutes} minutes.</strong></p>
    """
    return await send_email(
        to_email=to_email,
        subject="Your Campus verification code",
        html_content=_render("Verification Code", body),
    )


async def send_magic_link_email(to_email: str, name: str, token: str) -> bool:
    """Send a single-use admin portal login link."""
    url = f"{settings.frontend_url}/admin/magic-login?token={token}"
    body = f"""
        <p>Hello {escape(name)},</p>
        <p>Use the button below to sign in to the Campus admin portal.</p>
        {_link_block(url, "Sign In")}
        <p><strong>This link expires in {settings.magic_link_expire_minutes} minutes and can be used once.</strong></p>
    """
    return await send_email(
        to_email=to_email,
        subject="Your Campus admin sign-in link",
        html_content=_render("Admin Sign-In", body),
    )


async def send_password_reset_email(to_email: str, name: str, token: str) -> bool:
    """Send a password reset link."""
    url = f"{settings.frontend_url}/reset-password?token={token}"
    expires_minutes = settings.password_reset_expire_minutes
    body = f"""
        <p>Hello {escape(name)},</p>
        <p>We received a request to reset your password.</p>
        {_link_block(url, "Reset Password")}
        <p><strong>This link expires in {expires_minutes} minutes.</strong></p>
    """
    return await send_email(
        to_email=to_email,
        subject="Reset your Campus password",
        html_content=_render("Reset Your Password", body),
    )


async def send_school_welcome_email(to_email: str, school_name: str, school_code: str) -> bool:
    """Welcome a newly registered school and share its login code."""
    body = f"""
        <p>Welcome to Campus!</p>
        <p><strong>{escape(school_name)}</strong> has been registered successfully.</p>
        <p>Your school code is:</p>
        <p class="code">{escape(school_code)}</p>
        <p>Share this code with staff, students and parents so they can join your school.</p>
        {_link_block(f"{settings.frontend_url}/login", "Go to Campus")}
    """
    return await send_email(
        to_email=to_email,
        subject=f"Welcome to Campus, {school_name}",
        html_content=_render("School Registered", body),
    )
