"""
SMS Gateway Client

Sends text messages through an HTTP SMS gateway (form-encoded POST with an
``apikey`` header). The blocking ``requests`` call runs in a worker thread.
"""

import asyncio
import logging

import requests

from campus.core.config import settings

logger = logging.getLogger(__name__)

SMS_TIMEOUT_SECONDS = 15


class SmsError(Exception):
    """Raised when an SMS cannot be delivered to the gateway."""


class SmsNotConfiguredError(SmsError):
    """Raised when the gateway URL or credentials are missing."""


def normalize_phone(phone: str, country_code: str | None = None) -> str:
    """
    Normalise a phone number to ``+<country><subscriber>`` form.

    Kenyan-style local numbers are accepted: ``0712345678``, ``712345678``,
    ``254712345678`` and ``+254712345678`` all become ``+254712345678``.
    """
    country_code = country_code or settings.default_country_code
    digits = "".join(ch for ch in phone.strip() if ch.isdigit())
    if not digits:
        return ""

    if phone.strip().startswith("+"):
        return f"+{digits}"
    if digits.startswith(country_code):
        return f"+{digits}"
    if digits.startswith("0"):
        return f"+{country_code}{digits[1:]}"
    if len(digits) == 9:
        return f"+{country_code}{digits}"
    return f"+{digits}"


def _post(url: str, data: dict, headers: dict) -> requests.Response:
    response = requests.post(url, data=data, headers=headers, timeout=SMS_TIMEOUT_SECONDS)
    response.raise_for_status()
    return response


async def send_sms(to: str, message: str) -> dict:
    """
    Send a text message.

    Args:
        to: Recipient phone number (normalised before sending)
        message: Message body

    Returns:
        The gateway's JSON response, or its raw text wrapped in a dict

    Raises:
        SmsNotConfiguredError: If SMS_API_URL / SMS_API_KEY are not set
        SmsError: If the gateway rejects the request or is unreachable
    """
    if not settings.sms_api_url or not settings.sms_api_key:
        raise SmsNotConfiguredError("SMS gateway is not configured")

    data = {
        "username": settings.sms_username or "",
        "to": normalize_phone(to),
        "message": message,
    }
    if settings.sms_sender_id:
        data["from"] = settings.sms_sender_id

    headers = {
        "apikey": settings.sms_api_key,
        "Accept": "application/json",
    }

    try:
        response = await asyncio.to_thread(_post, settings.sms_api_url, data, headers)
    except requests.RequestException as e:
        logger.error(f"SMS to {data['to']} failed: {e}")
        raise SmsError(str(e)) from e

    logger.info(f"SMS sent to {data['to']}")
    try:
        return response.json()
    except ValueError:
        return {"raw": response.text}


async def send_otp_sms(to: str, code: str, purpose: str) -> dict:
    message = (
        f"Your Campus {purpose} code is {code}. "
        f"It expires in {settings.otp_expire_minutes} minutes."
    )
    return await send_sms(to, message)
