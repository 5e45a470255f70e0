"""
Request validation and text formatting.

Everything here runs before any network call and raises `ValidationError` with
a message that can be shown to the user as is.
"""

import re
from typing import Optional
from urllib.parse import urlparse

from listingreel import config
from listingreel.core.errors import ValidationError

MIN_SCRIPT_WORDS = 50
MAX_SCRIPT_WORDS = 400
WORDS_PER_MINUTE = 150

_PHONE_RE = re.compile(r"^\+?[0-9 ()-]{6,20}$")


def validate_image_count(
    count: int, minimum: int = config.MIN_IMAGES, maximum: int = config.MAX_IMAGES
):
    if count < minimum:
        missing = minimum - count
        raise ValidationError(
            f"Add at least {missing} more photo{'s' if missing != 1 else ''} "
            f"(minimum {minimum} required)"
        )
    if count > maximum:
        extra = count - maximum
        raise ValidationError(
            f"Remove {extra} photo{'s' if extra != 1 else ''} (maximum {maximum} allowed)"
        )


def validate_image_url(url: str) -> str:
    parsed = urlparse(url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(f"Invalid image URL: {url}")
    return url


def validate_agent(name: Optional[str], phone: Optional[str]):
    """Agent name and phone are required for the closing card."""
    if not name or not name.strip():
        raise ValidationError("Agent name is required")
    if not phone or not phone.strip():
        raise ValidationError("Agent phone is required")
    if not _PHONE_RE.match(phone.strip()):
        raise ValidationError(f"Invalid agent phone number: {phone}")


def word_count(text: str) -> int:
    return len(text.split())


def estimate_speech_seconds(text: str, words_per_minute: int = WORDS_PER_MINUTE) -> float:
    return word_count(text) / words_per_minute * 60


def validate_script(text: str):
    words = word_count(text)
    if words < MIN_SCRIPT_WORDS:
        raise ValidationError(
            f"Script is too short ({words} words, minimum {MIN_SCRIPT_WORDS})"
        )
    if words > MAX_SCRIPT_WORDS:
        raise ValidationError(
            f"Script is too long ({words} words, maximum {MAX_SCRIPT_WORDS})"
        )


def format_price(price) -> str:
    """'$1,200,000' for numbers, the text unchanged otherwise, '' for nothing."""
    if price is None or price == "":
        return ""
    if isinstance(price, (int, float)):
        return f"${price:,.0f}"
    digits = re.sub(r"[^0-9.]", "", str(price))
    try:
        return f"${float(digits):,.0f}"
    except ValueError:
        return str(price)
