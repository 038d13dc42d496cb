import re

from wabroker.errors import ValidationError

CHAT_ID_SUFFIX = "@c.us"
MIN_NUMBER_DIGITS = 10

NON_DIGIT_RE = re.compile(r"\D")


def normalize_number(number: str) -> str:
    """Strip everything but digits from a phone number.

    Raises:
        ValidationError: Fewer than 10 digits remain
    """
    digits = NON_DIGIT_RE.sub("", number)
    if len(digits) < MIN_NUMBER_DIGITS:
        raise ValidationError("Invalid phone number")
    return digits


def to_chat_id(number: str) -> str:
    return normalize_number(number) + CHAT_ID_SUFFIX
