import re
from datetime import UTC, datetime

USER_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def is_user_id(value: str) -> bool:
    return bool(USER_ID_RE.fullmatch(value))


def now() -> datetime:
    return datetime.now(UTC)
