from __future__ import annotations

# reviewfunnel/services/utils.py
import secrets
import time
import uuid
import datetime as dt
from typing import Any, Iterable, Mapping

from ..errors import ValidationError

# nanoid 默认字母表：URL 安全，64 个字符
SLUG_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789_-"
SLUG_LENGTH = 10


def new_id() -> str:
    return str(uuid.uuid4())


def new_slug(length: int = SLUG_LENGTH) -> str:
    return "".join(secrets.choice(SLUG_ALPHABET) for _ in range(length))


def now_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def now_ms() -> int:
    return int(time.time() * 1000)


def is_blank(v: Any) -> bool:
    return v is None or (isinstance(v, str) and not v.strip())


def require_fields(body: Mapping[str, Any], fields: Iterable[str], message: str):
    missing = [f for f in fields if is_blank(body.get(f))]
    if missing:
        raise ValidationError(f"{message}: {', '.join(missing)}")


def parse_rating(v: Any) -> int:
    if v is None or isinstance(v, bool):
        raise ValidationError("rating is required")
    try:
        rating = int(v)
    except (TypeError, ValueError):
        raise ValidationError("rating must be an integer")
    if rating != v and not (isinstance(v, str) and v.strip() == str(rating)):
        raise ValidationError("rating must be an integer")
    if not 1 <= rating <= 5:
        raise ValidationError("rating must be between 1 and 5")
    return rating
