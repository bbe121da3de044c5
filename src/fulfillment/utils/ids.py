"""Order identifiers: ``JMB`` + ``YYYYMMDD`` + 10 uppercase alphanumerics."""

import re
import secrets
import string
from datetime import UTC, datetime

ORDER_ID_PREFIX = "JMB"
_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits
_SUFFIX_LENGTH = 10
_ORDER_ID_PATTERN = re.compile(rf"^{ORDER_ID_PREFIX}\d{{8}}[A-Z0-9]{{{_SUFFIX_LENGTH}}}$")


def generate_order_id(now: datetime | None = None) -> str:
    now = now or datetime.now(UTC)
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(_SUFFIX_LENGTH))
    return f"{ORDER_ID_PREFIX}{now:%Y%m%d}{suffix}"


def is_valid_order_id(value: str) -> bool:
    return bool(value) and _ORDER_ID_PATTERN.match(value) is not None
