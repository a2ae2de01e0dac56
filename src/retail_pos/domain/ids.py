from __future__ import annotations

import secrets
from datetime import datetime


def new_record_id(prefix: str, now: datetime) -> str:
    millis = int(now.timestamp() * 1000)
    token = secrets.token_hex(3)
    return f"{prefix}-{millis}-{token}" if prefix else f"{millis}-{token}"
