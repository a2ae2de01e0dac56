from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Protocol

log = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class Confirmer(Protocol):
    def __call__(self, message: str) -> bool: ...


class Notifier(Protocol):
    def __call__(self, message: str, kind: str = "info") -> None: ...


def always_confirm(message: str) -> bool:
    return True


def log_notifier(message: str, kind: str = "info") -> None:
    log.info("notify kind=%s message=%s", kind, message)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
