from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os
import sys

from retail_pos.domain.errors import ValidationError

DEFAULT_TAX_RATE = 0.10
DEFAULT_LOW_STOCK_THRESHOLD = 10


@dataclass(frozen=True)
class AppPaths:
    base_dir: Path
    db_path: Path
    logs_dir: Path


@dataclass(frozen=True)
class PosSettings:
    tax_rate: float = DEFAULT_TAX_RATE
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD


def _windows_appdata() -> Path:
    return Path(os.environ.get("APPDATA", str(Path.home() / "AppData" / "Roaming")))


def _mac_app_support() -> Path:
    return Path.home() / "Library" / "Application Support"


def get_app_paths(app_name: str = "RetailPOS") -> AppPaths:
    if sys.platform.startswith("win"):
        base = _windows_appdata() / app_name
    elif sys.platform == "darwin":
        base = _mac_app_support() / app_name
    else:
        base = Path.home() / f".{app_name.lower()}"

    logs = base / "logs"
    db = base / "pos_state.db"

    base.mkdir(parents=True, exist_ok=True)
    logs.mkdir(parents=True, exist_ok=True)

    return AppPaths(base_dir=base, db_path=db, logs_dir=logs)


def load_settings(environ: dict[str, str] | None = None) -> PosSettings:
    env = os.environ if environ is None else environ

    raw_rate = env.get("RETAIL_POS_TAX_RATE", "").strip()
    raw_threshold = env.get("RETAIL_POS_LOW_STOCK", "").strip()

    try:
        tax_rate = float(raw_rate) if raw_rate else DEFAULT_TAX_RATE
        threshold = int(raw_threshold) if raw_threshold else DEFAULT_LOW_STOCK_THRESHOLD
    except ValueError as e:
        raise ValidationError(f"Invalid POS setting: {e}") from e

    if not 0 <= tax_rate < 1:
        raise ValidationError(f"Tax rate must be within [0, 1). Received: {tax_rate}")
    if threshold < 0:
        raise ValidationError("Low stock threshold must be >= 0.")

    return PosSettings(tax_rate=tax_rate, low_stock_threshold=threshold)
