import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


class SteppingClock:
    """Each call is one second after the previous one."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 3, 1, 10, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


def add_product(catalog, retail_id: str = "R-A", retail_price: float = 10.0, wholesale_price: float = 4.0, count: int = 5, design: str | None = None):
    return catalog.create(
        design=design or f"Design {retail_id}",
        wholesale_id=f"W-{retail_id}",
        retail_id=retail_id,
        retail_price=retail_price,
        wholesale_price=wholesale_price,
        category="Apparel",
        count=count,
    )
