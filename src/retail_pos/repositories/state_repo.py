from __future__ import annotations

import json
import logging

from retail_pos.domain.errors import StorageError
from retail_pos.domain.models import THEMES
from retail_pos.domain.state import AppState
from retail_pos.repositories.codec import decode_records, encode_records
from retail_pos.repositories.kv_store import KeyValueStore

log = logging.getLogger("retail_pos.storage")

# storage key -> AppState attribute
RECORD_SETS: dict[str, str] = {
    "products": "products",
    "soldItems": "sold_items",
    "invoices": "invoices",
    "purchaseInvoices": "purchase_invoices",
    "creditNotes": "credit_notes",
    "customers": "customers",
    "stockAdjustments": "stock_adjustments",
}
THEME_KEY = "theme"


class StateRepository:
    """Loads and saves ``AppState`` through an injected key-value store.

    Storage failures never abort a ledger operation: they are logged and the
    in-memory state stays authoritative until the next successful save.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    def load(self) -> AppState:
        state = AppState()
        for key, attr in RECORD_SETS.items():
            try:
                raw = self.store.get(key)
                if raw is None:
                    continue
                setattr(state, attr, decode_records(key, raw))
            except (StorageError, ValueError, KeyError, TypeError) as e:
                log.warning("state_load_failed key=%s error=%s", key, e)

        try:
            raw_theme = self.store.get(THEME_KEY)
            if raw_theme is not None:
                theme = json.loads(raw_theme)
                if theme in THEMES:
                    state.theme = theme
                else:
                    log.warning("state_load_failed key=%s error=unknown theme %r", THEME_KEY, theme)
        except (StorageError, ValueError) as e:
            log.warning("state_load_failed key=%s error=%s", THEME_KEY, e)
        return state

    def save(self, state: AppState) -> bool:
        ok = True
        for key, attr in RECORD_SETS.items():
            ok = self._write(key, lambda: encode_records(getattr(state, attr))) and ok
        ok = self._write(THEME_KEY, lambda: json.dumps(state.theme)) and ok
        return ok

    def _write(self, key: str, render) -> bool:
        try:
            self.store.set(key, render())
            return True
        except (StorageError, TypeError, ValueError):
            log.exception("state_save_failed key=%s", key)
            return False
