# coupure/ledger.py
from __future__ import annotations

import json
import logging
from datetime import date, timedelta
from typing import Dict, Optional

log = logging.getLogger(__name__)


def day_string(d: date) -> str:
    return d.isoformat()


class ConfirmationLedger:
    """
    id de signalement -> jour local (YYYY-MM-DD) de la dernière confirmation sur cet appareil.
    Garde unique contre les doubles confirmations du même jour.
    """

    def __init__(self, entries: Optional[Dict[str, str]] = None):
        self.entries: Dict[str, str] = dict(entries or {})

    @classmethod
    def from_json(cls, blob: Optional[str]) -> "ConfirmationLedger":
        if not blob:
            return cls()
        try:
            raw = json.loads(blob)
        except ValueError as e:
            log.error("[ledger] blob illisible, registre vidé: %s", e)
            return cls()
        if not isinstance(raw, dict):
            log.error("[ledger] blob inattendu (%s), registre vidé", type(raw).__name__)
            return cls()
        return cls({str(k): v for k, v in raw.items() if isinstance(v, str)})

    def to_json(self) -> str:
        return json.dumps(self.entries, sort_keys=True)

    def confirmed_on(self, report_id: str, day: str) -> bool:
        return self.entries.get(report_id) == day

    def record(self, report_id: str, day: str) -> "ConfirmationLedger":
        return ConfirmationLedger({**self.entries, report_id: day})

    def prune(self, today: date, retention_days: int) -> int:
        """Retire les entrées plus vieilles que retention_days (0 = on garde tout)."""
        if retention_days <= 0:
            return 0
        cutoff = today - timedelta(days=retention_days)
        keep: Dict[str, str] = {}
        for rid, day in self.entries.items():
            try:
                if date.fromisoformat(day) >= cutoff:
                    keep[rid] = day
            except ValueError:
                continue  # format inconnu : entrée abandonnée
        removed = len(self.entries) - len(keep)
        self.entries = keep
        return removed

    def __len__(self) -> int:
        return len(self.entries)
