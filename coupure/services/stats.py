# coupure/services/stats.py
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from coupure.kinds import ReportKind
from coupure.schemas import NA, Report, ReportStats
from coupure.store import parse_date

# période -> nombre de jours (None = tout l'historique)
PERIOD_DAYS = {"week": 7, "month": 30, "all": None}


def in_period(reports: Sequence[Report], period: str = "all", now: Optional[datetime] = None) -> List[Report]:
    """
    Garde les signalements créés strictement après now - N jours.
    Une date illisible sort de toute période bornée.
    """
    if period not in PERIOD_DAYS:
        raise ValueError(f"période inconnue: {period}")
    days = PERIOD_DAYS[period]
    if days is None:
        return list(reports)
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=days)
    out = []
    for r in reports:
        created = parse_date(r.date)
        if created is not None and created > cutoff:
            out.append(r)
    return out


def compute_stats(
    kind: ReportKind,
    reports: Sequence[Report],
    period: str = "all",
    now: Optional[datetime] = None,
) -> ReportStats:
    """Totaux actifs/résolus, par catégorie (toutes présentes, même à 0) et par région."""
    reports = in_period(reports, period, now)
    by_type = {t.value: 0 for t in kind.type_enum}
    by_type.update(Counter(r.type_tag for r in reports))
    by_region = Counter((r.region or NA) for r in reports)
    resolved = sum(1 for r in reports if r.resolved)
    return ReportStats(
        period=period,
        total=len(reports),
        active=len(reports) - resolved,
        resolved=resolved,
        by_type=by_type,
        by_region=dict(by_region),
    )


async def fetch_stats(remote, period: str = "all", now: Optional[datetime] = None) -> ReportStats:
    """Statistiques sur la collection distante complète (pagination)."""
    reports = await remote.list_all()
    return compute_stats(remote.kind, reports, period, now)
