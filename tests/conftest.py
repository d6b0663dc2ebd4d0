from datetime import datetime, timedelta, timezone
from typing import Dict, List

import pytest

from coupure.kinds import INCIDENT, OUTAGE, ReportKind
from coupure.remote import RemoteServiceError
from coupure.schemas import Report, ReportDraft
from coupure.storage import MemoryStorage
from coupure.store import ReportStore

# Douala : UTC+1, sans heure d'été
WAT = timezone(timedelta(hours=1))
DOUALA = (4.05, 9.70)


class Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeRemote:
    """Service distant en mémoire ; online=False simule le hors-ligne."""

    def __init__(self, kind: ReportKind, records: List[Report] = (), online: bool = True):
        self.kind = kind
        self.online = online
        self.records: Dict[str, Report] = {r.id: r for r in records}
        self.calls: List[str] = []
        self._seq = 0

    def _check(self, op: str) -> None:
        self.calls.append(op)
        if not self.online:
            raise RemoteServiceError("network unreachable")

    def _get(self, report_id: str) -> Report:
        if report_id not in self.records:
            raise RemoteServiceError("document not found", status_code=404)
        return self.records[report_id]

    async def list(self, **filters) -> List[Report]:
        self._check("list")
        return sorted(self.records.values(), key=lambda r: r.date, reverse=True)

    async def list_all(self) -> List[Report]:
        self._check("list_all")
        return list(self.records.values())

    async def create(self, draft: ReportDraft, user_id: str = "") -> Report:
        self._check("create")
        self._seq += 1
        data = draft.model_dump()
        data.update(id=f"srv-{self._seq}", date=datetime.now(timezone.utc).isoformat(),
                    confirmations=1, synced=True)
        report = self.kind.model.model_validate(data)
        self.records[report.id] = report
        return report

    async def confirm(self, report_id: str) -> Report:
        self._check("confirm")
        current = self._get(report_id)
        self.records[report_id] = current.model_copy(update={"confirmations": current.confirmations + 1})
        return self.records[report_id]

    async def resolve(self, report_id: str) -> Report:
        self._check("resolve")
        current = self._get(report_id)
        self.records[report_id] = current.model_copy(update={
            "resolved": True,
            "resolution_date": datetime.now(timezone.utc).isoformat(),
        })
        return self.records[report_id]

    async def update(self, report_id: str, fields) -> Report:
        self._check("update")
        current = self._get(report_id)
        self.records[report_id] = current.model_copy(update=fields)
        return self.records[report_id]

    async def delete(self, report_id: str) -> None:
        self._check("delete")
        self._get(report_id)
        del self.records[report_id]


def make_outage(report_id: str, *, at: datetime, lat: float = DOUALA[0], lon: float = DOUALA[1],
                type: str = "electricity", region: str = "Littoral", ville: str = "Douala",
                synced: bool = True, confirmations: int = 1, resolved: bool = False) -> Report:
    return OUTAGE.model.model_validate({
        "id": report_id,
        "type": type,
        "latitude": lat,
        "longitude": lon,
        "quartier": "Akwa",
        "ville": ville,
        "region": region,
        "date": at.isoformat(),
        "confirmations": confirmations,
        "synced": synced,
        "resolved": resolved,
        "resolution_date": at.isoformat() if resolved else None,
    })


@pytest.fixture
def clock():
    return Clock(datetime(2026, 3, 10, 14, 0, 0, tzinfo=WAT))


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def remote():
    return FakeRemote(OUTAGE)


@pytest.fixture
def store(storage, remote, clock):
    return ReportStore(OUTAGE, storage, remote, clock=clock)


@pytest.fixture
def incident_store(storage, clock):
    return ReportStore(INCIDENT, storage, FakeRemote(INCIDENT), clock=clock)
