import json

import httpx
import pytest

from coupure.kinds import INCIDENT, OUTAGE
from coupure.remote import RemoteReportService, RemoteServiceError, doc_to_report
from coupure.schemas import IncidentDraft, OutageDraft

BASE = "https://appwrite.test/v1"
DOCS_URL = f"{BASE}/databases/db1/collections/outages/documents"


def outage_doc(doc_id="65f1", **overrides):
    doc = {
        "$id": doc_id,
        "$createdAt": "2026-03-10T12:00:00.000+00:00",
        "$updatedAt": "2026-03-10T12:30:00.000+00:00",
        "type": "water",
        "latitude": 4.05,
        "longitude": 9.70,
        "quartier": "Bonapriso",
        "ville": "Douala",
        "region": "Littoral",
        "confirmations": 3,
        "photoUri": None,
        "estRetablie": False,
        "dateRetablissement": None,
        "createdAt": "2026-03-10T11:59:00.000+00:00",
        "userId": "u1",
    }
    doc.update(overrides)
    return doc


def service(handler, kind=OUTAGE, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RemoteReportService(kind, endpoint=BASE, project_id="proj", api_key="key",
                               db_id="db1", client=client, **kwargs)


# =========================
#  Mapping
# =========================

def test_doc_to_report_defaults():
    report = doc_to_report(OUTAGE, outage_doc(quartier="", ville=None, confirmations=0, createdAt=None))

    assert report.id == "65f1"
    assert report.synced is True
    assert report.quartier == "N/A"
    assert report.ville == "N/A"
    assert report.confirmations == 1
    assert report.date == "2026-03-10T12:00:00.000+00:00"


def test_doc_to_report_resolved_without_date_uses_updated_at():
    report = doc_to_report(OUTAGE, outage_doc(estRetablie=True))
    assert report.resolved is True
    assert report.resolution_date == "2026-03-10T12:30:00.000+00:00"


def test_doc_to_report_incident_fields():
    doc = outage_doc(incidentType="cable_on_ground", commentaire=None, estResolue=False)
    del doc["type"]
    report = doc_to_report(INCIDENT, doc)
    assert report.type_tag == "cable_on_ground"
    assert report.commentaire == ""


# =========================
#  Appels
# =========================

async def test_list_sends_queries_and_headers():
    seen = {}

    def handler(request: httpx.Request):
        seen["url"] = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        seen["queries"] = [json.loads(q) for q in request.url.params.get_list("queries[]")]
        seen["headers"] = request.headers
        return httpx.Response(200, json={"total": 1, "documents": [outage_doc()]})

    reports = await service(handler).list(type="water", region="Littoral", ville="Douala", hours=24)

    assert [r.id for r in reports] == ["65f1"]
    assert seen["url"] == DOCS_URL
    assert seen["headers"]["X-Appwrite-Project"] == "proj"
    assert seen["headers"]["X-Appwrite-Key"] == "key"
    methods = [q["method"] for q in seen["queries"]]
    assert methods[:2] == ["orderDesc", "limit"]
    assert seen["queries"][1]["values"] == [200]
    assert {"method": "equal", "attribute": "type", "values": ["water"]} in seen["queries"]
    assert {"method": "equal", "attribute": "region", "values": ["Littoral"]} in seen["queries"]
    assert {"method": "equal", "attribute": "ville", "values": ["Douala"]} in seen["queries"]
    assert "greaterThan" in methods


async def test_list_skips_invalid_documents():
    def handler(request):
        return httpx.Response(200, json={"documents": [outage_doc(), {"$id": "bad"}]})

    reports = await service(handler).list()
    assert [r.id for r in reports] == ["65f1"]


async def test_list_all_paginates_until_a_short_page():
    offsets = []

    def handler(request):
        queries = [json.loads(q) for q in request.url.params.get_list("queries[]")]
        offset = next(q["values"][0] for q in queries if q["method"] == "offset")
        offsets.append(offset)
        count = 2 if offset < 4 else 1
        docs = [outage_doc(f"d{offset + i}") for i in range(count)]
        return httpx.Response(200, json={"documents": docs})

    reports = await service(handler, batch_size=2).list_all()

    assert offsets == [0, 2, 4]
    assert len(reports) == 5


async def test_create_posts_default_mutable_fields():
    body = {}

    def handler(request):
        body.update(json.loads(request.content))
        return httpx.Response(201, json=outage_doc("new1", confirmations=1))

    draft = OutageDraft(type="electricity", latitude=4.05, longitude=9.70)
    report = await service(handler).create(draft, user_id="u9")

    assert report.id == "new1"
    assert body["documentId"] == "unique()"
    data = body["data"]
    assert data["type"] == "electricity"
    assert data["confirmations"] == 1
    assert data["estRetablie"] is False
    assert data["dateRetablissement"] is None
    assert data["quartier"] == "N/A"
    assert data["userId"] == "u9"


async def test_create_incident_sends_comment():
    body = {}

    def handler(request):
        body.update(json.loads(request.content))
        doc = outage_doc("i1", incidentType="broken_pipe", commentaire="fuite")
        return httpx.Response(201, json=doc)

    draft = IncidentDraft(incident_type="broken_pipe", latitude=4.05, longitude=9.70, commentaire="fuite")
    await service(handler, kind=INCIDENT).create(draft)

    assert body["data"]["incidentType"] == "broken_pipe"
    assert body["data"]["commentaire"] == "fuite"
    assert body["data"]["estResolue"] is False


async def test_confirm_reads_then_increments():
    calls = []

    def handler(request):
        calls.append(request.method)
        if request.method == "GET":
            return httpx.Response(200, json=outage_doc(confirmations=3))
        assert json.loads(request.content) == {"data": {"confirmations": 4}}
        return httpx.Response(200, json=outage_doc(confirmations=4))

    report = await service(handler).confirm("65f1")

    assert calls == ["GET", "PATCH"]
    assert report.confirmations == 4


async def test_resolve_sets_flag_and_timestamp():
    sent = {}

    def handler(request):
        sent.update(json.loads(request.content)["data"])
        return httpx.Response(200, json=outage_doc(estRetablie=True, dateRetablissement="2026-03-10T13:00:00+00:00"))

    report = await service(handler).resolve("65f1")

    assert sent["estRetablie"] is True
    assert sent["dateRetablissement"]
    assert report.resolved is True


async def test_delete_accepts_no_content():
    def handler(request):
        assert request.method == "DELETE"
        assert str(request.url) == f"{DOCS_URL}/65f1"
        return httpx.Response(204)

    assert await service(handler).delete("65f1") is None


async def test_non_success_status_raises_with_code():
    def handler(request):
        return httpx.Response(404, json={"message": "Document not found"})

    with pytest.raises(RemoteServiceError) as exc:
        await service(handler).get("nope")
    assert exc.value.status_code == 404


async def test_network_error_raises_without_code():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(RemoteServiceError) as exc:
        await service(handler).list()
    assert exc.value.status_code is None


async def test_timeout_raises_remote_error():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(RemoteServiceError):
        await service(handler).list()
