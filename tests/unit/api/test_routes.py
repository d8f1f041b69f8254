"""HTTP tests for the consignment and settlement routes.

Use cases are wired to the in-memory fakes through dependency overrides, so no
database is needed.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio

from consignment_service.adapters.persistence.database import get_session
from consignment_service.domain.entities.assignment import CorporateTarget
from consignment_service.domain.entities.invoice import Invoice
from consignment_service.domain.entities.usage import ConsignmentUsage
from consignment_service.domain.value_objects.enums import PaymentType
from consignment_service.infrastructure.api.dependencies import (
    get_allocator,
    get_diagnostics,
    get_generate_invoice_uc,
    get_invoice_queries,
)
from consignment_service.main import create_app


@pytest.fixture
def app(allocator, diagnostics, invoice_uc, invoice_queries):
    app = create_app()
    app.dependency_overrides[get_allocator] = lambda: allocator
    app.dependency_overrides[get_diagnostics] = lambda: diagnostics
    app.dependency_overrides[get_generate_invoice_uc] = lambda: invoice_uc
    app.dependency_overrides[get_invoice_queries] = lambda: invoice_queries
    return app


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def _assign(client, entity_type="corporate", entity_id=1, start=1000, end=1010):
    return await client.post("/api/consignments/assignments", json={
        "entityType": entity_type, "entityId": entity_id,
        "startNumber": start, "endNumber": end, "notes": "batch",
    })


# ─── Assignments ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_assign_range(client):
    resp = await _assign(client)
    assert resp.status_code == 200
    data = resp.json()
    assert data["assignmentId"] == 1
    assert data["startNumber"] == 1000
    assert data["endNumber"] == 1010
    assert data["totalNumbers"] == 11
    assert data["assignedToName"] == "Acme Logistics"


@pytest.mark.asyncio
async def test_assign_inverted_range_is_400(client):
    resp = await _assign(client, start=50, end=10)
    assert resp.status_code == 400
    assert "less than or equal" in resp.json()["error"]


@pytest.mark.asyncio
async def test_assign_overlap_is_409_with_owner(client):
    await _assign(client)
    resp = await _assign(client, entity_id=2, start=1005, end=1020)
    assert resp.status_code == 409
    assert resp.json()["conflictingOwner"] == "Acme Logistics"


@pytest.mark.asyncio
async def test_assign_unknown_owner_is_404(client):
    resp = await _assign(client, entity_type="office_user", entity_id=99)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_assign_unknown_entity_type_is_422(client):
    resp = await _assign(client, entity_type="branch")
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_list_assignments_paginated(client):
    await _assign(client)
    await _assign(client, entity_type="office_user", entity_id=5, start=2000, end=2002)
    resp = await client.get(
        "/api/consignments/assignments", params={"entityType": "office_user"}
    )
    assert resp.status_code == 200
    body = resp.json()
    assert [a["entityId"] for a in body["data"]] == [5]
    assert body["data"][0]["usedCount"] == 0
    assert body["pagination"]["totalCount"] == 1
    assert body["pagination"]["currentPage"] == 1


@pytest.mark.asyncio
async def test_deactivate_assignment(client):
    await _assign(client)
    resp = await client.post("/api/consignments/assignments/1/deactivate")
    assert resp.status_code == 200
    assert resp.json()["isActive"] is False
    missing = await client.post("/api/consignments/assignments/77/deactivate")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_highest_number(client):
    await _assign(client)
    resp = await client.get("/api/consignments/highest")
    assert resp.json() == {"highestNumber": 1010, "nextStartNumber": 1011}


# ─── Numbers and usage ──────────────────────────────────────────────


@pytest.mark.asyncio
async def test_next_number_then_usage(client):
    await _assign(client, entity_type="office_user", entity_id=5, start=2000, end=2002)

    resp = await client.get("/api/consignments/office_user/5/next")
    assert resp.json() == {"consignmentNumber": 2000}

    used = await client.post("/api/consignments/usage", json={
        "entityType": "office_user", "entityId": 5, "consignmentNumber": 2000,
        "bookingReference": "BK-1", "bookingData": {"destinationData": {"city": "Pune"}},
    })
    assert used.status_code == 200
    assert used.json()["usageId"] == 1

    resp = await client.get("/api/consignments/office_user/5/next")
    assert resp.json() == {"consignmentNumber": 2001}


@pytest.mark.asyncio
async def test_next_number_without_assignment_is_409(client):
    resp = await client.get("/api/consignments/corporate/1/next")
    assert resp.status_code == 409
    assert "error" in resp.json()


@pytest.mark.asyncio
async def test_duplicate_usage_is_409(client):
    await _assign(client)
    payload = {
        "entityType": "corporate", "entityId": 1, "consignmentNumber": 1000,
        "bookingReference": "BK-1", "bookingData": {},
    }
    assert (await client.post("/api/consignments/usage", json=payload)).status_code == 200
    resp = await client.post("/api/consignments/usage", json=payload)
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_usage_out_of_range_is_400(client):
    await _assign(client)
    resp = await client.post("/api/consignments/usage", json={
        "entityType": "corporate", "entityId": 1, "consignmentNumber": 9999,
        "bookingReference": "BK-1", "bookingData": {},
    })
    assert resp.status_code == 400
    assert "not within the assigned range" in resp.json()["error"]


@pytest.mark.asyncio
async def test_usage_history_and_statistics(client):
    await _assign(client, start=1000, end=1003)
    for number in (1000, 1001):
        await client.post("/api/consignments/usage", json={
            "entityType": "corporate", "entityId": 1, "consignmentNumber": number,
            "bookingReference": f"BK-{number}", "bookingData": {},
        })

    history = (await client.get("/api/consignments/corporate/1/usage")).json()
    assert [u["consignmentNumber"] for u in history["data"]] == [1001, 1000]

    stats = (await client.get("/api/consignments/corporate/1/statistics")).json()
    assert stats == {"totalAssigned": 4, "totalUsed": 2, "available": 2, "usagePercentage": 50}


# ─── Diagnostics ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_orphan_report(client, assignment_repo):
    await _assign(client)
    await _assign(client, entity_id=2, start=1100, end=1110)
    assignment_repo.assignments[2].target = CorporateTarget(corporate_id=42)

    body = (await client.get("/api/consignments/diagnostics/orphans")).json()
    assert body["orphanedCount"] == 1
    assert body["orphanedAssignments"][0]["issue"] == "Invalid corporate reference (42)"


@pytest.mark.asyncio
async def test_summary(client):
    await _assign(client)
    body = (await client.get("/api/consignments/diagnostics/summary")).json()
    assert body == {"assignmentCount": 1, "usageCount": 0}


# ─── Settlement ─────────────────────────────────────────────────────


async def _seed(usage_repo, number, used_at, payment_type=PaymentType.FP):
    await usage_repo.save(ConsignmentUsage(
        id=None, target=CorporateTarget(corporate_id=1), consignment_number=number,
        booking_reference=f"BK-{number}", used_at=used_at, payment_type=payment_type,
        freight_charges=Decimal("100"), total_amount=Decimal("183"),
    ))


@pytest.mark.asyncio
async def test_unpaid_shipments(client, usage_repo):
    await _seed(usage_repo, 1001, datetime(2025, 3, 5))
    await _seed(usage_repo, 1002, datetime(2025, 3, 6), payment_type=PaymentType.TP)

    resp = await client.get(
        "/api/settlement/unpaid/1", params={"startDate": "2025-03-01", "endDate": "2025-03-31"}
    )
    body = resp.json()
    assert body["totalShipments"] == 1
    assert body["totalAmount"] == 183.0
    assert body["shipments"][0]["consignmentNumber"] == 1001


@pytest.mark.asyncio
async def test_generate_invoice_then_conflict(client, usage_repo):
    await _seed(usage_repo, 1001, datetime(2025, 3, 5))
    payload = {"corporateId": 1, "startDate": "2025-03-01", "endDate": "2025-03-31"}

    resp = await client.post("/api/settlement/invoices", json=payload)
    assert resp.status_code == 200
    body = resp.json()
    assert body["invoiceNumber"].startswith("INV-")
    assert body["totalShipments"] == 1
    assert body["grandTotal"] == 183.0

    again = await client.post("/api/settlement/invoices", json=payload)
    assert again.status_code == 409


@pytest.mark.asyncio
async def test_generate_invoice_with_nothing_unpaid_is_400(client):
    resp = await client.post("/api/settlement/invoices", json={
        "corporateId": 1, "startDate": "2025-03-01", "endDate": "2025-03-31",
    })
    assert resp.status_code == 400


# ─── Health ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health_degraded_without_database(app, client):
    class BrokenSession:
        async def scalar(self, *args, **kwargs):
            raise ConnectionError("connection refused")

    app.dependency_overrides[get_session] = lambda: BrokenSession()
    body = (await client.get("/api/health")).json()
    assert body["status"] == "degraded"
    assert body["database"].startswith("error:")
    assert body["activeAssignments"] is None


@pytest.mark.asyncio
async def test_health_reports_active_assignments(app, client):
    class CountingSession:
        async def scalar(self, *args, **kwargs):
            return 3

    app.dependency_overrides[get_session] = lambda: CountingSession()
    body = (await client.get("/api/health")).json()
    assert body["status"] == "ok"
    assert body["activeAssignments"] == 3


# ─── Invoice lookup ─────────────────────────────────────────────────


async def _invoice_march(client, usage_repo):
    await _seed(usage_repo, 1001, datetime(2025, 3, 5))
    resp = await client.post("/api/settlement/invoices", json={
        "corporateId": 1, "startDate": "2025-03-01", "endDate": "2025-03-31",
    })
    return resp.json()


@pytest.mark.asyncio
async def test_invoice_detail_with_lines(client, usage_repo):
    created = await _invoice_march(client, usage_repo)

    resp = await client.get(f"/api/settlement/invoices/{created['invoiceId']}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["invoiceNumber"] == created["invoiceNumber"]
    assert body["lines"][0]["consignmentNumber"] == 1001
    assert body["lines"][0]["totalAmount"] == 183.0


@pytest.mark.asyncio
async def test_invoice_detail_scoped_to_corporate(client, usage_repo):
    created = await _invoice_march(client, usage_repo)
    resp = await client.get(
        f"/api/settlement/invoices/{created['invoiceId']}", params={"corporateId": 2}
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_unknown_invoice_is_404(client):
    resp = await client.get("/api/settlement/invoices/404")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Invoice not found."}


@pytest.mark.asyncio
async def test_list_invoices_for_corporate(client, usage_repo):
    await _invoice_march(client, usage_repo)

    mine = (await client.get("/api/settlement/invoices", params={"corporateId": 1})).json()
    assert mine["pagination"]["totalCount"] == 1
    assert mine["data"][0]["status"] == "unpaid"

    theirs = (await client.get("/api/settlement/invoices", params={"corporateId": 2})).json()
    assert theirs["data"] == []


@pytest.mark.asyncio
async def test_settlement_summary(client, usage_repo):
    await _invoice_march(client, usage_repo)
    body = (await client.get("/api/settlement/summary", params={"corporateId": 1})).json()
    assert body["totalInvoices"] == 1
    assert body["unpaidInvoices"] == 1
    assert body["unpaidAmount"] == 183.0
    assert body["paidInvoices"] == 0


@pytest.mark.asyncio
async def test_overdue_listing(client, invoice_repo):
    await invoice_repo.save(Invoice(
        id=None, invoice_number="INV-202001-0001", corporate_id=1,
        period_start=date(2020, 1, 1), period_end=date(2020, 1, 31),
        grand_total=Decimal("183.00"), due_date=date(2020, 1, 31),
    ))
    body = (await client.get("/api/settlement/overdue")).json()
    assert body["totalOverdue"] == 1
    assert body["invoices"][0]["isOverdue"] is True
    assert body["totalAmount"] == 183.0


@pytest.mark.asyncio
async def test_concurrent_invoice_maps_to_409(client, usage_repo, invoice_repo):
    await _seed(usage_repo, 1001, datetime(2025, 3, 5))

    async def stale_count(prefix):
        return 0

    await invoice_repo.save(Invoice(
        id=None, invoice_number=f"INV-{date.today():%Y%m}-0001", corporate_id=2,
        period_start=date(2025, 3, 1), period_end=date(2025, 3, 31),
    ))
    invoice_repo.count_with_prefix = stale_count

    resp = await client.post("/api/settlement/invoices", json={
        "corporateId": 1, "startDate": "2025-03-01", "endDate": "2025-03-31",
    })
    assert resp.status_code == 409
