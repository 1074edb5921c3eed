"""
HTTP surface: tenant header, camelCase payloads, and the domain error to status code mapping.
Uses an in-memory database through a get_db override.
Run from project root: python -m pytest tests/test_api.py -v
"""
import tempfile
import unittest
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

import httpx

from database import get_db, init_db, make_engine, make_sessionmaker
from domain.exceptions import (
    ApplicationNotFoundError,
    ConcurrencyConflictError,
    InvalidArgumentError,
    InvalidTransitionError,
    MissingDocumentsError,
)
from main import app, status_for
from services.document_store import LocalDocumentStore

TENANT_HEADERS = {"X-Tenant-ID": "tenant-1"}
PDF = b"%PDF-1.4 test document"


def _base_create_body(**overrides):
    body = {
        "applicationType": "OneTime",
        "operatorId": "operator-1",
        "aircraftId": "aircraft-1",
        "flightDetails": {
            "purpose": "Cargo",
            "arrivalAirport": "TUPJ",
            "departureAirport": "TJSJ",
            "estimatedFlightDate": "2025-03-01",
            "cargoDescription": "Medical supplies",
        },
        "requestedStartDate": "2025-03-01",
        "requestedEndDate": "2025-03-05",
        "seatCount": 100,
        "mtowKg": 50000,
    }
    body.update(overrides)
    return body


class TestStatusMapping(unittest.TestCase):
    def test_status_codes(self):
        self.assertEqual(status_for(InvalidArgumentError("bad", "field")), 400)
        self.assertEqual(status_for(ApplicationNotFoundError("app-1")), 404)
        self.assertEqual(status_for(InvalidTransitionError("submit", [], "Approved")), 409)
        self.assertEqual(status_for(ConcurrencyConflictError("app-1", 3)), 409)
        self.assertEqual(status_for(MissingDocumentsError(["Insurance"])), 422)


class TestApplicationsApi(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.engine = make_engine("sqlite+aiosqlite://")
        await init_db(self.engine)
        sessionmaker = make_sessionmaker(self.engine)

        async def override_get_db():
            async with sessionmaker() as session:
                try:
                    yield session
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise

        app.dependency_overrides[get_db] = override_get_db
        self.tmp = tempfile.TemporaryDirectory()
        store_patch = patch(
            "api.applications.get_document_store", return_value=LocalDocumentStore(Path(self.tmp.name))
        )
        store_patch.start()
        self.addCleanup(store_patch.stop)
        self.client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")

    async def asyncTearDown(self):
        await self.client.aclose()
        app.dependency_overrides.clear()
        await self.engine.dispose()
        self.tmp.cleanup()

    async def _create(self, **overrides):
        response = await self.client.post(
            "/api/applications", json=_base_create_body(**overrides), headers=TENANT_HEADERS
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    async def _upload(self, application_id, document_type):
        return await self.client.post(
            f"/api/applications/{application_id}/documents",
            files={"file": (f"{document_type}.pdf", PDF, "application/pdf")},
            data={"documentType": document_type, "uploadedBy": "operator@example.com", "expiryDate": "2099-01-01"},
            headers=TENANT_HEADERS,
        )

    async def test_health(self):
        response = await self.client.get("/health")
        self.assertEqual(response.json(), {"status": "ok"})

    async def test_tenant_header_required(self):
        response = await self.client.get("/api/applications")
        self.assertEqual(response.status_code, 422)

    async def test_create_returns_camel_case_and_fee(self):
        body = await self._create()
        self.assertEqual(body["status"], "Draft")
        self.assertEqual(body["version"], 1)
        self.assertEqual(Decimal(body["calculatedFee"]["amount"]), Decimal("2150"))
        self.assertTrue(body["applicationNumber"].startswith("FOP-"))
        self.assertEqual(
            body["missingDocumentTypes"], ["Airworthiness", "Registration", "OperatorCertificate", "Insurance"]
        )

    async def test_other_tenant_gets_404(self):
        created = await self._create()
        response = await self.client.get(
            f"/api/applications/{created['id']}", headers={"X-Tenant-ID": "tenant-2"}
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"], "ApplicationNotFoundError")

    async def test_submit_without_documents_is_422(self):
        created = await self._create()
        response = await self.client.post(f"/api/applications/{created['id']}/submit", headers=TENANT_HEADERS)
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["error"], "MissingDocumentsError")

    async def test_review_from_draft_is_409(self):
        created = await self._create()
        response = await self.client.post(
            f"/api/applications/{created['id']}/review", json={"reviewer": "reviewer@caa.vg"}, headers=TENANT_HEADERS
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["error"], "InvalidTransitionError")

    async def test_invalid_flight_details_is_400(self):
        flight = dict(_base_create_body()["flightDetails"], purpose="Other")
        response = await self.client.post(
            "/api/applications", json=_base_create_body(flightDetails=flight), headers=TENANT_HEADERS
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["field"], "purpose_description")

    async def test_upload_submit_and_review(self):
        created = await self._create()
        for document_type in ("Airworthiness", "Registration", "OperatorCertificate", "Insurance"):
            response = await self._upload(created["id"], document_type)
            self.assertEqual(response.status_code, 201, response.text)
            self.assertEqual(response.json()["status"], "Pending")
        response = await self.client.post(f"/api/applications/{created['id']}/submit", headers=TENANT_HEADERS)
        self.assertEqual(response.json()["status"], "Submitted")
        response = await self.client.post(
            f"/api/applications/{created['id']}/review", json={"reviewer": "reviewer@caa.vg"}, headers=TENANT_HEADERS
        )
        body = response.json()
        self.assertEqual(body["status"], "UnderReview")
        self.assertEqual(body["reviewedBy"], "reviewer@caa.vg")
        self.assertEqual(len(body["documents"]), 4)
        for document in body["documents"]:
            self.assertNotIn("locator", document)
            self.assertIn("fileName", document)

    async def test_flag_and_list(self):
        created = await self._create()
        await self._create()
        response = await self.client.post(
            f"/api/applications/{created['id']}/flag",
            json={"reason": "Spot check", "flaggedBy": "inspector@caa.vg"},
            headers=TENANT_HEADERS,
        )
        self.assertTrue(response.json()["isFlagged"])
        response = await self.client.get("/api/applications", params={"flagged": "true"}, headers=TENANT_HEADERS)
        self.assertEqual([a["id"] for a in response.json()], [created["id"]])


class TestFeesApi(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.engine = make_engine("sqlite+aiosqlite://")
        await init_db(self.engine)
        sessionmaker = make_sessionmaker(self.engine)

        async def override_get_db():
            async with sessionmaker() as session:
                yield session
                await session.commit()

        app.dependency_overrides[get_db] = override_get_db
        self.client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")

    async def asyncTearDown(self):
        await self.client.aclose()
        app.dependency_overrides.clear()
        await self.engine.dispose()

    async def test_permit_quote(self):
        response = await self.client.post(
            "/api/fees/permit",
            json={"applicationType": "Blanket", "seatCount": 100, "mtowKg": 50000},
            headers=TENANT_HEADERS,
        )
        body = response.json()
        self.assertEqual(Decimal(body["totalFee"]), Decimal("5375"))
        self.assertEqual(body["policySource"], "Default Policy")

    async def test_tariff_uses_published_rates_without_table(self):
        response = await self.client.post(
            "/api/fees/tariff",
            json={"mtowLbs": 50000, "operationType": "GeneralAviation", "isDeparting": False},
            headers=TENANT_HEADERS,
        )
        body = response.json()
        self.assertEqual(Decimal(body["totalFee"]), Decimal("510"))
        self.assertEqual(body["mtowTier"], "Tier2")

    async def test_rate_table_changes_tariff(self):
        response = await self.client.post(
            "/api/fee-rates",
            json={
                "category": "FlightPlanFiling",
                "rate": "25.00",
                "effectiveFrom": "2020-01-01",
            },
            headers=TENANT_HEADERS,
        )
        self.assertEqual(response.status_code, 201, response.text)
        response = await self.client.post(
            "/api/fees/tariff",
            json={
                "mtowLbs": 50000,
                "operationType": "GeneralAviation",
                "isDeparting": False,
                "includeFlightPlanFiling": True,
            },
            headers=TENANT_HEADERS,
        )
        self.assertEqual(Decimal(response.json()["totalFee"]), Decimal("535"))

    async def test_negative_interest_days_is_400(self):
        response = await self.client.post(
            "/api/fees/interest", json={"principal": "1000", "daysOverdue": -1}, headers=TENANT_HEADERS
        )
        self.assertEqual(response.status_code, 400)


if __name__ == "__main__":
    unittest.main()
