"""
End-to-end API tests against in-memory SQLite with recording fakes for the payment gateway,
notifier and background-check provider. The clock is pinned to 2025-06-01.
Run from the repo root: python -m pytest tests/test_api.py -v
"""
import json
import unittest
import uuid
from datetime import date, datetime, timezone

from fastapi.testclient import TestClient

from api.deps import get_orchestrator, webhook_signature
from config import settings
from main import app
from services.collaborators import Collaborators, GatewayCharge, get_collaborators
from services.money import Money
from services.orchestrator import LifecycleOrchestrator

TODAY = date(2025, 6, 1)


class RecordingGateway:
    def __init__(self):
        self.charges = []
        self.refunds = []
        self.fail = False

    def create_payment_intent(self, payment_type, amount, payer_id, payee_id, metadata):
        if self.fail:
            raise RuntimeError("gateway unavailable")
        self.charges.append((payment_type, amount, payer_id, payee_id))
        return GatewayCharge(reference=f"pi_{uuid.uuid4().hex}", processing_fee=Money(100, amount.currency))

    def refund(self, amount, payee_id, metadata):
        self.refunds.append((amount, payee_id))
        return GatewayCharge(reference=f"re_{uuid.uuid4().hex}", processing_fee=Money(0, amount.currency))


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def send(self, recipient_id, template, context):
        self.sent.append((recipient_id, template))


class RecordingBackgroundChecks:
    def initiate(self, application_id, applicant_id):
        return f"chk_{uuid.uuid4().hex[:12]}"


gateway = RecordingGateway()
notifier = RecordingNotifier()
collaborators = Collaborators(payments=gateway, notifier=notifier, background_checks=RecordingBackgroundChecks())
client = None


def setUpModule():
    global client
    app.dependency_overrides[get_collaborators] = lambda: collaborators
    app.dependency_overrides[get_orchestrator] = lambda: LifecycleOrchestrator(
        today=lambda: TODAY, now=lambda: datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc)
    )
    client = TestClient(app)
    client.__enter__()


def tearDownModule():
    client.__exit__(None, None, None)
    app.dependency_overrides.clear()


def _id(prefix):
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def as_actor(actor_id, role):
    return {"X-Actor-Id": actor_id, "X-Actor-Role": role}


def post_webhook(path, payload, secret=None, signature=None):
    """POST a provider event signed the way the provider would sign it."""
    raw = json.dumps(payload).encode("utf-8")
    if signature is None:
        signature = webhook_signature(raw, secret or settings.webhook_secret)
    headers = {"Content-Type": "application/json", "X-Webhook-Signature": signature}
    return client.post(path, content=raw, headers=headers)


def application_body(property_id, **overrides):
    body = {
        "propertyId": property_id,
        "moveInDate": "2025-07-01",
        "monthlyIncome": 800000,
        "employmentInfo": {"employer": "Acme", "position": "Engineer", "yearsEmployed": 3},
        "references": [{"name": "Pat", "relationship": "Manager", "phone": "555-0100"}],
        "documents": {"idDocument": "s3://docs/id.pdf", "payStubs": ["s3://docs/stub1.pdf"]},
        "creditCheckConsent": True,
        "backgroundCheckConsent": True,
    }
    body.update(overrides)
    return body


class Scenario:
    """A landlord, a renter and a property, all unique to one test."""

    def __init__(self, rent=200000, landlord=None):
        self.landlord = landlord or as_actor(_id("landlord"), "LANDLORD")
        self.renter = as_actor(_id("renter"), "RENTER")
        r = client.post("/api/properties", json={"title": "2BR loft", "rentAmount": rent}, headers=self.landlord)
        assert r.status_code == 201, r.text
        self.property_id = r.json()["id"]

    def submit(self):
        r = client.post("/api/applications", json=application_body(self.property_id), headers=self.renter)
        assert r.status_code == 201, r.text
        return r.json()

    def approved_application(self):
        app_id = self.submit()["id"]
        r = client.put(f"/api/applications/{app_id}/status", json={"status": "APPROVED"}, headers=self.landlord)
        assert r.status_code == 200, r.text
        return app_id

    def draft_lease(self, start="2025-07-01", end="2026-06-30", deposit=200000):
        app_id = self.approved_application()
        r = client.post(
            f"/api/leases/from-application/{app_id}",
            json={"startDate": start, "endDate": end, "monthlyRent": 200000, "securityDeposit": deposit},
            headers=self.landlord,
        )
        assert r.status_code == 201, r.text
        return r.json()

    def active_lease(self, **kwargs):
        lease_id = self.draft_lease(**kwargs)["id"]
        for status in ("PENDING_SIGNATURE", "ACTIVE"):
            r = client.put(f"/api/leases/{lease_id}", json={"status": status}, headers=self.landlord)
            assert r.status_code == 200, r.text
        return r.json()

    def property_status(self):
        return client.get(f"/api/properties/{self.property_id}").json()["status"]


class TestBasics(unittest.TestCase):
    def test_health(self):
        self.assertEqual(client.get("/health").json(), {"status": "ok"})

    def test_actor_headers_required(self):
        r = client.get("/api/leases")
        self.assertEqual(r.status_code, 401)
        r = client.get("/api/leases", headers=as_actor("x", "JANITOR"))
        self.assertEqual(r.status_code, 401)

    def test_unknown_lease_is_404(self):
        r = client.get("/api/leases/lease-missing", headers=as_actor("admin", "ADMIN"))
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.json()["error"]["code"], "NOT_FOUND")

    def test_fee_preview(self):
        r = client.post("/api/payments/fees/preview", json={"amount": 10000})
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(body["platformFee"]["amount"], 290)
        self.assertEqual(body["platformFee"]["display"], "$2.90")
        self.assertEqual(body["processingFee"]["amount"], 320)
        self.assertEqual(body["landlordNet"]["amount"], 10000 - 290 - 320)

    def test_fee_preview_accepts_money_object(self):
        r = client.post("/api/payments/fees/preview", json={"amount": {"amount": 10000, "currency": "usd"}})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["total"], {"amount": 10000, "currency": "USD", "display": "$100.00"})

    def test_fee_preview_rejects_non_positive(self):
        r = client.post("/api/payments/fees/preview", json={"amount": 0})
        self.assertEqual(r.status_code, 422)
        self.assertEqual(r.json()["error"]["code"], "VALIDATION_FAILED")


class TestApplicationsApi(unittest.TestCase):
    def test_submit_and_get(self):
        s = Scenario()
        created = s.submit()
        self.assertEqual(created["status"], "PENDING")
        self.assertEqual(created["monthlyIncome"]["display"], "$8,000.00")
        self.assertEqual(created["incomeToRent"], {"ratio": 4.0, "classification": "risk", "annualized": False})
        r = client.get(f"/api/applications/{created['id']}", headers=s.landlord)
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["employmentInfo"]["yearsEmployed"], 3)

    def test_stranger_cannot_read(self):
        s = Scenario()
        app_id = s.submit()["id"]
        r = client.get(f"/api/applications/{app_id}", headers=as_actor(_id("renter"), "RENTER"))
        self.assertEqual(r.status_code, 403)

    def test_list_is_scoped_to_actor(self):
        s = Scenario()
        app_id = s.submit()["id"]
        mine = client.get("/api/applications", headers=s.renter).json()
        self.assertEqual([a["id"] for a in mine], [app_id])
        theirs = client.get("/api/applications", headers=as_actor(_id("landlord"), "LANDLORD")).json()
        self.assertEqual(theirs, [])

    def test_validation_errors_name_fields(self):
        s = Scenario()
        body = application_body(s.property_id, documents={}, creditCheckConsent=False)
        r = client.post("/api/applications", json=body, headers=s.renter)
        self.assertEqual(r.status_code, 422)
        error = r.json()["error"]
        self.assertEqual(error["code"], "VALIDATION_FAILED")
        self.assertIn("documents.idDocument", error["details"]["fields"])
        self.assertIn("creditCheckConsent", error["details"]["fields"])

    def test_duplicate_application_conflicts(self):
        s = Scenario()
        s.submit()
        r = client.post("/api/applications", json=application_body(s.property_id), headers=s.renter)
        self.assertEqual(r.status_code, 409)
        self.assertEqual(r.json()["error"]["code"], "PRECONDITION_FAILED")

    def test_approve_twice(self):
        s = Scenario()
        app_id = s.submit()["id"]
        r = client.put(f"/api/applications/{app_id}/status", json={"status": "APPROVED", "notes": "ok"}, headers=s.landlord)
        self.assertEqual(r.json()["status"], "APPROVED")
        self.assertEqual(s.property_status(), "PENDING")
        r = client.put(f"/api/applications/{app_id}/status", json={"status": "APPROVED"}, headers=s.landlord)
        self.assertEqual(r.status_code, 409)
        self.assertEqual(r.json()["error"]["code"], "INVALID_TRANSITION")

    def test_other_landlord_forbidden(self):
        s = Scenario()
        app_id = s.submit()["id"]
        r = client.put(
            f"/api/applications/{app_id}/status",
            json={"status": "REJECTED"},
            headers=as_actor(_id("landlord"), "LANDLORD"),
        )
        self.assertEqual(r.status_code, 403)

    def test_stale_expected_version(self):
        s = Scenario()
        created = s.submit()
        r = client.put(
            f"/api/applications/{created['id']}/status",
            json={"status": "REJECTED", "expectedVersion": created["version"] + 1},
            headers=s.landlord,
        )
        self.assertEqual(r.status_code, 409)
        self.assertEqual(r.json()["error"]["code"], "CONCURRENT_MODIFICATION")

    def test_withdraw(self):
        s = Scenario()
        app_id = s.submit()["id"]
        r = client.put(f"/api/applications/{app_id}/withdraw", headers=s.renter)
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["status"], "WITHDRAWN")

    def test_background_check_via_webhook(self):
        s = Scenario()
        app_id = s.submit()["id"]
        r = client.post(f"/api/applications/{app_id}/background-check", headers=s.landlord)
        self.assertEqual(r.status_code, 200, r.text)
        body = r.json()
        self.assertEqual(body["backgroundCheckStatus"], "PENDING")
        self.assertEqual(body["fee"]["amount"], 3500)
        reference = body["backgroundCheckReference"]

        r = post_webhook("/api/webhooks/background-checks", {"reference": reference, "status": "COMPLETED"})
        self.assertEqual(r.json(), {"applicationId": app_id, "backgroundCheckStatus": "COMPLETED"})
        r = post_webhook("/api/webhooks/background-checks", {"reference": reference, "status": "FAILED"})
        self.assertEqual(r.status_code, 409)


class TestLeasesApi(unittest.TestCase):
    def test_lease_from_pending_application_rejected(self):
        s = Scenario()
        app_id = s.submit()["id"]
        r = client.post(
            f"/api/leases/from-application/{app_id}",
            json={"startDate": "2025-07-01", "endDate": "2026-06-30", "monthlyRent": 200000},
            headers=s.landlord,
        )
        self.assertEqual(r.status_code, 409)

    def test_second_lease_for_application_rejected(self):
        s = Scenario()
        lease = s.draft_lease()
        r = client.post(
            f"/api/leases/from-application/{lease['applicationId']}",
            json={"startDate": "2025-07-01", "endDate": "2026-06-30", "monthlyRent": 200000},
            headers=s.landlord,
        )
        self.assertEqual(r.status_code, 409)
        self.assertEqual(r.json()["error"]["code"], "PRECONDITION_FAILED")

    def test_draft_creates_payment_intents(self):
        s = Scenario()
        lease = s.draft_lease()
        self.assertEqual(lease["status"], "DRAFT")
        self.assertEqual(lease["allowedActions"], ["send for signature"])
        history = client.get("/api/payments/history", headers=s.renter).json()
        self.assertEqual(sorted(p["type"] for p in history), ["FIRST_MONTH_RENT", "SECURITY_DEPOSIT"])
        rent = next(p for p in history if p["type"] == "FIRST_MONTH_RENT")
        self.assertEqual(rent["status"], "PENDING")
        self.assertEqual(rent["platformFee"]["amount"], 5800)
        self.assertEqual(rent["landlordNet"]["amount"], 200000 - 5800 - 100)

    def test_activation_rents_the_property(self):
        s = Scenario()
        lease = s.active_lease()
        self.assertEqual(lease["status"], "ACTIVE")
        self.assertIsNotNone(lease["signedAt"])
        self.assertEqual(s.property_status(), "RENTED")

    def test_terminate_draft_rejected(self):
        s = Scenario()
        lease = s.draft_lease()
        r = client.post(f"/api/leases/{lease['id']}/terminate", json={"terminationDate": "2025-08-01"}, headers=s.landlord)
        self.assertEqual(r.status_code, 409)
        self.assertIn("cannot terminate a DRAFT lease", r.json()["error"]["message"])

    def test_terminate_with_refund(self):
        s = Scenario()
        lease = s.active_lease()
        refunds_before = len(gateway.refunds)
        r = client.post(
            f"/api/leases/{lease['id']}/terminate",
            json={"terminationDate": "2025-09-30", "reason": "job move", "refundDeposit": True},
            headers=s.renter,
        )
        self.assertEqual(r.status_code, 200, r.text)
        body = r.json()
        self.assertEqual(body["status"], "TERMINATED")
        self.assertEqual(body["endDate"], "2026-06-30")
        self.assertEqual(body["terms"]["terminationReason"], "job move")
        self.assertEqual(len(gateway.refunds), refunds_before + 1)
        history = client.get("/api/payments/history", headers=s.renter).json()
        self.assertIn("DEPOSIT_REFUND", [p["type"] for p in history])

    def test_termination_frees_the_property(self):
        s = Scenario()
        lease = s.active_lease()
        self.assertEqual(s.property_status(), "RENTED")
        r = client.post(f"/api/leases/{lease['id']}/terminate", json={"terminationDate": "2025-06-15"}, headers=s.landlord)
        self.assertEqual(r.status_code, 200, r.text)
        self.assertEqual(r.json()["status"], "TERMINATED")
        self.assertIsNotNone(r.json()["terminatedAt"])
        self.assertEqual(s.property_status(), "AVAILABLE")

        newcomer = as_actor(_id("renter"), "RENTER")
        r = client.post("/api/applications", json=application_body(s.property_id), headers=newcomer)
        self.assertEqual(r.status_code, 201, r.text)

        stats = client.get("/api/leases/dashboard/stats", headers=s.landlord).json()
        self.assertEqual(stats["terminatedThisMonth"], 1)
        self.assertEqual(stats["activeLeases"], 0)

    def test_terminate_date_out_of_range(self):
        s = Scenario()
        lease = s.active_lease()
        for bad in ("2025-05-31", "2026-07-01"):
            r = client.post(f"/api/leases/{lease['id']}/terminate", json={"terminationDate": bad}, headers=s.landlord)
            self.assertEqual(r.status_code, 409, bad)
            self.assertEqual(r.json()["error"]["code"], "PRECONDITION_FAILED")

    def test_renew(self):
        s = Scenario()
        lease = s.active_lease()
        r = client.post(
            f"/api/leases/{lease['id']}/renew",
            json={"newEndDate": "2027-06-30", "newMonthlyRent": 210000, "renewalTerms": {"parkingSpot": "B4"}},
            headers=s.landlord,
        )
        self.assertEqual(r.status_code, 201, r.text)
        renewal = r.json()
        self.assertEqual(renewal["status"], "DRAFT")
        self.assertEqual(renewal["startDate"], "2026-06-30")
        self.assertEqual(renewal["monthlyRent"]["amount"], 210000)
        self.assertEqual(renewal["supersedesId"], lease["id"])
        self.assertTrue(renewal["terms"]["isRenewal"])
        self.assertEqual(renewal["terms"]["parkingSpot"], "B4")

        original = client.get(f"/api/leases/{lease['id']}", headers=s.landlord).json()
        self.assertEqual(original["status"], "ACTIVE")
        self.assertEqual(original["supersededById"], renewal["id"])

        r = client.post(f"/api/leases/{lease['id']}/renew", json={"newEndDate": "2027-12-31"}, headers=s.landlord)
        self.assertEqual(r.status_code, 409)

    def test_renew_must_extend(self):
        s = Scenario()
        lease = s.active_lease()
        r = client.post(f"/api/leases/{lease['id']}/renew", json={"newEndDate": "2026-06-30"}, headers=s.landlord)
        self.assertEqual(r.status_code, 409)

    def test_list_pagination(self):
        s = Scenario()
        s.draft_lease()
        Scenario(landlord=s.landlord).draft_lease()
        page = client.get("/api/leases", params={"limit": 1, "page": 2}, headers=s.landlord).json()
        self.assertEqual(len(page["leases"]), 1)
        self.assertEqual(page["pagination"], {"page": 2, "limit": 1, "total": 2, "pages": 2})
        drafts = client.get("/api/leases", params={"status": "DRAFT"}, headers=s.landlord).json()
        self.assertEqual(drafts["pagination"]["total"], 2)

    def test_renewal_candidates_and_stats(self):
        s = Scenario()
        lease = s.active_lease(start="2025-01-15", end="2025-07-15")
        Scenario(landlord=s.landlord).draft_lease()
        rows = client.get("/api/leases/renewals/candidates", headers=s.landlord).json()
        self.assertEqual([c["id"] for c in rows], [lease["id"]])
        self.assertEqual(rows[0]["daysUntilExpiry"], 44)
        self.assertEqual(rows[0]["expiryUrgency"], "WARNING")

        stats = client.get("/api/leases/dashboard/stats", headers=s.landlord).json()
        self.assertEqual(stats["totalLeases"], 2)
        self.assertEqual(stats["activeLeases"], 1)
        self.assertEqual(stats["expiringIn30Days"], 0)
        self.assertEqual(stats["expiringIn90Days"], 1)
        self.assertEqual(stats["draftLeases"], 1)

        r = client.get("/api/leases/renewals/candidates", headers=s.renter)
        self.assertEqual(r.status_code, 403)

    def test_financials_and_escalation(self):
        s = Scenario()
        lease = s.active_lease()
        fin = client.get(f"/api/leases/{lease['id']}/financials", headers=s.renter).json()
        self.assertEqual(fin["totalLeaseValue"]["amount"], 2426667)
        self.assertEqual(fin["daysUntilExpiry"], 394)
        self.assertEqual(fin["expiryUrgency"], "HEALTHY")
        self.assertTrue(fin["securityDepositCompliant"])

        r = client.post(f"/api/leases/{lease['id']}/escalation", json={"escalationRate": 3.5}, headers=s.landlord)
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["newRent"]["amount"], 207000)
        r = client.post(f"/api/leases/{lease['id']}/escalation", json={"escalationRate": 60}, headers=s.landlord)
        self.assertEqual(r.status_code, 422)

    def test_expire_overdue(self):
        s = Scenario()
        lease = s.active_lease(start="2024-06-01", end="2025-05-31")
        r = client.post("/api/leases/expire-overdue", headers=s.landlord)
        self.assertEqual(r.status_code, 403)
        r = client.post("/api/leases/expire-overdue", headers=as_actor("admin-1", "ADMIN"))
        self.assertEqual(r.status_code, 200)
        self.assertIn(lease["id"], r.json()["expired"])
        self.assertEqual(client.get(f"/api/leases/{lease['id']}", headers=s.landlord).json()["status"], "EXPIRED")
        self.assertEqual(s.property_status(), "AVAILABLE")

    def test_gateway_failure_rolls_back(self):
        s = Scenario()
        app_id = s.approved_application()
        body = {"startDate": "2025-07-01", "endDate": "2026-06-30", "monthlyRent": 200000}
        gateway.fail = True
        try:
            r = client.post(f"/api/leases/from-application/{app_id}", json=body, headers=s.landlord)
        finally:
            gateway.fail = False
        self.assertEqual(r.status_code, 502)
        self.assertEqual(r.json()["error"]["code"], "EXTERNAL_SERVICE_ERROR")
        listing = client.get("/api/leases", headers=s.landlord).json()
        self.assertEqual(listing["pagination"]["total"], 0)
        r = client.post(f"/api/leases/from-application/{app_id}", json=body, headers=s.landlord)
        self.assertEqual(r.status_code, 201)


class TestPaymentsApi(unittest.TestCase):
    def test_webhook_completion_feeds_earnings(self):
        s = Scenario()
        s.draft_lease()
        history = client.get("/api/payments/history", headers=s.landlord).json()
        rent = next(p for p in history if p["type"] == "FIRST_MONTH_RENT")
        r = post_webhook("/api/webhooks/payments", {"gatewayReference": rent["gatewayReference"], "status": "COMPLETED"})
        self.assertEqual(r.json(), {"paymentId": rent["id"], "status": "COMPLETED"})

        earnings = client.get("/api/payments/earnings", headers=s.landlord).json()
        self.assertEqual(earnings["totalGross"]["amount"], 200000)
        self.assertEqual(earnings["totalPlatformFees"]["amount"], 5800)
        self.assertEqual(earnings["totalNet"]["amount"], 200000 - 5800 - 100)
        self.assertEqual(earnings["pending"]["amount"], 200000)

        r = post_webhook("/api/webhooks/payments", {"gatewayReference": rent["gatewayReference"], "status": "FAILED"})
        self.assertEqual(r.status_code, 409)

    def test_unknown_payment_reference(self):
        r = post_webhook("/api/webhooks/payments", {"gatewayReference": "pi_missing", "status": "COMPLETED"})
        self.assertEqual(r.status_code, 404)

    def test_webhook_signature_required(self):
        s = Scenario()
        s.draft_lease()
        history = client.get("/api/payments/history", headers=s.landlord).json()
        rent = next(p for p in history if p["type"] == "FIRST_MONTH_RENT")
        payload = {"gatewayReference": rent["gatewayReference"], "status": "COMPLETED"}

        r = client.post("/api/webhooks/payments", json=payload)
        self.assertEqual(r.status_code, 400)
        r = post_webhook("/api/webhooks/payments", payload, secret="not-the-shared-secret")
        self.assertEqual(r.status_code, 400)
        r = post_webhook("/api/webhooks/payments", payload, signature="sha256=" + "0" * 64)
        self.assertEqual(r.status_code, 400)
        history = client.get("/api/payments/history", headers=s.landlord).json()
        self.assertEqual(next(p for p in history if p["id"] == rent["id"])["status"], "PENDING")

        r = post_webhook("/api/webhooks/payments", payload)
        self.assertEqual(r.status_code, 200, r.text)
        self.assertEqual(r.json()["status"], "COMPLETED")

    def test_unsigned_background_check_event_rejected(self):
        r = client.post("/api/webhooks/background-checks", json={"reference": "chk_any", "status": "COMPLETED"})
        self.assertEqual(r.status_code, 400)

    def test_renters_have_no_earnings(self):
        r = client.get("/api/payments/earnings", headers=as_actor(_id("renter"), "RENTER"))
        self.assertEqual(r.status_code, 403)


class TestInspectionsAndMaintenanceApi(unittest.TestCase):
    def test_inspection_lifecycle(self):
        s = Scenario()
        r = client.post(
            "/api/inspections",
            json={"propertyId": s.property_id, "scheduledFor": "2025-06-10T10:00:00+00:00"},
            headers=s.landlord,
        )
        self.assertEqual(r.status_code, 201, r.text)
        inspection_id = r.json()["id"]
        r = client.put(f"/api/inspections/{inspection_id}/status", json={"status": "COMPLETED"}, headers=s.landlord)
        self.assertEqual(r.status_code, 409)
        r = client.put(f"/api/inspections/{inspection_id}/status", json={"status": "IN_PROGRESS"}, headers=s.landlord)
        self.assertEqual(r.json()["status"], "IN_PROGRESS")
        listed = client.get(f"/api/inspections/property/{s.property_id}", headers=s.landlord).json()
        self.assertEqual([i["id"] for i in listed], [inspection_id])

    def test_maintenance_requires_active_lease(self):
        s = Scenario()
        body = {"propertyId": s.property_id, "title": "Leaking tap", "priority": "HIGH"}
        r = client.post("/api/maintenance", json=body, headers=s.renter)
        self.assertEqual(r.status_code, 403)

        s.active_lease()
        r = client.post("/api/maintenance", json=body, headers=s.renter)
        self.assertEqual(r.status_code, 201, r.text)
        request_id = r.json()["id"]
        self.assertEqual(r.json()["status"], "OPEN")

        r = client.put(f"/api/maintenance/{request_id}/status", json={"status": "CANCELLED"}, headers=s.renter)
        self.assertEqual(r.json()["status"], "CANCELLED")
        listed = client.get(f"/api/maintenance/property/{s.property_id}", headers=s.renter).json()
        self.assertEqual(len(listed), 1)


def vendor_body(**overrides):
    body = {
        "companyName": "Ace Plumbing",
        "contactPerson": "Sam Ace",
        "email": "sam@aceplumbing.test",
        "phone": "212-555-0199",
        "specialties": ["Plumbing", "HVAC"],
        "serviceAreas": ["Brooklyn"],
        "hourlyRate": 9500,
    }
    body.update(overrides)
    return body


def create_vendor(landlord, **overrides):
    r = client.post("/api/vendors", json=vendor_body(**overrides), headers=landlord)
    assert r.status_code == 201, r.text
    return r.json()


class TestVendorsApi(unittest.TestCase):
    def test_create_update_deactivate(self):
        landlord = as_actor(_id("landlord"), "LANDLORD")
        vendor = create_vendor(landlord)
        self.assertEqual(vendor["hourlyRate"], {"amount": 9500, "currency": "USD", "display": "$95.00"})
        self.assertIsNone(vendor["emergencyRate"])
        self.assertTrue(vendor["isActive"])
        self.assertEqual((vendor["rating"], vendor["totalReviews"]), (0.0, 0))

        r = client.put(
            f"/api/vendors/{vendor['id']}",
            json={"phone": "212-555-0100", "emergencyRate": {"amount": 15000, "currency": "USD"}},
            headers=landlord,
        )
        self.assertEqual(r.status_code, 200, r.text)
        self.assertEqual(r.json()["phone"], "212-555-0100")
        self.assertEqual(r.json()["emergencyRate"]["amount"], 15000)
        self.assertEqual(r.json()["companyName"], "Ace Plumbing")

        r = client.put(
            f"/api/vendors/{vendor['id']}",
            json={"description": "late", "expectedVersion": vendor["version"]},
            headers=landlord,
        )
        self.assertEqual(r.status_code, 409)
        self.assertEqual(r.json()["error"]["code"], "CONCURRENT_MODIFICATION")

        r = client.put(f"/api/vendors/{vendor['id']}", json={}, headers=landlord)
        self.assertEqual(r.status_code, 422)

        r = client.delete(f"/api/vendors/{vendor['id']}", headers=landlord)
        self.assertFalse(r.json()["isActive"])
        listed = client.get("/api/vendors", headers=landlord).json()
        self.assertEqual(listed["vendors"], [])
        listed = client.get("/api/vendors", params={"includeInactive": "true"}, headers=landlord).json()
        self.assertEqual([v["id"] for v in listed["vendors"]], [vendor["id"]])

    def test_validation_errors_name_fields(self):
        landlord = as_actor(_id("landlord"), "LANDLORD")
        r = client.post(
            "/api/vendors",
            json=vendor_body(email="not-an-email", phone="555-01", hourlyRate=0),
            headers=landlord,
        )
        self.assertEqual(r.status_code, 422)
        fields = r.json()["error"]["details"]["fields"]
        self.assertIn("email", fields)
        self.assertIn("phone", fields)
        self.assertIn("hourlyRate", fields)

    def test_vendors_are_private_to_their_landlord(self):
        landlord = as_actor(_id("landlord"), "LANDLORD")
        vendor = create_vendor(landlord)
        r = client.post("/api/vendors", json=vendor_body(), headers=as_actor(_id("renter"), "RENTER"))
        self.assertEqual(r.status_code, 403)
        other = as_actor(_id("landlord"), "LANDLORD")
        self.assertEqual(client.get(f"/api/vendors/{vendor['id']}", headers=other).status_code, 403)
        self.assertEqual(client.get("/api/vendors", headers=other).json()["vendors"], [])
        self.assertEqual(client.get("/api/vendors/vnd-missing", headers=landlord).status_code, 404)

    def test_list_filters_and_pagination(self):
        landlord = as_actor(_id("landlord"), "LANDLORD")
        create_vendor(landlord)
        create_vendor(landlord, companyName="Bright Electric", contactPerson="Lee Volt", specialties=["Electrical"])

        found = client.get("/api/vendors", params={"search": "bright"}, headers=landlord).json()
        self.assertEqual([v["companyName"] for v in found["vendors"]], ["Bright Electric"])
        found = client.get("/api/vendors", params={"specialty": "hvac"}, headers=landlord).json()
        self.assertEqual([v["companyName"] for v in found["vendors"]], ["Ace Plumbing"])

        page = client.get("/api/vendors", params={"limit": 1, "page": 2}, headers=landlord).json()
        self.assertEqual(len(page["vendors"]), 1)
        self.assertEqual(page["pagination"], {"page": 2, "limit": 1, "total": 2, "pages": 2})

    def test_assign_and_review(self):
        s = Scenario()
        s.active_lease()
        vendor = create_vendor(s.landlord)
        r = client.post("/api/maintenance", json={"propertyId": s.property_id, "title": "Boiler out"}, headers=s.renter)
        request_id = r.json()["id"]

        r = client.post(f"/api/vendors/{vendor['id']}/reviews", json={"rating": 5}, headers=s.landlord)
        self.assertEqual(r.status_code, 403)

        renter_id = s.renter["X-Actor-Id"]
        before = len(notifier.sent)
        r = client.put(
            f"/api/vendors/assign/{request_id}",
            json={"vendorId": vendor["id"], "vendorNotes": "Tuesday morning", "vendorEstimate": 25000},
            headers=s.landlord,
        )
        self.assertEqual(r.status_code, 200, r.text)
        self.assertEqual(r.json()["assignedVendorId"], vendor["id"])
        self.assertEqual(r.json()["vendorEstimate"]["amount"], 25000)
        self.assertEqual(r.json()["status"], "OPEN")
        self.assertIn((renter_id, "maintenance.vendor_assigned"), notifier.sent[before:])

        r = client.post(
            f"/api/vendors/{vendor['id']}/reviews",
            json={"rating": 4, "comment": "On time", "maintenanceRequestId": request_id},
            headers=s.landlord,
        )
        self.assertEqual(r.status_code, 201, r.text)
        self.assertEqual((r.json()["vendorRating"], r.json()["vendorTotalReviews"]), (4.0, 1))
        r = client.post(f"/api/vendors/{vendor['id']}/reviews", json={"rating": 5}, headers=s.landlord)
        self.assertEqual((r.json()["vendorRating"], r.json()["vendorTotalReviews"]), (4.5, 2))
        r = client.post(f"/api/vendors/{vendor['id']}/reviews", json={"rating": 6}, headers=s.landlord)
        self.assertEqual(r.status_code, 422)

        r = client.put(f"/api/vendors/assign/{request_id}", json={"vendorId": None}, headers=s.landlord)
        self.assertEqual(r.status_code, 200, r.text)
        self.assertIsNone(r.json()["assignedVendorId"])
        self.assertIsNone(r.json()["vendorEstimate"])

    def test_assignment_rules(self):
        s = Scenario()
        body = {"propertyId": s.property_id, "title": "Broken window"}
        request_id = client.post("/api/maintenance", json=body, headers=s.landlord).json()["id"]

        foreign = create_vendor(as_actor(_id("landlord"), "LANDLORD"))
        r = client.put(f"/api/vendors/assign/{request_id}", json={"vendorId": foreign["id"]}, headers=s.landlord)
        self.assertEqual(r.status_code, 403)

        r = client.put(
            f"/api/vendors/assign/{request_id}", json={"vendorEstimate": 1000}, headers=s.landlord
        )
        self.assertEqual(r.status_code, 422)

        retired = create_vendor(s.landlord)
        client.delete(f"/api/vendors/{retired['id']}", headers=s.landlord)
        r = client.put(f"/api/vendors/assign/{request_id}", json={"vendorId": retired["id"]}, headers=s.landlord)
        self.assertEqual(r.status_code, 409)

        mine = create_vendor(s.landlord)
        r = client.put(f"/api/vendors/assign/{request_id}", json={"vendorId": mine["id"]}, headers=s.renter)
        self.assertEqual(r.status_code, 403)

        client.put(f"/api/maintenance/{request_id}/status", json={"status": "CANCELLED"}, headers=s.landlord)
        r = client.put(f"/api/vendors/assign/{request_id}", json={"vendorId": mine["id"]}, headers=s.landlord)
        self.assertEqual(r.status_code, 409)


if __name__ == "__main__":
    unittest.main()
