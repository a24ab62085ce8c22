from datetime import timedelta

from fastapi.testclient import TestClient

from eventbook.api.auth import create_access_token
from eventbook.api.dependencies import get_db
from eventbook.main import app

from marketplace_seed import future_date, seed_marketplace, setup_db

BASE = "/api/v1"


def setup_app():
    Session = setup_db()

    def override_db():
        db = Session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_db
    db = Session()
    seed = seed_marketplace(db)
    ids = dict(
        organizer=seed.organizer.id,
        vendor_user=seed.vendor_user.id,
        outsider=seed.outsider.id,
        vendor=seed.vendor.id,
        event=seed.event.id,
        listing=seed.listing.id,
    )
    db.close()
    return TestClient(app), ids


def auth(user_id):
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user_id)})}"}


def create(client, ids, days=40):
    return client.post(
        f"{BASE}/booking-requests",
        json={
            "event_id": ids["event"],
            "service_listing_id": ids["listing"],
            "service_date": future_date(days).isoformat(),
            "requirements": "Dinner for 120 guests",
            "budget_range": {"min": 800, "max": 1500},
        },
        headers=auth(ids["organizer"]),
    )


def test_requests_without_valid_token_are_rejected():
    client, ids = setup_app()
    assert client.get(f"{BASE}/booking-requests/1").status_code == 401
    bad = {"Authorization": "Bearer not-a-jwt"}
    assert client.get(f"{BASE}/booking-requests/1", headers=bad).status_code == 401
    expired = create_access_token({"sub": str(ids["organizer"])}, timedelta(minutes=-5))
    res = client.get(f"{BASE}/booking-requests/1", headers={"Authorization": f"Bearer {expired}"})
    assert res.status_code == 401
    app.dependency_overrides.clear()


def test_full_booking_flow_over_http():
    client, ids = setup_app()
    res = create(client, ids)
    assert res.status_code == 201, res.text
    booking = res.json()
    assert booking["status"] == "pending"
    booking_id = booking["id"]

    vendor = auth(ids["vendor_user"])
    organizer = auth(ids["organizer"])
    res = client.put(f"{BASE}/booking-requests/{booking_id}", json={"status": "VENDOR_REVIEWING"}, headers=vendor)
    assert res.status_code == 200, res.text
    res = client.put(
        f"{BASE}/booking-requests/{booking_id}",
        json={"status": "QUOTE_SENT", "quoted_price": "1000"},
        headers=vendor,
    )
    assert res.status_code == 200, res.text
    res = client.put(f"{BASE}/booking-requests/{booking_id}", json={"status": "QUOTE_ACCEPTED"}, headers=organizer)
    assert res.json()["status"] == "quote_accepted"

    res = client.post(f"{BASE}/booking-requests/{booking_id}/agreement", headers=organizer)
    assert res.status_code == 201, res.text
    agreement = res.json()
    assert len(agreement["deliverables"]) == 4
    assert [float(m["amount"]) for m in agreement["payment_schedule"]] == [500.0, 500.0]

    res = client.post(
        f"{BASE}/service-agreements/{agreement['id']}/sign",
        json={"signature_type": "ORGANIZER", "signature": "org-sig"},
        headers=organizer,
    )
    assert res.status_code == 200, res.text
    res = client.post(
        f"{BASE}/service-agreements/{agreement['id']}/sign",
        json={"signature_type": "VENDOR", "signature": "vendor-sig"},
        headers=vendor,
    )
    assert res.json()["signed_at"] is not None

    res = client.get(f"{BASE}/booking-requests/{booking_id}", headers=vendor)
    assert res.json()["status"] == "confirmed"

    res = client.get(f"{BASE}/service-agreements/{agreement['id']}/progress", headers=vendor)
    body = res.json()
    assert body["is_signed"] is True
    assert body["deliverable_progress"]["total"] == 4

    res = client.get(f"{BASE}/booking-requests/stats", params={"vendor_id": ids["vendor"]}, headers=vendor)
    assert res.json()["confirmed"] == 1
    app.dependency_overrides.clear()


def test_business_errors_have_structured_body():
    client, ids = setup_app()
    booking_id = create(client, ids).json()["id"]

    res = client.put(
        f"{BASE}/booking-requests/{booking_id}",
        json={"status": "QUOTE_ACCEPTED"},
        headers=auth(ids["organizer"]),
    )
    assert res.status_code == 400
    detail = res.json()["detail"]
    assert detail["code"] == "InvalidTransition"
    assert "field_errors" in detail

    res = client.get(f"{BASE}/booking-requests/{booking_id}", headers=auth(ids["outsider"]))
    assert res.status_code == 403
    assert res.json()["detail"]["code"] == "Forbidden"

    res = client.put(
        f"{BASE}/booking-requests/{booking_id}",
        json={"status": "VENDOR_REVIEWING"},
        headers=auth(ids["organizer"]),
    )
    assert res.status_code == 403
    assert res.json()["detail"]["code"] == "RoleNotPermitted"

    res = client.get(f"{BASE}/booking-requests/999", headers=auth(ids["organizer"]))
    assert res.status_code == 404

    res = client.put(f"{BASE}/booking-requests/{booking_id}", json={}, headers=auth(ids["organizer"]))
    assert res.status_code == 422
    assert res.json()["detail"]["code"] == "ValidationError"
    app.dependency_overrides.clear()


def test_invalid_payload_is_422():
    client, ids = setup_app()
    res = client.post(
        f"{BASE}/booking-requests",
        json={"event_id": ids["event"], "service_listing_id": ids["listing"], "requirements": ""},
        headers=auth(ids["organizer"]),
    )
    assert res.status_code == 422
    app.dependency_overrides.clear()


def test_messages_timeline_and_cancel_over_http():
    client, ids = setup_app()
    booking_id = create(client, ids).json()["id"]
    organizer = auth(ids["organizer"])

    res = client.post(f"{BASE}/booking-requests/{booking_id}/messages", json={"message": "Hello"}, headers=organizer)
    assert res.status_code == 201
    assert res.json()["sender_type"] == "organizer"

    res = client.get(f"{BASE}/booking-requests/{booking_id}/timeline", headers=auth(ids["vendor_user"]))
    assert [e["type"] for e in res.json()] == ["status_change", "message"]

    res = client.post(f"{BASE}/booking-requests/{booking_id}/cancel", json={"reason": "Budget cut"}, headers=organizer)
    assert res.status_code == 200
    assert res.json()["status"] == "cancelled"
    assert res.json()["additional_notes"] == "Cancellation reason: Budget cut"

    res = client.get(f"{BASE}/booking-requests/event/{ids['event']}", headers=organizer)
    assert len(res.json()) == 1

    res = client.post(f"{BASE}/booking-requests", json={}, headers=organizer)
    assert res.status_code == 422
    app.dependency_overrides.clear()


def test_templates_and_health():
    client, ids = setup_app()
    res = client.get(f"{BASE}/service-agreements/templates", headers=auth(ids["organizer"]))
    assert res.status_code == 200
    assert [t["id"] for t in res.json()] == ["catering-template", "photography-template", "venue-template"]
    assert client.get("/healthz").json() == {"status": "ok"}
    app.dependency_overrides.clear()
