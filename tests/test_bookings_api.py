import json
import uuid
from datetime import datetime, timedelta

import pytest

from app.models.audit_log import AuditLog
from app.models.booking import Booking
from app.models.email_log import EmailLog
from app.services.cancellation_service import refund_percentage


def add_booking(db, tour, user, days_ahead=30, status="Confirmed", total=200.0, payment_id=None, tenant_id=None):
    b = Booking(
        id=str(uuid.uuid4()),
        tenant_id=tenant_id or tour.tenant_id,
        booking_reference=f"ADT-{uuid.uuid4().hex[:8].upper()}",
        tour_id=tour.id,
        user_id=user.id,
        booking_date=datetime.now() + timedelta(days=days_ahead),
        guests=2,
        adult_guests=2,
        total_price=total,
        status=status,
        payment_id=payment_id,
    )
    db.add(b)
    db.commit()
    return b


@pytest.mark.parametrize("days,pct", [(10, 100), (7, 100), (5, 50), (3, 50), (2, 0), (-1, 0)])
def test_refund_policy(days, pct):
    now = datetime(2030, 1, 1, 12, 0)
    assert refund_percentage(now + timedelta(days=days), now=now) == pct


def test_refund_counts_partial_days_up():
    now = datetime(2030, 1, 1, 12, 0)
    assert refund_percentage(now + timedelta(days=6, hours=1), now=now) == 100


def test_verify_booking(client, db, tours, customer):
    b = add_booking(db, tours["pyramids"], customer)
    r = client.get(f"/api/v1/booking/verify/{b.booking_reference}", headers={"X-Tenant-ID": "acme-tours"})

    assert r.status_code == 200
    data = r.json()
    assert data["bookingReference"] == b.booking_reference
    assert data["tour"]["title"] == "Pyramids Day Trip"
    assert data["user"]["email"] == "jane@example.com"
    assert data["status"] == "Confirmed"


def test_verify_booking_other_tenant(client, db, tours, customer):
    b = add_booking(db, tours["pyramids"], customer)
    r = client.get(f"/api/v1/booking/verify/{b.booking_reference}", headers={"X-Tenant-ID": "other"})
    assert r.status_code == 404


def test_customer_cancels_own_booking(client, db, tours, customer, headers_for, submitted):
    b = add_booking(db, tours["pyramids"], customer, days_ahead=4, total=200.0)
    r = client.post(f"/api/v1/bookings/{b.id}/cancel", json={"reason": "Change of plans"},
                    headers=headers_for(customer))

    assert r.status_code == 200, r.text
    assert r.json()["refundPercentage"] == 50
    assert r.json()["refundAmount"] == pytest.approx(100.0)

    db.expire_all()
    assert db.get(Booking, b.id).status == "Cancelled"
    audit = db.query(AuditLog).filter(AuditLog.action == "booking.cancel").one()
    assert json.loads(audit.details_json)["reason"] == "Change of plans"
    email = db.query(EmailLog).filter(EmailLog.template == "booking-cancellation").one()
    assert email.to_email == "jane@example.com"
    assert "$100.00" in email.body
    assert submitted == [email.id]


def test_cancel_twice(client, db, tours, customer, headers_for):
    b = add_booking(db, tours["pyramids"], customer, status="Cancelled")
    r = client.post(f"/api/v1/bookings/{b.id}/cancel", json={}, headers=headers_for(customer))
    assert r.status_code == 400


def test_cannot_cancel_someone_elses_booking(client, db, tours, customer, admin, headers_for):
    b = add_booking(db, tours["pyramids"], customer)
    r = client.post(f"/api/v1/bookings/{b.id}/cancel", json={}, headers=headers_for(admin))
    assert r.status_code == 403


def test_cancel_requires_login(client, db, tours, customer):
    b = add_booking(db, tours["pyramids"], customer)
    assert client.post(f"/api/v1/bookings/{b.id}/cancel", json={}).status_code == 401


def test_admin_updates_status_with_normalized_label(client, db, tours, customer, admin, headers_for):
    b = add_booking(db, tours["pyramids"], customer)
    r = client.patch(f"/api/v1/admin/bookings/{b.id}/status", json={"status": "partial-refunded"},
                     headers=headers_for(admin))

    assert r.status_code == 200, r.text
    assert r.json()["status"] == "Partial Refunded"
    db.expire_all()
    assert db.get(Booking, b.id).status == "Partial Refunded"
    audit = db.query(AuditLog).filter(AuditLog.action == "booking.status_change").one()
    assert json.loads(audit.details_json) == {"from": "Confirmed", "to": "Partial Refunded"}


def test_admin_rejects_unknown_status(client, db, tours, customer, admin, headers_for):
    b = add_booking(db, tours["pyramids"], customer)
    r = client.patch(f"/api/v1/admin/bookings/{b.id}/status", json={"status": "shipped"},
                     headers=headers_for(admin))
    assert r.status_code == 400


def test_customer_cannot_use_admin_routes(client, db, tours, customer, headers_for):
    b = add_booking(db, tours["pyramids"], customer)
    r = client.patch(f"/api/v1/admin/bookings/{b.id}/status", json={"status": "completed"},
                     headers=headers_for(customer))
    assert r.status_code == 403


def test_bulk_delete_is_tenant_scoped(client, db, tours, customer, admin, headers_for):
    mine = add_booking(db, tours["pyramids"], customer)
    other = add_booking(db, tours["pyramids"], customer, tenant_id="other-tenant")
    r = client.post("/api/v1/admin/bookings/bulk-delete", json={"ids": [mine.id, other.id]},
                    headers=headers_for(admin))

    assert r.status_code == 200
    assert r.json()["deleted"] == 1
    db.expire_all()
    assert db.get(Booking, mine.id) is None
    assert db.get(Booking, other.id) is not None


def test_stripe_webhook_confirms_pending_bookings(client, db, tours, customer, submitted):
    b = add_booking(db, tours["pyramids"], customer, status="Pending", payment_id="pi_async")
    event = {
        "type": "payment_intent.succeeded",
        "data": {"object": {"id": "pi_async", "metadata": {"tenant_id": "acme-tours"}}},
    }
    r = client.post("/api/v1/webhooks/stripe", json=event)

    assert r.status_code == 200
    assert r.json() == {"received": True, "updated": 1, "created": 0}
    db.expire_all()
    assert db.get(Booking, b.id).status == "Confirmed"
    confirmation = db.query(EmailLog).one()
    assert confirmation.template == "booking-confirmation"
    assert confirmation.to_email == "jane@example.com"
    assert confirmation.related_booking_ref == b.booking_reference
    assert "2 adults" in confirmation.body
    assert len(submitted) == 1

    # replay is a no-op
    assert client.post("/api/v1/webhooks/stripe", json=event).json() == {"received": True, "updated": 0, "created": 0}
    assert db.query(EmailLog).count() == 1


def test_stripe_webhook_ignores_other_events(client, db):
    r = client.post("/api/v1/webhooks/stripe", json={"type": "charge.refunded", "data": {"object": {}}})
    assert r.status_code == 200
    assert r.json() == {"received": True}


def test_login_and_me(client, db, customer):
    r = client.post("/api/v1/auth/login", json={"email": "JANE@example.com", "password": "secret123"})
    assert r.status_code == 200
    token = r.json()["access_token"]

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["email"] == "jane@example.com"
    assert me.json()["role"] == "customer"


def test_login_wrong_password(client, db, customer):
    r = client.post("/api/v1/auth/login", json={"email": "jane@example.com", "password": "nope"})
    assert r.status_code == 401
