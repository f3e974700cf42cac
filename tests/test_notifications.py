from app.models.email_log import EmailLog
from app.models.tenant import Tenant
from app.services import email_templates as tpl
from app.services import email_service
from app.services.notification_service import NotificationDispatcher
from app.services.tenant_service import resolve_branding
from app.tasks import worker_jobs


def sample_email(**overrides) -> tpl.BookingEmail:
    data = dict(
        customer_name="Jane Doe",
        customer_email="jane@example.com",
        tour_title="Pyramids Day Trip",
        booking_reference="ADT-12345678-ABC123",
        booking_date="Sunday, June 15, 2030",
        booking_time="09:00",
        participants="3 participants",
        total_price="$243.00",
        payment_method="bank",
        transaction_id="BANK-1-XYZ",
    )
    data.update(overrides)
    return tpl.BookingEmail(**data)


def test_bank_instructions_carry_reference_and_bank_details():
    b = resolve_branding(None, "t", base_url="")
    subject, body = tpl.render_bank_transfer_instructions(sample_email(), b)

    assert subject == "Bank Transfer Instructions - Pyramids Day Trip"
    assert "Payment reference: ADT-12345678-ABC123" in body
    assert f"SWIFT: {b.bank_swift}" in body


def test_confirmation_has_default_meeting_point():
    b = resolve_branding(None, "t", base_url="")
    _, body = tpl.render_booking_confirmation(sample_email(special_requests="Window seat"), b)

    assert "Meeting point will be confirmed 24 hours before tour" in body
    assert "Special requests: Window seat" in body


def test_admin_alert_lists_each_tour():
    b = resolve_branding(None, "t", base_url="https://tours.test")
    data = sample_email(tours=[
        tpl.TourLine(title="Pyramids Day Trip", date="Sun, Jun 15, 2030", time="09:00", adults=2, children=1,
                     infants=0, price="$225.00", booking_reference="ADT-1", add_ons=["Lunch"]),
        tpl.TourLine(title="Nile Dinner Cruise", date="Sun, Jun 15, 2030", time="19:00", adults=2, children=0,
                     infants=0, price="$100.00", booking_reference="ADT-2"),
    ])
    _, body = tpl.render_admin_booking_alert(data, b)

    assert "- Pyramids Day Trip [ADT-1]" in body
    assert "- Nile Dinner Cruise [ADT-2]" in body
    assert "Add-ons: Lunch" in body
    assert "https://tours.test/admin/bookings" in body


def test_cancellation_without_refund():
    b = resolve_branding(None, "t", base_url="")
    _, body = tpl.render_cancellation(sample_email(), b, None, "Weather")
    assert "not eligible for a refund" in body


def test_dispatch_failure_is_contained(db):
    def broken(email_id):
        raise RuntimeError("broker down")

    dispatcher = NotificationDispatcher(db, resolve_branding(None, "t", base_url=""), submit=broken)
    assert dispatcher.dispatch_cancellation(sample_email(), 0, "Weather") is None


def test_missing_recipient_is_skipped(db):
    dispatcher = NotificationDispatcher(db, resolve_branding(None, "t", base_url=""), submit=lambda _id: None)
    assert dispatcher.dispatch_cancellation(sample_email(customer_email=""), 0, "Weather") is None
    assert db.query(EmailLog).count() == 0


def test_queued_email_uses_tenant_branding(db):
    t = Tenant(tenant_id="acme", name="Acme Tours", logo="https://cdn.acme.test/logo.png",
               primary_color="#112233", email_from_name="Acme Bookings")
    dispatcher = NotificationDispatcher(db, resolve_branding(t, "acme", base_url=""), submit=lambda _id: None)
    eid = dispatcher.dispatch_cancellation(sample_email(), 0, "Weather")

    log = db.get(EmailLog, eid)
    assert log.from_name == "Acme Bookings"
    assert log.body.startswith("Acme Tours\nhttps://cdn.acme.test/logo.png\n==========\n\nDear Jane Doe")
    assert '<img src="https://cdn.acme.test/logo.png"' in log.html_body
    assert "background:#112233" in log.html_body
    assert "not eligible for a refund" in log.html_body


def test_default_branding_html_escapes_content():
    b = resolve_branding(None, "t", base_url="")
    html = tpl.render_html("Hi", "Tom & Jerry <VIP>\nsecond line", b)

    assert "Tom &amp; Jerry &lt;VIP&gt;<br>second line" in html
    assert f"background:{b.primary_color}" in html
    assert "<img" not in html


def test_worker_delivers_outbox_row(db, monkeypatch):
    monkeypatch.setattr(email_service, "send_email", lambda *a, **kw: None)
    eid = email_service.queue_email(db, "jane@example.com", "Hi", "Body", submit=lambda _id: None)

    assert worker_jobs.deliver_email(eid) == {"id": eid, "status": "sent"}
    db.expire_all()
    assert db.get(EmailLog, eid).status == "sent"
