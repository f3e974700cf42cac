import re
import uuid
from datetime import datetime

from app.models.booking import Booking
from app.services import reference_service
from app.services.reference_service import generate_booking_reference, make_booking_reference, reference_prefix


def test_prefix_from_tenant_name_initials():
    assert reference_prefix("acme-tours", "Acme Desert Tours") == "ADT"
    assert reference_prefix("x", "Cairo Nile Luxor Aswan Trips") == "CNLA"


def test_prefix_from_tenant_id_when_no_name():
    assert reference_prefix("hurghada-dive", None) == "HURG"
    assert reference_prefix("a-b", None) == "AB"


def test_prefix_falls_back_to_default():
    assert reference_prefix("", None) == "BKG"
    assert reference_prefix("---", "") == "BKG"


def test_reference_format():
    ref = make_booking_reference("ADT")
    assert re.fullmatch(r"ADT-\d{8}-[A-Z0-9]{6}", ref)


def _booking(tenant_id: str, ref: str) -> Booking:
    return Booking(id=str(uuid.uuid4()), tenant_id=tenant_id, booking_reference=ref, tour_id="t", user_id="u",
                   booking_date=datetime(2030, 1, 1), total_price=10)


def test_collision_retries_with_new_suffix(db, monkeypatch):
    monkeypatch.setattr(reference_service, "_now_ms", lambda: 1700000012345678)
    suffixes = iter(["TAKEN1", "FRESH1"])
    monkeypatch.setattr(reference_service, "_random_suffix", lambda k: next(suffixes))
    db.add(_booking("acme", "ACME-12345678-TAKEN1"))
    db.commit()

    assert generate_booking_reference(db, "acme") == "ACME-12345678-FRESH1"


def test_same_reference_in_another_tenant_is_not_a_collision(db, monkeypatch):
    monkeypatch.setattr(reference_service, "_now_ms", lambda: 1700000012345678)
    monkeypatch.setattr(reference_service, "_random_suffix", lambda k: "SAME01")
    db.add(_booking("other", "ACME-12345678-SAME01"))
    db.commit()

    assert generate_booking_reference(db, "acme") == "ACME-12345678-SAME01"


def test_exhausted_retries_use_long_fallback(db, monkeypatch):
    monkeypatch.setattr(reference_service, "_now_ms", lambda: 1700000012345678)
    monkeypatch.setattr(reference_service, "_random_suffix", lambda k: "X" * k)
    db.add(_booking("acme", "ACME-12345678-XXXXXX"))
    db.commit()

    ref = generate_booking_reference(db, "acme")
    assert ref == "ACME-1700000012345678-XXXXXXXXXX"
