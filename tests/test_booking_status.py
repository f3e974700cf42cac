import pytest

from app.core import booking_status


@pytest.mark.parametrize("raw,label", [
    ("pending", "Pending"),
    ("Confirmed", "Confirmed"),
    (" CANCELLED ", "Cancelled"),
    ("partial-refunded", "Partial Refunded"),
    ("Partial Refunded", "Partial Refunded"),
    ("partial_refunded", "Partial Refunded"),
])
def test_labels(raw, label):
    assert booking_status.to_status_label(raw) == label


@pytest.mark.parametrize("raw", ["", None, "shipped"])
def test_unknown_values(raw):
    assert booking_status.to_status_code(raw) is None
    assert booking_status.to_status_label(raw) is None


def test_is_status_accepts_code_or_label():
    assert booking_status.is_status("Pending", booking_status.PENDING)
    assert booking_status.is_status("pending", booking_status.PENDING)
    assert not booking_status.is_status("Confirmed", booking_status.PENDING)
