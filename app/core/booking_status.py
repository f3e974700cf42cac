"""Booking status codes and the Title Case labels stored on Booking.status.

Codes (lowercase) are what filters and admin APIs accept; labels are what is
persisted. Older rows may still carry a code, so readers accept both.
"""
import re

PENDING = "pending"
CONFIRMED = "confirmed"
COMPLETED = "completed"
CANCELLED = "cancelled"
REFUNDED = "refunded"
PARTIAL_REFUNDED = "partial_refunded"

STATUS_LABELS = {
    PENDING: "Pending",
    CONFIRMED: "Confirmed",
    COMPLETED: "Completed",
    CANCELLED: "Cancelled",
    REFUNDED: "Refunded",
    PARTIAL_REFUNDED: "Partial Refunded",
}


def to_status_code(value: str | None) -> str | None:
    raw = str(value or "").strip()
    if not raw:
        return None
    normalized = re.sub(r"[\s\-]+", "_", raw.lower())
    return normalized if normalized in STATUS_LABELS else None


def to_status_label(value: str | None) -> str | None:
    code = to_status_code(value)
    return STATUS_LABELS[code] if code else None


def is_status(value: str | None, code: str) -> bool:
    return to_status_code(value) == code
