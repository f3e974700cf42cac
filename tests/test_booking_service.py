from datetime import datetime

from app.services.booking_service import (
    format_booking_date,
    guest_breakdown,
    parse_booking_date,
    participants_label,
    status_for_method,
)


def test_date_only_is_local_midnight():
    assert parse_booking_date("2024-11-27") == datetime(2024, 11, 27)


def test_timestamp_keeps_wall_clock():
    assert parse_booking_date("2024-11-27T22:30:00Z") == datetime(2024, 11, 27, 22, 30)


def test_invalid_date():
    assert parse_booking_date("next tuesday") is None
    assert parse_booking_date("") is None


def test_format_uses_submitted_calendar_day():
    assert format_booking_date("2024-11-27") == "Wednesday, November 27, 2024"
    # a late-evening UTC timestamp still shows the submitted day
    assert format_booking_date("2024-11-27T23:30:00.000Z", short=True) == "Wed, Nov 27, 2024"


def test_labels():
    assert participants_label(1) == "1 participant"
    assert participants_label(3) == "3 participants"
    assert guest_breakdown(2, 1, 0) == "2 adults, 1 child"
    assert guest_breakdown(1, 2, 1) == "1 adult, 2 children, 1 infant"


def test_status_for_method():
    assert status_for_method("card") == "Confirmed"
    assert status_for_method("bank") == "Pending"
    assert status_for_method("pay_later") == "Pending"
