"""Bodies for the booking emails.

Each render_* returns (subject, body) as plain text; `brand` adds the tenant
header and the HTML alternative before the message is queued.
"""
from dataclasses import dataclass, field
from html import escape

from app.services.tenant_service import TenantBranding

BANK_TRANSFER_INSTRUCTIONS = "bank-transfer-instructions"
PAY_LATER_INSTRUCTIONS = "pay-later-instructions"
BOOKING_CONFIRMATION = "booking-confirmation"
ADMIN_BOOKING_ALERT = "admin-booking-alert"
BOOKING_CANCELLATION = "booking-cancellation"


@dataclass
class TourLine:
    title: str
    date: str
    time: str
    adults: int
    children: int
    infants: int
    price: str
    booking_reference: str = ""
    booking_option: str | None = None
    add_ons: list[str] = field(default_factory=list)


@dataclass
class BookingEmail:
    customer_name: str
    customer_email: str
    tour_title: str
    booking_reference: str
    booking_date: str
    booking_time: str
    participants: str
    total_price: str
    payment_method: str = ""
    transaction_id: str = ""
    currency: str = "USD"
    participant_breakdown: str = ""
    booking_option: str | None = None
    customer_phone: str | None = None
    special_requests: str | None = None
    hotel_pickup_details: str | None = None
    meeting_point: str = ""
    tours: list[TourLine] = field(default_factory=list)


def _signature(b: TenantBranding) -> str:
    lines = ["", "--", b.company_name, f"Email: {b.contact_email}", f"Phone: {b.contact_phone}"]
    if b.website:
        lines.append(b.website)
    return "\n".join(lines)


def _optional(label: str, value: str | None) -> str:
    return f"{label}: {value}\n" if value else ""


def render_bank_transfer_instructions(data: BookingEmail, b: TenantBranding) -> tuple[str, str]:
    subject = f"Bank Transfer Instructions - {data.tour_title}"
    body = (
        f"Dear {data.customer_name},\n\n"
        f"Thank you for booking {data.tour_title} with {b.company_name}.\n"
        f"Your booking {data.booking_reference} is reserved and will be confirmed once we receive your transfer.\n\n"
        f"Date: {data.booking_date}\n"
        f"Time: {data.booking_time}\n"
        f"Participants: {data.participants}\n"
        f"Amount due: {data.total_price} ({data.currency})\n\n"
        f"Bank: {b.bank_name}\n"
        f"Account name: {b.bank_account_name}\n"
        f"Account number: {b.bank_account_number}\n"
        f"IBAN: {b.bank_iban}\n"
        f"SWIFT: {b.bank_swift}\n"
        f"Payment reference: {data.booking_reference}\n\n"
        f"{_optional('Special requests', data.special_requests)}"
        f"{_optional('Hotel pickup', data.hotel_pickup_details)}"
        f"Please include the payment reference with your transfer.\n"
        f"{_signature(b)}\n"
    )
    return subject, body


def render_pay_later_instructions(data: BookingEmail, b: TenantBranding) -> tuple[str, str]:
    subject = f"Your Reservation - Pay on the Day - {data.tour_title}"
    body = (
        f"Dear {data.customer_name},\n\n"
        f"Your booking {data.booking_reference} for {data.tour_title} is reserved.\n"
        f"No payment has been taken. Please pay {data.total_price} ({data.currency}) on the day of the tour.\n\n"
        f"Date: {data.booking_date}\n"
        f"Time: {data.booking_time}\n"
        f"Participants: {data.participants}\n\n"
        f"Questions? Contact us at {b.support_email}.\n"
        f"{_signature(b)}\n"
    )
    return subject, body


def render_booking_confirmation(data: BookingEmail, b: TenantBranding) -> tuple[str, str]:
    subject = f"Booking Confirmed - {data.tour_title}"
    body = (
        f"Dear {data.customer_name},\n\n"
        f"Your booking with {b.company_name} is confirmed.\n\n"
        f"Booking reference: {data.booking_reference}\n"
        f"Tour: {data.tour_title}\n"
        f"{_optional('Option', data.booking_option)}"
        f"Date: {data.booking_date}\n"
        f"Time: {data.booking_time}\n"
        f"Participants: {data.participants}\n"
        f"{_optional('Breakdown', data.participant_breakdown)}"
        f"Total: {data.total_price}\n"
        f"Meeting point: {data.meeting_point or 'Meeting point will be confirmed 24 hours before tour'}\n"
        f"{_optional('Special requests', data.special_requests)}"
        f"{_optional('Hotel pickup', data.hotel_pickup_details)}"
        f"\nNeed help? Call us on {b.contact_phone}.\n"
        f"{_signature(b)}\n"
    )
    return subject, body


def render_admin_booking_alert(data: BookingEmail, b: TenantBranding) -> tuple[str, str]:
    subject = f"New Booking Alert - {data.tour_title}"
    lines = [
        f"New booking {data.booking_reference} on {b.company_name}",
        "",
        f"Customer: {data.customer_name} <{data.customer_email}>",
    ]
    if data.customer_phone:
        lines.append(f"Phone: {data.customer_phone}")
    lines += [
        f"Payment: {data.payment_method} ({data.transaction_id})",
        f"Total: {data.total_price}",
        "",
    ]
    for t in data.tours:
        lines.append(f"- {t.title} [{t.booking_reference}]")
        lines.append(f"  {t.date} {t.time} | adults {t.adults}, children {t.children}, infants {t.infants}")
        if t.booking_option:
            lines.append(f"  Option: {t.booking_option}")
        if t.add_ons:
            lines.append(f"  Add-ons: {', '.join(t.add_ons)}")
        lines.append(f"  Subtotal: {t.price}")
    if data.special_requests:
        lines += ["", f"Special requests: {data.special_requests}"]
    if data.hotel_pickup_details:
        lines.append(f"Hotel pickup: {data.hotel_pickup_details}")
    if b.website:
        lines += ["", f"{b.website}/admin/bookings"]
    return subject, "\n".join(lines) + "\n"


def render_cancellation(data: BookingEmail, b: TenantBranding, refund_amount: str | None, reason: str) -> tuple[str, str]:
    subject = f"Booking Cancelled - {data.tour_title}"
    refund = (
        f"A refund of {refund_amount} will be processed within 5 business days.\n"
        if refund_amount else
        "This cancellation is not eligible for a refund under our cancellation policy.\n"
    )
    body = (
        f"Dear {data.customer_name},\n\n"
        f"Your booking {data.booking_reference} for {data.tour_title} on {data.booking_date} has been cancelled.\n"
        f"Reason: {reason}\n\n"
        f"{refund}"
        f"{_signature(b)}\n"
    )
    return subject, body


def _text_header(b: TenantBranding) -> str:
    lines = [b.company_name, "=" * len(b.company_name)]
    if b.logo:
        lines.insert(1, b.logo)
    return "\n".join(lines) + "\n\n"


def render_html(subject: str, body: str, b: TenantBranding) -> str:
    """Lay a plain-text body out in the tenant's colors, under its logo."""
    logo = f'<img src="{escape(b.logo)}" alt="{escape(b.company_name)}" style="max-height:48px"><br>' if b.logo else ""
    paragraphs = "".join(
        '<p style="margin:0 0 12px">' + "<br>".join(escape(line) for line in block.splitlines()) + "</p>"
        for block in body.split("\n\n") if block.strip()
    )
    return (
        '<!DOCTYPE html><html><body style="margin:0;font-family:Arial,sans-serif;color:#222">'
        f'<div style="background:{escape(b.primary_color)};color:#fff;padding:20px">{logo}'
        f'<strong style="font-size:20px">{escape(b.company_name)}</strong></div>'
        f'<div style="padding:20px;border-left:4px solid {escape(b.accent_color)}">'
        f'<h2 style="color:{escape(b.secondary_color)};font-size:18px;margin-top:0">{escape(subject)}</h2>'
        f"{paragraphs}</div>"
        f'<div style="background:{escape(b.secondary_color)};color:#fff;padding:12px;font-size:12px">'
        f"{escape(b.company_name)} | {escape(b.contact_email)} | {escape(b.contact_phone)}</div>"
        "</body></html>"
    )


def brand(subject: str, body: str, b: TenantBranding) -> tuple[str, str]:
    """Return (text, html) for a rendered message."""
    return _text_header(b) + body, render_html(subject, body, b)
