import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from app.core import booking_status
from app.models.booking import Booking
from app.models.tour import Tour
from app.models.user import User
from app.schemas.checkout import CartItemIn, CustomerIn
from app.services.payment_service import PaymentResult, is_offline
from app.services.pricing_service import PriceBreakdown, round_money
from app.services.reference_service import generate_booking_reference

logger = logging.getLogger(__name__)

DEFAULT_TIME = "10:00"
_DATE_PREFIX = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")


@dataclass
class WrittenBooking:
    booking: Booking
    tour: Tour
    item: CartItemIn
    price: PriceBreakdown


def parse_booking_date(value: str | datetime | None) -> datetime | None:
    """Date-only strings become local midnight; anything with a time goes through fromisoformat."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    value = str(value).strip()
    m = _DATE_PREFIX.match(value)
    try:
        if m and len(value) == 10:
            return datetime(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed.replace(tzinfo=None) if parsed.tzinfo else parsed


def date_only_string(value: str | None) -> str | None:
    m = _DATE_PREFIX.match(str(value or "").strip())
    return m.group(0) if m else None


def format_booking_date(value: str | datetime | None, short: bool = False) -> str:
    """Render the calendar day the customer picked, ignoring any stored timezone."""
    if isinstance(value, str) and date_only_string(value):
        value = date_only_string(value)
    d = parse_booking_date(value)
    if d is None:
        return ""
    if short:
        return f"{d:%a}, {d:%b} {d.day}, {d.year}"
    return f"{d:%A}, {d:%B} {d.day}, {d.year}"


def participants_label(guests: int) -> str:
    return f"{guests} participant{'' if guests == 1 else 's'}"


def guest_breakdown(adults: int, children: int, infants: int) -> str:
    parts = []
    if adults > 0:
        parts.append(f"{adults} adult{'s' if adults > 1 else ''}")
    if children > 0:
        parts.append(f"{children} child{'ren' if children > 1 else ''}")
    if infants > 0:
        parts.append(f"{infants} infant{'s' if infants > 1 else ''}")
    return ", ".join(parts)


def status_for_method(method: str) -> str:
    if is_offline(method):
        return booking_status.STATUS_LABELS[booking_status.PENDING]
    return booking_status.STATUS_LABELS[booking_status.CONFIRMED]


def get_tour(db: Session, tenant_id: str, tour_id: str) -> Tour | None:
    if not tour_id:
        return None
    return db.query(Tour).filter(Tour.id == tour_id, Tour.tenant_id == tenant_id).first()


def find_bookings_for_payment(db: Session, tenant_id: str, payment_id: str) -> list[Booking]:
    return (
        db.query(Booking)
        .filter(Booking.tenant_id == tenant_id, Booking.payment_id == payment_id)
        .order_by(Booking.line_index.asc())
        .all()
    )


def create_booking(
    db: Session,
    *,
    tenant_id: str,
    tenant_name: str | None,
    user: User,
    tour: Tour,
    item: CartItemIn,
    line_index: int,
    price: PriceBreakdown,
    payment: PaymentResult,
    method: str,
    customer: CustomerIn,
    discount_code: str | None = None,
    discount_share: float = 0,
) -> Booking:
    booking_date = parse_booking_date(item.selectedDate) or datetime.now()
    adults, children, infants = item.quantity, item.childQuantity, item.infantQuantity

    add_on_details = {
        k: v.model_dump() for k, v in (item.selectedAddOnDetails or {}).items()
        if int((item.selectedAddOns or {}).get(k) or 0) > 0
    }
    add_ons = {k: int(q) for k, q in (item.selectedAddOns or {}).items() if int(q or 0) > 0}

    booking = Booking(
        id=str(uuid.uuid4()),
        tenant_id=tenant_id,
        booking_reference=generate_booking_reference(db, tenant_id, tenant_name),
        tour_id=tour.id,
        user_id=user.id,
        source="online",
        booking_date=booking_date,
        date_string=date_only_string(item.selectedDate),
        time=item.selectedTime or DEFAULT_TIME,
        guests=adults + children + infants,
        adult_guests=adults,
        child_guests=children,
        infant_guests=infants,
        total_price=round_money(price.total),
        currency=payment.currency,
        discount_code=discount_code,
        discount_amount=round_money(discount_share) if discount_share > 0 else None,
        status=status_for_method(method),
        payment_method=method,
        payment_id=payment.transaction_id,
        line_index=line_index,
        special_requests=customer.specialRequests,
        emergency_contact=customer.emergencyContact,
        hotel_pickup_details=customer.hotelPickupDetails,
        customer_phone=customer.phone or None,
        selected_booking_option=item.selectedBookingOption.model_dump() if item.selectedBookingOption else None,
        selected_add_ons=add_ons,
        selected_add_on_details=add_on_details,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    logger.info("booking %s created tenant=%s tour=%s status=%s total=%.2f",
                booking.booking_reference, tenant_id, tour.id, booking.status, booking.total_price)
    return booking
