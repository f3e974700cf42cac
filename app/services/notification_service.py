"""Checkout notifications.

Each message is rendered, stored in the email outbox and handed to the
worker inside its own failure boundary. A failure is logged and dropped
here; it never reaches the caller and never touches the bookings.
"""
import logging
from typing import Callable

from sqlalchemy.orm import Session

from app.models.booking import Booking
from app.models.tour import Tour
from app.models.user import User
from app.schemas.checkout import CustomerIn
from app.services import email_templates as tpl
from app.services.booking_service import (
    WrittenBooking,
    format_booking_date,
    guest_breakdown,
    participants_label,
)
from app.services.email_service import EmailSubmitter, queue_email
from app.services.payment_service import BANK, PAY_LATER, PaymentResult
from app.services.pricing_service import selected_add_ons
from app.services.tenant_service import TenantBranding

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    def __init__(self, db: Session, branding: TenantBranding, submit: EmailSubmitter | None = None):
        self.db = db
        self.branding = branding
        self.submit = submit

    def _attempt(self, template: str, to_email: str, render: Callable[[], tuple[str, str]], booking_ref: str) -> str | None:
        if not to_email:
            logger.warning("no recipient for %s (booking %s); skipped", template, booking_ref)
            return None
        try:
            subject, body = render()
            text, html = tpl.brand(subject, body, self.branding)
            return queue_email(
                self.db, to_email, subject, text,
                html_body=html,
                from_name=self.branding.from_name,
                submit=self.submit,
                tenant_id=self.branding.tenant_id,
                template=template,
                related_booking_ref=booking_ref,
            )
        except Exception:
            logger.exception("failed to dispatch %s for booking %s", template, booking_ref)
            self.db.rollback()
            return None

    def build_checkout_email(self, customer: CustomerIn, method: str, payment: PaymentResult,
                             written: list[WrittenBooking], charge_total: float) -> tpl.BookingEmail:
        b = self.branding
        main = written[0]
        item = main.item
        unit = main.price.unit_price

        breakdown = []
        if item.quantity > 0:
            breakdown.append(f"{item.quantity} x Adult{'s' if item.quantity > 1 else ''} ({b.money(unit)})")
        if item.childQuantity > 0:
            breakdown.append(f"{item.childQuantity} x Child{'ren' if item.childQuantity > 1 else ''} ({b.money(unit / 2)})")
        if item.infantQuantity > 0:
            breakdown.append(f"{item.infantQuantity} x Infant{'s' if item.infantQuantity > 1 else ''} (Free)")

        tours = [
            tpl.TourLine(
                title=w.tour.title,
                date=format_booking_date(w.item.selectedDate or w.booking.booking_date, short=True),
                time=w.booking.time,
                adults=w.booking.adult_guests,
                children=w.booking.child_guests,
                infants=w.booking.infant_guests,
                price=b.money(w.price.subtotal),
                booking_reference=w.booking.booking_reference,
                booking_option=w.item.selectedBookingOption.title if w.item.selectedBookingOption else None,
                add_ons=[a.title for a in selected_add_ons(w.item)],
            )
            for w in written
        ]

        return tpl.BookingEmail(
            customer_name=f"{customer.firstName} {customer.lastName}".strip(),
            customer_email=customer.email,
            customer_phone=customer.phone or None,
            tour_title=main.tour.title if len(written) == 1 else f"{len(written)} Tours",
            booking_reference=main.booking.booking_reference,
            # the submitted day, not the stored datetime, so the email matches what was picked
            booking_date=format_booking_date(item.selectedDate or main.booking.booking_date),
            booking_time=main.booking.time,
            participants=participants_label(main.booking.guests),
            participant_breakdown=", ".join(breakdown),
            booking_option=item.selectedBookingOption.title if item.selectedBookingOption else None,
            total_price=b.money(charge_total),
            currency=payment.currency,
            payment_method=method,
            transaction_id=payment.transaction_id,
            special_requests=customer.specialRequests,
            hotel_pickup_details=customer.hotelPickupDetails,
            meeting_point=main.tour.meeting_point,
            tours=tours,
        )

    def dispatch_checkout(self, customer: CustomerIn, method: str, payment: PaymentResult,
                          written: list[WrittenBooking], charge_total: float) -> list[str]:
        """Queue payment instructions (offline methods only), confirmation and admin alert."""
        try:
            data = self.build_checkout_email(customer, method, payment, written, charge_total)
        except Exception:
            logger.exception("could not build checkout notifications for payment %s", payment.transaction_id)
            return []

        b = self.branding
        ref = data.booking_reference
        queued = []

        # card payments get no separate payment email; the confirmation covers it
        if method == BANK:
            queued.append(self._attempt(tpl.BANK_TRANSFER_INSTRUCTIONS, data.customer_email,
                                        lambda: tpl.render_bank_transfer_instructions(data, b), ref))
        elif method == PAY_LATER:
            queued.append(self._attempt(tpl.PAY_LATER_INSTRUCTIONS, data.customer_email,
                                        lambda: tpl.render_pay_later_instructions(data, b), ref))

        queued.append(self._attempt(tpl.BOOKING_CONFIRMATION, data.customer_email,
                                    lambda: tpl.render_booking_confirmation(data, b), ref))
        queued.append(self._attempt(tpl.ADMIN_BOOKING_ALERT, b.admin_email,
                                    lambda: tpl.render_admin_booking_alert(data, b), ref))
        return [eid for eid in queued if eid]

    def dispatch_cancellation(self, data: tpl.BookingEmail, refund_amount: float, reason: str) -> str | None:
        b = self.branding
        refund = b.money(refund_amount) if refund_amount > 0 else None
        return self._attempt(tpl.BOOKING_CANCELLATION, data.customer_email,
                             lambda: tpl.render_cancellation(data, b, refund, reason), data.booking_reference)

    def email_for_bookings(self, bookings: list[Booking]) -> tpl.BookingEmail | None:
        """Rebuild the email data from stored rows, when the checkout request is not at hand."""
        b = self.branding
        main = bookings[0]
        owner = self.db.get(User, main.user_id)
        tours = {t.id: t for t in self.db.query(Tour).filter(Tour.id.in_([row.tour_id for row in bookings]))}
        if owner is None or main.tour_id not in tours:
            return None

        def option_title(row: Booking) -> str | None:
            return (row.selected_booking_option or {}).get("title") or None

        lines = [
            tpl.TourLine(
                title=tours[row.tour_id].title if row.tour_id in tours else "Tour",
                date=format_booking_date(row.date_string or row.booking_date, short=True),
                time=row.time,
                adults=row.adult_guests,
                children=row.child_guests,
                infants=row.infant_guests,
                price=b.money(row.total_price),
                booking_reference=row.booking_reference,
                booking_option=option_title(row),
                add_ons=[d.get("title", "Add-on") for d in (row.selected_add_on_details or {}).values()],
            )
            for row in bookings
        ]
        tour = tours[main.tour_id]
        return tpl.BookingEmail(
            customer_name=owner.full_name or "Valued Customer",
            customer_email=owner.email,
            customer_phone=main.customer_phone,
            tour_title=tour.title if len(bookings) == 1 else f"{len(bookings)} Tours",
            booking_reference=main.booking_reference,
            booking_date=format_booking_date(main.date_string or main.booking_date),
            booking_time=main.time,
            participants=participants_label(main.guests),
            participant_breakdown=guest_breakdown(main.adult_guests, main.child_guests, main.infant_guests),
            booking_option=option_title(main),
            total_price=b.money(sum(row.total_price or 0 for row in bookings)),
            currency=main.currency,
            payment_method=main.payment_method,
            transaction_id=main.payment_id or "",
            special_requests=main.special_requests,
            hotel_pickup_details=main.hotel_pickup_details,
            meeting_point=tour.meeting_point,
            tours=lines,
        )

    def dispatch_confirmation(self, bookings: list[Booking]) -> str | None:
        """Queue the customer confirmation for bookings whose payment settled later."""
        try:
            data = self.email_for_bookings(bookings)
        except Exception:
            logger.exception("could not build confirmation for payment %s", bookings[0].payment_id)
            return None
        if data is None:
            logger.warning("booking %s has no tour or customer; confirmation skipped", bookings[0].booking_reference)
            return None
        b = self.branding
        return self._attempt(tpl.BOOKING_CONFIRMATION, data.customer_email,
                             lambda: tpl.render_booking_confirmation(data, b), data.booking_reference)
