from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_email_submitter, get_tenant_id
from app.db.session import get_db
from app.models.booking import Booking
from app.models.tour import Tour
from app.models.user import User
from app.schemas.booking import (
    BookingVerifyOut,
    CancelOut,
    CancelRequest,
    CustomerSummaryOut,
    TourSummaryOut,
)
from app.services.cancellation_service import CancellationError, cancel_booking
from app.services.email_service import EmailSubmitter

router = APIRouter(tags=["bookings"])


@router.get("/booking/verify/{reference}", response_model=BookingVerifyOut)
def verify_booking(reference: str, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    """Public lookup used by the QR code on confirmation emails."""
    b = db.query(Booking).filter(Booking.tenant_id == tenant_id, Booking.booking_reference == reference).first()
    if not b:
        raise HTTPException(status_code=404, detail="Booking not found")
    tour = db.get(Tour, b.tour_id)
    user = db.get(User, b.user_id)
    return BookingVerifyOut(
        bookingReference=b.booking_reference,
        tour=TourSummaryOut(
            title=tour.title if tour else "",
            image=tour.image if tour else "",
            duration=tour.duration if tour else "",
        ),
        user=CustomerSummaryOut(
            firstName=user.first_name if user else "",
            lastName=user.last_name if user else "",
            email=user.email if user else "",
        ),
        date=b.booking_date.isoformat(),
        dateString=b.date_string,
        time=b.time,
        guests=b.guests,
        adultGuests=b.adult_guests,
        childGuests=b.child_guests,
        infantGuests=b.infant_guests,
        totalPrice=b.total_price,
        currency=b.currency,
        status=b.status,
        selectedBookingOption=b.selected_booking_option,
        specialRequests=b.special_requests,
        createdAt=b.created_at.isoformat() if b.created_at else None,
    )


@router.post("/bookings/{booking_id}/cancel", response_model=CancelOut)
def cancel_my_booking(
    booking_id: str,
    body: CancelRequest | None = None,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    submit_email: EmailSubmitter = Depends(get_email_submitter),
):
    b = db.get(Booking, booking_id)
    if not b:
        raise HTTPException(status_code=404, detail="Booking not found")
    if b.user_id != me.id:
        raise HTTPException(status_code=403, detail="You can only cancel your own bookings")
    try:
        result = cancel_booking(db, b, me, reason=(body.reason if body else ""), submit=submit_email)
    except CancellationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return CancelOut(
        message="Booking cancelled successfully",
        refundAmount=result.refund_amount,
        refundPercentage=result.refund_percentage,
    )
