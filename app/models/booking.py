from sqlalchemy import String, Integer, Float, DateTime, Text, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from app.db.session import Base

class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        UniqueConstraint("tenant_id", "booking_reference", name="uq_bookings_tenant_reference"),
        # one row per cart line per payment; backs the checkout duplicate check
        UniqueConstraint("tenant_id", "payment_id", "line_index", name="uq_bookings_tenant_payment_line"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(64), index=True)
    booking_reference: Mapped[str] = mapped_column(String(40), index=True)

    tour_id: Mapped[str] = mapped_column(String(36), index=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    source: Mapped[str] = mapped_column(String(12), default="online")  # online|manual

    booking_date: Mapped[datetime] = mapped_column(DateTime)  # activity day, local wall-clock
    date_string: Mapped[str | None] = mapped_column(String(10), nullable=True)  # YYYY-MM-DD as submitted
    time: Mapped[str] = mapped_column(String(10), default="10:00")

    guests: Mapped[int] = mapped_column(Integer, default=1)
    adult_guests: Mapped[int] = mapped_column(Integer, default=1)
    child_guests: Mapped[int] = mapped_column(Integer, default=0)
    infant_guests: Mapped[int] = mapped_column(Integer, default=0)

    total_price: Mapped[float] = mapped_column(Float, default=0)
    currency: Mapped[str] = mapped_column(String(3), default="USD")
    discount_code: Mapped[str | None] = mapped_column(String(40), nullable=True)
    discount_amount: Mapped[float | None] = mapped_column(Float, nullable=True)

    status: Mapped[str] = mapped_column(String(30), default="Confirmed", index=True)  # see app.core.booking_status
    payment_method: Mapped[str] = mapped_column(String(20), default="card")  # card|bank|pay_later
    payment_id: Mapped[str | None] = mapped_column(String(120), nullable=True, index=True)
    line_index: Mapped[int] = mapped_column(Integer, default=0)

    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)
    emergency_contact: Mapped[str | None] = mapped_column(String(200), nullable=True)
    hotel_pickup_details: Mapped[str | None] = mapped_column(String(300), nullable=True)
    customer_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # snapshots taken at checkout so later catalog edits do not alter history
    selected_booking_option: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    selected_add_ons: Mapped[dict] = mapped_column(JSON, default=dict)
    selected_add_on_details: Mapped[dict] = mapped_column(JSON, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                                                 onupdate=lambda: datetime.now(timezone.utc))
