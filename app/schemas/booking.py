from pydantic import BaseModel
from typing import Dict, List, Optional


class TourSummaryOut(BaseModel):
    title: str
    image: str = ""
    duration: str = ""


class CustomerSummaryOut(BaseModel):
    firstName: str = ""
    lastName: str = ""
    email: str


class BookingVerifyOut(BaseModel):
    bookingReference: str
    tour: TourSummaryOut
    user: CustomerSummaryOut
    date: str
    dateString: Optional[str] = None
    time: str
    guests: int
    adultGuests: int
    childGuests: int
    infantGuests: int
    totalPrice: float
    currency: str = "USD"
    status: str
    selectedBookingOption: Optional[Dict] = None
    specialRequests: Optional[str] = None
    createdAt: Optional[str] = None


class CancelRequest(BaseModel):
    reason: str = ""


class CancelOut(BaseModel):
    success: bool = True
    message: str
    refundAmount: float
    refundPercentage: int


class StatusUpdateRequest(BaseModel):
    status: str


class BulkDeleteRequest(BaseModel):
    ids: List[str]
