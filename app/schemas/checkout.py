from pydantic import BaseModel, ConfigDict, Field, AliasChoices
from typing import Dict, List, Optional


class CustomerIn(BaseModel):
    firstName: str = ""
    lastName: str = ""
    email: str = ""  # plain str to allow .local and other dev domains
    phone: Optional[str] = ""
    specialRequests: Optional[str] = None
    hotelPickupDetails: Optional[str] = None
    emergencyContact: Optional[str] = None


class BookingOptionIn(BaseModel):
    id: str = ""
    title: str = ""
    price: float = 0
    originalPrice: Optional[float] = None
    duration: Optional[str] = None
    badge: Optional[str] = None


class AddOnDetailIn(BaseModel):
    id: str = ""
    title: str = "Add-on"
    price: float = 0
    category: Optional[str] = None
    perGuest: bool = False


class CartItemIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default="", validation_alias=AliasChoices("id", "_id", "tourId"))
    title: str = ""
    price: float = 0
    discountPrice: Optional[float] = None
    selectedDate: Optional[str] = None
    selectedTime: Optional[str] = None
    quantity: int = Field(default=1, ge=0)  # adults
    childQuantity: int = Field(default=0, ge=0)
    infantQuantity: int = Field(default=0, ge=0)
    selectedAddOns: Dict[str, int] = Field(default_factory=dict)
    selectedAddOnDetails: Dict[str, AddOnDetailIn] = Field(default_factory=dict)
    selectedBookingOption: Optional[BookingOptionIn] = None


class PricingIn(BaseModel):
    subtotal: float = 0
    serviceFee: float = 0
    tax: float = 0
    discount: float = 0
    total: float = 0
    currency: str = "USD"


class PaymentDetailsIn(BaseModel):
    paymentIntentId: Optional[str] = None
    paymentMethodId: Optional[str] = None  # legacy create-and-confirm path


class CheckoutRequest(BaseModel):
    customer: Optional[CustomerIn] = None
    cart: List[CartItemIn] = Field(default_factory=list)
    pricing: PricingIn = Field(default_factory=PricingIn)
    paymentMethod: str = "card"
    paymentDetails: Optional[PaymentDetailsIn] = None
    userId: Optional[str] = None
    isGuest: bool = False
    discountCode: Optional[str] = None


class CustomerOut(BaseModel):
    name: str
    email: str


class CheckoutOut(BaseModel):
    success: bool = True
    message: str
    bookingId: str  # reference of the first booking
    bookingReferences: List[str]
    bookings: List[str]
    paymentId: str
    customer: CustomerOut
    duplicate: bool = False
    guestAccount: Optional[bool] = None


class PaymentIntentOut(BaseModel):
    success: bool = True
    clientSecret: Optional[str] = None
    paymentIntentId: str
    amount: float
    currency: str
