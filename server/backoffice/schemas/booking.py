"""Booking-related Pydantic schemas."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field, field_validator, model_validator

from ..models.states import ApprovalStatus, BookingStatus
from .common import ApiModel, Email, ObjectId


class PaymentMethod(str, Enum):
    """Accepted payment methods."""
    CREDIT_CARD = "credit_card"
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"
    INSTALLMENTS = "installments"


class FlightClass(str, Enum):
    ECONOMY = "economy"
    BUSINESS = "business"
    FIRST = "first"


class VisaType(str, Enum):
    UMRAH = "umrah"
    HAJJ = "hajj"
    TOURIST = "tourist"


class TransportType(str, Enum):
    BUS = "bus"
    CAR = "car"
    VAN = "van"
    TAXI = "taxi"
    PRIVATE = "private"


class FlightDetails(ApiModel):
    """Flight leg of a package."""

    departure_city: Optional[str] = Field(None, max_length=128)
    arrival_city: Optional[str] = Field(None, max_length=128)
    flight_class: FlightClass = Field(FlightClass.ECONOMY, description="Cabin class")


class HotelDetails(ApiModel):
    """Hotel stay of a package."""

    name: Optional[str] = Field(None, max_length=255)
    room_type: Optional[str] = Field(None, max_length=64)
    check_in: Optional[date] = None
    check_out: Optional[date] = None

    @model_validator(mode="after")
    def check_stay(self) -> "HotelDetails":
        if self.check_in and self.check_out and self.check_in >= self.check_out:
            raise ValueError("checkIn must be before checkOut")
        return self


class VisaDetails(ApiModel):
    """Visa arrangement of a package."""

    visa_type: VisaType = Field(VisaType.TOURIST, description="Visa type")
    passport_number: Optional[str] = Field(None, max_length=32)
    nationality: Optional[str] = Field(None, max_length=64)


class TransportDetails(ApiModel):
    """Ground transport of a package."""

    transport_type: TransportType = Field(TransportType.BUS, description="Vehicle type")
    pickup_location: Optional[str] = Field(None, max_length=255)


class PaymentInput(ApiModel):
    """Payment details as submitted. Only a sanitized record is ever stored."""

    method: PaymentMethod = PaymentMethod.CREDIT_CARD
    card_number: Optional[str] = Field(None, max_length=32)
    cardholder_name: Optional[str] = Field(None, max_length=255)
    expiry_date: Optional[str] = Field(None, max_length=7)
    cvv: Optional[str] = Field(None, max_length=4)

    def sanitized(self) -> Dict[str, Any]:
        """Drop the card number and CVV, keeping the last four digits."""
        digits = "".join(ch for ch in (self.card_number or "") if ch.isdigit())
        return {
            "method": self.method.value,
            "card_last4": digits[-4:] or None,
            "cardholder_name": self.cardholder_name,
            "expiry_date": self.expiry_date,
        }


class PaymentRecord(ApiModel):
    """Stored payment record."""

    method: PaymentMethod
    card_last4: Optional[str] = None
    cardholder_name: Optional[str] = None
    expiry_date: Optional[str] = None


class CreateBookingRequest(ApiModel):
    """Request schema for creating a booking."""

    customer_name: str = Field(..., min_length=2, max_length=255, description="Lead passenger name")
    customer_email: Email = Field(..., description="Customer email; also groups the customer's bookings")
    contact_number: str = Field(..., min_length=6, max_length=64, description="Customer phone number")
    passengers: int = Field(..., ge=1, description="Total travellers")
    adults: int = Field(..., ge=0)
    children: int = Field(0, ge=0)
    package: str = Field(..., min_length=1, max_length=255, description="Package descriptor")
    package_price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    total_amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    additional_services: List[str] = Field(default_factory=list)
    payment_method: PaymentMethod = PaymentMethod.CREDIT_CARD
    booking_date: date = Field(default_factory=date.today)
    departure_date: date
    return_date: date
    flight: Optional[FlightDetails] = None
    hotel: Optional[HotelDetails] = None
    visa: Optional[VisaDetails] = None
    transport: Optional[TransportDetails] = None
    payment: Optional[PaymentInput] = None

    @field_validator("customer_name", "contact_number", "package")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @model_validator(mode="after")
    def check_consistency(self) -> "CreateBookingRequest":
        if self.departure_date >= self.return_date:
            raise ValueError("departureDate must be before returnDate")
        if self.passengers != self.adults + self.children:
            raise ValueError("passengers must equal adults + children")
        return self


class ListBookingsRequest(ApiModel):
    """Filters for listing bookings."""

    status: Optional[BookingStatus] = None
    agent_id: Optional[ObjectId] = None


class UpdateBookingRequest(ApiModel):
    """
    Request schema for updating a booking.

    Status and approval changes take effect only for admins; agents may edit
    the customer name and email of their own bookings.
    """

    id: ObjectId
    status: Optional[BookingStatus] = None
    approval_status: Optional[ApprovalStatus] = None
    customer_name: Optional[str] = Field(None, min_length=2, max_length=255)
    customer_email: Optional[Email] = None

    @field_validator("customer_name")
    @classmethod
    def strip_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @model_validator(mode="after")
    def check_not_empty(self) -> "UpdateBookingRequest":
        if all(
            value is None
            for value in (self.status, self.approval_status, self.customer_name, self.customer_email)
        ):
            raise ValueError("at least one field must be provided")
        return self


class Booking(ApiModel):
    """Booking response schema."""

    id: str
    customer_name: str
    customer_email: str
    contact_number: str
    customer_group: str
    passengers: int
    adults: int
    children: int
    package: str
    package_price: Decimal
    total_amount: Decimal
    additional_services: List[str]
    payment_method: PaymentMethod
    booking_date: date
    departure_date: date
    return_date: date
    flight: Optional[FlightDetails] = None
    hotel: Optional[HotelDetails] = None
    visa: Optional[VisaDetails] = None
    transport: Optional[TransportDetails] = None
    payment: Optional[PaymentRecord] = None
    status: BookingStatus
    approval_status: ApprovalStatus
    agent_id: str
    created_at: datetime
    updated_at: datetime


class BookingSummary(ApiModel):
    """Compact booking view used in performance reports."""

    id: str
    customer_name: str
    package: str
    total_amount: Decimal
    status: BookingStatus
    created_at: datetime


class BookingSnapshot(Booking):
    """Immutable view of a booking handed to document renderers."""

    model_config = ConfigDict(frozen=True)

    agent_name: Optional[str] = Field(None, description="Owning agent, if still present")
    generated_at: datetime
