"""Booking model definition."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, CheckConstraint, Date, DateTime, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import TenantBase, utcnow
from ..core.identifiers import new_object_id
from .states import ApprovalStatus, BookingState, BookingStatus


class Booking(TenantBase):
    """A customer's travel package booking, owned by one agent."""

    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_object_id)

    # Customer
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    contact_number: Mapped[str] = mapped_column(String(64), nullable=False)
    passengers: Mapped[int] = mapped_column(nullable=False)
    adults: Mapped[int] = mapped_column(nullable=False)
    children: Mapped[int] = mapped_column(nullable=False, default=0)
    customer_group: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    # Package
    package: Mapped[str] = mapped_column(String(255), nullable=False)
    package_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    additional_services: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    payment_method: Mapped[str] = mapped_column(String(32), nullable=False, default="credit_card")

    # Dates
    booking_date: Mapped[date] = mapped_column(Date, nullable=False)
    departure_date: Mapped[date] = mapped_column(Date, nullable=False)
    return_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Optional sub-records
    flight: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    hotel: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    visa: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    transport: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    payment: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    # Combined status + approval status
    state: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=BookingState.PENDING.value,
        index=True
    )

    # Weak reference: the agent may be deleted later
    agent_id: Mapped[str] = mapped_column(String(24), nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("passengers > 0", name="ck_booking_passengers_positive"),
        CheckConstraint("passengers = adults + children", name="ck_booking_passenger_counts"),
        CheckConstraint("total_amount >= 0", name="ck_booking_total_non_negative"),
        CheckConstraint("departure_date < return_date", name="ck_booking_date_range"),
        CheckConstraint("state IN ('pending', 'confirmed', 'cancelled')", name="ck_booking_state"),
    )

    @property
    def owner_id(self) -> str:
        return self.agent_id

    @property
    def workflow_state(self) -> BookingState:
        return BookingState(self.state)

    @property
    def status(self) -> BookingStatus:
        return self.workflow_state.status

    @property
    def approval_status(self) -> ApprovalStatus:
        return self.workflow_state.approval_status

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, customer='{self.customer_name}', "
            f"agent_id={self.agent_id}, state={self.state})>"
        )
