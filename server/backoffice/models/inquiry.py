"""Inquiry and inquiry response models."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import TenantBase, utcnow
from ..core.identifiers import new_object_id
from .states import ApprovalStatus, InquiryPriority, InquiryState, InquiryStatus


class Inquiry(TenantBase):
    """A customer question, optionally assigned to an agent."""

    __tablename__ = "inquiries"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_object_id)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default=InquiryPriority.MEDIUM.value)

    state: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=InquiryState.PENDING.value,
        index=True
    )

    # Weak references by identifier
    assigned_agent_id: Mapped[str | None] = mapped_column(String(24), nullable=True, index=True)
    related_booking_id: Mapped[str | None] = mapped_column(String(24), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("priority IN ('low', 'medium', 'high')", name="ck_inquiry_priority"),
        CheckConstraint(
            "state IN ('pending', 'responded', 'closed', 'approved', 'approved_closed', 'rejected')",
            name="ck_inquiry_state"
        ),
    )

    responses: Mapped[list["InquiryResponse"]] = relationship(
        "InquiryResponse",
        back_populates="inquiry",
        cascade="all, delete-orphan",
        order_by="InquiryResponse.sequence",
        lazy="selectin",
    )

    @property
    def owner_id(self) -> str | None:
        return self.assigned_agent_id

    @property
    def workflow_state(self) -> InquiryState:
        return InquiryState(self.state)

    @property
    def status(self) -> InquiryStatus:
        return self.workflow_state.status

    @property
    def approval_status(self) -> ApprovalStatus:
        return self.workflow_state.approval_status

    def __repr__(self) -> str:
        return f"<Inquiry(id={self.id}, subject='{self.subject}', state={self.state})>"


class InquiryResponse(TenantBase):
    """One append-only reply on an inquiry."""

    __tablename__ = "inquiry_responses"

    # Monotonic sequence gives arrival order
    sequence: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    inquiry_id: Mapped[str] = mapped_column(
        String(24),
        ForeignKey("inquiries.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    responder_id: Mapped[str] = mapped_column(String(24), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    inquiry: Mapped["Inquiry"] = relationship("Inquiry", back_populates="responses")

    def __repr__(self) -> str:
        return f"<InquiryResponse(seq={self.sequence}, inquiry_id={self.inquiry_id})>"
