"""Company user model (agents and company admins)."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, DateTime, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import TenantBase, utcnow
from ..core.identifiers import new_object_id
from .states import UserRole


class User(TenantBase):
    """A person working inside one company: an agent or a company admin."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_object_id)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=UserRole.AGENT.value, index=True)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    monthly_target: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("5000"))
    commission_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("5.0"))
    department: Mapped[str] = mapped_column(String(64), nullable=False, default="sales")

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("role IN ('agent', 'admin')", name="ck_user_role"),
        CheckConstraint("length(name) > 0", name="ck_user_name_not_empty"),
    )

    @property
    def owner_id(self) -> str:
        return self.id

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"
