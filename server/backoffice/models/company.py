"""Company (tenant) and platform user models stored in the platform registry."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import PlatformBase, utcnow
from ..core.identifiers import new_object_id
from .states import UserRole


class Company(PlatformBase):
    """A tenant: an isolated company with its own logical database."""

    __tablename__ = "companies"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_object_id)

    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    primary_color: Mapped[str] = mapped_column(String(16), nullable=False, default="#3B82F6")

    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    contact_address: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Connection descriptor; fixed once provisioned
    storage_uri: Mapped[str] = mapped_column(String(512), nullable=False)
    db_name: Mapped[str] = mapped_column(String(255), nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Company(id={self.id}, slug='{self.slug}', active={self.is_active})>"


class PlatformUser(PlatformBase):
    """A super administrator that is not bound to any company."""

    __tablename__ = "platform_users"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_object_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=UserRole.SUPER_ADMIN.value)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<PlatformUser(id={self.id}, email='{self.email}')>"
