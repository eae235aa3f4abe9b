from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Optional

from sqlalchemy import DDL, CheckConstraint, Enum, ForeignKey, Index, UniqueConstraint, event
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql.sqltypes import BigInteger, Boolean, DateTime, Integer, String


class Base(DeclarativeBase):
    pass


class BayType(StrEnum):
    PRIME = "PRIME"
    STANDARD = "STANDARD"


class BookingStatus(StrEnum):
    CONFIRMED = "CONFIRMED"
    CANCELED = "CANCELED"


OVERLAP_CONSTRAINT = "booking_no_overlap"


class Service(Base):
    __tablename__ = "services"
    __table_args__ = (
        UniqueConstraint("slug", name="uq_services_slug"),
        CheckConstraint("duration_minutes > 0", name="chk_services_duration"),
        CheckConstraint("price_cents >= 0", name="chk_services_price"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)


class Bay(Base):
    __tablename__ = "bays"
    __table_args__ = (
        UniqueConstraint("name", name="uq_bays_name"),
        CheckConstraint("capacity >= 1", name="chk_bays_capacity"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[BayType] = mapped_column(
        Enum(
            BayType,
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
            native_enum=False,
        ),
        nullable=False,
        default=BayType.STANDARD,
    )
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)

    bookings: Mapped[list["Booking"]] = relationship(back_populates="bay")


class Customer(Base):
    __tablename__ = "customers"
    __table_args__ = (UniqueConstraint("email", name="uq_customers_email"),)

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    bookings: Mapped[list["Booking"]] = relationship(back_populates="customer")


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="chk_bookings_time"),
        Index("idx_bookings_bay_start", "bay_id", "start_time"),
        Index("idx_bookings_customer", "customer_id"),
        Index("idx_bookings_code", "confirmation_code"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    bay_id: Mapped[int] = mapped_column(ForeignKey("bays.id"), nullable=False)
    service_id: Mapped[int] = mapped_column(ForeignKey("services.id"), nullable=False)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id"), nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    status: Mapped[BookingStatus] = mapped_column(
        Enum(
            BookingStatus,
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
            native_enum=False,
        ),
        nullable=False,
        default=BookingStatus.CONFIRMED,
    )
    confirmation_code: Mapped[str] = mapped_column(String(32), nullable=False)
    checked_in: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    cancel_reason: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    bay: Mapped["Bay"] = relationship(back_populates="bookings")
    service: Mapped["Service"] = relationship()
    customer: Mapped["Customer"] = relationship(back_populates="bookings")


# PostgreSQL enforces the per-bay overlap rule itself; other backends rely on
# the bay row lock taken by the repository.
event.listen(
    Base.metadata,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
event.listen(
    Booking.__table__,
    "after_create",
    DDL(
        f"ALTER TABLE bookings ADD CONSTRAINT {OVERLAP_CONSTRAINT} "
        "EXCLUDE USING gist (bay_id WITH =, tsrange(start_time, end_time, '[)') WITH &&) "
        "WHERE (status = 'CONFIRMED')"
    ).execute_if(dialect="postgresql"),
)
