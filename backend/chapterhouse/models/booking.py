"""Booking and BookingDate ORM models."""
import uuid
import enum
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from chapterhouse.database import Base
from chapterhouse.models.artist import ImagePreference


class BookingStatus(str, enum.Enum):
    pending = "PENDING"
    approved = "APPROVED"


class Booking(Base):
    __tablename__ = "bookings"

    booking_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    questions = Column(Text, nullable=True)
    image = Column(String(500), nullable=True)
    image_preference = Column(SAEnum(ImagePreference), nullable=False, default=ImagePreference.custom)
    created_by = Column(String(36), nullable=False, index=True)
    status = Column(SAEnum(BookingStatus), nullable=False, default=BookingStatus.pending)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    dates = relationship(
        "BookingDate",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingDate.date",
    )


class BookingDate(Base):
    __tablename__ = "booking_dates"

    date_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    booking_id = Column(String(36), ForeignKey("bookings.booking_id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(String(20), nullable=False)
    time = Column(String(20), nullable=True)
    duration = Column(String(50), nullable=True)
    event_type = Column(String(100), nullable=True)
    location = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    budget = Column(String(100), nullable=True)
    # Public events feed visibility; admin-only, independent of booking approval
    is_public = Column(Boolean, nullable=False, default=False)

    booking = relationship("Booking", back_populates="dates")
