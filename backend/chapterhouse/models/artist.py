"""Artist ORM model.

``members`` and ``chapters`` are denormalized id lists. The store does not
enforce them; ``services.cleanup_service`` keeps ``members`` consistent.
"""
import uuid
import enum
from sqlalchemy import Column, String, Text, DateTime, JSON, Enum as SAEnum
from sqlalchemy.sql import func
from chapterhouse.database import Base


class ArtistStatus(str, enum.Enum):
    pending = "PENDING"
    approved = "APPROVED"


class ImagePreference(str, enum.Enum):
    custom = "custom"
    google = "google"


class Artist(Base):
    __tablename__ = "artists"

    artist_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    location = Column(String(255), nullable=True)
    bio = Column(Text, nullable=True)
    image = Column(String(500), nullable=True)
    image_preference = Column(SAEnum(ImagePreference), nullable=False, default=ImagePreference.custom)
    owner_id = Column(String(36), nullable=False, index=True)
    members = Column(JSON, nullable=False, default=list)
    status = Column(SAEnum(ArtistStatus), nullable=False, default=ArtistStatus.pending)
    chapters = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
