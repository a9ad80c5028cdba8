"""User ORM model."""
import uuid
import enum
from sqlalchemy import Column, String, Text, DateTime, JSON, Enum as SAEnum
from sqlalchemy.sql import func
from chapterhouse.database import Base


class Role(str, enum.Enum):
    admin = "Admin"
    musician = "Musician"
    audience = "Audience"
    chapter_director = "Chapter Director"


# Roles that are represented by a bookable solo artist record
PERFORMING_ROLES = frozenset({Role.musician, Role.chapter_director})


class User(Base):
    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(150), nullable=True)
    email = Column(String(255), nullable=True, unique=True)
    role = Column(SAEnum(Role), nullable=False, default=Role.audience)
    image = Column(String(500), nullable=True)
    location = Column(String(255), nullable=True)
    bio = Column(Text, nullable=True)
    chapters = Column(JSON, nullable=True, default=list)  # chapter ids followed
    director_chapters = Column(JSON, nullable=True)  # chapter ids directed
    created_at = Column(DateTime(timezone=True), server_default=func.now())
