"""Chapter ORM model: admin-managed, outside the request workflow."""
import uuid
from sqlalchemy import Column, String, Text
from chapterhouse.database import Base


class Chapter(Base):
    __tablename__ = "chapters"

    chapter_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    location = Column(String(255), nullable=False)
    bio = Column(Text, nullable=True)
    image = Column(String(500), nullable=True)
