"""Request ORM model: the append-only ledger of proposed changes."""
import uuid
import enum
from datetime import datetime, timezone
from sqlalchemy import Column, String, Text, DateTime, Enum as SAEnum
from chapterhouse.database import Base


class RequestType(str, enum.Enum):
    role_change = "ROLE_CHANGE"
    user_edit = "USER_EDIT"
    artist_edit = "ARTIST_EDIT"
    artist_add = "ARTIST_ADD"
    booking_inquiry = "BOOKING_INQUIRY"
    booking_edit = "BOOKING_EDIT"


class RequestStatus(str, enum.Enum):
    pending = "PENDING"
    approved = "APPROVED"
    rejected = "REJECTED"


# Request types that propose changes to the same kind of entity.
# At most one of a category may be pending per target.
USER_REQUEST_TYPES = (RequestType.user_edit, RequestType.role_change)
ARTIST_REQUEST_TYPES = (RequestType.artist_edit, RequestType.artist_add)
BOOKING_REQUEST_TYPES = (RequestType.booking_edit, RequestType.booking_inquiry)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Request(Base):
    __tablename__ = "requests"

    request_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)  # submitter
    request_type = Column(SAEnum(RequestType), nullable=False)
    target_id = Column(String(36), nullable=True, index=True)
    data = Column(Text, nullable=True)  # JSON text, shape depends on request_type
    status = Column(SAEnum(RequestStatus), nullable=False, default=RequestStatus.pending, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    @property
    def subject_id(self) -> str:
        """The entity the proposal applies to; role changes target their submitter."""
        return self.target_id or self.user_id
