"""Pydantic schemas for Requests and merged entity views."""
from datetime import datetime
from typing import Generic, Optional, TypeVar
from pydantic import BaseModel

from chapterhouse.models.request import RequestStatus, RequestType

EntityT = TypeVar("EntityT", bound=BaseModel)


class RequestOut(BaseModel):
    request_id: str
    user_id: str
    request_type: RequestType
    target_id: Optional[str] = None
    data: Optional[str] = None
    status: RequestStatus
    created_at: datetime
    # Joined submitter fields, present on queue listings
    user_name: Optional[str] = None
    user_email: Optional[str] = None

    model_config = {"from_attributes": True}


class EntityView(BaseModel, Generic[EntityT]):
    """An entity as shown to one viewer.

    ``entity`` is the proposed (merged) state when ``showing_proposed`` is
    true, and the live row otherwise.
    """
    entity: EntityT
    pending_request_id: Optional[str] = None
    pending_type: Optional[RequestType] = None
    showing_proposed: bool = False
