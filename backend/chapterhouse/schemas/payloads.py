"""Typed request payloads: one model per RequestType.

Payloads are stored as JSON text on ``requests.data``. ``parse_payload``
turns that text back into the model for the request's type; the approval
engine dispatches on the type and the merge engine asks each payload which
fields it proposes via ``overlay_fields``.
"""
from __future__ import annotations

import json
from typing import Any, Optional, Union

from pydantic import BaseModel, ValidationError

from chapterhouse.errors import MalformedPayload
from chapterhouse.models.request import Request, RequestType
from chapterhouse.models.user import Role
from chapterhouse.schemas.booking import BookingDateIn


class _Payload(BaseModel):
    def overlay_fields(self, target_id: str) -> dict[str, Any]:
        """Fields present in the proposal, keyed by entity attribute name."""
        return self.model_dump(exclude_unset=True)


class _ProfilePayload(_Payload):
    director_chapters: list[str] = []

    def stored_director_chapters(self) -> Optional[list[str]]:
        """Directed chapters as the users row holds them; empty means NULL."""
        return self.director_chapters or None

    def overlay_fields(self, target_id: str) -> dict[str, Any]:
        fields = super().overlay_fields(target_id)
        if "director_chapters" in fields:
            fields["director_chapters"] = self.stored_director_chapters()
        return fields


class RoleChangePayload(_ProfilePayload):
    role: Role
    location: Optional[str] = None
    bio: Optional[str] = None
    chapters: Optional[list[str]] = None


class UserEditPayload(_ProfilePayload):
    name: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    chapters: list[str] = []
    role: Role


class ArtistAddPayload(_Payload):
    name: str
    location: Optional[str] = None
    bio: Optional[str] = None
    chapters: list[str] = []
    members: list[str] = []


class ArtistEditPayload(_Payload):
    name: str
    location: Optional[str] = None
    bio: Optional[str] = None
    image: Optional[str] = None
    chapters: list[str] = []
    members: list[str] = []


class BookingInquiryPayload(_Payload):
    name: str
    email: str
    phone: str


class BookingEditPayload(_Payload):
    """Booking contact fields plus dates as positionally correlated arrays."""
    name: str
    email: str
    phone: str
    questions: Optional[str] = None
    dates: list[str] = []
    times: list[Optional[str]] = []
    durations: list[Optional[str]] = []
    event_types: list[Optional[str]] = []
    locations: list[Optional[str]] = []
    descriptions: list[Optional[str]] = []
    budgets: list[Optional[str]] = []

    @classmethod
    def from_form(cls, name: str, email: str, phone: str, questions: Optional[str],
                  dates: list[BookingDateIn]) -> "BookingEditPayload":
        return cls(
            name=name,
            email=email,
            phone=phone,
            questions=questions,
            dates=[d.date for d in dates],
            times=[d.time for d in dates],
            durations=[d.duration for d in dates],
            event_types=[d.event_type for d in dates],
            locations=[d.location for d in dates],
            descriptions=[d.description for d in dates],
            budgets=[d.budget for d in dates],
        )

    def date_rows(self) -> list[dict[str, Optional[str]]]:
        """Rebuild one dict per date; missing or blank optional cells become None."""
        def at(values: list[Optional[str]], i: int) -> Optional[str]:
            return (values[i] or None) if i < len(values) else None

        return [
            {
                "date": date,
                "time": at(self.times, i),
                "duration": at(self.durations, i),
                "event_type": at(self.event_types, i),
                "location": at(self.locations, i),
                "description": at(self.descriptions, i),
                "budget": at(self.budgets, i),
            }
            for i, date in enumerate(self.dates)
        ]

    def overlay_fields(self, target_id: str) -> dict[str, Any]:
        fields = self.model_dump(include={"name", "email", "phone", "questions"}, exclude_unset=True)
        fields["dates"] = [
            {**row, "date_id": None, "booking_id": target_id, "is_public": False}
            for row in self.date_rows()
        ]
        return fields


Payload = Union[
    RoleChangePayload,
    UserEditPayload,
    ArtistAddPayload,
    ArtistEditPayload,
    BookingInquiryPayload,
    BookingEditPayload,
]


def payload_model(request_type: RequestType) -> type[_Payload]:
    match request_type:
        case RequestType.role_change:
            return RoleChangePayload
        case RequestType.user_edit:
            return UserEditPayload
        case RequestType.artist_add:
            return ArtistAddPayload
        case RequestType.artist_edit:
            return ArtistEditPayload
        case RequestType.booking_inquiry:
            return BookingInquiryPayload
        case RequestType.booking_edit:
            return BookingEditPayload
    raise ValueError(f"Unhandled request type: {request_type!r}")


def parse_payload(request: Request) -> Payload:
    """Parse ``request.data`` into the payload model for its type.

    Raises MalformedPayload when the text is not JSON or does not fit the model.
    """
    try:
        raw = json.loads(request.data or "{}")
    except json.JSONDecodeError as exc:
        raise MalformedPayload(request.request_id, f"invalid JSON ({exc.msg})") from exc
    if not isinstance(raw, dict):
        raise MalformedPayload(request.request_id, "payload is not an object")
    try:
        return payload_model(request.request_type).model_validate(raw)
    except ValidationError as exc:
        raise MalformedPayload(request.request_id, f"{exc.error_count()} invalid field(s)") from exc


def dump_payload(payload: Payload) -> str:
    return payload.model_dump_json(exclude_unset=True)
