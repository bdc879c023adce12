"""Member and public registration records as returned by the backend"""

import enum
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RegistrationStatus(str, enum.Enum):
    REGISTERED = "registered"
    ATTENDED = "attended"
    CANCELLED = "cancelled"


class _BackendModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


class MemberSummary(_BackendModel):
    id: Optional[int] = None
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class MemberRegistration(_BackendModel):
    """Registration made by a signed-in member"""

    id: int
    event_id: Optional[int] = None
    member_id: Optional[int] = None
    member: Optional[MemberSummary] = None
    status: RegistrationStatus = RegistrationStatus.REGISTERED
    registered_at: Optional[datetime] = None


class PublicRegistration(_BackendModel):
    """Anonymous registration made through the public form.

    ``fields`` is the form schema captured when the registration was
    submitted (backend key ``formData``) and ``answers`` holds the submitted
    values keyed by field id (backend key ``registrantData``). Both are kept
    raw: older records may hold a JSON string or some other shape.
    """

    id: int
    event_id: Optional[int] = None
    fields: Any = Field(default=None, alias="formData")
    answers: Any = Field(default=None, alias="registrantData")
    created_at: Optional[datetime] = None


class EventRegistrations(_BackendModel):
    member_registrations: List[MemberRegistration] = Field(default_factory=list)
    public_registrations: List[PublicRegistration] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.member_registrations) + len(self.public_registrations)
