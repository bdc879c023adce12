"""Event and registration form schema models (backend JSON uses camelCase)"""

import enum
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from community_portal.models.form_field import (
    FieldDefinition,
    field_to_wire,
    parse_fields,
)


class EventStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class EventVisibility(str, enum.Enum):
    PUBLIC = "public"
    MEMBERS = "members"


class RegistrationFormSchema(BaseModel):
    """Per-event registration form: ordered fields plus the public gate"""

    fields: List[FieldDefinition] = Field(default_factory=list)
    enabled: bool = False
    slug: Optional[str] = None

    @field_validator("fields", mode="before")
    @classmethod
    def _parse_fields(cls, value: Any) -> Any:
        return parse_fields(value)

    def to_wire(self) -> Dict[str, Any]:
        """Request body for PUT /events/{id}/registration-form"""
        return {
            "registrationFields": [field_to_wire(f) for f in self.fields],
            "registrationFormEnabled": self.enabled,
            "registrationSlug": self.slug or None,
        }


class Event(BaseModel):
    """Event as returned by the portal backend"""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    id: int
    title: str
    description: Optional[str] = None
    event_date: Optional[datetime] = None
    venue: Optional[str] = None
    max_participants: Optional[int] = None
    featured_image: Optional[str] = None
    visibility: EventVisibility = EventVisibility.PUBLIC
    status: EventStatus = EventStatus.DRAFT
    registration_form_enabled: bool = False
    registration_slug: Optional[str] = None
    registration_fields: List[FieldDefinition] = Field(default_factory=list)
    registration_count: Optional[int] = None
    available_spots: Optional[int] = None

    @field_validator("registration_fields", mode="before")
    @classmethod
    def _parse_registration_fields(cls, value: Any) -> Any:
        return parse_fields(value)

    @field_validator("registration_form_enabled", mode="before")
    @classmethod
    def _none_is_disabled(cls, value: Any) -> Any:
        return False if value is None else value

    @property
    def registration_schema(self) -> RegistrationFormSchema:
        return RegistrationFormSchema(
            fields=list(self.registration_fields),
            enabled=self.registration_form_enabled,
            slug=self.registration_slug,
        )
