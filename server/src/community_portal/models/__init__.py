"""Data models for the community portal frontend"""

from community_portal.models.event import Event, RegistrationFormSchema
from community_portal.models.field_type import FieldType
from community_portal.models.form_field import (
    CheckboxField,
    FieldDefinition,
    InputField,
    SelectField,
    TextAreaField,
)
from community_portal.models.registration import (
    EventRegistrations,
    MemberRegistration,
    PublicRegistration,
)

__all__ = [
    "Event",
    "RegistrationFormSchema",
    "FieldType",
    "FieldDefinition",
    "InputField",
    "TextAreaField",
    "SelectField",
    "CheckboxField",
    "EventRegistrations",
    "MemberRegistration",
    "PublicRegistration",
]
