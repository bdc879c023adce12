"""Registration form field definitions.

A field is one of four variants, told apart by ``type``. Each variant only
carries the attributes it uses; the backend still stores every field in the
flat shape ``{id, type, label, placeholder, required, options}``, so
``field_to_wire`` and ``parse_fields`` translate between the two.
"""

import json
import logging
from typing import Annotated, Any, Dict, List, Literal, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
)

logger = logging.getLogger(__name__)


class BaseField(BaseModel):
    """Attributes shared by every field kind"""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    label: str = ""
    required: bool = False


class InputField(BaseField):
    """Single-line input: text, email, tel or number"""

    type: Literal["text", "email", "tel", "number"]
    placeholder: str = ""


class TextAreaField(BaseField):
    """Multi-line input"""

    type: Literal["textarea"]
    placeholder: str = ""


class SelectField(BaseField):
    """Dropdown with an ordered list of options"""

    type: Literal["select"]
    placeholder: str = ""
    options: List[str] = Field(default_factory=list)


class CheckboxField(BaseField):
    """Single boolean toggle; ``affirm_label`` is shown next to the box"""

    type: Literal["checkbox"]
    affirm_label: str = Field(
        default="",
        validation_alias=AliasChoices("affirm_label", "placeholder"),
    )


FieldDefinition = Annotated[
    Union[InputField, TextAreaField, SelectField, CheckboxField],
    Field(discriminator="type"),
]

_field_adapter = TypeAdapter(FieldDefinition)


def field_options(field: FieldDefinition) -> List[str]:
    """Options of a select field, empty for every other kind"""
    if isinstance(field, SelectField):
        return list(field.options)
    return []


def field_to_wire(field: FieldDefinition) -> Dict[str, Any]:
    """Serialize a field to the flat shape stored by the backend"""
    if isinstance(field, CheckboxField):
        placeholder = field.affirm_label
    else:
        placeholder = field.placeholder

    return {
        "id": field.id,
        "type": field.type,
        "label": field.label,
        "placeholder": placeholder,
        "required": field.required,
        "options": field_options(field),
    }


def parse_field(data: Any) -> FieldDefinition:
    """Validate one field from its wire shape (raises ValidationError)"""
    return _field_adapter.validate_python(data)


def parse_fields(raw: Any) -> List[FieldDefinition]:
    """
    Parse a stored field list.

    The backend has been seen to return the list either as JSON or as a JSON
    encoded string. Anything that is not a list yields no fields, and entries
    that do not validate are skipped.
    """
    if raw is None:
        return []

    if isinstance(raw, str):
        try:
            raw = json.loads(raw or "[]")
        except json.JSONDecodeError:
            logger.warning("Registration fields are not valid JSON, ignoring them")
            return []

    if not isinstance(raw, list):
        logger.warning(
            f"Registration fields should be a list, got {type(raw).__name__}"
        )
        return []

    fields = []
    for entry in raw:
        if isinstance(entry, BaseField):
            fields.append(entry)
            continue
        try:
            fields.append(parse_field(entry))
        except ValidationError as e:
            logger.warning(f"Skipping malformed registration field {entry!r}: {e}")
    return fields
