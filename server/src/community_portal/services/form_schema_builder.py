"""In-memory editor for an event's registration form schema"""

import logging
import re
import time
from typing import Any, Dict, List, Optional

from community_portal.models.event import RegistrationFormSchema
from community_portal.models.field_type import FieldType
from community_portal.models.form_field import (
    CheckboxField,
    FieldDefinition,
    SelectField,
    field_to_wire,
    parse_field,
    parse_fields,
)

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

# Keys a caller may never change through update_field
_IMMUTABLE_KEYS = ("id", "type")


class FormSchemaBuilder:
    """
    Holds the ordered field list an administrator is editing.

    Every operation is a local state change: nothing reaches the backend until
    the caller saves ``to_schema()``. Field ids are assigned once in
    ``add_field`` and survive updates and reordering.
    """

    def __init__(
        self,
        fields: Optional[List[FieldDefinition]] = None,
        enabled: bool = False,
        slug: Optional[str] = None,
    ):
        self.fields: List[FieldDefinition] = list(fields or [])
        self.enabled = enabled
        self.slug = slug

    @classmethod
    def from_schema(cls, schema: RegistrationFormSchema) -> "FormSchemaBuilder":
        return cls(fields=schema.fields, enabled=schema.enabled, slug=schema.slug)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormSchemaBuilder":
        """Rebuild a builder from ``to_dict()`` output"""
        return cls(
            fields=parse_fields(data.get("fields")),
            enabled=bool(data.get("enabled", False)),
            slug=data.get("slug"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fields": [field_to_wire(f) for f in self.fields],
            "enabled": self.enabled,
            "slug": self.slug,
        }

    def to_schema(self) -> RegistrationFormSchema:
        return RegistrationFormSchema(
            fields=list(self.fields), enabled=self.enabled, slug=self.slug
        )

    def _new_field_id(self) -> str:
        # Millisecond timestamp, bumped past any id already in the form
        candidate = time.time_ns() // 1_000_000
        existing = {f.id for f in self.fields}
        while str(candidate) in existing:
            candidate += 1
        return str(candidate)

    def _index_of(self, field_id: str) -> Optional[int]:
        for index, field in enumerate(self.fields):
            if field.id == field_id:
                return index
        return None

    def get_field(self, field_id: str) -> Optional[FieldDefinition]:
        index = self._index_of(field_id)
        return None if index is None else self.fields[index]

    def add_field(self, field_type: FieldType | str) -> FieldDefinition:
        """Append a blank field of the given type and return it"""
        field_type = FieldType(field_type)
        data = {
            "id": self._new_field_id(),
            "type": field_type.value,
            "label": "",
            "placeholder": "",
            "required": False,
        }
        if field_type == FieldType.SELECT:
            data["options"] = [""]

        field = parse_field(data)
        self.fields.append(field)
        logger.debug(f"Added {field_type.value} field {field.id}")
        return field

    def update_field(self, field_id: str, changes: Dict[str, Any]) -> None:
        """
        Merge ``changes`` into the field with ``field_id``.

        Unknown ids are ignored. ``id`` and ``type`` cannot be changed, and keys
        the field kind does not carry are dropped.

        Raises:
            pydantic.ValidationError: If a value has the wrong type
        """
        index = self._index_of(field_id)
        if index is None:
            return

        field = self.fields[index]
        changes = {k: v for k, v in changes.items() if k not in _IMMUTABLE_KEYS}
        if isinstance(field, CheckboxField) and "placeholder" in changes:
            changes["affirm_label"] = changes.pop("placeholder")

        data = field.model_dump()
        data.update(changes)
        self.fields[index] = type(field).model_validate(data)

    def remove_field(self, field_id: str) -> None:
        self.fields = [f for f in self.fields if f.id != field_id]

    def move_field(self, from_index: int, to_index: int) -> None:
        """
        Move the field at ``from_index`` so that it ends up at ``to_index``.

        An out-of-range ``from_index`` does nothing; ``to_index`` is clamped to
        the list bounds.
        """
        if not 0 <= from_index < len(self.fields):
            logger.warning(
                f"Ignoring move from index {from_index} "
                f"(form has {len(self.fields)} fields)"
            )
            return

        to_index = max(0, min(to_index, len(self.fields) - 1))
        field = self.fields.pop(from_index)
        self.fields.insert(to_index, field)

    def add_option(self, field_id: str) -> None:
        """Append an empty option to a select field"""
        field = self.get_field(field_id)
        if not isinstance(field, SelectField):
            return
        self.update_field(field_id, {"options": [*field.options, ""]})

    def update_option(self, field_id: str, index: int, value: str) -> None:
        """Replace option ``index`` of a select field"""
        field = self.get_field(field_id)
        if not isinstance(field, SelectField):
            return
        if not 0 <= index < len(field.options):
            return
        options = list(field.options)
        options[index] = value
        self.update_field(field_id, {"options": options})

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = bool(enabled)

    def set_slug(self, slug: Optional[str]) -> None:
        slug = (slug or "").strip()
        self.slug = slug or None

    def validate_for_save(self) -> Dict[str, str]:
        """
        Check the draft before it is sent to the backend.

        Returns:
            Mapping of setting name to error message (empty when valid)
        """
        errors = {}
        if self.slug is None:
            if self.enabled:
                errors["slug"] = "A registration link slug is required"
        elif not SLUG_PATTERN.match(self.slug):
            errors["slug"] = (
                "Slug may only contain lowercase letters, digits and single hyphens"
            )
        return errors
