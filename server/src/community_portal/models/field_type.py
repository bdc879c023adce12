"""Enums for registration form fields"""

from enum import Enum


class FieldType(str, Enum):
    """Kinds of field an administrator can add to a registration form"""

    TEXT = "text"
    EMAIL = "email"
    TEL = "tel"
    NUMBER = "number"
    SELECT = "select"
    TEXTAREA = "textarea"
    CHECKBOX = "checkbox"


# Field types rendered as a single-line <input type="...">
INPUT_FIELD_TYPES = (FieldType.TEXT, FieldType.EMAIL, FieldType.TEL, FieldType.NUMBER)
