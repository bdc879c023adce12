"""Turns a persisted registration form into controls and submits the answers"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from pydantic import EmailStr, TypeAdapter, ValidationError

from community_portal.backends.portal_api_client import PortalApiClient, PortalApiError
from community_portal.models.event import Event, RegistrationFormSchema
from community_portal.models.form_field import (
    CheckboxField,
    FieldDefinition,
    InputField,
    SelectField,
    TextAreaField,
)
from community_portal.services.registration_events import (
    RegistrationEvents,
    RegistrationSubmitted,
)

logger = logging.getLogger(__name__)

DEFAULT_AFFIRM_LABEL = "I agree"


class FormState(str, enum.Enum):
    UNAVAILABLE = "unavailable"  # registration disabled for the event
    EMPTY = "empty"  # no fields configured
    OPEN = "open"
    SUBMITTED = "submitted"


@dataclass
class FormControl:
    """Everything a template needs to draw one field"""

    field_id: str
    widget: str  # "input", "textarea", "select" or "checkbox"
    label: str
    required: bool
    input_type: Optional[str] = None
    placeholder: str = ""
    options: List[str] = field(default_factory=list)
    value: Any = None
    error: Optional[str] = None


@dataclass
class RenderedForm:
    state: FormState
    controls: List[FormControl] = field(default_factory=list)
    message: Optional[str] = None

    @property
    def show_submit(self) -> bool:
        return self.state == FormState.OPEN and bool(self.controls)


@dataclass
class SubmissionResult:
    success: bool
    errors: Dict[str, str] = field(default_factory=dict)
    message: Optional[str] = None
    status_code: Optional[int] = None


def build_control(
    definition: FieldDefinition, value: Any = None, error: Optional[str] = None
) -> FormControl:
    """Map one field definition to its control"""
    if isinstance(definition, InputField):
        return FormControl(
            field_id=definition.id,
            widget="input",
            input_type=definition.type,
            label=definition.label,
            required=definition.required,
            placeholder=definition.placeholder,
            value=value,
            error=error,
        )
    if isinstance(definition, TextAreaField):
        return FormControl(
            field_id=definition.id,
            widget="textarea",
            label=definition.label,
            required=definition.required,
            placeholder=definition.placeholder,
            value=value,
            error=error,
        )
    if isinstance(definition, SelectField):
        return FormControl(
            field_id=definition.id,
            widget="select",
            label=definition.label,
            required=definition.required,
            options=list(definition.options),
            value=value,
            error=error,
        )
    if isinstance(definition, CheckboxField):
        # The affirm text replaces the separate label next to the box
        return FormControl(
            field_id=definition.id,
            widget="checkbox",
            label=definition.label,
            required=definition.required,
            placeholder=definition.affirm_label or DEFAULT_AFFIRM_LABEL,
            value=bool(value),
            error=error,
        )
    raise TypeError(f"Unsupported field definition: {type(definition).__name__}")


_email_adapter = TypeAdapter(EmailStr)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def validate_answers(
    schema: RegistrationFormSchema, answers: Mapping[str, Any]
) -> Dict[str, str]:
    """
    Check answers against the schema before they are sent.

    Returns:
        Mapping of field id to error message (empty when valid)
    """
    errors = {}
    for definition in schema.fields:
        value = answers.get(definition.id)
        name = definition.label or "This field"

        if isinstance(definition, CheckboxField):
            if definition.required and value is not True:
                errors[definition.id] = f"{name} is required"
            continue

        if _is_blank(value):
            if definition.required:
                errors[definition.id] = f"{name} is required"
            continue

        if isinstance(definition, InputField) and definition.type == "number":
            try:
                float(value)
            except (TypeError, ValueError):
                errors[definition.id] = f"{name} must be a valid number"
        elif isinstance(definition, InputField) and definition.type == "email":
            try:
                _email_adapter.validate_python(str(value).strip())
            except ValidationError:
                errors[definition.id] = f"{name} must be a valid email address"
        elif isinstance(definition, SelectField) and definition.options:
            if value not in definition.options:
                errors[definition.id] = f"Invalid option for {name}"

    return errors


class PublicRegistrationRenderer:
    """
    Public registration form for one event.

    Holds the visitor's answers between render and submit. Answers are only
    ever added or replaced one key at a time and are never cleared by a failed
    submit, so the visitor can correct the form and try again.
    """

    def __init__(
        self,
        event: Event,
        answers: Optional[Dict[str, Any]] = None,
        events: Optional[RegistrationEvents] = None,
    ):
        self.event = event
        self.schema = event.registration_schema
        self.answers: Dict[str, Any] = dict(answers or {})
        self.events = events
        self.submitted = False

    @property
    def state(self) -> FormState:
        # An empty form is reported as such whether or not it is enabled
        if not self.schema.fields:
            return FormState.EMPTY
        if not self.schema.enabled:
            return FormState.UNAVAILABLE
        if self.submitted:
            return FormState.SUBMITTED
        return FormState.OPEN

    def render(
        self, errors: Optional[Dict[str, str]] = None, message: Optional[str] = None
    ) -> RenderedForm:
        state = self.state
        if state != FormState.OPEN:
            return RenderedForm(state=state, message=message)

        errors = errors or {}
        controls = [
            build_control(d, self.answers.get(d.id), errors.get(d.id))
            for d in self.schema.fields
        ]
        return RenderedForm(state=state, controls=controls, message=message)

    def preview(self) -> RenderedForm:
        """Controls for every field even while public registration is off"""
        if not self.schema.fields:
            return RenderedForm(state=FormState.EMPTY)
        controls = [
            build_control(d, self.answers.get(d.id)) for d in self.schema.fields
        ]
        return RenderedForm(state=FormState.OPEN, controls=controls)

    def on_field_change(self, field_id: str, value: Any) -> None:
        self.answers[field_id] = value

    def load_posted_form(self, form_data: Mapping[str, Any]) -> None:
        """
        Copy values from a browser form post into the answers.

        Checkboxes count as checked when any value was posted; other values
        are stripped strings. Keys that are not schema fields are ignored.
        """
        for definition in self.schema.fields:
            raw = form_data.get(definition.id)
            if isinstance(definition, CheckboxField):
                self.on_field_change(definition.id, raw is not None)
            elif raw is not None:
                self.on_field_change(definition.id, str(raw).strip())

    async def submit(self, api: PortalApiClient) -> SubmissionResult:
        """Validate and send the answers to the backend"""
        if self.state != FormState.OPEN:
            return SubmissionResult(
                success=False,
                message="Registration is not available for this event.",
                status_code=403,
            )

        errors = validate_answers(self.schema, self.answers)
        if errors:
            return SubmissionResult(
                success=False,
                errors=errors,
                message="Please correct the highlighted fields.",
                status_code=400,
            )

        try:
            await api.register_public(self.event.id, dict(self.answers))
        except PortalApiError as e:
            logger.warning(
                f"Public registration for event {self.event.id} failed: {e.message}"
            )
            status_code = e.status_code
            if status_code is None or status_code >= 500:
                status_code = 502
            return SubmissionResult(
                success=False, message=e.message, status_code=status_code
            )

        self.submitted = True
        if self.events is not None:
            self.events.publish(
                RegistrationSubmitted(
                    event_id=self.event.id,
                    event_title=self.event.title,
                    answers=dict(self.answers),
                )
            )
        return SubmissionResult(success=True)
