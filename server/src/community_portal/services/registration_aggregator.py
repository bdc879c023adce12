"""Unified view over member and public registrations of one event.

Public registrations store the form schema they were submitted with. Table
columns come from the *first* public registration's stored schema, and each
value is looked up by position in the registration's own stored schema. If
the form changed between submissions the columns can be misaligned; that
behaviour is kept on purpose and covered by tests.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional

from community_portal.models.registration import (
    EventRegistrations,
    MemberRegistration,
    PublicRegistration,
)

logger = logging.getLogger(__name__)

MISSING_VALUE = "-"


def stored_field_list(registration: PublicRegistration) -> Optional[list]:
    """The schema snapshot of a registration, or None if it is unusable"""
    raw = registration.fields
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(
                f"Public registration {registration.id} has unparseable form data"
            )
            return None
    if not isinstance(raw, list):
        return None
    return raw


def derive_public_headers(registrations: List[PublicRegistration]) -> List[str]:
    """Column headers for the public registrations table"""
    if not registrations:
        return []

    fields = stored_field_list(registrations[0])
    if fields is None:
        return []

    headers = []
    for entry in fields:
        if not isinstance(entry, dict):
            headers.append(MISSING_VALUE)
            continue
        label = entry.get("label")
        headers.append(str(label) if label else str(entry.get("id", "")))
    return headers


def _integral_floats_as_int(value: Any) -> Any:
    # JavaScript prints 5.0 as "5", both bare and inside JSON
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, dict):
        return {k: _integral_floats_as_int(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_integral_floats_as_int(v) for v in value]
    return value


def format_value(value: Any) -> str:
    """Display text of one answer, as shown in the table and the CSV export"""
    if value is None:
        return MISSING_VALUE
    if isinstance(value, bool):
        return "Yes" if value else "No"
    value = _integral_floats_as_int(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def resolve_field_value(registration: PublicRegistration, index: int) -> str:
    """Display value of column ``index`` for one public registration"""
    answers = registration.answers
    if not isinstance(answers, dict):
        return MISSING_VALUE

    fields = stored_field_list(registration)
    if fields is None or not 0 <= index < len(fields):
        return MISSING_VALUE

    entry = fields[index]
    if not isinstance(entry, dict) or "id" not in entry:
        return MISSING_VALUE

    return format_value(answers.get(str(entry["id"])))


def format_timestamp(value: Optional[datetime]) -> str:
    """UTC ``YYYY-MM-DD HH:MM:SS``; naive datetimes are taken as UTC"""
    if value is None:
        return ""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%d %H:%M:%S")


@dataclass
class MemberRow:
    name: str
    email: str
    phone: str
    status: str
    registered_at: str


@dataclass
class PublicRow:
    number: int
    values: List[str]
    created_at: str


@dataclass
class AggregatedRegistrations:
    headers: List[str] = field(default_factory=list)
    member_rows: List[MemberRow] = field(default_factory=list)
    public_rows: List[PublicRow] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.member_rows) + len(self.public_rows)


def _member_row(registration: MemberRegistration) -> MemberRow:
    member = registration.member
    return MemberRow(
        name=(member.full_name if member else None) or "",
        email=(member.email if member else None) or "",
        phone=(member.phone if member else None) or "",
        status=registration.status.value if registration.status else "",
        registered_at=format_timestamp(registration.registered_at),
    )


class RegistrationAggregator:
    """Merges both registration populations of an event into table rows"""

    def __init__(self, registrations: EventRegistrations):
        self.registrations = registrations

    def headers(self) -> List[str]:
        return derive_public_headers(self.registrations.public_registrations)

    def aggregate(self) -> AggregatedRegistrations:
        headers = self.headers()
        member_rows = [
            _member_row(r) for r in self.registrations.member_registrations
        ]
        public_rows = [
            PublicRow(
                number=number,
                values=[resolve_field_value(r, i) for i in range(len(headers))],
                created_at=format_timestamp(r.created_at),
            )
            for number, r in enumerate(self.registrations.public_registrations, 1)
        ]
        return AggregatedRegistrations(
            headers=headers, member_rows=member_rows, public_rows=public_rows
        )
