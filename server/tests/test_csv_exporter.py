"""Tests for the registrations CSV export"""

import csv
import io
from datetime import date, datetime, timezone

import pytest

from community_portal.models.registration import EventRegistrations
from community_portal.services import csv_exporter
from community_portal.services.csv_exporter import (
    FIXED_HEADERS,
    build_registrations_csv,
    export_filename,
)
from community_portal.services.registration_aggregator import RegistrationAggregator

FIELDS = [
    {"id": "f1", "type": "text", "label": "Name"},
    {"id": "f2", "type": "textarea", "label": "Comments"},
    {"id": "f3", "type": "checkbox", "label": "Consent"},
]


def _aggregate(member_count, public_answers):
    members = [
        {
            "id": i,
            "status": "registered",
            "registeredAt": "2026-09-30T18:05:09Z",
            "member": {"fullName": f"Member {i}", "email": f"m{i}@example.org"},
        }
        for i in range(1, member_count + 1)
    ]
    public = [
        {
            "id": i,
            "formData": FIELDS,
            "registrantData": answers,
            "createdAt": "2026-10-01T09:30:00Z",
        }
        for i, answers in enumerate(public_answers, 1)
    ]
    registrations = EventRegistrations.model_validate(
        {"memberRegistrations": members, "publicRegistrations": public}
    )
    return RegistrationAggregator(registrations).aggregate()


def _parse(text):
    return list(csv.reader(io.StringIO(text)))


@pytest.mark.parametrize(
    "member_count, public_count", [(0, 0), (2, 0), (0, 3), (3, 2)]
)
def test_csv_is_rectangular(member_count, public_count):
    view = _aggregate(member_count, [{"f1": "x"}] * public_count)
    expected_columns = 6 + len(view.headers)

    rows = _parse(build_registrations_csv(view))

    assert len(rows) == 1 + member_count + public_count
    assert all(len(row) == expected_columns for row in rows)


def test_no_registrations_gives_header_row_only():
    text = build_registrations_csv(_aggregate(0, []))

    assert text == '"Type","Name","Email","Phone","Status","Registered At"'


def test_header_row_and_row_layout():
    view = _aggregate(1, [{"f1": "Asha", "f2": "See you", "f3": True}])

    rows = _parse(build_registrations_csv(view))

    assert rows[0] == FIXED_HEADERS + ["Name", "Comments", "Consent"]
    assert rows[1] == [
        "Member",
        "Member 1",
        "m1@example.org",
        "",
        "registered",
        "2026-09-30 18:05:09",
        "",
        "",
        "",
    ]
    assert rows[2] == [
        "Public",
        "",
        "",
        "",
        "",
        "2026-10-01 09:30:00",
        "Asha",
        "See you",
        "Yes",
    ]


def test_every_cell_is_quoted_and_quotes_are_doubled():
    view = _aggregate(0, [{"f1": 'He said "hi"', "f2": "a, b\nc"}])

    lines = build_registrations_csv(view).split("\n", 1)

    assert lines[1] == (
        '"Public","","","","","2026-10-01 09:30:00",'
        '"He said ""hi""","a, b\nc","-"'
    )


def test_rows_are_joined_without_trailing_newline():
    text = build_registrations_csv(_aggregate(2, []))

    assert not text.endswith("\n")
    assert text.count("\n") == 2
    assert "\r" not in text


def test_export_filename_replaces_non_alphanumerics():
    name = export_filename("Spring Picnic: 2026!", on=date(2026, 10, 19))

    assert name == "registrations-Spring-Picnic--2026--2026-10-19.csv"


def test_export_filename_defaults_to_the_utc_date(monkeypatch):
    class LateEveningClock(datetime):
        @classmethod
        def now(cls, tz=None):
            # 23:30 UTC is already the next day east of UTC
            assert tz is timezone.utc
            return datetime(2026, 10, 19, 23, 30, tzinfo=timezone.utc)

    monkeypatch.setattr(csv_exporter, "datetime", LateEveningClock)

    assert export_filename("Fair") == "registrations-Fair-2026-10-19.csv"


def test_export_filename_keeps_the_csv_extension():
    assert export_filename("a.b", on=date(2026, 1, 2)) == "registrations-a-b-2026-01-02.csv"


def test_object_answers_export_unescaped():
    view = _aggregate(0, [{"f1": "Zoë", "f2": {"diet": "végétarien"}, "f3": 2.0}])

    rows = _parse(build_registrations_csv(view))

    assert rows[1][6:] == ["Zoë", '{"diet":"végétarien"}', "2"]
