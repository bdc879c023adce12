"""CSV export of an event's registrations"""

import csv
import io
import re
from datetime import date, datetime, timezone
from typing import List, Optional

from community_portal.services.registration_aggregator import AggregatedRegistrations

FIXED_HEADERS = ["Type", "Name", "Email", "Phone", "Status", "Registered At"]

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9]")


def registration_rows(aggregated: AggregatedRegistrations) -> List[List[str]]:
    """Header row followed by one row per member and public registration"""
    dynamic_count = len(aggregated.headers)
    rows = [FIXED_HEADERS + list(aggregated.headers)]

    for member in aggregated.member_rows:
        rows.append(
            [
                "Member",
                member.name,
                member.email,
                member.phone,
                member.status,
                member.registered_at,
            ]
            + [""] * dynamic_count
        )

    for public in aggregated.public_rows:
        rows.append(["Public", "", "", "", "", public.created_at] + public.values)

    return rows


def build_registrations_csv(aggregated: AggregatedRegistrations) -> str:
    """
    Render the registrations as CSV text.

    Every cell is double-quoted with embedded quotes doubled, and rows are
    separated by a single newline with none after the last row.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(registration_rows(aggregated))
    text = buffer.getvalue()
    return text[:-1] if text.endswith("\n") else text


def export_filename(event_title: str, on: Optional[date] = None) -> str:
    """
    ``registrations-<title>-<YYYY-MM-DD>.csv`` for the download.

    ``on`` defaults to the current UTC date. Every character of the name part
    that is not an ASCII letter or digit becomes a hyphen. The ``.csv``
    extension is appended after sanitizing and is kept as a real extension,
    not rewritten to ``-csv``.
    """
    on = on or datetime.now(timezone.utc).date()
    stem = f"registrations-{event_title}-{on.isoformat()}"
    return f"{_UNSAFE_FILENAME_CHARS.sub('-', stem)}.csv"
