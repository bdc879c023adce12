"""Jinja2 templates shared by the HTML routers"""

from datetime import datetime
from pathlib import Path
from typing import Optional

from fastapi.templating import Jinja2Templates

template_dir = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=str(template_dir))


def format_event_date(value: Optional[datetime]) -> str:
    """e.g. "December 25, 2024 at 02:00 PM" """
    if value is None:
        return "Date to be announced"
    return value.strftime("%B %d, %Y at %I:%M %p")


templates.env.filters["event_date"] = format_event_date
