"""Observable for registration activity, owned by the application.

Components that need to react to a new registration (counters, logging,
notifications) subscribe here instead of reaching for module-level hooks.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

from fastapi import Request

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistrationSubmitted:
    event_id: int
    event_title: str
    answers: Dict[str, Any]
    submitted_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


Listener = Callable[[RegistrationSubmitted], None]


class RegistrationEvents:
    """Synchronous publish/subscribe channel for registration notifications"""

    def __init__(self):
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a function that unsubscribes it"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, notice: RegistrationSubmitted) -> None:
        # A failing listener must not turn a stored registration into an error
        for listener in list(self._listeners):
            try:
                listener(notice)
            except Exception:
                logger.exception(
                    f"Registration listener {listener!r} failed for event "
                    f"{notice.event_id}"
                )


class RegistrationCounter:
    """Running count of public registrations per event since process start"""

    def __init__(self):
        self.counts: Dict[int, int] = {}

    def __call__(self, notice: RegistrationSubmitted) -> None:
        self.counts[notice.event_id] = self.counts.get(notice.event_id, 0) + 1
        logger.info(
            f"Public registration received for '{notice.event_title}' "
            f"(event {notice.event_id}, {self.counts[notice.event_id]} this session)"
        )

    def count_for(self, event_id: int) -> int:
        return self.counts.get(event_id, 0)


def get_registration_events(request: Request) -> RegistrationEvents:
    """FastAPI dependency: the application's registration observable"""
    return request.app.state.registration_events


def get_registration_counter(request: Request) -> RegistrationCounter:
    """FastAPI dependency: per-process counter subscribed to the observable"""
    return request.app.state.registration_counter
