"""Shared test configuration and fixtures for Community Portal tests"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from tests.config import test_config  # sets the test environment first
from tests.helpers import sample_fields
from community_portal.main import app
from community_portal.services.portal_api_service import get_api_transport
from community_portal.services.registration_events import (
    RegistrationCounter,
    RegistrationEvents,
)
from community_portal.state import get_redis

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class InMemoryRedis:
    """The subset of the redis client used by the draft store"""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def setex(self, key: str, ttl: int, value: str) -> bool:
        self.data[key] = value
        self.ttls[key] = ttl
        return True

    def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    def ping(self) -> bool:
        return True


class FakePortalBackend:
    """
    In-process stand-in for the portal REST backend.

    Serves the endpoints the frontend calls and records every request so tests
    can assert on what was sent.
    """

    def __init__(self):
        self.events: Dict[int, Dict[str, Any]] = {}
        self.member_registrations: Dict[int, List[Dict[str, Any]]] = {}
        self.public_registrations: Dict[int, List[Dict[str, Any]]] = {}
        self.requests: List[httpx.Request] = []
        self.fail_with: Optional[httpx.Response] = None
        self.unreachable = False
        self.admin_role = "admin"

    def add_event(self, event_id: int, **overrides) -> Dict[str, Any]:
        event = {
            "id": event_id,
            "title": f"Event {event_id}",
            "description": "A community gathering",
            "eventDate": "2026-12-25T14:00:00Z",
            "venue": "Community Hall",
            "status": "published",
            "visibility": "public",
            "registrationFormEnabled": True,
            "registrationSlug": f"event-{event_id}",
            "registrationFields": sample_fields(),
        }
        event.update(overrides)
        self.events[event_id] = event
        return event

    def requests_to(self, method: str, path: str) -> List[httpx.Request]:
        return [
            r
            for r in self.requests
            if r.method == method and r.url.path == f"/api{path}"
        ]

    def _authorized(self, request: httpx.Request) -> bool:
        expected = f"Bearer {test_config['admin_token']}"
        return request.headers.get("Authorization") == expected

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.unreachable:
            raise httpx.ConnectError("Connection refused", request=request)
        if self.fail_with is not None:
            return self.fail_with

        path = request.url.path.removeprefix("/api")
        method = request.method

        if method == "GET" and path == "/test":
            return httpx.Response(200, json={"message": "Backend is working"})

        if method == "POST" and path == "/auth/admin/login":
            return self._login(json.loads(request.content))

        match = re.fullmatch(r"/events/public/([^/]+)", path)
        if method == "GET" and match:
            for event in self.events.values():
                if event.get("registrationSlug") == match.group(1):
                    return httpx.Response(200, json=event)
            return httpx.Response(404, json={"error": "Event not found"})

        match = re.fullmatch(r"/events/(\d+)(/.*)?", path)
        if not match:
            return httpx.Response(404, json={"error": "Not found"})
        event_id, rest = int(match.group(1)), match.group(2) or ""
        event = self.events.get(event_id)
        if event is None:
            return httpx.Response(404, json={"error": "Event not found"})

        if method == "GET" and rest == "":
            return httpx.Response(200, json=event)
        if method == "POST" and rest == "/register-public":
            return self._register_public(event, json.loads(request.content))
        if not self._authorized(request):
            return httpx.Response(401, json={"error": "Access denied. No token provided."})
        if method == "GET" and rest == "/registrations":
            return httpx.Response(
                200,
                json={
                    "memberRegistrations": self.member_registrations.get(event_id, []),
                    "publicRegistrations": self.public_registrations.get(event_id, []),
                },
            )
        if method == "PUT" and rest == "/registration-form":
            return self._update_form(event, json.loads(request.content))
        return httpx.Response(404, json={"error": "Not found"})

    def _login(self, body: Dict[str, Any]) -> httpx.Response:
        if (
            body.get("email") != test_config["admin_email"]
            or body.get("password") != test_config["admin_password"]
        ):
            return httpx.Response(401, json={"error": "Invalid credentials"})
        return httpx.Response(
            200,
            json={
                "token": test_config["admin_token"],
                "admin": {
                    "id": 7,
                    "email": test_config["admin_email"],
                    "fullName": "Portal Admin",
                    "role": self.admin_role,
                },
            },
        )

    def _register_public(self, event: Dict[str, Any], body: Dict[str, Any]):
        if not event.get("registrationFormEnabled"):
            return httpx.Response(
                400, json={"error": "Registration is not enabled for this event"}
            )
        registrations = self.public_registrations.setdefault(event["id"], [])
        registrations.append(
            {
                "id": len(registrations) + 1,
                "eventId": event["id"],
                "formData": event["registrationFields"],
                "registrantData": body["formData"],
                "createdAt": "2026-10-01T09:30:00Z",
            }
        )
        return httpx.Response(
            201, json={"message": "Registration successful", "id": len(registrations)}
        )

    def _update_form(self, event: Dict[str, Any], body: Dict[str, Any]):
        slug = body.get("registrationSlug")
        for other in self.events.values():
            if other is not event and slug and other.get("registrationSlug") == slug:
                return httpx.Response(
                    400, json={"error": "Registration slug already exists"}
                )
        event["registrationFields"] = body["registrationFields"]
        event["registrationFormEnabled"] = body["registrationFormEnabled"]
        event["registrationSlug"] = slug
        return httpx.Response(
            200, json={"message": "Registration form updated successfully"}
        )


@pytest.fixture
def backend():
    """Fake backend with one published event (id 1, slug "event-1")"""
    fake = FakePortalBackend()
    fake.add_event(1, title="Spring Picnic")
    return fake


@pytest.fixture
def transport(backend):
    return httpx.MockTransport(backend.handler)


@pytest.fixture
def redis_client():
    """In-memory replacement for the shared Redis client"""
    return InMemoryRedis()


@pytest.fixture
def client(backend, transport, redis_client):
    """Test client wired to the fake backend and in-memory Redis"""

    # Store original overrides to restore them later
    original_overrides = app.dependency_overrides.copy()
    original_events = app.state.registration_events
    original_counter = app.state.registration_counter

    app.dependency_overrides[get_api_transport] = lambda: transport
    app.dependency_overrides[get_redis] = lambda: redis_client

    # Fresh notification state per test
    app.state.registration_events = RegistrationEvents()
    app.state.registration_counter = RegistrationCounter()
    app.state.registration_events.subscribe(app.state.registration_counter)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    app.dependency_overrides.update(original_overrides)
    app.state.registration_events = original_events
    app.state.registration_counter = original_counter


@pytest.fixture
def admin_client(client):
    """Test client signed in as an admin"""
    response = client.post(
        "/admin/login",
        data={
            "email": test_config["admin_email"],
            "password": test_config["admin_password"],
        },
        follow_redirects=False,
    )
    assert response.status_code == 303
    assert client.cookies.get("csrftoken")
    return client
