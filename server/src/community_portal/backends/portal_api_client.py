"""Async client for the community portal REST backend"""

import logging
from typing import Any, Dict, Optional

import httpx

from community_portal.models.event import Event, RegistrationFormSchema
from community_portal.models.registration import EventRegistrations

logger = logging.getLogger(__name__)


class PortalApiError(RuntimeError):
    """A backend call failed, either on the network or with a non-2xx status.

    ``status_code`` is None for network failures. ``message`` is the error
    text sent by the backend when there is one, suitable for showing to the
    user as-is.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


def _error_message(response: httpx.Response) -> str:
    """Pull the human readable error out of a backend error response"""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"Request failed with status {response.status_code}"

    if isinstance(body, dict):
        if body.get("error"):
            return str(body["error"])
        # express-validator style: {"errors": [{"msg": "..."}]}
        errors = body.get("errors")
        if isinstance(errors, list) and errors:
            messages = [
                str(e.get("msg")) for e in errors if isinstance(e, dict) and e.get("msg")
            ]
            if messages:
                return "; ".join(messages)
        if body.get("message"):
            return str(body["message"])

    return f"Request failed with status {response.status_code}"


class PortalApiClient:
    """Client for the backend endpoints used by the registration pages"""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        # Injected in tests (httpx.MockTransport)
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """
        Send one request to the backend and return the decoded JSON body.

        Raises:
            PortalApiError: On network failure or a non-2xx response
        """
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._headers(),
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                response = await client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"Backend request {method} {path} failed: {e}")
            raise PortalApiError(
                "Could not reach the server. Please try again."
            ) from e

        if response.is_error:
            message = _error_message(response)
            logger.warning(
                f"Backend request {method} {path} returned "
                f"{response.status_code}: {message}"
            )
            raise PortalApiError(message, status_code=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Backend returned invalid JSON for {method} {path}")
            raise PortalApiError(
                "The server returned an unreadable response.",
                status_code=response.status_code,
            ) from e

    async def ping(self) -> None:
        """Check that the backend answers (raises PortalApiError if not)"""
        await self._request("GET", "/test")

    async def get_event(self, event_id: int) -> Event:
        """Get a published event by id"""
        data = await self._request("GET", f"/events/{event_id}")
        return Event.model_validate(data)

    async def get_event_by_slug(self, slug: str) -> Event:
        """Get the event whose public registration form lives at ``slug``"""
        data = await self._request("GET", f"/events/public/{slug}")
        return Event.model_validate(data)

    async def register_public(
        self, event_id: int, answers: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Submit an anonymous registration; ``answers`` is keyed by field id"""
        data = await self._request(
            "POST", f"/events/{event_id}/register-public", json={"formData": answers}
        )
        logger.info(f"Submitted public registration for event {event_id}")
        return data or {}

    async def get_event_registrations(self, event_id: int) -> EventRegistrations:
        """Get member and public registrations of an event (admin only)"""
        data = await self._request("GET", f"/events/{event_id}/registrations")
        return EventRegistrations.model_validate(data or {})

    async def update_registration_form(
        self, event_id: int, schema: RegistrationFormSchema
    ) -> Dict[str, Any]:
        """Persist the registration form schema on an event (admin only)"""
        data = await self._request(
            "PUT", f"/events/{event_id}/registration-form", json=schema.to_wire()
        )
        logger.info(
            f"Saved registration form for event {event_id} "
            f"({len(schema.fields)} fields, enabled={schema.enabled})"
        )
        return data or {}

    async def admin_login(self, email: str, password: str) -> Dict[str, Any]:
        """Exchange admin credentials for a token and profile"""
        return await self._request(
            "POST", "/auth/admin/login", json={"email": email, "password": password}
        )
