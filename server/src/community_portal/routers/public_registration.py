"""Public event registration pages"""

import logging

from fastapi import APIRouter, Depends, Request

from community_portal.backends.portal_api_client import PortalApiClient, PortalApiError
from community_portal.services.portal_api_service import get_portal_api
from community_portal.services.public_registration_renderer import (
    PublicRegistrationRenderer,
)
from community_portal.services.registration_events import (
    RegistrationEvents,
    get_registration_events,
)
from community_portal.templating import templates

router = APIRouter(include_in_schema=False)

logger = logging.getLogger(__name__)


def _event_unavailable(request: Request, error: PortalApiError):
    """Page shown when the event behind a slug cannot be loaded"""
    if error.is_not_found:
        status_code = 404
        message = "The event you are looking for does not exist or registration is not available."
    else:
        status_code = 502
        message = error.message
    return templates.TemplateResponse(
        request,
        "registration_unavailable.html",
        {"message": message},
        status_code=status_code,
    )


@router.get("/events/register/{slug}")
async def serve_registration_form(
    request: Request,
    slug: str,
    api: PortalApiClient = Depends(get_portal_api),
):
    """Serve the registration form for an event's public slug"""
    try:
        event = await api.get_event_by_slug(slug)
    except PortalApiError as e:
        logger.info(f"Registration form for slug '{slug}' unavailable: {e.message}")
        return _event_unavailable(request, e)

    renderer = PublicRegistrationRenderer(event)
    return templates.TemplateResponse(
        request,
        "registration_form.html",
        {"event": event, "slug": slug, "form": renderer.render()},
    )


@router.post("/events/register/{slug}")
async def submit_registration_form(
    request: Request,
    slug: str,
    api: PortalApiClient = Depends(get_portal_api),
    events: RegistrationEvents = Depends(get_registration_events),
):
    """Handle a registration form post"""
    try:
        event = await api.get_event_by_slug(slug)
    except PortalApiError as e:
        logger.info(f"Registration for slug '{slug}' refused: {e.message}")
        return _event_unavailable(request, e)

    renderer = PublicRegistrationRenderer(event, events=events)
    renderer.load_posted_form(await request.form())

    result = await renderer.submit(api)
    if result.success:
        logger.info(f"Registration submitted for event {event.id} via '{slug}'")
        return templates.TemplateResponse(
            request, "registration_success.html", {"event": event}
        )

    # Re-render with everything the visitor entered
    return templates.TemplateResponse(
        request,
        "registration_form.html",
        {
            "event": event,
            "slug": slug,
            "form": renderer.render(errors=result.errors, message=result.message),
        },
        status_code=result.status_code or 400,
    )
