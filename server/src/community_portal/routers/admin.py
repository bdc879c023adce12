"""Admin pages: sign-in, registrations view and CSV export"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import RedirectResponse, Response

from community_portal.auth.session import (
    ADMIN_LOGIN_PATH,
    SessionContext,
    get_session_context,
    require_admin_session,
)
from community_portal.backends.portal_api_client import PortalApiClient, PortalApiError
from community_portal.services.csv_exporter import (
    build_registrations_csv,
    export_filename,
)
from community_portal.services.portal_api_service import get_portal_api
from community_portal.services.registration_aggregator import RegistrationAggregator
from community_portal.services.registration_events import (
    RegistrationCounter,
    get_registration_counter,
)
from community_portal.templating import templates

router = APIRouter(prefix="/admin", tags=["Admin"], include_in_schema=False)
logger = logging.getLogger(__name__)

ADMIN_HOME_PATH = "/admin"


def _safe_return_to(return_to: Optional[str]) -> str:
    # Only redirect within the admin area
    if return_to and return_to.startswith("/admin") and not return_to.startswith("//"):
        return return_to
    return ADMIN_HOME_PATH


def _redirect_to_login(request: Request) -> RedirectResponse:
    return RedirectResponse(
        url=f"{ADMIN_LOGIN_PATH}?return_to={request.url.path}",
        status_code=status.HTTP_303_SEE_OTHER,
    )


@router.get("/login")
async def login_page(request: Request, return_to: Optional[str] = None):
    return templates.TemplateResponse(
        request,
        "admin_login.html",
        {"return_to": _safe_return_to(return_to), "error": None, "email": ""},
    )


@router.post("/login")
async def login(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    return_to: Optional[str] = Form(None),
    session: SessionContext = Depends(get_session_context),
    api: PortalApiClient = Depends(get_portal_api),
):
    """Sign in against the backend and keep the token in the session"""

    def _failed(message: str, status_code: int):
        return templates.TemplateResponse(
            request,
            "admin_login.html",
            {"return_to": _safe_return_to(return_to), "error": message, "email": email},
            status_code=status_code,
        )

    try:
        result = await api.admin_login(email.strip(), password)
    except PortalApiError as e:
        status_code = e.status_code if e.status_code in (400, 401) else 502
        return _failed(e.message, status_code)

    try:
        profile = session.login(
            (result or {}).get("token"), (result or {}).get("admin")
        )
    except ValueError as e:
        logger.error(f"Admin login returned an unusable session: {e}")
        return _failed("Sign-in failed: unexpected response from server.", 502)

    if profile.role != "admin":
        session.logout()
        return _failed("This account does not have admin access.", 403)

    return RedirectResponse(
        url=_safe_return_to(return_to), status_code=status.HTTP_303_SEE_OTHER
    )


@router.post("/logout")
async def logout(session: SessionContext = Depends(get_session_context)):
    session.logout()
    return RedirectResponse(url=ADMIN_LOGIN_PATH, status_code=status.HTTP_303_SEE_OTHER)


@router.get("")
async def admin_home(
    request: Request,
    event_id: Optional[int] = None,
    page: Optional[str] = None,
    session: SessionContext = Depends(require_admin_session),
):
    """Landing page; jumps to an event's registrations or form preview"""
    if event_id is not None:
        target = "registration-form/preview" if page == "form" else "registrations"
        return RedirectResponse(
            url=f"/admin/events/{event_id}/{target}",
            status_code=status.HTTP_303_SEE_OTHER,
        )
    return templates.TemplateResponse(
        request, "admin_home.html", {"profile": session.profile}
    )


async def _event_title(event_id: int, api: PortalApiClient) -> str:
    try:
        event = await api.get_event(event_id)
    except PortalApiError as e:
        # Unpublished events are not served by GET /events/{id}
        if e.is_unauthorized:
            raise
        logger.info(f"Could not load event {event_id} for its title: {e.message}")
        return f"Event {event_id}"
    return event.title


@router.get("/events/{event_id}/registrations")
async def view_registrations(
    request: Request,
    event_id: int,
    session: SessionContext = Depends(require_admin_session),
    api: PortalApiClient = Depends(get_portal_api),
    counter: RegistrationCounter = Depends(get_registration_counter),
):
    """Member and public registrations of an event in two tables"""
    try:
        registrations = await api.get_event_registrations(event_id)
        title = await _event_title(event_id, api)
    except PortalApiError as e:
        if e.is_unauthorized:
            session.logout()
            return _redirect_to_login(request)
        logger.error(f"Failed to load registrations for event {event_id}: {e}")
        return templates.TemplateResponse(
            request,
            "registrations.html",
            {"event_id": event_id, "title": None, "view": None, "error": e.message},
            status_code=404 if e.is_not_found else 502,
        )

    return templates.TemplateResponse(
        request,
        "registrations.html",
        {
            "event_id": event_id,
            "title": title,
            "view": RegistrationAggregator(registrations).aggregate(),
            "recent_count": counter.count_for(event_id),
            "error": None,
        },
    )


@router.get("/events/{event_id}/registrations.csv")
async def export_registrations(
    request: Request,
    event_id: int,
    session: SessionContext = Depends(require_admin_session),
    api: PortalApiClient = Depends(get_portal_api),
):
    """Download all registrations of an event as one CSV file"""
    try:
        registrations = await api.get_event_registrations(event_id)
        title = await _event_title(event_id, api)
    except PortalApiError as e:
        if e.is_unauthorized:
            session.logout()
            return _redirect_to_login(request)
        status_code = 404 if e.is_not_found else 502
        raise HTTPException(status_code=status_code, detail=e.message)

    view = RegistrationAggregator(registrations).aggregate()
    filename = export_filename(title)
    logger.info(
        f"Exporting {view.total} registrations for event {event_id} as {filename}"
    )
    return Response(
        content=build_registrations_csv(view),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
