"""Admin JSON API for building an event's registration form, plus an HTML
preview of the draft.

Edits go to a draft kept in Redis; the event is only changed on the backend
when the draft is saved. Cancelling drops the draft, so the next open starts
again from the saved form.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field, ValidationError

from community_portal.auth.session import (
    ADMIN_LOGIN_PATH,
    SessionContext,
    require_admin_api,
    require_admin_session,
)
from community_portal.backends.portal_api_client import PortalApiClient, PortalApiError
from community_portal.config import config
from community_portal.models.field_type import FieldType
from community_portal.services.form_schema_builder import FormSchemaBuilder
from community_portal.services.portal_api_service import get_portal_api
from community_portal.services.public_registration_renderer import (
    PublicRegistrationRenderer,
)
from community_portal.services.schema_draft_store import (
    SchemaDraftStore,
    get_draft_store,
)
from community_portal.templating import templates

router = APIRouter(
    prefix="/admin/events/{event_id}/registration-form",
    tags=["Registration form builder"],
)
logger = logging.getLogger(__name__)


class AddFieldRequest(BaseModel):
    type: FieldType = Field(..., description="Kind of field to append")


class MoveFieldRequest(BaseModel):
    from_index: int = Field(..., description="Current position of the field")
    to_index: int = Field(..., description="Position the field should move to")


class UpdateOptionRequest(BaseModel):
    value: str


class SettingsRequest(BaseModel):
    enabled: Optional[bool] = Field(None, description="Accept public registrations")
    slug: Optional[str] = Field(None, description="Public registration link slug")


class DraftResponse(BaseModel):
    event_id: int
    fields: List[Dict[str, Any]]
    enabled: bool
    slug: Optional[str] = None
    public_url: Optional[str] = None


class SaveResponse(DraftResponse):
    success: bool = True
    message: str = "Registration form saved successfully"


def public_registration_url(slug: Optional[str]) -> Optional[str]:
    if not slug:
        return None
    return f"{config['app_base_url'].rstrip('/')}/events/register/{slug}"


def _draft_response(event_id: int, builder: FormSchemaBuilder) -> DraftResponse:
    data = builder.to_dict()
    return DraftResponse(
        event_id=event_id,
        fields=data["fields"],
        enabled=data["enabled"],
        slug=data["slug"],
        public_url=public_registration_url(data["slug"]),
    )


def _raise_for_backend_error(session: SessionContext, error: PortalApiError):
    """Translate a failed backend call into the HTTP error for this API"""
    if error.is_unauthorized:
        session.logout()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=error.message
        )
    if error.status_code is not None and 400 <= error.status_code < 500:
        raise HTTPException(status_code=error.status_code, detail=error.message)
    raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=error.message)


async def _open_builder(
    event_id: int,
    session: SessionContext,
    store: SchemaDraftStore,
    api: PortalApiClient,
) -> FormSchemaBuilder:
    builder = store.load(session.owner_id, event_id)
    if builder is not None:
        return builder

    try:
        event = await api.get_event(event_id)
    except PortalApiError as e:
        _raise_for_backend_error(session, e)
    return store.open(session.owner_id, event_id, event.registration_schema)


@router.get("", response_model=DraftResponse)
async def open_registration_form(
    event_id: int,
    session: SessionContext = Depends(require_admin_api),
    store: SchemaDraftStore = Depends(get_draft_store),
    api: PortalApiClient = Depends(get_portal_api),
):
    """Open the builder: the current draft, or one started from the saved form"""
    builder = await _open_builder(event_id, session, store, api)
    return _draft_response(event_id, builder)


@router.post("/fields", response_model=DraftResponse, status_code=201)
async def add_field(
    event_id: int,
    request: AddFieldRequest,
    session: SessionContext = Depends(require_admin_api),
    store: SchemaDraftStore = Depends(get_draft_store),
    api: PortalApiClient = Depends(get_portal_api),
):
    builder = await _open_builder(event_id, session, store, api)
    builder.add_field(request.type)
    store.save(session.owner_id, event_id, builder)
    return _draft_response(event_id, builder)


@router.patch("/fields/{field_id}", response_model=DraftResponse)
async def update_field(
    event_id: int,
    field_id: str,
    changes: Dict[str, Any] = Body(...),
    session: SessionContext = Depends(require_admin_api),
    store: SchemaDraftStore = Depends(get_draft_store),
    api: PortalApiClient = Depends(get_portal_api),
):
    """Merge label/placeholder/required/options changes into one field"""
    builder = await _open_builder(event_id, session, store, api)
    try:
        builder.update_field(field_id, changes)
    except ValidationError as e:
        raise HTTPException(
            status_code=400, detail=f"Invalid field changes: {e.errors()[0]['msg']}"
        )
    store.save(session.owner_id, event_id, builder)
    return _draft_response(event_id, builder)


@router.delete("/fields/{field_id}", response_model=DraftResponse)
async def remove_field(
    event_id: int,
    field_id: str,
    session: SessionContext = Depends(require_admin_api),
    store: SchemaDraftStore = Depends(get_draft_store),
    api: PortalApiClient = Depends(get_portal_api),
):
    builder = await _open_builder(event_id, session, store, api)
    builder.remove_field(field_id)
    store.save(session.owner_id, event_id, builder)
    return _draft_response(event_id, builder)


@router.post("/fields/move", response_model=DraftResponse)
async def move_field(
    event_id: int,
    request: MoveFieldRequest,
    session: SessionContext = Depends(require_admin_api),
    store: SchemaDraftStore = Depends(get_draft_store),
    api: PortalApiClient = Depends(get_portal_api),
):
    builder = await _open_builder(event_id, session, store, api)
    builder.move_field(request.from_index, request.to_index)
    store.save(session.owner_id, event_id, builder)
    return _draft_response(event_id, builder)


@router.post("/fields/{field_id}/options", response_model=DraftResponse)
async def add_option(
    event_id: int,
    field_id: str,
    session: SessionContext = Depends(require_admin_api),
    store: SchemaDraftStore = Depends(get_draft_store),
    api: PortalApiClient = Depends(get_portal_api),
):
    builder = await _open_builder(event_id, session, store, api)
    builder.add_option(field_id)
    store.save(session.owner_id, event_id, builder)
    return _draft_response(event_id, builder)


@router.put("/fields/{field_id}/options/{index}", response_model=DraftResponse)
async def update_option(
    event_id: int,
    field_id: str,
    index: int,
    request: UpdateOptionRequest,
    session: SessionContext = Depends(require_admin_api),
    store: SchemaDraftStore = Depends(get_draft_store),
    api: PortalApiClient = Depends(get_portal_api),
):
    builder = await _open_builder(event_id, session, store, api)
    builder.update_option(field_id, index, request.value)
    store.save(session.owner_id, event_id, builder)
    return _draft_response(event_id, builder)


@router.put("/settings", response_model=DraftResponse)
async def update_settings(
    event_id: int,
    request: SettingsRequest,
    session: SessionContext = Depends(require_admin_api),
    store: SchemaDraftStore = Depends(get_draft_store),
    api: PortalApiClient = Depends(get_portal_api),
):
    """Change the enabled flag and/or the public slug"""
    builder = await _open_builder(event_id, session, store, api)
    if "enabled" in request.model_fields_set and request.enabled is not None:
        builder.set_enabled(request.enabled)
    if "slug" in request.model_fields_set:
        builder.set_slug(request.slug)
    store.save(session.owner_id, event_id, builder)
    return _draft_response(event_id, builder)


@router.post("/save", response_model=SaveResponse)
async def save_registration_form(
    event_id: int,
    session: SessionContext = Depends(require_admin_api),
    store: SchemaDraftStore = Depends(get_draft_store),
    api: PortalApiClient = Depends(get_portal_api),
):
    """
    Persist the draft on the event.

    On any failure the draft is left untouched so the admin can fix it and
    save again.
    """
    builder = await _open_builder(event_id, session, store, api)

    errors = builder.validate_for_save()
    if errors:
        raise HTTPException(status_code=400, detail={"errors": errors})

    try:
        await api.update_registration_form(event_id, builder.to_schema())
    except PortalApiError as e:
        logger.warning(f"Saving registration form for event {event_id} failed: {e}")
        _raise_for_backend_error(session, e)

    store.discard(session.owner_id, event_id)
    draft = _draft_response(event_id, builder)
    return SaveResponse(**draft.model_dump())


@router.delete("", status_code=204)
async def cancel_registration_form(
    event_id: int,
    session: SessionContext = Depends(require_admin_api),
    store: SchemaDraftStore = Depends(get_draft_store),
):
    """Drop the draft; the saved form is unchanged"""
    store.discard(session.owner_id, event_id)


@router.get("/preview", include_in_schema=False)
async def preview_registration_form(
    request: Request,
    event_id: int,
    session: SessionContext = Depends(require_admin_session),
    store: SchemaDraftStore = Depends(get_draft_store),
    api: PortalApiClient = Depends(get_portal_api),
):
    """Show the draft the way visitors will see it, with submit disabled"""
    try:
        event = await api.get_event(event_id)
    except PortalApiError as e:
        if e.is_unauthorized:
            session.logout()
            return RedirectResponse(
                url=f"{ADMIN_LOGIN_PATH}?return_to={request.url.path}",
                status_code=status.HTTP_303_SEE_OTHER,
            )
        return templates.TemplateResponse(
            request,
            "registration_unavailable.html",
            {"message": e.message},
            status_code=404 if e.is_not_found else 502,
        )

    builder = store.open(session.owner_id, event_id, event.registration_schema)
    schema = builder.to_schema()
    draft_event = event.model_copy(
        update={
            "registration_fields": schema.fields,
            "registration_form_enabled": schema.enabled,
            "registration_slug": schema.slug,
        }
    )
    return templates.TemplateResponse(
        request,
        "registration_form.html",
        {
            "event": draft_event,
            "slug": schema.slug,
            "form": PublicRegistrationRenderer(draft_event).preview(),
            "preview": _draft_response(event_id, builder),
        },
    )
