"""Per-request backend client, authorized with the session's token"""

import logging
from typing import Optional

import httpx
from fastapi import Depends

from community_portal.auth.session import SessionContext, get_session_context
from community_portal.backends.portal_api_client import PortalApiClient
from community_portal.config import config

logger = logging.getLogger(__name__)


def get_api_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Transport for backend calls; None means real network I/O"""
    return None


def get_portal_api(
    session: SessionContext = Depends(get_session_context),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_api_transport),
) -> PortalApiClient:
    """FastAPI dependency: backend client carrying the session token if any"""
    return PortalApiClient(
        base_url=config["backend_api_url"],
        token=session.token,
        timeout=config["backend_timeout"],
        transport=transport,
    )
