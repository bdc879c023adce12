#!/usr/bin/env python3
"""Community Portal - event registration web frontend"""

import re

import uvicorn
from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware
from starlette_csrf.middleware import CSRFMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from community_portal.config import config
from community_portal.logging_config import get_logger, setup_logging
from community_portal.routers.admin import router as admin_router
from community_portal.routers.health import health
from community_portal.routers.public_registration import (
    router as public_registration_router,
)
from community_portal.routers.registration_form_builder import (
    router as registration_form_builder_router,
)
from community_portal.services.registration_events import (
    RegistrationCounter,
    RegistrationEvents,
)

# Configure logging (INFO -> stdout, WARNING/ERROR -> stderr)
setup_logging()
logger = get_logger(__name__)


app = FastAPI(
    title="Community Portal",
    description="Event registration forms, registrations view and CSV export for the community portal",
    version="1.0.0",
    license_info={
        "name": "MIT",
    },
    docs_url=None,
    redoc_url=None,
)

# Registration notifications: owned by the app, handed to routers via dependencies
app.state.registration_events = RegistrationEvents()
app.state.registration_counter = RegistrationCounter()
app.state.registration_events.subscribe(app.state.registration_counter)

# Trust proxy headers so request.url reflects the original HTTPS scheme
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

session_secret_key = config["session_secret_key"]
if not session_secret_key or len(session_secret_key) < 32:
    raise RuntimeError(
        "SESSION_SECRET_KEY must be set to a secure random string (>=32 characters)."
    )

# Signed cookie holding the admin token and profile (see auth.session)
app.add_middleware(
    SessionMiddleware,
    secret_key=session_secret_key,
    max_age=8 * 3600,
    https_only=config["secure_cookies"],
    same_site="lax",
)

# CSRF protection for session-backed requests. The public registration form
# never reads the session, and logout is a plain form post.
app.add_middleware(
    CSRFMiddleware,
    secret=session_secret_key,
    sensitive_cookies={"session"},
    cookie_secure=config["secure_cookies"],
    cookie_samesite="lax",
    header_name="X-CSRFToken",
    exempt_urls=[re.compile(r"^/events/register/"), re.compile(r"^/admin/logout$")],
)

app.include_router(health)
app.include_router(public_registration_router)
app.include_router(admin_router)
app.include_router(registration_form_builder_router)


if __name__ == "__main__":
    port = config.get("app_port")
    logger.info(f"Starting Community Portal on 0.0.0.0:{port}")
    logger.info(f"Backend API: {config['backend_api_url']}")

    try:
        uvicorn.run(
            app, host="0.0.0.0", port=port, log_level=config["log_level"].lower()
        )
    except Exception as e:
        logger.error(f"Failed to start server: {e}")
        raise
