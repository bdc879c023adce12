"""Configuration loader for the community portal frontend"""

import os
from pathlib import Path

from dotenv import load_dotenv

server_dir = Path(__file__).parent.parent.parent
env_path = server_dir / ".env"

# Load .env file if it exists. For local development only.
if env_path.exists():
    load_dotenv(env_path)

# Configuration dictionary - set once at initialization
config = {
    # Base URL of the portal REST backend, including the /api prefix
    "backend_api_url": os.getenv("BACKEND_API_URL", "http://localhost:5000/api"),
    "backend_timeout": float(os.getenv("BACKEND_TIMEOUT", "10")),
    "redis_url": os.getenv("REDIS_URL", "redis://localhost:6379/0"),
    "session_secret_key": os.getenv("SESSION_SECRET_KEY"),
    # Cookies are HTTPS-only unless explicitly disabled (local HTTP dev, tests)
    "secure_cookies": os.getenv("SECURE_COOKIES", "true").lower() == "true",
    # Sliding expiry for unsaved registration form drafts
    "draft_ttl_seconds": int(os.getenv("DRAFT_TTL_SECONDS", "3600")),
    "log_level": os.getenv("LOG_LEVEL", "INFO"),
    "app_port": int(os.getenv("APP_PORT", "3000")),
    "app_base_url": os.getenv("APP_BASE_URL", "http://localhost:3000"),
    "environment": os.getenv("ENVIRONMENT"),
}
