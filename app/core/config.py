import logging
import os
from functools import lru_cache

from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


def _load_doppler_secrets():
    """Load secrets from Doppler API into environment variables.

    Must run BEFORE Settings is instantiated so pydantic can read the env vars.
    """
    token = os.getenv("DOPPLER_TOKEN")
    if not token:
        return

    try:
        import requests
        response = requests.get(
            "https://api.doppler.com/v3/configs/config/secrets/download",
            params={"format": "json"},
            auth=(token, ""),
            timeout=30,
        )
        response.raise_for_status()
        secrets = response.json()

        for key, value in secrets.items():
            if key not in os.environ:  # Don't override existing env vars
                os.environ[key] = value

        logger.info(f"Loaded {len(secrets)} secrets from Doppler")
    except Exception as e:
        logger.warning(f"Failed to load Doppler secrets: {e}")


# Load Doppler secrets into environment BEFORE Settings is instantiated
_load_doppler_secrets()


class Settings(BaseSettings):
    # Deployment
    environment: str = "development"

    # Upstream analytics backend
    flask_backend_url: str = "http://localhost:2025"
    flask_api_key: str = ""

    # Memberstack (admin API keys are per vendor environment)
    memberstack_api_key_staging: str = ""
    memberstack_api_key_production: str = ""
    memberstack_app_id: str = ""
    memberstack_api_url: str = "https://admin.memberstack.com/members"

    # Session store - Redis/KV URL, empty means in-memory (development only)
    kv_url: str = ""

    # Session cookie
    session_cookie_name: str = "mib_session"
    session_duration_hours: int = 24

    # Serve hard-coded sample addresses when address search is down
    use_sample_fallback: bool = False

    # Web
    web_app_url: str = "http://localhost:3000"
    cors_origin_pattern: str = r"^https://([a-z0-9-]+\.)?microburbs\.com\.au$"

    # Zone the upstream writes DD-MM-YYYY order dates in
    report_timezone: str = "Australia/Sydney"

    # Outbound HTTP timeout in seconds
    http_timeout: float = 30.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def session_duration_seconds(self) -> int:
        return self.session_duration_hours * 60 * 60


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
