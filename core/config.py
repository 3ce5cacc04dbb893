"""
core/config.py -- Staff directory settings, read once from the environment.

Every tunable lives on Settings. Modules call get_settings() instead of
reading os.environ themselves; the lru_cache makes the first call build the
object and every later call return it.

Field names map to upper-case environment variables (token_expire_seconds ->
TOKEN_EXPIRE_SECONDS). A .env file in the working directory is read too.
List fields (ALLOWED_HOSTS, CORS_ORIGINS) take JSON arrays.

SECRET_KEY policy, checked after all fields load:
  - DEBUG=true and no key: a random key is generated and a warning logged.
    Issued tokens die with the process.
  - DEBUG unset and no key: startup fails.
  - Any key under 32 characters: startup fails. HS256 tokens are only as
    strong as the key that signs them.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or directory/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("staffdir.config")


class Settings(BaseSettings):
    """Every field has a default, so Settings() works with no .env at all."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # "" means unset; resolve_secret_key replaces it or refuses to start.
    secret_key: str = ""
    # Empty string means the SQLite file next to directory/store.py.
    database_url: str = ""

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    token_expire_seconds: int = 3600
    jwt_issuer: str = "staff-directory"
    jwt_audience: str = "staff-directory-api"

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    # bcrypt cost factor. Tests drop this to 4 to keep the suite fast.
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"
    # memory:// is per process; point this at redis:// when running several workers.
    rate_limit_storage_uri: str = "memory://"
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:5174",
    ]

    # ------------------------------------------------------------------
    # Registration and bootstrap
    # ------------------------------------------------------------------

    self_registration_enabled: bool = True

    # When set, startup seeds a Director account if none exists yet.
    bootstrap_director_password: str = ""
    bootstrap_director_email: str = "director@company.com"
    bootstrap_director_doc_number: str = "00000000000"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def resolve_secret_key(self) -> "Settings":
        if self.secret_key == "" and self.debug:
            self.secret_key = secrets.token_hex(32)
            logger.warning("DEBUG is on and SECRET_KEY is unset; signing tokens with a throwaway key.")
        elif self.secret_key == "":
            raise ValueError("SECRET_KEY must be set when DEBUG is off (or set DEBUG=true for local development).")
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings. Tests call get_settings.cache_clear() to reload."""
    return Settings()
