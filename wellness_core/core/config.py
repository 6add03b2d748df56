from pydantic import ValidationError as SettingsValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from wellness_core.core.errors import ConfigurationError

# Salts that have shipped as hardcoded fallbacks. A deployment running on one
# of these produces stable but publicly reproducible identity hashes.
_KNOWN_INSECURE_SALTS = frozenset({
    "interpretreflect-zkwv-2025",
    "changeme",
    "changeme-secret-key",
})
MIN_SALT_LENGTH = 16


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "postgresql://wellness:wellness@db:5432/wellness"
    APP_ENV: str = "development"

    # Deployment-wide identity salt. No default: it must be provisioned and
    # must never change for the lifetime of the deployment.
    ZKWV_SALT: str

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Comma-separated allowed origins, or "*" to allow all.
    CORS_ORIGINS: str = "*"

    ATTESTATION_DEFAULT_VALID_HOURS: int = 24
    THRESHOLD_PROOF_VALID_HOURS: int = 720

    # Prefix for the verification links handed out with receipts.
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


def check_salt(salt: str | None) -> str:
    """Return the salt unchanged or raise ConfigurationError."""
    if salt is None or not salt.strip():
        raise ConfigurationError("ZKWV_SALT is not set.")
    if salt.strip().lower() in _KNOWN_INSECURE_SALTS:
        raise ConfigurationError(
            "ZKWV_SALT is set to a known default value.",
            details={"setting": "ZKWV_SALT"},
        )
    if len(salt) < MIN_SALT_LENGTH:
        raise ConfigurationError(
            f"ZKWV_SALT must be at least {MIN_SALT_LENGTH} characters.",
            details={"setting": "ZKWV_SALT", "min_length": MIN_SALT_LENGTH},
        )
    return salt


def load_settings(**overrides) -> Settings:
    """
    Build Settings from the environment (plus explicit overrides) and
    validate the deployment secret. Fails fast; never defaults the salt.
    """
    try:
        settings = Settings(**overrides)
    except SettingsValidationError as exc:
        missing = [".".join(str(p) for p in e["loc"]) for e in exc.errors()]
        raise ConfigurationError(
            "Invalid or missing configuration.",
            details={"fields": missing},
        ) from exc
    check_salt(settings.ZKWV_SALT)
    return settings
