from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.geo import EARTH_RADIUS


class Settings(BaseSettings):
    database_url: str = "sqlite:///./mapdesk.db"
    project_name: str = "Mapdesk API"
    api_prefix: str = ""
    port: int = 3000

    # CORS_ALLOWED_ORIGINS: JSON list, e.g. '["http://localhost:5173"]'. "*" allows any origin.
    cors_allowed_origins: list[str] = ["*"]

    # Blob store root; files are publicly served under /uploads
    upload_dir: str = "uploads"
    upload_max_bytes: int = 50 * 1024 * 1024
    # Empty list disables the extension check
    upload_allowed_extensions: list[str] = [".geojson", ".json", ".kml", ".tif", ".tiff"]

    # Unit used by POST /map/distance ("kilometers" or "miles")
    distance_units: str = "kilometers"

    # External identity provider (Supabase-compatible)
    # AUTH_PROVIDER_URL: project base URL, used to derive the JWKS URL and token issuer
    auth_provider_url: str = "http://localhost:54321"
    # AUTH_JWT_AUDIENCE: expected "aud" claim on access tokens
    auth_jwt_audience: str = "authenticated"

    log_level: str = "INFO"
    debug: bool = Field(default=False, alias="DEBUG")

    @field_validator("distance_units")
    @classmethod
    def _known_units(cls, value: str) -> str:
        if value not in EARTH_RADIUS:
            raise ValueError(f"distance_units must be one of {sorted(EARTH_RADIUS)}")
        return value

    @property
    def auth_jwks_url(self) -> str:
        """Derive JWKS URL from the provider URL."""
        return f"{self.auth_provider_url.rstrip('/')}/auth/v1/.well-known/jwks.json"

    @property
    def auth_issuer(self) -> str:
        """Derive issuer from the provider URL."""
        return f"{self.auth_provider_url.rstrip('/')}/auth/v1"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


settings = Settings()
