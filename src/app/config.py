"""Configuration management using Pydantic settings."""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from firemap.hotspots.sources import DEFAULT_ALLOWED_PREFIXES, default_source_urls
from firemap.hotspots.reconciler import DEFAULT_OVERLAY_NAME


class BoundaryConfig(BaseModel):
    """A local farm boundary KML and its overlay name."""
    path: str
    name: str


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "FIREMAP"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Initial viewport (center of Brazil)
    map_center_lat: float = -14.2350
    map_center_lng: float = -51.9253
    map_zoom: int = 5

    # Hotspot refresh
    refresh_interval: float = 600.0  # seconds
    inpe_sources: list[str] = Field(default_factory=default_source_urls)
    hotspot_overlay_name: str = DEFAULT_OVERLAY_NAME
    retain_stale_on_failure: bool = True  # keep a failed source's last good hotspots
    fetch_timeout: float = 30.0

    # KML proxy. Empty proxy_url = call the proxy route in-process.
    proxy_url: str = ""
    proxy_allowed_prefixes: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_PREFIXES)
    )
    proxy_user_agent: str = "Mozilla/5.0 (compatible; FIREMAP/0.1.0)"
    proxy_timeout: float = 30.0

    # Static farm boundaries, loaded once at startup
    boundaries: list[BoundaryConfig] = Field(
        default_factory=lambda: [
            BoundaryConfig(
                path="data/farms/doc.kml",
                name="Propriedades Infiniti e Industrias INPASA",
            ),
        ]
    )


settings = Settings()
