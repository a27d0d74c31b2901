"""Configuration settings for the docindex server."""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# Default byte budget for the resource cache (~25 MB of module source).
DEFAULT_MAX_CACHE_SIZE = 25_000_000


class Settings(BaseSettings):
    """docindex configuration.

    Environment variables:
    - MAX_CACHE_SIZE: Resource cache byte budget (default: 25000000).
        Empty, non-numeric or non-positive values fall back to the default.
    - STORAGE_URL: Package storage bucket holding meta.json/versions.json
    - API_URL: Module API used for package descriptions
    - REGISTRY_HOST: Host modules are documented from (default: https://deno.land)
    - STATIC_DIR: Directory of pre-built entries/index snapshots
    - DENO_PATH: Executable used by the analyzer (default: deno)
    - ANALYZER_TIMEOUT: Analyzer subprocess timeout in seconds (default: 120)
    - HTTP_TIMEOUT: Timeout for registry and module fetches (default: 30)
    """

    # Resource cache
    max_cache_size: int = DEFAULT_MAX_CACHE_SIZE

    # Registry
    storage_url: str = (
        "http://deno-registry2-prod-storagebucket-b3a31d16"
        ".s3-website-us-east-1.amazonaws.com/"
    )
    api_url: str = "https://api.deno.land/modules/"
    registry_host: str = "https://deno.land"

    # Snapshots
    static_dir: str = "static"

    # Analyzer
    deno_path: str = "deno"
    analyzer_timeout: int = 120

    # HTTP
    http_timeout: float = 30.0

    # Logging
    log_level: str = "INFO"

    model_config = {"env_prefix": "", "case_sensitive": False}

    @field_validator("max_cache_size", mode="before")
    @classmethod
    def _fallback_cache_size(cls, value: object) -> int:
        """Read MAX_CACHE_SIZE leniently; unusable values mean the default."""
        try:
            size = int(str(value).strip())
        except (TypeError, ValueError):
            return DEFAULT_MAX_CACHE_SIZE
        return size if size > 0 else DEFAULT_MAX_CACHE_SIZE

    def get_static_dir(self) -> Path:
        """Get resolved snapshot directory."""
        return Path(self.static_dir).expanduser()


settings = Settings()
