"""Settings module for site-schema-mcp."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from site_schema_mcp.consts import DATA_DSC_COEFFICIENT, PAGE_DSC_COEFFICIENT
from site_schema_mcp.ssg import SSGMatchResult


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Environment variables:
        SITE_SCHEMA_BASE_DIR: Repository root directory (required)
        SITE_SCHEMA_SSG_DIR: Site generator project directory (default: root)
        SITE_SCHEMA_PAGES_DIR: Pages directory relative to SSG_DIR (default: auto)
        SITE_SCHEMA_DATA_DIR: Data directory relative to SSG_DIR (default: auto)
        SITE_SCHEMA_PUBLISH_DIR: Build output directory to ignore
        SITE_SCHEMA_STATIC_DIR: Static assets directory to ignore
        SITE_SCHEMA_PAGE_TYPE_KEY: Frontmatter key holding the page layout
        SITE_SCHEMA_PAGE_DSC_COEFFICIENT: Page merge similarity (default: 0.75)
        SITE_SCHEMA_DATA_DSC_COEFFICIENT: Data merge similarity (default: 0.8)
        SITE_SCHEMA_LOG_LEVEL: Logging level (default: WARNING)
    """

    model_config = SettingsConfigDict(env_prefix="SITE_SCHEMA_")

    base_dir: Path
    ssg_dir: str | None = None
    pages_dir: str | None = None
    data_dir: str | None = None
    publish_dir: str | None = None
    static_dir: str | None = None
    page_type_key: str | None = None
    page_dsc_coefficient: float = Field(default=PAGE_DSC_COEFFICIENT, ge=0, le=1)
    data_dsc_coefficient: float = Field(default=DATA_DSC_COEFFICIENT, ge=0, le=1)
    log_level: str = "WARNING"

    def to_ssg_match_result(self) -> SSGMatchResult:
        """Get the configured content directories as a match result."""
        return SSGMatchResult(
            ssg_dir=self.ssg_dir,
            pages_dir=self.pages_dir,
            data_dir=self.data_dir,
            publish_dir=self.publish_dir,
            static_dir=self.static_dir,
            page_type_key=self.page_type_key,
        )


@lru_cache
def get_settings() -> Settings:
    """Get the cached settings instance.

    Settings are read from environment variables on first call and cached.
    Use get_settings.cache_clear() in tests to reset.

    Returns:
        Cached Settings instance.

    Raises:
        ValidationError: If required environment variables are not set.
    """
    return Settings()
