"""Runtime settings for dbt-dispatch.

Settings come from the environment (Cloud Run injects them, the GitHub
token is mounted from Secret Manager):

    GITHUB_TOKEN=ghp_...                    # or DBT_DISPATCH_GITHUB_TOKEN
    DBT_DISPATCH_GITHUB_OWNER=ORCA-Analytics
    DBT_DISPATCH_GITHUB_REPO=orca-dbt
    DBT_DISPATCH_PROJECT=orcaanalytics
    DBT_DISPATCH_CATALOG_PATH=/etc/dispatch/catalog.yml   # optional
    DBT_DISPATCH_DRY_RUN=false
    PORT=8080
    LOG_LEVEL=INFO
"""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dbt_dispatch.catalog import CATALOG, Catalog
from dbt_dispatch.plan import MODELS_ROOT, TEMPLATES_ROOT

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    """Dispatcher configuration."""

    # GitHub repository_dispatch target
    github_token: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("DBT_DISPATCH_GITHUB_TOKEN", "GITHUB_TOKEN"),
    )
    github_owner: str = "ORCA-Analytics"
    github_repo: str = "orca-dbt"
    github_api_url: str = "https://api.github.com"
    event_type: str = "bq_dataset_created"
    timeout_seconds: float = 30.0

    # Plan resolution
    project: str = "orcaanalytics"  # Passed to templates as vars.project
    templates_root: str = TEMPLATES_ROOT
    models_root: str = MODELS_ROOT
    catalog_path: Path | None = None  # YAML catalog replacing the built-in one

    # Resolve and log, but never call GitHub
    dry_run: bool = False

    # Service
    host: str = "0.0.0.0"
    port: int = Field(default=8080, validation_alias=AliasChoices("DBT_DISPATCH_PORT", "PORT"))
    log_level: str = Field(
        default="INFO", validation_alias=AliasChoices("DBT_DISPATCH_LOG_LEVEL", "LOG_LEVEL")
    )

    model_config = SettingsConfigDict(
        env_prefix="DBT_DISPATCH_",
        env_file=None,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("github_owner", "github_repo")
    @classmethod
    def validate_github_name(cls, v: str) -> str:
        if not re.match(r"^[\w.-]+$", v):
            raise ValueError(f"Invalid GitHub owner/repo name '{v}'")
        return v

    @field_validator("github_api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level '{v}'. Valid: {list(LOG_LEVELS)}")
        return level

    @property
    def repo_slug(self) -> str:
        """owner/repo of the dispatch target."""
        return f"{self.github_owner}/{self.github_repo}"

    @property
    def dispatch_url(self) -> str:
        return f"{self.github_api_url}/repos/{self.repo_slug}/dispatches"

    def load_catalog(self) -> Catalog:
        """The configured catalog, falling back to the built-in table.

        Raises:
            CatalogError: If the configured catalog file is invalid
        """
        if self.catalog_path is None:
            return CATALOG
        return Catalog.from_file(self.catalog_path)


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, read from the environment once."""
    return Settings()
