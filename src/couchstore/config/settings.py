"""Application settings — Pydantic-based configuration with YAML and env var support.

Configuration is loaded from (in order of precedence):
  1. Keyword arguments
  2. Environment variables (COUCHSTORE_ prefix)
  3. .env file
  4. YAML config file (if specified)
  5. Default values
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, YamlConfigSettingsSource


class CouchSettings(BaseModel):
    """CouchDB server connection."""

    url: str = Field(default="http://localhost:5984", description="CouchDB server URL")
    username: str | None = Field(default=None, description="Basic-auth username")
    password: str | None = Field(default=None, description="Basic-auth password")
    timeout: float = Field(default=30.0, gt=0, description="HTTP request timeout in seconds")

    @field_validator("url")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        return v.rstrip("/")


class StoreSettings(BaseModel):
    """Defaults applied to adapters built from settings."""

    database: str | None = Field(default=None, description="Database the adapter binds to")
    id_property: str = Field(default="id", description="Record field holding the identity")
    view: str | None = Field(default=None, description="View to query instead of scanning all documents")
    view_options: dict[str, Any] = Field(default_factory=dict, description="Options passed with the view query")


class ObservabilitySettings(BaseModel):
    """Observability configuration."""

    log_level: str = Field(default="info", description="Log level: debug, info, warning, error")
    log_format: str = Field(default="json", description="Log format: json, console")


class Settings(BaseSettings):
    """Root settings.

    Configuration is loaded from environment variables with the COUCHSTORE_ prefix.
    Nested settings use double underscores.

    Example:
        COUCHSTORE_COUCH__URL=http://couch.internal:5984
        COUCHSTORE_STORE__DATABASE=articles
        COUCHSTORE_STORE__ID_PROPERTY=_id
    """

    model_config = {
        "env_prefix": "COUCHSTORE_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "yaml_file": None,
    }

    couch: CouchSettings = Field(default_factory=CouchSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Settings:
        """Load settings from a YAML configuration file.

        Values from the YAML file are used as defaults; environment variables
        still take precedence.

        Args:
            path: Path to the YAML config file.

        Returns:
            Populated Settings instance.
        """
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        bound = type(cls.__name__, (cls,), {"model_config": {**cls.model_config, "yaml_file": config_path}})
        return bound()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )
