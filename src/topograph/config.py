"""
Runtime configuration.

Settings are read from the environment (prefix ``TOPOGRAPH_``, nested
sections separated by ``__``), e.g. ``TOPOGRAPH_TOPOLOGY__NAMESPACE=nodes``.
"""

import logging
from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigError(RuntimeError):
    """Configuration-related error."""
    pass


class LoggingSettings(BaseModel):
    level: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] = "INFO"
    format: str = "%(asctime)-20s %(name)-32s %(levelname)-8s: %(message)s"


class TopologySettings(BaseModel):
    namespace: str = Field(
        "default", min_length=1,
        description="Namespace of the topology served by the provider.",
    )
    vertex_id_prefix: str = Field(
        "v", description="Prefix of generated vertex ids."
    )
    edge_id_prefix: str = Field(
        "e", description="Prefix of generated edge ids."
    )


class ApiSettings(BaseModel):
    host: str = Field("127.0.0.1", description="Interface the API binds to.")
    port: int = Field(5000, ge=1, le=65535, description="API port.")
    debug: bool = False


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TOPOGRAPH_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    topology: TopologySettings = Field(default_factory=TopologySettings)
    api: ApiSettings = Field(default_factory=ApiSettings)


def load_settings(**overrides) -> Settings:
    """Build settings from the environment plus explicit overrides."""
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        raise ConfigError(f"Invalid topograph configuration: {exc}") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def configure_logging(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.logging.level),
        format=settings.logging.format,
    )
