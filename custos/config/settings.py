"""Root settings model for Custos configuration.

Sources, highest priority first: constructor arguments, `CUSTOS_*`
environment variables (`__` separates nested keys, e.g.
`CUSTOS_AUDIT__PENDING_BUFFER_SIZE=50`), the merged TOML layers, then the
model defaults.
"""

import copy
from typing import Any

from pydantic import Field
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from custos.config.models.access import AccessConfig
from custos.config.models.audit import AuditConfig
from custos.config.models.observability import ObservabilityConfig
from custos.config.models.storage import StorageConfig

# Merged TOML layers, installed by get_settings() before Settings() is built
_toml_config: dict[str, Any] = {}


def set_toml_config(config: dict[str, Any]) -> None:
    global _toml_config
    _toml_config = config


class TomlConfigSettingsSource(PydanticBaseSettingsSource):
    """Feeds the merged TOML layers into pydantic-settings."""

    def __init__(self, settings_cls: type[BaseSettings]) -> None:
        super().__init__(settings_cls)
        self._data = copy.deepcopy(_toml_config)

    def get_field_value(
        self, field: FieldInfo, field_name: str  # noqa: ARG002
    ) -> tuple[Any, str, bool]:
        value = self._data.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return {
            name: self._data[name]
            for name in self.settings_cls.model_fields
            if name in self._data
        }


class Settings(BaseSettings):
    """All Custos configuration sections."""

    model_config = SettingsConfigDict(
        env_prefix="CUSTOS_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="custos", description="Application name for logging")
    debug: bool = Field(default=False, description="Enable debug mode")

    storage: StorageConfig = Field(
        default_factory=StorageConfig,
        description="Where identities, delegations and audit records live",
    )
    audit: AuditConfig = Field(
        default_factory=AuditConfig,
        description="Audit trail engine and monitored entities",
    )
    access: AccessConfig = Field(
        default_factory=AccessConfig,
        description="Access scope resolution",
    )
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Logging and metrics",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls),
        )
