from __future__ import annotations

import re
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Annotated, Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from filesort.exceptions import ConfigError
from filesort.logging import get_logger

__all__ = [
    "FilesortConfig",
    "TemplatesConfig",
    "ContextConfig",
    "RegexVariableConfig",
    "TemplateVariableConfig",
    "VariableConfig",
    "load_config",
    "get_user_config_path",
    "get_project_config_path",
]

logger = get_logger(__name__)

PROJECT_CONFIG_NAME = "filesort.yaml"

# Project config file used by the settings sources; load_config() overrides
# it for the duration of one load when --config is given.
_project_config_path: ContextVar[Path | None] = ContextVar(
    "filesort_project_config_path", default=None
)


class TemplatesConfig(BaseModel):
    """Settings for template compilation.

    Attributes:
        cache_size: Parsed templates kept in memory (0 disables caching).
        strict_functions: Reject templates calling unregistered functions
            when they are compiled rather than when they are rendered.
    """

    cache_size: int = Field(default=256, ge=0, le=100000)
    strict_functions: bool = False


class ContextConfig(BaseModel):
    """Settings for per-file context construction."""

    include_metadata: bool = True


class RegexVariableConfig(BaseModel):
    """A variable bound to the named groups of a regex match.

    Attributes:
        name: Variable name the groups are bound under.
        pattern: Regular expression with named groups.
        input: Template rendered to produce the text that is searched.

    Example filesort.yaml:
        variables:
          - kind: regex
            name: show
            pattern: '(?P<title>.+)\\.S(?P<season>\\d+)E(?P<episode>\\d+)'
            input: "{{ stem }}"
    """

    kind: Literal["regex"] = "regex"
    name: str = Field(pattern=r"^[A-Za-z0-9_]+$")
    pattern: str
    input: str = "{{ name }}"

    @field_validator("pattern")
    @classmethod
    def check_pattern_compiles(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"invalid regular expression: {e}") from e
        return v


class TemplateVariableConfig(BaseModel):
    """A variable bound to the rendered text of a template."""

    kind: Literal["template"] = "template"
    name: str = Field(pattern=r"^[A-Za-z0-9_]+$")
    value: str


VariableConfig = Annotated[
    RegexVariableConfig | TemplateVariableConfig, Field(discriminator="kind")
]


class YamlConfigSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from YAML files."""

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file: Path | None = None,
    ):
        super().__init__(settings_cls)
        self.yaml_file = yaml_file
        self._config_data: dict[str, Any] = {}
        if yaml_file and yaml_file.exists():
            try:
                with open(yaml_file) as f:
                    loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(
                    message=f"Invalid YAML in {yaml_file}: {e}",
                    field=None,
                    value=None,
                ) from e
            if loaded is None:
                logger.warning("config_file_empty", path=str(yaml_file))
            elif not isinstance(loaded, dict):
                raise ConfigError(
                    message=f"Config file {yaml_file} must contain a mapping",
                    field=None,
                    value=type(loaded).__name__,
                )
            else:
                self._config_data = loaded

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        """Get value for a specific field from the YAML config."""
        if field_name in self._config_data:
            return self._config_data[field_name], field_name, False
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        """Return the complete config data."""
        return self._config_data


class FilesortConfig(BaseSettings):
    """Root configuration object containing all filesort settings."""

    model_config = SettingsConfigDict(
        env_prefix="FILESORT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    templates: TemplatesConfig = Field(default_factory=TemplatesConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    variables: list[VariableConfig] = Field(default_factory=list)
    workers: int = Field(default=4, ge=1, le=64)
    verbosity: Literal["error", "warning", "info", "debug"] = "warning"

    @field_validator("variables")
    @classmethod
    def check_unique_variable_names(
        cls, v: list[RegexVariableConfig | TemplateVariableConfig]
    ) -> list[RegexVariableConfig | TemplateVariableConfig]:
        seen: set[str] = set()
        for variable in v:
            if variable.name in seen:
                raise ValueError(f"duplicate variable name '{variable.name}'")
            seen.add(variable.name)
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize the order of settings sources.

        Priority (highest to lowest):
        1. Init settings (explicit keyword arguments)
        2. Environment variables (FILESORT_*)
        3. Project YAML config (./filesort.yaml or the --config file)
        4. User YAML config (~/.config/filesort/config.yaml)
        5. Model defaults

        pydantic-settings merges sources left to right; the first source to
        provide a value for a field wins.
        """
        return (
            init_settings,
            env_settings,
            YamlConfigSource(settings_cls, get_project_config_path()),
            YamlConfigSource(settings_cls, get_user_config_path()),
        )


def get_user_config_path() -> Path:
    """Get the path to the user configuration file.

    Returns:
        Path to ~/.config/filesort/config.yaml
    """
    return Path.home() / ".config" / "filesort" / "config.yaml"


def get_project_config_path() -> Path:
    """Project config in effect: the --config file, or ./filesort.yaml."""
    override = _project_config_path.get()
    if override is not None:
        return override
    return Path.cwd() / PROJECT_CONFIG_NAME


@contextmanager
def _project_config(path: Path | None) -> Iterator[None]:
    token = _project_config_path.set(path)
    try:
        yield
    finally:
        _project_config_path.reset(token)


def load_config(config_path: Path | None = None) -> FilesortConfig:
    """Load configuration with hierarchy: defaults -> user -> project -> env.

    Args:
        config_path: Optional path to the project config file. Defaults to
            ./filesort.yaml. An explicit path must exist.

    Returns:
        FilesortConfig instance with merged configuration

    Raises:
        ConfigError: If the file is missing, is not valid YAML, or the
            configuration is invalid
    """
    if config_path is not None and not config_path.exists():
        raise ConfigError(
            message=f"Config file not found: {config_path}",
            field=None,
            value=str(config_path),
        )

    with _project_config(config_path):
        if not get_project_config_path().exists():
            logger.info("no_project_config", path=str(get_project_config_path()))
        try:
            return FilesortConfig()
        except ValidationError as e:
            # Extract first error for ConfigError
            first_error = e.errors()[0]
            field = ".".join(str(loc) for loc in first_error["loc"])
            raise ConfigError(
                message=f"Invalid configuration: {first_error['msg']}",
                field=field,
                value=first_error.get("input"),
            ) from e
