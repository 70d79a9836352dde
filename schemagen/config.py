"""Configuration models for schemagen."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from schemagen.exceptions import ConfigValidationError


class OutputFormat(str, Enum):
    """Supported schema encodings."""

    JSON = "json"
    YAML = "yaml"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class ResolverConfig(BaseModel):
    """
    How packages named by external references are located.

    Example:
    ```yaml
    resolver:
      search_paths: ["src", "vendor"]
      auto_install: false
    ```
    """

    search_paths: List[str] = Field(
        default_factory=list,
        description="Directories searched for a package before the import system",
    )
    auto_install: bool = Field(
        default=False,
        description="Install missing packages with pip when they are referenced",
    )


class GeneratorConfig(BaseModel):
    """
    Configuration for one schema generation run.

    Example:
    ```yaml
    package: myapp.models
    types: [Person, Company]
    output_path: schema.json
    output_format: json
    referenced: false
    ```
    """

    package: str = Field(description="Package (dotted name or directory) holding the entry types")
    types: List[str] = Field(description="Entry type names")
    output_path: Optional[str] = Field(default=None, description="Output file; stdout when unset")
    output_format: OutputFormat = Field(default=OutputFormat.JSON)
    referenced: bool = Field(
        default=False,
        description="Keep $ref links between definitions instead of embedding them",
    )
    strict: bool = Field(
        default=True,
        description="Fail when a reachable type has no definition after resolution",
    )
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    log_level: LogLevel = Field(default=LogLevel.INFO)
    structured_logs: bool = Field(default=False)

    @field_validator("package")
    @classmethod
    def validate_package(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("'package' must not be empty")
        return v

    @field_validator("types", mode="before")
    @classmethod
    def split_types(cls, v):
        """Accept 'A,B' as well as a list."""
        if isinstance(v, str):
            v = v.split(",")
        if isinstance(v, (list, tuple)):
            v = [str(t).strip() for t in v if str(t).strip()]
        return v

    @field_validator("types")
    @classmethod
    def validate_types(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("At least one entry type is required in 'types'")
        return list(dict.fromkeys(v))

    @field_validator("output_format", mode="before")
    @classmethod
    def normalize_format(cls, v):
        return v.lower() if isinstance(v, str) else v

    @classmethod
    def from_yaml(cls, path: str, env: Optional[str] = None) -> "GeneratorConfig":
        """Load and validate a YAML config file.

        Raises:
            ConfigValidationError: If the file contents do not validate
        """
        from schemagen.utils.config_loader import load_yaml_with_env

        data = load_yaml_with_env(path, env=env)
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigValidationError(str(e), file=path) from e
