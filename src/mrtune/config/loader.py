"""Document loader for mrtune.

Configuration, profile, cluster, and input-spec documents are YAML files
validated with pydantic. This module holds the shared error hierarchy and
the load/validate/save plumbing; the model modules build their own
``load_*`` / ``save_*`` helpers on top of it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, TypeVar

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .configuration import Configuration

ModelT = TypeVar("ModelT", bound=BaseModel)


class ConfigError(Exception):
    """Base exception for document and configuration errors."""

    pass


class ConfigFileNotFoundError(ConfigError):
    """Raised when a document file is not found."""

    pass


class ConfigParseError(ConfigError):
    """Raised when a document cannot be parsed."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when document validation fails."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []


class ConfigurationDocument(BaseModel):
    """On-disk form of a job configuration.

    Example YAML::

        name: wordcount
        properties:
          mapred.reduce.tasks: 4
          io.sort.mb: 200
    """

    model_config = ConfigDict(extra="forbid")

    name: str = ""
    properties: dict[str, str | int | float | bool] = Field(default_factory=dict)

    @field_validator("properties", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return {} if v is None else v


def load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file and return as dictionary.

    Args:
        path: Path to YAML file

    Returns:
        Dictionary containing parsed YAML

    Raises:
        ConfigFileNotFoundError: If file doesn't exist
        ConfigParseError: If YAML parsing fails or the top level is not a mapping
    """
    if not path.exists():
        raise ConfigFileNotFoundError(f"File not found: {path}")

    try:
        with open(path) as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigParseError(f"Failed to parse YAML: {e}")  # noqa: B904

    if not content:
        return {}
    if not isinstance(content, dict):
        raise ConfigParseError(f"Expected a mapping at the top level of {path}")
    return content


def save_yaml(data: dict[str, Any], path: str | Path) -> None:
    """Write a dictionary as block-style YAML, preserving key order."""
    with open(Path(path), "w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, indent=2)


def validate_document(model: type[ModelT], data: dict[str, Any], what: str) -> ModelT:
    """Validate parsed YAML against a pydantic model.

    Raises:
        ConfigValidationError: With one ``  - loc: msg`` line per problem
    """
    try:
        return model.model_validate(data)
    except ValidationError as e:
        errors = e.errors()
        error_messages = []
        for err in errors:
            loc = ".".join(str(x) for x in err["loc"])
            msg = err["msg"]
            error_messages.append(f"  - {loc}: {msg}")

        raise ConfigValidationError(  # noqa: B904
            f"{what} validation failed:\n" + "\n".join(error_messages),
            errors=[dict(e) for e in errors],  # type: ignore[call-overload]
        )


def load_document(model: type[ModelT], path: str | Path, what: str) -> ModelT:
    """Load and validate a YAML document.

    Raises:
        ConfigFileNotFoundError: If file doesn't exist
        ConfigParseError: If YAML parsing fails
        ConfigValidationError: If validation fails
    """
    return validate_document(model, load_yaml(Path(path)), what)


def save_document(document: BaseModel, path: str | Path) -> None:
    save_yaml(document.model_dump(mode="json", exclude_defaults=False), path)


def load_configuration(path: str | Path) -> tuple[Configuration, str]:
    """Load a job configuration document.

    Returns:
        The configuration and the job name recorded in the document
    """
    document = load_document(ConfigurationDocument, path, "Configuration")
    return Configuration(document.properties), document.name


def configuration_document(conf: Configuration, name: str = "") -> dict[str, Any]:
    return {"name": name, "properties": conf.to_dict()}


def dump_configuration(conf: Configuration, name: str = "") -> str:
    """Render a configuration document as YAML text."""
    return yaml.safe_dump(
        configuration_document(conf, name),
        default_flow_style=False,
        sort_keys=False,
        indent=2,
    )


def save_configuration(conf: Configuration, path: str | Path, name: str = "") -> None:
    """Save a job configuration document to a YAML file."""
    save_yaml(configuration_document(conf, name), path)
