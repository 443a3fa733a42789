"""Configuration loader service."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml

from .runtime_settings import (
    GenerationSettings,
    GitSettings,
    PathSettings,
    PipelineCredentials,
    PipelineSettings,
    StorageCredentials,
    StorageSettings,
    ToolSettings,
)

GENERATION_ENV_VARS = ("ANTHROPIC_API_KEY",)
STORAGE_ENV_VARS = (
    "R2_ACCOUNT_ID",
    "R2_ACCESS_KEY_ID",
    "R2_SECRET_ACCESS_KEY",
    "R2_BUCKET_NAME",
)
PIPELINE_ENV_VARS = GENERATION_ENV_VARS + STORAGE_ENV_VARS

# The API rejects thinking budgets below this floor.
_MIN_THINKING_BUDGET = 1024


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""


def load_pipeline_credentials(environ: Mapping[str, str]) -> PipelineCredentials:
    """Validate every environment value the schema pipeline requires."""
    values = _require_environment(environ, PIPELINE_ENV_VARS)
    return PipelineCredentials(
        generation_api_key=values["ANTHROPIC_API_KEY"],
        storage=_storage_credentials_from(values),
    )


def load_storage_credentials(environ: Mapping[str, str]) -> StorageCredentials:
    """Validate the environment values required for object storage uploads only."""
    return _storage_credentials_from(_require_environment(environ, STORAGE_ENV_VARS))


def load_settings(config_path: Path | str | None = None) -> PipelineSettings:
    """Load the optional YAML settings file, falling back to defaults."""
    if config_path is None:
        return PipelineSettings()

    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse configuration file: {exc}") from exc

    if parsed is None:
        parsed = {}

    if not isinstance(parsed, Mapping):
        raise ConfigurationError("Configuration root must be a mapping.")

    return PipelineSettings(
        path=path,
        paths=_parse_paths_section(parsed.get("paths")),
        git=_parse_git_section(parsed.get("git")),
        generation=_parse_generation_section(parsed.get("generation")),
        storage=_parse_storage_section(parsed.get("storage")),
        tools=_parse_tools_section(parsed.get("tools")),
    )


def _require_environment(environ: Mapping[str, str], names: Sequence[str]) -> dict[str, str]:
    values: dict[str, str] = {}
    for name in names:
        value = (environ.get(name) or "").strip()
        if not value:
            raise ConfigurationError(f"Missing required environment variable: {name}")
        values[name] = value
    return values


def _storage_credentials_from(values: Mapping[str, str]) -> StorageCredentials:
    return StorageCredentials(
        account_id=values["R2_ACCOUNT_ID"],
        access_key_id=values["R2_ACCESS_KEY_ID"],
        secret_access_key=values["R2_SECRET_ACCESS_KEY"],
        bucket_name=values["R2_BUCKET_NAME"],
    )


def _parse_paths_section(value: Any) -> PathSettings:
    section = _optional_mapping(value, "paths")
    defaults = PathSettings()
    schema_extension = _string_or_default(
        section.get("schema_extension"), defaults.schema_extension, "paths.schema_extension"
    )
    if not schema_extension.startswith("."):
        raise ConfigurationError("paths.schema_extension must start with a dot.")
    return PathSettings(
        schema_dir=_relative_dir(
            _string_or_default(section.get("schema_dir"), defaults.schema_dir, "paths.schema_dir"),
            "paths.schema_dir",
        ),
        types_dir=_relative_dir(
            _string_or_default(section.get("types_dir"), defaults.types_dir, "paths.types_dir"),
            "paths.types_dir",
        ),
        schema_extension=schema_extension,
        declaration_extension=_string_or_default(
            section.get("declaration_extension"),
            defaults.declaration_extension,
            "paths.declaration_extension",
        ),
        bundle_token=_string_or_default(
            section.get("bundle_token"), defaults.bundle_token, "paths.bundle_token"
        ),
    )


def _parse_git_section(value: Any) -> GitSettings:
    section = _optional_mapping(value, "git")
    defaults = GitSettings()
    return GitSettings(
        base_ref=_string_or_default(section.get("base_ref"), defaults.base_ref, "git.base_ref"),
        head_ref=_string_or_default(section.get("head_ref"), defaults.head_ref, "git.head_ref"),
    )


def _parse_generation_section(value: Any) -> GenerationSettings:
    section = _optional_mapping(value, "generation")
    defaults = GenerationSettings()
    max_tokens = _require_positive_int(
        section.get("max_tokens", defaults.max_tokens), "generation.max_tokens"
    )
    thinking_budget = _require_positive_int(
        section.get("thinking_budget_tokens", defaults.thinking_budget_tokens),
        "generation.thinking_budget_tokens",
    )
    if thinking_budget < _MIN_THINKING_BUDGET:
        raise ConfigurationError(
            f"generation.thinking_budget_tokens must be at least {_MIN_THINKING_BUDGET}."
        )
    if thinking_budget >= max_tokens:
        raise ConfigurationError(
            "generation.thinking_budget_tokens must be lower than generation.max_tokens."
        )
    return GenerationSettings(
        model=_string_or_default(section.get("model"), defaults.model, "generation.model"),
        max_tokens=max_tokens,
        temperature=_require_temperature(
            section.get("temperature", defaults.temperature), "generation.temperature"
        ),
        thinking_budget_tokens=thinking_budget,
        prompt_placeholder=_string_or_default(
            section.get("prompt_placeholder"),
            defaults.prompt_placeholder,
            "generation.prompt_placeholder",
        ),
    )


def _parse_storage_section(value: Any) -> StorageSettings:
    section = _optional_mapping(value, "storage")
    defaults = StorageSettings()
    endpoint_template = _string_or_default(
        section.get("endpoint_template"), defaults.endpoint_template, "storage.endpoint_template"
    )
    if "{account_id}" not in endpoint_template:
        raise ConfigurationError("storage.endpoint_template must contain '{account_id}'.")
    return StorageSettings(
        cache_control=_string_or_default(
            section.get("cache_control"), defaults.cache_control, "storage.cache_control"
        ),
        endpoint_template=endpoint_template,
        region=_string_or_default(section.get("region"), defaults.region, "storage.region"),
    )


def _parse_tools_section(value: Any) -> ToolSettings:
    section = _optional_mapping(value, "tools")
    defaults = ToolSettings()
    return ToolSettings(
        converter_command=_command_or_default(
            section.get("converter_command"), defaults.converter_command, "tools.converter_command"
        ),
        formatter_command=_command_or_default(
            section.get("formatter_command"), defaults.formatter_command, "tools.formatter_command"
        ),
    )


def _command_or_default(
    value: Any, default: tuple[str, ...], field_name: str
) -> tuple[str, ...]:
    if value is None:
        return default
    if isinstance(value, str):
        parts = value.split()
    elif isinstance(value, Sequence):
        parts = []
        for item in value:
            if not isinstance(item, str):
                raise ConfigurationError(f"{field_name} entries must be strings.")
            if item.strip():
                parts.append(item.strip())
    else:
        raise ConfigurationError(f"{field_name} must be a string or list of strings.")
    if not parts:
        raise ConfigurationError(f"{field_name} must not be empty.")
    return tuple(parts)


def _relative_dir(value: str, field_name: str) -> str:
    normalized = value.strip().strip("/")
    if not normalized or Path(value).is_absolute():
        raise ConfigurationError(f"{field_name} must be a relative directory.")
    return normalized


def _optional_mapping(value: Any, section_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Configuration section '{section_name}' must be a mapping.")
    return value


def _string_or_default(value: Any, default: str, field_name: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    if not stripped:
        raise ConfigurationError(f"{field_name} must not be empty.")
    return stripped


def _require_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{field_name} must be an integer.")
    if not isinstance(value, int):
        raise ConfigurationError(f"{field_name} must be an integer.")
    if value <= 0:
        raise ConfigurationError(f"{field_name} must be greater than zero.")
    return value


def _require_temperature(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ConfigurationError(f"{field_name} must be a number.")
    if not 0 <= value <= 1:
        raise ConfigurationError(f"{field_name} must be between 0 and 1.")
    return float(value)
