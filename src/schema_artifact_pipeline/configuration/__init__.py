"""Configuration domain exports."""

from .config_scaffold_builder import (
    DEFAULT_CONFIG_FILENAME,
    build_placeholder_configuration,
    write_placeholder_configuration,
)
from .loader import (
    PIPELINE_ENV_VARS,
    STORAGE_ENV_VARS,
    ConfigurationError,
    load_pipeline_credentials,
    load_settings,
    load_storage_credentials,
)
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

__all__ = [
    "GenerationSettings",
    "GitSettings",
    "PathSettings",
    "PipelineCredentials",
    "PipelineSettings",
    "StorageCredentials",
    "StorageSettings",
    "ToolSettings",
    "ConfigurationError",
    "PIPELINE_ENV_VARS",
    "STORAGE_ENV_VARS",
    "load_pipeline_credentials",
    "load_settings",
    "load_storage_credentials",
    "DEFAULT_CONFIG_FILENAME",
    "build_placeholder_configuration",
    "write_placeholder_configuration",
]
