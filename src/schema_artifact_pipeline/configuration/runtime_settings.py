"""Configuration domain entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"
DEFAULT_CACHE_CONTROL = "public, max-age=3600"
DEFAULT_ENDPOINT_TEMPLATE = "https://{account_id}.r2.cloudflarestorage.com"
DEFAULT_PROMPT_PLACEHOLDER = "<d.ts></d.ts>"


@dataclass(frozen=True)
class PathSettings:
    """Workspace-relative locations of governed files."""

    schema_dir: str = "schema"
    types_dir: str = "types"
    schema_extension: str = ".json"
    declaration_extension: str = ".d.ts"
    bundle_token: str = "bundle"


@dataclass(frozen=True)
class GitSettings:
    """Commit range compared by change detection."""

    base_ref: str = "HEAD^"
    head_ref: str = "HEAD"


@dataclass(frozen=True)
class GenerationSettings:
    """Text-generation request profile used for declaration cleanup."""

    model: str = DEFAULT_MODEL
    max_tokens: int = 20000
    temperature: float = 1.0
    thinking_budget_tokens: int = 16000
    prompt_placeholder: str = DEFAULT_PROMPT_PLACEHOLDER


@dataclass(frozen=True)
class StorageSettings:
    """Object storage endpoint and cache policy."""

    cache_control: str = DEFAULT_CACHE_CONTROL
    endpoint_template: str = DEFAULT_ENDPOINT_TEMPLATE
    region: str = "auto"


@dataclass(frozen=True)
class ToolSettings:
    """Command prefixes for the external converter and formatter."""

    converter_command: tuple[str, ...] = ("json2ts",)
    formatter_command: tuple[str, ...] = ("prettier",)


@dataclass(frozen=True)
class PipelineSettings:
    """Top-level non-secret configuration aggregate."""

    path: Path | None = None
    paths: PathSettings = field(default_factory=PathSettings)
    git: GitSettings = field(default_factory=GitSettings)
    generation: GenerationSettings = field(default_factory=GenerationSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    tools: ToolSettings = field(default_factory=ToolSettings)


@dataclass(frozen=True)
class StorageCredentials:
    """Object storage account and bucket taken from the environment."""

    account_id: str
    access_key_id: str
    secret_access_key: str = field(repr=False)
    bucket_name: str

    def endpoint_url(self, settings: StorageSettings) -> str:
        return settings.endpoint_template.format(account_id=self.account_id)


@dataclass(frozen=True)
class PipelineCredentials:
    """Every secret the schema pipeline needs before it may start."""

    generation_api_key: str = field(repr=False)
    storage: StorageCredentials
