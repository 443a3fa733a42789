"""Configuration scaffold generation helpers."""

from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_FILENAME = "pipeline.yaml"

_CONFIG_SCAFFOLD_TEMPLATE = """# Pipeline settings for schema-artifact-pipeline.
# Every value below is the built-in default; delete the lines you do not change.
# Credentials are never read from this file. Export them instead:
#   ANTHROPIC_API_KEY, R2_ACCOUNT_ID, R2_ACCESS_KEY_ID, R2_SECRET_ACCESS_KEY, R2_BUCKET_NAME

paths:
  # Directories are relative to the --workspace root.
  schema_dir: "schema"
  types_dir: "types"
  schema_extension: ".json"
  declaration_extension: ".d.ts"
  # Files whose path contains this token are derived bundles and never processed.
  bundle_token: "bundle"

git:
  # Change detection compares these two revisions.
  base_ref: "HEAD^"
  head_ref: "HEAD"

generation:
  model: "claude-sonnet-4-5-20250929"
  max_tokens: 20000
  temperature: 1
  # Must be at least 1024 and lower than max_tokens.
  thinking_budget_tokens: 16000
  # The draft declaration replaces the first occurrence of this span in each prompt.
  prompt_placeholder: "<d.ts></d.ts>"

storage:
  cache_control: "public, max-age=3600"
  endpoint_template: "https://{account_id}.r2.cloudflarestorage.com"
  region: "auto"

tools:
  # Use ["npx", "json2ts"] / ["npx", "prettier"] when the tools are not on PATH.
  converter_command: ["json2ts"]
  formatter_command: ["prettier"]
"""


def build_placeholder_configuration() -> str:
    """Build a YAML settings file listing every default with inline guidance."""
    return _CONFIG_SCAFFOLD_TEMPLATE


def write_placeholder_configuration(output_path: Path | str) -> Path:
    """Write the settings scaffold to the requested output path.

    Args:
      output_path: Destination file path for the scaffold.

    Returns:
      The resolved destination path.

    Raises:
      FileExistsError: If the destination file already exists.
      OSError: If writing the scaffold fails.
    """
    destination = Path(output_path)
    if destination.exists():
        raise FileExistsError(
            f"Pipeline configuration file already exists: {destination.resolve()}"
        )
    destination.write_text(build_placeholder_configuration(), encoding="utf-8")
    return destination.resolve()
