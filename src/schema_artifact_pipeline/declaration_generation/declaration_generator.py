"""Declaration generation service."""

from __future__ import annotations

import logging
from pathlib import Path

from schema_artifact_pipeline.configuration.runtime_settings import PipelineSettings
from schema_artifact_pipeline.external_commands import CommandRunner
from schema_artifact_pipeline.schema_registry import SchemaDescriptor

from .cleanup_client import MessagesClient, compose_prompt, load_prompt_template, request_cleanup
from .declaration_formatting import format_declaration
from .draft_conversion import convert_schema_to_draft
from .generation_models import FormattingProfile, GeneratedDeclaration
from .result_extraction import extract_result

logger = logging.getLogger(__name__)


class DeclarationGenerator:
    """Turns one governed schema into finished declaration text.

    Stages run in order: draft conversion, generation cleanup, result extraction,
    formatting. Writing the result is left to the caller.
    """

    def __init__(
        self,
        message_client: MessagesClient,
        *,
        workspace: Path,
        settings: PipelineSettings,
        run_command: CommandRunner | None = None,
        profile: FormattingProfile | None = None,
    ) -> None:
        self._message_client = message_client
        self._workspace = workspace
        self._settings = settings
        self._run_command = run_command
        self._profile = profile or FormattingProfile()

    def generate(self, descriptor: SchemaDescriptor) -> GeneratedDeclaration:
        logger.info("  Converting to TypeScript...")
        draft = convert_schema_to_draft(
            self._workspace / descriptor.input_path,
            converter_command=self._settings.tools.converter_command,
            run_command=self._run_command,
        )

        logger.info("  Sending for cleanup...")
        template = load_prompt_template(self._workspace / descriptor.prompt_path)
        prompt = compose_prompt(template, draft, self._settings.generation.prompt_placeholder)
        response_text = request_cleanup(self._message_client, prompt, self._settings.generation)
        extracted = extract_result(response_text)

        text = format_declaration(
            extracted,
            formatter_command=self._settings.tools.formatter_command,
            cwd=self._workspace,
            profile=self._profile,
            run_command=self._run_command,
        )
        return GeneratedDeclaration(descriptor=descriptor, text=text)
