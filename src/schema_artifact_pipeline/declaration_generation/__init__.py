"""Declaration generation exports."""

from .cleanup_client import (
    MessagesClient,
    compose_prompt,
    create_message_client,
    load_prompt_template,
    request_cleanup,
)
from .declaration_formatting import format_declaration, formatter_arguments
from .declaration_generator import DeclarationGenerator
from .draft_conversion import CONVERTER_OPTIONS, convert_schema_to_draft
from .generation_models import FormattingProfile, GeneratedDeclaration, GenerationError
from .result_extraction import extract_result

__all__ = [
    "CONVERTER_OPTIONS",
    "DeclarationGenerator",
    "FormattingProfile",
    "GeneratedDeclaration",
    "GenerationError",
    "MessagesClient",
    "compose_prompt",
    "convert_schema_to_draft",
    "create_message_client",
    "extract_result",
    "format_declaration",
    "formatter_arguments",
    "load_prompt_template",
    "request_cleanup",
]
