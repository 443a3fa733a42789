"""Declaration generator tests."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest
from schema_artifact_pipeline.configuration.runtime_settings import PipelineSettings
from schema_artifact_pipeline.declaration_generation import DeclarationGenerator, GenerationError
from schema_artifact_pipeline.schema_registry import GOVERNED_SCHEMAS

MODEL = GOVERNED_SCHEMAS[0]


class _ToolRunner:
    def __init__(self) -> None:
        self.calls: list[tuple[tuple[str, ...], Path, str | None]] = []

    def __call__(self, command: Sequence[str], cwd: Path, stdin_text: str | None) -> str:
        self.calls.append((tuple(command), cwd, stdin_text))
        if command[0] == "json2ts":
            return "export interface Model { id?: string }\n"
        if command[0] == "prettier":
            return f"// formatted\n{stdin_text}\n"
        raise AssertionError(f"unexpected command {command}")


class _FakeMessagesClient:
    def __init__(self, response_text: str) -> None:
        self.messages = self
        self.requests: list[dict[str, Any]] = []
        self._response_text = response_text

    def create(self, **kwargs: Any) -> Any:
        self.requests.append(kwargs)
        return SimpleNamespace(content=[SimpleNamespace(type="text", text=self._response_text)])


def _workspace(tmp_path: Path) -> Path:
    (tmp_path / "schema").mkdir()
    (tmp_path / "schema" / "model.json").write_text("{}", encoding="utf-8")
    (tmp_path / "prompts").mkdir()
    (tmp_path / "prompts" / "model.prompt.txt").write_text(
        "Tidy the declaration.\n<d.ts></d.ts>\n", encoding="utf-8"
    )
    return tmp_path


def test_runs_conversion_cleanup_extraction_and_formatting_in_order(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.INFO, logger="schema_artifact_pipeline")
    workspace = _workspace(tmp_path)
    runner = _ToolRunner()
    client = _FakeMessagesClient("Sure.<result>export interface Model { id: string }</result>")
    generator = DeclarationGenerator(
        client, workspace=workspace, settings=PipelineSettings(), run_command=runner
    )

    declaration = generator.generate(MODEL)

    assert declaration.descriptor == MODEL
    assert declaration.text == "// formatted\nexport interface Model { id: string }\n"
    assert [call[0][0] for call in runner.calls] == ["json2ts", "prettier"]
    assert runner.calls[0][1] == workspace / "schema"
    prompt = client.requests[0]["messages"][0]["content"][0]["text"]
    assert prompt == (
        "Tidy the declaration.\n<d.ts>\nexport interface Model { id?: string }\n\n</d.ts>\n"
    )
    assert caplog.text.index("Converting to TypeScript...") < caplog.text.index(
        "Sending for cleanup..."
    )


def test_missing_result_span_stops_before_formatting(tmp_path: Path) -> None:
    workspace = _workspace(tmp_path)
    runner = _ToolRunner()
    generator = DeclarationGenerator(
        _FakeMessagesClient("export interface Model {}"),
        workspace=workspace,
        settings=PipelineSettings(),
        run_command=runner,
    )

    with pytest.raises(GenerationError, match="No <result> tag found"):
        generator.generate(MODEL)

    assert [call[0][0] for call in runner.calls] == ["json2ts"]
