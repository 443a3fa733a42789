"""Schema pipeline run use-case tests."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest
from botocore.exceptions import ClientError
from schema_artifact_pipeline.configuration.loader import PIPELINE_ENV_VARS
from schema_artifact_pipeline.external_commands import CommandExecutionError
from schema_artifact_pipeline.run_execution import (
    PipelineState,
    RunExecutionError,
    RunRequest,
    SchemaStatus,
    execute_schema_pipeline_run,
)

FULL_ENV = {
    "ANTHROPIC_API_KEY": "sk-test",
    "R2_ACCOUNT_ID": "account-123",
    "R2_ACCESS_KEY_ID": "access-key",
    "R2_SECRET_ACCESS_KEY": "secret-key",
    "R2_BUCKET_NAME": "schemas",
}
BASE = "https://schemas.example.com"


class _PipelineRunner:
    """Answers the git, converter and formatter commands of one run."""

    def __init__(self, changed_files: str = "", git_error: Exception | None = None) -> None:
        self.changed_files = changed_files
        self.git_error = git_error
        self.calls: list[tuple[tuple[str, ...], Path, str | None]] = []

    def __call__(self, command: Sequence[str], cwd: Path, stdin_text: str | None) -> str:
        self.calls.append((tuple(command), cwd, stdin_text))
        program = command[0]
        if program == "git":
            if self.git_error is not None:
                raise self.git_error
            return self.changed_files
        if program == "json2ts":
            return f"export interface {Path(command[1]).stem.title()} {{}}\n"
        if program == "prettier":
            return f"{stdin_text}\n"
        raise AssertionError(f"unexpected command {command}")

    def programs(self) -> list[str]:
        return [call[0][0] for call in self.calls]

    def converted(self) -> list[str]:
        return [call[0][1] for call in self.calls if call[0][0] == "json2ts"]


class _FakeMessagesClient:
    def __init__(self, omit_result_for: tuple[str, ...] = ()) -> None:
        self.messages = self
        self.prompts: list[str] = []
        self._omit_result_for = omit_result_for

    def create(self, **kwargs: Any) -> Any:
        prompt = kwargs["messages"][0]["content"][0]["text"]
        self.prompts.append(prompt)
        if any(f"interface {name.title()} " in prompt for name in self._omit_result_for):
            text = "I could not finish the declaration."
        else:
            draft = prompt.split("<d.ts>")[1].split("</d.ts>")[0]
            text = f"Cleaned.\n<result>{draft}</result>"
        return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])


class _FakeStorageClient:
    def __init__(self, error: Exception | None = None) -> None:
        self.puts: list[dict[str, Any]] = []
        self._error = error

    def put_object(self, **kwargs: Any) -> None:
        self.puts.append(kwargs)
        if self._error is not None:
            raise self._error

    def keys(self) -> list[str]:
        return [put["Key"] for put in self.puts]


class _Clients:
    def __init__(
        self,
        messages_client: _FakeMessagesClient | None = None,
        storage_client: _FakeStorageClient | None = None,
    ) -> None:
        self.messages_client = messages_client or _FakeMessagesClient()
        self.storage_client = storage_client or _FakeStorageClient()
        self.message_client_requests: list[str] = []
        self.storage_client_requests: list[Any] = []

    def message_client_factory(self, api_key: str) -> _FakeMessagesClient:
        self.message_client_requests.append(api_key)
        return self.messages_client

    def storage_client_factory(self, credentials: Any, settings: Any) -> _FakeStorageClient:
        self.storage_client_requests.append((credentials, settings))
        return self.storage_client


def _write_json(path: Path, document: Any) -> None:
    path.write_text(json.dumps(document, indent=2), encoding="utf-8")


def _workspace(tmp_path: Path, *, model: dict[str, Any] | None = None) -> Path:
    schema_dir = tmp_path / "schema"
    schema_dir.mkdir()
    _write_json(
        schema_dir / "field.json",
        {"$id": f"{BASE}/field.json", "type": "object", "properties": {"name": {"type": "string"}}},
    )
    _write_json(
        schema_dir / "model.json",
        model
        or {
            "$id": f"{BASE}/model.json",
            "type": "object",
            "properties": {"field": {"$ref": "field.json"}},
        },
    )
    _write_json(schema_dir / "content.json", {"$id": f"{BASE}/content.json", "type": "string"})
    _write_json(schema_dir / "model.bundled.json", {"stale": True})
    prompts_dir = tmp_path / "prompts"
    prompts_dir.mkdir()
    for name in ("model", "content"):
        (prompts_dir / f"{name}.prompt.txt").write_text(
            "Clean up the declaration.\n<d.ts></d.ts>\nAnswer in <result> tags.\n",
            encoding="utf-8",
        )
    return tmp_path


def _run(
    workspace: Path,
    runner: _PipelineRunner,
    clients: _Clients,
    *,
    environ: dict[str, str] | None = None,
    **request_fields: Any,
):
    return execute_schema_pipeline_run(
        RunRequest(workspace=str(workspace), **request_fields),
        environ=FULL_ENV if environ is None else environ,
        run_command=runner,
        message_client_factory=clients.message_client_factory,
        storage_client_factory=clients.storage_client_factory,
    )


def test_no_changes_finishes_without_clients_or_uploads(tmp_path: Path) -> None:
    workspace = _workspace(tmp_path)
    runner = _PipelineRunner(changed_files="schema/field.json\nREADME.md\n")
    clients = _Clients()

    outcome = _run(workspace, runner, clients)

    assert outcome.no_changes
    assert outcome.final_state == PipelineState.DONE
    assert outcome.state_history == (
        PipelineState.INIT,
        PipelineState.ENV_VALIDATED,
        PipelineState.CHANGES_DETECTED,
        PipelineState.DONE,
    )
    assert runner.programs() == ["git"]
    assert clients.storage_client_requests == []
    assert clients.message_client_requests == []
    assert clients.storage_client.puts == []


@pytest.mark.parametrize("missing_name", PIPELINE_ENV_VARS)
def test_missing_environment_value_fails_before_git(tmp_path: Path, missing_name: str) -> None:
    workspace = _workspace(tmp_path)
    runner = _PipelineRunner(changed_files="schema/model.json\n")
    clients = _Clients()
    environ = {name: value for name, value in FULL_ENV.items() if name != missing_name}

    with pytest.raises(RunExecutionError, match=missing_name):
        _run(workspace, runner, clients, environ=environ)

    assert runner.calls == []
    assert clients.storage_client.puts == []


def test_changed_schema_is_generated_bundled_and_published(tmp_path: Path) -> None:
    workspace = _workspace(tmp_path)
    runner = _PipelineRunner(changed_files="schema/model.json\n")
    clients = _Clients()

    outcome = _run(workspace, runner, clients)

    assert outcome.final_state == PipelineState.DONE
    assert outcome.state_history == (
        PipelineState.INIT,
        PipelineState.ENV_VALIDATED,
        PipelineState.CHANGES_DETECTED,
        PipelineState.RAW_UPLOADED,
        PipelineState.PROCESSING_SCHEMA,
        PipelineState.DONE,
    )
    assert outcome.raw_schema_keys == ("content.json", "field.json", "model.json")
    assert clients.storage_client.keys() == [
        "content.json",
        "field.json",
        "model.json",
        "schema-bundle/model.bundled.json",
    ]
    assert runner.programs() == ["git", "json2ts", "prettier"]
    assert runner.converted() == ["model.json"]
    assert clients.message_client_requests == ["sk-test"]

    declaration = (workspace / "types" / "model.d.ts").read_text(encoding="utf-8")
    assert declaration == "export interface Model {}\n"

    bundle_put = clients.storage_client.puts[-1]
    assert bundle_put["ContentType"] == "application/json"
    assert bundle_put["CacheControl"] == "public, max-age=3600"
    bundle_text = bundle_put["Body"].decode("utf-8")
    assert f"{BASE}/field.json" not in bundle_text
    assert json.loads(bundle_text)["properties"]["field"] == {"$ref": "#/$defs/field"}

    schema_outcome = outcome.schema_outcomes[0]
    assert schema_outcome.status == SchemaStatus.PROCESSED
    assert schema_outcome.bundle_key == "schema-bundle/model.bundled.json"
    assert schema_outcome.declaration_path == workspace.resolve() / "types" / "model.d.ts"


def test_missing_result_span_fails_without_writing_declaration(tmp_path: Path) -> None:
    workspace = _workspace(tmp_path)
    runner = _PipelineRunner(changed_files="schema/model.json\n")
    clients = _Clients(messages_client=_FakeMessagesClient(omit_result_for=("model",)))

    with pytest.raises(RunExecutionError, match="No <result> tag found") as exc_info:
        _run(workspace, runner, clients)

    assert not (workspace / "types" / "model.d.ts").exists()
    assert "schema-bundle/model.bundled.json" not in clients.storage_client.keys()
    assert "prettier" not in runner.programs()
    outcome = exc_info.value.outcome
    assert outcome is not None
    assert outcome.final_state == PipelineState.FAILED
    assert outcome.raw_schema_keys == ("content.json", "field.json", "model.json")


def test_changed_schema_without_identifier_fails_before_any_upload(tmp_path: Path) -> None:
    workspace = _workspace(tmp_path, model={"type": "object"})
    runner = _PipelineRunner(changed_files="schema/model.json\n")
    clients = _Clients()

    with pytest.raises(RunExecutionError, match="must have an \\$id property"):
        _run(workspace, runner, clients)

    assert clients.storage_client_requests == []
    assert clients.message_client_requests == []
    assert clients.storage_client.puts == []
    assert runner.programs() == ["git"]


def test_first_failure_stops_remaining_schemas(tmp_path: Path) -> None:
    workspace = _workspace(tmp_path)
    runner = _PipelineRunner(changed_files="schema/content.json\nschema/model.json\n")
    clients = _Clients(messages_client=_FakeMessagesClient(omit_result_for=("model",)))

    with pytest.raises(RunExecutionError) as exc_info:
        _run(workspace, runner, clients)

    assert runner.converted() == ["model.json"]
    assert not (workspace / "types" / "content.d.ts").exists()
    outcome = exc_info.value.outcome
    assert outcome is not None
    assert [item.descriptor.name for item in outcome.schema_outcomes] == ["model"]


def test_keep_going_processes_remaining_schemas_and_still_fails(tmp_path: Path) -> None:
    workspace = _workspace(tmp_path)
    runner = _PipelineRunner(changed_files="schema/content.json\nschema/model.json\n")
    clients = _Clients(messages_client=_FakeMessagesClient(omit_result_for=("model",)))

    expected = "1 schema\\(s\\) failed: schema/model.json"
    with pytest.raises(RunExecutionError, match=expected) as exc_info:
        _run(workspace, runner, clients, continue_on_error=True)

    outcome = exc_info.value.outcome
    assert outcome is not None
    assert outcome.final_state == PipelineState.FAILED
    assert outcome.state_history[-3:] == (
        PipelineState.PROCESSING_SCHEMA,
        PipelineState.PROCESSING_SCHEMA,
        PipelineState.FAILED,
    )
    assert [item.status for item in outcome.schema_outcomes] == [
        SchemaStatus.FAILED,
        SchemaStatus.PROCESSED,
    ]
    assert [item.descriptor.name for item in outcome.failed_outcomes] == ["model"]
    assert (workspace / "types" / "content.d.ts").exists()
    assert "schema-bundle/content.bundled.json" in clients.storage_client.keys()


def test_bundling_failure_is_reported_with_stage(tmp_path: Path) -> None:
    workspace = _workspace(
        tmp_path,
        model={
            "$id": f"{BASE}/model.json",
            "type": "object",
            "properties": {"field": {"$ref": "missing.json"}},
        },
    )
    runner = _PipelineRunner(changed_files="schema/model.json\n")
    clients = _Clients()

    with pytest.raises(RunExecutionError, match="during bundling"):
        _run(workspace, runner, clients)

    assert (workspace / "types" / "model.d.ts").exists()
    assert "schema-bundle/model.bundled.json" not in clients.storage_client.keys()


def test_version_control_failure_stops_the_run(tmp_path: Path) -> None:
    workspace = _workspace(tmp_path)
    runner = _PipelineRunner(git_error=CommandExecutionError("Command failed with exit code 128"))
    clients = _Clients()

    with pytest.raises(RunExecutionError, match="Failed to query changed files"):
        _run(workspace, runner, clients)

    assert clients.storage_client_requests == []


def test_raw_upload_failure_stops_before_generation(tmp_path: Path) -> None:
    workspace = _workspace(tmp_path)
    runner = _PipelineRunner(changed_files="schema/model.json\n")
    error = ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")
    clients = _Clients(storage_client=_FakeStorageClient(error=error))

    with pytest.raises(RunExecutionError, match="Failed to upload raw schemas"):
        _run(workspace, runner, clients)

    assert runner.programs() == ["git"]
    assert clients.message_client_requests == []


def test_requested_revisions_override_defaults(tmp_path: Path) -> None:
    workspace = _workspace(tmp_path)
    runner = _PipelineRunner()

    _run(workspace, runner, _Clients(), base_ref="origin/main")

    assert runner.calls[0][0] == (
        "git",
        "diff",
        "--name-only",
        "origin/main",
        "HEAD",
        "--",
        "schema/",
    )


def test_run_narrates_progress(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="schema_artifact_pipeline")
    workspace = _workspace(tmp_path)

    _run(workspace, _PipelineRunner(changed_files="schema/model.json\n"), _Clients())

    messages = [record.getMessage() for record in caplog.records]
    assert messages.index("--- Uploading raw schemas to R2 ---") < messages.index(
        "--- Processing schema/model.json ---"
    )
    assert "  ✓ Uploaded bundled schema" in messages
    assert "✓ All changed schemas processed successfully" not in messages
