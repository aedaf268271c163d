"""
Tests for lean_grader.toolchain

Test Coverage:
- parse_lean_errors(): error line extraction
- parse_environment(): exporter JSON loading
- LeanToolchain: reference build failures, submission degradation,
  environment export, missing lake and timeouts
- failure_details(): timeout hint and log tail for silent failures

The Lean toolchain is replaced by a fake `subprocess.run`.
"""
import json
import subprocess
from pathlib import Path

import pytest

from lean_grader.errors import ConfigurationError
from lean_grader.models import BuildResult, DeclarationKind, EnvironmentKind
from lean_grader.toolchain import (
    LeanToolchain,
    TIMEOUT_HINT,
    ToolchainError,
    failure_details,
    parse_environment,
    parse_lean_errors,
)

SUBMISSION_EXPORT = {
    "module": "Submission",
    "modules": ["Init.Prelude", "Submission"],
    "declarations": [
        {
            "name": "easy",
            "module": "Submission",
            "kind": "theorem",
            "type": {"kind": "const", "name": "True", "levels": []},
            "references": ["propext"],
            "has_sorry": False,
            "points": None,
            "internal": False,
        },
        {
            "name": "propext",
            "module": "Init.Prelude",
            "kind": "axiom",
            "type": None,
            "references": [],
            "has_sorry": False,
            "points": None,
            "internal": False,
        },
    ],
}


class FakeLake:
    """Stands in for subprocess.run, answering by lake sub-command."""

    def __init__(self, build_output="", build_code=0, export=SUBMISSION_EXPORT):
        self.build_output = build_output
        self.build_code = build_code
        self.export = export
        self.calls: list[list[str]] = []
        self.envs: list[dict | None] = []

    def __call__(self, cmd, cwd=None, env=None, capture_output=False, text=False, timeout=None):
        self.calls.append(cmd)
        self.envs.append(env)
        if "--run" in cmd:
            Path(cmd[-1]).write_text(json.dumps(self.export), encoding="utf-8")
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")
        return subprocess.CompletedProcess(cmd, self.build_code, stdout=self.build_output, stderr="")


@pytest.fixture
def toolchain(tmp_path) -> LeanToolchain:
    return LeanToolchain(project_dir=tmp_path, exporter_path=tmp_path / "ExportEnv.lean")


def test_parse_lean_errors_ignores_warnings():
    output = (
        "Assignment.lean:3:8: warning: declaration uses 'sorry'\n"
        "Assignment.lean:5:2: error: unknown identifier 'foo'\n"
    )

    assert parse_lean_errors(output) == ["Assignment.lean:5:2: error: unknown identifier 'foo'"]


def test_parse_environment_builds_declarations():
    """Exporter JSON becomes an ordered Environment."""
    env = parse_environment(SUBMISSION_EXPORT)

    assert env.module == "Submission"
    assert env.kind is EnvironmentKind.COMPILED
    assert list(env.declarations) == ["easy", "propext"]
    assert env.lookup("propext").kind is DeclarationKind.AXIOM
    assert env.lookup("easy").references == ("propext",)


def test_parse_environment_rejects_malformed_export():
    with pytest.raises(ToolchainError):
        parse_environment({"module": "Submission", "declarations": [{"name": "easy"}]})

    with pytest.raises(ToolchainError):
        parse_environment({"declarations": []})


def test_compile_reference_build_failure_is_fatal(monkeypatch, toolchain):
    """A reference that fails to build aborts grading."""
    fake = FakeLake(build_output="Assignment.lean:1:0: error: unexpected token", build_code=1)
    monkeypatch.setattr(subprocess, "run", fake)

    with pytest.raises(ConfigurationError, match="unexpected token"):
        toolchain.compile_reference("Assignment")

    assert fake.calls == [["lake", "build", "Assignment"]]


def test_compile_reference_exports_environment(monkeypatch, toolchain):
    """A successful build is followed by an export of the module."""
    export = dict(SUBMISSION_EXPORT, module="Assignment")
    fake = FakeLake(export=export)
    monkeypatch.setattr(subprocess, "run", fake)

    env = toolchain.compile_reference("Assignment")

    assert env.module == "Assignment"
    assert fake.calls[1][:4] == ["lake", "env", "lean", "--run"]
    assert fake.calls[1][5] == "Assignment"


def test_compile_submission_success(monkeypatch, toolchain, reference, tmp_path):
    """A compiling submission is exported with its olean on LEAN_PATH."""
    # Arrange
    source = tmp_path / "Submission.lean"
    source.write_text("theorem easy : 1 + 1 = 2 := rfl\n", encoding="utf-8")
    fake = FakeLake()
    monkeypatch.setattr(subprocess, "run", fake)

    # Act
    env, warning = toolchain.compile_submission(source, reference)

    # Assert
    assert warning == ""
    assert env.kind is EnvironmentKind.COMPILED
    assert env.lookup("easy") is not None
    build_cmd = fake.calls[0]
    assert build_cmd[:4] == ["lake", "env", "lean", "-o"]
    assert build_cmd[4].endswith("Submission.olean")
    olean_dir = str(Path(build_cmd[4]).parent)
    assert fake.envs[1]["LEAN_PATH"].startswith(olean_dir)


def test_compile_submission_failure_degrades(monkeypatch, toolchain, reference, tmp_path):
    """A submission with compile errors falls back to the reference imports."""
    # Arrange
    source = tmp_path / "Submission.lean"
    source.write_text("theorem easy : := \n", encoding="utf-8")
    fake = FakeLake(build_output="Submission.lean:1:15: error: unexpected token ':='", build_code=1)
    monkeypatch.setattr(subprocess, "run", fake)

    # Act
    env, warning = toolchain.compile_submission(source, reference)

    # Assert
    assert env.is_degraded
    assert env.lookup("easy") is None
    assert env.lookup("propext") is not None
    assert "compile errors" in warning
    assert "unexpected token ':='" in warning
    assert len(fake.calls) == 1


def test_compile_submission_timeout_degrades(monkeypatch, toolchain, reference, tmp_path):
    """A build that times out is treated like a failed build."""
    def timeout(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout"))

    monkeypatch.setattr(subprocess, "run", timeout)

    env, warning = toolchain.compile_submission(tmp_path / "Submission.lean", reference)

    assert env.is_degraded
    assert "timed out" in warning


def test_missing_lake_reports_error(monkeypatch, toolchain):
    def missing(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(subprocess, "run", missing)

    result = toolchain.build_reference("Assignment")

    assert result.success is False
    assert "'lake' command not found" in result.errors[0]


def test_nonzero_exit_without_error_lines_fails(monkeypatch, toolchain):
    """A crash without diagnostics still counts as a failed build."""
    monkeypatch.setattr(subprocess, "run", FakeLake(build_output="Segmentation fault", build_code=139))

    result = toolchain.build_reference("Assignment")

    assert result.success is False
    assert result.errors == ["build exited with code 139"]


def test_compile_submission_timeout_explains_cause(monkeypatch, toolchain, reference, tmp_path):
    """The summary of a timed-out build says why grading gave up."""
    def timeout(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout"))

    monkeypatch.setattr(subprocess, "run", timeout)

    _, warning = toolchain.compile_submission(tmp_path / "Submission.lean", reference)

    assert "Compilation timed out after 600s" in warning
    assert TIMEOUT_HINT in warning


def test_compile_reference_silent_crash_shows_log_tail(monkeypatch, toolchain):
    """A build that dies without error lines still shows what it printed."""
    monkeypatch.setattr(
        subprocess, "run", FakeLake(build_output="Building Assignment\nSegmentation fault", build_code=139)
    )

    with pytest.raises(ConfigurationError) as excinfo:
        toolchain.compile_reference("Assignment")

    assert "build exited with code 139" in excinfo.value.message
    assert "Segmentation fault" in excinfo.value.message


def test_failure_details_omits_log_when_errors_were_reported():
    result = BuildResult(
        success=False,
        errors=["Assignment.lean:1:0: error: unexpected token"],
        log="noise\nAssignment.lean:1:0: error: unexpected token",
    )

    assert failure_details(result) == "Assignment.lean:1:0: error: unexpected token"


def test_failure_details_keeps_only_last_log_lines():
    log = "\n".join(f"line {i}" for i in range(30))
    result = BuildResult(success=False, errors=["build exited with code 1"], log=log)

    details = failure_details(result, log_lines=3)

    assert details == "build exited with code 1\nline 27\nline 28\nline 29"
