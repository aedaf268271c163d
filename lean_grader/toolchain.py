"""
Adapter for the Lean build toolchain.

Builds the reference sheet and the submission with `lake`, then exports
each compiled environment to JSON with the bundled ExportEnv.lean script
and loads it into Environment models.
"""

import json
import os
import subprocess
import tempfile
from pathlib import Path

from pydantic import ValidationError

from .config import (
    BUILD_TIMEOUT_SECONDS,
    EXPORTER_PATH,
    LAKE_COMMAND,
    OLEAN_SUFFIX,
    REFERENCE_BUILD_MESSAGE,
    SUBMISSION_MODULE,
)
from .errors import ConfigurationError
from .models import BuildResult, Declaration, Environment

EXPORT_FILENAME = "environment.json"
LOG_TAIL_LINES = 10

SUBMISSION_BUILD_WARNING = (
    "Warning: Your submission has compile errors, so none of its declarations "
    "could be graded and every exercise is treated as missing. "
    "Fix the errors below and resubmit."
)

TIMEOUT_HINT = (
    "The Lean toolchain did not finish in time. Look for tactics that search "
    "for a long time, such as `decide` or `simp` on large goals."
)


class ToolchainError(Exception):
    """Raised when a compiled environment cannot be exported or parsed."""


def parse_lean_errors(output: str) -> list[str]:
    """
    Parse Lean compiler error messages from compiler output.

    Lean error format: `<file>:<line>:<col>: error: <message>`.
    Warnings are not treated as errors.

    Args:
        output: Combined stdout and stderr of the compiler.

    Returns:
        Error lines in the order they were reported.
    """
    return [line.strip() for line in output.splitlines() if ": error:" in line]


def parse_environment(data: dict) -> Environment:
    """
    Load an exported environment.

    Args:
        data: Decoded JSON written by ExportEnv.lean, with keys `module`,
            `modules` and `declarations`.

    Returns:
        Environment with declarations in export order.

    Raises:
        ToolchainError: If the export does not match the expected shape.
    """
    try:
        declarations = [Declaration(**entry) for entry in data["declarations"]]
        return Environment.from_declarations(
            module=data["module"],
            declarations=declarations,
            modules=data.get("modules"),
        )
    except (KeyError, TypeError, ValidationError) as e:
        raise ToolchainError(f"Malformed environment export: {e}") from e


def failure_details(result: BuildResult, log_lines: int = LOG_TAIL_LINES) -> str:
    """
    Describe a failed toolchain call for the student.

    Args:
        result: Failed build result.
        log_lines: Number of trailing log lines shown when the compiler
            reported no `error:` lines.

    Returns:
        Text for the summary warning or the fatal document.
    """
    details = "\n".join(result.errors)
    if result.timed_out:
        return f"{details}\n{TIMEOUT_HINT}"
    if not any(": error:" in error for error in result.errors) and result.log.strip():
        tail = "\n".join(result.log.strip().splitlines()[-log_lines:])
        details = f"{details}\n{tail}"
    return details


class LeanToolchain:
    """
    Runs `lake` inside a Lean project.

    Every call is a blocking subprocess with captured output and a timeout.
    """

    def __init__(
        self,
        project_dir: Path,
        lake_command: str = LAKE_COMMAND,
        timeout_seconds: int = BUILD_TIMEOUT_SECONDS,
        exporter_path: Path = EXPORTER_PATH,
        verbose: bool = False,
    ) -> None:
        """
        Initialize the toolchain adapter.

        Args:
            project_dir: Lean project root (contains the lakefile).
            lake_command: Lake executable to invoke.
            timeout_seconds: Maximum time per toolchain call.
            exporter_path: Lean script that dumps an environment to JSON.
            verbose: Print compiler logs.
        """
        self.project_dir = project_dir
        self.lake_command = lake_command
        self.timeout_seconds = timeout_seconds
        self.exporter_path = exporter_path
        self.verbose = verbose

    def _run(self, args: list[str], env: dict[str, str] | None = None) -> BuildResult:
        cmd = [self.lake_command, *args]
        if self.verbose:
            print(f"  Executing: {' '.join(cmd)}")

        try:
            process = subprocess.run(
                cmd,
                cwd=str(self.project_dir.resolve()),
                env=env,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired:
            return BuildResult(
                success=False,
                errors=[f"Compilation timed out after {self.timeout_seconds}s"],
                timed_out=True,
            )
        except FileNotFoundError:
            return BuildResult(
                success=False,
                errors=[f"'{self.lake_command}' command not found. Is Lean installed and on PATH?"],
            )

        log = process.stdout + "\n" + process.stderr
        errors = parse_lean_errors(log)
        if process.returncode != 0 and not errors:
            errors = [f"{cmd[1]} exited with code {process.returncode}"]

        if self.verbose and log.strip():
            print("  --- Toolchain Log ---")
            for line in log.strip().split("\n")[:20]:
                print(f"  {line}")
            print("  ---------------------")

        return BuildResult(success=not errors, errors=errors, log=log)

    def build_reference(self, module: str) -> BuildResult:
        """Build a project module with `lake build`."""
        return self._run(["build", module])

    def build_submission(self, source: Path, output_dir: Path) -> BuildResult:
        """
        Compile a standalone submission file to an .olean.

        Args:
            source: Submission source file.
            output_dir: Directory receiving `Submission.olean`.

        Returns:
            BuildResult of the compilation.
        """
        olean = output_dir / f"{SUBMISSION_MODULE}{OLEAN_SUFFIX}"
        return self._run(["env", "lean", "-o", str(olean.resolve()), str(source.resolve())])

    def export_environment(self, module: str, search_path: Path | None = None) -> Environment:
        """
        Export a compiled module's environment.

        Args:
            module: Module to import and export.
            search_path: Extra directory holding oleans not built by lake.

        Returns:
            Environment of the module and everything it depends on.

        Raises:
            ToolchainError: If the exporter fails or writes invalid output.
        """
        env = None
        if search_path is not None:
            env = os.environ.copy()
            env["LEAN_PATH"] = os.pathsep.join(
                p for p in (str(search_path.resolve()), env.get("LEAN_PATH", "")) if p
            )

        with tempfile.TemporaryDirectory() as tmp:
            output_path = Path(tmp) / EXPORT_FILENAME
            result = self._run(
                ["env", "lean", "--run", str(self.exporter_path), module, str(output_path)],
                env=env,
            )
            if not result.success:
                raise ToolchainError(failure_details(result))
            if not output_path.exists():
                raise ToolchainError(f"Exporter produced no output for {module}")

            try:
                with open(output_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                raise ToolchainError(f"Exporter output for {module} is not valid JSON: {e}") from e

        return parse_environment(data)

    def compile_reference(self, module: str) -> Environment:
        """
        Build and export the reference sheet.

        Args:
            module: Reference module name.

        Returns:
            Compiled reference environment.

        Raises:
            ConfigurationError: If the reference fails to build or export.
        """
        print(f"Building reference module {module}...")
        result = self.build_reference(module)
        if not result.success:
            details = failure_details(result)
            print(f"  Reference build FAILED:\n{details}")
            raise ConfigurationError(f"{REFERENCE_BUILD_MESSAGE}\n\n{details}")

        try:
            environment = self.export_environment(module)
        except ToolchainError as e:
            raise ConfigurationError(f"{REFERENCE_BUILD_MESSAGE}\n\n{e}") from e

        print(f"  Exported {len(environment.declarations)} declarations")
        return environment

    def compile_submission(self, source: Path, reference: Environment) -> tuple[Environment, str]:
        """
        Build and export the submission, degrading on failure.

        Args:
            source: Submission source file.
            reference: Compiled reference, used for the fallback environment.

        Returns:
            Tuple of (environment, warning). The warning is empty when the
            submission compiled; otherwise the environment is degraded and
            the warning carries the compiler errors.
        """
        print(f"Compiling submission {source.name}...")

        with tempfile.TemporaryDirectory() as tmp:
            output_dir = Path(tmp)
            result = self.build_submission(source, output_dir)

            if result.success:
                try:
                    environment = self.export_environment(SUBMISSION_MODULE, search_path=output_dir)
                    print("  Submission: COMPILED")
                    return environment, ""
                except ToolchainError as e:
                    details = str(e)
            else:
                details = failure_details(result)

        print("  Submission: FAILED (graded against a degraded environment)")
        return reference.degraded(), f"{SUBMISSION_BUILD_WARNING}\n\n{details}"
