"""
Lean Grader: Automated grading of Lean proof submissions

Usage:
  main.py [--config=PATH] [--verbose]
  main.py <reference_module> <submission_file> [--config=PATH] [--verbose]
  main.py (-h | --help)

Arguments:
  <reference_module>  Module name of the reference sheet (e.g. Assignment).
  <submission_file>   Path to the student's Lean file.

Options:
  --config=PATH  Path to YAML configuration file [default: grader_config.yml].
  --verbose      Print toolchain output.
  -h --help      Show this screen.
"""

from docopt import docopt
import sys
import traceback
from pathlib import Path

from lean_grader.config import (
    DEFAULT_CONFIG_FILENAME,
    DEFAULT_RESULTS_PATH,
    LEAN_SUFFIX,
    SUBMISSION_MODULE,
    UNEXPECTED_ERROR_MESSAGE,
)
from lean_grader.config_loader import GraderConfig, load_config, load_provisioning_config
from lean_grader.errors import GraderError, SubmissionError
from lean_grader.models import GradingReport
from lean_grader.orchestrator import grade_exercises
from lean_grader.provisioner import (
    fetch_template,
    install_support_library,
    module_source_path,
    place_submission,
    select_submission,
)
from lean_grader.report import (
    build_report,
    print_report_summary,
    write_fatal_report,
    write_report,
)
from lean_grader.toolchain import LeanToolchain


def run_grading_pipeline(
    toolchain: LeanToolchain,
    reference_module: str,
    submission_path: Path,
    notes: list[str] | None = None,
) -> GradingReport:
    """
    Run the complete grading pipeline for one submission.

    Args:
        toolchain: Lean toolchain used to compile both files.
        reference_module: Module name of the reference sheet.
        submission_path: Path to the student's Lean file.
        notes: Warnings gathered before compilation (e.g. file selection).

    Returns:
        GradingReport with one result per exercise.

    Raises:
        ConfigurationError: If the reference fails to build or declares no
            exercises.
    """
    summary_parts = [note for note in (notes or []) if note]

    reference = toolchain.compile_reference(reference_module)
    submission, build_warning = toolchain.compile_submission(submission_path, reference)
    if submission.is_degraded:
        print("  Every exercise will be graded as missing")
        summary_parts.append(build_warning)

    print(f"Grading {reference_module}...")
    results = grade_exercises(reference, submission, reference_module)
    print(f"Graded {len(results)} exercises")

    report = build_report(results, summary="\n\n".join(summary_parts))
    print_report_summary(report)
    return report


def _load_grader_config(config_path: Path) -> GraderConfig:
    """Load the YAML config. Only the default file may be absent."""
    if config_path == Path(DEFAULT_CONFIG_FILENAME) and not config_path.exists():
        return GraderConfig()
    return load_config(config_path)


def main(argv: list[str] | None = None) -> int:
    """
    Main CLI entrypoint.

    Returns:
        Exit code (0 for success, 1 for configuration errors).
    """
    arguments = docopt(__doc__, argv=argv)
    config_path = Path(arguments["--config"])

    try:
        config = _load_grader_config(config_path)
    except Exception as e:
        print(f"Error loading config: {e}")
        write_fatal_report(f"Grader configuration error: {e}", DEFAULT_RESULTS_PATH)
        return 1

    verbose = config.verbose or arguments["--verbose"]
    results_path = config.results_path
    toolchain = LeanToolchain(
        project_dir=config.project_dir,
        lake_command=config.lake_command,
        timeout_seconds=config.build_timeout_seconds,
        verbose=verbose,
    )

    try:
        if arguments["<reference_module>"]:
            reference_module = arguments["<reference_module>"]
            submission_path = Path(arguments["<submission_file>"])
            if not submission_path.is_file():
                raise SubmissionError(f"Submission file not found: {submission_path}")
            notes: list[str] = []
        else:
            reference_module = config.reference_module
            provisioning = load_provisioning_config(config.provisioning_config)
            fetch_template(provisioning, module_source_path(config.project_dir, reference_module))

            selection = select_submission(config.submission_dir)
            print(f"Selected submission {selection.path}")
            submission_path = place_submission(
                selection.path, config.project_dir / f"{SUBMISSION_MODULE}{LEAN_SUFFIX}"
            )
            notes = [selection.warning]

        install_support_library(config.project_dir)
        report = run_grading_pipeline(toolchain, reference_module, submission_path, notes)
        output_path = write_report(report, results_path)
        print(f"Saved results to {output_path}")
        return 0
    except GraderError as e:
        print(f"\nError: {e.message}")
        write_fatal_report(e.message, results_path)
        return e.exit_code
    except KeyboardInterrupt:
        print("\nGrading interrupted by user.")
        write_fatal_report(UNEXPECTED_ERROR_MESSAGE, results_path)
        return 1
    except Exception as e:
        print(f"\nError: {e}")
        if verbose:
            traceback.print_exc()
        write_fatal_report(UNEXPECTED_ERROR_MESSAGE, results_path)
        return 1


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
