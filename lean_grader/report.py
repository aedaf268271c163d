"""
Result aggregation and export.

Wraps exercise results into a GradingReport and writes it, or a fatal
failure document, as results.json for the hosting grading platform.
"""

from collections.abc import Iterable
from pathlib import Path

from .models import (
    ExerciseResult,
    FatalDocument,
    GradingReport,
    ReportEntry,
    ResultsDocument,
)


def build_report(results: Iterable[ExerciseResult], summary: str = "") -> GradingReport:
    """
    Assemble the final report.

    Args:
        results: Exercise results in reference declaration order.
        summary: Free-text notes gathered upstream (placement and build
            warnings).

    Returns:
        GradingReport containing the results unchanged.
    """
    return GradingReport(results=tuple(results), summary=summary)


def to_document(report: GradingReport) -> ResultsDocument:
    """
    Convert a report into the results.json schema.

    Args:
        report: Report to convert.

    Returns:
        ResultsDocument with one entry per exercise.
    """
    tests = [
        ReportEntry(
            score=result.score,
            output=result.output,
            name=result.name,
            status="passed" if result.status.passed else "failed",
        )
        for result in report.results
    ]
    return ResultsDocument(
        tests=tests,
        output=report.summary,
        output_format=report.output_format,
    )


def _write(output_path: Path, content: str) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(content)
    return output_path


def write_report(report: GradingReport, output_path: Path) -> Path:
    """
    Save a grading report as JSON.

    Args:
        report: Report to save.
        output_path: Destination file, created along with its parent.

    Returns:
        Path the report was written to.
    """
    return _write(output_path, to_document(report).model_dump_json(indent=2))


def write_fatal_report(message: str, output_path: Path) -> Path:
    """
    Save the fatal-failure document in place of a report.

    Args:
        message: Explanation shown to the student.
        output_path: Destination file.

    Returns:
        Path the document was written to.
    """
    return _write(output_path, FatalDocument(output=message).model_dump_json(indent=2))


def print_report_summary(report: GradingReport) -> None:
    """
    Print a summary of the report to console.

    Args:
        report: GradingReport to summarize.
    """
    print(f"\n  {'='*50}")
    print(f"  Total Score: {report.total_score:.1f}/{report.max_score:.1f}")
    print(f"  {'='*50}")

    for result in report.results:
        status = "+" if result.status.passed else "-"
        print(f"  [{status}] {result.name}: {result.score:.1f}/{result.max_score:.1f} ({result.output})")

    print()
