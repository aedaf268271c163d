"""
Exceptions that abort a grading run.

Per-exercise failures are never exceptions; they are ordinary
ExerciseResult records. Only conditions that prevent grading altogether
are raised, and their message is shown to the student verbatim.
"""


class GraderError(Exception):
    """
    Base class for fatal grading errors.

    Attributes:
        message: Student-visible explanation written to the results file.
        exit_code: Process exit code to use when the run aborts.
    """

    exit_code: int = 1

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(GraderError):
    """The grading harness or the reference sheet is misconfigured."""


class SubmissionError(GraderError):
    """The upload cannot be graded at all (e.g. no Lean file was submitted)."""

    exit_code = 0
