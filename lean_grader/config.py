"""
Configuration constants for the Lean Grader.
"""

from pathlib import Path


# Fixed locations used by the hosting grading platform
DEFAULT_CONFIG_FILENAME: str = "grader_config.yml"
DEFAULT_RESULTS_PATH: Path = Path("../results/results.json")
DEFAULT_SUBMISSION_DIR: Path = Path("/autograder/submission")
DEFAULT_PROVISIONING_CONFIG: Path = Path("autograder_config.json")
DEFAULT_PROJECT_DIR: Path = Path(".")

# Lean modules and files
DEFAULT_REFERENCE_MODULE: str = "Assignment"
SUBMISSION_MODULE: str = "Submission"
LEAN_SUFFIX: str = ".lean"
OLEAN_SUFFIX: str = ".olean"
EXPORTER_PATH: Path = Path(__file__).resolve().parent / "lean" / "ExportEnv.lean"
SUPPORT_LIBRARY_PATH: Path = Path(__file__).resolve().parent / "lean" / "AutograderLib.lean"

# Toolchain configuration
LAKE_COMMAND: str = "lake"
GIT_COMMAND: str = "git"
BUILD_TIMEOUT_SECONDS: int = 600
CLONE_TIMEOUT_SECONDS: int = 120

# Axioms accepted for course credit. sorryAx is deliberately absent.
VALID_AXIOMS: frozenset[str] = frozenset([
    "propext",
    "Quot.sound",
    "Classical.choice",
])
INCOMPLETE_PROOF_MARKER: str = "sorryAx"

# Report format
OUTPUT_FORMAT: str = "text"

# Per-exercise feedback
MISSING_MESSAGE: str = "Declaration not found in submission"
INCOMPLETE_MESSAGE: str = "Proof contains sorry"
TYPE_MISMATCH_MESSAGE: str = "Type is different than expected"
AXIOM_VIOLATION_MESSAGE: str = "Contains unexpected axioms"
PASSED_MESSAGE: str = "Passed all tests"

# Fatal and summary messages
NO_EXERCISES_MESSAGE: str = (
    "The reference sheet does not contain any point-annotated declarations. "
    "Please contact your instructor: this assignment is misconfigured."
)
REFERENCE_BUILD_MESSAGE: str = (
    "The reference solution failed to build, so this submission cannot be graded. "
    "Please contact your instructor."
)
UNEXPECTED_ERROR_MESSAGE: str = (
    "An unexpected error occurred while grading. Please contact your instructor."
)
