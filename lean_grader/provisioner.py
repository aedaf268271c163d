"""
Template provisioning and submission placement.

Fetches the reference sheet from its public repository and moves the
student's upload to where the Lean toolchain expects it.
"""

import shutil
import subprocess
import tempfile
from pathlib import Path

from pydantic import BaseModel, Field

from .config import CLONE_TIMEOUT_SECONDS, GIT_COMMAND, LEAN_SUFFIX, SUPPORT_LIBRARY_PATH
from .config_loader import ProvisioningConfig
from .errors import ConfigurationError, SubmissionError


class SubmissionSelection(BaseModel):
    """
    The uploaded file chosen for grading.

    Attributes:
        path: Path to the selected Lean file.
        warning: Note for the report summary when the choice was ambiguous.
    """

    path: Path = Field(..., description="Selected Lean file")
    warning: str = Field(default="", description="Placement warning for the summary")


def module_source_path(project_dir: Path, module: str) -> Path:
    """
    Map a module name to its source file, e.g. `Course.Hw1` to `Course/Hw1.lean`.

    Args:
        project_dir: Lean project root.
        module: Dotted module name.

    Returns:
        Path of the module's source file.
    """
    parts = module.split(".")
    return project_dir.joinpath(*parts[:-1], parts[-1] + LEAN_SUFFIX)


def fetch_template(
    config: ProvisioningConfig,
    destination: Path,
    timeout_seconds: int = CLONE_TIMEOUT_SECONDS,
) -> Path:
    """
    Fetch the reference sheet from its GitHub repository.

    Args:
        config: Provisioning config naming the repository and file.
        destination: Where to place the reference source.
        timeout_seconds: Maximum time allowed for the clone.

    Returns:
        Path the reference sheet was written to.

    Raises:
        ConfigurationError: If the clone fails or the file is missing.
    """
    url = f"https://github.com/{config.public_repo}.git"
    print(f"Fetching reference sheet from {url}...")

    with tempfile.TemporaryDirectory() as tmp:
        checkout = Path(tmp) / "template"
        try:
            process = subprocess.run(
                [GIT_COMMAND, "clone", "--depth", "1", url, str(checkout)],
                capture_output=True,
                text=True,
                timeout=timeout_seconds,
            )
        except subprocess.TimeoutExpired as e:
            raise ConfigurationError(f"Timed out cloning {url}") from e
        except FileNotFoundError as e:
            raise ConfigurationError(f"'{GIT_COMMAND}' command not found") from e

        if process.returncode != 0:
            raise ConfigurationError(f"Could not clone {url}: {process.stderr.strip()}")

        source = checkout / config.assignment_path
        if not source.is_file():
            raise ConfigurationError(
                f"Assignment file {config.assignment_path} not found in {config.public_repo}"
            )

        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, destination)

    print(f"  Reference sheet placed at {destination}")
    return destination


def select_submission(submission_dir: Path) -> SubmissionSelection:
    """
    Pick the Lean file to grade from the upload directory.

    Args:
        submission_dir: Directory holding the student's uploaded files.

    Returns:
        SubmissionSelection with the first Lean file in sorted order.

    Raises:
        SubmissionError: If no Lean file was uploaded.
    """
    if not submission_dir.is_dir():
        raise SubmissionError(f"Submission directory not found: {submission_dir}")

    candidates = sorted(
        p for p in submission_dir.rglob(f"*{LEAN_SUFFIX}")
        if p.is_file() and not any(part.startswith(".") for part in p.relative_to(submission_dir).parts)
    )
    if not candidates:
        raise SubmissionError(
            "No Lean file found in your submission. Please upload a single .lean file."
        )

    selected = candidates[0]
    warning = ""
    if len(candidates) > 1:
        warning = (
            f"Warning: Submission has {len(candidates)} Lean files, "
            f"using {selected.relative_to(submission_dir)}. "
            "Please submit a single Lean file."
        )

    return SubmissionSelection(path=selected, warning=warning)


def place_submission(source: Path, destination: Path) -> Path:
    """
    Copy the selected upload into the Lean project.

    Args:
        source: Uploaded Lean file.
        destination: Target path inside the project.

    Returns:
        The destination path.
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(source, destination)
    return destination


def install_support_library(project_dir: Path, source: Path = SUPPORT_LIBRARY_PATH) -> Path:
    """
    Put the bundled AutograderLib.lean at the root of the Lean project.

    A copy already present in the project wins, so courses can pin their own
    version of the attribute. Whichever copy is used must declare the
    `autograded` attribute as `autogradedAttr`, since the exporter reads it.

    Args:
        project_dir: Lean project root.
        source: Bundled library source.

    Returns:
        Path of the library inside the project.
    """
    destination = project_dir / source.name
    if destination.exists():
        return destination

    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(source, destination)
    print(f"  Installed {source.name} into {project_dir}")
    return destination
