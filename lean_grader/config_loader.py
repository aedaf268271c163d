"""
Configuration loader for the Lean Grader.

Handles parsing and validation of the optional YAML grader configuration
and of the JSON provisioning config that locates the reference sheet.
"""

import json
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from .config import (
    BUILD_TIMEOUT_SECONDS,
    DEFAULT_PROJECT_DIR,
    DEFAULT_PROVISIONING_CONFIG,
    DEFAULT_REFERENCE_MODULE,
    DEFAULT_RESULTS_PATH,
    DEFAULT_SUBMISSION_DIR,
    LAKE_COMMAND,
)
from .errors import ConfigurationError


class GraderConfig(BaseModel):
    """
    Configuration model for the grader.
    """
    project_dir: Path = Field(DEFAULT_PROJECT_DIR, description="Lean project root (contains the lakefile)")
    reference_module: str = Field(DEFAULT_REFERENCE_MODULE, description="Module name of the reference sheet")
    submission_dir: Path = Field(DEFAULT_SUBMISSION_DIR, description="Directory holding the uploaded files")
    provisioning_config: Path = Field(DEFAULT_PROVISIONING_CONFIG, description="Path to autograder_config.json")
    results_path: Path = Field(DEFAULT_RESULTS_PATH, description="Where results.json is written")

    lake_command: str = Field(LAKE_COMMAND, description="Lake executable")
    build_timeout_seconds: int = Field(BUILD_TIMEOUT_SECONDS, gt=0, description="Timeout per toolchain call")
    verbose: bool = Field(False, description="Enable verbose output")


class ProvisioningConfig(BaseModel):
    """
    Location of the reference sheet in source control.

    Attributes:
        public_repo: GitHub repository holding the template, as `owner/repo`.
        assignment_path: Path of the reference file inside that repository.
    """
    public_repo: str = Field(..., pattern=r"^[\w.-]+/[\w.-]+$", description="GitHub owner/repo")
    assignment_path: str = Field(..., min_length=1, description="Path to the reference file in the repo")


def load_config(config_path: Path) -> GraderConfig:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        GraderConfig object with loaded values.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        yaml.YAMLError: If config file is invalid YAML.
        ValidationError: If config data is invalid.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        config_data = yaml.safe_load(f)

    if not config_data:
        return GraderConfig()

    # Resolve relative paths relative to the config file location
    config_dir = config_path.parent
    for path_field in ["project_dir", "submission_dir", "provisioning_config", "results_path"]:
        if path_field in config_data and config_data[path_field]:
            path = Path(config_data[path_field])
            if not path.is_absolute():
                config_data[path_field] = config_dir / path

    return GraderConfig(**config_data)


def load_provisioning_config(config_path: Path) -> ProvisioningConfig:
    """
    Load the provisioning config (autograder_config.json).

    Args:
        config_path: Path to the JSON file.

    Returns:
        Validated ProvisioningConfig.

    Raises:
        ConfigurationError: If the file is missing, not valid JSON, or
            lacks the required fields.
    """
    if not config_path.exists():
        raise ConfigurationError(f"Provisioning config not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return ProvisioningConfig(**data)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Provisioning config {config_path} is not valid JSON: {e}") from e
    except (TypeError, ValidationError) as e:
        raise ConfigurationError(f"Provisioning config {config_path} is invalid: {e}") from e
