"""
Configuration path management.

Centralizes file path resolution so catalog loading does not depend on
the working directory.
"""
from pathlib import Path
import os

# autoapprove/core/config.py -> autoapprove -> project root
_PROJECT_ROOT = Path(__file__).parent.parent.parent.resolve()

CONFIG_DIR = _PROJECT_ROOT / "config"
CASES_DIR = _PROJECT_ROOT / "cases"

DEFAULT_CATALOG = "file_rules.yaml"

# Environment overrides (for testing/deployment)
if os.getenv("AUTO_APPROVE_CONFIG_DIR"):
    CONFIG_DIR = Path(os.getenv("AUTO_APPROVE_CONFIG_DIR")).resolve()
if os.getenv("AUTO_APPROVE_CASES_DIR"):
    CASES_DIR = Path(os.getenv("AUTO_APPROVE_CASES_DIR")).resolve()


def get_config_path(filename: str) -> Path:
    """Get absolute path to a config file."""
    # Support both relative paths (like "config/file_rules.yaml") and filenames
    if "/" in filename or "\\" in filename:
        path = Path(filename)
        if not path.is_absolute():
            path = _PROJECT_ROOT / filename
    else:
        path = CONFIG_DIR / filename

    if not path.exists():
        raise FileNotFoundError(
            f"Config file not found: {path}\n"
            f"Config directory: {CONFIG_DIR}\n"
            f"Project root: {_PROJECT_ROOT}"
        )
    return path


def get_cases_dir() -> Path:
    return CASES_DIR


def get_project_root() -> Path:
    """Get the project root directory."""
    return _PROJECT_ROOT
