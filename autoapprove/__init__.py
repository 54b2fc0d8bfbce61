"""Automated pull-request approval decision engine."""
from .core.catalog import RuleCatalog, load_catalog
from .core.errors import ConfigurationError
from .core.evaluator import evaluate, evaluate_sync
from .core.models import (
    ChangedFile,
    Configuration,
    FileSpecificRule,
    PullRequest,
    Review,
    ReviewState,
    ValidPr,
    Verdict,
    Versions,
)

__version__ = "0.3.0"

__all__ = [
    "ChangedFile",
    "Configuration",
    "ConfigurationError",
    "FileSpecificRule",
    "PullRequest",
    "Review",
    "ReviewState",
    "RuleCatalog",
    "ValidPr",
    "Verdict",
    "Versions",
    "evaluate",
    "evaluate_sync",
    "load_catalog",
]
