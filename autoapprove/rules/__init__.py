"""
Language rule variants.

Importing this package registers every variant; adding an ecosystem means
adding a module here and importing it below.
"""
from .base import (
    DEFAULT_PROCESS,
    FileFetcher,
    LanguageRule,
    get_rule_class,
    register_rule,
    registered_processes,
)
from . import default, go, java, node, python  # noqa: F401

__all__ = [
    "DEFAULT_PROCESS",
    "FileFetcher",
    "LanguageRule",
    "get_rule_class",
    "register_rule",
    "registered_processes",
]
