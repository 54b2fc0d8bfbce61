"""
File rule matching.

Rules are tried in declaration order and the first one whose author equals
the PR author and whose target-file pattern matches the filename wins, so
catalogs must list specific patterns before general ones.
"""
import re
from typing import Iterable, List, Optional

from .models import ChangedFile, FileSpecificRule


def rule_applies(rule: FileSpecificRule, filename: str, author: str) -> bool:
    if rule.author != author:
        return False
    return re.search(rule.target_file, filename) is not None


def match_rule(
    changed_file: ChangedFile,
    author: str,
    rules: Iterable[FileSpecificRule],
) -> Optional[FileSpecificRule]:
    """Return the first applicable rule, or None when no rule covers the file."""
    for rule in rules:
        if rule_applies(rule, changed_file.filename, author):
            return rule
    return None


def matching_rules(
    filename: str,
    author: str,
    rules: Iterable[FileSpecificRule],
) -> List[FileSpecificRule]:
    """Every applicable rule, in declaration order. Used to detect overlaps."""
    return [rule for rule in rules if rule_applies(rule, filename, author)]
