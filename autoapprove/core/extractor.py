"""
Version extraction from a single changed file's diff.

Failures are returned as ExtractionResult values; callers turn them into
file rejections instead of catching exceptions.
"""
import re
from functools import lru_cache
from typing import List, Optional, Tuple, Union

from .models import ChangedFile, ExtractionResult, FileSpecificRule, Versions

VERSION_GROUPS = ("dependency", "major", "minor")

GroupRef = Union[str, int]


@lru_cache(maxsize=256)
def compile_version_pattern(pattern: str) -> "re.Pattern":
    # Patterns are matched line-wise against the whole patch text.
    return re.compile(pattern, re.MULTILINE)


def version_group_refs(compiled: "re.Pattern") -> Optional[Tuple[GroupRef, ...]]:
    """
    Group references for (dependency, major, minor).

    Named groups are preferred; a pattern without any of them may instead
    define exactly three positional groups in that order. Returns None when
    neither convention holds.
    """
    names = compiled.groupindex
    if all(name in names for name in VERSION_GROUPS):
        return VERSION_GROUPS
    if not names and compiled.groups == 3:
        return (1, 2, 3)
    return None


def changed_lines(patch: Optional[str]) -> List[str]:
    """
    The added and removed lines of a unified diff, marker included.

    "+++"/"---" file headers before the first "@@" are skipped.
    """
    lines = []
    in_hunk = False
    for line in (patch or "").splitlines():
        if line.startswith("@@"):
            in_hunk = True
            continue
        if not in_hunk and line.startswith(("+++", "---")):
            continue
        if line[:1] in ("+", "-"):
            lines.append(line)
    return lines


def count_changed_lines(patch: Optional[str]) -> Tuple[int, int]:
    """(additions, deletions) counted from the patch text itself."""
    lines = changed_lines(patch)
    additions = sum(1 for line in lines if line.startswith("+"))
    return additions, len(lines) - additions


def _group(match: "re.Match", ref: GroupRef) -> str:
    value = match.group(ref)
    return value.strip() if value else ""


def extract_versions(changed_file: ChangedFile, rule: FileSpecificRule) -> ExtractionResult:
    """
    Pull the old and new dependency name and version out of a file's patch.

    The first match of each pattern in diff order is used. The number of
    candidate matches is kept on the record so that policies can refuse
    diffs touching more than one dependency.
    """
    if not changed_file.patch:
        return ExtractionResult(error=f"{changed_file.filename}: no patch available to extract versions from")

    old_pattern = compile_version_pattern(rule.old_version)
    new_pattern = compile_version_pattern(rule.new_version)
    old_refs = version_group_refs(old_pattern)
    new_refs = version_group_refs(new_pattern)
    if old_refs is None or new_refs is None:
        # Catalog validation rejects these; guard direct callers too.
        return ExtractionResult(
            error=f"{changed_file.filename}: version patterns lack dependency/major/minor groups"
        )

    old_matches = list(old_pattern.finditer(changed_file.patch))
    if not old_matches:
        return ExtractionResult(error=f"{changed_file.filename}: old version pattern did not match the diff")

    new_matches = list(new_pattern.finditer(changed_file.patch))
    if not new_matches:
        return ExtractionResult(error=f"{changed_file.filename}: new version pattern did not match the diff")

    old_match = old_matches[0]
    new_match = new_matches[0]
    return ExtractionResult(
        versions=Versions(
            old_dependency_name=_group(old_match, old_refs[0]),
            old_major_version=_group(old_match, old_refs[1]),
            old_minor_version=_group(old_match, old_refs[2]),
            new_dependency_name=_group(new_match, new_refs[0]),
            new_major_version=_group(new_match, new_refs[1]),
            new_minor_version=_group(new_match, new_refs[2]),
            old_match_count=len(old_matches),
            new_match_count=len(new_matches),
        )
    )
