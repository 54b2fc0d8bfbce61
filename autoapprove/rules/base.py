"""
Language rules: per-ecosystem acceptance policies.

A LanguageRule is bound to one changed file and decides whether that file's
change may be auto-approved. Variants register themselves under the process
tag used in the rule catalog; the evaluator only ever looks them up by tag.
"""
import logging
import posixpath
import re
from typing import Awaitable, Callable, ClassVar, Dict, List, Optional, Type

from ..core.extractor import count_changed_lines, extract_versions
from ..core.models import ChangedFile, FileSpecificRule, PullRequest, Versions
from ..core.versioning import (
    VersionChange,
    classify_change,
    compare_segments,
    format_version,
    is_within_bound,
    parse_segments,
)

logger = logging.getLogger(__name__)

# async (path, ref) -> file content, or None when the file does not exist
FileFetcher = Callable[[str, Optional[str]], Awaitable[Optional[str]]]

DEFAULT_PROCESS = "default"

_RULES: Dict[str, Type["LanguageRule"]] = {}


def register_rule(process: str):
    """Class decorator registering a LanguageRule under a process tag."""
    def decorator(cls: Type["LanguageRule"]) -> Type["LanguageRule"]:
        if process in _RULES and _RULES[process] is not cls:
            raise ValueError(f"Process '{process}' is already registered to {_RULES[process].__name__}")
        cls.process = process
        _RULES[process] = cls
        return cls
    return decorator


def get_rule_class(process: Optional[str]) -> Optional[Type["LanguageRule"]]:
    return _RULES.get(process or DEFAULT_PROCESS)


def registered_processes() -> List[str]:
    return sorted(_RULES)


class LanguageRule:
    """
    Base acceptance policy.

    `check_pr` runs the title check, extracts versions from the patch and
    hands them to `check_versions`. Every unmet condition is recorded in
    `reasons`; the verdict is simply "no reasons".
    """

    process: ClassVar[str] = ""
    # Largest version change accepted
    max_change: ClassVar[VersionChange] = VersionChange.MINOR
    # Reject diffs touching more than one dependency
    single_dependency: ClassVar[bool] = True
    allow_rename: ClassVar[bool] = False

    def __init__(
        self,
        changed_file: ChangedFile,
        author: str,
        file_rule: FileSpecificRule,
        title: str,
        pull_request: Optional[PullRequest] = None,
        fetcher: Optional[FileFetcher] = None,
    ):
        self.changed_file = changed_file
        self.author = author
        self.file_rule = file_rule
        self.title = title
        self.pull_request = pull_request
        self.fetcher = fetcher
        self.reasons: List[str] = []
        self.versions: Optional[Versions] = None

    async def check_pr(self) -> bool:
        """Resolve True when the file may be auto-approved. Never raises."""
        self.reasons = []
        self.versions = None
        try:
            await self.run_checks()
        except Exception as e:
            logger.exception("%s raised while checking %s", type(self).__name__, self.changed_file.filename)
            self.reject(f"internal error in {self.process} rule: {e}")
        return not self.reasons

    async def run_checks(self) -> None:
        title_match = self.check_title()
        result = extract_versions(self.changed_file, self.file_rule)
        if not result.ok:
            self.reject(f"version extraction failed: {result.error}")
            return
        self.versions = result.versions
        await self.check_versions(result.versions, title_match)

    async def check_versions(self, versions: Versions, title_match: Optional["re.Match"]) -> None:
        self.check_dependency_name(versions)
        if self.single_dependency:
            self.check_single_dependency(versions)
        self.check_version_delta(versions)
        if title_match is not None:
            self.check_title_matches_change(title_match, versions)

    def reject(self, reason: str) -> None:
        self.reasons.append(reason)

    # -- individual checks -------------------------------------------------

    def check_title(self) -> Optional["re.Match"]:
        if self.file_rule.title is None:
            return None
        match = re.search(self.file_rule.title, self.title)
        if match is None:
            self.reject(f"title '{self.title}' does not match the {self.process} title pattern")
        return match

    def check_dependency_name(self, versions: Versions) -> None:
        if self.allow_rename:
            return
        if versions.old_dependency_name != versions.new_dependency_name:
            self.reject(
                f"dependency name changed from '{versions.old_dependency_name}' "
                f"to '{versions.new_dependency_name}'"
            )

    def check_single_dependency(self, versions: Versions) -> None:
        if versions.old_match_count > 1 or versions.new_match_count > 1:
            self.reject(
                f"more than one dependency changed ({versions.old_match_count} removed, "
                f"{versions.new_match_count} added version lines)"
            )
            return
        # The patch is authoritative; reported counts can only tighten it.
        additions, deletions = count_changed_lines(self.changed_file.patch)
        additions = max(additions, self.changed_file.additions or 0)
        deletions = max(deletions, self.changed_file.deletions or 0)
        if additions > 1 or deletions > 1:
            self.reject(f"more than one line changed ({additions} additions, {deletions} deletions)")

    def check_version_delta(self, versions: Versions) -> None:
        change = classify_change(versions)
        if is_within_bound(change, self.max_change):
            return
        old = format_version(versions.old_major_version, versions.old_minor_version)
        new = format_version(versions.new_major_version, versions.new_minor_version)
        self.reject(
            f"version-delta policy: {change.value.lower()} change {old} -> {new} "
            f"exceeds the allowed {self.max_change.value.lower()} bump"
        )

    def check_title_matches_change(self, title_match: "re.Match", versions: Versions) -> None:
        """The title's `dependency` and `version` groups, when present, must describe this diff."""
        groups = title_match.groupdict()
        title_dependency = groups.get("dependency")
        if title_dependency and not self.same_dependency(title_dependency, versions.new_dependency_name):
            self.reject(
                f"title names dependency '{title_dependency}' but the diff changes "
                f"'{versions.new_dependency_name}'"
            )
        title_version = groups.get("version")
        if title_version:
            new = format_version(versions.new_major_version, versions.new_minor_version)
            if not _same_version(title_version, new):
                self.reject(f"title names version '{title_version}' but the diff moves to '{new}'")

    def same_dependency(self, title_dependency: str, dependency: str) -> bool:
        return title_dependency == dependency

    # -- helpers -----------------------------------------------------------

    def companion_changed(self, filename: str) -> bool:
        """True when `filename`, in this file's directory, is part of the same PR."""
        if self.pull_request is None:
            return False
        directory = posixpath.dirname(self.changed_file.filename)
        wanted = posixpath.join(directory, filename) if directory else filename
        return any(f.filename == wanted for f in self.pull_request.files)

    async def fetch(self, path: str) -> Optional[str]:
        if self.fetcher is None:
            return None
        ref = self.pull_request.head_sha if self.pull_request is not None else None
        return await self.fetcher(path, ref)


def _same_version(title_version: str, version: str) -> bool:
    title_version = title_version.strip().lstrip("vV")
    a = parse_segments(title_version)
    b = parse_segments(version)
    if a is not None and b is not None:
        return compare_segments(a, b) == 0
    return title_version == version
