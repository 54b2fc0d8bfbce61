import re
from enum import Enum
from typing import Optional, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ReviewState(str, Enum):
    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    COMMENTED = "COMMENTED"
    DISMISSED = "DISMISSED"
    PENDING = "PENDING"


class ChangedFile(BaseModel):
    """One entry of a pull request's file list."""
    model_config = ConfigDict(frozen=True)

    sha: str = ""
    filename: str = Field(..., min_length=1)
    # Missing for binary, oversized or truncated diffs.
    patch: Optional[str] = None
    additions: Optional[int] = Field(None, ge=0)
    deletions: Optional[int] = Field(None, ge=0)
    changes: Optional[int] = Field(None, ge=0)
    status: Optional[str] = None


class Review(BaseModel):
    model_config = ConfigDict(frozen=True)

    reviewer: str
    state: ReviewState
    commit_id: Optional[str] = None
    id: int

    @field_validator("state", mode="before")
    @classmethod
    def normalize_state(cls, v):
        """GitHub reports states upper-cased, webhooks sometimes lower-cased."""
        if isinstance(v, str):
            return v.strip().upper()
        return v


class PullRequest(BaseModel):
    """Snapshot of a pull request supplied by the caller. Never mutated."""
    model_config = ConfigDict(frozen=True)

    author: str
    title: str
    number: Optional[int] = None
    head_sha: Optional[str] = None
    # "owner/name" of the base and head repositories
    base_repo: Optional[str] = None
    head_repo: Optional[str] = None
    files: List[ChangedFile] = Field(default_factory=list)
    reviews: List[Review] = Field(default_factory=list)


def _compile_or_raise(pattern: str, field_name: str) -> str:
    try:
        re.compile(pattern)
    except re.error as e:
        raise ValueError(f"{field_name} is not a valid regular expression: {pattern!r} ({e})") from e
    return pattern


class ValidPr(BaseModel):
    """One entry of a repository's auto-approve configuration."""
    model_config = ConfigDict(frozen=True)

    author: str = Field(..., min_length=1)
    title: str
    changed_files: Optional[List[str]] = None
    max_files: Optional[int] = Field(None, ge=1)

    @field_validator("title")
    @classmethod
    def title_is_regex(cls, v: str) -> str:
        return _compile_or_raise(v, "title")

    @field_validator("changed_files")
    @classmethod
    def changed_files_are_regexes(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return None
        for pattern in v:
            _compile_or_raise(pattern, "changed_files")
        return v


class Configuration(BaseModel):
    """Per-repository policy: the parsed auto-approve.yml document."""
    model_config = ConfigDict(frozen=True)

    rules: List[ValidPr] = Field(..., min_length=1)


class FileSpecificRule(BaseModel):
    """
    Catalog entry binding an author and a filename pattern to the patterns
    that pull the old and new version out of that file's diff.
    """
    model_config = ConfigDict(frozen=True)

    author: str = Field(..., min_length=1)
    process: Optional[str] = None
    title: Optional[str] = None
    target_file: str
    old_version: str
    new_version: str
    examples: List[str] = Field(default_factory=list)


class Versions(BaseModel):
    model_config = ConfigDict(frozen=True)

    old_dependency_name: str
    new_dependency_name: str
    old_major_version: str
    old_minor_version: str
    new_major_version: str
    new_minor_version: str
    # How many candidate lines each pattern found; only the first is used.
    old_match_count: int = 1
    new_match_count: int = 1


class ExtractionResult(BaseModel):
    """Either a Versions record or the reason extraction failed."""
    model_config = ConfigDict(frozen=True)

    versions: Optional[Versions] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.versions is not None


class CheckResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    passed: bool
    detail: str = ""
    filename: Optional[str] = None


class Verdict(BaseModel):
    approved: bool
    reasons: List[str] = Field(default_factory=list)
    checks: List[CheckResult] = Field(default_factory=list)
    matched_rule: Optional[ValidPr] = None
    # filename -> process tag of the rule that approved it
    file_rules: Dict[str, str] = Field(default_factory=dict)
