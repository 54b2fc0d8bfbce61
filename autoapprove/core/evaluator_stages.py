"""
PR-level stages of the evaluation pipeline.

Each stage is a pure function returning a CheckResult (or None when the
check does not apply). Only evaluator.py turns them into a Verdict.
"""
import re
from typing import List, Optional, Tuple

from .models import CheckResult, Configuration, PullRequest, ValidPr
from .reviews import blocking_reviews

# Check names (as constants, used in CheckResult.name)
CHECK_VALID_PR = "valid_pr"
CHECK_FORK = "fork"
CHECK_NO_FILES = "no_files"
CHECK_MAX_FILES = "max_files"
CHECK_CHANGED_FILES = "changed_files"
CHECK_FILE_RULE = "file_rule"
CHECK_REVIEWS = "reviews"


def find_valid_pr(pull_request: PullRequest, configuration: Configuration) -> Tuple[Optional[ValidPr], CheckResult]:
    """First configuration entry whose author equals the PR author and whose title pattern matches."""
    by_author = [rule for rule in configuration.rules if rule.author == pull_request.author]
    for rule in by_author:
        if re.search(rule.title, pull_request.title):
            return rule, CheckResult(
                name=CHECK_VALID_PR,
                passed=True,
                detail=f"author '{pull_request.author}' and title match rule '{rule.title}'",
            )

    if not by_author:
        detail = f"author '{pull_request.author}' is not permitted by any auto-approve rule"
    else:
        patterns = ", ".join(f"'{rule.title}'" for rule in by_author)
        detail = (
            f"title '{pull_request.title}' does not match any rule for author "
            f"'{pull_request.author}' ({patterns})"
        )
    return None, CheckResult(name=CHECK_VALID_PR, passed=False, detail=detail)


def check_fork(pull_request: PullRequest) -> Optional[CheckResult]:
    if not pull_request.base_repo or not pull_request.head_repo:
        return None
    if pull_request.base_repo == pull_request.head_repo:
        return CheckResult(name=CHECK_FORK, passed=True, detail="opened from the base repository")
    return CheckResult(
        name=CHECK_FORK,
        passed=False,
        detail=f"opened from fork '{pull_request.head_repo}', not '{pull_request.base_repo}'",
    )


def check_has_files(pull_request: PullRequest) -> Optional[CheckResult]:
    if pull_request.files:
        return None
    return CheckResult(name=CHECK_NO_FILES, passed=False, detail="pull request has no changed files")


def check_max_files(pull_request: PullRequest, valid_pr: Optional[ValidPr]) -> Optional[CheckResult]:
    if valid_pr is None or valid_pr.max_files is None:
        return None
    count = len(pull_request.files)
    if count <= valid_pr.max_files:
        return CheckResult(name=CHECK_MAX_FILES, passed=True, detail=f"{count} files <= {valid_pr.max_files}")
    return CheckResult(
        name=CHECK_MAX_FILES,
        passed=False,
        detail=f"{count} changed files exceed the maximum of {valid_pr.max_files}",
    )


def is_listed(filename: str, valid_pr: Optional[ValidPr]) -> bool:
    """True when the entry's changed_files patterns cover the filename."""
    if valid_pr is None or not valid_pr.changed_files:
        return False
    return any(re.search(pattern, filename) for pattern in valid_pr.changed_files)


def check_reviews(pull_request: PullRequest) -> CheckResult:
    blocking = blocking_reviews(pull_request.reviews, pull_request.head_sha)
    if not blocking:
        return CheckResult(name=CHECK_REVIEWS, passed=True, detail="no blocking reviews")
    reviewers = ", ".join(review.reviewer for review in blocking)
    at = f" at head commit {pull_request.head_sha}" if pull_request.head_sha else ""
    return CheckResult(
        name=CHECK_REVIEWS,
        passed=False,
        detail=f"blocking review: changes requested by {reviewers}{at}",
    )


def failing_reasons(checks: List[CheckResult]) -> List[str]:
    return [check.detail for check in checks if not check.passed]
