"""
PR policy evaluation pipeline.

This module is the ONLY place where a Verdict is created. Stages return
CheckResults; a PR is approved only when every check passed.

Stages:
1. Configuration entry lookup (author + title)
2. Fork guard
3. File count (max_files)
4. Per-file language rules (concurrent)
5. Review state at the head commit
6. Empty pull request
"""
import asyncio
import logging
from typing import List, Optional, Tuple

from .catalog import RuleCatalog, load_catalog
from .evaluator_stages import (
    CHECK_CHANGED_FILES,
    CHECK_FILE_RULE,
    check_fork,
    check_has_files,
    check_max_files,
    check_reviews,
    failing_reasons,
    find_valid_pr,
    is_listed,
)
from .matcher import match_rule
from .models import ChangedFile, CheckResult, Configuration, PullRequest, ValidPr, Verdict
from ..rules import DEFAULT_PROCESS, FileFetcher, get_rule_class

logger = logging.getLogger(__name__)


async def _check_file(
    changed_file: ChangedFile,
    pull_request: PullRequest,
    valid_pr: Optional[ValidPr],
    catalog: RuleCatalog,
    fetcher: Optional[FileFetcher],
) -> Tuple[CheckResult, Optional[str]]:
    """Verdict for one file, plus the process tag that approved it."""
    filename = changed_file.filename
    rule = match_rule(changed_file, pull_request.author, catalog)

    if rule is None:
        # Unmatched files are only acceptable when the configuration lists them.
        if is_listed(filename, valid_pr):
            return CheckResult(
                name=CHECK_CHANGED_FILES, passed=True, detail="listed in changed_files", filename=filename
            ), None
        return CheckResult(
            name=CHECK_FILE_RULE,
            passed=False,
            detail=f"{filename}: no file rule matches and it is not listed in changed_files",
            filename=filename,
        ), None

    process = rule.process or DEFAULT_PROCESS
    rule_class = get_rule_class(process)
    if rule_class is None:
        return CheckResult(
            name=CHECK_FILE_RULE,
            passed=False,
            detail=f"{filename}: no language rule registered for process '{process}'",
            filename=filename,
        ), None

    language_rule = rule_class(
        changed_file=changed_file,
        author=pull_request.author,
        file_rule=rule,
        title=pull_request.title,
        pull_request=pull_request,
        fetcher=fetcher,
    )
    if await language_rule.check_pr():
        return CheckResult(name=process, passed=True, detail=f"approved by {process}", filename=filename), process
    return CheckResult(
        name=process,
        passed=False,
        detail=f"{filename}: {process} rejected: " + "; ".join(language_rule.reasons),
        filename=filename,
    ), None


async def check_files(
    pull_request: PullRequest,
    valid_pr: Optional[ValidPr],
    catalog: RuleCatalog,
    fetcher: Optional[FileFetcher] = None,
) -> List[Tuple[CheckResult, Optional[str]]]:
    """Concurrently check every changed file. Results keep the PR's file order."""
    tasks = [
        _check_file(changed_file, pull_request, valid_pr, catalog, fetcher)
        for changed_file in pull_request.files
    ]
    return list(await asyncio.gather(*tasks))


async def evaluate(
    pull_request: PullRequest,
    configuration: Configuration,
    catalog: Optional[RuleCatalog] = None,
    fetcher: Optional[FileFetcher] = None,
) -> Verdict:
    """
    Decide whether a pull request may be auto-approved.

    Fail-closed: a missing configuration entry, an unmatched file, a missing
    patch or any extraction failure is a rejection. Raises ConfigurationError
    only when the rule catalog itself cannot be loaded.
    """
    if catalog is None:
        catalog = load_catalog()

    checks: List[CheckResult] = []

    # Stage 1: configuration entry
    valid_pr, valid_pr_check = find_valid_pr(pull_request, configuration)
    checks.append(valid_pr_check)

    # Stage 2: fork guard
    fork_check = check_fork(pull_request)
    if fork_check is not None:
        checks.append(fork_check)

    # Stage 3: file count
    max_files_check = check_max_files(pull_request, valid_pr)
    if max_files_check is not None:
        checks.append(max_files_check)

    # Stage 4: per-file rules
    file_rules = {}
    for file_check, process in await check_files(pull_request, valid_pr, catalog, fetcher):
        checks.append(file_check)
        if process is not None:
            file_rules[file_check.filename] = process

    # Stage 5: reviews
    checks.append(check_reviews(pull_request))

    # Stage 6: empty pull request
    no_files_check = check_has_files(pull_request)
    if no_files_check is not None:
        checks.append(no_files_check)

    reasons = failing_reasons(checks)
    verdict = Verdict(
        approved=not reasons,
        reasons=reasons,
        checks=checks,
        matched_rule=valid_pr,
        file_rules=file_rules,
    )

    label = f"#{pull_request.number}" if pull_request.number is not None else f"'{pull_request.title}'"
    if verdict.approved:
        logger.info("PR %s by %s approved (%d files)", label, pull_request.author, len(pull_request.files))
    else:
        logger.info("PR %s by %s rejected: %d failing checks", label, pull_request.author, len(reasons))
        for reason in reasons:
            logger.debug("PR %s: %s", label, reason)
    return verdict


def evaluate_sync(
    pull_request: PullRequest,
    configuration: Configuration,
    catalog: Optional[RuleCatalog] = None,
    fetcher: Optional[FileFetcher] = None,
) -> Verdict:
    """Blocking wrapper around evaluate() for callers without an event loop."""
    return asyncio.run(evaluate(pull_request, configuration, catalog=catalog, fetcher=fetcher))
