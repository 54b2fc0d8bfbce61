"""
End-to-end policy evaluation against the default rule catalog.
"""
import pytest

from autoapprove.core.catalog import RuleCatalog
from autoapprove.core.evaluator import evaluate, evaluate_sync
from autoapprove.core.models import Configuration, ReviewState, ValidPr

from conftest import left_pad_patch, make_file, make_pr, make_review


def _left_pad_pr(new="1.3.0", **kwargs):
    title = kwargs.pop("title", f"chore(deps): bump left-pad from 1.2.0 to {new}")
    files = kwargs.pop("files", [make_file("package.json", left_pad_patch(new))])
    return make_pr(files, title=title, **kwargs)


# ============================================================================
# Scenarios
# ============================================================================

@pytest.mark.asyncio
async def test_minor_bump_is_approved(catalog, renovate_config):
    verdict = await evaluate(_left_pad_pr("1.3.0"), renovate_config, catalog=catalog)
    assert verdict.approved
    assert verdict.reasons == []
    assert verdict.file_rules == {"package.json": "node-dependency"}
    assert verdict.matched_rule.author == "renovate-bot"


@pytest.mark.asyncio
async def test_major_bump_is_rejected_with_version_delta_reason(catalog, renovate_config):
    verdict = await evaluate(_left_pad_pr("2.0.0"), renovate_config, catalog=catalog)
    assert not verdict.approved
    assert len(verdict.reasons) == 1
    assert "package.json" in verdict.reasons[0]
    assert "version-delta policy" in verdict.reasons[0]


@pytest.mark.asyncio
async def test_changes_requested_at_head_blocks(catalog, renovate_config):
    pr = _left_pad_pr(reviews=[make_review("maintainer", ReviewState.CHANGES_REQUESTED, commit_id="head1")])
    verdict = await evaluate(pr, renovate_config, catalog=catalog)
    assert not verdict.approved
    assert verdict.reasons == ["blocking review: changes requested by maintainer at head commit head1"]


@pytest.mark.asyncio
async def test_changes_requested_on_previous_commit_does_not_block(catalog, renovate_config):
    pr = _left_pad_pr(reviews=[make_review("maintainer", ReviewState.CHANGES_REQUESTED, commit_id="older")])
    verdict = await evaluate(pr, renovate_config, catalog=catalog)
    assert verdict.approved


# ============================================================================
# Author and title gate
# ============================================================================

@pytest.mark.asyncio
@pytest.mark.parametrize("author", ["someone", "renovate-bot[bot]", "RENOVATE-BOT", ""])
async def test_unknown_author_is_always_rejected(catalog, renovate_config, author):
    verdict = await evaluate(_left_pad_pr(author=author), renovate_config, catalog=catalog)
    assert not verdict.approved
    assert verdict.reasons[0] == f"author '{author}' is not permitted by any auto-approve rule"
    assert verdict.matched_rule is None


@pytest.mark.asyncio
async def test_title_mismatch_is_rejected(catalog):
    config = Configuration(rules=[ValidPr(author="renovate-bot", title=r"^fix\(deps\):")])
    verdict = await evaluate(_left_pad_pr(), config, catalog=catalog)
    assert not verdict.approved
    assert "does not match any rule for author 'renovate-bot'" in verdict.reasons[0]


@pytest.mark.asyncio
async def test_second_entry_for_same_author_can_match(catalog):
    config = Configuration(rules=[
        ValidPr(author="renovate-bot", title=r"^fix\(deps\):"),
        ValidPr(author="renovate-bot", title=r"^chore\(deps\):"),
    ])
    verdict = await evaluate(_left_pad_pr(), config, catalog=catalog)
    assert verdict.approved
    assert verdict.matched_rule.title == r"^chore\(deps\):"


# ============================================================================
# Files
# ============================================================================

@pytest.mark.asyncio
async def test_unmatched_file_rejects_even_when_others_pass(catalog, renovate_config):
    files = [make_file("package.json", left_pad_patch()), make_file("src/index.js", "@@ -1 +1 @@\n-a\n+b\n")]
    verdict = await evaluate(_left_pad_pr(files=files), renovate_config, catalog=catalog)
    assert not verdict.approved
    assert verdict.reasons == ["src/index.js: no file rule matches and it is not listed in changed_files"]


@pytest.mark.asyncio
async def test_listed_file_without_rule_is_accepted(catalog):
    config = Configuration(rules=[
        ValidPr(author="renovate-bot", title=r"^chore\(deps\):", changed_files=[r"^package-lock\.json$"]),
    ])
    files = [make_file("package.json", left_pad_patch()), make_file("package-lock.json", "@@ -1 +1 @@\n-a\n+b\n")]
    verdict = await evaluate(_left_pad_pr(files=files), config, catalog=catalog)
    assert verdict.approved, verdict.reasons
    assert verdict.file_rules == {"package.json": "node-dependency"}


@pytest.mark.asyncio
async def test_listed_file_still_needs_its_rule_to_pass(catalog):
    config = Configuration(rules=[
        ValidPr(author="renovate-bot", title=r"^chore\(deps\):", changed_files=[r"^package\.json$"]),
    ])
    verdict = await evaluate(_left_pad_pr("2.0.0"), config, catalog=catalog)
    assert not verdict.approved


@pytest.mark.asyncio
async def test_max_files(catalog):
    config = Configuration(rules=[
        ValidPr(author="renovate-bot", title=r"^chore\(deps\):", changed_files=[r"\.md$"], max_files=2),
    ])
    files = [
        make_file("package.json", left_pad_patch()),
        make_file("README.md", "@@ -1 +1 @@\n-a\n+b\n"),
        make_file("CHANGELOG.md", "@@ -1 +1 @@\n-a\n+b\n"),
    ]
    verdict = await evaluate(_left_pad_pr(files=files), config, catalog=catalog)
    assert not verdict.approved
    assert verdict.reasons == ["3 changed files exceed the maximum of 2"]


@pytest.mark.asyncio
async def test_file_without_patch_is_rejected(catalog, renovate_config):
    verdict = await evaluate(_left_pad_pr(files=[make_file("package.json", None)]), renovate_config, catalog=catalog)
    assert not verdict.approved
    assert "version extraction failed" in verdict.reasons[0]


@pytest.mark.asyncio
async def test_pr_without_files_is_rejected(catalog, renovate_config):
    verdict = await evaluate(_left_pad_pr(files=[]), renovate_config, catalog=catalog)
    assert not verdict.approved
    assert verdict.reasons == ["pull request has no changed files"]


@pytest.mark.asyncio
async def test_fork_is_rejected(catalog, renovate_config):
    pr = _left_pad_pr(base_repo="googleapis/nodejs-storage", head_repo="someone/nodejs-storage")
    verdict = await evaluate(pr, renovate_config, catalog=catalog)
    assert not verdict.approved
    assert "fork" in verdict.reasons[0]


@pytest.mark.asyncio
async def test_catalog_process_without_language_rule_is_rejected(catalog, renovate_config):
    rule = catalog.rules[0].model_copy(update={"process": "not-registered"})
    broken = RuleCatalog(version="x", ecosystems={"node": [rule]})
    verdict = await evaluate(_left_pad_pr(), renovate_config, catalog=broken)
    assert not verdict.approved
    assert "no language rule registered for process 'not-registered'" in verdict.reasons[0]


# ============================================================================
# Reasons and statelessness
# ============================================================================

@pytest.mark.asyncio
async def test_every_failing_check_reports_in_order(catalog, renovate_config):
    pr = _left_pad_pr(
        "2.0.0",
        author="stranger",
        reviews=[make_review("maintainer", ReviewState.CHANGES_REQUESTED)],
    )
    verdict = await evaluate(pr, renovate_config, catalog=catalog)
    assert not verdict.approved
    assert [c.name for c in verdict.checks if not c.passed] == ["valid_pr", "file_rule", "reviews"]
    assert len(verdict.reasons) == 3


@pytest.mark.asyncio
async def test_evaluation_is_idempotent(catalog, renovate_config):
    pr = _left_pad_pr("2.0.0", reviews=[make_review("maintainer", ReviewState.CHANGES_REQUESTED)])
    first = await evaluate(pr, renovate_config, catalog=catalog)
    second = await evaluate(pr, renovate_config, catalog=catalog)
    assert first == second
    assert first.reasons == second.reasons


def test_evaluate_sync_uses_default_catalog(renovate_config):
    verdict = evaluate_sync(_left_pad_pr("1.3.0"), renovate_config)
    assert verdict.approved


@pytest.mark.asyncio
async def test_empty_pr_reason_comes_last(catalog, renovate_config):
    pr = _left_pad_pr(files=[], reviews=[make_review("maintainer", ReviewState.CHANGES_REQUESTED)])
    verdict = await evaluate(pr, renovate_config, catalog=catalog)
    assert not verdict.approved
    assert [c.name for c in verdict.checks if not c.passed] == ["reviews", "no_files"]
    assert verdict.reasons[-1] == "pull request has no changed files"


@pytest.mark.asyncio
async def test_workflow_bumping_two_actions_is_rejected(catalog):
    config = Configuration(rules=[ValidPr(author="renovate-bot", title=r"^chore\(deps\):")])
    patch = (
        "@@ -8,9 +8,9 @@ jobs:\n"
        "     steps:\n"
        "-      - uses: actions/checkout@v3.1.0\n"
        "+      - uses: actions/checkout@v3.5.2\n"
        "-      - uses: actions/setup-node@v3\n"
        "+      - uses: actions/setup-node@v4\n"
    )
    files = [make_file(".github/workflows/ci.yml", patch, additions=2, deletions=2)]
    verdict = await evaluate(make_pr(files, title="chore(deps): update actions"), config, catalog=catalog)
    assert not verdict.approved
    assert "more than one dependency changed" in verdict.reasons[0]
