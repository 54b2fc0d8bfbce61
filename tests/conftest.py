import pytest

from autoapprove.core.catalog import load_catalog
from autoapprove.core.models import ChangedFile, Configuration, PullRequest, Review, ValidPr

LEFT_PAD_PATCH = (
    "@@ -10,7 +10,7 @@\n"
    '   "dependencies": {\n'
    '-    "left-pad": "1.2.0"\n'
    '+    "left-pad": "{new}"\n'
    "   }\n"
)


def left_pad_patch(new: str = "1.3.0") -> str:
    return LEFT_PAD_PATCH.replace("{new}", new)


def make_file(filename: str, patch=None, additions=1, deletions=1, sha="abc") -> ChangedFile:
    return ChangedFile(sha=sha, filename=filename, patch=patch, additions=additions, deletions=deletions)


def make_pr(files, title="chore(deps): bump left-pad from 1.2.0 to 1.3.0", author="renovate-bot",
            reviews=(), head_sha="head1", **kwargs) -> PullRequest:
    return PullRequest(
        author=author,
        title=title,
        head_sha=head_sha,
        files=list(files),
        reviews=list(reviews),
        **kwargs,
    )


def make_review(reviewer, state, commit_id="head1", id=1) -> Review:
    return Review(reviewer=reviewer, state=state, commit_id=commit_id, id=id)


@pytest.fixture
def catalog():
    return load_catalog()


@pytest.fixture
def renovate_config() -> Configuration:
    return Configuration(rules=[ValidPr(author="renovate-bot", title=r"^(chore|fix)\(deps\):")])
