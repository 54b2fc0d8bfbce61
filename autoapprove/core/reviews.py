from typing import Dict, List, Optional

from .models import Review, ReviewState

# States that never replace a reviewer's earlier verdict (GitHub semantics:
# a plain comment after "changes requested" keeps the request in force).
_NON_VERDICT_STATES = (ReviewState.COMMENTED, ReviewState.PENDING)


def authoritative_reviews(reviews: List[Review], head_sha: Optional[str]) -> List[Review]:
    """
    The latest verdict of each reviewer at the head commit, ordered by id.

    When the head commit is unknown every review counts, which can only make
    the gate stricter.
    """
    latest: Dict[str, Review] = {}
    for review in sorted(reviews, key=lambda r: r.id):
        if head_sha is not None and review.commit_id != head_sha:
            continue
        if review.state in _NON_VERDICT_STATES:
            continue
        latest[review.reviewer] = review
    return sorted(latest.values(), key=lambda r: r.id)


def blocking_reviews(reviews: List[Review], head_sha: Optional[str]) -> List[Review]:
    return [
        review for review in authoritative_reviews(reviews, head_sha)
        if review.state == ReviewState.CHANGES_REQUESTED
    ]
