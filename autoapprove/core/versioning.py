"""
Dotted-decimal version comparison.

Version components stay strings in Versions because they may be
non-numeric ("x", "0-beta"). They are parsed here, segment by segment,
only when a policy needs to compare them.
"""
from enum import Enum
from typing import Optional, Tuple

from .models import Versions


class VersionChange(str, Enum):
    NONE = "NONE"
    PATCH = "PATCH"
    MINOR = "MINOR"
    MAJOR = "MAJOR"
    DOWNGRADE = "DOWNGRADE"
    # Some segment was not an integer
    UNKNOWN = "UNKNOWN"


# Largest change each bound accepts, in increasing order.
_BOUND_ORDER = {
    VersionChange.PATCH: 0,
    VersionChange.MINOR: 1,
    VersionChange.MAJOR: 2,
}


def parse_segments(value: str) -> Optional[Tuple[int, ...]]:
    """"3.0" -> (3, 0); None when any segment is not an integer."""
    if value is None:
        return None
    parts = value.strip().split(".")
    segments = []
    for part in parts:
        if not part.isdecimal():
            return None
        segments.append(int(part))
    return tuple(segments)


def compare_segments(a: Tuple[int, ...], b: Tuple[int, ...]) -> int:
    """Return -1, 0 or 1. The shorter tuple is padded with zeros."""
    width = max(len(a), len(b))
    a = a + (0,) * (width - len(a))
    b = b + (0,) * (width - len(b))
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def classify_change(versions: Versions) -> VersionChange:
    """
    Classify the transition from the old to the new version.

    The minor field carries everything after the major component, so
    "1.2.0" arrives as major "1" and minor "2.0". A change in the first
    minor segment is MINOR, anything after it is PATCH.
    """
    old_major = versions.old_major_version.strip()
    new_major = versions.new_major_version.strip()

    if old_major != new_major:
        old_major_segments = parse_segments(old_major)
        new_major_segments = parse_segments(new_major)
        if old_major_segments is not None and new_major_segments is not None:
            cmp = compare_segments(new_major_segments, old_major_segments)
            if cmp < 0:
                return VersionChange.DOWNGRADE
            if cmp > 0:
                return VersionChange.MAJOR
            # "01" vs "1": numerically equal, fall through to minor
        else:
            return VersionChange.MAJOR

    old_minor = parse_segments(versions.old_minor_version)
    new_minor = parse_segments(versions.new_minor_version)
    if old_minor is None or new_minor is None:
        return VersionChange.UNKNOWN

    cmp = compare_segments(new_minor, old_minor)
    if cmp == 0:
        return VersionChange.NONE
    if cmp < 0:
        return VersionChange.DOWNGRADE
    if new_minor[:1] != old_minor[:1]:
        return VersionChange.MINOR
    return VersionChange.PATCH


def is_within_bound(change: VersionChange, bound: VersionChange) -> bool:
    """
    True when `change` is an upgrade no larger than `bound`.

    UNKNOWN satisfies minor and major bounds but never a patch-only bound.
    NONE and DOWNGRADE never satisfy any bound.
    """
    if bound not in _BOUND_ORDER:
        raise ValueError(f"Unsupported version bound: {bound}")
    if change in (VersionChange.NONE, VersionChange.DOWNGRADE):
        return False
    if change == VersionChange.UNKNOWN:
        return bound != VersionChange.PATCH
    return _BOUND_ORDER[change] <= _BOUND_ORDER[bound]


def format_version(major: str, minor: str) -> str:
    return f"{major}.{minor}" if minor else major
