import pytest

from autoapprove.core.models import Versions
from autoapprove.core.versioning import (
    VersionChange,
    classify_change,
    compare_segments,
    is_within_bound,
    parse_segments,
)


def _versions(old: str, new: str, name="dep") -> Versions:
    old_major, _, old_minor = old.partition(".")
    new_major, _, new_minor = new.partition(".")
    return Versions(
        old_dependency_name=name,
        new_dependency_name=name,
        old_major_version=old_major,
        old_minor_version=old_minor,
        new_major_version=new_major,
        new_minor_version=new_minor,
    )


def test_parse_segments():
    assert parse_segments("3.0") == (3, 0)
    assert parse_segments("10") == (10,)
    assert parse_segments("x") is None
    assert parse_segments("0-beta.1") is None


def test_compare_segments_is_numeric_not_lexical():
    assert compare_segments((10, 0), (9, 0)) == 1
    assert compare_segments((2,), (2, 0)) == 0
    assert compare_segments((2, 0), (2, 1)) == -1


@pytest.mark.parametrize(
    "old,new,expected",
    [
        ("1.2.0", "1.3.0", VersionChange.MINOR),
        ("1.2.0", "1.2.5", VersionChange.PATCH),
        ("1.9.0", "1.10.0", VersionChange.MINOR),
        ("1.2.0", "2.0.0", VersionChange.MAJOR),
        ("2.0.0", "1.9.0", VersionChange.DOWNGRADE),
        ("1.3.0", "1.2.0", VersionChange.DOWNGRADE),
        ("1.2.0", "1.2.0", VersionChange.NONE),
        ("1.2.0", "1.x", VersionChange.UNKNOWN),
        ("1.2.0", "1.3.0-beta.1", VersionChange.UNKNOWN),
    ],
)
def test_classify_change(old, new, expected):
    assert classify_change(_versions(old, new)) == expected


def test_non_numeric_major_change_is_major():
    versions = _versions("1.2.0", "1.2.0").model_copy(update={"new_major_version": "next"})
    assert classify_change(versions) == VersionChange.MAJOR


def test_bounds():
    assert is_within_bound(VersionChange.PATCH, VersionChange.MINOR)
    assert is_within_bound(VersionChange.MINOR, VersionChange.MINOR)
    assert not is_within_bound(VersionChange.MAJOR, VersionChange.MINOR)
    assert is_within_bound(VersionChange.MAJOR, VersionChange.MAJOR)
    assert not is_within_bound(VersionChange.MINOR, VersionChange.PATCH)


def test_unknown_satisfies_minor_but_not_patch_bound():
    assert is_within_bound(VersionChange.UNKNOWN, VersionChange.MINOR)
    assert not is_within_bound(VersionChange.UNKNOWN, VersionChange.PATCH)


def test_no_change_and_downgrade_never_pass():
    for bound in (VersionChange.PATCH, VersionChange.MINOR, VersionChange.MAJOR):
        assert not is_within_bound(VersionChange.NONE, bound)
        assert not is_within_bound(VersionChange.DOWNGRADE, bound)


def test_unsupported_bound_raises():
    with pytest.raises(ValueError):
        is_within_bound(VersionChange.MINOR, VersionChange.UNKNOWN)


def test_non_ascii_digits_are_not_numeric():
    assert parse_segments("²") is None
    assert classify_change(_versions("1.2", "1.²")) == VersionChange.UNKNOWN
