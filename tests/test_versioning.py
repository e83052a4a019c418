import pytest

from gunyu.versioning import VersionSemantic, version_eq, version_ge, version_le

MAJOR = [
    ("4", "4.0", True, True, True), ("4.0", "4", True, True, True), ("4.0", "4.1", True, True, True),
    ("4.1", "4.0", True, True, True), ("4", "4", True, True, True),
    ("4.0", "5.0", False, True, False), ("4.1", "5.0", False, True, False),
    ("5.0", "4.0", True, False, False), ("5.0", "4.1", True, False, False),
    ("a.0", "4.1", False, True, False), ("4.a", "4.1", True, True, True),
]
MINOR = [
    ("4", "4.0", True, True, True), ("4.0", "4", True, True, True), ("4.0", "4.0", True, True, True),
    ("4.0.0", "4.0.1", True, True, True),
    ("4.1", "4.0", True, False, False), ("4.1.0", "4.0.1", True, False, False),
    ("4.0", "4.1", False, True, False), ("4.0.1", "4.1.0", False, True, False),
    ("4.a.1", "4.0.1", True, True, True), ("4.0.2", "4.b.1", True, True, True),
    ("4.a.1", "4.1.1", False, True, False),
]
PATCH = [
    ("4", "4.0.0", True, True, True), ("4.0.0", "4", True, True, True), ("4.0.0", "4.0", True, True, True),
    ("4.0.0", "4.0.0", True, True, True),
    ("4.0.1", "4.0", True, False, False),
    ("4.0.0", "4.0.1", False, True, False), ("4.0.a", "4.0.1", False, True, False),
    ("4.0.1", "4.0.b", True, False, False),
]

CASES = (
    [(VersionSemantic.MAJOR, *c) for c in MAJOR]
    + [(VersionSemantic.MINOR, *c) for c in MINOR]
    + [(VersionSemantic.PATCH, *c) for c in PATCH]
)


@pytest.mark.parametrize("sem,a,b,ge,le,eq", CASES)
def test_version_compare(sem, a, b, ge, le, eq):
    assert version_ge(a, b, sem) == ge
    assert version_le(a, b, sem) == le
    assert version_eq(a, b, sem) == eq