"""Tests for version ordering."""

import pytest

from resolution.versions import compare_versions, is_newer


@pytest.mark.parametrize("left,right,expected", [
    ("2.10", "2.9", 1),
    ("2.9", "2.10", -1),
    ("1.0", "1.0.0", 0),
    ("2.0", "2.0", 0),
    ("2.0-beta-1", "2.0", -1),
    ("1.0-jenkins-10", "1.0-jenkins-3", 1),
    ("1.0-jenkins-10", "1.0-jenkins-beta", 1),
])
def test_compare_versions(left, right, expected):
    assert compare_versions(left, right) == expected


def test_is_newer():
    assert is_newer("2.42", "2.6")
    assert not is_newer("2.6", "2.42")

