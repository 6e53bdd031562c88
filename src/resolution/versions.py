"""Version ordering used for conflict resolution."""

import re
from typing import Tuple, Union

from packaging import version

_TOKEN = re.compile(r"(\d+|[A-Za-z]+)")


def _fallback_key(raw: str) -> Tuple[Tuple[int, Union[int, str]], ...]:
    """Order non-PEP 440 versions (e.g. ``2.0-beta-3``) token by token.

    At the same position a numeric token sorts after a word, so
    ``1.0-jenkins-10`` > ``1.0-jenkins-beta``.
    """
    key = []
    for token in _TOKEN.findall(raw):
        if token.isdigit():
            key.append((1, int(token)))
        else:
            key.append((0, token.lower()))
    return tuple(key)


def compare_versions(left: str, right: str) -> int:
    """Return -1, 0 or 1 as ``left`` is lower, equal or higher than ``right``."""
    if left == right:
        return 0
    try:
        lv, rv = version.Version(left), version.Version(right)
    except version.InvalidVersion:
        lk, rk = _fallback_key(left), _fallback_key(right)
        if lk == rk:
            return 0
        return 1 if lk > rk else -1
    if lv == rv:
        return 0
    return 1 if lv > rv else -1


def is_newer(candidate: str, current: str) -> bool:
    return compare_versions(candidate, current) > 0

