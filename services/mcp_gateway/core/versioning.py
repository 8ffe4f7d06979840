"""
Semantic version parsing and ordering.

"2.10.0" sorts after "2.9.0"; a pre-release sorts before its release;
build metadata ("+build.5") is ignored for ordering.
"""

import re
from typing import Tuple, Union

from .exceptions import InvalidVersionError

_SEMVER_RE = re.compile(
    r"^v?(?P<major>0|[1-9]\d*)"
    r"(?:\.(?P<minor>0|[1-9]\d*))?"
    r"(?:\.(?P<patch>0|[1-9]\d*))?"
    r"(?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)

PreRelease = Tuple[Tuple[int, Union[int, str]], ...]
VersionKey = Tuple[int, int, int, int, PreRelease]


def parse_version(version: str) -> VersionKey:
    """
    Parse a version string into a sortable key.

    Missing minor/patch components count as 0 ("2.1" == "2.1.0").

    Raises:
        InvalidVersionError: when the string is not a semantic version
    """
    if not isinstance(version, str):
        raise InvalidVersionError(version)
    match = _SEMVER_RE.match(version.strip())
    if not match:
        raise InvalidVersionError(version)

    major = int(match.group("major"))
    minor = int(match.group("minor") or 0)
    patch = int(match.group("patch") or 0)
    pre = match.group("pre")
    if not pre:
        # A release outranks every pre-release of the same core version.
        return (major, minor, patch, 1, ())

    identifiers = []
    for part in pre.split("."):
        # Numeric identifiers sort before alphanumeric ones.
        if part.isdigit():
            identifiers.append((0, int(part)))
        else:
            identifiers.append((1, part))
    return (major, minor, patch, 0, tuple(identifiers))


def compare_versions(left: str, right: str) -> int:
    """Return -1, 0 or 1 as left is older than, equal to, or newer than right."""
    left_key = parse_version(left)
    right_key = parse_version(right)
    return (left_key > right_key) - (left_key < right_key)


def is_newer(candidate: str, current: str) -> bool:
    """True when candidate is strictly newer than current."""
    return compare_versions(candidate, current) > 0
