"""
STAC API versions as ordered values.

Endpoint paths changed between STAC API 0.8 and 0.9, so versions are
compared numerically: ``0.10.0`` sorts after ``0.9.0``.
"""

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Tuple, Union

from .errors import InvalidParameter

_SEMVER_RE = re.compile(
    r"^v?(?P<major>0|[1-9]\d*)"
    r"(?:\.(?P<minor>0|[1-9]\d*))?"
    r"(?:\.(?P<patch>0|[1-9]\d*))?"
    r"(?:-(?P<prerelease>[0-9A-Za-z.-]+))?"
    r"(?:\+[0-9A-Za-z.-]+)?$"
)


def _prerelease_key(prerelease: str) -> Tuple:
    # Numeric identifiers sort before alphanumeric ones
    return tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part)
        for part in prerelease.split(".")
    )


@total_ordering
@dataclass(frozen=True)
class APIVersion:
    """Semantic version of a STAC API (major.minor.patch[-prerelease])."""
    major: int
    minor: int = 0
    patch: int = 0
    prerelease: str = ""

    @classmethod
    def parse(cls, value: Union[str, "APIVersion"]) -> "APIVersion":
        """
        Parse a version string such as "0.9.0", "1.0.0-rc.1" or "v1.0".

        Raises:
            InvalidParameter: If the string is not a semantic version
        """
        if isinstance(value, APIVersion):
            return value
        if not isinstance(value, str):
            raise InvalidParameter("api_version", f"expected a version string, got {type(value).__name__}")

        match = _SEMVER_RE.match(value.strip())
        if not match:
            raise InvalidParameter("api_version", f"'{value}' is not a semantic version")

        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor") or 0),
            patch=int(match.group("patch") or 0),
            prerelease=match.group("prerelease") or ""
        )

    def _key(self) -> Tuple:
        # A release sorts after all of its pre-releases
        pre = (1,) if not self.prerelease else (0,) + _prerelease_key(self.prerelease)
        return (self.major, self.minor, self.patch, pre)

    def __lt__(self, other):
        if isinstance(other, str):
            other = APIVersion.parse(other)
        if not isinstance(other, APIVersion):
            return NotImplemented
        return self._key() < other._key()

    def __eq__(self, other):
        if isinstance(other, str):
            other = APIVersion.parse(other)
        if not isinstance(other, APIVersion):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.patch}"
        return f"{base}-{self.prerelease}" if self.prerelease else base


# First version serving search at /search instead of /stac/search
SEARCH_PATH_CHANGE = APIVersion(0, 9, 0)
