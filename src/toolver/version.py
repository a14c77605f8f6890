"""Version specifiers and version ordering."""

import re
from dataclasses import dataclass
from enum import Enum

from .exceptions import InvalidVersionSpec

LATEST = "latest"

_EXACT_RE = re.compile(r"^\d+\.\d+\.\d+$")
_PREFIX_RE = re.compile(r"^\d+(\.\d+)?$")
_TOKEN_RE = re.compile(r"\d+|[A-Za-z]+")
_PRERELEASE_RE = re.compile(r"(?i)(rc|alpha|beta|dev|pre|preview|snapshot|\d[ab]\d)")


class SpecKind(Enum):
    """How a version specifier selects among installed versions."""

    EXACT = "exact"
    PREFIX = "prefix"
    LATEST = "latest"


@dataclass(frozen=True)
class VersionSpec:
    """Parsed, possibly partial version requirement.

    Attributes:
        kind: Matching strategy
        value: Normalized version text (``latest`` for LATEST)
    """

    kind: SpecKind
    value: str

    def __str__(self) -> str:
        return self.value

    def matches(self, version: str) -> bool:
        """Check whether an installed version satisfies this specifier.

        EXACT compares literally. PREFIX compares whole dot-separated
        components, so ``2`` matches ``2.1.0`` but not ``20.1.0``.
        PREFIX and LATEST never select pre-releases.

        Args:
            version: Installed version string

        Returns:
            True if the version satisfies the specifier
        """
        if self.kind is SpecKind.EXACT:
            return version == self.value
        if is_prerelease(version):
            return False
        if self.kind is SpecKind.LATEST:
            return True
        wanted = self.value.split(".")
        return version.split(".")[: len(wanted)] == wanted


def parse_version_spec(raw: str) -> VersionSpec:
    """Parse a user-supplied version string.

    Args:
        raw: Version text such as ``2``, ``2.0.0``, ``latest`` or ``lts``

    Returns:
        The parsed VersionSpec

    Raises:
        InvalidVersionSpec: If the string is empty
    """
    text = raw.strip() if isinstance(raw, str) else ""
    if not text:
        raise InvalidVersionSpec(f"empty version specifier: {raw!r}")
    if text == LATEST:
        return VersionSpec(SpecKind.LATEST, LATEST)
    if _EXACT_RE.match(text):
        return VersionSpec(SpecKind.EXACT, text)
    if _PREFIX_RE.match(text):
        return VersionSpec(SpecKind.PREFIX, text)
    # Non-numeric tags are opaque exact versions
    return VersionSpec(SpecKind.EXACT, text)


def is_prerelease(version: str) -> bool:
    """Return True for numeric versions carrying a pre-release tag (``3.12.0rc1``)."""
    return version[:1].isdigit() and bool(_PRERELEASE_RE.search(version))


def version_key(version: str) -> tuple:
    """Sort key ordering versions component-wise.

    Numeric runs compare as integers (``2.9.0`` < ``2.10.0``); a release
    sorts after its own pre-releases (``2.0.0rc1`` < ``2.0.0``).

    Args:
        version: Version string

    Returns:
        Tuple usable as a ``sorted``/``max`` key
    """
    key = []
    for token in _TOKEN_RE.findall(version):
        if token.isdigit():
            key.append((1, int(token), ""))
        else:
            key.append((0, 0, token.lower()))
    key.append((0, 0, "~"))
    return tuple(key)
