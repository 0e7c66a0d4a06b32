# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

"""
NuGet version numbers and version ranges.

A version has up to four numeric components, an optional pre-release label
(``1.0.0-beta.2``) and optional build metadata (``+sha.1234``) which is ignored
for comparison. Ranges use the NuGet interval notation: a bare version means
"this version or higher", ``[1.0]`` is an exact match and ``[1.0, 2.0)`` a
half-open interval.
"""

import functools
import re


_VERSION_RE = re.compile(
    r"^(?P<release>\d+(?:\.\d+){0,3})"
    r"(?:-(?P<label>[0-9A-Za-z][0-9A-Za-z.-]*))?"
    r"(?:\+(?P<metadata>[0-9A-Za-z][0-9A-Za-z.-]*))?$"
)


class InvalidVersionError(ValueError):
    """
    The version or version range string cannot be parsed
    """

    pass


@functools.total_ordering
class NuGetVersion:
    """
    Comparable NuGet version. The textual form is kept as passed in, as it is
    part of the local file layout.
    """

    def __init__(self, version: str):
        value = version.strip()
        m = _VERSION_RE.match(value)
        if not m:
            raise InvalidVersionError(f"invalid version '{version}'")
        self._value = value
        parts = [int(p) for p in m["release"].split(".")]
        self.release: tuple[int, ...] = tuple(parts + [0] * (4 - len(parts)))
        self.label: str = m["label"] or ""
        self.metadata: str = m["metadata"] or ""

    @property
    def is_prerelease(self) -> bool:
        return bool(self.label)

    def _label_key(self) -> tuple:
        # a release sorts after every pre-release of the same number
        if not self.label:
            return (1, ())
        key = []
        for part in self.label.split("."):
            if part.isdigit():
                key.append((0, int(part), ""))
            else:
                key.append((1, 0, part.lower()))
        return (0, tuple(key))

    def _key(self) -> tuple:
        return (self.release, self._label_key())

    def __eq__(self, other):
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other):
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"NuGetVersion('{self._value}')"


class VersionRange:
    """
    Interval of NuGet versions. Either bound may be missing.
    """

    def __init__(
        self,
        min_version: NuGetVersion | None = None,
        max_version: NuGetVersion | None = None,
        min_inclusive: bool = False,
        max_inclusive: bool = False,
    ):
        self.min_version = min_version
        self.max_version = max_version
        self.min_inclusive = min_inclusive
        self.max_inclusive = max_inclusive

    @classmethod
    def exact(cls, version: str | NuGetVersion) -> "VersionRange":
        if isinstance(version, str):
            version = NuGetVersion(version)
        return cls(version, version, True, True)

    @classmethod
    def parse(cls, spec: str) -> "VersionRange":
        """
        Parse a range in interval notation. Raises InvalidVersionError on
        malformed input.
        """
        value = spec.strip()
        try:
            return cls(NuGetVersion(value), None, True, False)
        except InvalidVersionError:
            pass

        if len(value) < 3 or value[0] not in "[(" or value[-1] not in ")]":
            raise InvalidVersionError(f"invalid version range '{spec}'")
        min_inclusive = value[0] == "["
        max_inclusive = value[-1] == "]"
        parts = value[1:-1].split(",")
        if len(parts) > 2:
            raise InvalidVersionError(f"invalid version range '{spec}'")

        if len(parts) == 1:
            if not (min_inclusive and max_inclusive):
                raise InvalidVersionError(f"exact range '{spec}' must use brackets")
            return cls.exact(parts[0])

        lower, upper = (p.strip() for p in parts)
        if not lower and not upper:
            raise InvalidVersionError(f"version range '{spec}' has no bounds")
        min_version = NuGetVersion(lower) if lower else None
        max_version = NuGetVersion(upper) if upper else None
        if min_version is not None and max_version is not None and max_version < min_version:
            raise InvalidVersionError(f"upper bound below lower bound in '{spec}'")
        return cls(min_version, max_version, min_inclusive, max_inclusive)

    def contains(self, version: NuGetVersion) -> bool:
        if self.min_version is not None:
            if self.min_inclusive and version < self.min_version:
                return False
            if not self.min_inclusive and version <= self.min_version:
                return False
        if self.max_version is not None:
            if self.max_inclusive and version > self.max_version:
                return False
            if not self.max_inclusive and version >= self.max_version:
                return False
        return True

    def __contains__(self, version: NuGetVersion) -> bool:
        return self.contains(version)

    @property
    def is_exact(self) -> bool:
        return (
            self.min_version is not None
            and self.min_version == self.max_version
            and self.min_inclusive
            and self.max_inclusive
        )

    def _key(self) -> tuple:
        return (self.min_version, self.max_version, self.min_inclusive, self.max_inclusive)

    def __eq__(self, other):
        if not isinstance(other, VersionRange):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        """
        Short form for "minimum version" and exact ranges, interval notation
        otherwise. The short form is what the existence check compares against
        local directory and file names.
        """
        if (
            self.min_version is not None
            and self.min_inclusive
            and self.max_version is None
            and not self.max_inclusive
        ):
            return str(self.min_version)
        if self.is_exact:
            return f"[{self.min_version}]"
        lower = str(self.min_version) if self.min_version is not None else ""
        upper = str(self.max_version) if self.max_version is not None else ""
        return (
            ("[" if self.min_inclusive else "(")
            + f"{lower}, {upper}"
            + ("]" if self.max_inclusive else ")")
        )

    def __repr__(self) -> str:
        return f"VersionRange('{self}')"
