# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
import json
import logging

from .version import NuGetVersion, VersionRange


logger = logging.getLogger(__name__)


@dataclass
class Dependency:
    """Unresolved dependency constraint declared by a package."""

    id: str
    version_spec: VersionRange | None = None

    @classmethod
    def parse(cls, id: str, spec: str) -> "Dependency":
        return cls(id=id, version_spec=VersionRange.parse(spec) if spec.strip() else None)

    def spec_str(self) -> str:
        return str(self.version_spec) if self.version_spec is not None else ""

    def __str__(self) -> str:
        return f"{self.id} {self.spec_str()}".rstrip()


@dataclass
class DependencySet:
    """Dependencies of a package for a single target framework."""

    target_framework: str | None = None
    dependencies: list[Dependency] = field(default_factory=list)


@dataclass
class ResolvedPackage:
    """Concrete package as returned by the registry."""

    id: str
    version: NuGetVersion
    title: str = ""
    authors: list[str] = field(default_factory=list)
    download_url: str = ""
    dependency_sets: list[DependencySet] = field(default_factory=list)
    listed: bool = True

    def __post_init__(self):
        if not self.title:
            self.title = self.id

    @property
    def key(self) -> tuple[str, NuGetVersion]:
        """Identity of the package inside a PendingSet"""
        return (self.title, self.version)

    def dependencies(self) -> Iterator[Dependency]:
        """All dependencies over all dependency sets, in declaration order"""
        for dset in self.dependency_sets:
            yield from dset.dependencies

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "version": str(self.version),
            "title": self.title,
            "authors": list(self.authors),
            "download_url": self.download_url,
            "listed": self.listed,
            "dependency_sets": [
                {
                    "target_framework": d.target_framework,
                    "dependencies": [[dep.id, dep.spec_str()] for dep in d.dependencies],
                }
                for d in self.dependency_sets
            ],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ResolvedPackage":
        return cls(
            id=data["id"],
            version=NuGetVersion(data["version"]),
            title=data.get("title", ""),
            authors=list(data.get("authors", [])),
            download_url=data.get("download_url", ""),
            listed=data.get("listed", True),
            dependency_sets=[
                DependencySet(
                    target_framework=d.get("target_framework"),
                    dependencies=[Dependency.parse(i, s) for i, s in d["dependencies"]],
                )
                for d in data.get("dependency_sets", [])
            ],
        )

    def __str__(self) -> str:
        return f"{self.id} {self.version}"


@dataclass
class PackageRef:
    """
    A resolution request. References taken from a project manifest are exact
    and trusted, hence they admit pre-release and unlisted versions.
    """

    id: str
    version_spec: VersionRange | None = None
    allow_prerelease: bool = False
    allow_unlisted: bool = False

    @classmethod
    def from_manifest(cls, include_id: str, version: str) -> "PackageRef":
        return cls(
            id=include_id,
            version_spec=VersionRange.exact(version),
            allow_prerelease=True,
            allow_unlisted=True,
        )

    @classmethod
    def parse_reflist_stream(cls, stream: Iterable[str]) -> Iterator["PackageRef"]:
        """
        Parses a stream of space separated (id, version) tuples, one reference
        per line. Empty lines and lines starting with '#' are ignored. Example:
        Newtonsoft.Json 13.0.3
        System.Collections 4.3.0
        """
        for lineno, line in enumerate(stream, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            fields = line.split()
            if len(fields) != 2:
                raise ValueError(f"invalid reference in line {lineno}: '{line}'")
            yield cls.from_manifest(fields[0], fields[1])

    def __str__(self) -> str:
        if self.version_spec is None:
            return self.id
        return f"{self.id} {self.version_spec}"


@dataclass
class SimplifiedPackageInfo:
    """Read-only projection of a pending package for reporting."""

    id: str
    version: str
    authors: str

    @classmethod
    def from_package(cls, pkg: ResolvedPackage) -> "SimplifiedPackageInfo":
        return cls(id=pkg.id, version=str(pkg.version), authors=" ".join(pkg.authors))

    def to_dict(self) -> dict:
        return {"id": self.id, "version": self.version, "authors": self.authors}


class PendingSet:
    """
    Insertion-ordered set of packages selected for download. Packages are
    unique by (title, version).
    """

    def __init__(self, packages: Iterable[ResolvedPackage] = ()):
        self._packages: dict[tuple[str, NuGetVersion], ResolvedPackage] = {}
        for p in packages:
            self.add(p)

    def add(self, pkg: ResolvedPackage) -> bool:
        """Add the package. Returns False if an equal package is already pending."""
        if pkg.key in self._packages:
            return False
        self._packages[pkg.key] = pkg
        return True

    def update(self, other: Iterable[ResolvedPackage]) -> None:
        for p in other:
            self.add(p)

    def __contains__(self, pkg: object) -> bool:
        return isinstance(pkg, ResolvedPackage) and pkg.key in self._packages

    def __iter__(self) -> Iterator[ResolvedPackage]:
        return iter(list(self._packages.values()))

    def __len__(self) -> int:
        return len(self._packages)

    def infos(self) -> list[SimplifiedPackageInfo]:
        return [SimplifiedPackageInfo.from_package(p) for p in self._packages.values()]

    def json(self) -> str:
        return json.dumps([i.to_dict() for i in self.infos()])
