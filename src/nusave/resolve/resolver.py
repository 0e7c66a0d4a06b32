# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

from collections.abc import Iterable
import logging

from ..nuget.package import Dependency, PackageRef, PendingSet, ResolvedPackage
from ..nuget.version import NuGetVersion, VersionRange
from ..registry.client import RegistryClient
from ..store import PackageStore


logger = logging.getLogger(__name__)


class ResolutionError(Exception):
    """
    A requested root package is not available on the registry
    """

    pass


class UnresolvedDependencyWarning(UserWarning):
    """
    A dependency of a resolved package is not available on the registry
    """

    def __init__(self, id: str, version_spec: VersionRange | None):
        self.id = id
        self.version_spec = version_spec
        super().__init__(f"Could not resolve dependency: {self}")

    def __str__(self) -> str:
        spec = str(self.version_spec) if self.version_spec is not None else ""
        return f"{self.id} {spec}".rstrip()


class ResolverObserver:
    """
    Receives the events of a resolution run. This dummy implementation
    discards all events.
    """

    def resolving(self, ref: PackageRef) -> None:
        """A root package is looked up"""
        pass

    def resolved(self, pkg: ResolvedPackage) -> None:
        """A package was added to the pending set"""
        pass

    def unresolved(self, warning: UnresolvedDependencyWarning) -> None:
        """A dependency could not be found. Resolution continues."""
        pass

    def skipped(self, id: str, version: str) -> None:
        """A package or dependency is already present locally"""
        pass


class LoggingObserver(ResolverObserver):
    def resolving(self, ref: PackageRef) -> None:
        logger.info(f"Resolving {ref}")

    def resolved(self, pkg: ResolvedPackage) -> None:
        logger.info(f"Resolved {pkg}")

    def unresolved(self, warning: UnresolvedDependencyWarning) -> None:
        logger.warning(warning.args[0])

    def skipped(self, id: str, version: str) -> None:
        logger.debug(f"Skip {id} {version}: already present")


class DependencyResolver:
    """
    Computes the set of packages to download for a root package and all its
    transitive dependencies. Packages that are already present in the local
    store are neither added nor traversed. Every call starts with an empty
    pending set.

    The graph is walked depth-first in the order of the dependency declarations.
    Each package is traversed at most once per run, which also terminates
    dependency cycles. A dependency that cannot be found on the registry is
    reported to the observer and otherwise ignored.
    """

    def __init__(
        self,
        registry: RegistryClient,
        store: PackageStore,
        allow_prerelease: bool = False,
        allow_unlisted: bool = False,
        observer: ResolverObserver = LoggingObserver(),
    ):
        self.registry = registry
        self.store = store
        self.allow_prerelease = allow_prerelease
        self.allow_unlisted = allow_unlisted
        self.observer = observer

    def resolve_from_package(self, id: str, version: str | None = None) -> PendingSet:
        """
        Resolve a single package. Without version, the latest version is used.
        Raises ResolutionError if the package is not found.
        """
        ref = PackageRef(
            id=id,
            version_spec=VersionRange.exact(version) if version else None,
            allow_prerelease=self.allow_prerelease,
            allow_unlisted=self.allow_unlisted,
        )
        pending = PendingSet()
        self.walk(self._find_root(ref), pending, set())
        return pending

    def resolve_from_references(self, refs: Iterable[PackageRef]) -> PendingSet:
        """
        Resolve the packages referenced by a project. Each reference is looked
        up exactly, the results are merged into one pending set. Raises
        ResolutionError if a reference is not found.
        """
        pending = PendingSet()
        visited: set[tuple[str, NuGetVersion]] = set()
        for ref in refs:
            self.walk(self._find_root(ref), pending, visited)
        return pending

    def _find_root(self, ref: PackageRef) -> ResolvedPackage:
        self.observer.resolving(ref)
        pkg = self.registry.find_package(
            ref.id, ref.version_spec, ref.allow_prerelease, ref.allow_unlisted
        )
        if pkg is None:
            raise ResolutionError(f"Could not resolve package: {ref}")
        return pkg

    def _find_dependency(self, dep: Dependency) -> ResolvedPackage | None:
        if self.store.exists(dep.id, dep.spec_str()):
            self.observer.skipped(dep.id, dep.spec_str())
            return None
        found = self.registry.find_package(
            dep.id, dep.version_spec, self.allow_prerelease, self.allow_unlisted
        )
        if found is None:
            self.observer.unresolved(UnresolvedDependencyWarning(dep.id, dep.version_spec))
        return found

    def walk(
        self,
        root: ResolvedPackage,
        pending: PendingSet,
        visited: set[tuple[str, NuGetVersion]],
    ) -> None:
        """
        Add the root and its transitive dependencies to the pending set.
        ``visited`` holds the packages already traversed in this run.
        """
        stack = [root]
        while stack:
            pkg = stack.pop()
            if pkg.key in visited:
                continue
            visited.add(pkg.key)
            if self.store.exists(pkg.id, str(pkg.version)):
                self.observer.skipped(pkg.id, str(pkg.version))
                continue
            if pending.add(pkg):
                self.observer.resolved(pkg)

            children = []
            for dep in pkg.dependencies():
                found = self._find_dependency(dep)
                if found is not None and found not in pending:
                    children.append(found)
            # reversed, so that the first declared dependency is walked first
            stack.extend(reversed(children))
