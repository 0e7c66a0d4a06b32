# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

from abc import abstractmethod
import logging

from ..nuget.package import ResolvedPackage
from ..nuget.version import VersionRange
from .cache import RegistryCache


logger = logging.getLogger(__name__)


class RegistryError(Exception):
    """
    All registry client exceptions inherit from this
    """

    pass


class PackageNotFoundError(RegistryError):
    """
    The registry does not know the requested package id
    """

    pass


class RegistryClient:
    """
    Finds packages on a package registry. Implementations only need to list all
    versions of a package id, the selection of a single match happens here.
    Lookups are memoized for the lifetime of the client and go through the
    cache before hitting the registry.
    """

    def __init__(self, cache: RegistryCache = RegistryCache()):
        self.cache = cache
        self._known: dict[str, list[ResolvedPackage]] = {}

    @abstractmethod
    def fetch_packages(self, id: str) -> list[ResolvedPackage]:
        """
        Return all versions of the package from the registry. Unknown packages
        result in an empty list.
        """
        raise NotImplementedError()

    def packages_by_id(self, id: str) -> list[ResolvedPackage]:
        key = id.lower()
        if key in self._known:
            return self._known[key]
        packages = self.cache.lookup(id)
        if packages is None:
            packages = self.fetch_packages(id)
            if packages:
                self.cache.insert(id, packages)
        self._known[key] = packages
        return packages

    def find_package(
        self,
        id: str,
        version_spec: VersionRange | None = None,
        allow_prerelease: bool = False,
        allow_unlisted: bool = False,
    ) -> ResolvedPackage | None:
        """
        Return the highest version of the package that matches the version
        range, or the latest version if no range is given. Pre-release and
        unlisted versions only qualify if allowed. An exact request for a
        pre-release version is always honoured.
        """
        if version_spec is not None and version_spec.is_exact:
            allow_prerelease = allow_prerelease or version_spec.min_version.is_prerelease

        candidates = [
            p
            for p in self.packages_by_id(id)
            if (allow_unlisted or p.listed)
            and (allow_prerelease or not p.version.is_prerelease)
            and (version_spec is None or p.version in version_spec)
        ]
        if not candidates:
            logger.debug(f"No match for {id} {version_spec or ''}")
            return None
        return max(candidates, key=lambda p: p.version)
