# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

import logging
from pathlib import Path

from .nuget.version import NuGetVersion

logger = logging.getLogger(__name__)

PACKAGE_EXTENSION = "nupkg"


class PackageStore:
    """
    Local package directory. Packages are either stored flat as
    ``<id>.<version>.nupkg`` files (lowercased) or, as in a NuGet global
    packages folder, in ``<id>/<version>/`` directories. A package found in
    either layout is considered present; the content is not verified.
    """

    def __init__(self, outdir: Path | str):
        self.outdir = Path(outdir)

    @staticmethod
    def package_filename(id: str, version: str | NuGetVersion) -> str:
        return f"{id}.{version}.{PACKAGE_EXTENSION}".lower()

    def package_path(self, id: str, version: str | NuGetVersion) -> Path:
        return self.outdir / self.package_filename(id, version)

    def hierarchical_path(self, id: str, version: str | NuGetVersion) -> Path:
        return self.outdir / id.lower() / str(version)

    def exists(self, id: str, version: str | NuGetVersion) -> bool:
        if self.package_path(id, version).is_file():
            logger.debug(f"Found package file for {id} {version}")
            return True
        if self.hierarchical_path(id, version).is_dir():
            logger.debug(f"Found package directory for {id} {version}")
            return True
        return False
