# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

import io
import json
import logging
from pathlib import Path
import time

from zstandard import ZstdCompressor, ZstdDecompressor, ZstdError

from ..nuget.package import ResolvedPackage
from ..nuget.version import InvalidVersionError


logger = logging.getLogger(__name__)

DEFAULT_TTL = 600.0


class RegistryCache:
    """
    Maps package ids to all known versions of the package to avoid expensive
    calls to the registry. This dummy implementation can be used to not cache.
    """

    def lookup(self, id: str) -> list[ResolvedPackage] | None:
        """Lookup package versions in cache"""
        return None

    def insert(self, id: str, packages: list[ResolvedPackage]) -> None:
        """Insert package versions into cache"""
        pass


class PersistentRegistryCache(RegistryCache):
    """
    Trivial implementation of a file-backed cache. Each package id is stored
    as individual compressed file in the cachedir. As new versions get
    published, entries expire ``ttl`` seconds after they were written.
    """

    def __init__(self, cachedir: Path, ttl: float = DEFAULT_TTL):
        self.cachedir = cachedir
        self.ttl = ttl
        self.cctx = ZstdCompressor(level=10)
        self.dctx = ZstdDecompressor()
        cachedir.mkdir(parents=True, exist_ok=True)

    def _entry_path(self, id: str) -> Path:
        return self.cachedir / f"{id.lower()}.json.zst"

    def lookup(self, id: str) -> list[ResolvedPackage] | None:
        entry = self._entry_path(id)
        if not entry.is_file():
            logger.debug(f"Package '{id}' is not cached")
            return None
        age = time.time() - entry.stat().st_mtime
        if age >= self.ttl:
            logger.debug(f"Cache entry of '{id}' expired ({age:.0f}s old)")
            return None
        try:
            with (
                open(entry, "rb") as _f,
                self.dctx.stream_reader(_f) as f,
            ):
                data = json.load(f)
            packages = [ResolvedPackage.from_dict(d) for d in data]
        except (
            ZstdError,
            json.decoder.JSONDecodeError,
            KeyError,
            TypeError,
            InvalidVersionError,
        ):
            logger.warning(f"cache file {entry.name} ({id}) is corrupted")
            return None
        logger.debug(f"Package '{id}' already cached")
        return packages

    def insert(self, id: str, packages: list[ResolvedPackage]) -> None:
        entry = self._entry_path(id)
        tmp = entry.with_suffix(".tmp")
        with (
            open(tmp, "wb") as _f,
            self.cctx.stream_writer(_f) as cf,
            io.TextIOWrapper(cf, encoding="utf-8") as f,
        ):
            json.dump([p.to_dict() for p in packages], f)
        tmp.replace(entry)
