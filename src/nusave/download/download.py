# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

from collections import namedtuple
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
import json
import logging
from pathlib import Path
import threading

import requests
from requests.exceptions import RequestException
from requests.utils import get_environ_proxies

from ..nuget.package import PendingSet, ResolvedPackage
from ..store import PackageStore


logger = logging.getLogger(__name__)
StatisticsType = namedtuple("statistics", "packages cached")

CHUNK_SIZE = 65536


class DownloadStatus(str, Enum):
    OK = "ok"
    CACHED = "cached"
    FAILED = "failed"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value


@dataclass
class DownloadResult:
    path: Path | None
    status: DownloadStatus
    package: ResolvedPackage
    attempts: int = 0

    def json(self) -> str:
        result = {
            "status": str(self.status),
            "package": {
                "id": self.package.id,
                "version": str(self.package.version),
            },
            "attempts": self.attempts,
        }
        if self.path:
            result["path"] = str(self.path.absolute())
        return json.dumps(result)


@dataclass
class RetryPolicy:
    """
    Retry transient transfer failures after a fixed delay. Without
    ``max_attempts``, a download is retried until the cancel event is set or
    the process is interrupted.
    """

    delay: float = 1.0
    max_attempts: int | None = None
    cancel: threading.Event = field(default_factory=threading.Event)

    def should_retry(self, attempt: int) -> bool:
        """Whether another attempt may follow the given (1-based) attempt"""
        return self.max_attempts is None or attempt < self.max_attempts

    def wait(self) -> bool:
        """Sleep for the retry delay. Returns True if cancelled meanwhile."""
        return self.cancel.wait(self.delay)


class PackageDownloader:
    """
    Retrieve package artifacts from the registry. Packages are only retrieved
    once by comparison with the data in the local package store.
    """

    def __init__(
        self,
        store: PackageStore,
        session: requests.Session = requests.Session(),
        retry: RetryPolicy | None = None,
    ):
        self.store = store
        self.rs = session
        self.retry = retry if retry is not None else RetryPolicy()
        self.store.outdir.mkdir(parents=True, exist_ok=True)

    def stat(self, pending: PendingSet) -> StatisticsType:
        """
        Returns a tuple (packages to download, packages already present)
        """
        cached = sum(1 for p in pending if self.store.exists(p.id, str(p.version)))
        return StatisticsType(len(pending) - cached, cached)

    def _proxies(self, url: str) -> dict:
        if not self.rs.trust_env:
            return {}
        proxies = get_environ_proxies(url)
        if proxies:
            logger.debug(f"Using proxy configuration {proxies} for '{url}'")
        return proxies

    def _fetch(self, url: str, target: Path) -> None:
        fdst = target.with_suffix(target.suffix + ".tmp")
        try:
            with self.rs.get(url, stream=True, proxies=self._proxies(url)) as r:
                r.raise_for_status()
                with open(fdst, "wb") as fp:
                    # broken transfers surface as RequestException here
                    for chunk in r.iter_content(chunk_size=CHUNK_SIZE):
                        fp.write(chunk)
        except BaseException:
            fdst.unlink(missing_ok=True)
            raise
        fdst.replace(target)

    def download(
        self,
        pending: PendingSet,
        progress_cb: Callable[[int, int, str], None] | None = None,
    ) -> Iterable[DownloadResult]:
        """
        Download all pending packages and yield the results. Packages that are
        already present are not downloaded again, but still reported.
        """
        logger.info("Starting download...")
        packages = list(pending)
        for idx, pkg in enumerate(packages):
            if self.retry.cancel.is_set():
                logger.warning("Download cancelled")
                return
            if progress_cb:
                progress_cb(idx, len(packages), str(pkg))
            version = str(pkg.version)
            if self.store.exists(pkg.id, version):
                logger.debug(f"Package {pkg} already downloaded.")
                yield DownloadResult(path=None, status=DownloadStatus.CACHED, package=pkg)
                continue

            target = self.store.package_path(pkg.id, version)
            attempt = 0
            while True:
                attempt += 1
                try:
                    logger.debug(f"Downloading '{pkg.download_url}' to '{target}'...")
                    self._fetch(pkg.download_url, target)
                    status = DownloadStatus.OK
                    break
                except RequestException as e:
                    if self.retry.cancel.is_set():
                        status = DownloadStatus.CANCELLED
                        break
                    if not self.retry.should_retry(attempt):
                        logger.error(f"Giving up on {pkg} after {attempt} attempts: {e}")
                        status = DownloadStatus.FAILED
                        break
                    logger.warning(f"{e}. Retrying in {self.retry.delay:g} seconds...")
                    if self.retry.wait():
                        status = DownloadStatus.CANCELLED
                        break

            if status == DownloadStatus.OK:
                logger.debug(f"Downloaded '{pkg.download_url}'")
                yield DownloadResult(path=target, status=status, package=pkg, attempts=attempt)
            else:
                yield DownloadResult(path=None, status=status, package=pkg, attempts=attempt)
