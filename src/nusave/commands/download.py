# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

import logging

from .resolve import ResolveCmd
from ..download.download import DownloadStatus, PackageDownloader, RetryPolicy
from ..store import PackageStore
from ..util.progress import progress_cb


logger = logging.getLogger(__name__)


class DownloadCmd(ResolveCmd):
    """
    Resolves a package (or a list of package references) and downloads all
    packages that are not present in the output directory yet. Failing
    downloads are retried until they succeed or the command is interrupted.
    """

    @classmethod
    def run(cls, args):
        rs = cls.create_session()
        resolver = cls.create_resolver(args, rs, cls.create_observer(args))
        logger.info("Resolving dependencies...")
        pending = cls.resolve(args, resolver)

        retry = RetryPolicy(delay=args.retry_delay, max_attempts=args.max_attempts)
        downloader = PackageDownloader(PackageStore(args.outdir), session=rs, retry=retry)
        if not args.json:
            npkgs, cached = downloader.stat(pending)
            print(f"downloading {npkgs} packages (cached: {cached})")

        failed = 0
        for r in downloader.download(pending, progress_cb=progress_cb if args.progress else None):
            if args.json:
                print(r.json())
            if r.status in (DownloadStatus.FAILED, DownloadStatus.CANCELLED):
                failed += 1
            logger.debug(f"{r.status}: {r.package}")
        if failed:
            raise RuntimeError(f"{failed} packages could not be downloaded")

    @classmethod
    def setup_parser(cls, parser):
        super().setup_parser(parser)
        parser.add_argument(
            "--retry-delay",
            type=float,
            default=1.0,
            help="seconds to wait before retrying a failed download (default: %(default)s)",
        )
        parser.add_argument(
            "--max-attempts",
            type=int,
            default=None,
            help="give up a download after this many attempts (default: retry forever)",
        )
