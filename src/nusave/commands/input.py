# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

import hashlib
from importlib.metadata import version
import logging
from pathlib import Path
import sys

import requests

from ..nuget.package import PackageRef, PendingSet
from ..registry.cache import DEFAULT_TTL, PersistentRegistryCache, RegistryCache
from ..registry.feed import DEFAULT_SOURCE, FeedClient
from ..resolve.resolver import DependencyResolver, LoggingObserver, ResolverObserver
from ..store import PackageStore


logger = logging.getLogger(__name__)


def warn_if_tty() -> None:
    if sys.stdin.isatty():
        logger.warning("Expecting data via stdin, but connected to TTY.")


class PackageInput:
    """
    Mixin that takes either a single package (id and optional version) or a
    list of package references as input.
    """

    @classmethod
    def parser_add_package_input_args(cls, parser):
        parser.add_argument("id", nargs="?", help="id of the package to resolve")
        parser.add_argument(
            "--version",
            dest="pkg_version",
            metavar="VERSION",
            help="exact version of the package (default: latest)",
        )
        parser.add_argument(
            "-r",
            "--references",
            metavar="FILE",
            help="file with newline separated '<id> <version>' package references. "
            "Use '-' to read from stdin",
        )

    @classmethod
    def get_references(cls, args) -> list[PackageRef]:
        if args.references == "-":
            warn_if_tty()
            return list(PackageRef.parse_reflist_stream(sys.stdin))
        with open(args.references) as f:
            return list(PackageRef.parse_reflist_stream(f))

    @classmethod
    def check_package_input(cls, args) -> None:
        if (args.id is None) == (args.references is None):
            raise RuntimeError("either a package id or '--references' must be provided")
        if args.references is not None and args.pkg_version:
            raise RuntimeError("'--version' cannot be combined with '--references'")


class RegistryInput:
    """
    Mixin to configure the registry and the local package directory
    """

    @classmethod
    def parser_add_registry_args(cls, parser):
        parser.add_argument(
            "--source",
            default=DEFAULT_SOURCE,
            help="NuGet V2 feed to resolve packages from (default: %(default)s)",
        )
        parser.add_argument(
            "--outdir",
            default="packages",
            help="directory to store downloaded packages (default: %(default)s)",
        )
        parser.add_argument(
            "--allow-prerelease",
            help="allow pre-release versions of dependencies",
            action="store_true",
        )
        parser.add_argument(
            "--allow-unlisted",
            help="allow unlisted versions of dependencies",
            action="store_true",
        )
        parser.add_argument(
            "--no-cache",
            help="do not cache registry lookups in the output directory",
            action="store_true",
        )
        parser.add_argument(
            "--cache-ttl",
            type=float,
            default=DEFAULT_TTL,
            metavar="SECONDS",
            help="refresh cached registry lookups older than this (default: %(default)s)",
        )

    @classmethod
    def create_session(cls) -> requests.Session:
        rs = requests.Session()
        rs.headers.update({"User-Agent": f"nusave/{version('nusave')}"})
        return rs

    @classmethod
    def create_registry(cls, args, session: requests.Session) -> FeedClient:
        if args.no_cache:
            cache = RegistryCache()
        else:
            # one cache per feed
            source_hash = hashlib.sha256(args.source.encode()).hexdigest()[:16]
            cache = PersistentRegistryCache(
                Path(args.outdir) / ".cache" / source_hash, ttl=args.cache_ttl
            )
        return FeedClient(args.source, session=session, cache=cache)

    @classmethod
    def create_resolver(
        cls,
        args,
        session: requests.Session,
        observer: ResolverObserver = LoggingObserver(),
    ) -> DependencyResolver:
        return DependencyResolver(
            cls.create_registry(args, session),
            PackageStore(args.outdir),
            allow_prerelease=args.allow_prerelease,
            allow_unlisted=args.allow_unlisted,
            observer=observer,
        )


class ResolveInput(PackageInput, RegistryInput):
    """
    Mixin for commands which compute the pending set of packages.
    """

    @classmethod
    def parser_add_resolve_input_args(cls, parser):
        cls.parser_add_package_input_args(parser)
        cls.parser_add_registry_args(parser)

    @classmethod
    def resolve(cls, args, resolver: DependencyResolver) -> PendingSet:
        cls.check_package_input(args)
        if args.references is not None:
            return resolver.resolve_from_references(cls.get_references(args))
        return resolver.resolve_from_package(args.id, args.pkg_version)
