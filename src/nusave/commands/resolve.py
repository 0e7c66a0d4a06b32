# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

import logging

from .input import ResolveInput
from ..nuget.package import ResolvedPackage
from ..resolve.resolver import LoggingObserver


logger = logging.getLogger(__name__)


class ConsoleObserver(LoggingObserver):
    """
    Print each package as soon as it is added to the pending set.
    """

    def resolved(self, pkg: ResolvedPackage) -> None:
        super().resolved(pkg)
        print(f"{pkg.id} {pkg.version}")


class ResolveCmd(ResolveInput):
    """
    Resolves a package (or a list of package references) and all its
    transitive dependencies. Lists the packages that are not present in the
    output directory yet, without downloading them.
    """

    @classmethod
    def create_observer(cls, args) -> LoggingObserver:
        return LoggingObserver() if args.json else ConsoleObserver()

    @classmethod
    def run(cls, args):
        rs = cls.create_session()
        resolver = cls.create_resolver(args, rs, cls.create_observer(args))
        logger.info("Resolving dependencies...")
        pending = cls.resolve(args, resolver)
        if args.json:
            print(pending.json())
        else:
            print(f"{len(pending)} packages to download")

    @classmethod
    def setup_parser(cls, parser):
        cls.parser_add_resolve_input_args(parser)
