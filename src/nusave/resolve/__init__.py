# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

from .resolver import (
    DependencyResolver,
    LoggingObserver,
    ResolutionError,
    ResolverObserver,
    UnresolvedDependencyWarning,
)
