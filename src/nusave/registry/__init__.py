# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

from .cache import RegistryCache, PersistentRegistryCache
from .client import RegistryClient, RegistryError, PackageNotFoundError
from .feed import DEFAULT_SOURCE, FeedClient
