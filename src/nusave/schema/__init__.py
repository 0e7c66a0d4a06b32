# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

import json
from pathlib import Path

__all__ = [
    "download",
    "resolve",
]


__DOWNLOAD_SCHEMA_PATH = Path(__file__).parent / "schema-download.json"
__RESOLVE_SCHEMA_PATH = Path(__file__).parent / "schema-resolve.json"

with open(__DOWNLOAD_SCHEMA_PATH) as f:
    download = json.load(f)

with open(__RESOLVE_SCHEMA_PATH) as f:
    resolve = json.load(f)
