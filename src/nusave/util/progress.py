# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

import sys


def progress_cb(i: int, n: int, name: str) -> None:
    """Report progress of step i (0-based) out of n on stderr"""
    print(f"[{i + 1:>{len(str(n))}}/{n}] {name}", file=sys.stderr)
