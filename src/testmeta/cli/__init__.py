"""CLI package.

The ``cli`` sub-package contains the Click application used to inspect
annotations and dispatch tables from the command line.
"""
from __future__ import annotations
