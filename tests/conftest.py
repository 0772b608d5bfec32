"""Root-level pytest configuration for all tests."""

from __future__ import annotations

import os

# Settings are read at import time; pin the environment before any
# server_template import happens during collection.
os.environ.setdefault("NODE_ENV", "test")

pytest_plugins = ("pytest_asyncio",)
