"""RPG Character Server.

A REST backend for fantasy role-playing character data: accounts, characters,
items, and per-character equipment, with role-based access control and
visibility rules.

Version Management
------------------
``__version__`` is read from the installed package metadata at import time.
The single source of truth is the ``version`` field in ``pyproject.toml``.
``server.py`` and ``health.py`` import ``__version__`` from here.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ---------------------------------------------------------------------------
# Package version read from pyproject.toml via importlib.metadata.
#
# When the package is imported without being installed we fall back to the
# current release string so the application can still start.
# ---------------------------------------------------------------------------
try:
    __version__: str = version("rpg-character-server")
except PackageNotFoundError:
    __version__ = "0.1.0"
