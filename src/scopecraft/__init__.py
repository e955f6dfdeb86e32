"""Scopecraft environment package metadata.

Exports the package version resolved from installed distribution
information.

Example:
    >>> from scopecraft import __version__
    >>> isinstance(__version__, str)
    True
"""

from __future__ import annotations

__all__ = ["__version__"]

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("scopecraft-env")
except PackageNotFoundError:  # pragma: no cover - running from a source checkout
    __version__ = "0.0.0"
