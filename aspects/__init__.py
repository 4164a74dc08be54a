"""Aspects: a package manager for JSON-described personality aspects.

Resolves a specifier (registry name, content digest, source repository or
local path) to a concrete aspect, fetches and verifies it, and records it in
a project or global state store.

The core engine lives in :mod:`aspects.core`; the ``aspects`` console script
is a thin Typer layer over it.
"""

__version__ = "0.3.0"
__description__ = "Resolve, fetch, verify and track personality aspects"

from aspects.core.installer import Installer
from aspects.core.specifier_parser import parse_specifier

__all__ = ["Installer", "parse_specifier", "__version__"]
