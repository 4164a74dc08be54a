"""Logging setup for the CLI.

Library modules only ever call ``logging.getLogger(__name__)``; handlers are
installed once, here, by the CLI callback.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_configured = False


def configure_logging(level: str = "WARNING", verbose: bool = False) -> None:
    """Attach a rich handler to the ``aspects`` logger hierarchy."""
    global _configured
    root = logging.getLogger("aspects")
    root.setLevel(logging.DEBUG if verbose else level.upper())
    if _configured:
        return
    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=verbose,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)
    _configured = True
