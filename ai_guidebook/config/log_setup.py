"""
Logging setup for the command line.

Library modules only create loggers; handlers are installed here, once,
by the CLI entry point.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

_HANDLER_NAME = "ai_guidebook.rich"


def configure_logging(level: str = "WARNING", console: Optional[Console] = None) -> logging.Logger:
    """Attach a rich handler to the package logger.
    
    Calling this again only changes the level.
    
    Args:
        level: Name of the logging level
        console: Console to write to (defaults to stderr)
        
    Returns:
        The package logger
    """
    logger = logging.getLogger("ai_guidebook")
    logger.setLevel(level)
    
    if not any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=False,
        )
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(handler)
    
    return logger
