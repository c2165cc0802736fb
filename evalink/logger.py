import logging
import sys
from typing import Optional

_logger = logging.getLogger("evalink")
if not _logger.handlers:
    _logger.setLevel(logging.INFO)
    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(
        "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    _logger.addHandler(handler)


def set_level(level_name: str) -> None:
    _logger.setLevel(getattr(logging, level_name, logging.INFO))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    if name:
        return _logger.getChild(name)
    return _logger
