# ============================================================================
# FILE: musicvault/core/logging.py
# ============================================================================
import logging
import sys
from typing import Optional

from musicvault.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """Configure the root logger to write to stdout"""
    root = logging.getLogger()
    root.setLevel((level or settings.LOG_LEVEL).upper())
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
