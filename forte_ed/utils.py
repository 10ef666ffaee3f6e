"""Utility functions for forte-ed.

General-purpose helpers: hashing, number formatting, timing.
"""

from __future__ import annotations

import hashlib
import json
import logging
import numbers
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Mapping

logger = logging.getLogger(__name__)


def file_sha256(path: str | Path) -> str:
    """Compute SHA-256 hex digest of a file."""
    h = hashlib.sha256()
    with open(path, 'rb') as f:
        for chunk in iter(lambda: f.read(8192), b''):
            h.update(chunk)
    return h.hexdigest()


def settings_digest(settings: Mapping[str, Any]) -> str:
    """SHA-256 of a settings mapping (canonical JSON, for log tagging)."""
    text = json.dumps(settings, sort_keys=True, default=str)
    return hashlib.sha256(text.encode('utf-8')).hexdigest()


def format_number(value: Any) -> str:
    """Render a number the way PEcAn and ED2IN expect it.

    Up to 15 significant digits, no trailing ``.0`` on whole numbers:
    ``-30.0 -> '-30'``, ``0.3 -> '0.3'``, ``1000000033 -> '1000000033'``.
    Booleans and non-numbers fall through to ``str``.
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Number):
        return str(value)
    if isinstance(value, numbers.Integral):
        return str(int(value))
    return f"{float(value):.15g}"


@contextmanager
def timer(label: str = "") -> Generator[None, None, None]:
    """Simple context-manager timer. Logs elapsed time at DEBUG on exit."""
    start = time.perf_counter()
    yield
    elapsed = time.perf_counter() - start
    logger.debug("[%s] %.3fs", label or "elapsed", elapsed)
