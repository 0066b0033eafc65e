"""
Shared Pipeline Utilities
==========================
Logging setup, multi-valued field splitting and figure naming shared by the
loaders, the network adapter and both entry-point scripts.
"""

from __future__ import annotations

import logging
import re

import pandas as pd

from config import MULTI_VALUE_SEP

logger = logging.getLogger("review_pipeline")


# ═══════════════════════════════════════════════════════════════════════
# MULTI-VALUED FIELDS
# ═══════════════════════════════════════════════════════════════════════

def is_missing(value) -> bool:
    """True for None, NaN and blank strings."""
    if value is None:
        return True
    if isinstance(value, float) and pd.isna(value):
        return True
    return not str(value).strip() or str(value).strip().lower() == "nan"


def split_multi(value, sep: str = MULTI_VALUE_SEP) -> list[str]:
    """
    Split one delimiter-separated cell into cleaned, upper-cased entities.

    Whitespace is collapsed and repeats within the same cell are dropped
    (first occurrence kept), so a record never pairs an entity with itself.
    """
    if is_missing(value):
        return []
    seen = []
    for part in str(value).split(sep):
        item = re.sub(r"\s+", " ", part).strip().upper()
        if item and item not in seen:
            seen.append(item)
    return seen


def join_multi(values, sep: str = MULTI_VALUE_SEP) -> str:
    """Inverse of split_multi for loader output (no case change)."""
    if not values:
        return ""
    if isinstance(values, str):
        return values.strip()
    return sep.join(str(v).strip() for v in values if not is_missing(v))


# ═══════════════════════════════════════════════════════════════════════
# FIGURE NAMING
# ═══════════════════════════════════════════════════════════════════════

def figure_name(index: int, name: str, suffix: str = "png") -> str:
    """Numbered figure file name, e.g. figure_name(3, "taxon") -> 03_taxon.png"""
    return f"{index:02d}_{name}.{suffix}"


# ═══════════════════════════════════════════════════════════════════════
# LOGGING SETUP
# ═══════════════════════════════════════════════════════════════════════

def setup_logging(level: int = logging.INFO):
    """Configure logging for the review pipeline."""
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    ))
    root = logging.getLogger("review_pipeline")
    if not root.handlers:
        root.addHandler(handler)
    root.setLevel(level)
    return root
