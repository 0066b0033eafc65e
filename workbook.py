"""
Input Loaders
==============
Reads the two external inputs into in-memory tables:

  - the coding workbook (.xlsx, one sheet per table) → ReviewWorkbook
  - the RIS export of included reviews               → record DataFrame

Nothing is written back to either file.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional, Union

import pandas as pd
import rispy

from config import ASSESSMENT_SHEET, MULTI_VALUE_SEP, REVIEW_ID
from review_utils import join_multi
from tables import MissingTableError, ReviewDataError, anonymize_ids

logger = logging.getLogger("review_pipeline")

# RIS tags that may repeat within one record
RIS_LIST_TAGS = ["A1", "A2", "A3", "A4", "AU", "KW", "N1", "AD"]

# Standard record field -> rispy keys, first non-empty wins
RIS_FIELD_MAPPING = {
    "title": ["title", "primary_title"],
    "authors": ["authors", "first_authors"],
    "keywords": ["keywords"],
    "affiliations": ["author_address"],
    "journal": ["journal_name", "secondary_title", "alternate_title1"],
    "year": ["year", "publication_year"],
    "doi": ["doi"],
}


# ═══════════════════════════════════════════════════════════════════════
# CODING WORKBOOK
# ═══════════════════════════════════════════════════════════════════════

class ReviewWorkbook:
    """Explicit name → table mapping passed to every pipeline step."""

    def __init__(self, tables: dict[str, pd.DataFrame], source: Optional[Path] = None):
        self.tables = dict(tables)
        self.source = source

    def __contains__(self, name: str) -> bool:
        return name in self.tables

    def __repr__(self) -> str:
        return f"ReviewWorkbook({len(self.tables)} sheets from {self.source})"

    @property
    def names(self) -> list[str]:
        return list(self.tables)

    def table(self, name: str, element: Optional[str] = None) -> pd.DataFrame:
        """Return the sheet `name`; raise MissingTableError naming the element."""
        if name not in self.tables:
            where = f" (needed by '{element}')" if element else ""
            raise MissingTableError(
                f"Sheet '{name}'{where} not found in workbook {self.source}; "
                f"available sheets: {sorted(self.tables)}"
            )
        return self.tables[name]


def clean_sheet(df: pd.DataFrame) -> pd.DataFrame:
    """Strip column names and string cells, drop fully empty rows."""
    df = df.copy()
    df.columns = [str(col).strip() for col in df.columns]
    df = df.dropna(how="all")
    for col in df.select_dtypes(include=["object"]).columns:
        df[col] = df[col].apply(lambda x: x.strip() if isinstance(x, str) else x)
    return df.reset_index(drop=True)


def load_workbook(
    path: Union[str, Path],
    assessment_sheet: str = ASSESSMENT_SHEET,
    id_col: str = REVIEW_ID,
) -> ReviewWorkbook:
    """
    Read every sheet of the coding workbook.

    The assessment sheet's review ids are replaced by ID1..IDn here, before
    any other step sees the data.
    """
    path = Path(path)
    sheets = pd.read_excel(path, sheet_name=None, engine="openpyxl")
    tables = {str(name).strip(): clean_sheet(df) for name, df in sheets.items()}
    logger.info(f"Loaded {len(tables)} sheets from {path.name}")

    if assessment_sheet in tables:
        tables[assessment_sheet] = anonymize_ids(tables[assessment_sheet], id_col)
        logger.info(f"Anonymized {len(tables[assessment_sheet])} assessment rows")

    return ReviewWorkbook(tables, source=path)


# ═══════════════════════════════════════════════════════════════════════
# BIBLIOGRAPHIC EXPORT (RIS)
# ═══════════════════════════════════════════════════════════════════════

def _parse_year(value) -> Optional[int]:
    match = re.search(r"\d{4}", str(value)) if value is not None else None
    return int(match.group()) if match else None


def records_from_entries(entries: list[dict], sep: str = MULTI_VALUE_SEP) -> pd.DataFrame:
    """Flatten rispy entries to one row per record, multi-valued fields joined by `sep`."""
    rows = []
    for entry in entries:
        record = {}
        for field, keys in RIS_FIELD_MAPPING.items():
            value = None
            for key in keys:
                if entry.get(key):
                    value = entry[key]
                    break
            if field in ("authors", "keywords", "affiliations"):
                value = join_multi(value, sep)
            elif isinstance(value, list):
                value = value[0]
            record[field] = value
        record["year"] = _parse_year(record["year"])
        rows.append(record)

    df = pd.DataFrame(rows, columns=list(RIS_FIELD_MAPPING))
    df["year"] = df["year"].astype("Int64")
    return df


def load_bibliography(path: Union[str, Path], sep: str = MULTI_VALUE_SEP) -> pd.DataFrame:
    """Parse a RIS export into the flat bibliographic record table."""
    path = Path(path)
    with open(path, "r", encoding="utf-8-sig") as f:
        entries = list(rispy.load(f, list_tags=RIS_LIST_TAGS))

    if not entries:
        raise ReviewDataError(f"No RIS entries found in {path}")

    df = records_from_entries(entries, sep)
    logger.info(f"Parsed {len(df)} bibliographic records from {path.name}")
    return df
