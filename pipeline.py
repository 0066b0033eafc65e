"""
Per-element analysis pipeline.
================================
One parametrized function replaces the per-element join → aggregate →
legend blocks: run_element() takes a DataElement descriptor and the
workbook, and returns the derived tables the charts and the audit need.

The critical-appraisal scores and the publication years have their own
small builders here; they share the same aggregate() step.
"""

from __future__ import annotations

import logging
from typing import Optional

import pandas as pd

from config import (
    APPRAISAL_COMMENT_SUFFIX, APPRAISAL_FIRST_QUESTION, APPRAISAL_LAST_QUESTION,
    ASSESSMENT_SHEET, DISCIPLINE_KEY, DISCIPLINE_LABEL, DISCIPLINE_VOCAB,
    PUBLICATION_YEAR_SHEET, REVIEW_ID, REVIEW_INFO_SHEET, SCORE_LEVELS,
    VOCAB_CODE, VOCAB_DESCRIPTION, VOCAB_LABEL, YEAR_COLUMN,
)
from element_definitions import DATA_ELEMENTS
from schemas import DataElement
from tables import (
    ReviewDataError, aggregate, join_lookup, question_range, reference, to_long,
)
from workbook import ReviewWorkbook

logger = logging.getLogger("review_pipeline")

VOCAB_COLUMNS = [VOCAB_CODE, VOCAB_LABEL, VOCAB_DESCRIPTION]


def _vocabulary(workbook: ReviewWorkbook, sheet: str, element: str) -> pd.DataFrame:
    vocab = workbook.table(sheet, element)
    missing = [c for c in VOCAB_COLUMNS if c not in vocab.columns]
    if missing:
        raise ReviewDataError(
            f"Vocabulary sheet '{sheet}' [{element}] is missing column(s) {missing}"
        )
    return vocab[VOCAB_COLUMNS]


# ═══════════════════════════════════════════════════════════════════════
# REVIEW LOOKUP
# ═══════════════════════════════════════════════════════════════════════

def build_review_lookup(workbook: ReviewWorkbook,
                        on_unmatched: Optional[str] = None) -> pd.DataFrame:
    """Review info with the discipline label attached (one row per review)."""
    info = workbook.table(REVIEW_INFO_SHEET, "review_info")
    vocab = _vocabulary(workbook, DISCIPLINE_VOCAB, "review_info")
    joined = join_lookup(
        info, vocab[[VOCAB_CODE, VOCAB_LABEL]], key=DISCIPLINE_KEY,
        vocab_key=VOCAB_CODE, element="review_info", on_unmatched=on_unmatched,
    )
    return joined.rename(columns={VOCAB_LABEL: DISCIPLINE_LABEL})


# ═══════════════════════════════════════════════════════════════════════
# CODED DATA ELEMENTS
# ═══════════════════════════════════════════════════════════════════════

def run_element(
    workbook: ReviewWorkbook,
    element: DataElement,
    reviews: Optional[pd.DataFrame] = None,
    on_unmatched: Optional[str] = None,
) -> dict:
    """
    Join, aggregate and build the legend for one data element.

    Returns:
        dict with keys "element", "joined", "counts", "reference"
    """
    observations = workbook.table(element.table, element.name)
    vocab = _vocabulary(workbook, element.vocabulary, element.name)

    joined = join_lookup(
        observations, vocab, key=element.key, vocab_key=VOCAB_CODE,
        element=element.name, on_unmatched=on_unmatched,
    )

    if element.by and element.by not in joined.columns:
        if reviews is None:
            reviews = build_review_lookup(workbook, on_unmatched)
        if element.by not in reviews.columns:
            raise ReviewDataError(
                f"[{element.name}] second dimension '{element.by}' is neither in "
                f"sheet '{element.table}' nor in the review lookup"
            )
        joined = join_lookup(
            joined, reviews[[REVIEW_ID, element.by]], key=REVIEW_ID,
            element=element.name, on_unmatched=on_unmatched,
        )

    counts = aggregate(joined, VOCAB_LABEL, element.by, denominator=element.denominator)
    legend = reference(joined, element.key, VOCAB_LABEL, VOCAB_DESCRIPTION)
    logger.info(f"{element.name}: {len(joined)} rows -> {len(counts)} categories")

    return {"element": element, "joined": joined, "counts": counts, "reference": legend}


def run_all_elements(workbook: ReviewWorkbook, elements=None,
                     on_unmatched: Optional[str] = None) -> dict:
    """run_element() for every descriptor, keyed by element name."""
    elements = DATA_ELEMENTS if elements is None else elements
    reviews = build_review_lookup(workbook, on_unmatched)
    return {
        element.name: run_element(workbook, element, reviews, on_unmatched)
        for element in elements
    }


# ═══════════════════════════════════════════════════════════════════════
# CRITICAL APPRAISAL
# ═══════════════════════════════════════════════════════════════════════

def normalize_scores(scores: pd.Series, levels=SCORE_LEVELS) -> pd.Series:
    """Map free-typed scores ("gold ", "GREEN") onto the configured levels."""
    canonical = {level.lower(): level for level in levels}

    def _norm(value):
        if pd.isna(value):
            return value
        text = str(value).strip()
        return canonical.get(text.lower(), text)

    return scores.map(_norm)


def appraisal_long(
    workbook: ReviewWorkbook,
    first: str = APPRAISAL_FIRST_QUESTION,
    last: str = APPRAISAL_LAST_QUESTION,
    comment_suffix: str = APPRAISAL_COMMENT_SUFFIX,
) -> pd.DataFrame:
    """Assessment sheet as (review_id, question, score) rows, ids anonymized."""
    wide = workbook.table(ASSESSMENT_SHEET, "appraisal")
    questions = question_range(wide.columns, first, last, comment_suffix)
    long = to_long(wide, REVIEW_ID, questions, comment_suffix)
    long["score"] = normalize_scores(long["score"])

    unknown = sorted(set(long["score"].dropna()) - set(SCORE_LEVELS))
    if unknown:
        logger.warning(f"Appraisal scores outside {SCORE_LEVELS}: {unknown}")
    return long


def appraisal_counts(long: pd.DataFrame) -> pd.DataFrame:
    """Counts of each score per question, in question order."""
    counts = aggregate(long, "question", "score")
    order = {q: i for i, q in enumerate(pd.unique(long["question"]))}
    return counts.sort_values("question", key=lambda s: s.map(order),
                              kind="stable").reset_index(drop=True)


# ═══════════════════════════════════════════════════════════════════════
# PUBLICATION YEARS
# ═══════════════════════════════════════════════════════════════════════

def publication_years(workbook: ReviewWorkbook) -> pd.DataFrame:
    """Reviews per publication year, in year order."""
    table = workbook.table(PUBLICATION_YEAR_SHEET, "publication_year").copy()
    if YEAR_COLUMN not in table.columns:
        raise ReviewDataError(
            f"Sheet '{PUBLICATION_YEAR_SHEET}' has no '{YEAR_COLUMN}' column"
        )
    table[YEAR_COLUMN] = pd.to_numeric(table[YEAR_COLUMN], errors="coerce").astype("Int64")
    counts = aggregate(table.dropna(subset=[YEAR_COLUMN]), YEAR_COLUMN)
    return counts.sort_values(YEAR_COLUMN).reset_index(drop=True)
