"""
Core table operations for the coded review data.
==================================================
Every chart in the pipeline is produced by the same three steps:

    join_lookup  → attach label/description to each coded row
    aggregate    → count rows per category (or category pair) and normalize
    reference    → distinct code/label/description triples for the legend

plus the long-format reshape used for the critical-appraisal scores.
All functions are pure: inputs are never modified in place.
"""

from __future__ import annotations

import logging
import warnings
from typing import Optional

import pandas as pd

from config import APPRAISAL_COMMENT_SUFFIX, UNMATCHED_CODE_POLICY

logger = logging.getLogger("review_pipeline")

UNMATCHED_POLICIES = ("ignore", "warn", "error")
DENOMINATORS = ("total", "within")


# ═══════════════════════════════════════════════════════════════════════
# ERRORS
# ═══════════════════════════════════════════════════════════════════════

class ReviewDataError(Exception):
    """Base class for problems found while building a derived table."""


class AmbiguousKeyError(ReviewDataError):
    """A vocabulary sheet repeats a code or leaves one blank; a left join would mislabel rows."""


class ReferentialIntegrityError(ReviewDataError):
    """Coded values with no row in their vocabulary sheet ("error" policy)."""


class ReshapeColumnRangeError(ReviewDataError):
    """The appraisal question columns don't match the sheet's columns."""


class MissingTableError(ReviewDataError):
    """A sheet named by the configuration is absent from the workbook."""


class EmptyInputWarning(UserWarning):
    """Zero rows reached an aggregation; the chart will be empty."""


def _where(element: Optional[str]) -> str:
    return f" [{element}]" if element else ""


def _require_columns(table: pd.DataFrame, columns, element=None, what="table"):
    missing = [c for c in columns if c not in table.columns]
    if missing:
        raise ReviewDataError(
            f"{what}{_where(element)} is missing column(s) {missing}; "
            f"found {list(table.columns)}"
        )


# ═══════════════════════════════════════════════════════════════════════
# LOOKUP JOINER
# ═══════════════════════════════════════════════════════════════════════

def join_lookup(
    observations: pd.DataFrame,
    vocabulary: pd.DataFrame,
    key: str,
    vocab_key: Optional[str] = None,
    element: Optional[str] = None,
    on_unmatched: Optional[str] = None,
) -> pd.DataFrame:
    """
    Left-join coded observations against their controlled vocabulary.

    Args:
        observations: Coded rows (one per review x code)
        vocabulary: Lookup table; `vocab_key` must be unique
        key: Code column in `observations`
        vocab_key: Code column in `vocabulary` (defaults to `key`)
        element: Data element name, used in error and log messages
        on_unmatched: "ignore", "warn" or "error" (defaults to config)

    Returns:
        One row per observation row, in the original order, with the
        vocabulary's other columns attached. Codes absent from the
        vocabulary get null label/description.

    Raises:
        AmbiguousKeyError: vocabulary repeats a code or has a blank one
        ReferentialIntegrityError: unmatched codes under the "error" policy
    """
    vocab_key = vocab_key or key
    policy = on_unmatched or UNMATCHED_CODE_POLICY
    if policy not in UNMATCHED_POLICIES:
        raise ValueError(f"on_unmatched must be one of {UNMATCHED_POLICIES}, got {policy!r}")

    _require_columns(observations, [key], element, "Observation table")
    _require_columns(vocabulary, [vocab_key], element, "Vocabulary table")

    # pandas merges NaN keys with each other
    blank = vocabulary[vocab_key].isna()
    if blank.any():
        raise AmbiguousKeyError(
            f"Vocabulary{_where(element)} has {int(blank.sum())} row(s) with a blank "
            f"'{vocab_key}'; uncoded observations would pick up their label"
        )

    dup_mask = vocabulary[vocab_key].duplicated(keep=False)
    if dup_mask.any():
        dup_codes = sorted(vocabulary.loc[dup_mask, vocab_key].astype(str).unique())
        raise AmbiguousKeyError(
            f"Vocabulary{_where(element)} has duplicate '{vocab_key}' values "
            f"{dup_codes}; joining would duplicate observation rows"
        )

    left = observations
    right = vocabulary.rename(columns={vocab_key: key}) if vocab_key != key else vocabulary

    # Excel often gives 1 in one sheet and "1" in another
    if left[key].dtype != right[key].dtype:
        left = left.assign(**{key: left[key].map(_code_text)})
        right = right.assign(**{key: right[key].map(_code_text)})

    joined = left.merge(
        right, on=key, how="left", sort=False,
        indicator="_match", validate="many_to_one", suffixes=("", "_vocab"),
    )

    unmatched = (joined["_match"] == "left_only") & joined[key].notna()
    joined = joined.drop(columns="_match")

    if unmatched.any():
        codes = sorted(joined.loc[unmatched, key].astype(str).unique())
        msg = (f"{int(unmatched.sum())} row(s){_where(element)} use codes missing "
               f"from the vocabulary: {codes}")
        if policy == "error":
            raise ReferentialIntegrityError(msg)
        if policy == "warn":
            logger.warning(msg)

    return joined


def _code_text(value):
    """Normalize a code cell to text: 3.0 -> "3", NaN stays NaN."""
    if pd.isna(value):
        return value
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


# ═══════════════════════════════════════════════════════════════════════
# CROSS-TAB AGGREGATOR
# ═══════════════════════════════════════════════════════════════════════

def aggregate(
    table: pd.DataFrame,
    dim1: str,
    dim2: Optional[str] = None,
    denominator: str = "total",
) -> pd.DataFrame:
    """
    Count rows per distinct value of `dim1` (and `dim2`) and add percentages.

    denominator="total" divides every count by the grand total, so for a
    two-dimension table the percentages sum to 100 over the whole table, not
    within each `dim2` group. denominator="within" divides by the `dim2`
    group total instead.

    Rows are sorted by descending count; ties keep first-encounter order.
    Missing category values form their own group.
    """
    if denominator not in DENOMINATORS:
        raise ValueError(f"denominator must be one of {DENOMINATORS}, got {denominator!r}")
    if denominator == "within" and dim2 is None:
        raise ValueError("denominator='within' needs a second dimension")

    dims = [dim1] if dim2 is None else [dim1, dim2]
    _require_columns(table, dims, what="Aggregation input")

    if table.empty:
        warnings.warn(f"No rows to aggregate by {dims}", EmptyInputWarning, stacklevel=2)
        empty = {d: pd.Series(dtype=object) for d in dims}
        empty["count"] = pd.Series(dtype="int64")
        empty["percent"] = pd.Series(dtype="float64")
        return pd.DataFrame(empty)

    counts = (
        table.groupby(dims, sort=False, dropna=False)
        .size()
        .reset_index(name="count")
    )

    if denominator == "total":
        counts["percent"] = counts["count"] / counts["count"].sum() * 100
    else:
        group_totals = counts.groupby(dim2, sort=False, dropna=False)["count"].transform("sum")
        counts["percent"] = counts["count"] / group_totals * 100

    return counts.sort_values("count", ascending=False, kind="stable").reset_index(drop=True)


# ═══════════════════════════════════════════════════════════════════════
# CONTROLLED-VOCABULARY REFERENCE
# ═══════════════════════════════════════════════════════════════════════

def reference(
    table: pd.DataFrame,
    code_col: str,
    label_col: str,
    description_col: str,
) -> pd.DataFrame:
    """Distinct (code, label, description) triples sorted by code.

    Deduplicates on all three columns, so a code carrying two different
    labels shows up twice.
    """
    cols = [code_col, label_col, description_col]
    _require_columns(table, cols, what="Reference input")
    ref = table[cols].drop_duplicates()
    return ref.sort_values(code_col, kind="stable", na_position="last").reset_index(drop=True)


# ═══════════════════════════════════════════════════════════════════════
# LONG-FORMAT RESHAPE (critical appraisal)
# ═══════════════════════════════════════════════════════════════════════

def question_range(
    columns,
    first: str,
    last: str,
    comment_suffix: str = APPRAISAL_COMMENT_SUFFIX,
) -> list[str]:
    """Columns from `first` to `last` inclusive, minus commentary columns."""
    columns = [str(c) for c in columns]
    for end in (first, last):
        if end not in columns:
            raise ReshapeColumnRangeError(
                f"Question column '{end}' not found in assessment sheet; "
                f"columns are {columns}"
            )
    start, stop = columns.index(first), columns.index(last)
    if stop < start:
        raise ReshapeColumnRangeError(
            f"Question range is reversed: '{last}' comes before '{first}'"
        )
    selected = [c for c in columns[start:stop + 1] if not c.endswith(comment_suffix)]
    if not selected:
        raise ReshapeColumnRangeError(
            f"Question range '{first}'..'{last}' holds only commentary columns"
        )
    return selected


def anonymize_ids(table: pd.DataFrame, id_col: str) -> pd.DataFrame:
    """Replace `id_col` with ID1, ID2, ... in row order. The originals are not kept."""
    _require_columns(table, [id_col], what="Assessment table")
    out = table.copy()
    out[id_col] = [f"ID{i}" for i in range(1, len(out) + 1)]
    return out


def to_long(
    wide_table: pd.DataFrame,
    id_col: str,
    question_columns,
    comment_suffix: str = APPRAISAL_COMMENT_SUFFIX,
) -> pd.DataFrame:
    """
    Reshape a wide appraisal table to one row per (review, question).

    Ids are anonymized before reshaping. Output columns are
    `id_col`, "question", "score"; row count is rows x questions.
    """
    questions = [str(c) for c in question_columns if not str(c).endswith(comment_suffix)]
    if not questions:
        raise ReshapeColumnRangeError("No question columns given for reshape")
    by_name = {str(c): c for c in wide_table.columns}
    missing = [c for c in questions if c not in by_name]
    if missing:
        raise ReshapeColumnRangeError(
            f"Question column(s) {missing} not found in assessment sheet"
        )

    anon = anonymize_ids(wide_table, id_col)
    anon = anon.rename(columns={by_name[q]: q for q in questions})
    return anon.melt(
        id_vars=[id_col], value_vars=questions,
        var_name="question", value_name="score",
    )
