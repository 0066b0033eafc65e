#!/usr/bin/env python3
"""
FULL AUDIT — print every number used in figures and narration.
All numbers are computed from the workbook and RIS export; nothing is hardcoded.

Usage:
    python audit.py
    python audit.py --workbook data/coding.xlsx --bib data/reviews.ris
"""

import argparse
import sys
from pathlib import Path

import pandas as pd

from bibliometrics import (
    build_network, entity_frequencies, layout_network, network_summary, with_countries,
)
from config import BIB_PATH, SCORE_LEVELS, VOCAB_LABEL, WORKBOOK_PATH
from element_definitions import DATA_ELEMENTS, NETWORKS
from pipeline import (
    appraisal_counts, appraisal_long, build_review_lookup, publication_years, run_element,
)
from review_utils import setup_logging
from tables import ReviewDataError
from workbook import load_bibliography, load_workbook


def section(title):
    print(f"\n{'=' * 70}")
    print(title)
    print("=" * 70)


def show(table: pd.DataFrame):
    if table.empty:
        print("  (no rows)")
        return
    shown = table.copy()
    if "percent" in shown.columns:
        shown["percent"] = shown["percent"].round(2)
    for line in shown.to_string(index=False, na_rep="—").splitlines():
        print(f"  {line}")


def parse_args():
    parser = argparse.ArgumentParser(description="Audit every number behind the figures")
    parser.add_argument("--workbook", type=Path, default=WORKBOOK_PATH)
    parser.add_argument("--bib", type=Path, default=BIB_PATH)
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()

    if not args.workbook.exists():
        print(f"ERROR: Coding workbook not found at {args.workbook}")
        sys.exit(1)

    errors = []

    # ── AUDIT 1: WORKBOOK SHEETS ──────────────────────────────────
    section("AUDIT 1: WORKBOOK SHEETS")
    workbook = load_workbook(args.workbook)
    for name in workbook.names:
        table = workbook.table(name)
        print(f"  {name:>28}: {len(table):>4} rows x {len(table.columns)} columns")

    # ── AUDIT 2: REFERENTIAL INTEGRITY ────────────────────────────
    section("AUDIT 2: REFERENTIAL INTEGRITY (codes vs vocabularies)")
    results = {}
    try:
        reviews = build_review_lookup(workbook, on_unmatched="ignore")
    except ReviewDataError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    for element in DATA_ELEMENTS:
        try:
            result = run_element(workbook, element, reviews, on_unmatched="ignore")
        except ReviewDataError as e:
            errors.append(str(e))
            print(f"  {element.name:>18}: FAILED — {e}")
            continue
        results[element.name] = result

        joined = result["joined"]
        unmatched = joined[element.key].notna() & joined[VOCAB_LABEL].isna()
        codes = sorted(joined.loc[unmatched, element.key].astype(str).unique())
        legend = result["reference"]
        inconsistent = legend[legend[element.key].duplicated(keep=False)]
        print(f"  {element.name:>18}: {len(joined):>4} rows, "
              f"{int(unmatched.sum())} unmatched, {len(legend)} legend rows")
        if codes:
            errors.append(f"[{element.name}] unmatched codes {codes}")
        if not inconsistent.empty:
            errors.append(f"[{element.name}] codes with more than one label/description: "
                          f"{sorted(inconsistent[element.key].astype(str).unique())}")

    # ── AUDIT 3: CROSS-TABS ───────────────────────────────────────
    section("AUDIT 3: CROSS-TABS (as plotted)")
    for name, result in results.items():
        element = result["element"]
        by = f" x {element.by}" if element.by else ""
        print(f"\n  ── {element.axis_label}{by} (denominator: {element.denominator}) ──")
        show(result["counts"])

    # ── AUDIT 4: CODE LEGENDS ─────────────────────────────────────
    section("AUDIT 4: CODE LEGENDS")
    for name, result in results.items():
        print(f"\n  ── {result['element'].axis_label} ──")
        show(result["reference"])

    # ── AUDIT 5: PUBLICATION YEARS ────────────────────────────────
    section("AUDIT 5: PUBLICATION YEARS")
    try:
        show(publication_years(workbook))
    except ReviewDataError as e:
        errors.append(str(e))
        print(f"  FAILED — {e}")

    # ── AUDIT 6: CRITICAL APPRAISAL ───────────────────────────────
    section("AUDIT 6: CRITICAL APPRAISAL")
    try:
        long = appraisal_long(workbook)
        counts = appraisal_counts(long)
        n_reviews = long.iloc[:, 0].nunique()
        n_questions = long["question"].nunique()
        print(f"  {n_reviews} reviews x {n_questions} questions = {len(long)} scores")
        off_scale = long["score"].notna() & ~long["score"].isin(SCORE_LEVELS)
        missing = long["score"].isna().sum()
        print(f"  Missing scores: {missing}  |  Off-scale scores: {int(off_scale.sum())}")
        if off_scale.any():
            errors.append(f"{int(off_scale.sum())} appraisal scores outside {SCORE_LEVELS}")
        show(counts)
    except ReviewDataError as e:
        errors.append(str(e))
        print(f"  FAILED — {e}")

    # ── AUDIT 7: BIBLIOMETRIC NETWORKS ────────────────────────────
    section("AUDIT 7: BIBLIOMETRIC NETWORKS")
    records = None
    if not args.bib.exists():
        print(f"  RIS export not found at {args.bib} — skipped.")
    else:
        try:
            records = with_countries(load_bibliography(args.bib))
        except ReviewDataError as e:
            errors.append(str(e))
            print(f"  FAILED — {e}")
    if records is not None:
        print(f"  Records: {len(records)}")
        print(f"  Records without a recognizable country: {(records['countries'] == '').sum()}")
        for field in ("authors", "keywords", "countries"):
            top = entity_frequencies(records, field).head(5)
            print(f"\n  Top 5 {field}:")
            for entity, n in top.items():
                print(f"    {n:>3} -- {entity}")
        print()
        for request in NETWORKS:
            adjacency = build_network(records, request.relation, request.field,
                                      remove_multiple=request.remove_multiple)
            summary = network_summary(layout_network(adjacency, request))
            top = ", ".join(f"{n} ({d})" for n, d in summary["top"])
            print(f"  {request.title}: {summary['nodes']} nodes, {summary['edges']} links, "
                  f"density {summary['density']}")
            print(f"    best connected: {top or '—'}")

    # ── FINAL VERDICT ─────────────────────────────────────────────
    section("AUDIT COMPLETE")
    if errors:
        print("  ISSUES FOUND:")
        for e in errors:
            print(f"    !! {e}")
        sys.exit(1)
    else:
        print("  All checks passed.")


if __name__ == "__main__":
    main()
