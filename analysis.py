#!/usr/bin/env python3
"""
Descriptive Figures for the Non-Genetic Inheritance Umbrella Review
=====================================================================
Generates every figure and legend table from the coding workbook and the
RIS export of included reviews.

  - one bar chart per coded data element (element_definitions.py)
  - one legend table per element (code → label → description)
  - reviews per publication year
  - critical-appraisal heatmap, point grid and per-question score bars
  - keyword / author / country networks and a keyword cloud

Usage:
    python analysis.py
    python analysis.py --workbook data/coding.xlsx --bib data/reviews.ris
    python analysis.py --skip-networks --out figures_pilot

Outputs to: /figures/
"""

import argparse
import sys
import warnings
from pathlib import Path

from bibliometrics import build_network, entity_frequencies, layout_network, network_summary
from charts import (
    plot_appraisal_heatmap, plot_appraisal_points, plot_keyword_wordcloud,
    plot_network, plot_publication_years, plot_ranked_bar, plot_reference_table,
    plot_stacked_bar,
)
from config import (
    BIB_PATH, FIG_DIR_NAME, REVIEW_ID, REVIEW_NAME, SCORE_COLORS, SCORE_LEVELS,
    VOCAB_LABEL, WORKBOOK_PATH, YEAR_COLUMN,
)
from element_definitions import DATA_ELEMENTS, NETWORKS
from pipeline import appraisal_counts, appraisal_long, publication_years, run_all_elements
from review_utils import figure_name, setup_logging
from tables import ReviewDataError
from workbook import load_bibliography, load_workbook

warnings.filterwarnings("ignore", category=FutureWarning)

FIG_DIR = Path(__file__).parent / FIG_DIR_NAME


# ═══════════════════════════════════════════════════════════════════
# FIGURE GENERATORS
# ═══════════════════════════════════════════════════════════════════

def fig_data_elements(results, fig_dir, start=1):
    """One chart + one legend table per coded data element."""
    index = start
    for name, result in results.items():
        element = result["element"]
        path = fig_dir / figure_name(index, name)
        if element.by:
            plot_stacked_bar(result["counts"], VOCAB_LABEL, element.by,
                             element.title, path, axis_label=element.axis_label)
        else:
            plot_ranked_bar(result["counts"], VOCAB_LABEL, element.title, path,
                            axis_label=element.axis_label)

        plot_reference_table(result["reference"], f"{element.axis_label}: Code Legend",
                             fig_dir / "legends" / figure_name(index, f"{name}_legend"))
        index += 1
    return index


def fig_publication_years(workbook, fig_dir, index):
    """Reviews per publication year."""
    counts = publication_years(workbook)
    plot_publication_years(counts, YEAR_COLUMN, f"{REVIEW_NAME} Reviews by Publication Year",
                           fig_dir / figure_name(index, "publication_years"))
    return index + 1


def fig_appraisal(workbook, fig_dir, index):
    """Critical appraisal: heatmap, point grid and per-question score bars."""
    long = appraisal_long(workbook)
    counts = appraisal_counts(long)

    plot_appraisal_heatmap(long, REVIEW_ID, "Critical Appraisal by Review",
                           fig_dir / figure_name(index, "appraisal_heatmap"))
    plot_appraisal_points(counts, "Critical Appraisal Scores per Question",
                          fig_dir / figure_name(index + 1, "appraisal_points"))
    plot_stacked_bar(counts, "question", "score", "Score Distribution per Question",
                     fig_dir / figure_name(index + 2, "appraisal_scores"),
                     axis_label="Appraisal question", palette=SCORE_COLORS,
                     levels=SCORE_LEVELS, sort_by_total=False)
    return index + 3


def fig_networks(records, fig_dir, index):
    """Keyword, author and country networks plus the keyword cloud."""
    for request in NETWORKS:
        adjacency = build_network(records, request.relation, request.field,
                                  remove_multiple=request.remove_multiple)
        G = layout_network(adjacency, request)
        plot_network(G, request.title, fig_dir / figure_name(index, request.name),
                     label_scale=request.label_scale)
        summary = network_summary(G)
        print(f"     {summary['nodes']} nodes, {summary['edges']} links")
        index += 1

    plot_keyword_wordcloud(entity_frequencies(records, "keywords"),
                           f"Author Keywords (n={len(records)} reviews)",
                           fig_dir / figure_name(index, "keyword_cloud"))
    return index + 1


def print_legends(results):
    """Print every code legend used in the figures."""
    print(f"\n{'='*70}")
    print("CODE LEGENDS")
    print(f"{'='*70}")
    for name, result in results.items():
        legend = result["reference"]
        print(f"\n── {result['element'].axis_label} ({len(legend)} codes) ──")
        print(legend.to_string(index=False, na_rep="—"))


def generate_summary_stats(results):
    """Print summary statistics for the results narrative."""
    print(f"\n{'='*70}")
    print("SUMMARY STATISTICS")
    print(f"{'='*70}")
    for name, result in results.items():
        counts = result["counts"]
        if counts.empty:
            print(f"  {name:>18}: no rows")
            continue
        top = counts.iloc[0]
        print(f"  {name:>18}: {int(counts['count'].sum()):>4} rows, "
              f"top = {top[VOCAB_LABEL]} ({top['percent']:.1f}%)")


# ═══════════════════════════════════════════════════════════════════
# MAIN
# ═══════════════════════════════════════════════════════════════════

def parse_args():
    parser = argparse.ArgumentParser(
        description="Descriptive figures for the umbrella review",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--workbook", type=Path, default=WORKBOOK_PATH,
                        help=f"Coding workbook (default: {WORKBOOK_PATH})")
    parser.add_argument("--bib", type=Path, default=BIB_PATH,
                        help=f"RIS export of included reviews (default: {BIB_PATH})")
    parser.add_argument("--out", type=Path, default=FIG_DIR,
                        help=f"Figure folder (default: {FIG_DIR})")
    parser.add_argument("--skip-networks", action="store_true",
                        help="Skip the bibliometric networks and keyword cloud")
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()

    if not args.workbook.exists():
        print(f"ERROR: Coding workbook not found: {args.workbook}")
        print("Set WORKBOOK_PATH in config.py or pass --workbook.")
        return 1

    fig_dir = args.out
    fig_dir.mkdir(parents=True, exist_ok=True)

    try:
        print("Loading data...")
        workbook = load_workbook(args.workbook)
        print(f"Workbook: {len(workbook.names)} sheets\n")

        results = run_all_elements(workbook, DATA_ELEMENTS)

        print("Generating figures...")
        index = fig_data_elements(results, fig_dir)
        index = fig_publication_years(workbook, fig_dir, index)
        index = fig_appraisal(workbook, fig_dir, index)

        if args.skip_networks:
            print("  (bibliometric networks skipped)")
        elif not args.bib.exists():
            print(f"  ⚠️ RIS export not found: {args.bib} — skipping networks.")
        else:
            records = load_bibliography(args.bib)
            index = fig_networks(records, fig_dir, index)
    except ReviewDataError as e:
        print(f"ERROR: {e}")
        return 1

    print_legends(results)
    generate_summary_stats(results)

    print(f"\n✅ {index - 1} figures saved to: {fig_dir}/")
    return 0


if __name__ == "__main__":
    sys.exit(main())
