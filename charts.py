"""
Chart Renderer
===============
Maps the derived tables to figures. Two bar archetypes cover every coded
data element:

  plot_ranked_bar   one dimension  → horizontal bars ranked by count
  plot_stacked_bar  two dimensions → horizontal stacked bars, colored by dim 2

plus the appraisal heatmap / point grid, the publication-year bars, the
bibliometric networks, the keyword cloud and the legend tables.
An empty table gives an empty "No data" chart, never an exception.
"""

import textwrap
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import networkx as nx
import pandas as pd
import seaborn as sns
from matplotlib.colors import ListedColormap
from matplotlib.patches import Patch
from wordcloud import WordCloud

from config import SCORE_COLORS, SCORE_LEVELS, WORDCLOUD_STOPWORDS

UNMATCHED_LABEL = "(unmatched code)"

# Presentation style
plt.rcParams.update({
    "figure.dpi": 200,
    "savefig.dpi": 200,
    "font.family": "sans-serif",
    "font.sans-serif": ["Helvetica Neue", "Arial", "DejaVu Sans"],
    "axes.titlesize": 14,
    "axes.labelsize": 12,
    "xtick.labelsize": 10,
    "ytick.labelsize": 10,
    "figure.facecolor": "white",
    "axes.facecolor": "white",
    "axes.edgecolor": "#333333",
    "axes.grid": True,
    "grid.alpha": 0.3,
})

# Color palette
COLORS = {
    "primary": "#1B4F72",
    "secondary": "#2E86C1",
    "accent": "#E74C3C",
    "warm": "#E67E22",
    "green": "#27AE60",
    "purple": "#8E44AD",
    "gray": "#7F8C8D",
}
PALETTE = list(COLORS.values()) + [
    "#1ABC9C", "#D35400", "#2C3E50", "#F39C12", "#7D3C98",
    "#16A085", "#C0392B", "#2980B9", "#D4AC0D", "#1B4F72",
]


def _save(fig, path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(path, bbox_inches="tight")
    plt.close(fig)
    print(f"  ✅ {path.name}")
    return path


def _no_data(ax, title):
    ax.text(0.5, 0.5, "No data", ha="center", va="center", fontsize=14,
            color=COLORS["gray"], transform=ax.transAxes)
    ax.axis("off")
    ax.set_title(title, fontsize=14, fontweight="bold")


def _labels(values: pd.Series) -> pd.Series:
    return values.astype(object).where(values.notna(), UNMATCHED_LABEL).astype(str)


# ═══════════════════════════════════════════════════════════════════
# BAR ARCHETYPES
# ═══════════════════════════════════════════════════════════════════

def plot_ranked_bar(counts, dim, title, path, axis_label=None,
                    xlabel="Number of Reviews"):
    """One-dimension cross-tab as horizontal bars, largest on top."""
    fig, ax = plt.subplots(figsize=(11, max(3.5, 0.45 * len(counts) + 1.5)))
    if counts.empty:
        _no_data(ax, title)
        return _save(fig, path)

    labels = _labels(counts[dim])
    bars = ax.barh(
        range(len(counts)), counts["count"].values,
        color=[PALETTE[i % len(PALETTE)] for i in range(len(counts))],
        edgecolor="white", linewidth=0.5,
    )
    ax.set_yticks(range(len(counts)))
    ax.set_yticklabels(labels, fontsize=10)
    ax.set_xlabel(xlabel, fontsize=12)
    if axis_label:
        ax.set_ylabel(axis_label, fontsize=12)
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.invert_yaxis()

    offset = max(counts["count"].max() * 0.01, 0.1)
    for bar, n, pct in zip(bars, counts["count"].values, counts["percent"].values):
        ax.text(bar.get_width() + offset, bar.get_y() + bar.get_height() / 2,
                f"{n} ({pct:.1f}%)", va="center", fontsize=9, fontweight="bold")
    ax.set_xlim(0, counts["count"].max() * 1.2)

    return _save(fig, path)


def plot_stacked_bar(counts, dim1, dim2, title, path, axis_label=None,
                     palette=None, levels=None, sort_by_total=True,
                     xlabel="Number of Reviews"):
    """
    Two-dimension cross-tab as horizontal stacked bars.

    Rows of `dim1` run by ascending total (largest at the top) unless
    `sort_by_total` is False. `levels` fixes the stacking order of `dim2`
    and `palette` maps each level to a fixed color (used for score scales).
    """
    n_rows = counts[dim1].nunique(dropna=False) if not counts.empty else 0
    fig, ax = plt.subplots(figsize=(12, max(3.5, 0.45 * n_rows + 1.5)))
    if counts.empty:
        _no_data(ax, title)
        return _save(fig, path)

    data = counts.assign(**{dim1: _labels(counts[dim1]), dim2: _labels(counts[dim2])})
    pivot = data.pivot_table(index=dim1, columns=dim2, values="count",
                             aggfunc="sum", fill_value=0, sort=False)

    if sort_by_total:
        pivot = pivot.loc[pivot.sum(axis=1).sort_values(kind="stable").index]
    else:
        pivot = pivot.iloc[::-1]

    columns = list(pivot.columns)
    if levels:
        columns = [c for c in levels if c in columns] + [c for c in columns if c not in levels]
    pivot = pivot[columns]

    if palette:
        colors = [palette.get(c, COLORS["gray"]) for c in columns]
    else:
        colors = [PALETTE[i % len(PALETTE)] for i in range(len(columns))]

    pivot.plot(kind="barh", stacked=True, ax=ax, color=colors,
               edgecolor="white", linewidth=0.5, width=0.75)
    ax.set_xlabel(xlabel, fontsize=12)
    ax.set_ylabel(axis_label or "", fontsize=12)
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.legend(title=dim2.replace("_", " ").title(), fontsize=9,
              bbox_to_anchor=(1.01, 1), loc="upper left")

    return _save(fig, path)


def plot_publication_years(counts, year_col, title, path):
    """Reviews per publication year."""
    fig, ax = plt.subplots(figsize=(10, 5))
    if counts.empty:
        _no_data(ax, title)
        return _save(fig, path)

    years = counts[year_col].astype(int).astype(str)
    bars = ax.bar(years, counts["count"].values,
                  color=COLORS["primary"], edgecolor="white", width=0.7)
    for bar, val in zip(bars, counts["count"].values):
        ax.text(bar.get_x() + bar.get_width() / 2, bar.get_height() + 0.1,
                str(val), ha="center", fontsize=11, fontweight="bold")

    ax.set_xlabel("Year", fontsize=12)
    ax.set_ylabel("Number of Reviews", fontsize=12)
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.set_ylim(0, counts["count"].max() * 1.15)
    if len(years) > 12:
        ax.tick_params(axis="x", rotation=45)

    return _save(fig, path)


# ═══════════════════════════════════════════════════════════════════
# CRITICAL APPRAISAL
# ═══════════════════════════════════════════════════════════════════

def _score_legend(ax, levels, colors, **kwargs):
    handles = [Patch(facecolor=colors[level], label=level) for level in levels]
    ax.legend(handles=handles, title="Score", fontsize=9, **kwargs)


def plot_appraisal_heatmap(long, id_col, title, path,
                           levels=SCORE_LEVELS, colors=SCORE_COLORS):
    """Review x question grid, each cell colored by its score."""
    ids = list(pd.unique(long[id_col])) if not long.empty else []
    questions = list(pd.unique(long["question"])) if not long.empty else []
    fig, ax = plt.subplots(figsize=(max(8, 0.6 * len(questions) + 3),
                                    max(4, 0.35 * len(ids) + 2)))
    if long.empty:
        _no_data(ax, title)
        return _save(fig, path)

    grid = long.pivot(index=id_col, columns="question", values="score")
    grid = grid.reindex(index=ids, columns=questions)
    level_index = {level: i for i, level in enumerate(levels)}
    codes = grid.apply(lambda col: col.map(level_index)).astype(float)

    sns.heatmap(
        codes, cmap=ListedColormap([colors[level] for level in levels]),
        vmin=-0.5, vmax=len(levels) - 0.5, mask=codes.isna(), cbar=False,
        linewidths=0.5, linecolor="white", ax=ax,
    )
    ax.set_xlabel("Appraisal Question", fontsize=12)
    ax.set_ylabel("Review", fontsize=12)
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.tick_params(axis="y", rotation=0)
    _score_legend(ax, levels, colors, bbox_to_anchor=(1.01, 1), loc="upper left")

    return _save(fig, path)


def plot_appraisal_points(counts, title, path,
                          levels=SCORE_LEVELS, colors=SCORE_COLORS):
    """Question x score point grid; point area is the number of reviews."""
    questions = list(pd.unique(counts["question"])) if not counts.empty else []
    fig, ax = plt.subplots(figsize=(max(8, 0.6 * len(questions) + 3), 4.5))
    if counts.empty:
        _no_data(ax, title)
        return _save(fig, path)

    known = counts[counts["score"].isin(levels)]
    x = known["question"].map({q: i for i, q in enumerate(questions)})
    y = known["score"].map({level: i for i, level in enumerate(levels)})
    max_n = max(known["count"].max(), 1) if not known.empty else 1
    ax.scatter(x, y, s=known["count"] / max_n * 600 + 20,
               c=[colors[s] for s in known["score"]],
               edgecolors="white", linewidth=0.8, zorder=3)
    for xi, yi, n in zip(x, y, known["count"]):
        ax.text(xi, yi, str(n), ha="center", va="center", fontsize=8,
                color="white", fontweight="bold", zorder=4)

    ax.set_xticks(range(len(questions)))
    ax.set_xticklabels(questions, rotation=45, ha="right")
    ax.set_yticks(range(len(levels)))
    ax.set_yticklabels(levels)
    ax.set_ylim(len(levels) - 0.5, -0.5)
    ax.set_xlabel("Appraisal Question", fontsize=12)
    ax.set_title(title, fontsize=14, fontweight="bold")

    return _save(fig, path)


# ═══════════════════════════════════════════════════════════════════
# BIBLIOMETRICS
# ═══════════════════════════════════════════════════════════════════

def plot_network(G, title, path, label_scale=1.0, max_labels=20):
    """Draw a laid-out graph from bibliometrics.layout_network()."""
    fig, ax = plt.subplots(figsize=(12, 10))
    if len(G) == 0:
        _no_data(ax, title)
        return _save(fig, path)

    pos = {n: d["pos"] for n, d in G.nodes(data=True)}
    weights = [d.get("weight", 1) for _, _, d in G.edges(data=True)]
    max_w = max(weights) if weights else 1
    nx.draw_networkx_edges(G, pos, ax=ax, width=[0.3 + 2.5 * w / max_w for w in weights],
                           alpha=0.3, edge_color="#999999")

    degrees = [G.degree(n) for n in G.nodes()]
    max_deg = max(max(degrees), 1)
    nx.draw_networkx_nodes(
        G, pos, ax=ax, node_size=[d["size"] for _, d in G.nodes(data=True)],
        node_color=[PALETTE[min(int(4 * deg / max_deg), 4)] for deg in degrees],
        alpha=0.85, edgecolors="white", linewidths=0.5,
    )

    ranked = sorted(G.nodes(), key=lambda n: -G.nodes[n]["occurrences"])[:max_labels]
    nx.draw_networkx_labels(G, pos, labels={n: n for n in ranked}, ax=ax,
                            font_size=8 * label_scale, font_color="#2C3E50",
                            font_weight="bold")

    ax.axis("off")
    ax.set_title(f"{title} ({G.number_of_nodes()} nodes, {G.number_of_edges()} links)",
                 fontsize=14, fontweight="bold")
    return _save(fig, path)


def plot_keyword_wordcloud(frequencies, title, path, stopwords=WORDCLOUD_STOPWORDS):
    """Word cloud of author keywords sized by the number of records."""
    freq = {k: int(v) for k, v in frequencies.items() if k not in set(stopwords)}
    fig, ax = plt.subplots(figsize=(14, 7))
    if not freq:
        _no_data(ax, title)
        return _save(fig, path)

    wc = WordCloud(
        width=1600, height=800,
        background_color="white",
        colormap="viridis",
        max_words=120,
        min_font_size=10,
        prefer_horizontal=0.8,
    ).generate_from_frequencies(freq)

    ax.imshow(wc, interpolation="bilinear")
    ax.axis("off")
    ax.set_title(title, fontsize=14, fontweight="bold", pad=15)
    return _save(fig, path)


# ═══════════════════════════════════════════════════════════════════
# LEGEND TABLES
# ═══════════════════════════════════════════════════════════════════

def plot_reference_table(legend, title, path, wrap=70):
    """Code → label → description legend rendered as a table figure."""
    fig, ax = plt.subplots(figsize=(14, max(2.5, 0.5 * len(legend) + 1.5)))
    ax.axis("off")
    if legend.empty:
        _no_data(ax, title)
        return _save(fig, path)

    cells = [
        [str(code), "" if pd.isna(label) else str(label),
         "" if pd.isna(desc) else textwrap.fill(str(desc), wrap)]
        for code, label, desc in legend.itertuples(index=False)
    ]
    table = ax.table(
        cellText=cells,
        colLabels=["Code", "Label", "Description"],
        cellLoc="left",
        loc="center",
        colWidths=[0.1, 0.25, 0.62],
    )
    table.auto_set_font_size(False)
    table.set_fontsize(9)
    table.scale(1, 1.6)

    for j in range(3):
        table[0, j].set_facecolor(COLORS["primary"])
        table[0, j].set_text_props(color="white", fontweight="bold")
    for i, row in enumerate(cells, 1):
        color = "#F0F4F8" if i % 2 == 0 else "white"
        n_lines = max(1, row[2].count("\n") + 1)
        for j in range(3):
            table[i, j].set_facecolor(color)
            table[i, j].set_height(table[i, j].get_height() * n_lines)

    ax.set_title(title, fontsize=14, fontweight="bold", pad=20)
    return _save(fig, path)
