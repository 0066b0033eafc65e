"""
Bibliometric Network Adapter
==============================
Turns the flat bibliographic record table into the adjacency structures for
three networks and hands them to networkx for layout:

  keyword co-occurrence   (relation="co-occurrence", field="keywords")
  author collaboration    (relation="collaboration", field="authors")
  country collaboration   (relation="collaboration", field="countries")

The adjacency matrix is A = Mᵀ·M where M is the record x entity incidence
matrix: the diagonal counts records per entity, off-diagonal cells count
records shared by a pair. Layout algorithms are networkx's; nothing here
positions nodes by itself.
"""

from __future__ import annotations

import logging
import re
from collections import Counter

import networkx as nx
import numpy as np
import pandas as pd

from config import COUNTRIES, COUNTRY_ALIASES, MULTI_VALUE_SEP, NETWORK_SEED
from review_utils import is_missing, split_multi
from schemas import NetworkRequest
from tables import ReviewDataError

logger = logging.getLogger("review_pipeline")

VALID_NETWORKS = {
    ("co-occurrence", "keywords"),
    ("collaboration", "authors"),
    ("collaboration", "countries"),
}

# Longest names first so "SOUTH KOREA" wins over the "KOREA" alias
_COUNTRY_NAMES = sorted(set(COUNTRIES) | set(COUNTRY_ALIASES), key=len, reverse=True)
_COUNTRY_RE = re.compile(
    r"(?<![A-Z])(" + "|".join(re.escape(c) for c in _COUNTRY_NAMES) + r")(?![A-Z])"
)


# ═══════════════════════════════════════════════════════════════════════
# COUNTRY EXTRACTION
# ═══════════════════════════════════════════════════════════════════════

def affiliation_country(affiliation: str):
    """Country named in one affiliation string (last match wins), or None."""
    if is_missing(affiliation):
        return None
    matches = _COUNTRY_RE.findall(str(affiliation).upper())
    if not matches:
        return None
    return COUNTRY_ALIASES.get(matches[-1], matches[-1])


def extract_countries(records: pd.DataFrame, field: str = "affiliations",
                      sep: str = MULTI_VALUE_SEP) -> pd.Series:
    """Derive the `countries` field (one country per affiliation, deduplicated)."""
    if field not in records.columns:
        raise ReviewDataError(
            f"Cannot derive countries: bibliographic records have no '{field}' column"
        )

    def _countries(cell):
        found = []
        for affiliation in ([] if is_missing(cell) else str(cell).split(sep)):
            country = affiliation_country(affiliation)
            if country and country not in found:
                found.append(country)
        return sep.join(found)

    return records[field].map(_countries).rename("countries")


def with_countries(records: pd.DataFrame, sep: str = MULTI_VALUE_SEP) -> pd.DataFrame:
    out = records.copy()
    out["countries"] = extract_countries(records, sep=sep)
    n_missing = (out["countries"] == "").sum()
    if n_missing:
        logger.info(f"{n_missing} record(s) have no recognizable affiliation country")
    return out


# ═══════════════════════════════════════════════════════════════════════
# ADJACENCY
# ═══════════════════════════════════════════════════════════════════════

def entity_lists(records: pd.DataFrame, field: str, sep: str = MULTI_VALUE_SEP) -> pd.Series:
    if field == "countries" and field not in records.columns:
        records = with_countries(records, sep)
    if field not in records.columns:
        raise ReviewDataError(f"Bibliographic records have no '{field}' column")
    return records[field].map(lambda v: split_multi(v, sep))


def entity_frequencies(records: pd.DataFrame, field: str,
                       sep: str = MULTI_VALUE_SEP) -> pd.Series:
    """Number of records mentioning each entity, most frequent first."""
    counts = Counter(e for ents in entity_lists(records, field, sep) for e in ents)
    if not counts:
        return pd.Series(dtype="int64", name="records")
    return pd.Series(dict(counts.most_common()), name="records")


def build_network(
    records: pd.DataFrame,
    relation: str,
    entity_field: str,
    sep: str = MULTI_VALUE_SEP,
    remove_multiple: bool = False,
) -> pd.DataFrame:
    """
    Symmetric entity x entity adjacency matrix for one relation.

    Args:
        records: Bibliographic record table (one row per publication)
        relation: "co-occurrence" or "collaboration"
        entity_field: "keywords", "authors" or "countries"
        sep: Delimiter of the multi-valued field
        remove_multiple: Off-diagonal weights become 0/1 instead of counts

    Returns:
        DataFrame indexed and columned by entity (sorted). Empty if no record
        lists any entity.
    """
    if (relation, entity_field) not in VALID_NETWORKS:
        raise ValueError(
            f"Unsupported network {relation!r} x {entity_field!r}; "
            f"choose from {sorted(VALID_NETWORKS)}"
        )

    lists = entity_lists(records, entity_field, sep)
    pairs = [(i, e) for i, ents in enumerate(lists) for e in ents]
    if not pairs:
        logger.warning(f"No {entity_field} found in {len(records)} records; empty network")
        return pd.DataFrame(dtype="int64")

    incidence = pd.DataFrame(pairs, columns=["record", "entity"])
    m = pd.crosstab(incidence["record"], incidence["entity"]).clip(upper=1)
    adjacency = m.T.dot(m)

    if remove_multiple:
        values = adjacency.to_numpy().copy()
        diagonal = np.diag(values).copy()
        values = np.minimum(values, 1)
        np.fill_diagonal(values, diagonal)
        adjacency = pd.DataFrame(values, index=adjacency.index, columns=adjacency.columns)

    adjacency.index.name = None
    adjacency.columns.name = None
    return adjacency.astype("int64")


# ═══════════════════════════════════════════════════════════════════════
# LAYOUT
# ═══════════════════════════════════════════════════════════════════════

def _layout(G: nx.Graph, algorithm: str, seed: int) -> dict:
    if algorithm == "fruchterman":
        return nx.spring_layout(G, k=1.5 / max(len(G) ** 0.5, 1), iterations=50,
                                seed=seed, weight="weight")
    if algorithm == "kamada_kawai":
        return nx.kamada_kawai_layout(G)
    if algorithm == "circle":
        return nx.circular_layout(G)
    raise ValueError(f"Unknown layout {algorithm!r}")


def layout_network(adjacency: pd.DataFrame, request: NetworkRequest,
                   seed: int = NETWORK_SEED) -> nx.Graph:
    """
    Build and lay out the graph for `adjacency` under `request`.

    Keeps the top `request.n` entities by occurrence (ties in name order),
    optionally drops isolates, and stores `occurrences`, `degree`, `size`
    and `pos` on every node. Edge attribute `weight` holds the shared count.
    """
    G = nx.Graph()
    if adjacency.empty:
        return G

    occurrences = pd.Series(np.diag(adjacency.to_numpy()), index=adjacency.index)
    top = list(occurrences.sort_values(ascending=False, kind="stable").head(request.n).index)
    values = adjacency.loc[top, top].to_numpy()

    for node in top:
        G.add_node(node, occurrences=int(occurrences[node]))
    for i in range(len(top)):
        for j in range(i + 1, len(top)):
            if values[i, j] > 0:
                G.add_edge(top[i], top[j], weight=int(values[i, j]))

    if request.remove_isolates:
        G.remove_nodes_from(list(nx.isolates(G)))
    if len(G) == 0:
        return G

    pos = _layout(G, request.layout, seed)
    max_occ = max(d["occurrences"] for _, d in G.nodes(data=True))
    for node, data in G.nodes(data=True):
        data["degree"] = G.degree(node)
        data["size"] = request.size * (0.3 + data["occurrences"] / max_occ)
        data["pos"] = tuple(float(x) for x in pos[node])
    return G


def network_summary(G: nx.Graph, top: int = 5) -> dict:
    """Node/edge counts, density and the best-connected entities."""
    ranked = sorted(G.nodes(), key=lambda n: (-G.degree(n), n))[:top]
    return {
        "nodes": G.number_of_nodes(),
        "edges": G.number_of_edges(),
        "density": round(nx.density(G), 3) if len(G) > 1 else 0.0,
        "top": [(n, G.degree(n)) for n in ranked],
    }
