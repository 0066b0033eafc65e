"""
Pydantic schemas for the declarative pipeline descriptors.
===========================================================
Every coded data element and every bibliometric network is described by a
small validated record instead of a hand-written chart block. A typo in a
descriptor (empty sheet name, unknown layout, cap of zero nodes) raises a
ValidationError as soon as element_definitions.py is imported.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field


# ═══════════════════════════════════════════════════════════════════════
# CODED DATA ELEMENTS
# ═══════════════════════════════════════════════════════════════════════

class DataElement(BaseModel):
    """One coded data element: observation sheet + vocabulary + chart."""
    name: str = Field(min_length=1, pattern=r"^[a-z0-9_]+$",
        description="Slug used for figure file names and log messages")
    title: str = Field(min_length=1,
        description="Figure title")
    table: str = Field(min_length=1,
        description="Workbook sheet holding the coded observations")
    vocabulary: str = Field(min_length=1,
        description="Workbook sheet holding the code -> label/description lookup")
    key: str = Field(min_length=1,
        description="Column in `table` holding the vocabulary code")
    axis_label: str = Field(min_length=1,
        description="Display name of the coded dimension")
    by: Optional[str] = Field(None,
        description="Second dimension (inherited from review info if absent "
                    "from the observation sheet). None for a ranked bar.")
    denominator: Literal["total", "within"] = Field("total",
        description="Percent denominator: grand total or within `by` group")


# ═══════════════════════════════════════════════════════════════════════
# BIBLIOMETRIC NETWORKS
# ═══════════════════════════════════════════════════════════════════════

class NetworkRequest(BaseModel):
    """Adjacency + layout parameters for one bibliometric network."""
    name: str = Field(min_length=1, pattern=r"^[a-z0-9_]+$")
    title: str = Field(min_length=1)
    relation: Literal["co-occurrence", "collaboration"]
    field: Literal["keywords", "authors", "countries"]
    n: int = Field(30, ge=1,
        description="Keep only the top-n entities by occurrence")
    layout: Literal["fruchterman", "kamada_kawai", "circle"] = "fruchterman"
    remove_multiple: bool = Field(False,
        description="Collapse repeated co-appearances to a single 0/1 edge")
    remove_isolates: bool = True
    size: float = Field(300.0, gt=0,
        description="Base node size; scaled by occurrences")
    label_scale: float = Field(1.0, gt=0,
        description="Multiplier on label font size")
