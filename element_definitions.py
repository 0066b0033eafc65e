"""
SINGLE SOURCE OF TRUTH for the coded data elements and bibliometric networks.
All analysis scripts must import from here — no per-element chart blocks.

HOW TO EDIT THIS FILE
=====================
- Each coded element is one DataElement(...) entry. Adding an element to the
  workbook means adding one entry here; analysis.py and audit.py pick it up.
- `table` / `vocabulary` are workbook sheet names, `key` is the code column.
- `by` adds a second chart dimension. "discipline" is inherited from the
  review_info sheet when the observation sheet doesn't carry it.
- A typo in a field (e.g. an unknown layout) fails at import with a
  pydantic ValidationError.

Run `python audit.py` after editing to print every table the figures use.
"""

from config import DISCIPLINE_KEY, DISCIPLINE_LABEL, DISCIPLINE_VOCAB, REVIEW_INFO_SHEET
from schemas import DataElement, NetworkRequest

# ── REVIEW-LEVEL ELEMENTS (coded once per systematic review) ───────
REVIEW_ELEMENTS = [
    DataElement(
        name="discipline", title="Reviews by Discipline",
        table=REVIEW_INFO_SHEET, vocabulary=DISCIPLINE_VOCAB,
        key=DISCIPLINE_KEY, axis_label="Discipline",
    ),
    DataElement(
        name="topic", title="Review Topic by Discipline",
        table=REVIEW_INFO_SHEET, vocabulary="topic_vocab",
        key="topic_code", axis_label="Topic", by=DISCIPLINE_LABEL,
    ),
    DataElement(
        name="terminology", title="Intergenerational vs Transgenerational Terminology",
        table=REVIEW_INFO_SHEET, vocabulary="terminology_vocab",
        key="terminology_code", axis_label="Terminology", by=DISCIPLINE_LABEL,
    ),
    DataElement(
        name="mutagen", title="Exposure Agent Studied",
        table=REVIEW_INFO_SHEET, vocabulary="mutagen_vocab",
        key="mutagen_code", axis_label="Exposure agent",
    ),
]

# ── OBSERVATION-LEVEL ELEMENTS (several rows per review) ───────────
OBSERVATION_ELEMENTS = [
    DataElement(
        name="transmission", title="Transmission Type by Discipline",
        table="transmission", vocabulary="transmission_vocab",
        key="transmission_code", axis_label="Transmission type", by=DISCIPLINE_LABEL,
    ),
    DataElement(
        name="effect_direction", title="Direction of Environmental Effect",
        table="effect_direction", vocabulary="effect_direction_vocab",
        key="direction_code", axis_label="Effect direction", by=DISCIPLINE_LABEL,
    ),
    DataElement(
        name="exposure_timing", title="Timing of Parental Exposure",
        table="exposure_timing", vocabulary="exposure_timing_vocab",
        key="timing_code", axis_label="Exposure timing", by=DISCIPLINE_LABEL,
    ),
    DataElement(
        name="descendant_trait", title="Descendant Traits Measured",
        table="descendant_trait", vocabulary="descendant_trait_vocab",
        key="trait_code", axis_label="Descendant trait", by=DISCIPLINE_LABEL,
    ),
    DataElement(
        name="descendant_age", title="Age of Descendants at Measurement",
        table="descendant_age", vocabulary="descendant_age_vocab",
        key="age_code", axis_label="Descendant age",
    ),
    DataElement(
        name="descendant_sex", title="Sex of Descendants",
        table="descendant_sex", vocabulary="descendant_sex_vocab",
        key="sex_code", axis_label="Descendant sex",
    ),
    DataElement(
        name="generation", title="Descendant Generation Studied",
        table="generation", vocabulary="generation_vocab",
        key="generation_code", axis_label="Generation",
    ),
    DataElement(
        name="taxon", title="Taxa Studied by Discipline",
        table="taxon", vocabulary="taxon_vocab",
        key="taxon_code", axis_label="Taxon", by=DISCIPLINE_LABEL,
    ),
]

DATA_ELEMENTS = REVIEW_ELEMENTS + OBSERVATION_ELEMENTS

# ── BIBLIOMETRIC NETWORKS ──────────────────────────────────────────
NETWORKS = [
    NetworkRequest(
        name="keyword_cooccurrence", title="Keyword Co-occurrence Network",
        relation="co-occurrence", field="keywords", n=50,
    ),
    NetworkRequest(
        name="author_collaboration", title="Author Collaboration Network",
        relation="collaboration", field="authors", n=50, remove_multiple=True,
    ),
    NetworkRequest(
        name="country_collaboration", title="Country Collaboration Network",
        relation="collaboration", field="countries", n=30, layout="circle",
        label_scale=1.2,
    ),
]
