"""
REVIEW-SPECIFIC CONFIGURATION
===============================
This is the ONLY file you need to edit when pointing this pipeline at a new
coding workbook or bibliographic export. Every other script imports from here.
The list of coded data elements lives in element_definitions.py.

──────────────────────────────────────────────────────────────────────
INPUTS
──────────────────────────────────────────────────────────────────────
  WORKBOOK_PATH   multi-sheet .xlsx: one sheet per coded data element,
                  one vocabulary sheet per element, review_info,
                  assessment, publication_year
  BIB_PATH        RIS export of the included systematic reviews

Current review: Umbrella review of non-genetic inheritance
"""

from pathlib import Path

# ── REVIEW IDENTITY ───────────────────────────────────────────────
REVIEW_NAME = "Non-Genetic Inheritance"
REVIEW_SHORT = "NGI"                         # For figure titles

# ── INPUT FILES ───────────────────────────────────────────────────
DATA_DIR = Path(__file__).parent / "data"
WORKBOOK_PATH = DATA_DIR / "umbrella_review_coding.xlsx"
BIB_PATH = DATA_DIR / "included_reviews.ris"

# ── FIGURE OUTPUT ─────────────────────────────────────────────────
FIG_DIR_NAME = "figures"                     # Subfolder name for figures

# ── WORKBOOK SHEETS ───────────────────────────────────────────────
REVIEW_INFO_SHEET = "review_info"
ASSESSMENT_SHEET = "assessment"
PUBLICATION_YEAR_SHEET = "publication_year"

REVIEW_ID = "review_id"                      # Shared key across all coded sheets
YEAR_COLUMN = "year"                         # Column in PUBLICATION_YEAR_SHEET

# Vocabulary sheets share one layout: code | label | description
VOCAB_CODE = "code"
VOCAB_LABEL = "label"
VOCAB_DESCRIPTION = "description"

# Review-level attribute every observation can inherit (second chart dimension)
DISCIPLINE_KEY = "discipline_code"
DISCIPLINE_VOCAB = "discipline_vocab"
DISCIPLINE_LABEL = "discipline"

# ── REFERENTIAL INTEGRITY ─────────────────────────────────────────
# What to do when a coded value has no row in its vocabulary sheet:
#   "ignore" → keep the row with empty label/description
#   "warn"   → same, plus a logged warning naming the codes (pilot data)
#   "error"  → stop with ReferentialIntegrityError (final dataset)
UNMATCHED_CODE_POLICY = "warn"

# ── CRITICAL APPRAISAL (CEESAT) ───────────────────────────────────
# Score columns are the inclusive range FIRST..LAST in sheet order.
# Reviewer commentary columns end with COMMENT_SUFFIX and are dropped.
APPRAISAL_FIRST_QUESTION = "Q1.1"
APPRAISAL_LAST_QUESTION = "Q8.1"
APPRAISAL_COMMENT_SUFFIX = "_comment"

# 4-level ordinal scale, best → worst. Order here is the plotting order.
SCORE_LEVELS = ["Gold", "Green", "Amber", "Red"]
SCORE_COLORS = {
    "Gold": "#D4AC0D",
    "Green": "#27AE60",
    "Amber": "#E67E22",
    "Red": "#C0392B",
}

# ── BIBLIOGRAPHIC NETWORKS ────────────────────────────────────────
MULTI_VALUE_SEP = ";"                        # Separator for authors/keywords/countries
NETWORK_TOP_N = 30                           # Node-count cap per network
NETWORK_LAYOUT = "fruchterman"               # fruchterman | kamada_kawai | circle
NETWORK_SEED = 42

# Affiliation → country matching. Aliases map to the canonical name.
COUNTRIES = [
    "ARGENTINA", "AUSTRALIA", "AUSTRIA", "BELGIUM", "BRAZIL", "CANADA",
    "CHILE", "CHINA", "COLOMBIA", "CZECH REPUBLIC", "DENMARK", "EGYPT",
    "ESTONIA", "FINLAND", "FRANCE", "GERMANY", "GREECE", "HUNGARY", "INDIA",
    "IRAN", "IRELAND", "ISRAEL", "ITALY", "JAPAN", "KENYA", "MEXICO",
    "NETHERLANDS", "NEW ZEALAND", "NIGERIA", "NORWAY", "POLAND", "PORTUGAL",
    "RUSSIA", "SINGAPORE", "SOUTH AFRICA", "SOUTH KOREA", "SPAIN", "SWEDEN",
    "SWITZERLAND", "TAIWAN", "THAILAND", "TURKEY", "UNITED KINGDOM", "USA",
]
COUNTRY_ALIASES = {
    "UNITED STATES": "USA",
    "U.S.A.": "USA",
    "UK": "UNITED KINGDOM",
    "ENGLAND": "UNITED KINGDOM",
    "SCOTLAND": "UNITED KINGDOM",
    "WALES": "UNITED KINGDOM",
    "NORTHERN IRELAND": "UNITED KINGDOM",
    "KOREA": "SOUTH KOREA",
    "PEOPLES R CHINA": "CHINA",
    "THE NETHERLANDS": "NETHERLANDS",
}

# ── WORD CLOUD ────────────────────────────────────────────────────
# Keywords too generic to be informative in the keyword cloud
WORDCLOUD_STOPWORDS = ["REVIEW", "SYSTEMATIC REVIEW", "META-ANALYSIS",
                       "INHERITANCE", "OFFSPRING"]
