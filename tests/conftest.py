"""
Shared fixtures: a small in-memory coding workbook and RIS export.
"""

import matplotlib
matplotlib.use("Agg")

import pandas as pd
import pytest

from workbook import ReviewWorkbook


def vocab(rows):
    return pd.DataFrame(rows, columns=["code", "label", "description"])


@pytest.fixture
def sheets():
    """Sheet name -> DataFrame, shaped like the real coding workbook."""
    return {
        "review_info": pd.DataFrame({
            "review_id": [101, 102, 103, 104],
            "discipline_code": ["D1", "D1", "D2", "D3"],
            "topic_code": ["T1", "T2", "T1", "T1"],
            "terminology_code": ["INTER", "TRANS", "TRANS", "INTER"],
            "mutagen_code": ["M1", "M1", "M2", "M1"],
        }),
        "discipline_vocab": vocab([
            ("D1", "Ecology", "Ecology and evolution"),
            ("D2", "Medicine", "Human and clinical"),
            ("D3", "Toxicology", "Ecotoxicology and toxicology"),
        ]),
        "topic_vocab": vocab([
            ("T1", "Diet", "Parental diet"),
            ("T2", "Stress", "Parental stress"),
        ]),
        "terminology_vocab": vocab([
            ("INTER", "Intergenerational", "F1 effects"),
            ("TRANS", "Transgenerational", "F2+ effects"),
        ]),
        "mutagen_vocab": vocab([
            ("M1", "Chemical", "Chemical agent"),
            ("M2", "Physical", "Physical agent"),
        ]),
        "transmission": pd.DataFrame({
            "review_id": [101, 101, 102, 103, 104],
            "transmission_code": ["MAT", "PAT", "MAT", "MAT", "BOTH"],
        }),
        "transmission_vocab": vocab([
            ("MAT", "Maternal", "Via the mother"),
            ("PAT", "Paternal", "Via the father"),
            ("BOTH", "Both parents", "Via either parent"),
        ]),
        "assessment": pd.DataFrame({
            "review_id": [101, 102, 103],
            "Q1.1": ["Gold", "green", "Red"],
            "Q1.1_comment": ["ok", "", "weak"],
            "Q2.1": ["Green", "Green", "Amber"],
            "Q3.1": ["Amber", "Red", "Red"],
        }),
        "publication_year": pd.DataFrame({
            "review_id": [101, 102, 103, 104],
            "year": [2019, 2021, 2019, None],
        }),
    }


@pytest.fixture
def workbook(sheets):
    return ReviewWorkbook(sheets, source="test.xlsx")


RIS_TEXT = """TY  - JOUR
AU  - Smith, John
AU  - Lee, Anna
TI  - Parental diet and offspring metabolism
PY  - 2019
JO  - Biological Reviews
KW  - epigenetics
KW  - diet
AD  - Dept Biology, University of Oxford, Oxford, UK
AD  - School of Biology, Harvard University, Cambridge, MA, USA
ER  - 

TY  - JOUR
AU  - Lee, Anna
AU  - Garcia, Maria
TI  - Paternal effects across generations
PY  - 2021///
JO  - Ecology Letters
KW  - Epigenetics
KW  - paternal effects
AD  - Harvard University, Cambridge, MA 02138, United States
AD  - CSIC, Madrid, Spain
ER  - 

TY  - JOUR
AU  - Chen, Wei
TI  - Transgenerational plasticity
PY  - 2022
KW  - plasticity
AD  - Peking University, Beijing, China
ER  - 
"""


@pytest.fixture
def ris_file(tmp_path):
    path = tmp_path / "reviews.ris"
    path.write_text(RIS_TEXT, encoding="utf-8")
    return path


@pytest.fixture
def records():
    """Flat bibliographic record table as produced by load_bibliography()."""
    return pd.DataFrame({
        "title": ["A", "B", "C"],
        "authors": ["Smith J; Lee A", "Lee A; Garcia M", "Chen W"],
        "keywords": ["epigenetics; diet", "Epigenetics; paternal effects", "plasticity"],
        "affiliations": [
            "Univ Oxford, Oxford, England; Harvard Univ, Cambridge, MA, USA",
            "Harvard Univ, Cambridge, United States; CSIC, Madrid, Spain",
            "Peking Univ, Beijing, Peoples R China",
        ],
        "year": [2019, 2021, 2022],
    })
