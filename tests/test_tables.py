"""
Unit tests for the core table operations.
"""

import logging
import re

import pandas as pd
import pytest

from tables import (
    AmbiguousKeyError,
    EmptyInputWarning,
    ReferentialIntegrityError,
    ReshapeColumnRangeError,
    aggregate,
    anonymize_ids,
    join_lookup,
    question_range,
    reference,
    to_long,
)


@pytest.fixture
def observations():
    return pd.DataFrame({
        "review": [1, 1, 2],
        "code": ["A", "B", "A"],
    })


@pytest.fixture
def alpha_beta():
    return pd.DataFrame({
        "code": ["A", "B"],
        "label": ["Alpha", "Beta"],
        "description": ["first", "second"],
    })


class TestJoinLookup:
    """Test the left join against a controlled vocabulary."""

    def test_preserves_row_count_and_order(self, observations, alpha_beta):
        """Joined table has one row per observation, in input order."""
        joined = join_lookup(observations, alpha_beta, key="code")

        assert len(joined) == len(observations)
        assert joined["review"].tolist() == [1, 1, 2]
        assert joined["label"].tolist() == ["Alpha", "Beta", "Alpha"]

    def test_duplicate_vocabulary_key_rejected(self, observations):
        """Two rows sharing a code must raise before joining."""
        bad = pd.DataFrame({
            "code": ["X", "X", "A"],
            "label": ["Ex", "Other ex", "Alpha"],
            "description": ["", "", ""],
        })
        with pytest.raises(AmbiguousKeyError, match="X"):
            join_lookup(observations, bad, key="code", element="trait")

    def test_error_names_element(self, observations):
        bad = pd.DataFrame({"code": ["A", "A"], "label": ["a", "b"]})
        with pytest.raises(AmbiguousKeyError, match=r"\[taxon\]"):
            join_lookup(observations, bad, key="code", element="taxon")

    def test_unmatched_code_kept_with_null_label(self, alpha_beta):
        """A code missing from the vocabulary keeps its row with an empty label."""
        obs = pd.DataFrame({"review": [1, 2], "code": ["A", "Z"]})
        joined = join_lookup(obs, alpha_beta, key="code", on_unmatched="ignore")

        assert len(joined) == 2
        assert joined.loc[1, "code"] == "Z"
        assert pd.isna(joined.loc[1, "label"])
        assert pd.isna(joined.loc[1, "description"])

    def test_unmatched_warn_policy_logs(self, alpha_beta, caplog):
        obs = pd.DataFrame({"review": [1, 2], "code": ["A", "Z"]})
        with caplog.at_level(logging.WARNING, logger="review_pipeline"):
            join_lookup(obs, alpha_beta, key="code", element="sex", on_unmatched="warn")

        assert "Z" in caplog.text
        assert "[sex]" in caplog.text

    def test_unmatched_error_policy_raises(self, alpha_beta):
        obs = pd.DataFrame({"review": [1, 2], "code": ["A", "Z"]})
        with pytest.raises(ReferentialIntegrityError, match="Z"):
            join_lookup(obs, alpha_beta, key="code", on_unmatched="error")

    def test_null_codes_are_not_unmatched(self, alpha_beta):
        """An uncoded cell is not an integrity violation."""
        obs = pd.DataFrame({"review": [1, 2], "code": ["A", None]})
        joined = join_lookup(obs, alpha_beta, key="code", on_unmatched="error")
        assert len(joined) == 2

    def test_blank_vocabulary_code_rejected(self):
        """A vocabulary row without a code would label every uncoded observation."""
        obs = pd.DataFrame({"review": [1, 2], "code": ["A", None]})
        voc = pd.DataFrame({"code": ["A", None], "label": ["Alpha", "Notes row"]})

        with pytest.raises(AmbiguousKeyError, match=r"\[sex\].*blank"):
            join_lookup(obs, voc, key="code", element="sex", on_unmatched="error")

    def test_unknown_policy_rejected(self, observations, alpha_beta):
        with pytest.raises(ValueError):
            join_lookup(observations, alpha_beta, key="code", on_unmatched="maybe")

    def test_different_key_names(self, alpha_beta):
        obs = pd.DataFrame({"review": [1], "trait_code": ["B"]})
        joined = join_lookup(obs, alpha_beta, key="trait_code", vocab_key="code")

        assert joined.loc[0, "label"] == "Beta"
        assert "code" not in joined.columns

    def test_numeric_and_text_codes_match(self):
        """Codes typed as 1 in one sheet and "1" in another still join."""
        obs = pd.DataFrame({"review": [1, 2], "code": [1.0, 2.0]})
        voc = pd.DataFrame({"code": ["1", "2"], "label": ["One", "Two"]})
        joined = join_lookup(obs, voc, key="code", on_unmatched="error")

        assert joined["label"].tolist() == ["One", "Two"]

    def test_inputs_not_modified(self, observations, alpha_beta):
        before = observations.copy()
        join_lookup(observations, alpha_beta, key="code")
        pd.testing.assert_frame_equal(observations, before)


class TestAggregate:
    """Test the cross-tab counts and percentages."""

    def test_example_scenario(self, observations, alpha_beta):
        """A,B,A joined to Alpha/Beta -> Alpha 2 (66.67%), Beta 1 (33.33%)."""
        joined = join_lookup(observations, alpha_beta, key="code")
        result = aggregate(joined, "label")

        assert result["label"].tolist() == ["Alpha", "Beta"]
        assert result["count"].tolist() == [2, 1]
        assert result["percent"].tolist() == pytest.approx([66.67, 33.33], abs=0.01)

    def test_percent_sums_to_100(self):
        table = pd.DataFrame({"x": list("aaabbcdddd")})
        result = aggregate(table, "x")
        assert result["percent"].sum() == pytest.approx(100, abs=0.001)

    def test_sorted_by_count_descending(self):
        table = pd.DataFrame({"x": list("abbcccdd")})
        result = aggregate(table, "x")
        assert result["count"].tolist() == [3, 2, 2, 1]

    def test_ties_keep_encounter_order(self):
        """Equal counts stay in the order they first appeared."""
        table = pd.DataFrame({"x": ["zeta", "alpha", "mid", "alpha", "zeta", "mid"]})
        result = aggregate(table, "x")
        assert result["x"].tolist() == ["zeta", "alpha", "mid"]

    def test_two_dimensions_use_grand_total(self):
        """Two-dimension percentages sum to 100 over the table, not per group."""
        table = pd.DataFrame({
            "trait": ["Body size", "Body size", "Behaviour", "Body size"],
            "discipline": ["Ecology", "Medicine", "Ecology", "Ecology"],
        })
        result = aggregate(table, "trait", "discipline")

        assert len(result) == 3
        assert result["percent"].sum() == pytest.approx(100, abs=0.001)
        first = result.iloc[0]
        assert (first["trait"], first["discipline"], first["count"]) == ("Body size", "Ecology", 2)
        assert first["percent"] == pytest.approx(50.0)
        ecology = result[result["discipline"] == "Ecology"]["percent"].sum()
        assert ecology == pytest.approx(75.0)

    def test_within_denominator(self):
        """Within-group percentages sum to 100 inside each second-dimension group."""
        table = pd.DataFrame({
            "trait": ["Body size", "Body size", "Behaviour", "Body size"],
            "discipline": ["Ecology", "Medicine", "Ecology", "Ecology"],
        })
        result = aggregate(table, "trait", "discipline", denominator="within")
        sums = result.groupby("discipline")["percent"].sum()

        assert sums["Ecology"] == pytest.approx(100)
        assert sums["Medicine"] == pytest.approx(100)

    def test_within_needs_second_dimension(self):
        with pytest.raises(ValueError):
            aggregate(pd.DataFrame({"x": [1]}), "x", denominator="within")

    def test_missing_labels_form_a_group(self):
        table = pd.DataFrame({"label": ["A", None, "A", None, None]})
        result = aggregate(table, "label")

        assert result["count"].tolist() == [3, 2]
        assert pd.isna(result.loc[0, "label"])

    def test_empty_input_warns_and_returns_empty(self):
        table = pd.DataFrame({"label": [], "discipline": []})
        with pytest.warns(EmptyInputWarning):
            result = aggregate(table, "label", "discipline")

        assert result.empty
        assert list(result.columns) == ["label", "discipline", "count", "percent"]


class TestReference:
    """Test the code legend builder."""

    def test_distinct_sorted_by_code(self):
        joined = pd.DataFrame({
            "code": ["B", "A", "B", "C"],
            "label": ["Beta", "Alpha", "Beta", "Gamma"],
            "description": ["b", "a", "b", "c"],
        })
        legend = reference(joined, "code", "label", "description")

        assert legend["code"].tolist() == ["A", "B", "C"]
        assert not legend.duplicated().any()

    def test_inconsistent_labels_both_shown(self):
        """A code carrying two labels appears once per distinct triple."""
        joined = pd.DataFrame({
            "code": ["A", "A", "A"],
            "label": ["Alpha", "Alpha", "Alfa"],
            "description": ["a", "a", "a"],
        })
        legend = reference(joined, "code", "label", "description")

        assert len(legend) == 2
        assert set(legend["label"]) == {"Alpha", "Alfa"}


class TestReshape:
    """Test the appraisal question range and long-format reshape."""

    COLUMNS = ["review_id", "Q1.1", "Q1.1_comment", "Q2.1", "Q3.1", "notes"]

    def test_question_range_drops_comments(self):
        assert question_range(self.COLUMNS, "Q1.1", "Q3.1") == ["Q1.1", "Q2.1", "Q3.1"]

    def test_question_range_missing_end(self):
        with pytest.raises(ReshapeColumnRangeError, match="Q8.1"):
            question_range(self.COLUMNS, "Q1.1", "Q8.1")

    def test_question_range_reversed(self):
        with pytest.raises(ReshapeColumnRangeError):
            question_range(self.COLUMNS, "Q3.1", "Q1.1")

    def test_three_reviews_five_questions(self):
        """3 reviews x 5 questions -> 15 rows, ID1..ID3 five times each."""
        questions = ["Q1", "Q2", "Q3", "Q4", "Q5"]
        wide = pd.DataFrame({"review_id": ["Smith 2019", "Lee 2020", "Chen 2021"]})
        for q in questions:
            wide[q] = ["Gold", "Red", "Amber"]

        long = to_long(wide, "review_id", questions)

        assert len(long) == 15
        assert list(long.columns) == ["review_id", "question", "score"]
        assert long["review_id"].value_counts().to_dict() == {"ID1": 5, "ID2": 5, "ID3": 5}

    def test_original_ids_discarded(self):
        wide = pd.DataFrame({"review_id": ["Smith 2019", "Lee 2020"], "Q1": ["Gold", "Red"]})
        long = to_long(wide, "review_id", ["Q1"])

        assert "Smith 2019" not in long.values
        assert all(re.fullmatch(r"ID\d+", i) for i in long["review_id"])

    def test_scores_follow_their_review(self):
        wide = pd.DataFrame({"review_id": [7, 9], "Q1": ["Gold", "Red"], "Q2": ["Green", "Amber"]})
        long = to_long(wide, "review_id", ["Q1", "Q2"])
        id2 = long[long["review_id"] == "ID2"].set_index("question")["score"]

        assert id2.to_dict() == {"Q1": "Red", "Q2": "Amber"}

    def test_comment_columns_excluded(self):
        wide = pd.DataFrame({"review_id": [1], "Q1": ["Gold"], "Q1_comment": ["fine"]})
        long = to_long(wide, "review_id", ["Q1", "Q1_comment"])
        assert long["question"].tolist() == ["Q1"]

    def test_non_text_headers(self):
        """Numeric sheet headers match question names given as text."""
        wide = pd.DataFrame({"review_id": [1, 2], 1: ["Gold", "Red"], 2: ["Green", "Amber"]})
        long = to_long(wide, "review_id", [1, 2])

        assert len(long) == 4
        assert long["question"].tolist() == ["1", "1", "2", "2"]

    def test_missing_question_column(self):
        wide = pd.DataFrame({"review_id": [1], "Q1": ["Gold"]})
        with pytest.raises(ReshapeColumnRangeError, match="Q2"):
            to_long(wide, "review_id", ["Q1", "Q2"])

    def test_anonymize_has_no_gaps(self):
        table = pd.DataFrame({"review_id": [55, 3, 12, 8]}, index=[10, 20, 30, 40])
        anon = anonymize_ids(table, "review_id")

        assert anon["review_id"].tolist() == ["ID1", "ID2", "ID3", "ID4"]
        assert table["review_id"].tolist() == [55, 3, 12, 8]
