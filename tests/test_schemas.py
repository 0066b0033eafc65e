"""
Tests for the pipeline descriptors and the element catalogue.
"""

import pytest
from pydantic import ValidationError

from element_definitions import DATA_ELEMENTS, NETWORKS
from review_utils import figure_name
from schemas import DataElement, NetworkRequest


def element(**kwargs):
    fields = dict(name="taxon", title="Taxa", table="taxon", vocabulary="taxon_vocab",
                  key="taxon_code", axis_label="Taxon")
    fields.update(kwargs)
    return DataElement(**fields)


class TestDataElement:

    def test_defaults(self):
        e = element()
        assert e.by is None
        assert e.denominator == "total"

    @pytest.mark.parametrize("bad", [
        {"name": "Taxon Studied"},
        {"table": ""},
        {"denominator": "row"},
    ])
    def test_invalid_fields(self, bad):
        with pytest.raises(ValidationError):
            element(**bad)


class TestNetworkRequest:

    def test_defaults(self):
        r = NetworkRequest(name="kw", title="Keywords", relation="co-occurrence",
                           field="keywords")
        assert r.n == 30
        assert r.layout == "fruchterman"
        assert r.remove_isolates is True

    @pytest.mark.parametrize("bad", [
        {"layout": "spiral"},
        {"n": 0},
        {"field": "journals"},
        {"size": -1},
    ])
    def test_invalid_fields(self, bad):
        fields = dict(name="kw", title="Keywords", relation="co-occurrence", field="keywords")
        fields.update(bad)
        with pytest.raises(ValidationError):
            NetworkRequest(**fields)


class TestCatalogue:
    """Test the element and network definitions themselves."""

    def test_element_names_unique(self):
        names = [e.name for e in DATA_ELEMENTS]
        assert len(names) == len(set(names))

    def test_network_names_unique(self):
        names = [n.name for n in NETWORKS]
        assert len(names) == len(set(names))

    def test_every_element_has_its_own_vocabulary(self):
        vocabularies = [e.vocabulary for e in DATA_ELEMENTS]
        assert len(vocabularies) == len(set(vocabularies))

    def test_figure_name(self):
        assert figure_name(3, "taxon") == "03_taxon.png"
        assert figure_name(12, "taxon_legend", "pdf") == "12_taxon_legend.pdf"
