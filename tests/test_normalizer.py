"""
Tests for reference normalization.
"""

import pytest

from priorart.engine.normalizer import normalize
from priorart.schemas.enums import ResultType

PATENT = ResultType.PATENT
NPL = ResultType.NON_PATENT


class TestPatentKeys:
    """Patent numbers compare with punctuation and whitespace removed."""

    def test_punctuation_and_case_collapse(self):
        assert normalize("US-1,234,567", PATENT) == "us1234567"
        assert normalize("us1234567", PATENT) == "us1234567"

    def test_inner_whitespace_and_slashes_removed(self):
        assert normalize("  EP 1234 567 / A1 ", PATENT) == "ep1234567a1"

    def test_scheme_is_not_stripped_for_patents(self):
        # only literature references are treated as URLs
        assert normalize("https://US123", PATENT) == "https:us123"

    def test_empty_value(self):
        assert normalize("", PATENT) == ""
        assert normalize(None, PATENT) == ""


class TestLiteratureKeys:
    """Literature references compare as scheme-less URLs."""

    def test_scheme_www_and_trailing_slash_removed(self):
        assert normalize("https://www.Example.com/paper/", NPL) == "example.com/paper"
        assert normalize("http://example.com/paper", NPL) == "example.com/paper"

    def test_dashes_are_kept(self):
        assert normalize("doi.org/10.1000/abc-def", NPL) == "doi.org/10.1000/abc-def"

    def test_nested_prefixes_collapse(self):
        assert normalize("http://www.x.org//", NPL) == "x.org"

    def test_surrounding_whitespace(self):
        assert normalize("   HTTPS://Arxiv.org/abs/1234  ", NPL) == "arxiv.org/abs/1234"


class TestIdempotence:

    @pytest.mark.parametrize(
        "value,result_type",
        [
            ("US-1,234,567", PATENT),
            (" EP / 99-88 ", PATENT),
            ("https://www.example.com/a/", NPL),
            ("http://www.x.org//", NPL),
            ("https://https://www.www.example.com//", NPL),
            ("plain text citation", NPL),
        ],
    )
    def test_normalize_twice_is_normalize_once(self, value, result_type):
        once = normalize(value, result_type)
        assert normalize(once, result_type) == once
