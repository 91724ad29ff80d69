"""
Unit tests for ClauseParser.

The parser is lenient: unknown fragments are ignored and only
loosen the filter, and it never raises on bad input.
"""

import pytest

from modules.feature_service.query import (
    CategoryEquals, ChangeContains, ClauseParser, Predicate, YearComparison, YearOperator,
    normalize_clause,
)


@pytest.fixture
def parser():
    return ClauseParser()


class TestUniversalClause:
    
    @pytest.mark.parametrize("clause", ["", None, "   ", "1=1", "1 = 1", " 1=1 "])
    def test_matches_everything(self, parser, clause):
        assert parser.parse(clause).matches_everything
    
    def test_sentinel_short_circuits_appended_fragments(self, parser):
        predicate = parser.parse("1=1 AND type = 'Park'")
        
        assert predicate.universal
        assert predicate.comparisons == []
    
    def test_sentinel_must_lead(self, parser):
        predicate = parser.parse("type = 'park' AND 1=1")
        
        assert not predicate.universal
        assert predicate.comparisons == [CategoryEquals(value="park")]
    
    def test_eleven_is_not_the_sentinel(self, parser):
        assert not parser.parse("1=11 and year > 2000").universal


class TestAtoms:
    
    def test_category_and_year(self, parser):
        predicate = parser.parse("type = 'Park' AND year > 2020")
        
        assert predicate.comparisons == [
            CategoryEquals(value="park"),
            YearComparison(operator=YearOperator.GT, value=2020),
        ]
    
    @pytest.mark.parametrize("clause,operator", [
        ("year >= 2020", YearOperator.GE),
        ("year <= 2020", YearOperator.LE),
        ("year = 2020", YearOperator.EQ),
        ("year < 2020", YearOperator.LT),
        ("year>2020", YearOperator.GT),
    ])
    def test_year_operators(self, parser, clause, operator):
        assert parser.parse(clause).comparisons == [YearComparison(operator=operator, value=2020)]
    
    def test_every_year_occurrence_is_kept(self, parser):
        """Year constraints are conjoined even without an explicit AND."""
        predicate = parser.parse("year > 2020 year < 2025")
        
        assert predicate.comparisons == [
            YearComparison(operator=YearOperator.GT, value=2020),
            YearComparison(operator=YearOperator.LT, value=2025),
        ]
    
    def test_only_first_category_is_used(self, parser):
        predicate = parser.parse("type = 'park' AND type = 'garden'")
        
        assert predicate.comparisons == [CategoryEquals(value="park")]
    
    @pytest.mark.parametrize("clause", [
        "change like '%15%'",
        "change LIKE '15'",
        "change like '%15'",
        "change like '15%'",
        "CHANGE   LIKE   '%15%'",
    ])
    def test_change_percent_signs_optional(self, parser, clause):
        assert parser.parse(clause).comparisons == [ChangeContains(value="15")]
    
    def test_case_and_whitespace_insensitive(self, parser):
        predicate = parser.parse("  TYPE='GARDEN'   and YEAR   <=   1999 ")
        
        assert predicate.comparisons == [
            CategoryEquals(value="garden"),
            YearComparison(operator=YearOperator.LE, value=1999),
        ]


class TestLeniency:
    
    @pytest.mark.parametrize("clause", [
        "name = 'Central Park'",
        "type = Park",
        "year > twenty",
        "DROP TABLE parcels",
        "((((",
    ])
    def test_unrecognised_clauses_match_everything(self, parser, clause):
        predicate = parser.parse(clause)
        
        assert not predicate.universal
        assert predicate.matches_everything
    
    def test_disjunction_degrades_to_conjunction(self, parser):
        """OR is not expressible; both sides are scanned as independent atoms."""
        predicate = parser.parse("type = 'park' OR year < 2000")
        
        assert len(predicate.comparisons) == 2
    
    def test_unknown_fragments_loosen_filter(self, parser):
        predicate = parser.parse("type = 'park' AND name = 'x' AND area > 5")
        
        assert predicate.comparisons == [CategoryEquals(value="park")]


class TestDescribe:
    
    def test_describe_round_trips(self, parser):
        predicate = parser.parse("type = 'park' AND year >= 2020 AND change like '%15%'")
        
        assert predicate.describe() == "type = 'park' AND year >= 2020 AND change like '%15%'"
        assert parser.parse(predicate.describe()) == predicate
    
    def test_describe_universal(self):
        assert Predicate(universal=True).describe() == "1=1"
    
    def test_normalize_clause(self):
        assert normalize_clause("  Type = 'Park' ") == "type = 'park'"
        assert normalize_clause(None) == ""
