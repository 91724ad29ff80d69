"""Unit tests for the spreadsheet row source."""

from unittest.mock import Mock

import pytest

from geoapi.exceptions import SourceUnavailable
from modules.feature_service.row_source import (
    CURRENT_RANGE, PREVIOUS_RANGE, SheetsRowSource, rows_from_values
)


@pytest.fixture
def connector():
    connector = Mock()
    connector.settings.current_range = "natural_data!A2:E"
    connector.settings.previous_range = "previous!A2:E"
    return connector


class TestRowsFromValues:
    
    def test_rows_in_sheet_order(self):
        rows = rows_from_values([
            ["b", "Second", "", "Park", "2020"],
            ["a", "First", "", "Garden", "2019"],
        ], CURRENT_RANGE)
        
        assert [r.id for r in rows] == ["b", "a"]
        assert rows[1].year == 2019
    
    def test_rows_without_identifier_skipped(self):
        rows = rows_from_values([[], [""], ["  ", "No id"], [None, "x"], ["p1"]], CURRENT_RANGE)
        
        assert [r.id for r in rows] == ["p1"]
    
    def test_short_rows_padded(self):
        row = rows_from_values([["p1", "Only name"]], CURRENT_RANGE)[0]
        
        assert row.geometry == ""
        assert row.year is None


class TestSheetsRowSource:
    
    def test_from_connector_uses_configured_ranges(self, connector):
        source = SheetsRowSource.from_connector(connector)
        
        assert source.ranges == {CURRENT_RANGE: "natural_data!A2:E", PREVIOUS_RANGE: "previous!A2:E"}
    
    def test_fetch_range(self, connector):
        connector.get_values.return_value = [["p1", "Park", "", "Park", "2021"]]
        source = SheetsRowSource.from_connector(connector)
        
        rows = source.fetch_range(PREVIOUS_RANGE)
        
        connector.get_values.assert_called_once_with("previous!A2:E")
        assert rows[0].id == "p1"
    
    def test_previous_range_optional(self, connector):
        connector.settings.previous_range = None
        source = SheetsRowSource.from_connector(connector)
        
        assert source.has_range(CURRENT_RANGE)
        assert not source.has_range(PREVIOUS_RANGE)
        with pytest.raises(SourceUnavailable) as exc_info:
            source.fetch_range(PREVIOUS_RANGE)
        
        assert exc_info.value.range_name == PREVIOUS_RANGE
        connector.get_values.assert_not_called()
    
    def test_connector_errors_propagate(self, connector):
        connector.get_values.side_effect = SourceUnavailable("offline", "natural_data!A2:E")
        source = SheetsRowSource.from_connector(connector)
        
        with pytest.raises(SourceUnavailable):
            source.fetch_range(CURRENT_RANGE)
