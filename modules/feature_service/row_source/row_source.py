"""Snapshot Row Sources

A row source returns the ordered rows of a logical snapshot range
("current" or "previous"). Implementations may block on I/O; everything
downstream of them is pure computation.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from geoapi.connection import SheetsConnector
from geoapi.exceptions import SourceUnavailable
from ..feature_store import Row

logger = logging.getLogger(__name__)

CURRENT_RANGE = "current"
PREVIOUS_RANGE = "previous"


class RowSource(ABC):
    """Tabular store reachable by range query."""
    
    @abstractmethod
    def fetch_range(self, range_identifier: str) -> List[Row]:
        """Fetch the rows of a logical range in store order.
        
        Raises:
            SourceUnavailable: If the store cannot be read
        """
        pass
    
    def has_range(self, range_identifier: str) -> bool:
        """Whether the logical range is configured for this source."""
        return True


def rows_from_values(values: Sequence[Sequence[Any]], range_identifier: str) -> List[Row]:
    """Convert raw range values to rows, skipping rows without an identifier."""
    rows = []
    skipped = 0
    for raw in values:
        if not raw or raw[0] is None or not str(raw[0]).strip():
            skipped += 1
            continue
        rows.append(Row.from_values(raw))
    if skipped:
        logger.warning(f"Skipped {skipped} rows without identifier in {range_identifier} range")
    return rows


class SheetsRowSource(RowSource):
    """Row source backed by spreadsheet value ranges."""
    
    def __init__(self, connector: SheetsConnector, ranges: Dict[str, Optional[str]]):
        """
        Args:
            connector: Connector for the spreadsheet holding both snapshots
            ranges: Logical range name -> A1 range (e.g. ``{"current": "natural_data!A2:E"}``)
        """
        self.connector = connector
        self.ranges = {name: a1 for name, a1 in ranges.items() if a1}
        logger.debug(f"SheetsRowSource initialized with ranges {self.ranges}")
    
    @classmethod
    def from_connector(cls, connector: SheetsConnector) -> "SheetsRowSource":
        """Build the source from the connector's configured snapshot ranges."""
        settings = connector.settings
        return cls(connector, {
            CURRENT_RANGE: settings.current_range,
            PREVIOUS_RANGE: settings.previous_range,
        })
    
    def has_range(self, range_identifier: str) -> bool:
        return range_identifier in self.ranges
    
    def fetch_range(self, range_identifier: str) -> List[Row]:
        if range_identifier not in self.ranges:
            raise SourceUnavailable(f"Range '{range_identifier}' is not configured", range_identifier)
        values = self.connector.get_values(self.ranges[range_identifier])
        rows = rows_from_values(values, range_identifier)
        logger.info(f"Fetched {len(rows)} rows for {range_identifier} snapshot")
        return rows
