"""Snapshot row sources for the feature service."""

from .row_source import (
    RowSource, SheetsRowSource, rows_from_values, CURRENT_RANGE, PREVIOUS_RANGE
)

__all__ = ['RowSource', 'SheetsRowSource', 'rows_from_values', 'CURRENT_RANGE', 'PREVIOUS_RANGE']
