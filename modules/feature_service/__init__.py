"""Feature Service Module

Simulates an ArcGIS FeatureServer over two spreadsheet snapshots: features
are projected to Web Mercator, annotated with their area change against the
previous snapshot, cached for a fixed window and filtered with a small
where-clause language. Free-text requests are interpreted into clauses by a
chat model.
"""

from .processor import FeatureServiceModule

__all__ = ['FeatureServiceModule']
