"""Feature Store for the Feature Service

Components:
- Row: Raw snapshot record
- Feature / FeatureSet: Annotated, projected features in row order
- FeatureStore: TTL cache of the computed feature set with an injectable clock
"""

from .feature_models import Row, Feature, FeatureSet, ROW_COLUMNS, parse_year
from .feature_store import FeatureStore, CacheEntry, DEFAULT_TTL_SECONDS

__all__ = [
    'Row', 'Feature', 'FeatureSet', 'ROW_COLUMNS', 'parse_year',
    'FeatureStore', 'CacheEntry', 'DEFAULT_TTL_SECONDS'
]
