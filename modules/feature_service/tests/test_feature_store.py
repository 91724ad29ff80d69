"""
Unit tests for FeatureStore and the row/feature models.

Tests feature set construction from two snapshots (order, joins, duplicate
identifiers, per-feature geometry failures) and the TTL cache behaviour
driven by a fake clock.
"""

import json
import pytest

from modules.feature_service.change_detection import ChangeKind
from modules.feature_service.feature_store import FeatureStore, Row, parse_year
from modules.feature_service.geometry import (
    GeometryType, MalformedGeometry, PolygonGeometry, UnsupportedGeometry
)


def square(side, x=0.0, y=0.0):
    return json.dumps({"type": "Polygon", "coordinates": [[
        [x, y], [x + side, y], [x + side, y + side], [x, y + side], [x, y]
    ]]})


def row(id, geometry, category="Park", year="2021", name=None):
    return Row(id=id, name=name or f"Feature {id}", geometry=geometry, category=category, year=year)


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now
    
    def __call__(self):
        return self.now
    
    def advance(self, seconds):
        self.now += seconds


class TestRowModel:
    """Test row construction from raw range values."""
    
    def test_from_values_pads_missing_cells(self):
        r = Row.from_values(["p1", "Park One"])
        
        assert r.id == "p1"
        assert r.geometry == ""
        assert r.category == ""
        assert r.year is None
    
    def test_from_values_ignores_extra_cells(self):
        r = Row.from_values(["p1", "Park", square(1), "Park", "2020", "extra"])
        
        assert r.year == 2020
    
    def test_numeric_cells_kept_as_text(self):
        r = Row.from_values([42, 7, "", "Garden", 2019])
        
        assert r.id == "42"
        assert r.name == "7"
        assert r.year == 2019
    
    @pytest.mark.parametrize("value,expected", [
        ("2021", 2021),
        (" 2021 ", 2021),
        ("2021-05-01", 2021),
        (2021.0, 2021),
        ("", None),
        ("unknown", None),
        (None, None),
        (True, None),
        (float("nan"), None),
    ])
    def test_parse_year(self, value, expected):
        assert parse_year(value) == expected


class TestFeatureSetBuild:
    """Test building the annotated feature set."""
    
    @pytest.fixture
    def store(self):
        return FeatureStore(ttl_seconds=60, clock=FakeClock())
    
    def test_output_follows_current_row_order(self, store):
        current = [row("c", square(1)), row("a", square(1)), row("b", square(1))]
        
        feature_set = store.build(current, [])
        
        assert [f.id for f in feature_set.features] == ["c", "a", "b"]
        assert [f.object_id for f in feature_set.features] == [1, 2, 3]
    
    def test_change_annotation_joined_by_id(self, store):
        current = [row("p1", square(2)), row("p2", square(1))]
        previous = [row("p2", square(1)), row("p1", square(1))]
        
        feature_set = store.build(current, previous)
        
        p1, p2 = feature_set.features
        assert p1.change_text == "Area changed by 300.0%"
        assert p2.change is None
        assert feature_set.changed_features() == [p1]
        assert feature_set.summary.changed_features == 1
    
    def test_feature_missing_from_previous_has_no_annotation(self, store):
        feature_set = store.build([row("new", square(1))], [row("old", square(1))])
        
        assert feature_set.features[0].change is None
    
    def test_previous_duplicates_last_row_wins(self, store):
        previous = [row("p1", square(1)), row("p1", square(2))]
        
        feature_set = store.build([row("p1", square(2))], previous)
        
        assert feature_set.features[0].change is None
        assert feature_set.summary.duplicate_identifiers == 1
        assert feature_set.summary.previous_records == 1
    
    def test_current_duplicates_use_their_own_geometry(self, store):
        current = [row("p1", square(2)), row("p1", square(1))]
        
        feature_set = store.build(current, [row("p1", square(1))])
        
        first, second = feature_set.features
        assert first.change.delta_percent == 300.0
        assert second.change is None
        assert [f.object_id for f in feature_set.features] == [1, 2]
    
    def test_malformed_geometry_retained(self, store):
        """One bad geometry never drops the feature or aborts the build."""
        current = [row("bad", "{not json", category="Garden"), row("good", square(1))]
        
        feature_set = store.build(current, [row("bad", square(1))])
        
        bad, good = feature_set.features
        assert isinstance(bad.geometry, MalformedGeometry)
        assert not bad.geometry_usable
        assert bad.category == "Garden"
        assert bad.change is None
        assert good.geometry_usable
        assert feature_set.summary.malformed_geometries == 1
    
    def test_unsupported_geometry_flagged(self, store):
        current = [row("line", '{"type": "Circle", "radius": 5}')]
        
        feature_set = store.build(current, [])
        
        assert isinstance(feature_set.features[0].geometry, UnsupportedGeometry)
        assert feature_set.summary.unsupported_geometries == 1
    
    def test_unusable_previous_geometry_skips_annotation(self, store):
        feature_set = store.build([row("p1", square(1))], [row("p1", "")])
        
        assert feature_set.features[0].change is None
    
    def test_no_baseline_counted(self, store):
        collapsed = json.dumps({"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [2, 0], [0, 0]]]})
        
        feature_set = store.build([row("p1", square(1))], [row("p1", collapsed)])
        
        assert feature_set.features[0].change.kind == ChangeKind.NO_BASELINE
        assert feature_set.summary.no_baseline_features == 1
    
    def test_geometry_projected_source_kept(self, store):
        feature = store.build([row("p1", square(1, x=10.0, y=10.0))], []).features[0]
        
        assert isinstance(feature.geometry, PolygonGeometry)
        assert feature.geometry.type == GeometryType.POLYGON
        assert feature.source_geometry.exterior[0] == (10.0, 10.0)
        assert feature.geometry.exterior[0][0] > 1000000
    
    def test_without_previous_snapshot(self, store):
        feature_set = store.build([row("p1", square(1))])
        
        assert feature_set.summary.previous_records == 0
        assert feature_set.changed_features() == []


class TestFeatureStoreCache:
    """Test the freshness window of the cached feature set."""
    
    @pytest.fixture
    def clock(self):
        return FakeClock()
    
    @pytest.fixture
    def store(self, clock):
        return FeatureStore(ttl_seconds=60, clock=clock)
    
    def test_empty_store(self, store):
        assert store.get() is None
        assert store.last_computed_at is None
    
    def test_fresh_within_window(self, store, clock):
        feature_set = store.refresh([row("p1", square(1))], [])
        
        clock.advance(59.9)
        
        assert store.get() is feature_set
        assert store.is_fresh()
        assert store.last_computed_at == 1000.0
    
    def test_stale_at_window_end(self, store, clock):
        store.refresh([row("p1", square(1))], [])
        
        clock.advance(60)
        
        assert store.get() is None
    
    def test_build_does_not_touch_cache(self, store):
        store.build([row("p1", square(1))], [])
        
        assert store.get() is None
    
    def test_invalidate(self, store):
        store.refresh([row("p1", square(1))], [])
        
        store.invalidate()
        
        assert store.get() is None
    
    def test_refresh_replaces_entry(self, store, clock):
        store.refresh([row("p1", square(1))], [])
        clock.advance(30)
        
        second = store.refresh([row("p2", square(1))], [])
        clock.advance(45)
        
        assert store.get() is second
    
    def test_ttl_must_be_positive(self):
        with pytest.raises(ValueError):
            FeatureStore(ttl_seconds=0)
