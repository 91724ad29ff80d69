"""Snapshot Row and Feature Models

A Row is one raw record of a snapshot range as the tabular store returns it.
A Feature is the derived, annotated and projected record served to clients;
features are rebuilt wholesale on every refresh and never mutated.
"""

import math
import re
from typing import Any, List, Optional, Sequence

from pydantic import BaseModel, Field, field_validator

from ..change_detection import ChangeAnnotation, RefreshSummary
from ..geometry import Geometry

ROW_COLUMNS = ("id", "name", "geometry", "category", "year")

_LEADING_INTEGER = re.compile(r'^\s*([+-]?\d+)')


def parse_year(value: Any) -> Optional[int]:
    """Leniently read a year cell: the leading integer of the text, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INTEGER.match(str(value))
    return int(match.group(1)) if match else None


class Row(BaseModel):
    """Raw snapshot record with the fixed column order (id, name, geometry, category, year)."""
    
    id: str = Field(..., description="Stable identifier joining the two snapshots")
    name: str = Field("", description="Display name")
    geometry: str = Field("", description="Serialized geometry cell")
    category: str = Field("", description="Category, published as the 'type' field")
    year: Optional[int] = Field(None, description="Year, None when the cell has no leading integer")
    
    model_config = {"frozen": True}
    
    @field_validator('id', 'name', 'geometry', 'category', mode='before')
    @classmethod
    def coerce_cell_text(cls, v: Any) -> str:
        """Cells may arrive as numbers; keep them as text."""
        return "" if v is None else str(v)
    
    @field_validator('year', mode='before')
    @classmethod
    def coerce_year(cls, v: Any) -> Optional[int]:
        return parse_year(v)
    
    @classmethod
    def from_values(cls, values: Sequence[Any]) -> "Row":
        """Build a row from one range row, padding cells the store left off the end."""
        cells = list(values[:len(ROW_COLUMNS)])
        cells += [""] * (len(ROW_COLUMNS) - len(cells))
        return cls(**dict(zip(ROW_COLUMNS, cells)))


class Feature(BaseModel):
    """Annotated feature as served by the query engine."""
    
    object_id: int = Field(..., ge=1, description="1-based position of the row in the current snapshot")
    id: str = Field(..., description="Feature identifier")
    name: str = Field("", description="Display name")
    category: str = Field("", description="Feature category")
    year: Optional[int] = Field(None, description="Feature year")
    geometry: Geometry = Field(..., discriminator="type", description="Web Mercator geometry")
    source_geometry: Geometry = Field(..., discriminator="type", description="Geometry as decoded, in longitude/latitude")
    change: Optional[ChangeAnnotation] = Field(None, description="Area change against the previous snapshot")
    
    model_config = {"frozen": True}
    
    @property
    def change_text(self) -> Optional[str]:
        """Published change annotation text, or None when absent."""
        return self.change.text if self.change is not None else None
    
    @property
    def geometry_usable(self) -> bool:
        """False for malformed or unsupported geometry."""
        return self.geometry.is_spatial


class FeatureSet(BaseModel):
    """One fully computed snapshot of features, in current snapshot row order."""
    
    features: List[Feature] = Field(default_factory=list)
    summary: RefreshSummary
    
    model_config = {"frozen": True}
    
    def changed_features(self) -> List[Feature]:
        """Features that carry a change annotation, in row order."""
        return [feature for feature in self.features if feature.change is not None]
