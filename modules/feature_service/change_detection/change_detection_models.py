"""
Change Detection Data Models

Pydantic models describing the area change of one feature between the
previous and current snapshot, and the counts gathered while annotating a
whole snapshot.
"""

import math
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

AREA_CHANGED_TEMPLATE = "Area changed by {delta:.1f}%"
NO_BASELINE_TEXT = "New feature, no comparable baseline"

_ONE_DECIMAL = Decimal("0.1")


class ChangeKind(str, Enum):
    """Kind of change annotation.
    
    Values:
        AREA_CHANGED: Geometry differs and the previous area is a usable baseline
        NO_BASELINE: Geometry differs but the previous area is zero (or the
            delta is not finite), so no percentage can be reported
    """
    AREA_CHANGED = "area_changed"
    NO_BASELINE = "no_baseline"


class ChangeAnnotation(BaseModel):
    """Human-readable area change of one feature.
    
    ``delta_percent`` is signed: shrinking features carry a negative value.
    """
    kind: ChangeKind = Field(..., description="Kind of change detected")
    delta_percent: Optional[float] = Field(
        None,
        description="Signed area delta in percent, rounded to one decimal place"
    )
    area_current: float = Field(ge=0, description="Planar area of the current geometry")
    area_previous: float = Field(ge=0, description="Planar area of the previous geometry")
    
    model_config = {"frozen": True}
    
    @field_validator('delta_percent')
    @classmethod
    def round_delta(cls, v: Optional[float]) -> Optional[float]:
        """Store the delta at the precision it is presented with.
        
        Ties round away from zero on the exact binary value of the delta.
        """
        if v is None:
            return None
        if not math.isfinite(v):
            raise ValueError("delta_percent must be finite")
        rounded = Decimal(v).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP)
        # + 0.0 folds negative zero into zero
        return float(rounded) + 0.0
    
    @model_validator(mode='after')
    def check_kind_matches_delta(self) -> 'ChangeAnnotation':
        """An area change needs a delta; a missing baseline must not carry one."""
        if self.kind == ChangeKind.AREA_CHANGED and self.delta_percent is None:
            raise ValueError("AREA_CHANGED annotation requires delta_percent")
        if self.kind == ChangeKind.NO_BASELINE and self.delta_percent is not None:
            raise ValueError("NO_BASELINE annotation cannot carry delta_percent")
        return self
    
    @property
    def text(self) -> str:
        """Annotation text published in the ``change`` field."""
        if self.kind == ChangeKind.NO_BASELINE:
            return NO_BASELINE_TEXT
        return AREA_CHANGED_TEMPLATE.format(delta=self.delta_percent)
    
    def __str__(self) -> str:
        return self.text


class RefreshSummary(BaseModel):
    """Counts gathered while building one annotated feature set."""
    records_processed: int = Field(ge=0, description="Current snapshot rows turned into features")
    previous_records: int = Field(ge=0, description="Distinct identifiers in the previous snapshot")
    changed_features: int = Field(ge=0, description="Features annotated with an area change")
    no_baseline_features: int = Field(ge=0, description="Features annotated as having no comparable baseline")
    malformed_geometries: int = Field(ge=0, description="Features whose geometry could not be decoded")
    unsupported_geometries: int = Field(ge=0, description="Features with a geometry type outside the supported set")
    duplicate_identifiers: int = Field(ge=0, description="Previous snapshot rows superseded by a later duplicate")
    processing_duration: float = Field(ge=0, description="Seconds spent building the feature set")
    computed_at: datetime = Field(default_factory=datetime.now, description="When the feature set was built")
    
    def get_summary(self) -> str:
        """Human-readable summary of the refresh."""
        return (f"{self.records_processed} features ({self.changed_features} changed, "
                f"{self.no_baseline_features} without baseline, "
                f"{self.malformed_geometries} malformed, "
                f"{self.unsupported_geometries} unsupported) in {self.processing_duration:.2f}s")
