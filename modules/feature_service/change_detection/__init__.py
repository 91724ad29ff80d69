"""Change Detection for the Feature Service

Pairs the current and previous geometry of each feature and annotates the
signed percentage area change.

Components:
- ChangeKind: Kind of annotation (area changed / no comparable baseline)
- ChangeAnnotation: Annotation value with its published text
- RefreshSummary: Counts gathered while annotating a snapshot
- ChangeAnnotator: Polygon difference and area delta engine

Usage:
    from modules.feature_service.change_detection import ChangeAnnotator
    
    annotator = ChangeAnnotator()
    annotation = annotator.compute_change(current_geometry, previous_geometry)
    if annotation:
        print(annotation.text)  # "Area changed by 15.2%"
"""

from .change_detection_models import (
    ChangeKind, ChangeAnnotation, RefreshSummary, AREA_CHANGED_TEMPLATE, NO_BASELINE_TEXT
)
from .change_annotator import ChangeAnnotator

__all__ = [
    'ChangeKind', 'ChangeAnnotation', 'RefreshSummary', 'AREA_CHANGED_TEMPLATE',
    'NO_BASELINE_TEXT', 'ChangeAnnotator'
]
