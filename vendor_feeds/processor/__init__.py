"""Record processing: path resolution, transforms, mapping and reconciliation."""

from .aggregator import ImportAggregator
from .assets import AssetResolver
from .csv_batch import CSVBatchProcessor
from .mapper import identity_value, map_record
from .path_resolver import ABSENT, resolve
from .reconciler import Reconciler
from .transforms import apply_transform

__all__ = [
    "ABSENT",
    "AssetResolver",
    "CSVBatchProcessor",
    "ImportAggregator",
    "Reconciler",
    "apply_transform",
    "identity_value",
    "map_record",
    "resolve",
]
