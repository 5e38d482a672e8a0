"""
Core exporter modules
"""

from .aggregator import AggregationKey, AggregationStore, MetricsAggregator
from .providers import extract_instance_type

__all__ = [
    "AggregationKey",
    "AggregationStore",
    "MetricsAggregator",
    "extract_instance_type"
]
