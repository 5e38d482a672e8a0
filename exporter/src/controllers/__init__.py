"""
Controllers that translate cluster resources into exporter state
"""

from .cpms import CPMSReconciler
from .watcher import CPMSController

__all__ = [
    "CPMSReconciler",
    "CPMSController"
]
