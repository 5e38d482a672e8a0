"""
Configuration module for exporter settings
"""

from .settings import Settings, settings, KubernetesSettings, ExporterSettings, APISettings, LoggingSettings

__all__ = [
    "Settings",
    "settings",
    "KubernetesSettings",
    "ExporterSettings",
    "APISettings",
    "LoggingSettings"
]
