#!/usr/bin/env python3
"""
Configuration settings using Pydantic for environment variable loading
"""

import os
from typing import Optional, Dict, Any

import yaml
from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

# Load environment variables from .env file if it exists
load_dotenv()


class KubernetesSettings(BaseSettings):
    """Kubernetes client settings"""
    in_cluster: bool = os.getenv("KUBERNETES_IN_CLUSTER", "true").lower() == "true"
    kubeconfig_path: Optional[str] = os.getenv("KUBECONFIG")
    request_timeout: int = int(os.getenv("KUBERNETES_REQUEST_TIMEOUT", "30"))
    watch_timeout: int = int(os.getenv("KUBERNETES_WATCH_TIMEOUT", "300"))

    class Config:
        env_prefix = "KUBERNETES_"
        extra = "ignore"


class ExporterSettings(BaseSettings):
    """Aggregation and CPMS watch settings"""
    cluster_id: Optional[str] = os.getenv("EXPORTER_CLUSTER_ID")
    aggregation_interval: float = Field(float(os.getenv("EXPORTER_AGGREGATION_INTERVAL", "60")), gt=0)
    cpms_namespace: str = os.getenv("EXPORTER_CPMS_NAMESPACE", "openshift-machine-api")
    metrics_port: int = int(os.getenv("EXPORTER_METRICS_PORT", "8383"))

    class Config:
        env_prefix = "EXPORTER_"
        extra = "ignore"


class APISettings(BaseSettings):
    """Health probe API settings"""
    enabled: bool = os.getenv("EXPORTER_API_ENABLED", "true").lower() == "true"
    host: str = os.getenv("EXPORTER_API_HOST", "0.0.0.0")
    port: int = int(os.getenv("EXPORTER_API_PORT", "8081"))

    class Config:
        env_prefix = "EXPORTER_API_"
        extra = "ignore"


class LoggingSettings(BaseSettings):
    """Logging configuration settings"""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    file: Optional[str] = os.getenv("LOG_FILE", None)
    colors: bool = os.getenv("LOG_COLORS", "true").lower() == "true"

    class Config:
        env_prefix = "LOG_"
        extra = "ignore"


class Settings(BaseSettings):
    """Main settings class that includes all sub-settings"""
    environment: str = os.getenv("ENVIRONMENT", "production")
    debug: bool = os.getenv("DEBUG", "false").lower() == "true"

    kubernetes: KubernetesSettings = Field(default_factory=KubernetesSettings)
    exporter: ExporterSettings = Field(default_factory=ExporterSettings)
    api: APISettings = Field(default_factory=APISettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    def get_config_dict(self) -> Dict[str, Any]:
        """Flatten settings into the dictionary shape reported by /status"""
        return {
            "environment": self.environment,
            "exporter": {
                "cluster_id": self.exporter.cluster_id,
                "aggregation_interval": self.exporter.aggregation_interval,
                "cpms_namespace": self.exporter.cpms_namespace,
                "metrics_port": self.exporter.metrics_port
            },
            "kubernetes": {
                "in_cluster": self.kubernetes.in_cluster,
                "kubeconfig_path": self.kubernetes.kubeconfig_path
            },
            "api": {
                "enabled": self.api.enabled,
                "host": self.api.host,
                "port": self.api.port
            },
            "logging": {
                "level": self.logging.level,
                "file": self.logging.file
            }
        }

    @classmethod
    def load_from_yaml_with_env_override(cls, yaml_path: str) -> "Settings":
        """Load settings from a YAML file, expanding ${VAR} references from the environment"""
        yaml_config = {}
        if os.path.exists(yaml_path):
            with open(yaml_path, 'r') as f:
                yaml_content = f.read()
                for key, value in os.environ.items():
                    yaml_content = yaml_content.replace(f"${{{key}}}", value)
                yaml_config = yaml.safe_load(yaml_content) or {}

        # Top-level keys missing from the file fall back to the environment
        overrides = {key: yaml_config[key] for key in ("environment", "debug") if key in yaml_config}

        return Settings(
            **overrides,
            kubernetes=KubernetesSettings(**yaml_config.get("kubernetes", {})),
            exporter=ExporterSettings(**yaml_config.get("exporter", {})),
            api=APISettings(**yaml_config.get("api", {})),
            logging=LoggingSettings(**yaml_config.get("logging", {}))
        )


# Global settings instance
settings = Settings()
