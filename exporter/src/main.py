#!/usr/bin/env python3
"""
CPMS Metrics Exporter - Main Entry Point
Publishes ControlPlaneMachineSet state as the cpms_enabled Prometheus gauge
"""

import logging
import os
import sys
import signal
import threading
from typing import Optional
from kubernetes import client
from kubernetes import config as k8s_config
from kubernetes.client.rest import ApiException
from prometheus_client import start_http_server

from core.logging_config import setup_logging
from core.aggregator import MetricsAggregator
from core.cluster import get_cluster_id
from core.errors import ExporterError
from controllers import CPMSReconciler, CPMSController
from api.server import APIServer
from config import Settings


class ExporterService:
    """Main exporter service that wires the aggregator, controller and API"""

    def __init__(self, config_path: Optional[str] = None, settings: Optional[Settings] = None):
        """Initialize the exporter service"""
        if settings is not None:
            self.settings = settings
        elif config_path and os.path.exists(config_path):
            self.settings = Settings.load_from_yaml_with_env_override(config_path)
        else:
            self.settings = Settings()

        setup_logging(
            level=self.settings.logging.level,
            log_file=self.settings.logging.file,
            enable_colors=self.settings.logging.colors,
            log_format=self.settings.logging.format
        )
        self.logger = logging.getLogger(__name__)
        self.stop_event = threading.Event()
        self.aggregator_done: Optional[threading.Event] = None
        self.failed = False

        self.custom_api = self._init_kubernetes_client()

        cluster_id = self.settings.exporter.cluster_id or get_cluster_id(
            self.custom_api, request_timeout=self.settings.kubernetes.request_timeout
        )

        self.aggregator = MetricsAggregator(
            self.settings.exporter.aggregation_interval,
            cluster_id
        )
        self.reconciler = CPMSReconciler(
            self.custom_api,
            self.aggregator,
            cluster_id,
            request_timeout=self.settings.kubernetes.request_timeout
        )
        self.controller = CPMSController(
            self.reconciler,
            self.custom_api,
            self.settings.exporter.cpms_namespace,
            watch_timeout=self.settings.kubernetes.watch_timeout,
            request_timeout=self.settings.kubernetes.request_timeout
        )
        self.api_server = APIServer(self.aggregator, self.settings.get_config_dict())

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        self.logger.info(f"CPMS Metrics Exporter initialized for cluster {cluster_id}")
        if self.settings.debug:
            self.logger.info(f"Debug mode enabled. Settings: {self.settings.model_dump()}")

    def _init_kubernetes_client(self) -> client.CustomObjectsApi:
        """Load in-cluster or kubeconfig credentials"""
        kube_settings = self.settings.kubernetes
        if kube_settings.in_cluster:
            self.logger.info("Loading in-cluster config")
            k8s_config.load_incluster_config()
        else:
            self.logger.info(f"Loading kubeconfig from: {kube_settings.kubeconfig_path or 'default location'}")
            k8s_config.load_kube_config(config_file=kube_settings.kubeconfig_path)
        return client.CustomObjectsApi()

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals"""
        self.logger.info(f"Received signal {signum}, shutting down...")
        self.stop()

    def _run_controller(self):
        try:
            self.controller.run(self.stop_event)
        except Exception as e:
            self.logger.error(f"Controller terminated: {e}", exc_info=True)
            self.failed = True
            self.stop()

    def run(self):
        """Start all components and block until stopped"""
        self.logger.info("Starting CPMS Metrics Exporter...")

        metrics_port = self.settings.exporter.metrics_port
        start_http_server(metrics_port, registry=self.aggregator.registry)
        self.logger.info(f"Prometheus metrics server started on :{metrics_port}")

        self.aggregator_done = self.aggregator.run()

        if self.settings.api.enabled:
            api_thread = threading.Thread(
                target=self.api_server.run,
                kwargs={'host': self.settings.api.host, 'port': self.settings.api.port},
                name="api-server",
                daemon=True
            )
            api_thread.start()
            self.logger.info(f"API server started on :{self.settings.api.port}")

        controller_thread = threading.Thread(
            target=self._run_controller,
            name="cpms-controller",
            daemon=True
        )
        controller_thread.start()

        self.stop_event.wait()
        self.logger.info("CPMS Metrics Exporter stopped")

    def stop(self):
        self.stop_event.set()
        self.controller.stop()
        if self.aggregator_done is not None:
            self.aggregator.stop(self.aggregator_done)


def main():
    """Entry point"""
    import argparse

    parser = argparse.ArgumentParser(description='ControlPlaneMachineSet metrics exporter')
    parser.add_argument(
        '--config',
        default=os.getenv('CONFIG_PATH', '/etc/cpms-exporter/config.yaml'),
        help='Path to configuration file'
    )
    parser.add_argument('--cluster-id', help='Cluster identifier (skips ClusterVersion lookup)')
    parser.add_argument('--aggregation-interval', type=float, help='Seconds between metric flushes')
    parser.add_argument('--metrics-port', type=int, help='Port serving /metrics')
    parser.add_argument('--namespace', help='Namespace watched for controlplanemachinesets')

    args = parser.parse_args()

    try:
        if os.path.exists(args.config):
            settings = Settings.load_from_yaml_with_env_override(args.config)
        else:
            settings = Settings()

        if args.cluster_id:
            settings.exporter.cluster_id = args.cluster_id
        if args.aggregation_interval is not None:
            settings.exporter.aggregation_interval = args.aggregation_interval
        if args.metrics_port is not None:
            settings.exporter.metrics_port = args.metrics_port
        if args.namespace:
            settings.exporter.cpms_namespace = args.namespace

        service = ExporterService(settings=settings)
    except (ExporterError, ApiException, k8s_config.ConfigException, ValueError) as e:
        print(f"Failed to start exporter: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        service.run()
    except KeyboardInterrupt:
        service.logger.info("Received keyboard interrupt")
    except Exception as e:
        service.logger.error(f"Fatal error: {e}")
        sys.exit(1)
    finally:
        service.stop()

    if service.failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
