#!/usr/bin/env python3
"""
Metrics aggregator for ControlPlaneMachineSet state

Reconcilers push state into a lock-guarded store at any time. A background
thread snapshots the store every aggregation interval and republishes it into
the cpms_enabled gauge, so the scraped metric never depends on when the
triggering event arrived.
"""

import logging
import threading
from types import MappingProxyType
from typing import Dict, Mapping, NamedTuple, Optional
from prometheus_client import CollectorRegistry, Gauge

logger = logging.getLogger(__name__)

CPMS_METRIC_NAME = "cpms_enabled"
CPMS_METRIC_HELP = "Indicates if the controlplanemachineset is enabled"
CLUSTER_ID_LABEL = "_id"
INSTANCE_TYPE_LABEL = "label_node_kubernetes_io_instance_type"


class AggregationKey(NamedTuple):
    """One published label combination"""
    cluster_id: str
    instance_type: str


MetricSnapshot = Mapping[AggregationKey, bool]


class AggregationStore:
    """Thread-safe last-write-wins map of AggregationKey to enabled state"""

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[AggregationKey, bool] = {}

    def set(self, key: AggregationKey, enabled: bool):
        with self._lock:
            self._entries[key] = enabled

    def snapshot(self) -> MetricSnapshot:
        """Return a read-only copy of all entries taken under the lock"""
        with self._lock:
            entries = dict(self._entries)
        return MappingProxyType(entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class MetricsAggregator:
    """Periodically flushes aggregated CPMS state into a Prometheus gauge"""

    def __init__(
        self,
        aggregation_interval: float,
        cluster_id: str,
        registry: Optional[CollectorRegistry] = None
    ):
        """
        Initialize the aggregator without starting the flush loop

        Args:
            aggregation_interval: Seconds between flushes
            cluster_id: Cluster identifier published as the _id label
            registry: Registry owning the gauge; a private one is created if omitted
        """
        if aggregation_interval <= 0:
            raise ValueError(f"aggregation_interval must be positive, got {aggregation_interval}")

        self.aggregation_interval = aggregation_interval
        self.cluster_id = cluster_id
        self.registry = registry if registry is not None else CollectorRegistry()
        self.store = AggregationStore()

        self._cpms_enabled = Gauge(
            CPMS_METRIC_NAME,
            CPMS_METRIC_HELP,
            [CLUSTER_ID_LABEL, INSTANCE_TYPE_LABEL],
            registry=self.registry
        )
        self._thread: Optional[threading.Thread] = None

    def run(self) -> threading.Event:
        """
        Start the background flush loop

        Returns:
            Event that stops the loop at the next tick once set
        """
        if self._thread is not None and self._thread.is_alive():
            logger.warning("MetricsAggregator.run() called while a flush loop is already running")

        done = threading.Event()
        self._thread = threading.Thread(
            target=self._loop,
            args=(done,),
            name="metrics-aggregator",
            daemon=True
        )
        self._thread.start()
        logger.info(
            f"Metrics aggregator started (interval={self.aggregation_interval}s, "
            f"cluster_id={self.cluster_id})"
        )
        return done

    def stop(self, done: threading.Event):
        done.set()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _loop(self, done: threading.Event):
        while not done.wait(self.aggregation_interval):
            try:
                self.aggregate()
            except Exception as e:
                logger.error(f"Error aggregating metrics: {e}", exc_info=True)
        logger.info("Metrics aggregator stopped")

    def aggregate(self):
        """Publish the current store snapshot into the gauge"""
        snapshot = self.store.snapshot()
        for key, enabled in snapshot.items():
            self._cpms_enabled.labels(
                **{CLUSTER_ID_LABEL: key.cluster_id, INSTANCE_TYPE_LABEL: key.instance_type}
            ).set(1.0 if enabled else 0.0)
        logger.debug(f"Flushed {len(snapshot)} cpms series")

    def set_cpms_enabled(self, key: AggregationKey, enabled: bool):
        self.store.set(key, enabled)

    def get_cpms_metric(self) -> Gauge:
        return self._cpms_enabled
