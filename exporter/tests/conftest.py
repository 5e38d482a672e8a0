"""
Shared fixtures and fakes for exporter tests
"""

import json
from typing import Any, Dict, Optional

import pytest
from kubernetes.client.rest import ApiException

from core.aggregator import MetricsAggregator
from models.cpms import OPENSHIFT_MACHINE_V1BETA1_MACHINE_TYPE

CLUSTER_ID = "cluster-id"
CPMS_NAME = "cluster"
CPMS_NAMESPACE = "openshift-machine-api"

PROVIDER_BLOBS = {
    "AWS": {"instanceType": "m5.2xlarge"},
    "GCP": {"machineType": "custom-4-16384"},
    "Azure": {"vmSize": "test"},
}


def make_template(provider: str, blob: Any = None, machine_type: str = OPENSHIFT_MACHINE_V1BETA1_MACHINE_TYPE) -> Dict[str, Any]:
    """Build spec.template for a CPMS on the given platform"""
    if blob is None:
        blob = PROVIDER_BLOBS.get(provider, {})
    return {
        "machineType": machine_type,
        OPENSHIFT_MACHINE_V1BETA1_MACHINE_TYPE: {
            "failureDomains": {"platform": provider},
            "spec": {"providerSpec": {"value": blob}},
        },
    }


def make_cpms(
    state: str = "Active",
    provider: str = "AWS",
    name: str = CPMS_NAME,
    namespace: str = CPMS_NAMESPACE,
    template: Optional[Dict[str, Any]] = None,
    resource_version: str = "1"
) -> Dict[str, Any]:
    """Build a ControlPlaneMachineSet as returned by CustomObjectsApi"""
    return {
        "apiVersion": "machine.openshift.io/v1",
        "kind": "ControlPlaneMachineSet",
        "metadata": {"name": name, "namespace": namespace, "resourceVersion": resource_version},
        "spec": {
            "state": state,
            "replicas": 3,
            "template": template if template is not None else make_template(provider),
        },
    }


def raw_blob(provider: str) -> bytes:
    return json.dumps(PROVIDER_BLOBS[provider]).encode()


class FakeCustomObjectsApi:
    """In-memory stand-in for kubernetes.client.CustomObjectsApi"""

    def __init__(self, *objects: Dict[str, Any]):
        self.objects: Dict[tuple, Dict[str, Any]] = {}
        self.cluster_objects: Dict[tuple, Dict[str, Any]] = {}
        self.get_calls = 0
        for obj in objects:
            self.add(obj)

    def add(self, obj: Dict[str, Any]):
        meta = obj["metadata"]
        self.objects[(meta["namespace"], meta["name"])] = obj

    def get_namespaced_custom_object(self, group, version, namespace, plural, name, **kwargs):
        self.get_calls += 1
        try:
            return self.objects[(namespace, name)]
        except KeyError:
            raise ApiException(status=404, reason="Not Found")

    def list_namespaced_custom_object(self, group, version, namespace, plural, **kwargs):
        items = [obj for (ns, _), obj in self.objects.items() if ns == namespace]
        return {"items": items, "metadata": {"resourceVersion": "100"}}

    def get_cluster_custom_object(self, group, version, plural, name, **kwargs):
        try:
            return self.cluster_objects[(plural, name)]
        except KeyError:
            raise ApiException(status=404, reason="Not Found")


@pytest.fixture
def aggregator():
    """Aggregator with a private registry and a short flush interval"""
    return MetricsAggregator(0.1, CLUSTER_ID)


@pytest.fixture
def running_aggregator(aggregator):
    done = aggregator.run()
    yield aggregator
    aggregator.stop(done)


def cpms_sample(aggregator: MetricsAggregator, instance_type: str, cluster_id: str = CLUSTER_ID):
    """Published cpms_enabled value for a label set, or None"""
    return aggregator.registry.get_sample_value(
        "cpms_enabled",
        {"_id": cluster_id, "label_node_kubernetes_io_instance_type": instance_type}
    )


def cpms_samples(aggregator: MetricsAggregator):
    """All published cpms_enabled samples"""
    return [
        sample
        for metric in aggregator.registry.collect()
        if metric.name == "cpms_enabled"
        for sample in metric.samples
    ]
