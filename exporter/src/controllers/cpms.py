#!/usr/bin/env python3
"""
ControlPlaneMachineSet reconciler

Turns one ControlPlaneMachineSet into a (cluster id, instance type) -> enabled
update for the metrics aggregator.
"""

import logging
from typing import Any, Dict, Optional
from kubernetes.client import CustomObjectsApi
from kubernetes.client.rest import ApiException
from pydantic import ValidationError

from core.aggregator import AggregationKey, MetricsAggregator
from core.errors import InvalidDeclaredState, InvalidResourceError
from core.providers import extract_instance_type
from models.cpms import ControlPlaneMachineSet, ReconcileResult

logger = logging.getLogger(__name__)

CPMS_GROUP = "machine.openshift.io"
CPMS_VERSION = "v1"
CPMS_PLURAL = "controlplanemachinesets"

STATE_ACTIVE = "Active"
STATE_INACTIVE = "Inactive"


def parse_state(state: Optional[str]) -> bool:
    """Map spec.state to the published enabled flag"""
    if state == STATE_ACTIVE:
        return True
    if state == STATE_INACTIVE:
        return False
    raise InvalidDeclaredState(state)


def parse_cpms(obj: Dict[str, Any]) -> ControlPlaneMachineSet:
    try:
        return ControlPlaneMachineSet.model_validate(obj)
    except ValidationError as e:
        raise InvalidResourceError(f"invalid controlplanemachineset: {e}") from e


class CPMSReconciler:
    """Reconciles ControlPlaneMachineSet objects into the cpms_enabled metric"""

    def __init__(
        self,
        client: CustomObjectsApi,
        metrics_aggregator: MetricsAggregator,
        cluster_id: str,
        request_timeout: Optional[float] = None
    ):
        """
        Initialize the reconciler

        Args:
            client: Kubernetes custom objects API used to fetch the CPMS
            metrics_aggregator: Aggregator receiving state updates
            cluster_id: Cluster identifier used as the _id label
            request_timeout: Seconds before a fetch is abandoned, None waits forever
        """
        self.client = client
        self.metrics_aggregator = metrics_aggregator
        self.cluster_id = cluster_id
        self.request_timeout = request_timeout

    def reconcile(self, namespace: str, name: str) -> ReconcileResult:
        """
        Reconcile a single ControlPlaneMachineSet

        Args:
            namespace: Namespace of the CPMS
            name: Name of the CPMS

        Returns:
            ReconcileResult without requeue

        Raises:
            InvalidDeclaredState: If spec.state is not Active or Inactive
            DecodeError: If the machine template cannot be decoded
            InvalidResourceError: If the object does not match the CPMS schema
            ApiException: For API errors other than not-found
        """
        logger.debug(f"Reconciling controlplanemachineset {namespace}/{name}")

        try:
            obj = self.client.get_namespaced_custom_object(
                group=CPMS_GROUP,
                version=CPMS_VERSION,
                namespace=namespace,
                plural=CPMS_PLURAL,
                name=name,
                _request_timeout=self.request_timeout
            )
        except ApiException as e:
            if e.status == 404:
                logger.debug(f"controlplanemachineset {namespace}/{name} not found, nothing to report")
                return ReconcileResult()
            raise

        cpms = parse_cpms(obj)
        enabled = parse_state(cpms.spec.state)
        instance_type = extract_instance_type(cpms.spec.template)

        self.metrics_aggregator.set_cpms_enabled(
            AggregationKey(self.cluster_id, instance_type),
            enabled
        )
        logger.info(
            f"controlplanemachineset {namespace}/{name}: "
            f"instance_type={instance_type}, enabled={enabled}"
        )
        return ReconcileResult()
