#!/usr/bin/env python3
"""
Cluster identifier discovery from the ClusterVersion resource
"""

import logging
from typing import Optional
from kubernetes import client
from kubernetes.client.rest import ApiException

from .errors import ClusterIDNotFoundError

logger = logging.getLogger(__name__)

CLUSTER_VERSION_GROUP = "config.openshift.io"
CLUSTER_VERSION_VERSION = "v1"
CLUSTER_VERSION_PLURAL = "clusterversions"
CLUSTER_VERSION_NAME = "version"


def get_cluster_id(custom_api: client.CustomObjectsApi, request_timeout: Optional[float] = None) -> str:
    """
    Read spec.clusterID from the cluster-scoped ClusterVersion 'version'

    Args:
        custom_api: Kubernetes custom objects API
        request_timeout: Seconds before the request is abandoned

    Returns:
        The cluster identifier

    Raises:
        ClusterIDNotFoundError: If the ClusterVersion or its clusterID is missing
    """
    try:
        cluster_version = custom_api.get_cluster_custom_object(
            group=CLUSTER_VERSION_GROUP,
            version=CLUSTER_VERSION_VERSION,
            plural=CLUSTER_VERSION_PLURAL,
            name=CLUSTER_VERSION_NAME,
            _request_timeout=request_timeout
        )
    except ApiException as e:
        if e.status == 404:
            raise ClusterIDNotFoundError("clusterversion 'version' not found") from e
        raise

    cluster_id = (cluster_version.get("spec") or {}).get("clusterID")
    if not cluster_id:
        raise ClusterIDNotFoundError("clusterversion 'version' has no spec.clusterID")

    logger.info(f"Discovered cluster id: {cluster_id}")
    return cluster_id
