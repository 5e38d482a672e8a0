#!/usr/bin/env python3
"""
Watch loop that feeds ControlPlaneMachineSet changes into the reconciler
"""

import logging
import threading
from typing import Optional
from kubernetes import watch
from kubernetes.client import CustomObjectsApi
from kubernetes.client.rest import ApiException

from core.errors import ExporterError
from .cpms import CPMS_GROUP, CPMS_PLURAL, CPMS_VERSION, CPMSReconciler

logger = logging.getLogger(__name__)

RECONCILED_EVENT_TYPES = ("ADDED", "MODIFIED", "DELETED")


class CPMSController:
    """Lists and watches ControlPlaneMachineSets in one namespace"""

    def __init__(
        self,
        reconciler: CPMSReconciler,
        custom_api: CustomObjectsApi,
        namespace: str,
        watch_timeout: int = 300,
        request_timeout: Optional[float] = None
    ):
        self.reconciler = reconciler
        self.custom_api = custom_api
        self.namespace = namespace
        self.watch_timeout = watch_timeout
        self.request_timeout = request_timeout
        self.resource_version: Optional[str] = None
        self._watch: Optional[watch.Watch] = None

    def _reconcile(self, name: str):
        """Reconcile one object; failures are reported once and not retried"""
        try:
            self.reconciler.reconcile(self.namespace, name)
        except ExporterError as e:
            logger.error(f"Failed to reconcile controlplanemachineset {self.namespace}/{name}: {e}")
        except ApiException as e:
            logger.error(
                f"API error reconciling controlplanemachineset {self.namespace}/{name}: "
                f"{e.status} {e.reason}"
            )
        except Exception as e:
            logger.error(
                f"Unexpected error reconciling controlplanemachineset {self.namespace}/{name}: {e}",
                exc_info=True
            )

    def sync(self) -> int:
        """
        List all ControlPlaneMachineSets and reconcile each once

        Returns:
            Number of objects reconciled
        """
        result = self.custom_api.list_namespaced_custom_object(
            group=CPMS_GROUP,
            version=CPMS_VERSION,
            namespace=self.namespace,
            plural=CPMS_PLURAL,
            _request_timeout=self.request_timeout
        )
        items = result.get("items", [])
        for item in items:
            self._reconcile(item["metadata"]["name"])

        self.resource_version = (result.get("metadata") or {}).get("resourceVersion")
        logger.info(
            f"Synced {len(items)} controlplanemachinesets in {self.namespace} "
            f"(resourceVersion={self.resource_version})"
        )
        return len(items)

    def handle_event(self, event: dict) -> bool:
        """
        Handle one watch event

        Returns:
            False if the watch must be restarted from a fresh list
        """
        event_type = event.get("type")
        obj = event.get("object") or {}

        if event_type == "ERROR":
            if obj.get("code") == 410:
                logger.info("Watch resourceVersion expired, relisting")
                self.resource_version = None
                return False
            logger.error(f"Watch error event: {obj.get('message', obj)}")
            return True

        metadata = obj.get("metadata") or {}
        self.resource_version = metadata.get("resourceVersion", self.resource_version)

        if event_type in RECONCILED_EVENT_TYPES and metadata.get("name"):
            logger.debug(f"Watch event {event_type} for {self.namespace}/{metadata['name']}")
            self._reconcile(metadata["name"])
        return True

    def watch_once(self):
        """Stream watch events until the server closes the stream or a relist is needed"""
        self._watch = watch.Watch()
        try:
            for event in self._watch.stream(
                self.custom_api.list_namespaced_custom_object,
                group=CPMS_GROUP,
                version=CPMS_VERSION,
                namespace=self.namespace,
                plural=CPMS_PLURAL,
                resource_version=self.resource_version,
                timeout_seconds=self.watch_timeout
            ):
                if not self.handle_event(event):
                    self._watch.stop()
                    break
        except ApiException as e:
            if e.status != 410:
                raise
            logger.info("Watch resourceVersion expired, relisting")
            self.resource_version = None
        finally:
            self._watch = None

    def run(self, stop_event: threading.Event):
        """Initial sync, then watch until stop_event is set"""
        logger.info(f"Starting controlplanemachineset controller in namespace {self.namespace}")
        while not stop_event.is_set():
            if self.resource_version is None:
                self.sync()
            self.watch_once()
        logger.info("Controlplanemachineset controller stopped")

    def stop(self):
        if self._watch is not None:
            self._watch.stop()
