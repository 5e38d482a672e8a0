"""
Tests for the ControlPlaneMachineSet list/watch loop
"""

import threading

import pytest
from kubernetes.client.rest import ApiException
from unittest.mock import Mock, patch

from controllers.watcher import CPMSController
from core.errors import UnsupportedPlatform

from conftest import CPMS_NAMESPACE, FakeCustomObjectsApi, make_cpms


@pytest.fixture
def reconciler():
    return Mock()


def watch_event(event_type, name="cluster", resource_version="101"):
    return {
        "type": event_type,
        "object": {"metadata": {"name": name, "namespace": CPMS_NAMESPACE, "resourceVersion": resource_version}},
    }


class TestSync:

    def test_reconciles_every_listed_object(self, reconciler):
        api = FakeCustomObjectsApi(make_cpms(name="cluster"), make_cpms(name="other"))
        controller = CPMSController(reconciler, api, CPMS_NAMESPACE)

        assert controller.sync() == 2
        reconciled = sorted(call.args for call in reconciler.reconcile.call_args_list)
        assert reconciled == [(CPMS_NAMESPACE, "cluster"), (CPMS_NAMESPACE, "other")]
        assert controller.resource_version == "100"

    def test_list_uses_request_timeout(self, reconciler):
        api = Mock()
        api.list_namespaced_custom_object.return_value = {"items": [], "metadata": {"resourceVersion": "7"}}
        controller = CPMSController(reconciler, api, CPMS_NAMESPACE, request_timeout=15)

        controller.sync()

        assert api.list_namespaced_custom_object.call_args.kwargs["_request_timeout"] == 15
        assert controller.resource_version == "7"

    def test_ignores_other_namespaces(self, reconciler):
        api = FakeCustomObjectsApi(make_cpms(namespace="elsewhere"))
        controller = CPMSController(reconciler, api, CPMS_NAMESPACE)

        assert controller.sync() == 0
        reconciler.reconcile.assert_not_called()

    def test_reconcile_errors_are_reported_not_raised(self, reconciler):
        reconciler.reconcile.side_effect = [UnsupportedPlatform("Azure"), None]
        api = FakeCustomObjectsApi(make_cpms(name="a"), make_cpms(name="b"))
        controller = CPMSController(reconciler, api, CPMS_NAMESPACE)

        assert controller.sync() == 2
        assert reconciler.reconcile.call_count == 2


class TestHandleEvent:

    @pytest.mark.parametrize("event_type", ["ADDED", "MODIFIED", "DELETED"])
    def test_reconciles_change_events(self, reconciler, event_type):
        controller = CPMSController(reconciler, Mock(), CPMS_NAMESPACE)

        assert controller.handle_event(watch_event(event_type)) is True
        reconciler.reconcile.assert_called_once_with(CPMS_NAMESPACE, "cluster")
        assert controller.resource_version == "101"

    def test_bookmark_only_advances_resource_version(self, reconciler):
        controller = CPMSController(reconciler, Mock(), CPMS_NAMESPACE)

        controller.handle_event(watch_event("BOOKMARK", resource_version="150"))
        reconciler.reconcile.assert_not_called()
        assert controller.resource_version == "150"

    def test_expired_resource_version_requests_relist(self, reconciler):
        controller = CPMSController(reconciler, Mock(), CPMS_NAMESPACE)
        controller.resource_version = "99"

        assert controller.handle_event({"type": "ERROR", "object": {"code": 410, "message": "too old"}}) is False
        assert controller.resource_version is None

    def test_api_error_during_reconcile_is_not_retried(self, reconciler):
        reconciler.reconcile.side_effect = ApiException(status=500, reason="boom")
        controller = CPMSController(reconciler, Mock(), CPMS_NAMESPACE)

        assert controller.handle_event(watch_event("MODIFIED")) is True
        assert reconciler.reconcile.call_count == 1


class TestWatch:

    @patch("controllers.watcher.watch.Watch")
    def test_watch_once_streams_from_last_resource_version(self, mock_watch_cls, reconciler):
        api = Mock()
        mock_watch = mock_watch_cls.return_value
        mock_watch.stream.return_value = iter([watch_event("MODIFIED", resource_version="102")])
        controller = CPMSController(reconciler, api, CPMS_NAMESPACE, watch_timeout=30)
        controller.resource_version = "100"

        controller.watch_once()

        mock_watch.stream.assert_called_once_with(
            api.list_namespaced_custom_object,
            group="machine.openshift.io",
            version="v1",
            namespace=CPMS_NAMESPACE,
            plural="controlplanemachinesets",
            resource_version="100",
            timeout_seconds=30
        )
        reconciler.reconcile.assert_called_once_with(CPMS_NAMESPACE, "cluster")
        assert controller.resource_version == "102"

    @patch("controllers.watcher.watch.Watch")
    def test_gone_resets_resource_version(self, mock_watch_cls, reconciler):
        mock_watch_cls.return_value.stream.side_effect = ApiException(status=410, reason="Gone")
        controller = CPMSController(reconciler, Mock(), CPMS_NAMESPACE)
        controller.resource_version = "1"

        controller.watch_once()

        assert controller.resource_version is None

    @patch("controllers.watcher.watch.Watch")
    def test_other_api_errors_propagate(self, mock_watch_cls, reconciler):
        mock_watch_cls.return_value.stream.side_effect = ApiException(status=403, reason="Forbidden")
        controller = CPMSController(reconciler, Mock(), CPMS_NAMESPACE)

        with pytest.raises(ApiException):
            controller.watch_once()

    @patch("controllers.watcher.watch.Watch")
    def test_run_syncs_then_watches_until_stopped(self, mock_watch_cls, reconciler):
        stop_event = threading.Event()
        api = FakeCustomObjectsApi(make_cpms())

        def stream(*args, **kwargs):
            stop_event.set()
            return iter([watch_event("MODIFIED")])

        mock_watch_cls.return_value.stream.side_effect = stream
        controller = CPMSController(reconciler, api, CPMS_NAMESPACE)

        controller.run(stop_event)

        # once from the initial list, once from the watch event
        assert reconciler.reconcile.call_count == 2
