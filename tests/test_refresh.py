import threading
import time
from unittest.mock import patch

import pytest

from core.exceptions import RefreshError
from core.refresh import (
    DEFAULT_SLOW_QUERY_DELAY,
    RefreshCapability,
    refresh_resource,
    refresh_resources,
)
from core.value import from_python, to_python


class FakeCapability(RefreshCapability):
    """Returns a state echoing the seed; fails for ids listed in `failing`"""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.calls = []
        self._lock = threading.Lock()

    def refresh(self, address, prior_state, import_id):
        with self._lock:
            self.calls.append((address, dict(prior_state), import_id))
        if import_id in self.failing:
            raise RefreshError(f"provider rejected {import_id}")
        return from_python({"id": import_id, "name": prior_state.get("name", "")})


def test_refresh_sets_instance_state(make_resource):
    resource = make_resource(import_id="sg-1")
    resource.prior_state["name"] = "web"
    capability = FakeCapability()

    assert refresh_resource(resource, capability) is True

    assert to_python(resource.instance_state) == {"id": "sg-1", "name": "web"}
    assert capability.calls == [(resource.address, {"id": "sg-1", "name": "web"}, "sg-1")]


def test_failed_refresh_is_logged_and_leaves_state_unset(make_resource, caplog):
    resource = make_resource(import_id="sg-1")

    with caplog.at_level("ERROR", logger="tfimport.refresh"):
        assert refresh_resource(resource, FakeCapability(failing=["sg-1"])) is False

    assert resource.instance_state is None
    assert "provider rejected sg-1" in caplog.text


def test_failed_refresh_keeps_previous_state(make_resource):
    resource = make_resource({"name": "stale"}, import_id="sg-1")
    previous = resource.instance_state

    refresh_resource(resource, FakeCapability(failing=["sg-1"]))

    assert resource.instance_state is previous


class TestSlowQueries:

    def test_slow_resource_waits_before_refresh(self, make_resource):
        resource = make_resource(import_id="sg-1")
        resource.slow_query_required = True
        events = []

        class RecordingCapability(FakeCapability):
            def refresh(self, address, prior_state, import_id):
                events.append("refresh")
                return super().refresh(address, prior_state, import_id)

        with patch("core.refresh.time.sleep", side_effect=lambda _: events.append("sleep")) as sleep:
            refresh_resource(resource, RecordingCapability())

        sleep.assert_called_once_with(DEFAULT_SLOW_QUERY_DELAY)
        assert events == ["sleep", "refresh"]

    def test_regular_resource_does_not_wait(self, make_resource):
        resource = make_resource(import_id="sg-1")

        with patch("core.refresh.time.sleep") as sleep:
            refresh_resource(resource, FakeCapability())

        sleep.assert_not_called()

    def test_slow_resource_observably_waits(self, make_resource):
        resource = make_resource(import_id="sg-1")
        resource.slow_query_required = True

        started = time.monotonic()
        refresh_resource(resource, FakeCapability(), delay=0.05)

        assert time.monotonic() - started >= 0.05


class TestRefreshResources:

    def test_returns_only_refreshed_resources_in_order(self, make_resource):
        resources = [make_resource(import_id=f"sg-{i}") for i in range(6)]
        resources[3].slow_query_required = True
        resources[4].slow_query_required = True
        capability = FakeCapability(failing=["sg-2", "sg-4"])

        with patch("core.refresh.time.sleep"):
            refreshed = refresh_resources(resources, capability, pool_size=3)

        assert [r.import_id for r in refreshed] == ["sg-0", "sg-1", "sg-3", "sg-5"]
        assert resources[2].instance_state is None
        assert resources[4].instance_state is None
        assert len(capability.calls) == 6

    def test_slow_queries_run_sequentially(self, make_resource):
        resources = [make_resource(import_id=f"sg-{i}") for i in range(3)]
        for resource in resources:
            resource.slow_query_required = True
        active = []
        overlaps = []

        class TrackingCapability(FakeCapability):
            def refresh(self, address, prior_state, import_id):
                active.append(import_id)
                if len(active) > 1:
                    overlaps.append(tuple(active))
                time.sleep(0.01)
                active.remove(import_id)
                return super().refresh(address, prior_state, import_id)

        refreshed = refresh_resources(resources, TrackingCapability(), pool_size=4, delay=0)

        assert len(refreshed) == 3
        assert overlaps == []

    def test_empty_input(self):
        assert refresh_resources([], FakeCapability()) == []


def test_capability_is_abstract():
    with pytest.raises(TypeError):
        RefreshCapability()
