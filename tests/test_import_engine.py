import logging
from unittest.mock import MagicMock

import pytest

from core.base_service import BaseService
from core.config import ImportConfig
from core.import_engine import ImportEngine
from core.refresh import RefreshCapability
from core.resource import Resource
from core.exceptions import ListUnificationError
from core.value import bool_val, from_python, list_to_value, number_val, object_val, to_python
from services.service_registry import ServiceRegistry


class StateCapability(RefreshCapability):
    """Serves canned states keyed by import id"""

    def __init__(self, states):
        self.states = states
        self.refreshed = []

    def refresh(self, address, prior_state, import_id):
        self.refreshed.append(import_id)
        return from_python(self.states[import_id])


class StaticService(BaseService):
    PROVIDER = "fake"
    SERVICE = "widget"

    def init_resources(self):
        self.resources = [
            Resource.new_simple(widget_id, widget_id, "fake_widget", "fake")
            for widget_id in self.args["widget_ids"]
        ]
        self.stats['resources_listed'] = len(self.resources)

    def post_convert_hook(self):
        for resource in self.resources:
            resource.sort_state_attr_string_slice("labels")


class BrokenService(BaseService):
    PROVIDER = "fake"
    SERVICE = "broken"

    def init_resources(self):
        raise RuntimeError("listing failed")


class RaggedService(StaticService):
    SERVICE = "ragged"

    def post_convert_hook(self):
        list_to_value([object_val({"a": number_val(1)}), object_val({"a": bool_val(True)})])


@pytest.fixture
def registry():
    registry = ServiceRegistry()
    registry.register_service(StaticService)
    registry.register_service(BrokenService)
    return registry


STATES = {
    "w-1": {"id": "w-1", "status": "active", "labels": ["b", "a"]},
    "w-2": {"id": "w-2", "status": "retired", "labels": []},
    "w-3": {"id": "w-3", "status": "active"},
}


def test_failing_service_does_not_stop_the_run(registry):
    config = ImportConfig(provider="fake", service_workers=2)
    engine = ImportEngine(config, StateCapability(STATES), args={"widget_ids": ["w-1", "w-2", "w-3"]}, registry=registry)

    resources = engine.import_resources()

    assert sorted(r.import_id for r in resources) == ["w-1", "w-2", "w-3"]
    stats = engine.get_statistics()
    assert stats['successful_services'] == 1
    assert stats['failed_services'] == 1
    assert stats['errors'] == ["broken: listing failed"]
    assert stats['resources_by_service']['widget'] == 3


def test_id_filters_run_before_refresh(registry):
    config = ImportConfig(provider="fake", services=["widget"], filters=["widget=w-1:w-3"])
    capability = StateCapability(STATES)
    engine = ImportEngine(config, capability, args={"widget_ids": ["w-1", "w-2", "w-3"]}, registry=registry)

    resources = engine.import_resources()

    assert [r.import_id for r in resources] == ["w-1", "w-3"]
    assert sorted(capability.refreshed) == ["w-1", "w-3"]


def test_attribute_filters_and_post_convert_hook(registry):
    config = ImportConfig(provider="fake", services=["widget"], filters=["Type=widget;Name=status;Value=active"])
    engine = ImportEngine(config, StateCapability(STATES), args={"widget_ids": ["w-1", "w-2", "w-3"]}, registry=registry)

    resources = engine.import_resources()

    assert [r.import_id for r in resources] == ["w-1", "w-3"]
    assert to_python(resources[0].instance_state)["labels"] == ["a", "b"]
    assert not resources[1].has_state_attr("labels")


def test_unrefreshable_resources_are_dropped(registry):
    config = ImportConfig(provider="fake", services=["widget"])
    engine = ImportEngine(config, StateCapability(STATES), args={"widget_ids": ["w-1", "w-9"]}, registry=registry)

    resources = engine.import_resources()

    assert [r.import_id for r in resources] == ["w-1"]


def test_datadog_import_end_to_end():
    client = MagicMock()
    client.list_aws_logs_integrations.return_value = [{"account_id": "111"}, {"account_id": "222"}]
    capability = StateCapability({
        "111": {"id": "111", "account_id": "111"},
        "222": {"id": "222", "account_id": "222", "services": ["lambda"]},
    })
    config = ImportConfig(provider="datadog", filters=["integration_aws_log_collection=111"])
    engine = ImportEngine(config, capability, args={"datadog_client": client})

    resources = engine.import_resources()

    assert [r.import_id for r in resources] == ["111"]
    assert resources[0].get_state_attr_slice("services") == []
    assert resources[0].has_state_attr("services")
    assert capability.refreshed == ["111"]


@pytest.mark.parametrize("workers", [1, 2])
def test_list_unification_error_aborts_the_import(workers):
    registry = ServiceRegistry()
    registry.register_service(StaticService)
    registry.register_service(RaggedService)
    config = ImportConfig(provider="fake", service_workers=workers)
    engine = ImportEngine(config, StateCapability(STATES), args={"widget_ids": ["w-1"]}, registry=registry)

    with pytest.raises(ListUnificationError):
        engine.import_resources()


def test_service_statistics_are_collected(registry):
    config = ImportConfig(provider="fake", services=["widget"], filters=["widget=w-1:w-2"])
    engine = ImportEngine(config, StateCapability(STATES), args={"widget_ids": ["w-1", "w-2", "w-3"]}, registry=registry)

    engine.import_resources()

    widget_stats = engine.get_statistics()['service_stats']['widget']
    assert widget_stats['resources_listed'] == 3
    assert widget_stats['resources_filtered'] == 1
    assert widget_stats['resources_refreshed'] == 2


def test_logger_level_follows_config(registry):
    config = ImportConfig(provider="fake", log_level="WARNING")

    engine = ImportEngine(config, StateCapability(STATES), args={"widget_ids": []}, registry=registry)

    assert engine.logger.level == logging.WARNING
    assert not engine.logger.propagate
