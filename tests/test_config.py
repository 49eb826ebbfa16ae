import logging

import pytest

from core.config import ImportConfig
from core.exceptions import FilterParseError
from core.filters import ResourceFilter


def test_defaults():
    config = ImportConfig(provider="aws")

    assert config.filters == []
    assert config.pool_size == 15
    assert config.slow_query_delay == pytest.approx(0.2)
    assert config.get_log_level() == logging.INFO
    assert config.get_resource_filters() == []


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("TFIMPORT_POOL_SIZE", "3")
    monkeypatch.setenv("TFIMPORT_SLOW_QUERY_DELAY", "0.5")
    monkeypatch.setenv("AWS_REGION", "eu-west-1")

    config = ImportConfig(provider="aws")

    assert config.log_level == "DEBUG"
    assert config.pool_size == 3
    assert config.slow_query_delay == pytest.approx(0.5)
    assert config.region == "eu-west-1"


def test_explicit_region_wins_over_environment(monkeypatch):
    monkeypatch.setenv("AWS_REGION", "eu-west-1")

    assert ImportConfig(provider="aws", region="us-east-1").region == "us-east-1"


@pytest.mark.parametrize("kwargs", [
    {"provider": ""},
    {"provider": "aws", "pool_size": 0},
    {"provider": "aws", "service_workers": 0},
    {"provider": "aws", "slow_query_delay": -1},
    {"provider": "aws", "log_level": "LOUD"},
])
def test_invalid_settings(kwargs):
    with pytest.raises(ValueError):
        ImportConfig(**kwargs)


def test_malformed_filter_fails_early():
    with pytest.raises(FilterParseError):
        ImportConfig(provider="aws", filters=["not a filter"])


def test_filters_are_parsed():
    config = ImportConfig(provider="aws", filters=["s3=logs", "Name=tags.Env"])

    assert config.get_resource_filters() == [
        ResourceFilter("s3", "id", ["logs"]),
        ResourceFilter("", "tags.Env", None),
    ]


def test_service_selection():
    assert ImportConfig(provider="aws").should_import_service("s3")

    config = ImportConfig(provider="aws", services=["s3"])
    assert config.should_import_service("s3")
    assert not config.should_import_service("security_group")
