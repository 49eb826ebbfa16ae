import logging

import pytest

from core.resource import Resource
from core.value import from_python


@pytest.fixture(autouse=True)
def _reset_import_logger():
    yield
    # ImportEngine detaches the tfimport hierarchy from the root logger
    logger = logging.getLogger("tfimport")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("LOG_LEVEL", "TFIMPORT_POOL_SIZE", "TFIMPORT_SLOW_QUERY_DELAY", "AWS_REGION"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_resource():
    def _make(state=None, resource_type="aws_security_group", provider="aws", import_id="sg-123"):
        resource = Resource.new_simple(import_id, import_id, resource_type, provider)
        if state is not None:
            resource.instance_state = from_python(state)
        return resource
    return _make
