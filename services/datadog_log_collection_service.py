"""
Datadog AWS log collection integration listing.
"""

from typing import Any, List

from core.base_service import BaseService
from core.resource import Resource
from core.value import list_to_value
from .service_registry import register_service


INTEGRATION_AWS_LOG_COLLECTION_ALLOW_EMPTY_VALUES = ["services"]


@register_service
class IntegrationAWSLogCollectionService(BaseService):
    """Lists AWS log collection integrations through an injected Datadog client.

    Expects `args["datadog_client"]` exposing `list_aws_logs_integrations()`.
    Each returned item carries the AWS account id either as a mapping key or
    an attribute.
    """

    PROVIDER = "datadog"
    SERVICE = "integration_aws_log_collection"

    def _create_resource(self, account_id: str) -> Resource:
        return Resource.new_simple(
            account_id,
            f"integration_aws_log_collection_{account_id}",
            "datadog_integration_aws_log_collection",
            "datadog",
            INTEGRATION_AWS_LOG_COLLECTION_ALLOW_EMPTY_VALUES,
        )

    def create_resources(self, log_collections: List[Any]) -> List[Resource]:
        return [self._create_resource(_account_id(item)) for item in log_collections]

    def init_resources(self):
        client = self.args["datadog_client"]
        log_collections = client.list_aws_logs_integrations()
        self.stats['api_calls_made'] += 1

        self.resources = self.create_resources(log_collections)
        self.stats['resources_listed'] = len(self.resources)
        self.logger.info(f"✓ {self.SERVICE}: Found {len(self.resources)} resources")

    def post_convert_hook(self):
        for resource in self.resources:
            # services is required but may be empty
            if not resource.has_state_attr("services"):
                resource.set_state_attr("services", list_to_value([]))


def _account_id(item: Any) -> str:
    if isinstance(item, dict):
        return str(item["account_id"])
    return str(item.account_id)
