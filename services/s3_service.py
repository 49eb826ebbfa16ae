"""
S3 bucket listing for AWS state import.
"""

from typing import Any, Dict

from botocore.exceptions import ClientError

from core.base_service import BaseAWSService
from core.resource import Resource
from .service_registry import register_service


@register_service
class S3Service(BaseAWSService):
    """S3 bucket listing implementation.

    Bucket refreshes hit several per-bucket S3 endpoints that throttle bursts,
    so every bucket is marked as a slow query.
    """

    SERVICE = "s3"

    def _create_resource(self, bucket: Dict[str, Any]) -> Resource:
        bucket_name = bucket['Name']
        resource = Resource.new(
            bucket_name,
            bucket_name,
            "aws_s3_bucket",
            "aws",
            {
                'bucket': bucket_name,
                'force_destroy': 'false',
            },
            [],
            {},
        )
        resource.slow_query_required = True
        return resource

    def init_resources(self):
        s3_client = self.get_client('s3')

        try:
            response = s3_client.list_buckets()
            self.stats['api_calls_made'] += 1
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', 'Unknown')
            self.logger.error(f"✗ aws_s3_bucket: {error_code} - {e}")
            raise

        self.resources = [self._create_resource(bucket) for bucket in response.get('Buckets', [])]
        self.stats['resources_listed'] = len(self.resources)
        self.logger.info(f"✓ aws_s3_bucket: Found {len(self.resources)} resources")

    def post_convert_hook(self):
        for resource in self.resources:
            if resource.has_state_attr("policy") and resource.get_state_attr("policy") == "":
                resource.delete_state_attr("policy")

            # mfa_delete=false is the provider default
            if resource.get_state_attr_first_attr("versioning", "mfa_delete") == "false":
                resource.delete_state_attr_first_attr("versioning", "mfa_delete")

            for attribute in ("allowed_headers", "allowed_methods", "allowed_origins", "expose_headers"):
                resource.sort_state_attr_each_attr_string_slice("cors_rule", attribute)
