"""
EC2 security group listing for AWS state import.
"""

from typing import Any, Dict

from botocore.exceptions import ClientError

from core.base_service import BaseAWSService
from core.resource import Resource
from .service_registry import register_service


RULE_BLOCKS = ("ingress", "egress")
RULE_LIST_ATTRIBUTES = ("cidr_blocks", "ipv6_cidr_blocks", "prefix_list_ids", "security_groups")


@register_service
class SecurityGroupService(BaseAWSService):
    """EC2 security group listing implementation"""

    SERVICE = "security_group"

    def _create_resource(self, group: Dict[str, Any]) -> Resource:
        group_id = group['GroupId']
        attributes = {
            'name': group.get('GroupName', ''),
            'vpc_id': group.get('VpcId', ''),
        }
        return Resource.new(
            group_id,
            f"{group.get('GroupName', group_id)}_{group_id}",
            "aws_security_group",
            "aws",
            attributes,
            [],
            {},
        )

    def init_resources(self):
        self.logger.info(f"🔍 Listing security groups in {self.region or 'default region'}")
        ec2_client = self.get_client('ec2')

        try:
            paginator = ec2_client.get_paginator('describe_security_groups')
            for page in paginator.paginate():
                self.stats['api_calls_made'] += 1
                for group in page.get('SecurityGroups', []):
                    self.resources.append(self._create_resource(group))
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', 'Unknown')
            self.logger.error(f"✗ aws_security_group: {error_code} - {e}")
            raise

        self.stats['resources_listed'] = len(self.resources)
        self.logger.info(f"✓ aws_security_group: Found {len(self.resources)} resources")

    def post_convert_hook(self):
        # The API returns rule members in no particular order
        for resource in self.resources:
            for block in RULE_BLOCKS:
                for attribute in RULE_LIST_ATTRIBUTES:
                    resource.sort_state_attr_each_attr_string_slice(block, attribute)
