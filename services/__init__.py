"""
Service modules for cloud state import.

Contains individual listing implementations for provider services.
"""

# Import all service implementations to ensure they get registered
from .datadog_log_collection_service import IntegrationAWSLogCollectionService
from .security_group_service import SecurityGroupService
from .s3_service import S3Service

# Import service registry components for external use
from .service_registry import ServiceRegistry, ServiceFactory, get_registry, register_service

__all__ = [
    'IntegrationAWSLogCollectionService',
    'SecurityGroupService',
    'S3Service',
    'ServiceRegistry',
    'ServiceFactory',
    'get_registry',
    'register_service'
]
