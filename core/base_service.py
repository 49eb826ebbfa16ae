"""
Base service classes for provider listing implementations.
"""

from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional
import logging
import boto3

from .config import ImportConfig
from .filters import ResourceFilter, filter_cleanup
from .resource import Resource


class BaseService(ABC):
    """Abstract base class for services that list resources of one kind"""

    PROVIDER = ""
    SERVICE = ""

    def __init__(self, config: ImportConfig, session: Optional[boto3.Session] = None,
                 args: Optional[Dict[str, Any]] = None):
        """Initialize base service with configuration and provider arguments"""
        self.config = config
        self.session = session
        self.args = args or {}
        self.logger = logging.getLogger(f'tfimport.{self.PROVIDER}.{self.SERVICE}')

        self.resources: List[Resource] = []
        self.filters: List[ResourceFilter] = config.get_resource_filters()

        # Service statistics
        self.stats = {
            'resources_listed': 0,
            'resources_filtered': 0,
            'resources_refreshed': 0,
            'api_calls_made': 0
        }

    def get_provider_name(self) -> str:
        return self.PROVIDER

    def get_service_name(self) -> str:
        return self.SERVICE

    @abstractmethod
    def init_resources(self):
        """List resources from the provider API and populate self.resources"""
        pass

    def post_convert_hook(self):
        """Adjust refreshed state before emission; no-op by default"""
        pass

    def get_resources(self) -> List[Resource]:
        return self.resources

    def set_resources(self, resources: List[Resource]):
        self.resources = resources

    def initial_cleanup(self):
        """Apply id filters to freshly listed resources"""
        before = len(self.resources)
        self.resources = filter_cleanup(self.resources, self.filters, is_initial=True)
        self.stats['resources_filtered'] += before - len(self.resources)

    def post_refresh_cleanup(self):
        """Apply attribute filters once state is available"""
        before = len(self.resources)
        self.resources = filter_cleanup(self.resources, self.filters, is_initial=False)
        self.stats['resources_filtered'] += before - len(self.resources)

    def get_statistics(self) -> Dict[str, Any]:
        """Get service statistics"""
        return {
            'provider': self.get_provider_name(),
            'service': self.get_service_name(),
            'stats': self.stats.copy()
        }

    def log_statistics(self):
        """Log service statistics"""
        stats = self.stats
        service_name = self.get_service_name().upper()

        self.logger.info(f"📊 {service_name} Import Statistics:")
        self.logger.info(f"   Resources Listed: {stats['resources_listed']}")
        self.logger.info(f"   Resources Refreshed: {stats['resources_refreshed']}")
        self.logger.info(f"   API Calls: {stats['api_calls_made']}")

        if stats['resources_filtered'] > 0:
            self.logger.info(f"   Resources Filtered: {stats['resources_filtered']}")


class BaseAWSService(BaseService):
    """Base class for AWS services listed through boto3"""

    PROVIDER = "aws"

    def __init__(self, config: ImportConfig, session: Optional[boto3.Session] = None,
                 args: Optional[Dict[str, Any]] = None):
        super().__init__(config, session or boto3.Session(), args)
        self.region = config.region

        # Service-specific client cache
        self._clients = {}

    def get_client(self, service_name: str):
        """Get cached AWS client for service"""
        if service_name not in self._clients:
            try:
                self._clients[service_name] = self.session.client(
                    service_name,
                    region_name=self.region
                )
            except Exception as e:
                self.logger.error(f"Failed to create {service_name} client: {e}")
                raise

        return self._clients[service_name]
