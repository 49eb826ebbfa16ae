"""
Service registry for managing provider listing implementations.
"""

from typing import Any, Dict, List, Type, Optional
import logging
import boto3

from core.base_service import BaseService
from core.config import ImportConfig


class ServiceRegistry:
    """Registry of listing services keyed by provider and service name"""

    def __init__(self):
        self._services: Dict[str, Dict[str, Type[BaseService]]] = {}
        self.logger = logging.getLogger('tfimport.registry')

    def register_service(self, service_class: Type[BaseService]):
        """Register a service implementation"""
        provider = service_class.PROVIDER
        service_name = service_class.SERVICE
        if not provider or not service_name:
            raise ValueError(f"{service_class.__name__} must define PROVIDER and SERVICE")

        provider_services = self._services.setdefault(provider, {})
        if service_name in provider_services:
            self.logger.warning(f"Service {provider}/{service_name} already registered, overwriting")

        provider_services[service_name] = service_class
        self.logger.debug(f"Registered service: {provider}/{service_name}")

    def get_service_class(self, provider: str, service_name: str) -> Optional[Type[BaseService]]:
        """Look up a registered service class"""
        return self._services.get(provider, {}).get(service_name)

    def list_registered_services(self, provider: str) -> List[str]:
        """Get list of registered service names for a provider"""
        return sorted(self._services.get(provider, {}).keys())

    def list_providers(self) -> List[str]:
        return sorted(self._services.keys())


# Global service registry instance
_registry = ServiceRegistry()


def register_service(service_class: Type[BaseService]):
    """Decorator to register a service class"""
    _registry.register_service(service_class)
    return service_class


def get_registry() -> ServiceRegistry:
    """Get the global service registry"""
    return _registry


class ServiceFactory:
    """Factory for creating service instances"""

    def __init__(self, config: ImportConfig, session: Optional[boto3.Session] = None,
                 args: Optional[Dict[str, Any]] = None, registry: Optional[ServiceRegistry] = None):
        self.config = config
        self.session = session
        self.args = args or {}
        self.registry = registry or get_registry()
        self.logger = logging.getLogger('tfimport.factory')

    def create_service(self, service_name: str) -> Optional[BaseService]:
        """Create a specific service instance"""
        service_class = self.registry.get_service_class(self.config.provider, service_name)
        if service_class is None:
            self.logger.error(f"Service {self.config.provider}/{service_name} not found in registry")
            return None

        try:
            return service_class(self.config, self.session, self.args)
        except Exception as e:
            self.logger.error(f"Failed to create service instance for {service_name}: {e}")
            return None

    def get_services_for_import(self) -> List[BaseService]:
        """Get services based on configuration filters"""
        registered = self.registry.list_registered_services(self.config.provider)
        if self.config.services is not None:
            self.logger.info(f"Filtering services by: {', '.join(self.config.services)}")
            for name in self.config.services:
                if name not in registered:
                    self.logger.warning(f"Service {self.config.provider}/{name} not found in registry")
        else:
            self.logger.info(f"Importing all {self.config.provider} services")
        names = [name for name in registered if self.config.should_import_service(name)]

        services = []
        for name in names:
            service = self.create_service(name)
            if service is not None:
                services.append(service)
        return services

    def log_available_services(self):
        """Log information about available services"""
        services = self.registry.list_registered_services(self.config.provider)
        self.logger.info(f"Available {self.config.provider} services ({len(services)}): {', '.join(services)}")
