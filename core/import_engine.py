"""
Main engine for cloud state import.
"""

import boto3
from datetime import datetime
from typing import List, Dict, Any, Optional
from concurrent.futures import ThreadPoolExecutor, as_completed
from collections import Counter

from .config import ImportConfig
from .base_service import BaseService
from .refresh import RefreshCapability, refresh_resources
from .exceptions import ListUnificationError
from .resource import Resource
from services.service_registry import ServiceFactory, ServiceRegistry
from utils.logging_setup import setup_logging, TimedLogger, log_configuration


class ImportEngine:
    """Lists, refreshes, filters and post-processes resources for one provider"""

    def __init__(self, config: ImportConfig, capability: RefreshCapability,
                 args: Optional[Dict[str, Any]] = None, session: Optional[boto3.Session] = None,
                 registry: Optional[ServiceRegistry] = None):
        """Initialize import engine with configuration and a refresh capability"""
        self.config = config
        self.capability = capability

        self.logger = setup_logging(config)
        log_configuration(self.logger, config)

        # AWS listing needs a session, other providers receive their clients through args
        if session is None and config.provider == "aws":
            session = boto3.Session(profile_name=config.profile) if config.profile else boto3.Session()

        self.service_factory = ServiceFactory(config, session, args, registry)

        # Import statistics
        self.stats = {
            'start_time': None,
            'end_time': None,
            'total_services': 0,
            'successful_services': 0,
            'failed_services': 0,
            'total_resources': 0,
            'resources_by_service': Counter(),
            'service_stats': {},
            'errors': []
        }

    def import_resources(self) -> List[Resource]:
        """Import resources from all selected services"""
        with TimedLogger(self.logger, f"{self.config.provider} state import"):
            self.stats['start_time'] = datetime.now()

            services = self.service_factory.get_services_for_import()
            self.stats['total_services'] = len(services)

            self.logger.info(f"🔍 Starting import with {len(services)} services")
            self.service_factory.log_available_services()

            if self.config.service_workers > 1 and len(services) > 1:
                all_resources = self._import_services_parallel(services)
            else:
                all_resources = self._import_services_sequential(services)

            self.stats['total_resources'] = len(all_resources)
            self.stats['end_time'] = datetime.now()
            self._log_final_statistics()

            return all_resources

    def _import_services_parallel(self, services: List[BaseService]) -> List[Resource]:
        """Import services using parallel processing"""
        self.logger.info(f"🔄 Using parallel import with {self.config.service_workers} workers")

        all_resources = []

        with ThreadPoolExecutor(max_workers=self.config.service_workers) as executor:
            future_to_service = {
                executor.submit(self.import_service, service): service
                for service in services
            }

            for future in as_completed(future_to_service):
                service = future_to_service[future]
                try:
                    resources = future.result()
                    all_resources.extend(resources)
                    self._record_success(service, resources)
                except ListUnificationError:
                    # unifiable state is an invariant of every service; abort the import
                    raise
                except Exception as e:
                    self._record_failure(service, e)

        return all_resources

    def _import_services_sequential(self, services: List[BaseService]) -> List[Resource]:
        """Import services sequentially"""
        self.logger.info("🔄 Using sequential import")

        all_resources = []

        for service in services:
            try:
                resources = self.import_service(service)
                all_resources.extend(resources)
                self._record_success(service, resources)
            except ListUnificationError:
                raise
            except Exception as e:
                self._record_failure(service, e)

        return all_resources

    def import_service(self, service: BaseService) -> List[Resource]:
        """Run one service through listing, filtering, refresh and post-processing"""
        with TimedLogger(self.logger, f"{service.get_service_name()} import"):
            service.init_resources()
            service.initial_cleanup()

            refreshed = refresh_resources(
                service.get_resources(),
                self.capability,
                pool_size=self.config.pool_size,
                delay=self.config.slow_query_delay
            )
            service.stats['resources_refreshed'] = len(refreshed)
            service.set_resources(refreshed)

            service.post_refresh_cleanup()
            service.post_convert_hook()
            service.log_statistics()

            return service.get_resources()

    def _record_success(self, service: BaseService, resources: List[Resource]):
        self.stats['successful_services'] += 1
        self.stats['resources_by_service'][service.get_service_name()] += len(resources)
        self.stats['service_stats'][service.get_service_name()] = service.get_statistics()['stats']
        self._log_progress(f"✓ {service.get_service_name()}: {len(resources)} resources")

    def _record_failure(self, service: BaseService, error: Exception):
        self.stats['failed_services'] += 1
        self.stats['errors'].append(f"{service.get_service_name()}: {error}")
        self.logger.error(f"✗ {service.get_service_name()}: {error}")
        self._log_progress(f"✗ {service.get_service_name()} failed")

    def _log_progress(self, message: str):
        done = self.stats['successful_services'] + self.stats['failed_services']
        self.logger.info(f"📈 {message} ({done}/{self.stats['total_services']} services)")

    def _log_final_statistics(self):
        """Log final import statistics"""
        duration = (self.stats['end_time'] - self.stats['start_time']).total_seconds()

        self.logger.info("🎉 State Import Complete!")
        self.logger.info("📊 Final Statistics:")
        self.logger.info(f"   Duration: {duration:.2f} seconds")
        self.logger.info(f"   Services: {self.stats['successful_services']}/{self.stats['total_services']}")
        self.logger.info(f"   Total Resources: {self.stats['total_resources']}")

        top_services = self.stats['resources_by_service'].most_common(5)
        if top_services:
            self.logger.info(f"   Top Services: {', '.join([f'{s}({c})' for s, c in top_services])}")

        if self.stats['errors']:
            self.logger.warning(f"   Errors Encountered: {len(self.stats['errors'])}")
            for error in self.stats['errors'][:3]:
                self.logger.warning(f"     - {error}")

    def get_statistics(self) -> Dict[str, Any]:
        """Get import statistics"""
        return self.stats.copy()
