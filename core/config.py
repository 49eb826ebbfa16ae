"""
Configuration management for cloud state import.
"""

import os
from dataclasses import dataclass
from typing import Optional, List
import logging

from .filters import ResourceFilter, parse_filter
from .refresh import DEFAULT_POOL_SIZE, DEFAULT_SLOW_QUERY_DELAY


@dataclass
class ImportConfig:
    """Configuration settings for a state import run"""

    # Provider Configuration
    provider: str
    region: Optional[str] = None
    profile: Optional[str] = None

    # Import Settings
    services: Optional[List[str]] = None      # None imports every registered service
    filters: Optional[List[str]] = None       # filter expressions, see core.filters.parse_filter
    pool_size: int = DEFAULT_POOL_SIZE        # refresh workers per service
    service_workers: int = 4
    slow_query_delay: float = DEFAULT_SLOW_QUERY_DELAY

    # Logging Configuration
    log_level: str = "INFO"
    console_log_level: str = "INFO"
    file_log_level: str = "DEBUG"
    log_file: Optional[str] = None

    def __post_init__(self):
        """Initialize default values and validate configuration"""
        if self.filters is None:
            self.filters = []

        # Load environment variables if they exist
        self._load_from_env()

        # Validate configuration
        self._validate()

    def _load_from_env(self):
        """Load configuration from environment variables"""
        # AWS credentials are loaded automatically by boto3
        if not self.region and os.getenv('AWS_REGION'):
            self.region = os.getenv('AWS_REGION')

        if os.getenv('TFIMPORT_POOL_SIZE'):
            self.pool_size = int(os.getenv('TFIMPORT_POOL_SIZE'))
        if os.getenv('TFIMPORT_SLOW_QUERY_DELAY'):
            self.slow_query_delay = float(os.getenv('TFIMPORT_SLOW_QUERY_DELAY'))

        # Logging level from environment
        if os.getenv('LOG_LEVEL'):
            self.log_level = os.getenv('LOG_LEVEL').upper()

    def _validate(self):
        """Validate configuration settings"""
        if not self.provider:
            raise ValueError("A provider name is required")

        if self.pool_size < 1:
            raise ValueError(f"Invalid pool size: {self.pool_size}. Must be at least 1")
        if self.service_workers < 1:
            raise ValueError(f"Invalid service workers: {self.service_workers}. Must be at least 1")
        if self.slow_query_delay < 0:
            raise ValueError(f"Invalid slow query delay: {self.slow_query_delay}")

        valid_log_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        for level in (self.log_level, self.console_log_level, self.file_log_level):
            if level not in valid_log_levels:
                raise ValueError(f"Invalid log level: {level}. Valid levels: {valid_log_levels}")

        # Fail early on malformed filters
        self.get_resource_filters()

    def get_log_level(self) -> int:
        """Get numeric log level for logging module"""
        return getattr(logging, self.log_level)

    def get_resource_filters(self) -> List[ResourceFilter]:
        """Parse configured filter expressions"""
        return [parse_filter(expression) for expression in self.filters]

    def should_import_service(self, service_name: str) -> bool:
        """Check if a service was selected for import"""
        return self.services is None or service_name in self.services
