"""
Refresh orchestration: turn seed attributes into confirmed resource state.
"""

import logging
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List

from pyvider.cty import CtyValue

from .resource import Address, Resource

logger = logging.getLogger("tfimport.refresh")

DEFAULT_POOL_SIZE = 15
DEFAULT_SLOW_QUERY_DELAY = 0.2   # seconds


class RefreshCapability(ABC):
    """Fetches the current state of a single resource from its provider"""

    @abstractmethod
    def refresh(self, address: Address, prior_state: Dict[str, str], import_id: str) -> CtyValue:
        """Return the refreshed state; raise on failure. Must be safe to repeat."""
        pass


def refresh_resource(resource: Resource, capability: RefreshCapability,
                     delay: float = DEFAULT_SLOW_QUERY_DELAY) -> bool:
    """Refresh one resource in place.

    Slow-query resources wait `delay` seconds first. A failed refresh is
    logged and leaves the previous state untouched.
    """
    if resource.slow_query_required:
        time.sleep(delay)
    try:
        state = capability.refresh(resource.address, resource.prior_state, resource.import_id)
    except Exception as e:
        logger.error(f"Failed to refresh {resource.address} ({resource.import_id}): {e}")
        return False
    resource.instance_state = state
    return True


def _refresh_sequentially(resources: List[Resource], capability: RefreshCapability, delay: float):
    for resource in resources:
        refresh_resource(resource, capability, delay)


def refresh_resources(resources: List[Resource], capability: RefreshCapability,
                      pool_size: int = DEFAULT_POOL_SIZE,
                      delay: float = DEFAULT_SLOW_QUERY_DELAY) -> List[Resource]:
    """Refresh many resources and return the ones that ended up with state.

    Regular resources are spread over a thread pool. Slow-query resources are
    refreshed one after another on a dedicated worker so their delay never
    holds up the rest.
    """
    fast = [r for r in resources if not r.slow_query_required]
    slow = [r for r in resources if r.slow_query_required]

    workers = max(1, pool_size) + (1 if slow else 0)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(refresh_resource, r, capability, delay) for r in fast]
        if slow:
            futures.append(executor.submit(_refresh_sequentially, slow, capability, delay))
        for future in as_completed(futures):
            future.result()

    refreshed = []
    for resource in resources:
        if resource.is_refreshed():
            refreshed.append(resource)
        else:
            logger.error(f"Unable to refresh resource {resource.address}")

    logger.debug(f"Refreshed {len(refreshed)}/{len(resources)} resources")
    return refreshed
