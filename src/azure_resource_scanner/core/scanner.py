"""
Base class for per-service scanners
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional

from .context import ScanContext
from .engine import RuleEngine
from .framework import AzureServiceResult, Rule, RuleCatalog, ScannerConfig
from .listers import ResourceLister


class AzureScanner(ABC):
    """Lists one Azure resource type and evaluates its rule catalog.

    Subclasses declare ``service_key``, ``service_name`` and the
    ``resource_type`` shape their rules are written against.
    """

    service_key: str = ""
    service_name: str = ""
    resource_type: type = object
    azure_type: str = ""

    def __init__(self):
        self.config: Optional[ScannerConfig] = None
        self.lister: Optional[ResourceLister] = None
        self.catalog = RuleCatalog(self.resource_type, self.get_rules())
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    def get_rules(self) -> List[Rule]:
        """Return the rules for this resource type"""
        pass

    @abstractmethod
    def create_lister(self, config: ScannerConfig) -> ResourceLister:
        """Return the lister used to page through resources"""
        pass

    def init(self, config: ScannerConfig):
        """Bind the scanner to a subscription"""
        self.config = config
        self.lister = self.create_lister(config)

    def scan(self, resource_group: str, scan_context: ScanContext) -> List[AzureServiceResult]:
        """Scan every resource of this type in a resource group.

        A listing failure propagates and no partial results are returned.
        """
        if self.config is None or self.lister is None:
            raise RuntimeError(f"{self.__class__.__name__} used before init()")

        self.logger.info(f"Scanning resource group {resource_group} of subscription "
                         f"{self.config.subscription_id} for {self.service_name}")

        results = []
        for resource in self.list_resources(resource_group):
            outcomes = RuleEngine.evaluate(self.catalog, resource, scan_context)
            results.append(AzureServiceResult(
                subscription_id=self.config.subscription_id,
                subscription_name=self.config.subscription_name,
                resource_group=resource_group,
                service_name=resource.name,
                resource_type=resource.type,
                location=resource.location,
                rules=outcomes,
            ))
        return results

    def list_resources(self, resource_group: str) -> List[Any]:
        """Exhaust the lister's pages for a resource group"""
        resources: List[Any] = []
        token: Optional[str] = None
        while True:
            if self.config.cancellation is not None:
                self.config.cancellation.raise_if_cancelled()
            items, token = self.lister.list_page(resource_group, token)
            resources.extend(items)
            if token is None:
                return resources
