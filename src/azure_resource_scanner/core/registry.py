"""
Registry for managing scanner variants
"""

from typing import Dict, List, Optional, Sequence, Type

from .errors import UnknownServiceError
from .scanner import AzureScanner


class ScannerRegistry:
    """Registry for managing scanner variants"""

    def __init__(self, register_defaults: bool = True):
        self.scanners: Dict[str, Type[AzureScanner]] = {}
        if register_defaults:
            self._register_default_scanners()

    def _register_default_scanners(self):
        """Register default scanners"""
        from ..scanners import (CognitiveScanner, CosmosDBScanner, DataExplorerScanner,
                                MySQLFlexibleScanner, RedisScanner, SignalRScanner)

        default_scanners = [
            CognitiveScanner,
            CosmosDBScanner,
            DataExplorerScanner,
            MySQLFlexibleScanner,
            RedisScanner,
            SignalRScanner,
        ]

        for scanner in default_scanners:
            self.register_scanner(scanner)

    def register_scanner(self, scanner: Type[AzureScanner]):
        """Register a scanner class under its service key"""
        if scanner.service_key in self.scanners:
            raise ValueError(f"Scanner already registered for service {scanner.service_key!r}")
        self.scanners[scanner.service_key] = scanner

    def get_scanner(self, service: str) -> Type[AzureScanner]:
        """Get a scanner class by service key"""
        try:
            return self.scanners[service]
        except KeyError:
            raise UnknownServiceError(service) from None

    def get_all_scanners(self) -> List[Type[AzureScanner]]:
        """Get all registered scanners, ordered by service key"""
        return [self.scanners[key] for key in sorted(self.scanners)]

    def select(self, services: Optional[Sequence[str]] = None,
               excluded: Sequence[str] = ()) -> List[Type[AzureScanner]]:
        """Scanners for the requested services minus the excluded ones"""
        keys = sorted(services) if services else sorted(self.scanners)
        for key in list(keys) + list(excluded):
            self.get_scanner(key)
        return [self.scanners[key] for key in keys if key not in excluded]

    def list_services(self) -> Dict[str, str]:
        """List all available services"""
        return {key: self.scanners[key].service_name for key in sorted(self.scanners)}

    def rule_metadata(self, service: Optional[str] = None) -> List[Dict[str, str]]:
        """Rule fields for documentation, ordered by service then rule id"""
        keys = [service] if service else sorted(self.scanners)
        metadata = []
        for key in keys:
            scanner = self.get_scanner(key)()
            for rule in scanner.catalog.values():
                metadata.append({"service": scanner.service_name, **rule.metadata()})
        return metadata
