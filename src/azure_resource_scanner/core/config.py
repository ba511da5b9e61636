"""
Scan configuration assembled by the CLI
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

DEFAULT_MAX_WORKERS = 10
DEFAULT_TIMEOUT = 300


@dataclass
class AzureCredentials:
    """Service principal credentials; all None means the default credential chain"""
    tenant_id: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None

    @property
    def is_service_principal(self) -> bool:
        return bool(self.tenant_id and self.client_id and self.client_secret)


@dataclass
class ScanConfig:
    credentials: AzureCredentials = field(default_factory=AzureCredentials)
    subscriptions: List[str] = field(default_factory=list)
    resource_groups: List[str] = field(default_factory=list)
    services: Optional[List[str]] = None
    excluded_services: List[str] = field(default_factory=list)
    max_workers: int = DEFAULT_MAX_WORKERS
    timeout: Optional[int] = DEFAULT_TIMEOUT
    output: Optional[str] = None
    pretty: bool = False

    def validate(self, known_services: Sequence[str]) -> List[str]:
        """Return a list of configuration errors; empty when valid"""
        errors: List[str] = []
        if self.max_workers < 1:
            errors.append("max_workers must be >= 1")
        if self.timeout is not None and self.timeout <= 0:
            errors.append("timeout must be > 0")
        for service in list(self.services or []) + list(self.excluded_services):
            if service not in known_services:
                errors.append(f"unknown service: {service}")
        if self.resource_groups and len(self.subscriptions) != 1:
            errors.append("resource groups can only be selected when scanning exactly one subscription")
        credentials = self.credentials
        partial = any([credentials.tenant_id, credentials.client_id, credentials.client_secret])
        if partial and not credentials.is_service_principal:
            errors.append("tenant id, client id and client secret must be given together")
        return errors
