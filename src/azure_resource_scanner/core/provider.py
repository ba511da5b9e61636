"""
Azure provider for authentication, management clients and resource listing
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from azure.core.exceptions import HttpResponseError
from azure.identity import ClientSecretCredential, DefaultAzureCredential
from azure.mgmt.monitor import MonitorManagementClient
from azure.mgmt.resource import ResourceManagementClient, SubscriptionClient

from .cancellation import CancellationToken
from .errors import ScannerError
from .framework import Subscription

logger = logging.getLogger(__name__)

# Resource types that reject diagnostic settings answer with these codes
UNSUPPORTED_DIAGNOSTICS_STATUS = (400, 404)


def request_timeouts(cancellation: Optional[CancellationToken]) -> Dict[str, float]:
    """Per-request transport timeouts bounded by the time left before the deadline"""
    if cancellation is None:
        return {}
    remaining = cancellation.remaining()
    if remaining is None:
        return {}
    return {"connection_timeout": remaining, "read_timeout": remaining}


class AzureProvider:
    """Azure provider for authentication and management client caching"""

    def __init__(self, tenant_id: str = None, client_id: str = None,
                 client_secret: str = None, diagnostics_resource_types: Iterable[str] = ()):
        self.tenant_id = tenant_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.diagnostics_resource_types = sorted(set(diagnostics_resource_types))
        self.credential = None
        self._clients: Dict[Tuple[str, str], Any] = {}

        self._initialize_credential()

    def _initialize_credential(self):
        """Use explicit service principal credentials when complete, else the default chain"""
        try:
            if self.tenant_id and self.client_id and self.client_secret:
                self.credential = ClientSecretCredential(
                    tenant_id=self.tenant_id,
                    client_id=self.client_id,
                    client_secret=self.client_secret,
                )
            else:
                # Environment, managed identity or Azure CLI login
                self.credential = DefaultAzureCredential()
        except Exception as e:
            raise ScannerError(f"Failed to initialize Azure credential: {str(e)}") from e

    def get_client(self, client_class: type, subscription_id: str):
        """Get a management client bound to a subscription"""
        client_key = (client_class.__name__, subscription_id)
        if client_key not in self._clients:
            self._clients[client_key] = client_class(self.credential, subscription_id)
        return self._clients[client_key]

    def list_subscriptions(self) -> List[Subscription]:
        """List enabled subscriptions visible to the credential"""
        client = SubscriptionClient(self.credential)
        subscriptions = [
            Subscription(id=sub.subscription_id, name=sub.display_name or "")
            for sub in client.subscriptions.list()
            if sub.state == "Enabled"
        ]
        return sorted(subscriptions, key=lambda sub: sub.id)

    def list_resource_groups(self, subscription_id: str,
                             cancellation: Optional[CancellationToken] = None) -> List[str]:
        client = self.get_client(ResourceManagementClient, subscription_id)
        return sorted(group.name for group in client.resource_groups.list(**request_timeouts(cancellation)))

    def get_diagnostics_lister(self, subscription_id: str,
                               cancellation: Optional[CancellationToken] = None) -> "AzureDiagnosticsSettingsLister":
        return AzureDiagnosticsSettingsLister(self, self.diagnostics_resource_types, cancellation)


class AzurePagedLister:
    """Adapts an SDK ``list_by_resource_group`` call to page-at-a-time listing.

    ``list_call`` returns an ``ItemPaged``; each raw item goes through
    ``converter`` so scanners only see their own resource shape. With a
    deadline, ``list_call`` also receives the transport timeout keywords.
    """

    def __init__(self, list_call: Callable[..., Any], converter: Callable[[Any], Any],
                 cancellation: Optional[CancellationToken] = None):
        self.list_call = list_call
        self.converter = converter
        self.cancellation = cancellation

    def list_page(self, resource_group: str,
                  continuation_token: Optional[str] = None) -> Tuple[List[Any], Optional[str]]:
        pages = self.list_call(resource_group, **request_timeouts(self.cancellation)).by_page(
            continuation_token=continuation_token
        )
        page = next(pages, None)
        if page is None:
            return [], None
        items = [self.converter(item) for item in page]
        return items, pages.continuation_token


class AzureDiagnosticsSettingsLister:
    """Finds which resources of a subscription have diagnostic settings"""

    def __init__(self, azure_provider: AzureProvider, resource_types: Iterable[str] = (),
                 cancellation: Optional[CancellationToken] = None):
        self.azure_provider = azure_provider
        self.resource_types = list(resource_types)
        self.cancellation = cancellation

    def _resource_filter(self) -> Optional[str]:
        if not self.resource_types:
            return None
        return " or ".join(f"resourceType eq '{resource_type}'" for resource_type in self.resource_types)

    def list_all(self, subscription_id: str) -> Dict[str, bool]:
        resource_client = self.azure_provider.get_client(ResourceManagementClient, subscription_id)
        monitor_client = self.azure_provider.get_client(MonitorManagementClient, subscription_id)

        settings: Dict[str, bool] = {}
        resources = resource_client.resources.list(filter=self._resource_filter(),
                                                   **request_timeouts(self.cancellation))
        for resource in resources:
            if self.cancellation is not None:
                self.cancellation.raise_if_cancelled()
            try:
                listed = monitor_client.diagnostic_settings.list(resource_uri=resource.id,
                                                                 **request_timeouts(self.cancellation))
                # Older API versions return a collection with ``value``
                entries = getattr(listed, "value", listed) or []
                configured = any(True for _ in entries)
            except HttpResponseError as e:
                if e.status_code in UNSUPPORTED_DIAGNOSTICS_STATUS:
                    logger.debug(f"Diagnostic settings not supported for {resource.id}")
                    continue
                raise
            if configured:
                settings[resource.id.lower()] = True

        logger.info(f"Subscription {subscription_id}: diagnostic settings found for {len(settings)} resources")
        return settings
