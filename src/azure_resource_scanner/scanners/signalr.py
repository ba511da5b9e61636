"""
SignalR service scanner
"""

from dataclasses import dataclass
from typing import Any, List, Optional

from azure.mgmt.signalr import SignalRManagementClient

from ..core.framework import AzureResource, Category, Impact, Rule
from ..core.provider import AzurePagedLister
from ..core.scanner import AzureScanner
from .common import (caf_naming_rule, diagnostics_rule, identity_fields, private_endpoints_rule,
                     sku_name, sku_rule, sla_rule, tags_rule)


@dataclass(frozen=True)
class SignalRService(AzureResource):
    sku: Optional[str] = None
    private_endpoints: int = 0

    @classmethod
    def from_sdk(cls, service: Any) -> "SignalRService":
        return cls(
            **identity_fields(service),
            sku=sku_name(service.sku),
            private_endpoints=len(service.private_endpoint_connections or []),
        )


class SignalRScanner(AzureScanner):
    """Scanner for SignalR services"""

    service_key = "sigr"
    service_name = "SignalR"
    resource_type = SignalRService
    azure_type = "Microsoft.SignalRService/SignalR"

    def create_lister(self, config) -> AzurePagedLister:
        client = config.provider.get_client(SignalRManagementClient, config.subscription_id)
        return AzurePagedLister(
            lambda group, **kwargs: client.signal_r.list_by_resource_group(resource_group_name=group, **kwargs),
            SignalRService.from_sdk,
            cancellation=config.cancellation,
        )

    def get_rules(self) -> List[Rule]:
        return [
            diagnostics_rule("sigr-001", self.service_name,
                             "https://learn.microsoft.com/en-us/azure/azure-signalr/signalr-howto-diagnostic-logs"),
            Rule(
                id="sigr-002",
                category=Category.HIGH_AVAILABILITY,
                impact=Impact.HIGH,
                recommendation="SignalR should have availability zones enabled",
                url="https://learn.microsoft.com/en-us/azure/azure-signalr/availability-zones",
                # Only Premium units are zone redundant; a missing SKU is not
                evaluate=lambda service, scan_context: ("Premium" not in (service.sku or ""), ""),
            ),
            sla_rule("sigr-003", self.service_name,
                     "https://www.azure.cn/en-us/support/sla/signalr-service/", lambda service: "99.9%"),
            private_endpoints_rule("sigr-004", self.service_name,
                                   "https://learn.microsoft.com/en-us/azure/azure-signalr/howto-private-endpoints"),
            sku_rule("sigr-005", self.service_name,
                     "https://azure.microsoft.com/en-us/pricing/details/signalr-service/"),
            caf_naming_rule("sigr-006", self.service_name, "sigr"),
            tags_rule("sigr-007", self.service_name),
        ]
