"""
Azure Data Explorer cluster scanner
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from azure.mgmt.kusto import KustoManagementClient

from ..core.framework import AzureResource, Category, Impact, Rule
from ..core.provider import AzurePagedLister
from ..core.scanner import AzureScanner
from .common import (caf_naming_rule, diagnostics_rule, enum_text, identity_fields,
                     private_endpoints_rule, sku_name, sku_rule, sla_rule, tags_rule)


@dataclass(frozen=True)
class DataExplorerCluster(AzureResource):
    sku: Optional[str] = None
    sku_tier: Optional[str] = None
    zones: Tuple[str, ...] = ()
    private_endpoints: int = 0
    disk_encryption_enabled: bool = False

    @classmethod
    def from_sdk(cls, cluster: Any) -> "DataExplorerCluster":
        return cls(
            **identity_fields(cluster),
            sku=sku_name(cluster.sku),
            sku_tier=enum_text(cluster.sku.tier) if cluster.sku is not None else None,
            zones=tuple(cluster.zones or ()),
            private_endpoints=len(cluster.private_endpoint_connections or []),
            disk_encryption_enabled=bool(cluster.enable_disk_encryption),
        )


def data_explorer_sla(cluster: DataExplorerCluster) -> str:
    # Dev/test (Basic tier) clusters carry no SLA
    if cluster.sku_tier == "Basic":
        return "None"
    return "99.9%"


class DataExplorerScanner(AzureScanner):
    """Scanner for Azure Data Explorer clusters"""

    service_key = "dec"
    service_name = "Data Explorer"
    resource_type = DataExplorerCluster
    azure_type = "Microsoft.Kusto/clusters"

    def create_lister(self, config) -> AzurePagedLister:
        client = config.provider.get_client(KustoManagementClient, config.subscription_id)
        return AzurePagedLister(
            lambda group, **kwargs: client.clusters.list_by_resource_group(resource_group_name=group, **kwargs),
            DataExplorerCluster.from_sdk,
            cancellation=config.cancellation,
        )

    def get_rules(self) -> List[Rule]:
        return [
            diagnostics_rule("dec-001", self.service_name,
                             "https://learn.microsoft.com/en-us/azure/data-explorer/using-diagnostic-logs"),
            Rule(
                id="dec-002",
                category=Category.HIGH_AVAILABILITY,
                impact=Impact.HIGH,
                recommendation="Data Explorer should have availability zones enabled",
                url="https://learn.microsoft.com/en-us/azure/data-explorer/create-cluster-database-portal",
                evaluate=lambda cluster, scan_context: (len(cluster.zones) == 0, ""),
            ),
            sla_rule("dec-003", self.service_name,
                     "https://www.azure.cn/en-us/support/sla/data-explorer/", data_explorer_sla),
            private_endpoints_rule("dec-004", self.service_name,
                                   "https://learn.microsoft.com/en-us/azure/data-explorer/security-network-private-endpoint"),
            sku_rule("dec-005", self.service_name,
                     "https://learn.microsoft.com/en-us/azure/data-explorer/manage-cluster-choose-sku"),
            caf_naming_rule("dec-006", self.service_name, "dec"),
            tags_rule("dec-007", self.service_name),
            Rule(
                id="dec-008",
                category=Category.SECURITY,
                impact=Impact.MEDIUM,
                recommendation="Data Explorer should have disk encryption enabled",
                url="https://learn.microsoft.com/en-us/azure/data-explorer/cluster-encryption-disk",
                evaluate=lambda cluster, scan_context: (not cluster.disk_encryption_enabled, ""),
            ),
        ]
