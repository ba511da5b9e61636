"""
Azure Database for MySQL flexible server scanner
"""

from dataclasses import dataclass
from typing import Any, List, Optional

from azure.mgmt.rdbms.mysql_flexibleservers import MySQLManagementClient

from ..core.framework import AzureResource, Category, Impact, Rule
from ..core.provider import AzurePagedLister
from ..core.scanner import AzureScanner
from .common import caf_naming_rule, diagnostics_rule, enum_text, identity_fields, sku_name, sku_rule, sla_rule, tags_rule

ZONE_REDUNDANT = "ZoneRedundant"
SAME_ZONE = "SameZone"


@dataclass(frozen=True)
class MySQLServer(AzureResource):
    sku: Optional[str] = None
    high_availability_mode: str = "Disabled"
    public_network_access: str = "Enabled"

    @classmethod
    def from_sdk(cls, server: Any) -> "MySQLServer":
        high_availability = server.high_availability
        network = server.network
        return cls(
            **identity_fields(server),
            sku=sku_name(server.sku),
            high_availability_mode=(enum_text(high_availability.mode) if high_availability is not None else None)
            or "Disabled",
            public_network_access=(enum_text(network.public_network_access) if network is not None else None)
            or "Enabled",
        )


def mysql_sla(server: MySQLServer) -> str:
    if server.high_availability_mode == ZONE_REDUNDANT:
        return "99.99%"
    if server.high_availability_mode == SAME_ZONE:
        return "99.95%"
    return "99.9%"


class MySQLFlexibleScanner(AzureScanner):
    """Scanner for MySQL flexible servers"""

    service_key = "mysqlf"
    service_name = "MySQL Flexible"
    resource_type = MySQLServer
    azure_type = "Microsoft.DBforMySQL/flexibleServers"

    def create_lister(self, config) -> AzurePagedLister:
        client = config.provider.get_client(MySQLManagementClient, config.subscription_id)
        return AzurePagedLister(
            lambda group, **kwargs: client.servers.list_by_resource_group(resource_group_name=group, **kwargs),
            MySQLServer.from_sdk,
            cancellation=config.cancellation,
        )

    def get_rules(self) -> List[Rule]:
        return [
            diagnostics_rule("mysqlf-001", self.service_name,
                             "https://learn.microsoft.com/en-us/azure/mysql/flexible-server/tutorial-query-performance-insights#set-up-diagnostics"),
            Rule(
                id="mysqlf-002",
                category=Category.HIGH_AVAILABILITY,
                impact=Impact.HIGH,
                recommendation="MySQL should have zone redundant high availability enabled",
                url="https://learn.microsoft.com/en-us/azure/mysql/flexible-server/concepts-high-availability",
                evaluate=lambda server, scan_context: (server.high_availability_mode != ZONE_REDUNDANT, ""),
            ),
            sla_rule("mysqlf-003", self.service_name,
                     "https://azure.microsoft.com/en-us/support/legal/sla/mysql", mysql_sla),
            Rule(
                id="mysqlf-004",
                category=Category.SECURITY,
                impact=Impact.HIGH,
                recommendation="MySQL should have public network access disabled",
                url="https://learn.microsoft.com/en-us/azure/mysql/flexible-server/concepts-networking-private",
                evaluate=lambda server, scan_context: (server.public_network_access != "Disabled", ""),
            ),
            sku_rule("mysqlf-005", self.service_name,
                     "https://azure.microsoft.com/en-us/pricing/details/mysql/flexible-server/"),
            caf_naming_rule("mysqlf-006", self.service_name, "mysql"),
            tags_rule("mysqlf-007", self.service_name),
        ]
