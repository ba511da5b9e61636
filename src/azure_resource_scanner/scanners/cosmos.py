"""
Cosmos DB account scanner
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from azure.mgmt.cosmosdb import CosmosDBManagementClient

from ..core.framework import AzureResource, Category, Impact, Rule
from ..core.provider import AzurePagedLister
from ..core.scanner import AzureScanner
from .common import (caf_naming_rule, diagnostics_rule, enum_text, identity_fields,
                     private_endpoints_rule, sku_rule, sla_rule, tags_rule)


@dataclass(frozen=True)
class CosmosDBAccount(AzureResource):
    # One entry per replicated location: is that location zone redundant
    zone_redundant_locations: Tuple[bool, ...] = ()
    private_endpoints: int = 0
    sku: Optional[str] = None
    local_auth_disabled: bool = False
    key_based_metadata_write_disabled: bool = False

    @classmethod
    def from_sdk(cls, account: Any) -> "CosmosDBAccount":
        return cls(
            **identity_fields(account),
            zone_redundant_locations=tuple(bool(location.is_zone_redundant)
                                           for location in account.locations or []),
            private_endpoints=len(account.private_endpoint_connections or []),
            sku=enum_text(account.database_account_offer_type),
            local_auth_disabled=bool(account.disable_local_auth),
            key_based_metadata_write_disabled=bool(account.disable_key_based_metadata_write_access),
        )

    @property
    def fully_zone_redundant(self) -> bool:
        """Zone redundant in every location, with at least two locations"""
        locations = self.zone_redundant_locations
        return len(locations) >= 2 and all(locations)


def cosmos_sla(account: CosmosDBAccount) -> str:
    if account.fully_zone_redundant:
        return "99.999%"
    if any(account.zone_redundant_locations):
        return "99.995%"
    return "99.99%"


class CosmosDBScanner(AzureScanner):
    """Scanner for Cosmos DB accounts"""

    service_key = "cosmos"
    service_name = "CosmosDB"
    resource_type = CosmosDBAccount
    azure_type = "Microsoft.DocumentDB/databaseAccounts"

    def create_lister(self, config) -> AzurePagedLister:
        client = config.provider.get_client(CosmosDBManagementClient, config.subscription_id)
        return AzurePagedLister(
            lambda group, **kwargs: client.database_accounts.list_by_resource_group(resource_group_name=group, **kwargs),
            CosmosDBAccount.from_sdk,
            cancellation=config.cancellation,
        )

    def get_rules(self) -> List[Rule]:
        return [
            diagnostics_rule("cosmos-001", self.service_name,
                             "https://learn.microsoft.com/en-us/azure/cosmos-db/monitor-resource-logs"),
            Rule(
                id="cosmos-002",
                category=Category.HIGH_AVAILABILITY,
                impact=Impact.HIGH,
                recommendation="CosmosDB should have availability zones enabled",
                url="https://learn.microsoft.com/en-us/azure/cosmos-db/high-availability",
                evaluate=lambda account, scan_context: (not account.fully_zone_redundant, ""),
            ),
            sla_rule("cosmos-003", self.service_name,
                     "https://learn.microsoft.com/en-us/azure/cosmos-db/high-availability#slas", cosmos_sla),
            private_endpoints_rule("cosmos-004", self.service_name,
                                   "https://learn.microsoft.com/en-us/azure/cosmos-db/how-to-configure-private-endpoints"),
            sku_rule("cosmos-005", self.service_name,
                     "https://azure.microsoft.com/en-us/pricing/details/cosmos-db/autoscale-provisioned/"),
            caf_naming_rule("cosmos-006", self.service_name, "cosmos"),
            tags_rule("cosmos-007", self.service_name),
            Rule(
                id="cosmos-008",
                category=Category.SECURITY,
                impact=Impact.HIGH,
                recommendation="CosmosDB should have local authentication disabled",
                url="https://learn.microsoft.com/en-us/azure/cosmos-db/how-to-setup-rbac#disable-local-auth",
                evaluate=lambda account, scan_context: (not account.local_auth_disabled, ""),
            ),
            Rule(
                id="cosmos-009",
                category=Category.SECURITY,
                impact=Impact.HIGH,
                recommendation=("CosmosDB: disable write operations on metadata resources "
                                "(databases, containers, throughput) via account keys"),
                url=("https://learn.microsoft.com/en-us/azure/cosmos-db/"
                     "role-based-access-control#set-via-arm-template"),
                evaluate=lambda account, scan_context: (not account.key_based_metadata_write_disabled, ""),
            ),
        ]
