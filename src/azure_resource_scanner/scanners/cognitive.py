"""
Cognitive Services account scanner
"""

from dataclasses import dataclass
from typing import Any, List, Optional

from azure.mgmt.cognitiveservices import CognitiveServicesManagementClient

from ..core.framework import AzureResource, Category, Impact, Rule
from ..core.provider import AzurePagedLister
from ..core.scanner import AzureScanner
from .common import (caf_naming_rule, diagnostics_rule, identity_fields, private_endpoints_rule,
                     sku_name, sku_rule, sla_rule, tags_rule)


@dataclass(frozen=True)
class CognitiveAccount(AzureResource):
    kind: Optional[str] = None
    sku: Optional[str] = None
    private_endpoints: int = 0
    local_auth_disabled: bool = False

    @classmethod
    def from_sdk(cls, account: Any) -> "CognitiveAccount":
        properties = account.properties
        return cls(
            **identity_fields(account),
            kind=account.kind,
            sku=sku_name(account.sku),
            private_endpoints=len(properties.private_endpoint_connections or []) if properties else 0,
            local_auth_disabled=bool(properties.disable_local_auth) if properties else False,
        )


class CognitiveScanner(AzureScanner):
    """Scanner for Cognitive Services accounts"""

    service_key = "cog"
    service_name = "Cognitive Service Account"
    resource_type = CognitiveAccount
    azure_type = "Microsoft.CognitiveServices/accounts"

    def create_lister(self, config) -> AzurePagedLister:
        client = config.provider.get_client(CognitiveServicesManagementClient, config.subscription_id)
        return AzurePagedLister(
            lambda group, **kwargs: client.accounts.list_by_resource_group(resource_group_name=group, **kwargs),
            CognitiveAccount.from_sdk,
            cancellation=config.cancellation,
        )

    def get_rules(self) -> List[Rule]:
        return [
            diagnostics_rule("cog-001", self.service_name,
                             "https://learn.microsoft.com/en-us/azure/ai-services/diagnostic-logging"),
            sla_rule("cog-002", self.service_name,
                     "https://www.azure.cn/en-us/support/sla/cognitive-services/index.html",
                     lambda account: "99.9%"),
            private_endpoints_rule("cog-003", self.service_name,
                                   "https://learn.microsoft.com/en-us/azure/ai-services/cognitive-services-virtual-networks"),
            sku_rule("cog-004", self.service_name,
                     "https://learn.microsoft.com/en-us/azure/ai-services/create-account-resource-manager-template"),
            caf_naming_rule("cog-005", self.service_name, "cog"),
            tags_rule("cog-006", self.service_name),
            Rule(
                id="cog-007",
                category=Category.SECURITY,
                impact=Impact.MEDIUM,
                recommendation="Cognitive Service Account should have local authentication disabled",
                url="https://learn.microsoft.com/en-us/azure/ai-services/policy-reference",
                evaluate=lambda account, scan_context: (not account.local_auth_disabled, ""),
            ),
        ]
