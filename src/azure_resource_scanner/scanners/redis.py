"""
Azure Cache for Redis scanner
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from azure.mgmt.redis import RedisManagementClient

from ..core.framework import AzureResource, Category, Impact, Rule
from ..core.provider import AzurePagedLister
from ..core.scanner import AzureScanner
from .common import (caf_naming_rule, diagnostics_rule, enum_text, identity_fields,
                     private_endpoints_rule, sku_name, sku_rule, sla_rule, tags_rule)

MINIMUM_TLS_VERSION = "1.2"


@dataclass(frozen=True)
class RedisCache(AzureResource):
    sku: Optional[str] = None
    zones: Tuple[str, ...] = ()
    private_endpoints: int = 0
    non_ssl_port_enabled: bool = False
    minimum_tls_version: Optional[str] = None

    @classmethod
    def from_sdk(cls, cache: Any) -> "RedisCache":
        return cls(
            **identity_fields(cache),
            sku=sku_name(cache.sku),
            zones=tuple(cache.zones or ()),
            private_endpoints=len(cache.private_endpoint_connections or []),
            non_ssl_port_enabled=bool(cache.enable_non_ssl_port),
            minimum_tls_version=enum_text(cache.minimum_tls_version),
        )


def redis_sla(cache: RedisCache) -> str:
    if cache.sku == "Basic":
        return "None"
    if len(cache.zones) > 1:
        return "99.95%"
    return "99.9%"


class RedisScanner(AzureScanner):
    """Scanner for Azure Cache for Redis"""

    service_key = "redis"
    service_name = "Redis"
    resource_type = RedisCache
    azure_type = "Microsoft.Cache/Redis"

    def create_lister(self, config) -> AzurePagedLister:
        client = config.provider.get_client(RedisManagementClient, config.subscription_id)
        return AzurePagedLister(
            lambda group, **kwargs: client.redis.list_by_resource_group(resource_group_name=group, **kwargs),
            RedisCache.from_sdk,
            cancellation=config.cancellation,
        )

    def get_rules(self) -> List[Rule]:
        return [
            diagnostics_rule("redis-001", self.service_name,
                             "https://learn.microsoft.com/en-us/azure/azure-cache-for-redis/cache-monitor-diagnostic-settings"),
            Rule(
                id="redis-002",
                category=Category.HIGH_AVAILABILITY,
                impact=Impact.HIGH,
                recommendation="Redis should have availability zones enabled",
                url="https://learn.microsoft.com/en-us/azure/azure-cache-for-redis/cache-how-to-zone-redundancy",
                evaluate=lambda cache, scan_context: (len(cache.zones) <= 1, ""),
            ),
            sla_rule("redis-003", self.service_name,
                     "https://www.azure.cn/en-us/support/sla/cache/", redis_sla),
            private_endpoints_rule("redis-004", self.service_name,
                                   "https://learn.microsoft.com/en-us/azure/azure-cache-for-redis/cache-private-link"),
            sku_rule("redis-005", self.service_name,
                     "https://azure.microsoft.com/en-gb/pricing/details/cache/"),
            caf_naming_rule("redis-006", self.service_name, "redis"),
            tags_rule("redis-007", self.service_name),
            Rule(
                id="redis-008",
                category=Category.SECURITY,
                impact=Impact.HIGH,
                recommendation="Redis should not enable non SSL ports",
                url="https://learn.microsoft.com/en-us/azure/azure-cache-for-redis/cache-configure#access-ports",
                evaluate=lambda cache, scan_context: (cache.non_ssl_port_enabled, ""),
            ),
            Rule(
                id="redis-009",
                category=Category.SECURITY,
                impact=Impact.LOW,
                recommendation="Redis should enforce TLS >= 1.2",
                url="https://learn.microsoft.com/en-us/azure/azure-cache-for-redis/cache-remove-tls-10-11",
                # An unset minimum leaves older protocol versions accepted
                evaluate=lambda cache, scan_context: (
                    cache.minimum_tls_version != MINIMUM_TLS_VERSION, cache.minimum_tls_version or ""
                ),
            ),
        ]
