"""
Rule builders and SDK conversion helpers shared by service scanners
"""

from typing import Any, Callable, Dict, Optional

from ..core.framework import Category, Impact, Rule

CAF_NAMING_URL = ("https://learn.microsoft.com/en-us/azure/cloud-adoption-framework/ready/"
                  "azure-best-practices/resource-abbreviations")
TAGS_URL = "https://learn.microsoft.com/en-us/azure/azure-resource-manager/management/tag-resources?tabs=json"


def enum_text(value: Any) -> Optional[str]:
    """Plain string for SDK enum members, strings or None"""
    if value is None:
        return None
    return str(getattr(value, "value", value))


def identity_fields(sdk_resource: Any) -> Dict[str, Any]:
    """Identity fields shared by every tracked ARM resource"""
    return {
        "id": sdk_resource.id or "",
        "name": sdk_resource.name or "",
        "type": sdk_resource.type or "",
        "location": sdk_resource.location or "",
        "tags": dict(sdk_resource.tags or {}),
    }


def sku_name(sku: Any) -> Optional[str]:
    return enum_text(sku.name) if sku is not None else None


def diagnostics_rule(rule_id: str, service_name: str, url: str) -> Rule:
    return Rule(
        id=rule_id,
        category=Category.MONITORING_AND_ALERTING,
        impact=Impact.LOW,
        recommendation=f"{service_name} should have diagnostic settings enabled",
        url=url,
        evaluate=lambda resource, scan_context: (not scan_context.has_diagnostics(resource.id), ""),
    )


def private_endpoints_rule(rule_id: str, service_name: str, url: str) -> Rule:
    return Rule(
        id=rule_id,
        category=Category.SECURITY,
        impact=Impact.HIGH,
        recommendation=f"{service_name} should have private endpoints enabled",
        url=url,
        evaluate=lambda resource, scan_context: (resource.private_endpoints == 0, ""),
    )


def sla_rule(rule_id: str, service_name: str, url: str, sla: Callable[[Any], str]) -> Rule:
    """Informational rule reporting the SLA the resource configuration earns"""
    return Rule(
        id=rule_id,
        category=Category.HIGH_AVAILABILITY,
        impact=Impact.HIGH,
        recommendation=f"{service_name} should have a SLA",
        url=url,
        evaluate=lambda resource, scan_context: (False, sla(resource)),
    )


def sku_rule(rule_id: str, service_name: str, url: str) -> Rule:
    return Rule(
        id=rule_id,
        category=Category.HIGH_AVAILABILITY,
        impact=Impact.HIGH,
        recommendation=f"{service_name} SKU",
        url=url,
        evaluate=lambda resource, scan_context: (False, resource.sku or ""),
    )


def caf_naming_rule(rule_id: str, service_name: str, prefix: str) -> Rule:
    return Rule(
        id=rule_id,
        category=Category.GOVERNANCE,
        impact=Impact.LOW,
        recommendation=f"{service_name} Name should comply with naming conventions",
        url=CAF_NAMING_URL,
        evaluate=lambda resource, scan_context: (not resource.name.startswith(prefix), ""),
    )


def tags_rule(rule_id: str, service_name: str) -> Rule:
    return Rule(
        id=rule_id,
        category=Category.GOVERNANCE,
        impact=Impact.LOW,
        recommendation=f"{service_name} should have tags",
        url=TAGS_URL,
        evaluate=lambda resource, scan_context: (len(resource.tags) == 0, ""),
    )
