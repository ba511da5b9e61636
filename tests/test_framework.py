import dataclasses

import pytest

from azure_resource_scanner.core.errors import DuplicateRuleError
from azure_resource_scanner.core.framework import (AzureServiceResult, Category, Impact, Rule, RuleCatalog,
                                                   RuleOutcome, ScanFailure)
from azure_resource_scanner.core.registry import ScannerRegistry

from conftest import Widget, has_tag_rule


def _rule(rule_id):
    return Rule(
        id=rule_id,
        category=Category.SECURITY,
        impact=Impact.HIGH,
        recommendation=f"rule {rule_id}",
        url="https://example.com",
        evaluate=lambda resource, scan_context: (False, ""),
    )


def test_catalog_rejects_duplicate_ids():
    with pytest.raises(DuplicateRuleError, match="dup-001"):
        RuleCatalog(Widget, [_rule("dup-001"), _rule("dup-002"), _rule("dup-001")])


def test_catalog_iterates_sorted_by_id():
    catalog = RuleCatalog(Widget, [_rule("b-002"), _rule("a-010"), _rule("b-001")])

    assert list(catalog) == ["a-010", "b-001", "b-002"]
    assert len(catalog) == 3
    assert catalog["b-001"].recommendation == "rule b-001"


def test_catalog_is_read_only():
    catalog = RuleCatalog(Widget, [has_tag_rule()])

    with pytest.raises(TypeError):
        catalog["other"] = _rule("other")


def test_rule_is_immutable():
    rule = has_tag_rule()

    with pytest.raises(dataclasses.FrozenInstanceError):
        rule.id = "changed"


def test_rule_metadata_exposes_stable_fields():
    assert has_tag_rule().metadata() == {
        "id": "has-tag",
        "category": "Governance",
        "impact": "Low",
        "recommendation": "Widget should have tags",
        "url": "https://example.com/tags",
    }


def test_registered_catalogs_have_unique_ids():
    registry = ScannerRegistry()
    seen = set()
    for scanner_class in registry.get_all_scanners():
        catalog = scanner_class().catalog
        assert len(catalog) > 0
        assert not seen & set(catalog)
        seen |= set(catalog)


def test_rule_outcome_compares_with_plain_tuple():
    assert RuleOutcome(True, "") == (True, "")
    assert RuleOutcome(False) == (False, "")


def test_result_to_dict():
    result = AzureServiceResult(
        subscription_id="sub",
        subscription_name="Production",
        resource_group="rg",
        service_name="cosmos-orders",
        resource_type="Microsoft.DocumentDB/databaseAccounts",
        location="westeurope",
        rules={"cosmos-001": RuleOutcome(True, ""), "cosmos-003": RuleOutcome(False, "99.99%")},
    )

    data = result.to_dict()

    assert data["service_name"] == "cosmos-orders"
    assert data["rules"]["cosmos-003"] == {"triggered": False, "detail": "99.99%"}
    assert result.triggered_rules() == ["cosmos-001"]


def test_failure_to_dict_names_error_type():
    failure = ScanFailure("sub", None, None, RuntimeError("boom"))

    assert failure.to_dict() == {
        "subscription_id": "sub",
        "resource_group": None,
        "scanner": None,
        "error_type": "RuntimeError",
        "error": "boom",
    }
