import pytest

from azure_resource_scanner.core.cancellation import CancellationToken
from azure_resource_scanner.core.context import ScanContext, build_scan_context
from azure_resource_scanner.core.engine import RuleEngine
from azure_resource_scanner.core.errors import ScanCancelled, ScanContextError
from azure_resource_scanner.core.framework import RuleCatalog
from azure_resource_scanner.scanners.common import diagnostics_rule

from conftest import FakeDiagnosticsLister, Widget, widget


def test_lookup_is_case_insensitive():
    lister = FakeDiagnosticsLister({"/Subscriptions/SUB/ResourceGroups/RG/Providers/X/y/Z": True})

    scan_context = build_scan_context("sub", lister)

    assert scan_context.has_diagnostics("/subscriptions/sub/resourcegroups/rg/providers/x/y/z")
    assert scan_context.has_diagnostics("/SUBSCRIPTIONS/SUB/RESOURCEGROUPS/RG/PROVIDERS/X/Y/Z")
    assert lister.calls == ["sub"]


def test_unknown_resource_is_a_definite_negative():
    scan_context = build_scan_context("sub", FakeDiagnosticsLister({}))

    assert scan_context.has_diagnostics("/subscriptions/sub/unknown") is False
    assert scan_context.has_diagnostics(None) is False


def test_listing_failure_aborts_with_context_error():
    cause = ConnectionError("throttled")

    with pytest.raises(ScanContextError) as excinfo:
        build_scan_context("sub-a", FakeDiagnosticsLister(error=cause))

    assert excinfo.value.subscription_id == "sub-a"
    assert excinfo.value.__cause__ is cause


def test_cancelled_token_stops_before_listing():
    token = CancellationToken()
    token.cancel()
    lister = FakeDiagnosticsLister({})

    with pytest.raises(ScanCancelled):
        build_scan_context("sub", lister, cancellation=token)
    assert lister.calls == []


def test_context_is_read_only():
    scan_context = build_scan_context("sub", FakeDiagnosticsLister({"a": True}), features={"defender": True})

    with pytest.raises(TypeError):
        scan_context.diagnostics_settings["b"] = True
    assert scan_context.feature_enabled("defender")
    assert not scan_context.feature_enabled("unknown")


@pytest.mark.parametrize("listed_id", [
    "/subscriptions/sub/resourceGroups/rg/providers/Test.Widgets/widgets/a",
    "/SUBSCRIPTIONS/SUB/RESOURCEGROUPS/RG/PROVIDERS/TEST.WIDGETS/WIDGETS/A",
])
def test_diagnostics_rule_follows_context(listed_id):
    catalog = RuleCatalog(Widget, [diagnostics_rule("widget-001", "Widget", "https://example.com")])
    with_settings = build_scan_context("sub", FakeDiagnosticsLister({listed_id: True}))
    without_settings = ScanContext(subscription_id="sub")

    assert RuleEngine.evaluate(catalog, widget("a"), with_settings) == {"widget-001": (False, "")}
    assert RuleEngine.evaluate(catalog, widget("a"), without_settings) == {"widget-001": (True, "")}


def test_presence_in_index_counts_as_configured():
    resource_id = widget("a").id
    scan_context = build_scan_context("sub", FakeDiagnosticsLister({resource_id.upper(): False}))
    catalog = RuleCatalog(Widget, [diagnostics_rule("widget-001", "Widget", "https://example.com")])

    assert scan_context.has_diagnostics(resource_id)
    assert RuleEngine.evaluate(catalog, widget("a"), scan_context) == {"widget-001": (False, "")}
