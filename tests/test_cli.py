import json

import pytest
from click.testing import CliRunner

from azure_resource_scanner import cli
from azure_resource_scanner.core.framework import Subscription
from azure_resource_scanner.core.registry import ScannerRegistry

from conftest import FakeProvider, make_scanner, widget


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ("AZURE_TENANT_ID", "AZURE_CLIENT_ID", "AZURE_CLIENT_SECRET", "AZURE_SUBSCRIPTION_ID"):
        monkeypatch.delenv(name, raising=False)


class StubAzureProvider(FakeProvider):
    instances = []
    failing_group_listing = {}
    subscription_listing_error = None

    def __init__(self, tenant_id=None, client_id=None, client_secret=None, diagnostics_resource_types=()):
        super().__init__()
        self.diagnostics_resource_types = list(diagnostics_resource_types)
        StubAzureProvider.instances.append(self)

    def list_subscriptions(self):
        if StubAzureProvider.subscription_listing_error is not None:
            raise StubAzureProvider.subscription_listing_error
        return [Subscription("sub-1", "Production"), Subscription("sub-2", "Staging")]

    def list_resource_groups(self, subscription_id, cancellation=None):
        if subscription_id in StubAzureProvider.failing_group_listing:
            raise StubAzureProvider.failing_group_listing[subscription_id]
        return ["rg-a", "rg-b"]


@pytest.fixture
def fake_azure(monkeypatch):
    registry = ScannerRegistry(register_defaults=False)
    registry.register_scanner(make_scanner("alpha", {"rg-a": [[widget("a")]], "rg-b": [[widget("b")]]}))
    StubAzureProvider.instances = []
    monkeypatch.setattr(StubAzureProvider, "failing_group_listing", {})
    monkeypatch.setattr(StubAzureProvider, "subscription_listing_error", None)
    monkeypatch.setattr(cli, "AzureProvider", StubAzureProvider)
    monkeypatch.setattr(cli, "ScannerRegistry", lambda: registry)
    return registry


def test_services_lists_default_scanners():
    result = CliRunner().invoke(cli.cli, ["services"])

    assert result.exit_code == 0
    assert "Supported Azure services:" in result.output
    assert "  redis: Redis" in result.output
    assert "  mysqlf: MySQL Flexible" in result.output


def test_rules_markdown():
    result = CliRunner().invoke(cli.cli, ["rules", "--service", "redis", "--markdown"])

    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert lines[0] == "| Id | Service | Category | Impact | Recommendation | Learn |"
    assert len(lines) == 2 + 9
    assert lines[2].startswith("| redis-001 | Redis | Monitoring and Alerting | Low |")


def test_rules_unknown_service():
    result = CliRunner().invoke(cli.cli, ["rules", "--service", "bogus"])

    assert result.exit_code == 1


def test_invalid_configuration_exits_before_scanning(fake_azure):
    result = CliRunner().invoke(cli.cli, ["scan", "--max-workers", "0", "--quiet"])

    assert result.exit_code == 1
    assert StubAzureProvider.instances == []


def test_scan_all_subscriptions_to_file(fake_azure, tmp_path):
    output_file = tmp_path / "report.json"

    result = CliRunner().invoke(cli.cli, ["scan", "--quiet", "--output", str(output_file)])

    assert result.exit_code == 0, result.output
    report = json.loads(output_file.read_text(encoding="utf-8"))
    assert report["summary"]["status"] == "completed"
    assert report["summary"]["total_resources"] == 4
    assert report["metadata"]["subscriptions"] == ["sub-1", "sub-2"]
    assert [(item["subscription_id"], item["resource_group"]) for item in report["results"]] == [
        ("sub-1", "rg-a"), ("sub-1", "rg-b"), ("sub-2", "rg-a"), ("sub-2", "rg-b"),
    ]
    assert report["results"][0]["subscription_name"] == "Production"


def test_scan_selected_resource_group_to_stdout(fake_azure):
    result = CliRunner().invoke(cli.cli, ["scan", "--quiet", "-s", "sub-2", "-g", "rg-b"])

    assert result.exit_code == 0
    report = json.loads(result.output)
    assert [item["service_name"] for item in report["results"]] == ["b"]
    assert report["metadata"]["subscriptions"] == ["sub-2"]


def test_partial_run_exits_non_zero(monkeypatch, fake_azure, tmp_path):
    registry = ScannerRegistry(register_defaults=False)
    registry.register_scanner(make_scanner("alpha", {"rg-a": [[widget("a")]], "rg-b": [RuntimeError("boom")]}))
    monkeypatch.setattr(cli, "ScannerRegistry", lambda: registry)

    output_file = tmp_path / "report.json"

    result = CliRunner().invoke(cli.cli, ["scan", "--quiet", "-s", "sub-1", "-o", str(output_file)])

    assert result.exit_code == 1
    report = json.loads(output_file.read_text(encoding="utf-8"))
    assert report["summary"]["status"] == "partial"
    assert report["failures"][0]["resource_group"] == "rg-b"


def test_resource_group_listing_failure_keeps_other_subscriptions(monkeypatch, fake_azure, tmp_path):
    monkeypatch.setattr(StubAzureProvider, "failing_group_listing", {"sub-1": PermissionError("no RBAC on sub-1")})
    output_file = tmp_path / "report.json"

    result = CliRunner().invoke(cli.cli, ["scan", "--quiet", "-o", str(output_file)])

    assert result.exit_code == 1
    report = json.loads(output_file.read_text(encoding="utf-8"))
    assert report["summary"]["status"] == "partial"
    assert {item["subscription_id"] for item in report["results"]} == {"sub-2"}
    assert report["summary"]["total_resources"] == 2
    assert report["failures"] == [{
        "subscription_id": "sub-1",
        "resource_group": None,
        "scanner": None,
        "error_type": "PermissionError",
        "error": "no RBAC on sub-1",
    }]


def test_named_subscriptions_scan_without_subscription_listing(monkeypatch, fake_azure, tmp_path):
    monkeypatch.setattr(StubAzureProvider, "subscription_listing_error", PermissionError("no tenant read"))
    output_file = tmp_path / "report.json"

    result = CliRunner().invoke(cli.cli, ["scan", "--quiet", "-s", "sub-9", "-o", str(output_file)])

    assert result.exit_code == 0, result.output
    report = json.loads(output_file.read_text(encoding="utf-8"))
    assert report["metadata"]["subscriptions"] == ["sub-9"]
    assert [(item["subscription_id"], item["subscription_name"]) for item in report["results"]] == [
        ("sub-9", ""), ("sub-9", ""),
    ]
