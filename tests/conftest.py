import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional

import pytest

from azure_resource_scanner.core.framework import AzureResource, Category, Impact, Rule
from azure_resource_scanner.core.scanner import AzureScanner
from azure_resource_scanner.scanners.common import diagnostics_rule


@dataclass(frozen=True)
class Widget(AzureResource):
    pass


def widget(name: str, tags: Optional[Dict[str, str]] = None, location: str = "westeurope") -> Widget:
    return Widget(
        id=f"/subscriptions/sub/resourceGroups/rg/providers/Test.Widgets/widgets/{name}",
        name=name,
        type="Test.Widgets/widgets",
        location=location,
        tags=tags or {},
    )


def has_tag_rule() -> Rule:
    return Rule(
        id="has-tag",
        category=Category.GOVERNANCE,
        impact=Impact.LOW,
        recommendation="Widget should have tags",
        url="https://example.com/tags",
        evaluate=lambda resource, scan_context: (len(resource.tags) == 0, ""),
    )


class FakeLister:
    """Serves pre-built pages per resource group; an Exception entry is raised"""

    def __init__(self, pages_by_group, on_call=None):
        self.pages_by_group = pages_by_group
        self.on_call = on_call
        self.calls = []

    def list_page(self, resource_group, continuation_token=None):
        self.calls.append((resource_group, continuation_token))
        if self.on_call is not None:
            self.on_call(resource_group)
        pages = self.pages_by_group.get(resource_group, [[]])
        index = int(continuation_token) if continuation_token else 0
        page = pages[index]
        if isinstance(page, Exception):
            raise page
        next_token = str(index + 1) if index + 1 < len(pages) else None
        return list(page), next_token


def make_scanner(service_key, pages_by_group=None, on_call=None, service_name=None):
    """Scanner variant over Widget resources backed by a FakeLister"""

    class FakeScanner(AzureScanner):
        resource_type = Widget

        def get_rules(self):
            return [
                has_tag_rule(),
                diagnostics_rule("widget-001", "Widget", "https://example.com/diagnostics"),
            ]

        def create_lister(self, config):
            hook = (lambda group: on_call(group, config)) if on_call else None
            return FakeLister(pages_by_group or {}, on_call=hook)

    FakeScanner.service_key = service_key
    FakeScanner.service_name = service_name or service_key
    FakeScanner.__name__ = f"FakeScanner_{service_key}"
    return FakeScanner


class FakeDiagnosticsLister:
    def __init__(self, settings=None, error=None):
        self.settings = settings or {}
        self.error = error
        self.calls = []

    def list_all(self, subscription_id):
        self.calls.append(subscription_id)
        if self.error is not None:
            raise self.error
        return dict(self.settings)


class FakeProvider:
    credential = None

    def __init__(self, diagnostics=None, failing=None, groups=None, failing_groups=None):
        self.diagnostics = diagnostics or {}
        self.failing = failing or {}
        self.groups = groups or {}
        self.failing_groups = failing_groups or {}

    def get_diagnostics_lister(self, subscription_id, cancellation=None):
        return FakeDiagnosticsLister(self.diagnostics.get(subscription_id), self.failing.get(subscription_id))

    def list_resource_groups(self, subscription_id, cancellation=None):
        if subscription_id in self.failing_groups:
            raise self.failing_groups[subscription_id]
        return list(self.groups.get(subscription_id, []))


class ConcurrencyProbe:
    """Records the peak number of simultaneous lister calls"""

    def __init__(self, delay=0.05):
        self.delay = delay
        self.active = 0
        self.peak = 0
        self._lock = threading.Lock()

    def __call__(self, group, config):
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
        time.sleep(self.delay)
        with self._lock:
            self.active -= 1


def cancel_on_call(group, config):
    config.cancellation.cancel()


@pytest.fixture
def provider():
    return FakeProvider()


class FakePageIterator:
    """Mimics azure.core.paging.PageIterator over pre-built pages"""

    def __init__(self, pages, continuation_token=None):
        self.pages = pages
        self.index = int(continuation_token) if continuation_token else 0
        self.continuation_token = continuation_token

    def __iter__(self):
        return self

    def __next__(self):
        if self.index >= len(self.pages):
            raise StopIteration
        page = self.pages[self.index]
        self.index += 1
        self.continuation_token = str(self.index) if self.index < len(self.pages) else None
        if isinstance(page, Exception):
            raise page
        return iter(page)


class FakeItemPaged:
    """Mimics azure.core.paging.ItemPaged"""

    def __init__(self, *pages):
        self.pages = list(pages)
        self.tokens = []

    def by_page(self, continuation_token=None):
        self.tokens.append(continuation_token)
        return FakePageIterator(self.pages, continuation_token)

    def __iter__(self):
        for page in self.pages:
            if isinstance(page, Exception):
                raise page
            yield from page


class FakeClientProvider:
    """Hands out a pre-built management client per client class name"""

    credential = None

    def __init__(self, clients):
        self.clients = clients
        self.requests = []

    def get_client(self, client_class, subscription_id):
        self.requests.append((client_class.__name__, subscription_id))
        return self.clients[client_class.__name__]
