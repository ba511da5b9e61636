"""
Collaborator interfaces the scanner core depends on
"""

from typing import Any, List, Mapping, Optional, Protocol, Tuple


class ResourceLister(Protocol):
    """Paginated listing of one resource type within a resource group.

    Implementations either return data or raise; an empty page with a
    continuation token of None means the listing is exhausted.
    """

    def list_page(self, resource_group: str,
                  continuation_token: Optional[str] = None) -> Tuple[List[Any], Optional[str]]:
        ...


class DiagnosticsSettingsLister(Protocol):
    """Account-wide listing of which resources have diagnostic settings"""

    def list_all(self, subscription_id: str) -> Mapping[str, bool]:
        ...
