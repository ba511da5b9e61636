"""
Account-wide cross-reference data shared by every rule evaluation
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from .cancellation import CancellationToken
from .errors import ScanCancelled, ScanContextError
from .listers import DiagnosticsSettingsLister

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanContext:
    """Read-only side data for one subscription's run"""

    subscription_id: str
    diagnostics_settings: Mapping[str, bool] = field(default_factory=lambda: MappingProxyType({}))
    features: Mapping[str, bool] = field(default_factory=lambda: MappingProxyType({}))

    def has_diagnostics(self, resource_id: Optional[str]) -> bool:
        """True when the resource appears in the diagnostics index (any letter case)"""
        if not resource_id:
            return False
        return resource_id.lower() in self.diagnostics_settings

    def feature_enabled(self, name: str) -> bool:
        return bool(self.features.get(name, False))


def build_scan_context(subscription_id: str,
                       diagnostics_lister: DiagnosticsSettingsLister,
                       features: Optional[Mapping[str, bool]] = None,
                       cancellation: Optional[CancellationToken] = None) -> ScanContext:
    """Populate the scan context for a subscription with a single listing pass.

    Any listing failure aborts the subscription: rules consulting the
    context would otherwise report false negatives.
    """
    if cancellation is not None:
        cancellation.raise_if_cancelled()

    try:
        listed = diagnostics_lister.list_all(subscription_id)
    except ScanCancelled:
        raise
    except Exception as e:
        raise ScanContextError(subscription_id, str(e)) from e

    diagnostics = {resource_id.lower(): bool(enabled) for resource_id, enabled in listed.items()}
    logger.debug(f"Subscription {subscription_id}: {len(diagnostics)} resources with diagnostic settings")

    return ScanContext(
        subscription_id=subscription_id,
        diagnostics_settings=MappingProxyType(diagnostics),
        features=MappingProxyType(dict(features or {})),
    )
