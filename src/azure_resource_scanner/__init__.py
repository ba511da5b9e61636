"""
Azure Resource Scanner - best-practice review for Azure resources

This package evaluates Azure resources against catalogs of availability,
security, governance and monitoring rules and reports one result per
resource.
"""

__version__ = "1.0.0"

from .core.framework import (AzureResource, AzureServiceResult, Category, Impact, Rule,
                             RuleCatalog, RuleOutcome, RunResult, RunStatus, ScanFailure, Subscription)
from .core.context import ScanContext, build_scan_context
from .core.engine import RuleEngine, ScanEngine
from .core.registry import ScannerRegistry
from .core.scanner import AzureScanner
from .core.output import OutputEngine

__all__ = [
    "AzureResource",
    "AzureScanner",
    "AzureServiceResult",
    "Category",
    "Impact",
    "OutputEngine",
    "Rule",
    "RuleCatalog",
    "RuleEngine",
    "RuleOutcome",
    "RunResult",
    "RunStatus",
    "ScanContext",
    "ScanEngine",
    "ScanFailure",
    "ScannerRegistry",
    "Subscription",
    "build_scan_context",
]
