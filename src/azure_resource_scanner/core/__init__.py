"""Core framework components for Azure Resource Scanner"""

from .framework import AzureResource, AzureServiceResult, Rule, RuleCatalog, RuleOutcome, RunResult
from .context import ScanContext, build_scan_context
from .engine import RuleEngine, ScanEngine
from .registry import ScannerRegistry
from .scanner import AzureScanner
from .output import OutputEngine

__all__ = [
    "AzureResource",
    "AzureScanner",
    "AzureServiceResult",
    "Rule",
    "RuleCatalog",
    "RuleOutcome",
    "RunResult",
    "ScanContext",
    "build_scan_context",
    "RuleEngine",
    "ScanEngine",
    "ScannerRegistry",
    "OutputEngine",
]
