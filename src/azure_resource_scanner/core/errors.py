"""
Exception hierarchy for the scanner core
"""


class ScannerError(Exception):
    """Base class for all scanner errors"""


class DuplicateRuleError(ScannerError, ValueError):
    """Two rules in one catalog share an id"""


class ResourceTypeMismatch(ScannerError, TypeError):
    """A catalog was handed a resource of the wrong shape.

    This is a wiring defect, never a runtime data condition, so the
    orchestrator lets it propagate instead of recording a pair failure.
    """


class ScanContextError(ScannerError):
    """Building the scan context for a subscription failed"""

    def __init__(self, subscription_id: str, message: str):
        super().__init__(f"Failed to build scan context for subscription {subscription_id}: {message}")
        self.subscription_id = subscription_id


class ScanCancelled(ScannerError):
    """The run was cancelled or its deadline passed"""


class UnknownServiceError(ScannerError, KeyError):
    """No scanner is registered under the requested service name"""

    def __str__(self):
        return f"Unknown service: {self.args[0]}"
