"""
Core data model shared by rules, scanners and the scan engine
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, NamedTuple, Optional, TYPE_CHECKING

from .errors import DuplicateRuleError

if TYPE_CHECKING:
    from .cancellation import CancellationToken
    from .context import ScanContext


class Category(str, Enum):
    """Best-practice area a rule belongs to"""

    HIGH_AVAILABILITY = "High Availability"
    SECURITY = "Security"
    GOVERNANCE = "Governance"
    MONITORING_AND_ALERTING = "Monitoring and Alerting"
    SCALABILITY = "Scalability"
    DISASTER_RECOVERY = "Disaster Recovery"


class Impact(str, Enum):
    """How much a broken rule matters"""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class RuleOutcome(NamedTuple):
    """Result of evaluating one rule against one resource"""

    triggered: bool
    detail: str = ""


@dataclass(frozen=True)
class AzureResource:
    """Identity fields every scanned resource shape carries.

    Service shapes subclass this and give every extra field a default, so
    an absent SDK value always lands on a defined negative.
    """

    id: str
    name: str
    type: str
    location: str
    tags: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Rule:
    """Declarative best-practice rule.

    ``evaluate`` must be a pure function of the resource and the scan
    context: no network calls, no mutation.
    """

    id: str
    category: Category
    impact: Impact
    recommendation: str
    url: str
    evaluate: Callable[[Any, "ScanContext"], tuple] = field(compare=False, repr=False)

    def metadata(self) -> Dict[str, str]:
        """Stable rule fields for reports and documentation"""
        return {
            "id": self.id,
            "category": self.category.value,
            "impact": self.impact.value,
            "recommendation": self.recommendation,
            "url": self.url,
        }


class RuleCatalog(Mapping[str, Rule]):
    """Read-only set of rules bound to one resource shape.

    Iteration is always sorted by rule id so evaluation and output are
    reproducible.
    """

    def __init__(self, resource_type: type, rules: Iterable[Rule]):
        self.resource_type = resource_type
        collected: Dict[str, Rule] = {}
        for rule in rules:
            if rule.id in collected:
                raise DuplicateRuleError(
                    f"Duplicate rule id {rule.id!r} in catalog for {resource_type.__name__}"
                )
            collected[rule.id] = rule
        self._rules = MappingProxyType(dict(sorted(collected.items())))

    def __getitem__(self, rule_id: str) -> Rule:
        return self._rules[rule_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self):
        return f"RuleCatalog({self.resource_type.__name__}, {list(self._rules)})"


@dataclass(frozen=True)
class Subscription:
    """Azure subscription targeted by a scan"""

    id: str
    name: str = ""


@dataclass(frozen=True)
class ScannerConfig:
    """Binds a scanner to one subscription for the duration of a run"""

    subscription_id: str
    subscription_name: str = ""
    credential: Any = None
    cancellation: Optional["CancellationToken"] = None
    provider: Any = None


@dataclass(frozen=True)
class AzureServiceResult:
    """Per-rule outcomes for one scanned resource plus its identity"""

    subscription_id: str
    subscription_name: str
    resource_group: str
    service_name: str
    resource_type: str
    location: str
    rules: Dict[str, RuleOutcome]

    def triggered_rules(self) -> List[str]:
        return [rule_id for rule_id, outcome in self.rules.items() if outcome.triggered]

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary for JSON output"""
        return {
            "subscription_id": self.subscription_id,
            "subscription_name": self.subscription_name,
            "resource_group": self.resource_group,
            "service_name": self.service_name,
            "resource_type": self.resource_type,
            "location": self.location,
            "rules": {
                rule_id: {"triggered": outcome.triggered, "detail": outcome.detail}
                for rule_id, outcome in self.rules.items()
            },
        }


@dataclass(frozen=True)
class ScanFailure:
    """A unit of work that could not be evaluated.

    ``resource_group`` and ``scanner`` are None when the whole subscription
    failed (scan context build).
    """

    subscription_id: str
    resource_group: Optional[str]
    scanner: Optional[str]
    error: BaseException = field(compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subscription_id": self.subscription_id,
            "resource_group": self.resource_group,
            "scanner": self.scanner,
            "error_type": type(self.error).__name__,
            "error": str(self.error),
        }


class RunStatus(str, Enum):
    COMPLETED = "completed"
    PARTIAL = "partial"
    CANCELLED = "cancelled"


@dataclass
class RunResult:
    """Merged output of one scan run"""

    results: List[AzureServiceResult] = field(default_factory=list)
    failures: List[ScanFailure] = field(default_factory=list)
    status: RunStatus = RunStatus.COMPLETED

    @property
    def succeeded(self) -> bool:
        return self.status == RunStatus.COMPLETED
