"""
Rule evaluation and the scan engine that orchestrates scanners
"""

import logging
import concurrent.futures
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, TYPE_CHECKING

from .cancellation import CancellationToken
from .context import ScanContext, build_scan_context
from .errors import ResourceTypeMismatch, ScanCancelled
from .framework import (AzureServiceResult, RuleCatalog, RuleOutcome, RunResult, RunStatus,
                        ScanFailure, ScannerConfig, Subscription)

if TYPE_CHECKING:
    from .registry import ScannerRegistry
    from .scanner import AzureScanner

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.5


class RuleEngine:
    """Evaluates a rule catalog against a single resource.

    Pure and synchronous: no logging, no I/O, no retries.
    """

    @staticmethod
    def evaluate(catalog: RuleCatalog, resource: Any, scan_context: ScanContext) -> Dict[str, RuleOutcome]:
        if not isinstance(resource, catalog.resource_type):
            raise ResourceTypeMismatch(
                f"Catalog for {catalog.resource_type.__name__} cannot evaluate "
                f"{type(resource).__name__}"
            )

        outcomes: Dict[str, RuleOutcome] = {}
        for rule_id in catalog:
            value = catalog[rule_id].evaluate(resource, scan_context)
            if not (isinstance(value, tuple) and len(value) == 2 and isinstance(value[0], bool)):
                raise ResourceTypeMismatch(f"Rule {rule_id} returned {value!r}, expected (bool, str)")
            outcomes[rule_id] = RuleOutcome(value[0], value[1] or "")
        return outcomes


ScannerFactory = Callable[[], "AzureScanner"]
_PairKey = Tuple[str, str, str]


class ScanEngine:
    """Fans scanners out across subscriptions and resource groups"""

    def __init__(self, azure_provider, registry: "ScannerRegistry"):
        self.azure_provider = azure_provider
        self.registry = registry

    def run_scan(self, subscriptions: Sequence[Subscription],
                 resource_groups: Optional[Mapping[str, Sequence[str]]] = None,
                 scanners: Optional[Sequence[ScannerFactory]] = None,
                 max_workers: int = 10,
                 cancellation: Optional[CancellationToken] = None) -> RunResult:
        """Run every scanner against every resource group of every subscription.

        Failures of one (scanner, resource group) pair are recorded and do
        not affect siblings. A scan context failure skips the whole
        subscription. Without ``resource_groups`` every group of each
        subscription is listed through the provider, and a listing failure
        skips that subscription the same way. When cancelled, results of
        pairs that already finished are kept and the status is CANCELLED.
        """
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        if scanners is None:
            scanners = self.registry.get_all_scanners()
        if cancellation is None:
            cancellation = CancellationToken()

        run = RunResult()
        buffers: List[Tuple[_PairKey, List[AzureServiceResult]]] = []
        futures: Dict[concurrent.futures.Future, _PairKey] = {}

        logger.info(f"Scanning {len(subscriptions)} subscriptions with {len(scanners)} scanners...")

        executor = concurrent.futures.ThreadPoolExecutor(max_workers=max_workers)
        try:
            for subscription in subscriptions:
                if cancellation.cancelled:
                    break
                groups = self._resource_groups(subscription, resource_groups, cancellation, run)
                if groups is None:
                    continue
                scan_context = self._build_context(subscription, cancellation, run)
                if scan_context is None:
                    continue

                for factory in scanners:
                    scanner = factory()
                    try:
                        scanner.init(self._scanner_config(subscription, cancellation))
                    except Exception as e:
                        logger.error(f"Scanner {scanner.service_name} failed to initialize "
                                     f"for subscription {subscription.id}: {str(e)}")
                        run.failures.extend(
                            ScanFailure(subscription.id, group, scanner.service_name, e) for group in groups
                        )
                        continue

                    for group in groups:
                        future = executor.submit(self._scan_pair, scanner, group, scan_context, cancellation)
                        futures[future] = (subscription.id, group, scanner.service_name)

            self._collect(futures, buffers, run, cancellation)
        except KeyboardInterrupt:
            cancellation.cancel()
            raise
        finally:
            executor.shutdown(wait=not cancellation.cancelled, cancel_futures=True)

        buffers.sort(key=lambda item: item[0])
        for _, results in buffers:
            run.results.extend(sorted(results, key=lambda result: result.service_name))
        run.failures.sort(key=lambda failure: (failure.subscription_id, failure.resource_group or "",
                                               failure.scanner or ""))

        if cancellation.cancelled:
            run.status = RunStatus.CANCELLED
        elif run.failures:
            run.status = RunStatus.PARTIAL

        logger.info(f"Scan {run.status.value}. Results: {len(run.results)}, failures: {len(run.failures)}")
        return run

    def _resource_groups(self, subscription: Subscription,
                         resource_groups: Optional[Mapping[str, Sequence[str]]],
                         cancellation: CancellationToken, run: RunResult) -> Optional[List[str]]:
        if resource_groups is not None:
            return list(resource_groups.get(subscription.id, []))
        try:
            return list(self.azure_provider.list_resource_groups(subscription.id, cancellation))
        except Exception as e:
            logger.error(f"Skipping subscription {subscription.id}: failed to list resource groups: {str(e)}")
            run.failures.append(ScanFailure(subscription.id, None, None, e))
            return None

    def _build_context(self, subscription: Subscription, cancellation: CancellationToken,
                       run: RunResult) -> Optional[ScanContext]:
        try:
            lister = self.azure_provider.get_diagnostics_lister(subscription.id, cancellation)
            return build_scan_context(subscription.id, lister, cancellation=cancellation)
        except ScanCancelled:
            return None
        except Exception as e:
            logger.error(f"Skipping subscription {subscription.id}: {str(e)}")
            run.failures.append(ScanFailure(subscription.id, None, None, e))
            return None

    def _scanner_config(self, subscription: Subscription, cancellation: CancellationToken) -> ScannerConfig:
        return ScannerConfig(
            subscription_id=subscription.id,
            subscription_name=subscription.name,
            credential=self.azure_provider.credential,
            cancellation=cancellation,
            provider=self.azure_provider,
        )

    @staticmethod
    def _scan_pair(scanner: "AzureScanner", resource_group: str, scan_context: ScanContext,
                   cancellation: CancellationToken) -> List[AzureServiceResult]:
        cancellation.raise_if_cancelled()
        return scanner.scan(resource_group, scan_context)

    @staticmethod
    def _collect(futures: Dict[concurrent.futures.Future, _PairKey],
                 buffers: List[Tuple[_PairKey, List[AzureServiceResult]]],
                 run: RunResult, cancellation: CancellationToken):
        pending = set(futures)
        while pending:
            remaining = cancellation.remaining()
            timeout = POLL_INTERVAL if remaining is None else min(POLL_INTERVAL, remaining)
            done, pending = concurrent.futures.wait(
                pending, timeout=timeout, return_when=concurrent.futures.FIRST_COMPLETED
            )

            for future in done:
                subscription_id, group, service = futures[future]
                try:
                    results = future.result()
                except ResourceTypeMismatch:
                    cancellation.cancel()
                    raise
                except (ScanCancelled, concurrent.futures.CancelledError):
                    continue
                except Exception as e:
                    logger.error(f"Scanner {service} failed for resource group {group} "
                                 f"in subscription {subscription_id}: {str(e)}")
                    run.failures.append(ScanFailure(subscription_id, group, service, e))
                    continue
                buffers.append((futures[future], results))
                logger.info(f"Completed {service} in {group} ({len(results)} resources)")

            if cancellation.cancelled:
                logger.warning(f"Scan cancelled with {len(pending)} pairs outstanding")
                for future in pending:
                    future.cancel()
                break
