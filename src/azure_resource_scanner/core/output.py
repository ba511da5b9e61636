"""
Output formatting and report generation
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping

from .framework import RunResult

logger = logging.getLogger(__name__)


class OutputEngine:
    """Handle output formatting and report generation"""

    @staticmethod
    def format_json(run: RunResult, rule_metadata: Iterable[Mapping[str, str]] = (),
                    metadata: Dict[str, Any] = None) -> Dict[str, Any]:
        """Format a run as a JSON report.

        ``rule_metadata`` maps triggered rule ids to their impact and
        category for the summary counts.
        """
        if metadata is None:
            metadata = {}

        rules_by_id = {rule["id"]: rule for rule in rule_metadata}

        by_impact: Dict[str, int] = {}
        by_category: Dict[str, int] = {}
        by_resource_type: Dict[str, int] = {}
        triggered_total = 0

        for result in run.results:
            by_resource_type[result.resource_type] = by_resource_type.get(result.resource_type, 0) + 1
            for rule_id in result.triggered_rules():
                triggered_total += 1
                rule = rules_by_id.get(rule_id)
                if rule is None:
                    continue
                by_impact[rule["impact"]] = by_impact.get(rule["impact"], 0) + 1
                by_category[rule["category"]] = by_category.get(rule["category"], 0) + 1

        report = {
            "metadata": {
                "tool": "azure-resource-scanner",
                "version": "1.0.0",
                "scan_timestamp": datetime.now(timezone.utc).isoformat(),
                **metadata
            },
            "summary": {
                "status": run.status.value,
                "total_resources": len(run.results),
                "total_failures": len(run.failures),
                "triggered_rules": triggered_total,
                "by_impact": by_impact,
                "by_category": by_category,
                "by_resource_type": by_resource_type,
            },
            "results": [result.to_dict() for result in run.results],
            "failures": [failure.to_dict() for failure in run.failures],
        }

        return report

    @staticmethod
    def to_json(report: Dict[str, Any], pretty: bool = False) -> str:
        return json.dumps(report, indent=2 if pretty else None, sort_keys=True, default=str)

    @staticmethod
    def save_report(report: Dict[str, Any], output_file: str):
        """Save JSON report to file"""
        try:
            output_path = Path(output_file)
            output_path.parent.mkdir(parents=True, exist_ok=True)

            with open(output_path, 'w', encoding='utf-8') as f:
                json.dump(report, f, indent=2, sort_keys=True, default=str)

            logger.info(f"Report saved to: {output_path}")

        except OSError as e:
            logger.error(f"Error saving report: {str(e)}")
            raise
