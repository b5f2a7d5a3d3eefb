"""Migration report generation.

Reports are built from the coordinator's summary dict plus, optionally,
the validation result. Warnings arrive already rendered to text.
"""

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from store_migration.utils.logging import get_logger
from store_migration.validation.engine import ValidationResult

logger = get_logger(__name__)

MAX_WARNINGS_PER_ENTITY = 50
SUCCESS_RATE_THRESHOLD = 95


class MigrationReport:
    """Generates migration reports.

    Creates JSON and Markdown reports with per-entity statistics, warnings,
    validation outcome and recommendations.
    """

    def __init__(
        self,
        migration_id: str,
        summary: dict[str, Any],
        validation: ValidationResult | None = None,
    ):
        """Initialize migration report.

        Args:
            migration_id: Unique migration identifier
            summary: Migration summary from the coordinator
            validation: Optional post-migration validation result
        """
        self.migration_id = migration_id
        self.summary = summary
        self.validation = validation
        self.generated_at = datetime.now(UTC)

    def generate_json(self, output_path: str | None = None) -> str:
        """Generate JSON report.

        Args:
            output_path: Optional path to save report

        Returns:
            JSON report as string
        """
        report = {
            "report_version": "1.0",
            "generated_at": self.generated_at.isoformat(),
            "migration_id": self.migration_id,
            "summary": self.summary,
            "statistics": self._generate_statistics(),
            "validation": self.validation.to_dict() if self.validation else None,
            "recommendations": self._generate_recommendations(),
        }

        json_str = json.dumps(report, indent=2, default=str)

        if output_path:
            Path(output_path).write_text(json_str)
            logger.info("json_report_saved", path=output_path)

        return json_str

    def generate_markdown(self, output_path: str | None = None) -> str:
        """Generate Markdown report.

        Args:
            output_path: Optional path to save report

        Returns:
            Markdown report as string
        """
        stats = self._generate_statistics()
        lines = [
            "# Store Migration Report",
            "",
            f"**Migration ID:** `{self.migration_id}`  ",
            f"**Generated:** {self.generated_at.strftime('%Y-%m-%d %H:%M:%S UTC')}  ",
            f"**Status:** {self.summary.get('status', 'unknown')}  ",
            "",
            "## Summary",
            "",
            f"- **Start Time:** {self.summary.get('start_time', 'N/A')}",
            f"- **End Time:** {self.summary.get('end_time', 'N/A')}",
            f"- **Duration:** {self._format_duration(self.summary.get('duration_seconds'))}",
            f"- **Success Rate:** {stats['success_rate']:.1f}%",
            "",
            "## Entity Statistics",
            "",
            "| Entity | Status | Total | Successful | Skipped | Failed | Warnings |",
            "|--------|--------|------:|-----------:|--------:|-------:|---------:|",
        ]

        entities = self.summary.get("entities", {})
        for name, entity in entities.items():
            entity_stats = entity.get("stats") or {}
            lines.append(
                f"| {name} | {entity.get('status', 'unknown')} "
                f"| {entity_stats.get('total', 0):,} "
                f"| {entity_stats.get('successful', 0):,} "
                f"| {entity_stats.get('skipped', 0):,} "
                f"| {entity_stats.get('failed', 0):,} "
                f"| {len(entity.get('warnings', [])):,} |"
            )
        lines.append("")

        for name, entity in entities.items():
            if entity.get("error"):
                lines.extend([f"**{name}:** {entity['error']}", ""])

        warned = {
            name: entity["warnings"] for name, entity in entities.items() if entity.get("warnings")
        }
        if warned:
            lines.extend(["## Warnings", ""])
            for name, warnings in warned.items():
                lines.extend([f"### {name.capitalize()} ({len(warnings)})", ""])
                lines.extend(f"- {warning}" for warning in warnings[:MAX_WARNINGS_PER_ENTITY])
                if len(warnings) > MAX_WARNINGS_PER_ENTITY:
                    lines.append(
                        f"*... and {len(warnings) - MAX_WARNINGS_PER_ENTITY} more warnings*"
                    )
                lines.append("")

        if self.validation:
            lines.extend(
                [
                    "## Validation",
                    "",
                    f"**Overall:** {self.validation.overall_status.value}",
                    "",
                    "| Check | Status | Message |",
                    "|-------|--------|---------|",
                ]
            )
            for check in self.validation.checks:
                lines.append(f"| {check.name} | {check.status.value} | {check.message} |")
            lines.append("")

        recommendations = self._generate_recommendations()
        if recommendations:
            lines.extend(["## Recommendations", ""])
            lines.extend(f"- {rec}" for rec in recommendations)
            lines.append("")

        markdown = "\n".join(lines)

        if output_path:
            Path(output_path).write_text(markdown)
            logger.info("markdown_report_saved", path=output_path)

        return markdown

    def _generate_statistics(self) -> dict[str, Any]:
        """Totals across every entity type."""
        totals = {"total": 0, "successful": 0, "skipped": 0, "failed": 0, "warnings": 0}
        for entity in self.summary.get("entities", {}).values():
            entity_stats = entity.get("stats") or {}
            for key in ("total", "successful", "skipped", "failed"):
                totals[key] += entity_stats.get(key, 0)
            totals["warnings"] += len(entity.get("warnings", []))

        done = totals["successful"] + totals["skipped"]
        totals["success_rate"] = (done / totals["total"] * 100) if totals["total"] else 100.0
        return totals

    def _generate_recommendations(self) -> list[str]:
        recommendations = []
        stats = self._generate_statistics()
        entities = self.summary.get("entities", {})

        if stats["failed"] > 0:
            recommendations.append(
                f"{stats['failed']} records failed to migrate. Review the warnings and "
                "re-run; records already migrated will be skipped."
            )

        if stats["success_rate"] < SUCCESS_RATE_THRESHOLD:
            recommendations.append(
                f"Success rate ({stats['success_rate']:.1f}%) is below "
                f"{SUCCESS_RATE_THRESHOLD}%. Look for common failure patterns."
            )

        stopped = [
            name
            for name, entity in entities.items()
            if entity.get("status") in ("aborted", "skipped")
        ]
        if stopped:
            recommendations.append(
                f"Did not complete: {', '.join(stopped)}. Fix the reported error and run again."
            )

        if self.validation and self.validation.overall_status.value != "pass":
            recommendations.append(
                f"Validation finished with status '{self.validation.overall_status.value}'. "
                "Check the failing validation checks."
            )

        if not recommendations:
            recommendations.append("Migration completed successfully.")

        return recommendations

    def _format_duration(self, seconds: float | None) -> str:
        if seconds is None:
            return "N/A"

        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        secs = int(seconds % 60)

        if hours > 0:
            return f"{hours}h {minutes}m {secs}s"
        elif minutes > 0:
            return f"{minutes}m {secs}s"
        else:
            return f"{secs}s"


def generate_migration_report(
    migration_id: str,
    summary: dict[str, Any],
    validation: ValidationResult | None = None,
    output_dir: str = "./reports",
    formats: list[str] | None = None,
) -> dict[str, str]:
    """Generate migration reports in multiple formats.

    Args:
        migration_id: Migration identifier
        summary: Migration summary from the coordinator
        validation: Optional validation result to include
        output_dir: Directory to save reports
        formats: Formats to generate (json, markdown). Default: both

    Returns:
        Dictionary mapping format to file path
    """
    if formats is None:
        formats = ["json", "markdown"]

    report = MigrationReport(migration_id, summary, validation)
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    generated_files = {}

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    base_filename = f"migration_report_{migration_id}_{timestamp}"

    if "json" in formats:
        json_path = output_path / f"{base_filename}.json"
        report.generate_json(str(json_path))
        generated_files["json"] = str(json_path)

    if "markdown" in formats:
        md_path = output_path / f"{base_filename}.md"
        report.generate_markdown(str(md_path))
        generated_files["markdown"] = str(md_path)

    logger.info(
        "migration_reports_generated",
        migration_id=migration_id,
        formats=formats,
        files=generated_files,
    )

    return generated_files
