"""
Migration report generator for aggregating statistics and formatting reports.

This module generates migration reports from phase statistics, formatting
them for console display, JSON export, and a CSV list of unresolved links.
"""

import csv
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

logger = logging.getLogger('moin_markdown_migrator.orchestrator.report')


class MigrationReport:
    """Generates migration reports aggregating statistics from all phases."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize migration report generator.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger('moin_markdown_migrator.orchestrator.report')

    def generate_report(
        self,
        phase_stats: Dict[str, Any],
        migration_duration: float,
        workflow: str
    ) -> Dict[str, Any]:
        """
        Generate migration report.

        Args:
            phase_stats: Statistics keyed by phase ('crawl', 'translation')
            migration_duration: Total migration duration in seconds
            workflow: Workflow that was executed

        Returns:
            Migration report dictionary
        """
        self.logger.info("Generating migration report")

        report = {
            'summary': self._build_summary(phase_stats, migration_duration, workflow),
            'phases': self._build_phase_breakdown(phase_stats),
            'errors': self._build_error_summary(phase_stats),
            'unresolved_links': list(phase_stats.get('translation', {}).get('links_unresolved', [])),
            'workflow': workflow,
            'timestamp': datetime.now().isoformat()
        }

        self.logger.info(
            f"Report generated: {report['summary']['pages']} pages, "
            f"{report['summary']['total_errors']} errors"
        )

        return report

    def _build_summary(self, phase_stats: Dict[str, Any], duration: float, workflow: str) -> Dict[str, Any]:
        """Build high-level summary section."""
        crawl = phase_stats.get('crawl', {})
        translation = phase_stats.get('translation', {})
        attachments = translation.get('attachments', {})

        summary = {
            'pages': translation.get('pages_translated', crawl.get('pages_stored', crawl.get('pages_listed', 0))),
            'attachments': attachments.get('downloaded', 0),
            'workflow': workflow,
            'duration_seconds': duration,
            'duration_formatted': self._format_duration(duration)
        }

        if crawl:
            summary['pages_listed'] = crawl.get('pages_listed', 0)
            summary['pages_stored'] = crawl.get('pages_stored', 0)
        if translation:
            summary['pages_translated'] = translation.get('pages_translated', 0)
            summary['links_internal'] = translation.get('links_internal', 0)
            summary['links_external'] = translation.get('links_external', 0)
            summary['links_unresolved'] = len(translation.get('links_unresolved', []))

        summary['total_errors'] = self._count_total_errors(phase_stats)
        summary['total_warnings'] = self._count_total_warnings(phase_stats)
        return summary

    def _build_phase_breakdown(self, phase_stats: Dict[str, Any]) -> Dict[str, Any]:
        """Build detailed breakdown by phase."""
        breakdown = {}

        if 'crawl' in phase_stats:
            crawl = phase_stats['crawl']
            breakdown['crawl'] = {
                'pages_listed': crawl.get('pages_listed', 0),
                'pages_stored': crawl.get('pages_stored', 0),
                'pages_empty': crawl.get('pages_empty', 0),
                'failed_pages': list(crawl.get('failed_pages', [])),
                'errors': len(crawl.get('errors', []))
            }

        if 'translation' in phase_stats:
            translation = phase_stats['translation']
            attachments = translation.get('attachments', {})
            breakdown['translation'] = {
                'pages_translated': translation.get('pages_translated', 0),
                'lines': translation.get('lines', 0),
                'headings': translation.get('headings', 0),
                'tables': translation.get('tables', 0),
                'code_blocks': translation.get('code_blocks', 0),
                'links_internal': translation.get('links_internal', 0),
                'links_external': translation.get('links_external', 0),
                'links_unresolved': len(translation.get('links_unresolved', [])),
                'attachments_referenced': translation.get('attachments_referenced', 0),
                'attachments_downloaded': attachments.get('downloaded', 0),
                'attachments_skipped': attachments.get('skipped', 0),
                'attachments_failed': attachments.get('failed', 0),
                'attachments_size_bytes': attachments.get('total_size_bytes', 0),
                'failed_pages': list(translation.get('failed_pages', []))
            }

        return breakdown

    def _build_error_summary(self, phase_stats: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Aggregate errors from all phases."""
        all_errors = []

        for phase_name, stats in phase_stats.items():
            errors = list(stats.get('errors', []))
            errors.extend(stats.get('attachments', {}).get('errors', []))
            for error in errors:
                error_copy = dict(error) if isinstance(error, dict) else {'error': str(error)}
                error_copy['phase'] = phase_name
                all_errors.append(error_copy)

        return all_errors

    def _format_duration(self, seconds: float) -> str:
        """Format duration in human-readable format."""
        if seconds < 60:
            return f"{seconds:.1f}s"
        elif seconds < 3600:
            minutes = int(seconds // 60)
            secs = int(seconds % 60)
            return f"{minutes}m {secs}s"
        else:
            hours = int(seconds // 3600)
            minutes = int((seconds % 3600) // 60)
            secs = int(seconds % 60)
            return f"{hours}h {minutes}m {secs}s"

    def _count_total_errors(self, phase_stats: Dict[str, Any]) -> int:
        """Count total errors across all phases."""
        return len(self._build_error_summary(phase_stats))

    def _count_total_warnings(self, phase_stats: Dict[str, Any]) -> int:
        """Count total warnings across all phases."""
        return sum(len(stats.get('warnings', [])) for stats in phase_stats.values())

    def format_console_report(self, report: Dict[str, Any]) -> str:
        """
        Format report for console display.

        Args:
            report: Migration report dictionary

        Returns:
            Formatted console string
        """
        sections = []

        sections.append("=" * 60)
        sections.append("MIGRATION REPORT")
        sections.append("=" * 60)
        sections.append("")

        summary = report.get('summary', {})
        sections.append("Summary:")
        sections.append(f"  Workflow:    {summary.get('workflow', 'unknown')}")
        sections.append(f"  Pages:       {summary.get('pages', 0)}")
        sections.append(f"  Attachments: {summary.get('attachments', 0)}")
        sections.append(f"  Duration:    {summary.get('duration_formatted', '0s')}")
        if summary.get('total_errors', 0) > 0:
            sections.append(f"  Errors:      {summary['total_errors']}")
        if summary.get('total_warnings', 0) > 0:
            sections.append(f"  Warnings:    {summary['total_warnings']}")
        sections.append("")

        phases = report.get('phases', {})
        sections.append("Phase Breakdown:")
        sections.append("-" * 60)

        if 'crawl' in phases:
            crawl = phases['crawl']
            sections.append("  Crawl:")
            sections.append(
                f"    Pages: {crawl.get('pages_listed', 0)} listed, "
                f"{crawl.get('pages_stored', 0)} stored, "
                f"{crawl.get('pages_empty', 0)} empty"
            )
            sections.extend(self._format_failed_pages(crawl))

        if 'translation' in phases:
            tr = phases['translation']
            sections.append("  Translate:")
            sections.append(
                f"    Pages: {tr.get('pages_translated', 0)} translated "
                f"({tr.get('headings', 0)} headings, {tr.get('tables', 0)} tables, "
                f"{tr.get('code_blocks', 0)} code blocks)"
            )
            sections.append(
                f"    Links: {tr.get('links_internal', 0)} internal, "
                f"{tr.get('links_external', 0)} external, "
                f"{tr.get('links_unresolved', 0)} unresolved"
            )
            sections.append(
                f"    Attachments: {tr.get('attachments_downloaded', 0)} downloaded, "
                f"{tr.get('attachments_skipped', 0)} skipped, "
                f"{tr.get('attachments_failed', 0)} failed"
            )
            sections.extend(self._format_failed_pages(tr))

        sections.append("")

        unresolved = report.get('unresolved_links', [])
        if unresolved:
            sections.append("Unresolved Links:")
            for entry in unresolved[:10]:
                sections.append(f"  {entry['page']}: {entry['target']}")
            if len(unresolved) > 10:
                sections.append(f"  ... and {len(unresolved) - 10} more")
            sections.append("")

        errors = report.get('errors', [])
        if errors:
            sections.append("Error Summary:")
            sections.append(f"  Total errors: {len(errors)}")

            errors_by_phase = {}
            for error in errors:
                phase = error.get('phase', 'unknown')
                errors_by_phase[phase] = errors_by_phase.get(phase, 0) + 1

            for phase, count in sorted(errors_by_phase.items()):
                sections.append(f"  {phase}: {count} errors")
            sections.append("")

        sections.append("=" * 60)

        return "\n".join(sections)

    @staticmethod
    def _format_failed_pages(phase: Dict[str, Any], limit: int = 10) -> List[str]:
        failed = phase.get('failed_pages', [])
        if not failed:
            return []
        lines = [f"    Failed pages: {len(failed)}"]
        lines.extend(f"      {entry['item']}: {entry['reason']}" for entry in failed[:limit])
        if len(failed) > limit:
            lines.append(f"      ... and {len(failed) - limit} more")
        return lines

    def export_json_report(self, report: Dict[str, Any], filepath: str) -> None:
        """
        Export report to JSON file.

        Args:
            report: Migration report dictionary
            filepath: Output file path
        """
        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                json.dump(report, f, indent=2, ensure_ascii=False, default=str)

            self.logger.info(f"JSON report exported to {filepath}")

        except OSError as e:
            self.logger.error(f"Failed to export JSON report: {str(e)}")

    def export_unresolved_links_csv(self, report: Dict[str, Any], filepath: str) -> None:
        """
        Export the unresolved links to CSV.

        Args:
            report: Migration report dictionary
            filepath: Output file path
        """
        try:
            with open(filepath, 'w', newline='', encoding='utf-8') as f:
                writer = csv.writer(f)
                writer.writerow(['page', 'target'])
                for entry in report.get('unresolved_links', []):
                    writer.writerow([entry['page'], entry['target']])

            self.logger.info(f"Unresolved links CSV exported to {filepath}")

        except OSError as e:
            self.logger.error(f"Failed to export unresolved links CSV: {str(e)}")
