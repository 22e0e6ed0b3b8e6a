"""
Orchestration package for coordinating migration pipeline phases.

This package provides the orchestration layer that sequences the migration
phases: Crawl → Translate → Report. It handles the complete pipeline for
migrating a MoinMoin wiki into a local markdown tree.
"""

from .migration_orchestrator import MigrationOrchestrator
from .migration_report import MigrationReport

__all__ = [
    'MigrationOrchestrator',
    'MigrationReport'
]
