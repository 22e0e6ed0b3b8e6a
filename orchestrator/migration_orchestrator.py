"""
Migration orchestrator for coordinating the complete migration pipeline.

This module provides the central coordinator that sequences the migration
phases: Crawl → Translate → Report. Pages are handled strictly one after
another; links resolve against whatever earlier pages already wrote.
"""

import logging
import sys
import time
from typing import Any, Dict, Optional

from tqdm import tqdm

from models import RunConfig
from converters import create_page_translator
from exporters import AttachmentManager, PageStore
from fetchers import FetcherFactory
from logger import log_section, ProgressTracker
from orchestrator.migration_report import MigrationReport

logger = logging.getLogger('moin_markdown_migrator.orchestrator')


class MigrationOrchestrator:
    """Central coordinator sequencing the migration phases: Crawl → Translate → Report."""

    def __init__(
        self,
        run_config: RunConfig,
        fetcher=None,
        page_store: Optional[PageStore] = None,
        logger: Optional[logging.Logger] = None,
        show_progress: Optional[bool] = None
    ):
        """
        Initialize migration orchestrator.

        Args:
            run_config: Run configuration
            fetcher: BaseFetcher instance (created from run_config on first use if not provided)
            page_store: PageStore for the output tree (created from run_config if not provided)
            logger: Optional logger instance
            show_progress: Force tqdm progress bars on/off (default: only on a TTY)
        """
        self.run_config = run_config
        self.logger = logger or logging.getLogger('moin_markdown_migrator.orchestrator')
        self._fetcher = fetcher
        self.page_store = page_store or PageStore(run_config.output_root)
        self.workflow = run_config.workflow
        self.show_progress = sys.stdout.isatty() if show_progress is None else show_progress
        self.report_generator = MigrationReport(self.logger)

        self.logger.info(
            f"MigrationOrchestrator initialized with workflow: {self.workflow}, "
            f"output: {run_config.output_root}, dry_run: {run_config.dry_run}"
        )

    @property
    def fetcher(self):
        if self._fetcher is None:
            self._fetcher = FetcherFactory.create_fetcher(self.run_config, self.logger)
        return self._fetcher

    def orchestrate_migration(self) -> Dict[str, Any]:
        """
        Run the phases selected by the workflow.

        Returns:
            Report dictionary

        Raises:
            FetcherError, PageStoreError: Fatal errors abort the run
        """
        self.logger.info("Starting migration orchestration")
        start_time = time.time()
        phase_stats = {}

        try:
            if self.workflow in ('crawl_then_translate', 'crawl_only'):
                self.logger.info("Executing Phase 1: Crawl")
                phase_stats['crawl'] = self._execute_crawl()

            if self.workflow in ('crawl_then_translate', 'translate_only'):
                self.logger.info("Executing Phase 2: Translate")
                phase_stats['translation'] = self._execute_translation()
        except Exception as e:
            self.logger.error(f"Migration orchestration failed: {str(e)}", exc_info=True)
            raise

        migration_duration = time.time() - start_time
        report = self.report_generator.generate_report(phase_stats, migration_duration, self.workflow)
        self.logger.info(f"Migration orchestration complete in {migration_duration:.2f}s")
        return report

    def _execute_crawl(self) -> Dict[str, Any]:
        """
        Execute Phase 1: list the wiki's pages and store their raw sources.

        Returns:
            Crawl statistics dictionary
        """
        log_section("Phase 1: Crawl")

        stats = {
            'pages_listed': 0,
            'pages_stored': 0,
            'pages_empty': 0,
            'errors': []
        }

        pages = self.fetcher.list_pages()
        stats['pages_listed'] = len(pages)
        if not pages:
            self.logger.warning("The page index lists no pages")
            return stats

        with ProgressTracker(total_items=len(pages), item_type='pages', phase='crawl') as tracker:
            for name in self._progress(pages, "Crawling"):
                self.logger.info(f"Handling page {name!r}")
                source = self.fetcher.fetch_page_source(name)
                if not source:
                    stats['pages_empty'] += 1

                if self.run_config.dry_run:
                    self.logger.info(f"[dry-run] Would store page {name!r} ({len(source)} chars)")
                else:
                    path = self.page_store.store_page(name, source)
                    self.logger.info(f"Stored page {name!r} at {path}")
                    stats['pages_stored'] += 1
                tracker.increment(success=bool(source), item=name, reason="has no editable source")

        stats.update(self._tracker_stats(tracker))
        return stats

    def _execute_translation(self) -> Dict[str, Any]:
        """
        Execute Phase 2: translate every page file in the output tree in place.

        Returns:
            Translation statistics dictionary
        """
        log_section("Phase 2: Translate")

        stats = {
            'pages_translated': 0,
            'lines': 0,
            'headings': 0,
            'tables': 0,
            'code_blocks': 0,
            'links_internal': 0,
            'links_external': 0,
            'links_unresolved': [],
            'attachments_referenced': 0,
            'attachments': {},
            'warnings': []
        }

        attachment_manager = AttachmentManager(
            self.run_config.output_root,
            fetcher=self.fetcher if self.run_config.wiki_base_url else self._fetcher,
            failure_backoff=self.run_config.failure_backoff,
            dry_run=self.run_config.dry_run
        )
        translator = create_page_translator(
            self.run_config, self.page_store, attachment_fetcher=attachment_manager, logger=self.logger
        )

        paths = self.page_store.iter_pages()
        if not paths:
            self.logger.warning(f"No pages found below {self.run_config.output_root}")

        with ProgressTracker(total_items=len(paths), item_type='pages', phase='translation') as tracker:
            for path in self._progress(paths, "Translating"):
                failed_before = attachment_manager.stats['failed']
                page = translator.translate_page(path, write=not self.run_config.dry_run)

                stats['pages_translated'] += 1
                for key in ('lines', 'headings', 'tables', 'code_blocks', 'links_internal', 'links_external'):
                    stats[key] += page.stats.get(key, 0)
                stats['attachments_referenced'] += page.stats.get('attachments', 0)
                for target in page.stats.get('links_unresolved', []):
                    stats['links_unresolved'].append({'page': path, 'target': target})
                    stats['warnings'].append(f"Unresolved link {target!r} in {path}")
                failed = attachment_manager.stats['failed'] - failed_before
                tracker.increment(success=not failed, item=path, reason=f"has {failed} failed attachment download(s)")

        stats['attachments'] = attachment_manager.get_stats()
        stats.update(self._tracker_stats(tracker))
        return stats

    @staticmethod
    def _tracker_stats(tracker: ProgressTracker) -> Dict[str, Any]:
        progress = tracker.get_stats()
        return {'failed_pages': progress['failed_items'], 'elapsed_seconds': progress['elapsed_time']}

    def _progress(self, items, description: str):
        if not self.show_progress:
            return items
        return tqdm(items, desc=description, unit='page', leave=False)
