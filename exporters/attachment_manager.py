"""Attachment manager for downloading page attachments next to their markdown page."""

import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from models import WikiPage
from converters.wiki_path import WikiPath


class AttachmentManager:
    """
    Downloads attachments referenced by translated pages.

    This manager:
    1. Derives the destination (the page file's directory + attachment name)
    2. Skips the download when the destination already exists
    3. Fetches the bytes through the wiki fetcher
    4. Backs off once after a failed download and carries on
    """

    def __init__(
        self,
        output_root: Union[str, Path],
        fetcher=None,
        failure_backoff: float = 10.0,
        dry_run: bool = False,
        logger: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize the attachment manager.

        Args:
            output_root: Root directory of the markdown tree
            fetcher: Object with `fetch_attachment(page_name, attachment_name) -> Optional[bytes]`
            failure_backoff: Seconds to wait after a failed download
            dry_run: Log downloads instead of performing them
            logger: Logger instance
            sleep: Sleep function used for the failure backoff
        """
        self.output_root = Path(output_root)
        self.fetcher = fetcher
        self.failure_backoff = failure_backoff
        self.dry_run = dry_run
        self.logger = logger or logging.getLogger('moin_markdown_migrator.exporters.attachment_manager')
        self._sleep = sleep

        self.stats = {
            'total_attachments': 0,
            'downloaded': 0,
            'skipped': 0,
            'failed': 0,
            'total_size_bytes': 0,
            'errors': []
        }

    def destination(self, page_path: str, name: str) -> Path:
        """Filesystem path an attachment of the page at `page_path` is stored at."""
        return WikiPath.parse(page_path).parent.join(name).on_disk(self.output_root)

    def fetch(self, page_path: str, name: str) -> bool:
        """
        Make sure attachment `name` of the page at `page_path` exists on disk.

        Args:
            page_path: Page file path relative to the output root
            name: Attachment file name

        Returns:
            True if the attachment is present after the call
        """
        self.stats['total_attachments'] += 1

        if not name or '/' in name or '\\' in name or name in ('.', '..'):
            self.logger.warning(f"Refusing attachment with unsafe name {name!r} on {page_path}")
            self.stats['skipped'] += 1
            return False

        destination = self.destination(page_path, name)
        if destination.exists():
            self.logger.info(f"Attachment {destination} already exists")
            self.stats['skipped'] += 1
            return True

        page_name = WikiPage(path=page_path).name
        if self.dry_run:
            self.logger.info(f"[dry-run] Would download attachment {name!r} of page {page_name!r} to {destination}")
            return False

        if self.fetcher is None:
            raise ValueError("AttachmentManager needs a fetcher to download attachments")

        content = self.fetcher.fetch_attachment(page_name, name)
        if content is None:
            error_msg = f"Failed to download attachment {name!r} of page {page_name!r}"
            self.logger.error(error_msg)
            self.stats['failed'] += 1
            self.stats['errors'].append({'page': page_name, 'attachment': name, 'error': error_msg})
            if self.failure_backoff > 0:
                self.logger.info(f"Backing off for {self.failure_backoff:.1f}s")
                self._sleep(self.failure_backoff)
            return False

        self.logger.info(f"Got attachment of size {len(content)}, storing it at {destination}")
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(content)

        self.stats['downloaded'] += 1
        self.stats['total_size_bytes'] += len(content)
        return True

    def get_stats(self) -> Dict[str, Any]:
        """Get attachment processing statistics."""
        stats = self.stats.copy()
        stats['errors'] = list(self.stats['errors'])
        return stats
