"""Abstract base fetcher interface and common functionality."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class FetcherError(Exception):
    """Base exception for fetcher-related errors."""
    pass


class BaseFetcher(ABC):
    """Abstract base class for wiki content fetchers."""

    def __init__(self, config: Optional[Dict[str, Any]] = None, logger=None):
        """
        Initialize base fetcher with configuration and logger.

        Args:
            config: Configuration dictionary (optional)
            logger: Logger instance (optional, uses module logger if not provided)
        """
        self.config = config or {}
        self.logger = logger or logging.getLogger('moin_markdown_migrator.fetcher')

    @abstractmethod
    def list_pages(self) -> List[str]:
        """
        List the names of all pages in the wiki.

        Returns:
            Page names in index order, e.g. ["FrontPage", "Team", "Team/Members"]
        """
        pass

    @abstractmethod
    def fetch_page_source(self, page_name: str) -> str:
        """
        Fetch the raw wiki markup of a page.

        Args:
            page_name: Slash-separated page name

        Returns:
            Page source text (empty if the page is not editable)
        """
        pass

    @abstractmethod
    def fetch_attachment(self, page_name: str, attachment_name: str) -> Optional[bytes]:
        """
        Fetch the bytes of a page attachment.

        Args:
            page_name: Slash-separated page name
            attachment_name: Attachment file name

        Returns:
            Attachment content, or None if the wiki did not deliver it
        """
        pass

    def _log_progress(self, message: str, level: str = 'info') -> None:
        """
        Log progress message at specified level.

        Args:
            message: Message to log
            level: Log level (debug, info, warning, error)
        """
        log_method = getattr(self.logger, level, self.logger.info)
        log_method(message)
