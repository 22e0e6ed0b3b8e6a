"""Fetchers package for retrieving page sources and attachments from a MoinMoin wiki."""

from .base_fetcher import BaseFetcher, FetcherError
from .wiki_fetcher import WikiFetcher


class FetcherFactory:
    """Factory for creating fetcher instances based on configuration."""

    @staticmethod
    def create_fetcher(run_config, logger=None):
        """Create the fetcher for a run.

        Args:
            run_config: RunConfig instance
            logger: Logger instance

        Returns:
            BaseFetcher instance

        Raises:
            ValueError: If no wiki URL is configured
        """
        if not run_config.wiki_base_url:
            raise ValueError("wiki.base_url is required to fetch from the wiki")
        return WikiFetcher(run_config, logger=logger)


__all__ = [
    'BaseFetcher',
    'FetcherError',
    'WikiFetcher',
    'FetcherFactory'
]
