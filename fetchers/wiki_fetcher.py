"""Fetcher that crawls a live MoinMoin wiki over HTTP."""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote, unquote, urlparse

import requests
from bs4 import BeautifulSoup

from models import RunConfig
from wiki_client import MoinClient
from .base_fetcher import BaseFetcher, FetcherError

logger = logging.getLogger('moin_markdown_migrator.fetcher.wiki')

EDITOR_TEXTAREA_ID = 'editor-textarea'


class WikiFetcher(BaseFetcher):
    """Lists pages from the title index and fetches page sources and attachments."""

    def __init__(self, run_config: RunConfig, client: Optional[MoinClient] = None,
                 config: Optional[Dict[str, Any]] = None, logger=None):
        """
        Initialize the wiki fetcher.

        Args:
            run_config: Run configuration (wiki URL, wiki name, index page)
            client: MoinClient instance (created from run_config if not provided)
            config: Raw configuration dictionary (optional)
            logger: Logger instance (optional)
        """
        super().__init__(config, logger or logging.getLogger('moin_markdown_migrator.fetcher.wiki'))
        self.run_config = run_config
        self.wiki_name = run_config.wiki_name.strip('/')
        self.index_page = run_config.index_page
        self.client = client or MoinClient.from_config(run_config)

    def list_pages(self) -> List[str]:
        """
        Parse the wiki's title index into a list of page names.

        Raises:
            FetcherError: If the index cannot be fetched or has no content area
        """
        self.logger.info(f"Fetching page index {self.index_page}")
        response = self._get(self.index_page)
        if response.status_code != 200:
            raise FetcherError(
                f"Requesting page index {response.url} resulted in status {response.status_code}"
            )

        pages = self.parse_title_index(response.text)
        self._log_progress(f"Found {len(pages)} pages in {self.index_page}")
        return pages

    def parse_title_index(self, html: str) -> List[str]:
        """
        Extract page names from title index HTML.

        The index lists pages in `<ul>` blocks inside `div#content`; every
        list item links to one page.

        Raises:
            FetcherError: If the content area is missing
        """
        soup = BeautifulSoup(html, 'lxml')
        content = soup.find('div', id='content')
        if content is None:
            raise FetcherError("Did not find content div in page index")

        pages = []
        seen = set()
        for ul in content.find_all('ul'):
            for li in ul.find_all('li', recursive=False):
                anchor = li.find('a', href=True)
                if anchor is None:
                    continue
                name = self.page_name_from_href(anchor['href'])
                if name and name not in seen:
                    seen.add(name)
                    pages.append(name)
        return pages

    def page_name_from_href(self, href: str) -> Optional[str]:
        """
        Convert an index link like "/mywiki/Team/Members" to the page name "Team/Members".

        Returns:
            Page name, or None for links that do not point at a page
        """
        parsed = urlparse(href)
        if parsed.query or (parsed.fragment and not parsed.path):
            return None

        path = unquote(parsed.path).strip('/')
        if self.wiki_name:
            prefix = self.wiki_name + '/'
            if not path.startswith(prefix):
                return None
            path = path[len(prefix):]
        return path or None

    def fetch_page_source(self, page_name: str) -> str:
        """
        Fetch the raw markup of a page from its text editor form.

        Raises:
            FetcherError: If the edit page cannot be fetched
        """
        response = self._get(f"action/edit/{quote(page_name)}", params={'action': 'edit', 'editor': 'text'})
        if response.status_code != 200:
            raise FetcherError(f"Requesting {response.url} resulted in status {response.status_code}")

        source = self.extract_page_source(response.text)
        if source is None:
            self.logger.warning(f"Page {page_name} is not editable")
            return ''
        return source

    @staticmethod
    def extract_page_source(html: str) -> Optional[str]:
        """Return the editor textarea's text, or None if the page has no editor."""
        soup = BeautifulSoup(html, 'lxml')
        textarea = soup.find(id=EDITOR_TEXTAREA_ID)
        if textarea is None:
            return None
        return textarea.get_text()

    def fetch_attachment(self, page_name: str, attachment_name: str) -> Optional[bytes]:
        """
        Download an attachment of a page.

        Returns:
            Attachment bytes, or None if the wiki answered with a non-200 status

        Raises:
            FetcherError: On network errors
        """
        params = {'action': 'AttachFile', 'do': 'get', 'target': attachment_name}
        response = self._get(quote(page_name), params=params)
        if response.status_code != 200:
            self.logger.error(
                f"Downloading attachment from {response.url}: HTTP status {response.status_code}"
            )
            self.logger.debug(f"Error response: {response.text[:500]}")
            return None
        return response.content

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        try:
            return self.client.get(path, params=params)
        except requests.exceptions.RequestException as e:
            raise FetcherError(f"Request for {path} failed: {e}") from e
