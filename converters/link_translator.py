"""Rewrites `[[...]]` wiki links to markdown links."""

import logging
import re
from typing import Any, Dict, Optional

from models import LinkReference
from .path_resolver import PathResolver

logger = logging.getLogger('moin_markdown_migrator.converters.link_translator')


class LinkTranslator:
    """Finds wiki links in a line, classifies them and rewrites them to `[name](path)`."""

    link_pattern = re.compile(r'\[\[[^\]]+\]\]')

    def __init__(self, resolver: PathResolver, logger: Optional[logging.Logger] = None):
        self.resolver = resolver
        self.logger = logger or logging.getLogger('moin_markdown_migrator.converters.link_translator')

    def translate(self, line: str, page_path: str, stats: Optional[Dict[str, Any]] = None) -> str:
        """
        Rewrite every wiki link in `line`.

        Attachment links are left as they are for the attachment rule. Links
        that cannot be resolved are still rewritten, using the raw target, and
        recorded under `stats['links_unresolved']`.

        Args:
            line: Line of wiki markup
            page_path: Path of the current page file relative to the output root
            stats: Optional page statistics dictionary to update

        Returns:
            The rewritten line
        """
        if stats is None:
            stats = {}

        def replace_link(match):
            reference = LinkReference.parse(match.group(0))
            self.logger.debug(f"Link: {reference.target!r}, Name: {reference.display_name!r}")

            if reference.is_attachment:
                self.logger.debug("Link to attachment, leaving it for the attachment rule")
                return reference.raw

            if reference.is_external:
                stats['links_external'] = stats.get('links_external', 0) + 1
                return f"[{reference.display_name}]({reference.target})"

            resolved, ok = self.resolver.resolve(page_path, reference.target)
            if ok:
                stats['links_internal'] = stats.get('links_internal', 0) + 1
            else:
                self.logger.warning(f"Could not resolve link {reference.target!r} in {page_path}")
                stats.setdefault('links_unresolved', []).append(reference.target)

            return f"[{reference.display_name}]({resolved})"

        return self.link_pattern.sub(replace_link, line)
