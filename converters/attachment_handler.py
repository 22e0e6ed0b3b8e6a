"""Attachment token detection, download triggering and markdown substitution."""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence

from models import DEFAULT_MEDIA_EXTENSIONS, AttachmentReference

logger = logging.getLogger('moin_markdown_migrator.converters.attachment_handler')

ATTACHMENT_MARKER = 'attachment:'


class AttachmentHandler:
    """
    Handles `{{attachment:NAME}}` embeds and `[[attachment:NAME|alias]]` links.

    Detection and substitution are pure string operations. Fetching is a
    separate step that hands `(page_path, name)` to the attachment fetcher,
    any object with a `fetch(page_path, name)` method (normally an
    `exporters.AttachmentManager`).
    """

    attachment_pattern = re.compile(r'(?:\{\{|\[\[)attachment:.+?(?:\}\}|\]\])', re.MULTILINE)

    def __init__(
        self,
        attachment_fetcher=None,
        media_extensions: Sequence[str] = DEFAULT_MEDIA_EXTENSIONS,
        logger: Optional[logging.Logger] = None
    ):
        self.attachment_fetcher = attachment_fetcher
        self.media_suffixes = tuple('.' + ext.lower().lstrip('.') for ext in media_extensions)
        self.logger = logger or logging.getLogger('moin_markdown_migrator.converters.attachment_handler')

    def is_media(self, name: str) -> bool:
        return name.lower().endswith(self.media_suffixes)

    def find_attachments(self, line: str) -> List[AttachmentReference]:
        """Return every attachment token in `line`, left to right."""
        references = []
        for match in self.attachment_pattern.finditer(line):
            raw = match.group(0)
            name = raw[2:-2]
            if name.startswith(ATTACHMENT_MARKER):
                name = name[len(ATTACHMENT_MARKER):]
            name = name.split('|', 1)[0].strip()
            references.append(AttachmentReference(
                raw=raw,
                start=match.start(),
                end=match.end(),
                name=name,
                is_media=self.is_media(name)
            ))
        return references

    def fetch(self, page_path: str, references: Iterable[AttachmentReference]) -> int:
        """
        Ask the attachment fetcher for every distinct attachment name.

        Returns:
            Number of fetch requests issued
        """
        if self.attachment_fetcher is None:
            return 0

        requested = 0
        seen = set()
        for reference in references:
            if not reference.name or reference.name in seen:
                continue
            seen.add(reference.name)
            self.attachment_fetcher.fetch(page_path, reference.name)
            requested += 1
        return requested

    @staticmethod
    def substitute(line: str, references: Sequence[AttachmentReference]) -> str:
        """Replace each reference span with its markdown form."""
        if not references:
            return line

        parts = []
        position = 0
        for reference in references:
            parts.append(line[position:reference.start])
            parts.append(reference.to_markdown())
            position = reference.end
        parts.append(line[position:])
        return ''.join(parts)

    def rewrite(self, line: str, page_path: str, stats: Optional[Dict[str, Any]] = None) -> str:
        """Detect, fetch and substitute the attachments of one line."""
        references = self.find_attachments(line)
        if not references:
            return line

        if stats is not None:
            stats['attachments'] = stats.get('attachments', 0) + len(references)

        for reference in references:
            kind = "media" if reference.is_media else "file"
            self.logger.info(f"Found attachment {reference.name!r} ({kind}) in {page_path}")

        self.fetch(page_path, references)
        return self.substitute(line, references)
