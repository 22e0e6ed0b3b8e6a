"""Page-level translation: drives the line rules and renders the result."""

import logging
from typing import List, Optional, Sequence, Tuple

from models import ActionKind, LineAction, TranslationState, WikiPage
from .line_translator import LineTranslator

logger = logging.getLogger('moin_markdown_migrator.converters.page_translator')


def render_lines(lines: Sequence[str], actions: Sequence[LineAction]) -> List[str]:
    """
    Apply the write-time actions to translated lines.

    Discarded lines are dropped. The first row of a table is written as a
    blank line, the row itself and a `|---|...|` header separator.
    """
    if len(lines) != len(actions):
        raise ValueError(f"Got {len(lines)} lines but {len(actions)} actions")

    output = []
    for line, action in zip(lines, actions):
        if action.kind == ActionKind.DISCARD:
            continue
        if action.kind == ActionKind.TABLE_SEPARATOR:
            output.append('')
            output.append(line)
            output.append('|---' * action.columns + '|')
            continue
        output.append(line)
    return output


class PageTranslator:
    """Translates whole pages, one line at a time, top to bottom."""

    def __init__(self, line_translator: LineTranslator, page_store, logger: Optional[logging.Logger] = None):
        """
        Initialize the page translator.

        Args:
            line_translator: Configured LineTranslator
            page_store: Page source provider with `read_lines(path)` and `write_lines(path, lines)`
            logger: Logger instance
        """
        self.line_translator = line_translator
        self.page_store = page_store
        self.logger = logger or logging.getLogger('moin_markdown_migrator.converters.page_translator')

    def translate_lines(self, page: WikiPage) -> Tuple[List[str], List[LineAction]]:
        """Run every line of `page` through the line rules, in place, and return the line actions."""
        state = TranslationState()
        actions = []
        for i, line in enumerate(page.lines):
            page.lines[i], action = self.line_translator.translate(line, state, page.path, page.stats)
            actions.append(action)
            if action.kind == ActionKind.DISCARD:
                page.stats['lines_discarded'] += 1

        if state.in_code_block:
            self.logger.warning(f"Unterminated code block in {page.path}")

        page.stats['lines'] = len(page.lines)
        return page.lines, actions

    def translate_page(self, path: str, write: bool = True) -> WikiPage:
        """
        Read, translate and write back the page file at `path`.

        Args:
            path: Page file path relative to the output root
            write: Write the result back (False for dry runs)

        Raises:
            PageStoreError: If the page cannot be read or written
        """
        self.logger.info(f"Translating {path}")
        page = WikiPage(path=path, lines=self.page_store.read_lines(path))

        lines, actions = self.translate_lines(page)
        rendered = render_lines(lines, actions)
        if write:
            self.page_store.write_lines(path, rendered)
        else:
            self.logger.info(f"[dry-run] Would write {len(rendered)} line(s) to {path}")

        unresolved = page.stats['links_unresolved']
        if unresolved:
            self.logger.warning(f"{len(unresolved)} unresolved link(s) in {path}")
        return page
