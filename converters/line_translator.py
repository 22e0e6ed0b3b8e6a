"""Single-line MoinMoin to Markdown rewrite rules."""

import logging
import re
from typing import Any, Dict, Optional, Tuple

from models import LineAction, TableRun, TranslationState
from .attachment_handler import AttachmentHandler
from .link_translator import LinkTranslator

logger = logging.getLogger('moin_markdown_migrator.converters.line_translator')

MARKDOWN_FENCE = '```'

SYMBOLS = (
    ('(./)', '✓'),
    ('{X}', '✗'),
)


class LineTranslator:
    """
    Applies the ordered rewrite rules to one line at a time.

    Rule order:
    1. leading processing-instruction/comment lines are discarded
    2. code block fences (lines inside a block are left alone)
    3. table rows
    4. symbol glyphs
    5. headings
    6. wiki links
    7. inline code spans
    8. attachments
    9. bullet list indentation
    10. bold, italic and strikethrough
    """

    code_block_start_pattern = re.compile(r'^\s*\{\{\{(?:#!highlight\s+(\S+).*)?\s*$')
    code_block_end_pattern = re.compile(r'^\s*\}\}\}\s*$')
    table_cell_pattern = re.compile(r'\|\|(?:<.+?>)?([^|\n]*)')
    heading_pattern = re.compile(r'^(=+) (.+?) =+\s*$')
    inline_code_pattern = re.compile(r'\{\{\{(.+?)\}\}\}')
    bold_pattern = re.compile(r"'''\s*([^']+?)\s*'''")
    italic_pattern = re.compile(r"''\s*([^']+?)\s*''")
    strikethrough_pattern = re.compile(r'--\(\s*(.+?)\s*\)--')

    def __init__(
        self,
        link_translator: Optional[LinkTranslator] = None,
        attachment_handler: Optional[AttachmentHandler] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.link_translator = link_translator
        self.attachment_handler = attachment_handler
        self.logger = logger or logging.getLogger('moin_markdown_migrator.converters.line_translator')

    def translate(
        self,
        line: str,
        state: TranslationState,
        page_path: str = '',
        stats: Optional[Dict[str, Any]] = None
    ) -> Tuple[str, LineAction]:
        """
        Translate one line, updating `state` for the lines that follow.

        Args:
            line: Line of wiki markup without its newline
            state: Translation state of the current page
            page_path: Path of the current page file relative to the output root
            stats: Optional page statistics dictionary to update

        Returns:
            Tuple of (translated_text, write-time action)
        """
        if stats is None:
            stats = {}

        if state.leading_comment_phase:
            if line.startswith('#'):
                return line, LineAction.discard()
            state.leading_comment_phase = False

        if state.in_code_block:
            if self.code_block_end_pattern.match(line):
                state.in_code_block = False
                return MARKDOWN_FENCE, LineAction.none()
            return line, LineAction.none()

        code_block_start = self.code_block_start_pattern.match(line)
        if code_block_start:
            state.in_code_block = True
            stats['code_blocks'] = stats.get('code_blocks', 0) + 1
            return MARKDOWN_FENCE + (code_block_start.group(1) or ''), LineAction.none()

        line, action = self._translate_table_row(line, state, stats)

        for glyph, replacement in SYMBOLS:
            line = line.replace(glyph, replacement)

        line = self._translate_heading(line, stats)

        if self.link_translator is not None:
            line = self.link_translator.translate(line, page_path, stats)

        line = self.inline_code_pattern.sub(r'`\1`', line)

        if self.attachment_handler is not None:
            line = self.attachment_handler.rewrite(line, page_path, stats)

        line = self._translate_list_item(line, state)
        line = self._translate_emphasis(line)

        return line, action

    def _translate_table_row(
        self,
        line: str,
        state: TranslationState,
        stats: Dict[str, Any]
    ) -> Tuple[str, LineAction]:
        """Rewrite `||` cell markers; the first row of a run requests a separator line."""
        cells = self.table_cell_pattern.findall(line)
        if not cells:
            state.table_run = None
            return line, LineAction.none()

        columns = len(cells)
        if not cells[-1].strip():
            # the closing `||` of a row yields an empty trailing cell
            columns -= 1

        line = self.table_cell_pattern.sub(r'|\1', line)
        line = line.rstrip().rstrip('|') + '|'

        if state.table_run is not None:
            return line, LineAction.none()

        state.table_run = TableRun(first_row_columns=columns)
        stats['tables'] = stats.get('tables', 0) + 1
        self.logger.debug(f"Table with {columns} column(s) starts at {line!r}")
        return line, LineAction.table_separator(columns)

    def _translate_heading(self, line: str, stats: Dict[str, Any]) -> str:
        match = self.heading_pattern.match(line)
        if not match:
            return line

        self.logger.debug(f"Found heading: {line}")
        stats['headings'] = stats.get('headings', 0) + 1
        return '#' * len(match.group(1)) + ' ' + match.group(2)

    @staticmethod
    def _translate_list_item(line: str, state: TranslationState) -> str:
        """Re-indent bullets to two spaces per column of offset from the first bullet of the run."""
        if not line.strip().startswith('* '):
            state.list_base_indent = None
            return line

        column = line.index('*')
        if state.list_base_indent is None:
            state.list_base_indent = column

        indent = max(0, 2 * (column - state.list_base_indent))
        return ' ' * indent + '* ' + line.lstrip().lstrip('* ')

    def _translate_emphasis(self, line: str) -> str:
        # bold first, so `'''` is not half-consumed by the italic rule
        line = self.bold_pattern.sub(r'**\1**', line)
        line = self.italic_pattern.sub(r'*\1*', line)
        return self.strikethrough_pattern.sub(r'~~\1~~', line)
