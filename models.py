"""Data models for the MoinMoin to Markdown migration pipeline."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger('moin_markdown_migrator')


DEFAULT_MEDIA_EXTENSIONS = ('mp4', 'm4v', 'mov', 'webm', 'ogv', 'png', 'jpg', 'jpeg', 'gif', 'bmp')


class FileExistence(Enum):
    """Result of probing a path in the output tree."""
    MISSING = "missing"
    DIRECTORY = "directory"
    FILE = "file"


class ActionKind(Enum):
    """Write-time action attached to a translated line."""
    NONE = "none"
    DISCARD = "discard"
    TABLE_SEPARATOR = "table_separator"


@dataclass(frozen=True)
class LineAction:
    """Side-channel annotation for a translated line, applied when the page is rendered."""

    kind: ActionKind = ActionKind.NONE
    columns: int = 0

    @classmethod
    def none(cls) -> 'LineAction':
        return cls()

    @classmethod
    def discard(cls) -> 'LineAction':
        return cls(kind=ActionKind.DISCARD)

    @classmethod
    def table_separator(cls, columns: int) -> 'LineAction':
        if columns < 0:
            raise ValueError(f"Table column count must not be negative: {columns}")
        return cls(kind=ActionKind.TABLE_SEPARATOR, columns=columns)


@dataclass
class TableRun:
    """A contiguous run of table rows; the column count is fixed by the first row."""

    first_row_columns: int


@dataclass
class TranslationState:
    """Per-page state carried from one line to the next."""

    in_code_block: bool = False
    leading_comment_phase: bool = True
    table_run: Optional[TableRun] = None
    list_base_indent: Optional[int] = None


@dataclass
class LinkReference:
    """A `[[...]]` link span found in a line."""

    raw: str
    target: str
    display_name: str

    @classmethod
    def parse(cls, raw: str) -> 'LinkReference':
        """Split a raw `[[target|name]]` span into target and display name."""
        inner = raw[2:-2] if raw.startswith('[[') and raw.endswith(']]') else raw
        target, separator, name = inner.partition('|')
        target = target.strip()
        display_name = name.strip() if separator else target
        return cls(raw=raw, target=target, display_name=display_name)

    @property
    def is_attachment(self) -> bool:
        return 'attachment:' in self.target

    @property
    def is_external(self) -> bool:
        return '://' in self.target


@dataclass
class AttachmentReference:
    """An attachment token (`{{attachment:x}}` or `[[attachment:x]]`) found in a line."""

    raw: str
    start: int
    end: int
    name: str
    is_media: bool = False

    def to_markdown(self) -> str:
        """Render the reference as a markdown link or image embed."""
        link = f"[{self.name}]({self.name})"
        return f"!{link}" if self.is_media else link


@dataclass
class WikiPage:
    """A page file in the output tree with its lines loaded for translation."""

    path: str  # e.g. "Team/Members.md" or "Team/index.md", relative to the output root
    lines: List[str] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Initialize default statistics if empty."""
        if not self.stats:
            self.stats = {
                'lines': 0,
                'lines_discarded': 0,
                'headings': 0,
                'tables': 0,
                'code_blocks': 0,
                'links_internal': 0,
                'links_external': 0,
                'links_unresolved': [],
                'attachments': 0,
            }

    @property
    def name(self) -> str:
        """Wiki page name: the path without `.md` and without a trailing `/index`."""
        name = self.path
        if name.endswith('.md'):
            name = name[:-len('.md')]
        if name == 'index':
            return ''
        if name.endswith('/index'):
            name = name[:-len('/index')]
        return name


@dataclass
class RunConfig:
    """Everything a migration run needs, passed explicitly instead of module globals."""

    output_root: Path
    wiki_base_url: Optional[str] = None
    wiki_name: str = ''
    index_page: str = 'TitleIndex'
    session_cookie_name: Optional[str] = None
    session_cookie: Optional[str] = None
    verify_ssl: bool = True
    media_extensions: Tuple[str, ...] = DEFAULT_MEDIA_EXTENSIONS
    request_interval: float = 0.0
    failure_backoff: float = 10.0
    request_timeout: float = 30
    max_retries: int = 3
    workflow: str = 'crawl_then_translate'
    dry_run: bool = False
    report_path: Optional[str] = None
    unresolved_csv_path: Optional[str] = None
    verbosity: int = 0
    log_file: Optional[str] = None

    @property
    def wiki_url(self) -> str:
        """Base URL of the wiki itself, e.g. https://wiki.example.org/mywiki."""
        if not self.wiki_base_url:
            raise ValueError("wiki.base_url is not configured")
        base = self.wiki_base_url.rstrip('/')
        return f"{base}/{self.wiki_name}" if self.wiki_name else base


__all__ = [
    'DEFAULT_MEDIA_EXTENSIONS',
    'FileExistence',
    'ActionKind',
    'LineAction',
    'TableRun',
    'TranslationState',
    'LinkReference',
    'AttachmentReference',
    'WikiPage',
    'RunConfig'
]
