"""Resolve wiki link targets against the partially written output tree."""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

from models import FileExistence
from .wiki_path import WikiPath

logger = logging.getLogger('moin_markdown_migrator.converters.path_resolver')

PAGE_SUFFIX = '.md'
INDEX_PAGE = 'index'


class PathResolver:
    """
    Decides which markdown path a wiki link should point to.

    Existence is probed on every call. Pages are written progressively during
    a run, so a link may resolve for one page and not for an earlier one.
    """

    def __init__(self, output_root: Union[str, Path], logger: Optional[logging.Logger] = None):
        self.output_root = Path(output_root)
        self.logger = logger or logging.getLogger('moin_markdown_migrator.converters.path_resolver')

    @staticmethod
    def probe(path: Path) -> FileExistence:
        """Classify a filesystem path as missing, directory or file."""
        try:
            if path.is_dir():
                return FileExistence.DIRECTORY
            if path.exists():
                return FileExistence.FILE
        except OSError:
            return FileExistence.MISSING
        return FileExistence.MISSING

    def resolve(self, page_path: Union[str, WikiPath], target: str) -> Tuple[str, bool]:
        """
        Resolve a link target relative to the page at `page_path`.

        Args:
            page_path: Path of the current page file relative to the output root
            target: Link target as written in the wiki markup

        Returns:
            Tuple of (resolved_path, ok). When not ok the target is returned unchanged.
        """
        self.logger.debug(f"Searching link {target!r} from {page_path}")

        if not target.strip():
            return target, False

        if target.startswith('/'):
            candidate = WikiPath.parse(page_path).parent.join(target)
        else:
            candidate = WikiPath.parse(target)

        if candidate.is_empty():
            return target, False

        if self.probe(candidate.on_disk(self.output_root)) == FileExistence.DIRECTORY:
            return str(candidate.join(INDEX_PAGE)), True

        page_file = candidate.with_name_suffix(PAGE_SUFFIX).on_disk(self.output_root)
        if self.probe(page_file) == FileExistence.FILE:
            return str(candidate), True

        return target, False
