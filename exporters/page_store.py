"""Page source storage in the output tree, including directory bootstrapping for sub-pages."""

import logging
import os
from pathlib import Path
from typing import List, Optional, Union

from converters.wiki_path import WikiPath

PAGE_SUFFIX = '.md'
INDEX_FILE = 'index' + PAGE_SUFFIX


def split_lines(text: str) -> List[str]:
    r"""
    Split page text on `\n` only, dropping one `\r` before each break.

    Other characters `str.splitlines` treats as breaks (form feed, `\u2028`, a
    lone `\r`) stay part of the line.
    """
    if not text:
        return []
    lines = text.split('\n')
    if lines[-1] == '':
        lines.pop()
    return [line[:-1] if line.endswith('\r') else line for line in lines]


class PageStoreError(Exception):
    """Raised when a page file cannot be read, written or moved."""
    pass


class PageStore:
    """
    Reads and writes page files below the output root.

    A page `A/B` lives in `A/B.md`. Once a page gets sub-pages its file moves
    into a directory of the same name as `A/B/index.md`.
    """

    def __init__(self, output_root: Union[str, Path], logger: Optional[logging.Logger] = None):
        """
        Initialize the page store.

        Args:
            output_root: Root directory of the markdown tree
            logger: Logger instance
        """
        self.output_root = Path(output_root)
        self.logger = logger or logging.getLogger('moin_markdown_migrator.exporters.page_store')

    def read_lines(self, path: str) -> List[str]:
        """
        Read a page file as a list of lines without line terminators.

        Raises:
            PageStoreError: If the file cannot be read
        """
        file_path = WikiPath.parse(path).on_disk(self.output_root)
        try:
            with open(file_path, 'r', encoding='utf-8', newline='') as f:
                return split_lines(f.read())
        except (OSError, UnicodeDecodeError) as e:
            raise PageStoreError(f"Failed to read page {file_path}: {e}") from e

    def write_lines(self, path: str, lines: List[str]) -> None:
        """
        Replace a page file's content with `lines`, one per line.

        Raises:
            PageStoreError: If the file cannot be written
        """
        file_path = WikiPath.parse(path).on_disk(self.output_root)
        try:
            with open(file_path, 'w', encoding='utf-8', newline='\n') as f:
                for line in lines:
                    f.write(line + '\n')
        except OSError as e:
            raise PageStoreError(f"Failed to write page {file_path}: {e}") from e

    def iter_pages(self) -> List[str]:
        """List every page file below the root in walk order, skipping `.git` directories."""
        if not self.output_root.is_dir():
            return []

        pages = []
        for dirpath, dirnames, filenames in os.walk(self.output_root):
            dirnames[:] = sorted(d for d in dirnames if d != '.git')
            relative_dir = Path(dirpath).relative_to(self.output_root)
            for filename in sorted(filenames):
                if filename.endswith(PAGE_SUFFIX):
                    pages.append((relative_dir / filename).as_posix())
        return pages

    def page_path(self, name: Union[str, WikiPath]) -> str:
        """Relative file path for page `name`, honouring pages that already became directories."""
        page = WikiPath.parse(name)
        if page.is_empty():
            return INDEX_FILE
        if page.on_disk(self.output_root).is_dir():
            return str(page.join(INDEX_FILE))
        return str(page.with_name_suffix(PAGE_SUFFIX))

    def ensure_directory(self, name: Union[str, WikiPath]) -> Path:
        """
        Make sure the page `name` is a directory so sub-pages can be stored in it.

        Every ancestor that exists only as a page file `X.md` is turned into a
        directory `X/` with the former file moved to `X/index.md`.

        Returns:
            The directory path on disk

        Raises:
            PageStoreError: If a directory cannot be created or a page cannot be moved
        """
        current = WikiPath()
        for segment in WikiPath.parse(name).segments:
            current = current.join(segment)
            directory = current.on_disk(self.output_root)
            if directory.is_dir():
                continue

            page_file = current.with_name_suffix(PAGE_SUFFIX).on_disk(self.output_root)
            try:
                directory.mkdir(parents=True, exist_ok=True)
                if page_file.is_file():
                    self.logger.info(f"{page_file} is not a directory, moving it to {directory / INDEX_FILE}")
                    page_file.rename(directory / INDEX_FILE)
            except OSError as e:
                raise PageStoreError(f"Failed to turn {current} into a directory: {e}") from e

        directory = WikiPath.parse(name).on_disk(self.output_root)
        self.logger.debug(f"{directory} is now a directory")
        return directory

    def store_page(self, name: Union[str, WikiPath], text: str) -> str:
        """
        Write the raw source of page `name`, creating parent directories as needed.

        Returns:
            Relative path of the written page file
        """
        page = WikiPath.parse(name)
        if not page.parent.is_empty():
            self.ensure_directory(page.parent)
        else:
            try:
                self.output_root.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise PageStoreError(f"Failed to create output root {self.output_root}: {e}") from e

        path = self.page_path(page)
        file_path = WikiPath.parse(path).on_disk(self.output_root)
        try:
            file_path.write_text(text, encoding='utf-8')
        except OSError as e:
            raise PageStoreError(f"Failed to write page {file_path}: {e}") from e

        self.logger.debug(f"Stored page {name!r} at {file_path}")
        return path
