"""Segment-based path arithmetic for page paths inside the output tree."""

from pathlib import Path
from typing import Iterable, Tuple, Union


class WikiPath:
    """
    An ordered list of path components relative to the output root.

    Empty segments and leading/trailing slashes are dropped, so joining a
    sub-page reference like "/Child" onto a directory never produces an
    absolute path or a doubled separator.
    """

    __slots__ = ('segments',)

    def __init__(self, segments: Iterable[str] = ()):
        self.segments: Tuple[str, ...] = tuple(s for s in segments if s)

    @classmethod
    def parse(cls, path: Union[str, 'WikiPath']) -> 'WikiPath':
        """Build a path from a slash-separated string."""
        if isinstance(path, WikiPath):
            return path
        return cls(path.replace('\\', '/').split('/'))

    @property
    def parent(self) -> 'WikiPath':
        return WikiPath(self.segments[:-1])

    @property
    def name(self) -> str:
        return self.segments[-1] if self.segments else ''

    def is_empty(self) -> bool:
        return not self.segments

    def join(self, other: Union[str, 'WikiPath']) -> 'WikiPath':
        """Append the segments of `other`; a leading slash in `other` is not treated as absolute."""
        return WikiPath(self.segments + WikiPath.parse(other).segments)

    def with_name_suffix(self, suffix: str) -> 'WikiPath':
        """Return the path with `suffix` appended to its last segment."""
        if not self.segments:
            raise ValueError("Cannot add a suffix to an empty path")
        return WikiPath(self.segments[:-1] + (self.segments[-1] + suffix,))

    def strip_suffix(self, suffix: str) -> 'WikiPath':
        """Remove `suffix` from the last segment if present."""
        if self.segments and self.segments[-1].endswith(suffix) and self.segments[-1] != suffix:
            return WikiPath(self.segments[:-1] + (self.segments[-1][:-len(suffix)],))
        return self

    def on_disk(self, root: Path) -> Path:
        """Resolve the path against a filesystem root."""
        return root.joinpath(*self.segments)

    def __str__(self) -> str:
        return '/'.join(self.segments)

    def __repr__(self) -> str:
        return f"WikiPath({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, WikiPath):
            return self.segments == other.segments
        if isinstance(other, str):
            return self.segments == WikiPath.parse(other).segments
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.segments)
