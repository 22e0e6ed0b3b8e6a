"""Export package for writing the migrated wiki to a local markdown tree.

Package Structure:
- page_store: Reads/writes page files, turns pages with sub-pages into directories
- attachment_manager: Downloads attachments next to the page that references them

Layout:
- A page `A/B` is stored as `A/B.md`
- Once `A/B` has sub-pages it is stored as `A/B/index.md`
- Attachments of a page live in the same directory as the page file

Configuration Referenced:
- export.output_directory: Root of the markdown tree
- network.failure_backoff: Pause after a failed attachment download
"""

from .page_store import PageStore, PageStoreError
from .attachment_manager import AttachmentManager

__all__ = [
    'PageStore',
    'PageStoreError',
    'AttachmentManager'
]
