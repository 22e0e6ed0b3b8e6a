"""Converters package for MoinMoin wiki markup to Markdown translation."""

import logging
from typing import Optional

from models import RunConfig
from .attachment_handler import AttachmentHandler
from .line_translator import LineTranslator
from .link_translator import LinkTranslator
from .page_translator import PageTranslator, render_lines
from .path_resolver import PathResolver
from .wiki_path import WikiPath


def create_page_translator(run_config: RunConfig, page_store, attachment_fetcher=None,
                           logger: Optional[logging.Logger] = None) -> PageTranslator:
    """
    Wire up the full translation pipeline for one output tree.

    Args:
        run_config: Run configuration (output root, media extensions)
        page_store: Page source provider (normally an exporters.PageStore)
        attachment_fetcher: Object with `fetch(page_path, name)`, usually an
            exporters.AttachmentManager; None disables attachment downloads
        logger: Optional logger instance

    Returns:
        Ready-to-use PageTranslator

    Example:
        >>> from exporters import PageStore
        >>> store = PageStore(config.output_root)
        >>> translator = create_page_translator(config, store)
        >>> for path in store.iter_pages():
        ...     translator.translate_page(path)
    """
    if logger is None:
        logger = logging.getLogger('moin_markdown_migrator.converters')

    resolver = PathResolver(run_config.output_root)
    line_translator = LineTranslator(
        link_translator=LinkTranslator(resolver),
        attachment_handler=AttachmentHandler(attachment_fetcher, run_config.media_extensions)
    )
    return PageTranslator(line_translator, page_store, logger=logger)


__all__ = [
    'create_page_translator',
    'AttachmentHandler',
    'LineTranslator',
    'LinkTranslator',
    'PageTranslator',
    'PathResolver',
    'WikiPath',
    'render_lines'
]
