"""Structured logging infrastructure with verbosity levels and progress tracking."""

import copy
import logging
import logging.handlers
import time
from typing import Any, Dict, List, Optional, Tuple

import colorlog

ROOT_LOGGER_NAME = 'moin_markdown_migrator'


def setup_logging(
    verbosity: int = 0,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    level: Optional[str] = None
) -> logging.Logger:
    """
    Set up structured logging with configurable verbosity levels.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG)
        log_file: Optional path to log file
        log_format: Optional custom log format string
        date_format: Optional custom date format string
        level: Optional explicit log level string, overrides verbosity

    Returns:
        Configured logger instance
    """
    if level:
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        level_upper = level.upper()
        if level_upper not in allowed_levels:
            raise ValueError(
                f"Invalid log level '{level}'. Must be one of: {sorted(allowed_levels)}"
            )
        log_level = getattr(logging, level_upper)
    else:
        if verbosity >= 2:
            log_level = logging.DEBUG
        elif verbosity >= 1:
            log_level = logging.INFO
        else:
            log_level = logging.WARNING

    if log_format is None:
        log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    if date_format is None:
        date_format = '%Y-%m-%d %H:%M:%S'

    # Root stays at WARNING to keep requests/urllib3 quiet
    logging.basicConfig(
        level=logging.WARNING,
        format=log_format,
        datefmt=date_format
    )

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(log_level)
    logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(colorlog.ColoredFormatter(
        fmt='%(log_color)s' + log_format,
        datefmt=date_format,
        log_colors={
            'DEBUG': 'cyan',
            'INFO': 'green',
            'WARNING': 'yellow',
            'ERROR': 'red',
            'CRITICAL': 'red,bg_white',
        }
    ))
    logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding='utf-8'
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(logging.Formatter(fmt=log_format, datefmt=date_format))
            logger.addHandler(file_handler)

            logger.info(f"Logging to file: {log_file}")
            logger.info(f"Log level: {logging.getLevelName(log_level)}")
        except OSError as e:
            logger.warning(f"Failed to set up file logging: {str(e)}")
    else:
        logger.info(f"Console logging only. Level: {logging.getLevelName(log_level)}")

    return logger


class ProgressTracker:
    """
    Counts the items of one migration phase and logs a summary when it ends.

    Failed items are remembered together with the reason, so the phase
    summary can name them and the report can list them.
    """

    # Failed items named in the closing summary
    MAX_LISTED_FAILURES = 20

    def __init__(self, total_items: int, item_type: str = "pages", phase: Optional[str] = None,
                 log_every: int = 10):
        """
        Initialize progress tracker.

        Args:
            total_items: Number of items the phase will handle
            item_type: Plural noun for the items, e.g. "pages"
            phase: Phase label used in log messages, e.g. "crawl"
            log_every: Log a progress line after this many items
        """
        self.total_items = total_items
        self.item_type = item_type
        self.label = phase.capitalize() if phase else item_type.capitalize()
        self.log_every = max(1, log_every)
        self.successful_items = 0
        self.failures: List[Tuple[str, str]] = []
        self.start_time: Optional[float] = None
        self.logger = logging.getLogger(ROOT_LOGGER_NAME)

    @property
    def failed_items(self) -> int:
        return len(self.failures)

    @property
    def processed_items(self) -> int:
        return self.successful_items + self.failed_items

    def __enter__(self) -> 'ProgressTracker':
        self.start_time = time.monotonic()
        self.logger.info(f"{self.label}: {self.total_items} {self.item_type} to process")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time is None:
            return

        if exc_type is not None or (self.total_items and self.failed_items == self.total_items):
            level = logging.ERROR
        elif self.failures:
            level = logging.WARNING
        else:
            level = logging.INFO

        stats = self.get_stats()
        outcome = "aborted" if exc_type is not None else "finished"
        self.logger.log(
            level,
            f"{self.label} {outcome}: {stats['successful']}/{self.total_items} {self.item_type} ok, "
            f"{stats['failed']} failed ({stats['success_rate']:.1f}%) in {stats['elapsed_time_formatted']}"
        )
        for item, reason in self.failures[:self.MAX_LISTED_FAILURES]:
            self.logger.log(level, f"  {item}: {reason}")
        if self.failed_items > self.MAX_LISTED_FAILURES:
            self.logger.log(level, f"  ... and {self.failed_items - self.MAX_LISTED_FAILURES} more")

    def increment(self, success: bool = True, item: Optional[str] = None, reason: str = "failed") -> None:
        """
        Record one handled item.

        Args:
            success: Whether the item was handled successfully
            item: Item name, remembered when it failed
            reason: Why the item failed
        """
        if success:
            self.successful_items += 1
        else:
            name = item if item is not None else f"#{self.processed_items + 1}"
            self.failures.append((name, reason))
            self.logger.warning(f"{self.label}: {name} {reason}")

        if self.processed_items % self.log_every == 0:
            self.logger.info(
                f"{self.label}: {self.processed_items}/{self.total_items} {self.item_type} "
                f"({self.total_items - self.processed_items} remaining)"
            )

    def get_stats(self) -> Dict[str, Any]:
        """Counts, failed item names and elapsed time so far."""
        elapsed = 0.0 if self.start_time is None else time.monotonic() - self.start_time
        return {
            'total': self.total_items,
            'processed': self.processed_items,
            'successful': self.successful_items,
            'failed': self.failed_items,
            'failed_items': [{'item': item, 'reason': reason} for item, reason in self.failures],
            'success_rate': (self.successful_items / self.total_items * 100) if self.total_items else 100.0,
            'elapsed_time': elapsed,
            'elapsed_time_formatted': self._format_elapsed(elapsed)
        }

    @staticmethod
    def _format_elapsed(seconds: float) -> str:
        if seconds < 60:
            return f"{seconds:.1f}s"
        minutes, seconds = divmod(int(seconds), 60)
        hours, minutes = divmod(minutes, 60)
        if hours:
            return f"{hours}h {minutes}m {seconds}s"
        return f"{minutes}m {seconds}s"


def log_section(title: str) -> None:
    """
    Log a decorative section header.

    Args:
        title: Section title to display
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)

    separator = "=" * 60
    logger.info("")
    logger.info(separator)
    logger.info(f"  {title.upper()}")
    logger.info(separator)
    logger.info("")


def log_config(config: Dict[str, Any]) -> None:
    """
    Log sanitized configuration for debugging.

    Args:
        config: Configuration dictionary to log
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)

    sanitized_config = _sanitize_config(config)

    log_section("Configuration")

    wiki = sanitized_config.get('wiki', {})
    logger.info(f"Wiki Base URL: {wiki.get('base_url', 'Not Set')}")
    logger.info(f"Wiki Name: {wiki.get('name', 'Not Set')}")
    logger.info(f"Index Page: {wiki.get('index_page', 'TitleIndex')}")
    if wiki.get('session_cookie_name'):
        logger.info(f"Session Cookie Name: {wiki.get('session_cookie_name')}")
    logger.info("Session Cookie: ***REDACTED***" if wiki.get('session_cookie') else "Session Cookie: Not Set")
    logger.info("")

    export_settings = sanitized_config.get('export', {})
    logger.info(f"Output Directory: {export_settings.get('output_directory', 'Not Set')}")
    logger.info(f"Media Extensions: {export_settings.get('media_extensions', 'default')}")
    logger.info("")

    network = sanitized_config.get('network', {})
    logger.info(f"Request Interval: {network.get('request_interval', 0.0)}s")
    logger.info(f"Failure Backoff: {network.get('failure_backoff', 10.0)}s")
    logger.info(f"Request Timeout: {network.get('request_timeout', 30)}s")
    logger.info(f"Max Retries: {network.get('max_retries', 3)}")
    logger.info("")

    migration = sanitized_config.get('migration', {})
    logger.info(f"Workflow: {migration.get('workflow', 'crawl_then_translate')}")
    logger.info(f"Dry Run: {migration.get('dry_run', False)}")
    logger.info(f"Report Path: {migration.get('report_path', 'Not Set')}")
    logger.info(f"Unresolved Links CSV: {migration.get('unresolved_csv', 'Not Set')}")


def _sanitize_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create a sanitized copy of configuration with sensitive fields masked.

    Args:
        config: Configuration dictionary

    Returns:
        Sanitized configuration copy
    """
    sanitized = copy.deepcopy(config)

    # Keys ending in these are secrets; "session_cookie_name" is not
    sensitive_suffixes = ('password', 'secret', 'token', 'session_cookie', 'api_key')

    def mask_sensitive(data: Any) -> Any:
        """Recursively mask sensitive fields."""
        if isinstance(data, dict):
            masked = {}
            for key, value in data.items():
                is_sensitive = str(key).lower().endswith(sensitive_suffixes)
                if is_sensitive and isinstance(value, str) and value:
                    masked[key] = "***REDACTED***"
                else:
                    masked[key] = mask_sensitive(value)
            return masked
        elif isinstance(data, list):
            return [mask_sensitive(item) for item in data]
        else:
            return data

    return mask_sensitive(sanitized)


__all__ = [
    'setup_logging',
    'ProgressTracker',
    'log_section',
    'log_config'
]
