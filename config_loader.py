"""Configuration loader with YAML support and environment variable substitution."""

import copy
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import yaml

from models import DEFAULT_MEDIA_EXTENSIONS, RunConfig

WORKFLOWS = ('crawl_then_translate', 'crawl_only', 'translate_only')


class ConfigLoader:
    """Handles loading and validation of configuration files."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    @classmethod
    def load(cls, config_path: Optional[str]) -> Dict[str, Any]:
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
        """
        if not config_path or not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            config_data = {}

        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a dictionary")

        return cls._substitute_env_vars_recursive(config_data)

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Validate configuration for required fields and correct values.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ValueError: If validation fails
        """
        workflow = get_nested(config, 'migration.workflow', 'crawl_then_translate')
        if workflow not in WORKFLOWS:
            raise ValueError(f"migration.workflow must be one of: {list(WORKFLOWS)}")

        cls._validate_required_field(config, 'export.output_directory')
        output_dir = get_nested(config, 'export.output_directory')
        if output_dir and os.path.exists(output_dir) and not os.path.isdir(output_dir):
            raise ValueError(f"export.output_directory '{output_dir}' is not a directory")

        # Translation downloads attachments too, so every workflow talks to the wiki
        cls._validate_required_field(config, 'wiki.base_url')
        cls._validate_url(get_nested(config, 'wiki.base_url'), 'wiki.base_url')

        wiki_name = get_nested(config, 'wiki.name', '')
        if not isinstance(wiki_name, str):
            raise ValueError("wiki.name must be a string")

        if get_nested(config, 'wiki.session_cookie'):
            cls._validate_required_field(config, 'wiki.session_cookie_name')

        for field, default in (('wiki.verify_ssl', True), ('migration.dry_run', False)):
            parse_bool(get_nested(config, field, default), field)

        extensions = get_nested(config, 'export.media_extensions', list(DEFAULT_MEDIA_EXTENSIONS))
        if not isinstance(extensions, list) or not all(isinstance(ext, str) and ext for ext in extensions):
            raise ValueError("export.media_extensions must be a list of file extensions")

        for field in ('network.request_interval', 'network.failure_backoff'):
            value = get_nested(config, field, 0.0)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                raise ValueError(f"{field} must be a non-negative number")

        timeout = get_nested(config, 'network.request_timeout', 30)
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError("network.request_timeout must be a positive number")

        max_retries = get_nested(config, 'network.max_retries', 3)
        if isinstance(max_retries, bool) or not isinstance(max_retries, int) or max_retries < 0:
            raise ValueError("network.max_retries must be a non-negative integer")

    @classmethod
    def merge_with_args(cls, config: Dict[str, Any], args) -> Dict[str, Any]:
        """
        Merge configuration file with CLI arguments.
        CLI arguments take precedence over config file values.

        Args:
            config: Base configuration dictionary
            args: CLI arguments with attributes matching config keys

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(config)

        for section in ('wiki', 'export', 'network', 'migration', 'logging'):
            if not isinstance(merged.get(section), dict):
                merged[section] = {}

        if getattr(args, 'url', None):
            merged['wiki']['base_url'] = args.url

        if getattr(args, 'wiki_name', None) is not None:
            merged['wiki']['name'] = args.wiki_name

        if getattr(args, 'session_cookie_name', None):
            merged['wiki']['session_cookie_name'] = args.session_cookie_name

        if getattr(args, 'session_cookie', None):
            merged['wiki']['session_cookie'] = args.session_cookie

        if getattr(args, 'output_dir', None):
            merged['export']['output_directory'] = args.output_dir

        if getattr(args, 'workflow', None):
            merged['migration']['workflow'] = args.workflow

        if getattr(args, 'dry_run', None) is not None:
            merged['migration']['dry_run'] = args.dry_run

        if getattr(args, 'report_path', None):
            merged['migration']['report_path'] = args.report_path

        if getattr(args, 'unresolved_csv', None):
            merged['migration']['unresolved_csv'] = args.unresolved_csv

        if getattr(args, 'log_file', None):
            merged['logging']['file'] = args.log_file

        # Default the output directory to the wiki name, as the wiki's files live under it
        if not merged['export'].get('output_directory') and merged['wiki'].get('name'):
            merged['export']['output_directory'] = merged['wiki']['name']

        return merged

    @classmethod
    def build_run_config(cls, config: Dict[str, Any], verbosity: int = 0) -> RunConfig:
        """
        Turn a validated configuration dictionary into a RunConfig.

        Args:
            config: Validated configuration dictionary
            verbosity: CLI verbosity count

        Returns:
            RunConfig for the orchestrator
        """
        extensions = get_nested(config, 'export.media_extensions', list(DEFAULT_MEDIA_EXTENSIONS))
        return RunConfig(
            output_root=Path(get_nested(config, 'export.output_directory')),
            wiki_base_url=get_nested(config, 'wiki.base_url'),
            wiki_name=get_nested(config, 'wiki.name', '') or '',
            index_page=get_nested(config, 'wiki.index_page', 'TitleIndex'),
            session_cookie_name=get_nested(config, 'wiki.session_cookie_name'),
            session_cookie=get_nested(config, 'wiki.session_cookie'),
            verify_ssl=parse_bool(get_nested(config, 'wiki.verify_ssl', True), 'wiki.verify_ssl'),
            media_extensions=tuple(ext.lower().lstrip('.') for ext in extensions),
            request_interval=float(get_nested(config, 'network.request_interval', 0.0)),
            failure_backoff=float(get_nested(config, 'network.failure_backoff', 10.0)),
            request_timeout=get_nested(config, 'network.request_timeout', 30),
            max_retries=get_nested(config, 'network.max_retries', 3),
            workflow=get_nested(config, 'migration.workflow', 'crawl_then_translate'),
            dry_run=parse_bool(get_nested(config, 'migration.dry_run', False), 'migration.dry_run'),
            report_path=get_nested(config, 'migration.report_path'),
            unresolved_csv_path=get_nested(config, 'migration.unresolved_csv'),
            verbosity=verbosity,
            log_file=get_nested(config, 'logging.file')
        )

    @classmethod
    def _substitute_env_vars_recursive(cls, data: Any) -> Any:
        """Recursively substitute environment variables in data structure."""
        if isinstance(data, dict):
            return {key: cls._substitute_env_vars_recursive(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [cls._substitute_env_vars_recursive(item) for item in data]
        elif isinstance(data, str):
            return cls._substitute_env_vars(data)
        else:
            return data

    @classmethod
    def _substitute_env_vars(cls, value: str) -> str:
        """Substitute environment variables in a string value."""
        def replace_match(match):
            var_name = match.group(1)
            env_value = os.getenv(var_name)
            return env_value if env_value is not None else match.group(0)

        return cls.ENV_VAR_PATTERN.sub(replace_match, value)

    @staticmethod
    def _validate_required_field(config_section: dict, field: str) -> None:
        """Validate that a required field exists and has a value."""
        value = get_nested(config_section, field)
        if value is None or value == '':
            raise ValueError(f"Missing required configuration: {field}")

        if isinstance(value, str) and '${' in value:
            match = ConfigLoader.ENV_VAR_PATTERN.search(value)
            var_name = match.group(1) if match else value
            raise ValueError(
                f"Configuration field '{field}' contains unsubstituted environment variable: {value}. "
                f"Please set the {var_name} environment variable or provide a value in config file."
            )

    @staticmethod
    def _validate_url(url: str, field_name: str) -> None:
        """Validate URL format."""
        parsed = urlparse(url)
        if not parsed.scheme or parsed.scheme not in ['http', 'https']:
            raise ValueError(f"{field_name} must use http or https scheme: {url}")
        if not parsed.netloc:
            raise ValueError(f"{field_name} missing hostname: {url}")


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Safely retrieve nested configuration values using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "wiki.base_url")
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default
    """
    keys = path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


def parse_bool(value: Any, field: str) -> bool:
    """Accept a boolean, or the strings "true"/"false" that `${VAR}` substitution produces.

    Raises:
        ValueError: For any other value
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ('true', 'false'):
        return value.strip().lower() == 'true'
    raise ValueError(f"{field} must be a boolean (true or false), got {value!r}")


__all__ = ['ConfigLoader', 'get_nested', 'parse_bool', 'WORKFLOWS']
