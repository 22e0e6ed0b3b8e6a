"""Tests for configuration loading, merging and validation."""

import argparse
from pathlib import Path

import pytest
import yaml

from config_loader import ConfigLoader, get_nested, parse_bool
from models import DEFAULT_MEDIA_EXTENSIONS


def make_args(**overrides):
    values = dict(url=None, wiki_name=None, session_cookie_name=None, session_cookie=None,
                  output_dir=None, workflow=None, dry_run=None, report_path=None, log_file=None)
    values.update(overrides)
    return argparse.Namespace(**values)


@pytest.fixture
def valid_config(tmp_path):
    return {
        'wiki': {'base_url': 'https://wiki.example.org', 'name': 'mywiki'},
        'export': {'output_directory': str(tmp_path / 'out')}
    }


class TestLoad:
    """Test reading YAML files."""

    def test_env_var_substitution(self, tmp_path, monkeypatch):
        monkeypatch.setenv('MOIN_COOKIE', 's3cret')
        config_file = tmp_path / 'config.yaml'
        config_file.write_text(
            "wiki:\n"
            "  base_url: https://wiki.example.org\n"
            "  session_cookie: ${MOIN_COOKIE}\n"
            "  session_cookie_name: ${UNSET_VARIABLE_FOR_TEST}\n",
            encoding='utf-8'
        )
        monkeypatch.delenv('UNSET_VARIABLE_FOR_TEST', raising=False)

        config = ConfigLoader.load(str(config_file))

        assert config['wiki']['session_cookie'] == 's3cret'
        assert config['wiki']['session_cookie_name'] == '${UNSET_VARIABLE_FOR_TEST}'

    def test_empty_file(self, tmp_path):
        config_file = tmp_path / 'empty.yaml'
        config_file.write_text('', encoding='utf-8')

        assert ConfigLoader.load(str(config_file)) == {}

    def test_not_a_mapping(self, tmp_path):
        config_file = tmp_path / 'list.yaml'
        config_file.write_text('- a\n- b\n', encoding='utf-8')

        with pytest.raises(ValueError):
            ConfigLoader.load(str(config_file))

    def test_invalid_yaml(self, tmp_path):
        config_file = tmp_path / 'broken.yaml'
        config_file.write_text('wiki: [unclosed\n', encoding='utf-8')

        with pytest.raises(yaml.YAMLError):
            ConfigLoader.load(str(config_file))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigLoader.load(str(tmp_path / 'nope.yaml'))


class TestValidate:
    """Test configuration validation."""

    def test_valid_minimal_config(self, valid_config):
        ConfigLoader.validate(valid_config)

    @pytest.mark.parametrize('path, value, message', [
        ('migration.workflow', 'export_only', 'workflow'),
        ('wiki.base_url', None, 'wiki.base_url'),
        ('wiki.base_url', 'ftp://wiki.example.org', 'http or https'),
        ('wiki.base_url', 'https://', 'hostname'),
        ('wiki.verify_ssl', 'yes', 'verify_ssl'),
        ('migration.dry_run', 'maybe', 'dry_run'),
        ('migration.dry_run', 1, 'dry_run'),
        ('export.media_extensions', 'png', 'media_extensions'),
        ('network.request_interval', -1, 'request_interval'),
        ('network.failure_backoff', True, 'failure_backoff'),
        ('network.request_timeout', 0, 'request_timeout'),
        ('network.max_retries', 1.5, 'max_retries'),
    ])
    def test_invalid_values(self, valid_config, path, value, message):
        section, key = path.split('.')
        valid_config.setdefault(section, {})[key] = value

        with pytest.raises(ValueError, match=message):
            ConfigLoader.validate(valid_config)

    def test_missing_output_directory(self, valid_config):
        del valid_config['export']

        with pytest.raises(ValueError, match='export.output_directory'):
            ConfigLoader.validate(valid_config)

    def test_cookie_requires_name(self, valid_config):
        valid_config['wiki']['session_cookie'] = 'abc'

        with pytest.raises(ValueError, match='session_cookie_name'):
            ConfigLoader.validate(valid_config)

    def test_unsubstituted_env_var(self, valid_config):
        valid_config['wiki']['base_url'] = '${WIKI_URL}'

        with pytest.raises(ValueError, match='WIKI_URL'):
            ConfigLoader.validate(valid_config)

    def test_output_directory_is_a_file(self, valid_config, tmp_path):
        (tmp_path / 'file').write_text('x')
        valid_config['export']['output_directory'] = str(tmp_path / 'file')

        with pytest.raises(ValueError, match='not a directory'):
            ConfigLoader.validate(valid_config)


class TestMergeAndBuild:
    """Test CLI overrides and RunConfig construction."""

    def test_cli_overrides_file(self, valid_config):
        merged = ConfigLoader.merge_with_args(valid_config, make_args(
            url='https://other.example.org', workflow='translate_only', dry_run=True, output_dir='elsewhere'
        ))

        assert merged['wiki']['base_url'] == 'https://other.example.org'
        assert merged['migration'] == {'workflow': 'translate_only', 'dry_run': True}
        assert merged['export']['output_directory'] == 'elsewhere'
        assert valid_config['wiki']['base_url'] == 'https://wiki.example.org'

    def test_output_directory_defaults_to_wiki_name(self):
        merged = ConfigLoader.merge_with_args({}, make_args(url='https://wiki.example.org', wiki_name='carolo'))

        assert merged['export']['output_directory'] == 'carolo'
        ConfigLoader.validate(merged)

    def test_build_run_config(self, valid_config):
        valid_config['export']['media_extensions'] = ['.PNG', 'svg']
        valid_config['network'] = {'request_interval': 1, 'failure_backoff': 3}

        run_config = ConfigLoader.build_run_config(valid_config, verbosity=2)

        assert run_config.output_root == Path(valid_config['export']['output_directory'])
        assert run_config.wiki_url == 'https://wiki.example.org/mywiki'
        assert run_config.media_extensions == ('png', 'svg')
        assert run_config.request_interval == 1.0
        assert run_config.failure_backoff == 3.0
        assert run_config.workflow == 'crawl_then_translate'
        assert run_config.verbosity == 2

    def test_build_run_config_defaults(self, valid_config):
        run_config = ConfigLoader.build_run_config(valid_config)

        assert run_config.media_extensions == DEFAULT_MEDIA_EXTENSIONS
        assert run_config.index_page == 'TitleIndex'
        assert run_config.dry_run is False

    def test_boolean_settings_from_environment(self, tmp_path, monkeypatch):
        """Test `${VAR}` substitution yielding "false" keeps dry-run off."""
        monkeypatch.setenv('DRY_RUN', 'false')
        monkeypatch.setenv('VERIFY_SSL', 'False')
        config_file = tmp_path / 'config.yaml'
        config_file.write_text(
            "wiki:\n"
            "  base_url: https://wiki.example.org\n"
            "  verify_ssl: \"${VERIFY_SSL}\"\n"
            f"export:\n  output_directory: {tmp_path.as_posix()}/out\n"
            "migration:\n  dry_run: \"${DRY_RUN}\"\n",
            encoding='utf-8'
        )
        config = ConfigLoader.load(str(config_file))
        ConfigLoader.validate(config)

        run_config = ConfigLoader.build_run_config(config)

        assert run_config.dry_run is False
        assert run_config.verify_ssl is False

    def test_unresolved_csv_path(self, valid_config):
        merged = ConfigLoader.merge_with_args(valid_config, make_args(unresolved_csv='links.csv'))

        assert ConfigLoader.build_run_config(merged).unresolved_csv_path == 'links.csv'


def test_get_nested():
    config = {'a': {'b': {'c': 1}}}

    assert get_nested(config, 'a.b.c') == 1
    assert get_nested(config, 'a.x.c', 'default') == 'default'
    assert get_nested(config, 'a.b.c.d') is None


@pytest.mark.parametrize('value, expected', [
    (True, True),
    (False, False),
    ('true', True),
    (' TRUE ', True),
    ('false', False),
    ('False', False),
])
def test_parse_bool(value, expected):
    assert parse_bool(value, 'migration.dry_run') is expected


@pytest.mark.parametrize('value', ['yes', '', '0', 0, None])
def test_parse_bool_rejects_other_values(value):
    with pytest.raises(ValueError, match='migration.dry_run'):
        parse_bool(value, 'migration.dry_run')
