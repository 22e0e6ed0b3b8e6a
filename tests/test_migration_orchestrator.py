"""Tests for the crawl and translate phases and the migration report."""

import json

import pytest

from fetchers import BaseFetcher, FetcherError
from models import RunConfig
from orchestrator import MigrationOrchestrator, MigrationReport

WIKI_PAGES = {
    'FrontPage': "#format wiki\n= Front =\n[[Team]] and [[Team/Members|members]]\n{{attachment:logo.png}}",
    'Team': "Team page\n[[/Members]] and [[Nowhere]]",
    'Team/Members': "||a||b||\n||c||d||",
}


class FakeWikiFetcher(BaseFetcher):
    """In-memory wiki."""

    def __init__(self, pages=None, attachments=None):
        super().__init__()
        self.pages = dict(WIKI_PAGES if pages is None else pages)
        self.attachments = attachments if attachments is not None else {('FrontPage', 'logo.png'): b'PNG'}
        self.page_requests = []
        self.attachment_requests = []

    def list_pages(self):
        return list(self.pages)

    def fetch_page_source(self, page_name):
        self.page_requests.append(page_name)
        return self.pages[page_name]

    def fetch_attachment(self, page_name, attachment_name):
        self.attachment_requests.append((page_name, attachment_name))
        return self.attachments.get((page_name, attachment_name))


def make_orchestrator(tmp_path, fetcher, **overrides):
    settings = dict(
        output_root=tmp_path / 'out',
        wiki_base_url='https://wiki.example.org',
        wiki_name='mywiki',
        failure_backoff=0.0
    )
    settings.update(overrides)
    return MigrationOrchestrator(RunConfig(**settings), fetcher=fetcher, show_progress=False)


def read(tmp_path, path):
    return (tmp_path / 'out' / path).read_text(encoding='utf-8')


class TestMigrationOrchestrator:
    """Test workflows end to end with an in-memory wiki."""

    def test_crawl_then_translate(self, tmp_path):
        fetcher = FakeWikiFetcher()

        report = make_orchestrator(tmp_path, fetcher).orchestrate_migration()

        assert read(tmp_path, 'FrontPage.md') == (
            "# Front\n"
            "[Team](Team/index) and [members](Team/Members)\n"
            "![logo.png](logo.png)\n"
        )
        assert read(tmp_path, 'Team/index.md') == "Team page\n[/Members](Team/Members) and [Nowhere](Nowhere)\n"
        assert read(tmp_path, 'Team/Members.md') == "\n|a|b|\n|---|---|\n|c|d|\n"
        assert (tmp_path / 'out' / 'logo.png').read_bytes() == b'PNG'
        assert not (tmp_path / 'out' / 'Team.md').exists()

        summary = report['summary']
        assert summary['pages_listed'] == 3
        assert summary['pages_translated'] == 3
        assert summary['links_internal'] == 3
        assert summary['links_unresolved'] == 1
        assert summary['attachments'] == 1
        assert report['unresolved_links'] == [{'page': 'Team/index.md', 'target': 'Nowhere'}]
        assert report['phases']['translation']['tables'] == 1

    def test_second_run_skips_existing_attachments(self, tmp_path):
        make_orchestrator(tmp_path, FakeWikiFetcher()).orchestrate_migration()
        fetcher = FakeWikiFetcher()

        report = make_orchestrator(tmp_path, fetcher).orchestrate_migration()

        assert fetcher.attachment_requests == []
        assert report['phases']['translation']['attachments_skipped'] == 1

    def test_crawl_only(self, tmp_path):
        report = make_orchestrator(tmp_path, FakeWikiFetcher(), workflow='crawl_only').orchestrate_migration()

        assert read(tmp_path, 'Team/Members.md') == "||a||b||\n||c||d||"
        assert 'translation' not in report['phases']
        assert report['phases']['crawl']['pages_stored'] == 3

    def test_translate_only(self, tmp_path):
        (tmp_path / 'out').mkdir()
        (tmp_path / 'out' / 'Page.md').write_text("'''hi'''", encoding='utf-8')
        fetcher = FakeWikiFetcher(pages={})

        report = make_orchestrator(tmp_path, fetcher, workflow='translate_only').orchestrate_migration()

        assert read(tmp_path, 'Page.md') == "**hi**\n"
        assert fetcher.page_requests == []
        assert 'crawl' not in report['phases']

    def test_dry_run_writes_nothing(self, tmp_path):
        fetcher = FakeWikiFetcher()

        report = make_orchestrator(tmp_path, fetcher, dry_run=True).orchestrate_migration()

        assert not (tmp_path / 'out').exists()
        assert report['phases']['crawl']['pages_stored'] == 0
        assert fetcher.page_requests == list(WIKI_PAGES)

    def test_failed_attachment_is_not_fatal(self, tmp_path):
        fetcher = FakeWikiFetcher(attachments={})

        report = make_orchestrator(tmp_path, fetcher).orchestrate_migration()

        assert report['summary']['total_errors'] == 1
        assert report['errors'][0]['phase'] == 'translation'
        assert read(tmp_path, 'FrontPage.md').endswith("![logo.png](logo.png)\n")
        assert report['phases']['translation']['failed_pages'] == [
            {'item': 'FrontPage.md', 'reason': 'has 1 failed attachment download(s)'}
        ]
        assert 'FrontPage.md: has 1 failed attachment download(s)' in MigrationReport().format_console_report(report)

    def test_page_without_source_is_a_crawl_failure(self, tmp_path):
        pages = dict(WIKI_PAGES, Locked='')

        report = make_orchestrator(tmp_path, FakeWikiFetcher(pages=pages), workflow='crawl_only').orchestrate_migration()

        crawl = report['phases']['crawl']
        assert crawl['pages_empty'] == 1
        assert crawl['failed_pages'] == [{'item': 'Locked', 'reason': 'has no editable source'}]
        assert read(tmp_path, 'Locked.md') == ''

    def test_fetcher_errors_abort(self, tmp_path):
        class BrokenFetcher(FakeWikiFetcher):
            def fetch_page_source(self, page_name):
                raise FetcherError(f"Requesting {page_name} resulted in status 500")

        with pytest.raises(FetcherError):
            make_orchestrator(tmp_path, BrokenFetcher()).orchestrate_migration()

    def test_empty_index(self, tmp_path):
        report = make_orchestrator(tmp_path, FakeWikiFetcher(pages={})).orchestrate_migration()

        assert report['summary']['pages'] == 0
        assert report['phases']['crawl']['pages_listed'] == 0


class TestMigrationReport:
    """Test report formatting and export."""

    @pytest.fixture
    def report(self, tmp_path):
        return make_orchestrator(tmp_path, FakeWikiFetcher()).orchestrate_migration()

    def test_console_report(self, report):
        text = MigrationReport().format_console_report(report)

        assert 'MIGRATION REPORT' in text
        assert 'Pages: 3 listed, 3 stored, 0 empty' in text
        assert 'Team/index.md: Nowhere' in text
        assert 'Failed pages' not in text

    def test_json_export(self, report, tmp_path):
        path = tmp_path / 'report.json'

        MigrationReport().export_json_report(report, str(path))

        data = json.loads(path.read_text(encoding='utf-8'))
        assert data['workflow'] == 'crawl_then_translate'
        assert data['summary']['pages'] == 3

    def test_unresolved_links_csv(self, report, tmp_path):
        path = tmp_path / 'unresolved.csv'

        MigrationReport().export_unresolved_links_csv(report, str(path))

        assert path.read_text(encoding='utf-8').splitlines() == ['page,target', 'Team/index.md,Nowhere']

    def test_format_duration(self):
        report = MigrationReport()

        assert report._format_duration(12.34) == '12.3s'
        assert report._format_duration(61) == '1m 1s'
        assert report._format_duration(3661) == '1h 1m 1s'
