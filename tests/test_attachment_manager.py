"""Tests for downloading attachments next to their page."""

import pytest

from exporters.attachment_manager import AttachmentManager


class FakeFetcher:
    """Wiki fetcher double serving attachments from a dictionary."""

    def __init__(self, attachments=None):
        self.attachments = attachments or {}
        self.calls = []

    def fetch_attachment(self, page_name, attachment_name):
        self.calls.append((page_name, attachment_name))
        return self.attachments.get((page_name, attachment_name))


class TestAttachmentManager:
    """Test the attachment download contract."""

    def test_download_next_to_index_page(self, tmp_path):
        """Test attachments of a directory page land in that directory."""
        fetcher = FakeFetcher({('Team', 'pic.png'): b'PNG'})
        manager = AttachmentManager(tmp_path, fetcher)

        assert manager.fetch('Team/index.md', 'pic.png') is True

        assert fetcher.calls == [('Team', 'pic.png')]
        assert (tmp_path / 'Team' / 'pic.png').read_bytes() == b'PNG'
        assert manager.get_stats()['downloaded'] == 1
        assert manager.get_stats()['total_size_bytes'] == 3

    def test_download_next_to_file_page(self, tmp_path):
        fetcher = FakeFetcher({('Team/Members', 'cv.pdf'): b'PDF'})
        manager = AttachmentManager(tmp_path, fetcher)

        manager.fetch('Team/Members.md', 'cv.pdf')

        assert (tmp_path / 'Team' / 'cv.pdf').read_bytes() == b'PDF'

    def test_existing_attachment_is_not_fetched_again(self, tmp_path):
        """Test fetching is idempotent once the file exists."""
        (tmp_path / 'logo.png').write_bytes(b'original')
        fetcher = FakeFetcher({('Home', 'logo.png'): b'new'})
        manager = AttachmentManager(tmp_path, fetcher)

        assert manager.fetch('Home.md', 'logo.png') is True
        assert manager.fetch('Home.md', 'logo.png') is True

        assert fetcher.calls == []
        assert (tmp_path / 'logo.png').read_bytes() == b'original'
        assert manager.get_stats()['skipped'] == 2

    def test_failed_download_backs_off_and_continues(self, tmp_path):
        """Test a missing attachment is recorded and followed by one backoff."""
        sleeps = []
        manager = AttachmentManager(tmp_path, FakeFetcher(), failure_backoff=10.0, sleep=sleeps.append)

        assert manager.fetch('Home.md', 'gone.png') is False

        stats = manager.get_stats()
        assert sleeps == [10.0]
        assert stats['failed'] == 1
        assert stats['errors'][0]['attachment'] == 'gone.png'
        assert not (tmp_path / 'gone.png').exists()

    @pytest.mark.parametrize('name', ['../escape.png', 'a/b.png', '..', ''])
    def test_unsafe_names_are_refused(self, tmp_path, name):
        fetcher = FakeFetcher()
        manager = AttachmentManager(tmp_path, fetcher)

        assert manager.fetch('Home.md', name) is False
        assert fetcher.calls == []

    def test_dry_run(self, tmp_path):
        fetcher = FakeFetcher({('Home', 'a.png'): b'x'})
        manager = AttachmentManager(tmp_path, fetcher, dry_run=True)

        assert manager.fetch('Home.md', 'a.png') is False
        assert fetcher.calls == []
        assert not (tmp_path / 'a.png').exists()

    def test_missing_fetcher(self, tmp_path):
        with pytest.raises(ValueError):
            AttachmentManager(tmp_path).fetch('Home.md', 'a.png')
