"""Tests for attachment detection, fetching and substitution."""

from converters.attachment_handler import AttachmentHandler


class RecordingFetcher:
    """Attachment fetcher double that records requests."""

    def __init__(self):
        self.calls = []

    def fetch(self, page_path, name):
        self.calls.append((page_path, name))
        return True


class TestAttachmentHandler:
    """Test the attachment rule."""

    def test_find_attachments(self):
        """Test embeds and links are found with trimmed, alias-free names."""
        handler = AttachmentHandler()
        references = handler.find_attachments('{{attachment:pic.PNG}} and [[attachment: doc.pdf |the doc]]')

        assert [(r.name, r.is_media) for r in references] == [('pic.PNG', True), ('doc.pdf', False)]
        assert references[0].raw == '{{attachment:pic.PNG}}'
        assert references[1].start > references[0].end

    def test_rewrite_substitutes_and_fetches(self):
        """Test media becomes an image embed and other files become links."""
        fetcher = RecordingFetcher()
        handler = AttachmentHandler(fetcher)
        stats = {}

        result = handler.rewrite(
            'Look: {{attachment:pic.png}} or [[attachment:doc.pdf|the doc]]!', 'Team/index.md', stats
        )

        assert result == 'Look: ![pic.png](pic.png) or [doc.pdf](doc.pdf)!'
        assert fetcher.calls == [('Team/index.md', 'pic.png'), ('Team/index.md', 'doc.pdf')]
        assert stats['attachments'] == 2

    def test_duplicate_names_fetched_once(self):
        """Test the same attachment referenced twice in a line is requested once."""
        fetcher = RecordingFetcher()
        handler = AttachmentHandler(fetcher)

        result = handler.rewrite('{{attachment:a.gif}}{{attachment:a.gif}}', 'Home.md')

        assert result == '![a.gif](a.gif)![a.gif](a.gif)'
        assert fetcher.calls == [('Home.md', 'a.gif')]

    def test_rewrite_without_fetcher(self):
        """Test substitution works when downloads are disabled."""
        handler = AttachmentHandler()
        assert handler.rewrite('{{attachment:clip.mp4}}', 'Home.md') == '![clip.mp4](clip.mp4)'

    def test_custom_media_extensions(self):
        """Test the media extension allowlist is configurable."""
        handler = AttachmentHandler(media_extensions=['.SVG', 'pdf'])

        assert handler.is_media('diagram.svg')
        assert handler.is_media('paper.PDF')
        assert not handler.is_media('photo.png')

    def test_line_without_attachments(self):
        """Test lines without attachment tokens are left untouched."""
        fetcher = RecordingFetcher()
        handler = AttachmentHandler(fetcher)
        stats = {}

        assert handler.rewrite('{{not an attachment}} [[Page]]', 'Home.md', stats) == '{{not an attachment}} [[Page]]'
        assert fetcher.calls == []
        assert stats == {}

    def test_substitute_without_references(self):
        assert AttachmentHandler.substitute('text', []) == 'text'
