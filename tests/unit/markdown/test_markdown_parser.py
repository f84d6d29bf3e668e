"""Unit tests for markdown.markdown_parser module."""

from src.markdown.markdown_parser import extract_links, mask_code


class TestExtractLinks:
    """Test cases for extract_links()."""

    def test_inline_image_and_reference(self):
        """Inline links, images and reference definitions are found in order."""
        content = 'See [a](a.md) and ![img](pic.png "t").\n[b]: <b b.md>\n'

        links = extract_links(content)

        assert [(l.href, l.text, l.line) for l in links] == [
            ('a.md', 'a', 1),
            ('pic.png', 'img', 1),
            ('b b.md', 'b', 2),
        ]

    def test_offsets_point_at_href(self):
        """start/end delimit exactly the href text."""
        content = 'Intro\n[a](docs/a.md#x) [b](<b.md>)\n'

        for link in extract_links(content):
            assert content[link.start:link.end] == link.href

    def test_nested_badge(self):
        """An image inside link text is reported along with the link."""
        links = extract_links('[![CI](badge.svg)](ci.md)')

        assert [l.href for l in links] == ['badge.svg', 'ci.md']

    def test_code_is_ignored(self):
        """Links inside fenced blocks and inline code are masked."""
        content = "```\n[x](x.md)\n```\nUse `[y](y.md)` and [z](z.md)\n"

        assert [l.href for l in extract_links(content)] == ['z.md']

    def test_title_and_parentheses(self):
        """Titles are not part of the href; balanced parentheses are."""
        content = '[a](a.md "Title") [w](https://en.wikipedia.org/wiki/Foo_(bar))'

        assert [l.href for l in extract_links(content)] == [
            'a.md',
            'https://en.wikipedia.org/wiki/Foo_(bar)',
        ]

    def test_footnotes_are_not_references(self):
        """Footnote definitions are not link definitions."""
        assert extract_links("[^1]: a note\n") == []


class TestMaskCode:
    """Test cases for mask_code()."""

    def test_length_preserved(self):
        """Masking never changes the content length or line count."""
        content = "a `code` b\n~~~\nfenced\n~~~\nafter\n"

        masked = mask_code(content)

        assert len(masked) == len(content)
        assert masked.count('\n') == content.count('\n')
        assert 'code' not in masked
        assert 'fenced' not in masked
        assert masked.endswith("after\n")
