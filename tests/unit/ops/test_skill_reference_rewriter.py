"""Unit tests for ops.skill_reference_rewriter module."""

import pytest

from src.file_system.in_memory_fs import InMemoryFileSystemService
from src.ops.skill_reference_rewriter import (
    build_skill_name_map,
    rewrite_skill_references,
    rewrite_skill_references_in_files,
)


class TestRewriteSkillReferences:
    """Test cases for rewrite_skill_references()."""

    def test_rewrites_prose_and_code_spans(self):
        """Tokens in prose and inline code are both rewritten."""
        content = "Run `/next` or type /next."

        result = rewrite_skill_references(content, {'next': 'pair-navigator-next'})

        assert result == "Run `/pair-navigator-next` or type /pair-navigator-next."

    def test_longer_names_first(self):
        """A rename of '/verify' never clobbers '/verify-quality'."""
        content = "Use /verify then /verify-quality."
        skill_map = {'verify': 'pair-verify', 'verify-quality': 'pair-verify-quality'}

        result = rewrite_skill_references(content, skill_map)

        assert result == "Use /pair-verify then /pair-verify-quality."

    def test_does_not_touch_partial_tokens(self):
        """Path segments and longer words are not references."""
        content = "See docs/next and /nextstep and /next/sub"

        assert rewrite_skill_references(content, {'next': 'renamed'}) == content

    @pytest.mark.parametrize("before, after", [
        ("(", ")"),
        ('"', '"'),
        ("| ", " |"),
        ("", ":"),
    ])
    def test_token_boundaries(self, before, after):
        """Allowed surrounding characters still match."""
        content = f"{before}/next{after}"

        assert rewrite_skill_references(content, {'next': 'n2'}) == f"{before}/n2{after}"

    def test_empty_map_returns_content(self):
        """An empty map is a no-op."""
        assert rewrite_skill_references("/next", {}) == "/next"


class TestBuildSkillNameMap:
    """Test cases for build_skill_name_map()."""

    def test_flatten_and_prefix(self):
        """Leaf names map to the full transformed name."""
        result = build_skill_name_map(['navigator/next', 'verify'], flatten=True, prefix='pair')

        assert result == {'next': 'pair-navigator-next', 'verify': 'pair-verify'}

    def test_unchanged_leaves_omitted(self):
        """Flattening single-segment dirs renames nothing."""
        assert build_skill_name_map(['verify', 'next'], flatten=True) == {}

    def test_source_root_ignored(self):
        """Files directly under the source produce no entry."""
        assert build_skill_name_map(['.', ''], flatten=True, prefix='pair') == {}


class TestRewriteSkillReferencesInFiles:
    """Test cases for rewrite_skill_references_in_files()."""

    @pytest.mark.asyncio
    async def test_writes_only_changed_markdown(self):
        """Unchanged files and non-Markdown files are never written."""
        fs = InMemoryFileSystemService({
            '/d/a.md': "Run /next",
            '/d/b.md': "Nothing here",
            '/d/c.txt': "Run /next",
        })

        updated = await rewrite_skill_references_in_files(
            fs, ['/d/a.md', '/d/b.md', '/d/c.txt'], {'next': 'pair-next'}
        )

        assert updated == ['/d/a.md']
        assert fs.files['/d/a.md'] == "Run /pair-next"
        assert fs.files['/d/c.txt'] == "Run /next"
        assert fs.written_paths() == ['/d/a.md']

    @pytest.mark.asyncio
    async def test_empty_map_reads_nothing(self):
        """No file is touched when the map is empty."""
        fs = InMemoryFileSystemService({'/d/a.md': "Run /next"})

        assert await rewrite_skill_references_in_files(fs, ['/d/a.md'], {}) == []
        assert fs.calls == []
