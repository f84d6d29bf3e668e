"""Unit tests for ops.link_batch_processor module."""

import asyncio

import pytest

from src.file_system.in_memory_fs import (
    FaultInjectingFileSystemService,
    InMemoryFileSystemService,
)
from src.markdown.models import LinkProcessingConfig, Replacement
from src.ops.link_batch_processor import (
    Semaphore,
    create_semaphore,
    process_copied_files,
    process_files_with_link_replacements,
    process_normalization,
    process_path_mapping,
    process_path_substitution,
)
from src.ops.link_rewriter import PathRewriteRules
from src.ops.models import CopiedFile


def create_files(count: int, content: str = "[Old](old/page.md)\n") -> dict:
    return {f'/dataset/docs/file{i}.md': content for i in range(count)}


async def no_replacements(links, file, config, fs):
    return []


class TestSemaphore:
    """Test cases for Semaphore."""

    def test_rejects_non_positive_limit(self):
        """A limit below one is a programming error."""
        with pytest.raises(ValueError):
            Semaphore(0)

    @pytest.mark.asyncio
    async def test_release_is_one_shot(self):
        """Calling release twice frees only one permit."""
        semaphore = create_semaphore(1)
        release = await semaphore.acquire()
        assert semaphore.active == 1

        release()
        release()

        assert semaphore.active == 0
        second = await semaphore.acquire()
        assert semaphore.active == 1
        second()

    @pytest.mark.asyncio
    async def test_run_bounds_concurrency(self):
        """No more than max_concurrent functions run at once."""
        semaphore = create_semaphore(2)
        peak = 0

        async def work():
            nonlocal peak
            peak = max(peak, semaphore.active)
            await asyncio.sleep(0.01)

        await asyncio.gather(*(semaphore.run(work) for _ in range(6)))

        assert peak == 2
        assert semaphore.active == 0

    @pytest.mark.asyncio
    async def test_run_releases_on_error(self):
        """A failing function still frees its permit."""
        semaphore = create_semaphore(1)

        async def fail():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await semaphore.run(fail)

        assert semaphore.active == 0


class TestProcessFilesWithLinkReplacements:
    """Test cases for process_files_with_link_replacements()."""

    @pytest.mark.asyncio
    async def test_concurrency_bounded_by_limit(self):
        """Reads and writes never exceed the configured concurrency."""
        fs = InMemoryFileSystemService(create_files(10), io_delay=0.01)
        config = LinkProcessingConfig(dataset_root='/dataset', concurrency_limit=2)

        result = await process_files_with_link_replacements(
            sorted(fs.files), no_replacements, config, fs
        )

        assert result.processed_files == 10
        assert fs.max_in_flight == 2

    @pytest.mark.asyncio
    async def test_counts_by_kind_and_writes_changes(self):
        """Applied replacements are counted per kind and written back."""
        fs = InMemoryFileSystemService(create_files(3))
        config = LinkProcessingConfig(dataset_root='/dataset')

        async def generate(links, file, config, fs):
            return [
                Replacement(link.line, link.href, 'new/page.md', 'pathMapping', link.start, link.end)
                for link in links
            ]

        result = await process_files_with_link_replacements(sorted(fs.files), generate, config, fs)

        assert result.ok
        assert result.total_links_updated == 3
        assert result.by_kind == {'pathMapping': 3}
        assert all(content == "[Old](new/page.md)\n" for content in fs.files.values())

    @pytest.mark.asyncio
    async def test_no_write_without_changes(self):
        """Files with nothing to replace are read but never written."""
        fs = InMemoryFileSystemService(create_files(2))
        config = LinkProcessingConfig(dataset_root='/dataset')

        await process_files_with_link_replacements(sorted(fs.files), no_replacements, config, fs)

        assert fs.written_paths() == []

    @pytest.mark.asyncio
    async def test_failing_file_does_not_stop_batch(self):
        """One failure is collected while the other files complete."""
        inner = InMemoryFileSystemService(create_files(5))
        fs = FaultInjectingFileSystemService(inner)
        fs.fail_on('read_file', '/dataset/docs/file2.md')
        config = LinkProcessingConfig(dataset_root='/dataset', concurrency_limit=2)

        result = await process_files_with_link_replacements(
            sorted(inner.files), no_replacements, config, fs
        )

        assert not result.ok
        assert result.total_files == 5
        assert result.processed_files == 4
        assert [e.file for e in result.errors] == ['/dataset/docs/file2.md']
        assert "injected fault" in result.errors[0].error

    @pytest.mark.asyncio
    async def test_empty_file_list(self):
        """An empty batch returns an empty result."""
        fs = InMemoryFileSystemService()
        config = LinkProcessingConfig(dataset_root='/dataset')

        result = await process_files_with_link_replacements([], no_replacements, config, fs)

        assert result.total_files == 0
        assert result.ok


class TestDatasetPasses:
    """Test cases for the dataset-wide batch drivers."""

    @pytest.mark.asyncio
    async def test_path_substitution(self):
        """Hrefs starting with the old base are rewritten."""
        fs = InMemoryFileSystemService(create_files(2))

        result = await process_path_substitution('/dataset', 'old/', 'archive/', fs)

        assert result.by_kind == {'pathSubstitution': 2}
        assert fs.files['/dataset/docs/file0.md'] == "[Old](archive/page.md)\n"

    @pytest.mark.asyncio
    async def test_normalization(self):
        """Links to existing targets are shortened."""
        fs = InMemoryFileSystemService({
            '/dataset/docs/a.md': "[B](../docs/b.md)",
            '/dataset/docs/b.md': "# B",
        })
        config = LinkProcessingConfig(dataset_root='/dataset', docs_folders=['docs'])

        result = await process_normalization('/dataset', config, fs)

        assert result.by_kind == {'normalizedRel': 1}
        assert fs.files['/dataset/docs/a.md'] == "[B](b.md)"

    @pytest.mark.asyncio
    async def test_path_mapping_respects_exclusions(self):
        """Excluded files and directories keep their links."""
        fs = InMemoryFileSystemService({
            '/dataset/index.md': "[S](guides/setup.md)",
            '/dataset/guides/intro.md': "[S](setup.md)",
            '/dataset/manual/setup.md': "# Setup",
            '/dataset/guides/setup.md': "# Setup",
        })
        rules = PathRewriteRules(
            dataset_root='/dataset',
            files={'/dataset/guides/setup.md': '/dataset/manual/setup.md'},
        )

        result = await process_path_mapping(
            '/dataset', rules, fs, exclude_dirs=['/dataset/guides']
        )

        assert result.total_files == 2
        assert fs.files['/dataset/index.md'] == "[S](manual/setup.md)"
        assert fs.files['/dataset/guides/intro.md'] == "[S](setup.md)"

    @pytest.mark.asyncio
    async def test_path_mapping_without_rules_reads_nothing(self):
        """Empty rules short-circuit before any I/O."""
        fs = InMemoryFileSystemService(create_files(2))

        result = await process_path_mapping('/dataset', PathRewriteRules('/dataset'), fs)

        assert result.total_files == 0
        assert fs.calls == []

    @pytest.mark.asyncio
    async def test_copied_files_rebased(self):
        """Copied files resolve links from their origin."""
        fs = InMemoryFileSystemService({
            '/dataset/guides/setup.md': "[I](intro.md)",
            '/dataset/guides/intro.md': "# Intro",
            '/dataset/manual/setup.md': "[I](intro.md)",
        })
        copied = [CopiedFile('/dataset/guides/setup.md', '/dataset/manual/setup.md')]
        rules = PathRewriteRules.from_operation('/dataset', copied)

        result = await process_copied_files(copied, rules, fs)

        assert result.by_kind == {'rebased': 1}
        assert fs.files['/dataset/manual/setup.md'] == "[I](../guides/intro.md)"
        assert fs.files['/dataset/guides/setup.md'] == "[I](intro.md)"
