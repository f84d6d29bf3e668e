"""Unit tests for ops.copy_path_ops module.

Covers directory and file copies over the in-memory file system: link
rebasing, per-folder behaviors, sandboxing and error propagation.
"""

import pytest

from src.file_system.errors import InjectedFaultError
from src.file_system.in_memory_fs import (
    FaultInjectingFileSystemService,
    InMemoryFileSystemService,
)
from src.ops.copy_path_ops import copy_path_ops
from src.ops.errors import (
    InvalidPathError,
    InvalidSubfolderCopyError,
    IOOperationError,
    MirrorConstraintViolationError,
    PathEscapeError,
    SourceNotExistsError,
)
from src.ops.models import Behavior, PathMappingEntry, SyncOptions
from tests.fixtures.sample_datasets import DATASET_ROOT, GUIDES_DATASET
from tests.helpers.dataset_helpers import assert_links_resolve, snapshot


def create_fs(extra=None, **kwargs) -> InMemoryFileSystemService:
    files = dict(GUIDES_DATASET)
    files.update(extra or {})
    return InMemoryFileSystemService(files, **kwargs)


class TestCopyDirectory:
    """Test cases for copying a directory."""

    @pytest.mark.asyncio
    async def test_copies_files_and_leaves_source(self, guides_fs):
        """Every file is copied and the source tree is unchanged."""
        result = await copy_path_ops(guides_fs, 'guides', 'manual', DATASET_ROOT)

        assert result.files_copied == 2
        assert result.skill_name_map is None
        assert result.path_mapping == [PathMappingEntry(
            'guides', 'manual', ['/dataset/manual/intro.md', '/dataset/manual/setup.md']
        )]
        assert guides_fs.files['/dataset/guides/setup.md'] == GUIDES_DATASET['/dataset/guides/setup.md']
        assert guides_fs.files['/dataset/guides/intro.md'] == GUIDES_DATASET['/dataset/guides/intro.md']

    @pytest.mark.asyncio
    async def test_copied_links_stay_valid(self, guides_fs):
        """Links inside the copy resolve from its new location."""
        await copy_path_ops(guides_fs, 'guides', 'manual', DATASET_ROOT)

        setup = guides_fs.files['/dataset/manual/setup.md']
        assert "[intro](intro.md)" in setup
        assert "[API](../reference/api.md)" in setup
        assert "[site](https://example.com/setup.md)" in setup
        assert "[setup](./setup.md#install)" in guides_fs.files['/dataset/manual/intro.md']
        assert_links_resolve(guides_fs, DATASET_ROOT)

    @pytest.mark.asyncio
    async def test_other_files_redirected_to_copy(self, guides_fs):
        """Links elsewhere in the dataset follow the copied files."""
        result = await copy_path_ops(guides_fs, 'guides', 'manual', DATASET_ROOT)

        assert result.links_updated == 3
        assert "[Setup](manual/setup.md)" in guides_fs.files['/dataset/index.md']
        api = guides_fs.files['/dataset/reference/api.md']
        assert "[setup](../manual/setup.md)" in api
        assert "[root](/manual/intro.md)" in api
        # Links inside code blocks are not links
        assert "[not a link](../guides/setup.md)" in api

    @pytest.mark.asyncio
    async def test_second_copy_changes_nothing(self, guides_fs):
        """Running the same copy twice leaves the dataset as after the first run."""
        await copy_path_ops(guides_fs, 'guides', 'manual', DATASET_ROOT)
        after_first = snapshot(guides_fs)

        result = await copy_path_ops(guides_fs, 'guides', 'manual', DATASET_ROOT)

        assert snapshot(guides_fs) == after_first
        assert result.links_updated == 0

    @pytest.mark.asyncio
    async def test_same_source_and_target_is_noop(self, guides_fs):
        """Copying onto itself returns an empty result without touching the file system."""
        result = await copy_path_ops(guides_fs, 'guides', './guides/', DATASET_ROOT)

        assert result.files_copied == 0
        assert result.path_mapping == []
        assert guides_fs.calls == []

    @pytest.mark.asyncio
    async def test_external_skill_map_applied_to_copy(self):
        """A caller's skill map rewrites references in the copied files only."""
        fs = create_fs({'/dataset/guides/run.md': "Run /setup now"})

        result = await copy_path_ops(
            fs, 'guides', 'manual', DATASET_ROOT, skill_name_map={'setup': 'pair-setup'}
        )

        assert fs.files['/dataset/manual/run.md'] == "Run /pair-setup now"
        assert fs.files['/dataset/guides/run.md'] == "Run /setup now"
        assert result.skill_name_map is None


class TestCopyBehaviors:
    """Test cases for per-folder behaviors during a copy."""

    @pytest.mark.asyncio
    async def test_skip_folder_not_copied(self):
        """A skip override on a subfolder keeps it out of the copy."""
        fs = create_fs({'/dataset/guides/private/secret.md': "secret"})
        options = SyncOptions(folder_behavior={'guides/private': Behavior.SKIP})

        result = await copy_path_ops(fs, 'guides', 'manual', DATASET_ROOT, options)

        assert result.files_copied == 2
        assert '/dataset/manual/private/secret.md' not in fs.files
        assert '/dataset/manual/private' not in fs.dirs

    @pytest.mark.asyncio
    async def test_most_specific_override_wins(self):
        """A skip on 'docs/notes' beats an overwrite on 'docs'."""
        fs = InMemoryFileSystemService({
            '/dataset/docs/guide.md': "new guide",
            '/dataset/docs/notes/n.md': "new note",
            '/dataset/out/notes/n.md': "old note",
        })
        options = SyncOptions(folder_behavior={
            'docs': Behavior.OVERWRITE,
            'docs/notes': Behavior.SKIP,
        })

        await copy_path_ops(fs, 'docs', 'out', DATASET_ROOT, options)

        assert fs.files['/dataset/out/guide.md'] == "new guide"
        assert fs.files['/dataset/out/notes/n.md'] == "old note"

    @pytest.mark.asyncio
    async def test_add_keeps_existing_files(self):
        """Add only creates files that are missing at the destination."""
        fs = create_fs({'/dataset/manual/intro.md': "custom intro"})
        options = SyncOptions(default_behavior=Behavior.ADD)

        result = await copy_path_ops(fs, 'guides', 'manual', DATASET_ROOT, options)

        assert result.files_copied == 1
        assert fs.files['/dataset/manual/intro.md'] == "custom intro"
        assert '/dataset/manual/setup.md' in fs.files

    @pytest.mark.asyncio
    async def test_mirror_makes_destination_exact(self):
        """Mirror removes every destination entry the source does not have."""
        fs = create_fs({
            '/dataset/manual/old.md': "stale",
            '/dataset/manual/extra/deep.md': "stale",
            '/dataset/manual/intro.md': "outdated",
        })
        options = SyncOptions(folder_behavior={'guides': Behavior.MIRROR})

        await copy_path_ops(fs, 'guides', 'manual', DATASET_ROOT, options)

        assert fs.list_files('/dataset/manual') == [
            '/dataset/manual/intro.md',
            '/dataset/manual/setup.md',
        ]
        assert '/dataset/manual/extra' not in fs.dirs
        assert fs.files['/dataset/manual/intro.md'] == GUIDES_DATASET['/dataset/guides/intro.md']

    @pytest.mark.asyncio
    async def test_skip_source_copies_nothing(self, guides_fs):
        """A skipped source directory writes nothing."""
        options = SyncOptions(default_behavior=Behavior.SKIP)

        result = await copy_path_ops(guides_fs, 'guides', 'manual', DATASET_ROOT, options)

        assert result.files_copied == 0
        assert guides_fs.written_paths() == []

    @pytest.mark.asyncio
    async def test_invalid_mirror_table_rejected_before_io(self, guides_fs):
        """A skip folder below a mirror folder fails without any I/O."""
        options = SyncOptions(folder_behavior={
            'guides': Behavior.MIRROR,
            'guides/private': Behavior.SKIP,
        })

        with pytest.raises(MirrorConstraintViolationError):
            await copy_path_ops(guides_fs, 'guides', 'manual', DATASET_ROOT, options)

        assert guides_fs.calls == []


class TestCopyFile:
    """Test cases for copying a single file."""

    @pytest.mark.asyncio
    async def test_into_new_directory(self, guides_fs):
        """A target without extension is created as a directory."""
        result = await copy_path_ops(guides_fs, 'guides/setup.md', 'manual', DATASET_ROOT)

        assert result.files_copied == 1
        setup = guides_fs.files['/dataset/manual/setup.md']
        assert "[intro](../guides/intro.md)" in setup
        assert "[API](../reference/api.md)" in setup
        assert "[Setup](manual/setup.md)" in guides_fs.files['/dataset/index.md']
        assert_links_resolve(guides_fs, DATASET_ROOT)

    @pytest.mark.asyncio
    async def test_into_existing_directory(self, guides_fs):
        """An existing directory receives the file under its own name."""
        await copy_path_ops(guides_fs, 'guides/intro.md', 'reference', DATASET_ROOT)

        assert '/dataset/reference/intro.md' in guides_fs.files
        assert "[setup](../guides/setup.md#install)" in guides_fs.files['/dataset/reference/intro.md']

    @pytest.mark.asyncio
    async def test_to_new_file_name(self, guides_fs):
        """A target with an extension is the new file name."""
        await copy_path_ops(guides_fs, 'guides/intro.md', 'manual/start.md', DATASET_ROOT)

        assert '/dataset/manual/start.md' in guides_fs.files
        assert '/dataset/manual/start.md/intro.md' not in guides_fs.files

    @pytest.mark.asyncio
    async def test_directory_links_untouched_by_file_copy(self):
        """Copying one file does not redirect links to its parent folder."""
        fs = create_fs({'/dataset/toc.md': "[All guides](guides/)"})

        await copy_path_ops(fs, 'guides/intro.md', 'manual', DATASET_ROOT)

        assert fs.files['/dataset/toc.md'] == "[All guides](guides/)"


class TestCopyValidation:
    """Test cases for rejected copies."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("source, target", [
        ('/etc/passwd', 'manual'),
        ('guides', '/tmp/out'),
        ('C:\\docs', 'manual'),
        ('guides', '\\\\server\\share'),
    ])
    async def test_absolute_paths_rejected_without_io(self, guides_fs, source, target):
        """Absolute inputs fail before any file system call."""
        with pytest.raises(InvalidPathError):
            await copy_path_ops(guides_fs, source, target, DATASET_ROOT)

        assert guides_fs.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("source, target", [
        ('../outside', 'manual'),
        ('guides', '../../tmp/out'),
        ('guides/../../etc', 'manual'),
    ])
    async def test_escape_rejected_without_io(self, guides_fs, source, target):
        """Paths resolving outside the dataset root fail before any I/O."""
        with pytest.raises(PathEscapeError):
            await copy_path_ops(guides_fs, source, target, DATASET_ROOT)

        assert guides_fs.calls == []

    @pytest.mark.asyncio
    async def test_copy_into_own_subfolder_rejected(self, guides_fs):
        """A copy may not target a descendant of its source."""
        with pytest.raises(InvalidSubfolderCopyError):
            await copy_path_ops(guides_fs, 'guides', 'guides/archive', DATASET_ROOT)

        assert guides_fs.calls == []

    @pytest.mark.asyncio
    async def test_missing_source(self, guides_fs):
        """A missing source raises SourceNotExistsError."""
        with pytest.raises(SourceNotExistsError) as exc_info:
            await copy_path_ops(guides_fs, 'missing', 'manual', DATASET_ROOT)

        assert exc_info.value.source_path == '/dataset/missing'
        assert guides_fs.written_paths() == []


class TestCopyErrors:
    """Test cases for I/O failures during a copy."""

    @pytest.mark.asyncio
    async def test_os_error_wrapped(self, guides_fs):
        """A directory copy onto an existing file fails as IOOperationError."""
        with pytest.raises(IOOperationError) as exc_info:
            await copy_path_ops(guides_fs, 'guides', 'index.md', DATASET_ROOT)

        assert exc_info.value.operation == 'copyDir'
        assert isinstance(exc_info.value.original_error, OSError)

    @pytest.mark.asyncio
    async def test_injected_fault_propagates_unwrapped(self):
        """Injected faults reach the caller as they were raised."""
        inner = create_fs()
        fs = FaultInjectingFileSystemService(inner)
        fs.fail_on('write_file', '/dataset/manual/setup.md')

        with pytest.raises(InjectedFaultError) as exc_info:
            await copy_path_ops(fs, 'guides', 'manual', DATASET_ROOT)

        assert exc_info.value.operation == 'write_file'

    @pytest.mark.asyncio
    async def test_link_rewrite_failure_does_not_fail_copy(self):
        """A file that cannot be rewritten is logged and skipped."""
        inner = create_fs()
        fs = FaultInjectingFileSystemService(inner)
        fs.fail_on('read_file', '/dataset/reference/api.md')

        result = await copy_path_ops(fs, 'guides', 'manual', DATASET_ROOT)

        assert result.files_copied == 2
        assert "[Setup](manual/setup.md)" in inner.files['/dataset/index.md']
        assert inner.files['/dataset/reference/api.md'] == GUIDES_DATASET['/dataset/reference/api.md']


class TestCopyConcurrency:
    """Test cases for bounded link rewriting during a copy."""

    @pytest.mark.asyncio
    async def test_in_flight_io_bounded(self):
        """Link rewriting never has more files in flight than the limit."""
        files = {f'/dataset/docs/page{i}.md': f"[Next](page{(i + 1) % 10}.md)" for i in range(10)}
        fs = InMemoryFileSystemService(files, io_delay=0.005)
        options = SyncOptions(concurrency_limit=2)

        result = await copy_path_ops(fs, 'docs', 'copy', DATASET_ROOT, options)

        assert result.files_copied == 10
        assert 1 <= fs.max_in_flight <= 2
