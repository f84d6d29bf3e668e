"""Unit tests for cli.path_command module."""

import pytest
import yaml

from src.cli.errors import ConfigError, DatasetRootError
from src.cli.models import ExitCode
from src.cli.output import OutputHandler
from src.cli.path_command import DATASET_ROOT_ENV, PathCommand, exit_code_for
from src.file_system.in_memory_fs import InMemoryFileSystemService
from src.ops.errors import (
    InvalidPathError,
    InvalidSourceTypeError,
    InvalidSubfolderCopyError,
    InvalidSubfolderMoveError,
    IOOperationError,
    MirrorConstraintViolationError,
    PathEscapeError,
    SourceNotExistsError,
)
from tests.fixtures.sample_datasets import DATASET_ROOT


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Run each test from an empty directory without a dataset root variable."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(DATASET_ROOT_ENV, raising=False)


def create_command(fs, dataset_root=DATASET_ROOT, config_path=None) -> PathCommand:
    return PathCommand(
        output_handler=OutputHandler(no_color=True),
        config_path=config_path,
        dataset_root=dataset_root,
        file_service=fs,
    )


class TestExitCodeFor:
    """Test cases for exit_code_for()."""

    @pytest.mark.parametrize("error, expected", [
        (PathEscapeError('a', '../b'), ExitCode.PATH_ERROR),
        (InvalidPathError('/a', 'b'), ExitCode.PATH_ERROR),
        (SourceNotExistsError('a'), ExitCode.PATH_ERROR),
        (InvalidSourceTypeError('a'), ExitCode.PATH_ERROR),
        (InvalidSubfolderCopyError('a', 'a/b'), ExitCode.PATH_ERROR),
        (InvalidSubfolderMoveError('a', 'a'), ExitCode.PATH_ERROR),
        (MirrorConstraintViolationError('bad', 'details'), ExitCode.VALIDATION_ERROR),
        (ConfigError('bad'), ExitCode.VALIDATION_ERROR),
        (IOOperationError('failed', 'copyFile', '/a'), ExitCode.IO_ERROR),
        (DatasetRootError('none'), ExitCode.GENERAL_ERROR),
        (RuntimeError('boom'), ExitCode.GENERAL_ERROR),
    ])
    def test_mapping(self, error, expected):
        """Each error category has its own exit code."""
        assert exit_code_for(error) == expected


class TestRun:
    """Test cases for PathCommand.run()."""

    def test_copy_success(self, guides_fs):
        """A copy through the command writes the files."""
        exit_code = create_command(guides_fs).run('copy', 'guides', 'manual')

        assert exit_code == ExitCode.SUCCESS
        assert '/dataset/manual/setup.md' in guides_fs.files
        assert '/dataset/guides/setup.md' in guides_fs.files

    def test_move_success(self, guides_fs):
        """A move through the command removes the source."""
        exit_code = create_command(guides_fs).run('move', 'guides/intro.md', 'reference')

        assert exit_code == ExitCode.SUCCESS
        assert '/dataset/guides/intro.md' not in guides_fs.files
        assert '/dataset/reference/intro.md' in guides_fs.files

    def test_missing_source(self, guides_fs):
        """A missing source is a path error."""
        assert create_command(guides_fs).run('copy', 'nothing', 'manual') == ExitCode.PATH_ERROR

    def test_mirror_violation(self, guides_fs):
        """A skip below a mirror folder is a validation error with no writes."""
        exit_code = create_command(guides_fs).run(
            'copy', 'guides', 'manual', folder_behavior={'guides': 'mirror', 'guides/x': 'skip'}
        )

        assert exit_code == ExitCode.VALIDATION_ERROR
        assert guides_fs.written_paths() == []

    def test_io_failure(self, guides_fs):
        """Copying a directory onto a file is an I/O error."""
        assert create_command(guides_fs).run('copy', 'guides', 'index.md') == ExitCode.IO_ERROR

    def test_invalid_behavior_option(self, guides_fs):
        """An unknown behavior is a validation error."""
        exit_code = create_command(guides_fs).run('copy', 'guides', 'manual', default_behavior='merge')

        assert exit_code == ExitCode.VALIDATION_ERROR

    def test_skill_maps(self, skills_fs, tmp_path):
        """Renames are saved, and a saved map can be applied to a later copy."""
        map_path = str(tmp_path / 'skills.yaml')

        exit_code = create_command(skills_fs).run(
            'copy', 'source', 'target', flatten=True, prefix='pair', skill_map_out=map_path
        )

        assert exit_code == ExitCode.SUCCESS
        assert yaml.safe_load(open(map_path, encoding='utf-8')) == {
            'next': 'pair-navigator-next',
            'verify': 'pair-verify',
        }

        fs = InMemoryFileSystemService({'/dataset/docs/usage.md': "Run /next then /verify."})
        exit_code = create_command(fs).run('copy', 'docs', 'manual', skill_map_in=map_path)

        assert exit_code == ExitCode.SUCCESS
        assert fs.files['/dataset/manual/usage.md'] == "Run /pair-navigator-next then /pair-verify."
        assert fs.files['/dataset/docs/usage.md'] == "Run /next then /verify."


class TestDatasetRoot:
    """Test cases for dataset root resolution."""

    def test_root_must_be_directory(self, guides_fs):
        """A root that is not a directory fails before any write."""
        command = create_command(guides_fs, dataset_root='/dataset/index.md')

        assert command.run('copy', 'guides', 'manual') == ExitCode.GENERAL_ERROR
        assert guides_fs.written_paths() == []

    def test_environment_variable(self, guides_fs, monkeypatch):
        """The environment variable is used when no root is given."""
        monkeypatch.setenv(DATASET_ROOT_ENV, DATASET_ROOT)

        exit_code = create_command(guides_fs, dataset_root=None).run('copy', 'guides', 'manual')

        assert exit_code == ExitCode.SUCCESS
        assert '/dataset/manual/intro.md' in guides_fs.files

    def test_config_dataset_root(self, guides_fs, tmp_path):
        """The config file's dataset_root is used after the environment."""
        config_path = tmp_path / 'config.yaml'
        config_path.write_text(f"dataset_root: {DATASET_ROOT}\n")

        command = create_command(guides_fs, dataset_root=None, config_path=str(config_path))

        assert command.check('copy', 'guides', 'manual') == ExitCode.SUCCESS

    def test_no_root_found(self, guides_fs):
        """Without any root source and no marker, the command fails."""
        command = create_command(guides_fs, dataset_root=None)

        assert command.run('copy', 'guides', 'manual') == ExitCode.GENERAL_ERROR


class TestCheck:
    """Test cases for PathCommand.check()."""

    def test_valid_operation_writes_nothing(self, guides_fs):
        """A passing check performs no mutating call."""
        assert create_command(guides_fs).check('move', 'guides', 'manual') == ExitCode.SUCCESS
        assert guides_fs.written_paths() == []

    def test_invalid_operation(self, guides_fs):
        """Escaping targets fail the check."""
        assert create_command(guides_fs).check('copy', 'guides', '../out') == ExitCode.PATH_ERROR


class TestValidate:
    """Test cases for PathCommand.validate()."""

    def test_broken_links(self):
        """Remaining broken links give a validation error and a report."""
        fs = InMemoryFileSystemService({'/dataset/docs/a.md': "[gone](missing.md)"})

        assert create_command(fs).validate() == ExitCode.VALIDATION_ERROR
        assert 'LINK TARGET NOT FOUND' in fs.files['/dataset/link-errors.log']

    def test_clean_dataset(self, guides_fs):
        """A dataset whose links all resolve validates successfully."""
        assert create_command(guides_fs).validate('report.log') == ExitCode.SUCCESS
        assert '/dataset/report.log' not in guides_fs.files
