"""Data models for copy, move and link rewriting operations.

All models are plain dataclasses created fresh for each operation; nothing
here is persisted.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Union

from ..markdown.models import ErrorLog


DEFAULT_CONCURRENCY_LIMIT = 10

# Maps an original leaf directory name to its transformed name
SkillNameMap = Dict[str, str]


class Behavior(str, Enum):
    """What happens when a destination entry already exists.

    OVERWRITE replaces destination entries, ADD only creates missing ones,
    SKIP leaves the entry (and everything below it) untouched, and MIRROR
    overwrites and then deletes destination entries absent from the source.
    """
    OVERWRITE = 'overwrite'
    ADD = 'add'
    MIRROR = 'mirror'
    SKIP = 'skip'

    @classmethod
    def parse(cls, value: Union[str, "Behavior"]) -> "Behavior":
        """Convert a config or CLI string to a Behavior.

        Raises:
            ValueError: If ``value`` is not a known behavior
        """
        if isinstance(value, Behavior):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ', '.join(b.value for b in cls)
            raise ValueError(f"Unknown behavior '{value}' (expected one of: {valid})")


@dataclass(frozen=True)
class SyncOptions:
    """Options for a single copy or move call.

    Attributes:
        default_behavior: Behavior used when no folder override matches
        folder_behavior: Overrides keyed by dataset-relative folder path
        concurrency_limit: Maximum files rewritten concurrently
        flatten: Collapse nested source directories into one segment
        prefix: Prefix prepended to top-level destination directory names
    """
    default_behavior: Behavior = Behavior.OVERWRITE
    folder_behavior: Optional[Mapping[str, Behavior]] = None
    concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT
    flatten: bool = False
    prefix: Optional[str] = None

    def __post_init__(self):
        if self.concurrency_limit < 1:
            raise ValueError(
                f"concurrency_limit must be at least 1, got {self.concurrency_limit}"
            )

    @property
    def has_transforms(self) -> bool:
        return self.flatten or bool(self.prefix)


@dataclass(frozen=True)
class PathSetup:
    """Validated, resolved inputs of a path operation.

    Attributes:
        norm_source: Source relative to the dataset root, posix separators
        norm_target: Target relative to the dataset root, posix separators
        src_path: Absolute source path
        dest_path: Absolute target path
        default_behavior: Behavior used when no folder override matches
        folder_behavior: Folder overrides, or None
        should_skip: True when source and target are the same (copy no-op)
    """
    norm_source: str
    norm_target: str
    src_path: str
    dest_path: str
    default_behavior: Behavior = Behavior.OVERWRITE
    folder_behavior: Optional[Mapping[str, Behavior]] = None
    should_skip: bool = False


@dataclass(frozen=True)
class CopiedFile:
    """A file written by a copy, with its absolute source and destination."""
    source_path: str
    dest_path: str


@dataclass
class PathMappingEntry:
    """Links an original directory to where its files ended up.

    Attributes:
        original_dir: Source directory, relative to the dataset root
        new_dir: Destination directory, relative to the dataset root
        files: Absolute destination paths of every file copied there
    """
    original_dir: str
    new_dir: str
    files: List[str] = field(default_factory=list)


@dataclass
class SyncResult:
    """Outcome of copy_path_ops / move_path_ops.

    Attributes:
        skill_name_map: Leaf renames produced by a transform, or None when
            nothing was renamed
        path_mapping: One entry per destination directory that received files
        links_updated: Links rewritten across the dataset
        files_copied: Files written to the destination
    """
    skill_name_map: Optional[SkillNameMap] = None
    path_mapping: List[PathMappingEntry] = field(default_factory=list)
    links_updated: int = 0
    files_copied: int = 0


@dataclass(frozen=True)
class FileError:
    """A per-file failure collected during a batch."""
    file: str
    error: str


@dataclass
class BatchProcessingResult:
    """Aggregate outcome of a link-rewrite batch.

    Attributes:
        total_files: Files submitted to the batch
        processed_files: Files processed without error
        total_links_updated: Links changed across all files
        total_replacements_applied: Replacements written across all files
        by_kind: Applied replacements per kind
        errors: One entry per file that failed
    """
    total_files: int = 0
    processed_files: int = 0
    total_links_updated: int = 0
    total_replacements_applied: int = 0
    by_kind: Dict[str, int] = field(default_factory=dict)
    errors: List[FileError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def merge(self, other: 'BatchProcessingResult') -> 'BatchProcessingResult':
        """Add ``other``'s counts and errors into this result and return it."""
        self.total_files += other.total_files
        self.processed_files += other.processed_files
        self.total_links_updated += other.total_links_updated
        self.total_replacements_applied += other.total_replacements_applied
        for kind, count in other.by_kind.items():
            self.by_kind[kind] = self.by_kind.get(kind, 0) + count
        self.errors.extend(other.errors)
        return self


@dataclass
class DatasetValidationResult:
    """Outcome of validate_dataset_links.

    Attributes:
        logs: Human-readable report lines
        errors: Broken links left after patching
        patched_links: Links repaired by dropping ``../`` segments
        normalized_rel_links: Links shortened relative to their file
        normalized_full_links: Links normalized to dataset-relative form
    """
    logs: List[str] = field(default_factory=list)
    errors: List[ErrorLog] = field(default_factory=list)
    patched_links: int = 0
    normalized_rel_links: int = 0
    normalized_full_links: int = 0
