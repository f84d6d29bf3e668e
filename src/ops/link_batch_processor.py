"""Bounded-concurrency link rewriting over many Markdown files.

Every file is read, rewritten and written under one semaphore permit, and
the permit is released whether the file succeeds or fails. A failing file is
recorded in the result's ``errors`` while the rest of the batch keeps going;
callers inspect ``BatchProcessingResult.ok`` once the batch has drained.
No ordering across files is guaranteed.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Iterable, List, TypeVar

from ..file_system.file_system_service import FileSystemService
from ..file_system.utils import is_within, walk_markdown_files
from ..markdown.link_processor import (
    generate_normalization_replacements,
    generate_path_substitution_replacements,
)
from ..markdown.models import ApplyResult, LinkProcessingConfig, ParsedLink, Replacement
from ..markdown.replacement_applier import process_file_with_links
from .link_rewriter import PathRewriteRules, generate_path_mapping_replacements
from .models import (
    DEFAULT_CONCURRENCY_LIMIT,
    BatchProcessingResult,
    CopiedFile,
    FileError,
)


logger = logging.getLogger(__name__)

T = TypeVar('T')

GenerateReplacements = Callable[
    [List[ParsedLink], str, LinkProcessingConfig, FileSystemService],
    Awaitable[List[Replacement]],
]


class Semaphore:
    """Counting semaphore whose ``acquire`` returns a one-shot release callable.

    Example:
        >>> semaphore = create_semaphore(2)
        >>> release = await semaphore.acquire()
        >>> try:
        ...     await rewrite(file)
        ... finally:
        ...     release()
    """

    def __init__(self, max_concurrent: int):
        if max_concurrent < 1:
            raise ValueError(f"max_concurrent must be at least 1, got {max_concurrent}")
        self.max_concurrent = max_concurrent
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self.active = 0

    async def acquire(self) -> Callable[[], None]:
        await self._semaphore.acquire()
        self.active += 1
        released = False

        def release() -> None:
            nonlocal released
            if released:
                return
            released = True
            self.active -= 1
            self._semaphore.release()

        return release

    async def run(self, fn: Callable[[], Awaitable[T]]) -> T:
        release = await self.acquire()
        try:
            return await fn()
        finally:
            release()


def create_semaphore(max_concurrent: int) -> Semaphore:
    return Semaphore(max_concurrent)


async def _process_single_file(
    file: str,
    generate_replacements: GenerateReplacements,
    config: LinkProcessingConfig,
    file_service: FileSystemService,
) -> ApplyResult:
    content = await file_service.read_file(file)

    async def generate(links: List[ParsedLink]) -> List[Replacement]:
        return await generate_replacements(links, file, config, file_service)

    result = await process_file_with_links(content, generate)
    if result.applied and result.content != content:
        await file_service.write_file(file, result.content)
    return result


async def process_files_with_link_replacements(
    files: List[str],
    generate_replacements: GenerateReplacements,
    config: LinkProcessingConfig,
    file_service: FileSystemService,
) -> BatchProcessingResult:
    """Rewrite the links of ``files`` concurrently.

    Args:
        files: Absolute Markdown file paths
        generate_replacements: ``(links, file, config, fs)`` coroutine
            returning the replacements for one file
        config: Link settings; ``concurrency_limit`` bounds the fan-out
        file_service: File system to read and write through

    Returns:
        Aggregated counts plus one FileError per failed file
    """
    result = BatchProcessingResult(total_files=len(files))
    if not files:
        return result
    semaphore = create_semaphore(config.concurrency_limit or DEFAULT_CONCURRENCY_LIMIT)

    async def guarded(file: str):
        release = await semaphore.acquire()
        try:
            return await _process_single_file(file, generate_replacements, config, file_service)
        except Exception as e:
            logger.warning(f"Link rewrite failed for {file}: {e}")
            return FileError(file=file, error=str(e))
        finally:
            release()

    outcomes = await asyncio.gather(*(guarded(file) for file in files))
    for outcome in outcomes:
        if isinstance(outcome, FileError):
            result.errors.append(outcome)
            continue
        result.processed_files += 1
        result.total_replacements_applied += outcome.applied
        result.total_links_updated += sum(outcome.by_kind.values())
        for kind, count in outcome.by_kind.items():
            result.by_kind[kind] = result.by_kind.get(kind, 0) + count
    return result


async def process_directory_with_link_replacements(
    directory: str,
    generate_replacements: GenerateReplacements,
    config: LinkProcessingConfig,
    file_service: FileSystemService,
) -> BatchProcessingResult:
    """Run process_files_with_link_replacements over every ``.md`` under ``directory``."""
    files = await walk_markdown_files(directory, file_service)
    return await process_files_with_link_replacements(
        files, generate_replacements, config, file_service
    )


async def process_path_substitution(
    dataset_root: str,
    old_base: str,
    new_base: str,
    file_service: FileSystemService,
    concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
) -> BatchProcessingResult:
    """Replace the ``old_base`` prefix of hrefs across the dataset."""
    async def generate(links, file, config, fs):
        return generate_path_substitution_replacements(links, old_base, new_base)

    config = LinkProcessingConfig(dataset_root=dataset_root, concurrency_limit=concurrency_limit)
    return await process_directory_with_link_replacements(
        dataset_root, generate, config, file_service
    )


async def process_normalization(
    dataset_root: str,
    config: LinkProcessingConfig,
    file_service: FileSystemService,
) -> BatchProcessingResult:
    """Normalize links to existing targets across the dataset."""
    return await process_directory_with_link_replacements(
        dataset_root, generate_normalization_replacements, config, file_service
    )


async def process_path_mapping(
    dataset_root: str,
    rules: PathRewriteRules,
    file_service: FileSystemService,
    concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
    exclude_files: Iterable[str] = (),
    exclude_dirs: Iterable[str] = (),
) -> BatchProcessingResult:
    """Redirect links that land on mapped paths, in every dataset file.

    Args:
        dataset_root: Absolute dataset root
        rules: Mappings of the operation
        file_service: File system to read and write through
        concurrency_limit: Maximum files processed at once
        exclude_files: Absolute files to leave alone
        exclude_dirs: Absolute directories whose files are left alone
    """
    if not rules:
        return BatchProcessingResult()
    excluded = set(exclude_files)
    excluded_dirs = list(exclude_dirs)
    files = [
        f for f in await walk_markdown_files(dataset_root, file_service)
        if f not in excluded and not any(is_within(f, d) for d in excluded_dirs)
    ]

    async def generate(links, file, config, fs):
        return generate_path_mapping_replacements(links, file, file, rules)

    config = LinkProcessingConfig(dataset_root=dataset_root, concurrency_limit=concurrency_limit)
    return await process_files_with_link_replacements(files, generate, config, file_service)


async def process_copied_files(
    copied: Iterable[CopiedFile],
    rules: PathRewriteRules,
    file_service: FileSystemService,
    concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
) -> BatchProcessingResult:
    """Rebase the links of freshly copied Markdown files onto their new location."""
    origin: Dict[str, str] = {
        item.dest_path: item.source_path for item in copied if item.dest_path.endswith('.md')
    }

    async def generate(links, file, config, fs):
        return generate_path_mapping_replacements(links, origin[file], file, rules)

    config = LinkProcessingConfig(
        dataset_root=rules.dataset_root, concurrency_limit=concurrency_limit
    )
    return await process_files_with_link_replacements(
        sorted(origin), generate, config, file_service
    )
