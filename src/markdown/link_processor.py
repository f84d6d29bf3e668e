"""Link classification and replacement generation.

The generators here inspect parsed links and return Replacement values; they
never write files. Batch drivers in ``src.ops.link_batch_processor`` feed
them links and apply the results.
"""

import logging
import posixpath
import re
from dataclasses import dataclass, field
from typing import List, Optional

from ..file_system.file_system_service import FileSystemService
from ..file_system.utils import is_external_link, normalize_link_slashes, walk_markdown_files
from ..path_resolution.converters import convert_to_relative
from .markdown_parser import extract_links
from .models import ErrorLog, LinkProcessingConfig, ParsedLink, Replacement
from .path_resolution import resolve_markdown_path, try_resolve_path_variants


logger = logging.getLogger(__name__)

# Editor-style references like ":guides/setup.md:" are never valid links
BAD_LINK_FORMAT_PATTERN = re.compile(r':[^\s:]+\.md:')

BAD_LINK_FORMAT = 'BAD LINK FORMAT'
LINK_TARGET_NOT_FOUND = 'LINK TARGET NOT FOUND'


@dataclass(frozen=True)
class LinkParts:
    """An href split into path, query (with ``?``) and anchor (with ``#``)."""
    path: str
    query: str = ''
    anchor: str = ''


@dataclass
class ExistenceCheckResult:
    """Replacements patching broken links plus the links left broken."""
    replacements: List[Replacement] = field(default_factory=list)
    errors: List[ErrorLog] = field(default_factory=list)


def classify_link_type(href: Optional[str]) -> str:
    """Classify an href as relative, absolute, http, mailto, anchor or other."""
    if not href:
        return 'other'
    h = href.strip()
    if h.startswith('#'):
        return 'anchor'
    if re.match(r'^https?://', h, re.IGNORECASE):
        return 'http'
    if re.match(r'^mailto:', h, re.IGNORECASE):
        return 'mailto'
    if h.startswith('/'):
        return 'absolute'
    return 'relative'


def extract_anchor(href: Optional[str]) -> Optional[str]:
    if not href or '#' not in href:
        return None
    return href[href.index('#'):]


def split_link_parts(href: Optional[str]) -> LinkParts:
    """Split an href into its path, query and anchor parts.

    Example:
        >>> split_link_parts('guide.md?v=2#intro')
        LinkParts(path='guide.md', query='?v=2', anchor='#intro')
    """
    if not href:
        return LinkParts(path='')
    hash_idx = href.find('#')
    query_idx = href.find('?')
    if hash_idx != -1 and query_idx > hash_idx:
        query_idx = -1

    path_end = len(href)
    for idx in (hash_idx, query_idx):
        if idx != -1:
            path_end = min(path_end, idx)

    query = ''
    if query_idx != -1:
        query = href[query_idx:hash_idx] if hash_idx != -1 else href[query_idx:]
    anchor = href[hash_idx:] if hash_idx != -1 else ''
    return LinkParts(path=href[:path_end], query=query, anchor=anchor)


def is_skippable_link(href: str, config: LinkProcessingConfig) -> bool:
    return (
        not href
        or is_external_link(href)
        or any(href.startswith(prefix) for prefix in config.exclusion_list)
        or bool(re.match(r'^:.*\.md:$', href))
    )


def _replacement(link: ParsedLink, new_href: str, kind: str) -> Replacement:
    return Replacement(
        line=link.line,
        old_href=link.href,
        new_href=new_href,
        kind=kind,
        start=link.start,
        end=link.end,
    )


async def generate_normalization_replacements(
    links: List[ParsedLink],
    file: str,
    config: LinkProcessingConfig,
    file_service: FileSystemService,
) -> List[Replacement]:
    """Rewrite links to existing targets into their shortest relative form.

    A link whose target sits at or below the linking file's directory is
    rewritten relative to that directory (``normalizedRel``), keeping a
    leading ``./`` only when the link already had one. A link that climbs
    out of the file's directory into a top-level dataset folder is
    normalized to a dataset-relative path (``normalizedFull``). Targets that
    do not exist are left alone for the existence check.
    """
    replacements = []
    host_dir = posixpath.dirname(file)
    for link in links:
        href = link.href
        if is_skippable_link(href, config):
            continue
        parts = split_link_parts(href)
        if not parts.path or parts.path.startswith('/'):
            continue
        abs_target = resolve_markdown_path(file, parts.path, config.docs_folders, config.dataset_root)
        suffix = parts.query + parts.anchor

        rel_from_host = convert_to_relative(host_dir, abs_target)
        if not rel_from_host.startswith('..'):
            if not await file_service.exists(abs_target):
                continue
            if rel_from_host == './':
                continue
            if href.startswith('./'):
                rel_from_host = './' + rel_from_host
            normalized = rel_from_host + suffix
            if normalized != href:
                replacements.append(_replacement(link, normalized, 'normalizedRel'))
            continue

        rel_to_root = convert_to_relative(config.dataset_root, abs_target)
        if rel_to_root.startswith('..') or rel_to_root == './':
            continue
        top_folder = rel_to_root.split('/', 1)[0]
        if top_folder not in config.docs_folders:
            continue
        # Only links already written dataset-relative are candidates; relative
        # ../ chains stay navigable in editors and are left as written
        if parts.path.split('/', 1)[0] not in config.docs_folders:
            continue
        if not await file_service.exists(abs_target):
            continue
        normalized = normalize_link_slashes(rel_to_root) + suffix
        if normalized != href:
            replacements.append(_replacement(link, normalized, 'normalizedFull'))
    return replacements


async def generate_existence_check_replacements(
    links: List[ParsedLink],
    file: str,
    config: LinkProcessingConfig,
    file_service: FileSystemService,
    lines: List[str],
) -> ExistenceCheckResult:
    """Patch links whose target is missing, or report them.

    Missing ``../`` links are patched with the first variant (fewer leading
    parent segments) that exists; anything else missing is reported as
    ``LINK TARGET NOT FOUND``.
    """
    result = ExistenceCheckResult()
    for link in links:
        href = link.href
        if is_skippable_link(href, config):
            continue
        parts = split_link_parts(href)
        if not parts.path:
            continue
        abs_target = resolve_markdown_path(file, parts.path, config.docs_folders, config.dataset_root)
        if await file_service.exists(abs_target):
            continue

        fixed = await try_resolve_path_variants(
            file, parts.path, config.docs_folders, file_service, config.dataset_root
        )
        if fixed:
            result.replacements.append(
                _replacement(link, fixed + parts.query + parts.anchor, 'patched')
            )
            continue
        line_text = lines[link.line - 1] if 0 < link.line <= len(lines) else ''
        result.errors.append(ErrorLog(
            type=LINK_TARGET_NOT_FOUND,
            file=file,
            line_number=link.line,
            line=line_text,
        ))
    return result


def generate_path_substitution_replacements(
    links: List[ParsedLink],
    old_base: str,
    new_base: str,
) -> List[Replacement]:
    """Replace the ``old_base`` prefix of matching hrefs with ``new_base``."""
    replacements = []
    for link in links:
        if is_external_link(link.href):
            continue
        normalized = normalize_link_slashes(link.href)
        if old_base and normalized.startswith(old_base):
            new_href = new_base + normalized[len(old_base):]
            if new_href != link.href:
                replacements.append(_replacement(link, new_href, 'pathSubstitution'))
    return replacements


def find_bad_link_formats(lines: List[str], file: str) -> List[ErrorLog]:
    """Report every ``:path.md:`` style reference, one entry per occurrence."""
    errors = []
    for index, line in enumerate(lines):
        for _ in BAD_LINK_FORMAT_PATTERN.finditer(line):
            errors.append(ErrorLog(
                type=BAD_LINK_FORMAT,
                file=file,
                line_number=index + 1,
                line=line,
            ))
    return errors


async def detect_link_style(file_service: FileSystemService, target_path: str) -> str:
    """Return 'relative' or 'absolute', whichever style dominates under ``target_path``.

    Ties go to 'relative'.
    """
    relative_count = 0
    absolute_count = 0
    for file in await walk_markdown_files(target_path, file_service):
        content = await file_service.read_file(file)
        for link in extract_links(content):
            if not link.href or is_external_link(link.href):
                continue
            if link.href.startswith('/'):
                absolute_count += 1
            else:
                relative_count += 1
    logger.debug(
        f"Link style under {target_path}: {relative_count} relative, {absolute_count} absolute"
    )
    return 'relative' if relative_count >= absolute_count else 'absolute'
