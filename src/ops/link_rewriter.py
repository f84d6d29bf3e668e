"""Path-mapping based link rewriting.

A copy or move produces PathRewriteRules: exact old-to-new mappings for each
copied file and each mapped directory. Two rewrites use them:

    - rebasing: a copied file's links are resolved against its original
      location, redirected through the rules, then made relative to its new
      location
    - dataset-wide: links in any other file are resolved from that file and
      redirected when they land on a mapped path

Only exact matches are redirected, so entries left behind by skip/add
behaviors keep their links. Without a naming transform, every directory
between the source and a copied file is mapped too. Percent-encoded hrefs
are decoded to resolve them and written back encoded. Relative links stay
relative, root-style (``/x``) links stay root-style, and a leading ``./``,
query and anchor are preserved. Rewritten links never resolve onto an old
path again, which makes a second pass a no-op.
"""

import logging
import posixpath
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional
from urllib.parse import quote, unquote

from ..file_system.utils import is_external_link, is_within
from ..markdown.link_processor import split_link_parts
from ..markdown.models import ParsedLink, Replacement
from .models import CopiedFile, PathMappingEntry


logger = logging.getLogger(__name__)

REBASED = 'rebased'
PATH_MAPPING = 'pathMapping'


@dataclass
class PathRewriteRules:
    """Exact old-to-new absolute path mappings for one operation.

    Attributes:
        dataset_root: Absolute dataset root
        files: Absolute old file path -> absolute new file path
        dirs: Absolute old directory path -> absolute new directory path
    """
    dataset_root: str
    files: Dict[str, str] = field(default_factory=dict)
    dirs: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_operation(
        cls,
        dataset_root: str,
        copied: Iterable[CopiedFile],
        path_mapping: Iterable[PathMappingEntry] = (),
    ) -> 'PathRewriteRules':
        root = posixpath.normpath(dataset_root)
        rules = cls(dataset_root=root)
        for item in copied:
            rules.files[posixpath.normpath(item.source_path)] = posixpath.normpath(item.dest_path)
        for entry in path_mapping:
            old_dir = posixpath.normpath(posixpath.join(root, entry.original_dir))
            new_dir = posixpath.normpath(posixpath.join(root, entry.new_dir))
            if old_dir != new_dir:
                rules.dirs[old_dir] = new_dir
        return rules

    def add_dir(self, old_dir: str, new_dir: str) -> None:
        old_dir, new_dir = posixpath.normpath(old_dir), posixpath.normpath(new_dir)
        if old_dir != new_dir:
            self.dirs.setdefault(old_dir, new_dir)

    def add_copied_dirs(self, src_dir: str, dest_dir: str, copied: Iterable[CopiedFile]) -> None:
        """Map every directory between ``src_dir`` and a copied file to its new place.

        Directories holding only entries that were left behind are not
        ancestors of any copied file and stay unmapped.
        """
        src_dir, dest_dir = posixpath.normpath(src_dir), posixpath.normpath(dest_dir)
        for item in copied:
            current = posixpath.dirname(posixpath.normpath(item.source_path))
            while current != src_dir and is_within(current, src_dir):
                self.add_dir(current, posixpath.join(dest_dir, posixpath.relpath(current, src_dir)))
                current = posixpath.dirname(current)

    def map_path(self, abs_path: str) -> Optional[str]:
        """Return where ``abs_path`` went, or None when it was not moved."""
        new_path = self.files.get(abs_path)
        if new_path is None:
            new_path = self.dirs.get(abs_path)
        if new_path == abs_path:
            return None
        return new_path

    def __bool__(self) -> bool:
        return bool(self.files or self.dirs)


def compute_new_href(
    href: str,
    original_file_dir: str,
    new_file_dir: str,
    rules: PathRewriteRules,
) -> Optional[str]:
    """Compute the rewritten href for one link, or None to leave it as is.

    Args:
        href: Link as written
        original_file_dir: Directory the link was written relative to
        new_file_dir: Directory the linking file lives in now
        rules: Mappings of the current operation

    Returns:
        The new href, or None for external links, anchors, links leaving
        the dataset root and links that need no change
    """
    if not href or is_external_link(href):
        return None
    parts = split_link_parts(href)
    path = parts.path
    if not path:
        return None

    root = rules.dataset_root
    decoded = unquote(path)
    root_style = decoded.startswith('/')
    if root_style:
        abs_target = posixpath.normpath(posixpath.join(root, decoded.lstrip('/')))
    else:
        abs_target = posixpath.normpath(posixpath.join(original_file_dir, decoded))
    if abs_target == root or not is_within(abs_target, root):
        return None

    mapped = rules.map_path(abs_target)
    if mapped is None and (root_style or original_file_dir == new_file_dir):
        return None
    final_target = mapped or abs_target

    if root_style:
        new_path = '/' + posixpath.relpath(final_target, root)
    else:
        new_path = posixpath.relpath(final_target, new_file_dir)
        if path.startswith('./') and not new_path.startswith('.'):
            new_path = './' + new_path
    if path.endswith('/') and not new_path.endswith('/'):
        new_path += '/'
    if decoded != path:
        new_path = quote(new_path)

    new_href = new_path + parts.query + parts.anchor
    return None if new_href == href else new_href


def generate_path_mapping_replacements(
    links: List[ParsedLink],
    original_file: str,
    new_file: str,
    rules: PathRewriteRules,
) -> List[Replacement]:
    """Build replacements for the links of a file that lived at ``original_file``.

    Pass the same path twice for files that did not move.
    """
    original_dir = posixpath.dirname(original_file)
    new_dir = posixpath.dirname(new_file)
    kind = PATH_MAPPING if original_file == new_file else REBASED
    replacements = []
    for link in links:
        new_href = compute_new_href(link.href, original_dir, new_dir, rules)
        if new_href is None:
            continue
        replacements.append(Replacement(
            line=link.line,
            old_href=link.href,
            new_href=new_href,
            kind=kind,
            start=link.start,
            end=link.end,
        ))
    return replacements


def build_path_mapping(dataset_root: str, copied: Iterable[CopiedFile]) -> List[PathMappingEntry]:
    """Group copied files by (source directory, destination directory).

    Every copied file lands in exactly one entry, so the entries' file lists
    are exhaustive and non-overlapping. Entries are ordered by original
    directory, then new directory.
    """
    root = posixpath.normpath(dataset_root)
    grouped: Dict[tuple, PathMappingEntry] = {}
    for item in copied:
        original_dir = _relative_dir(root, posixpath.dirname(item.source_path))
        new_dir = _relative_dir(root, posixpath.dirname(item.dest_path))
        entry = grouped.get((original_dir, new_dir))
        if entry is None:
            entry = grouped[(original_dir, new_dir)] = PathMappingEntry(original_dir, new_dir)
        entry.files.append(item.dest_path)
    return [grouped[key] for key in sorted(grouped)]


def _relative_dir(root: str, path: str) -> str:
    rel = posixpath.relpath(path, root)
    return '' if rel == '.' else rel
