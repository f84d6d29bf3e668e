"""Markdown link extraction, resolution and replacement.

Everything here is either pure or read-only against the file system; writing
rewritten content back is left to the batch drivers in ``src.ops``.
"""

from .models import ApplyResult, ErrorLog, LinkProcessingConfig, ParsedLink, Replacement
from .markdown_parser import extract_links, mask_code
from .replacement_applier import apply_replacements, process_file_with_links, replace_link_on_line
from .path_resolution import resolve_markdown_path, try_resolve_path_variants
from .link_processor import (
    BAD_LINK_FORMAT,
    LINK_TARGET_NOT_FOUND,
    LinkParts,
    classify_link_type,
    detect_link_style,
    extract_anchor,
    find_bad_link_formats,
    generate_existence_check_replacements,
    generate_normalization_replacements,
    generate_path_substitution_replacements,
    is_skippable_link,
    split_link_parts,
)

__all__ = [
    'ApplyResult',
    'ErrorLog',
    'LinkProcessingConfig',
    'ParsedLink',
    'Replacement',
    'extract_links',
    'mask_code',
    'apply_replacements',
    'process_file_with_links',
    'replace_link_on_line',
    'resolve_markdown_path',
    'try_resolve_path_variants',
    'BAD_LINK_FORMAT',
    'LINK_TARGET_NOT_FOUND',
    'LinkParts',
    'classify_link_type',
    'detect_link_style',
    'extract_anchor',
    'find_bad_link_formats',
    'generate_existence_check_replacements',
    'generate_normalization_replacements',
    'generate_path_substitution_replacements',
    'is_skippable_link',
    'split_link_parts',
]
