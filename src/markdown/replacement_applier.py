"""Application of href replacements to Markdown content.

Replacements carrying offsets are applied from the end of the document
backwards so earlier offsets stay valid. When the text at an offset no
longer matches (the content drifted since parsing), the old href is searched
in a small window around the offset instead. Replacements without offsets
fall back to a search on their line, preserving CRLF line endings.
"""

import re
from typing import Awaitable, Callable, List, Optional, Tuple

from .markdown_parser import extract_links
from .models import ApplyResult, ParsedLink, Replacement

# How far around a stale offset the old href is searched for
OFFSET_SEARCH_WINDOW = 64


def _apply_at_offset(content: str, replacement: Replacement) -> Tuple[str, bool]:
    start, end = replacement.start, replacement.end
    if start < 0 or end > len(content) or start > end:
        return content, False
    old = replacement.old_href
    if content[start:end] == old:
        return content[:start] + replacement.new_href + content[end:], True

    if not old:
        return content, False
    found = content.find(old, max(0, start - OFFSET_SEARCH_WINDOW))
    if found == -1 or found > end + OFFSET_SEARCH_WINDOW:
        return content, False
    return content[:found] + replacement.new_href + content[found + len(old):], True


def replace_link_on_line(content: str, line: int, old_href: str, new_href: str) -> str:
    """Replace the first ``old_href`` on 1-based ``line``, keeping line endings."""
    line_ending = '\r\n' if '\r\n' in content else '\n'
    lines = re.split(r'\r?\n', content)
    index = max(0, line - 1)
    if index >= len(lines) or not old_href:
        return content
    text = lines[index]
    pos = text.find(old_href)
    if pos == -1:
        return content
    lines[index] = text[:pos] + new_href + text[pos + len(old_href):]
    return line_ending.join(lines)


def apply_replacements(content: str, replacements: List[Replacement]) -> ApplyResult:
    """Apply replacements to ``content``.

    Args:
        content: Original Markdown text
        replacements: Replacements to apply; duplicates at the same offset
            are applied once

    Returns:
        ApplyResult with the new content and per-kind counts
    """
    result = ApplyResult(content=content)
    if not replacements:
        return result

    positioned = sorted(
        (r for r in replacements if r.start is not None and r.end is not None),
        key=lambda r: r.start,
        reverse=True,
    )
    unpositioned = [r for r in replacements if r.start is None or r.end is None]

    seen_offsets = set()
    for replacement in positioned:
        if replacement.start in seen_offsets:
            continue
        seen_offsets.add(replacement.start)
        result.content, changed = _apply_at_offset(result.content, replacement)
        if changed:
            _count(result, replacement.kind)

    for replacement in unpositioned:
        before = result.content
        result.content = replace_link_on_line(
            result.content, replacement.line, replacement.old_href, replacement.new_href
        )
        if result.content != before:
            _count(result, replacement.kind)

    return result


def _count(result: ApplyResult, kind: Optional[str]) -> None:
    kind = kind or 'updated'
    result.applied += 1
    result.by_kind[kind] = result.by_kind.get(kind, 0) + 1


async def process_file_with_links(
    content: str,
    generate_replacements: Callable[[List[ParsedLink]], Awaitable[List[Replacement]]],
) -> ApplyResult:
    """Extract links, ask ``generate_replacements`` for edits and apply them."""
    links = extract_links(content)
    replacements = await generate_replacements(links)
    return apply_replacements(content, replacements)
