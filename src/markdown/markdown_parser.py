"""Regex-based extraction of link occurrences from Markdown content.

Recognized forms:
    - inline links ``[text](href "title")``
    - images ``![alt](src)``, including images nested in link text
    - reference definitions ``[label]: href``

Fenced code blocks and inline code spans are masked before matching, so
link-like text inside code is never reported. Masking replaces characters
with spaces, which keeps every offset valid against the original content.
"""

import re
from typing import List, Optional, Tuple

from .models import ParsedLink

# Opening or closing fence: up to 3 spaces of indent, then ``` or ~~~
FENCE_PATTERN = re.compile(r'^ {0,3}(`{3,}|~{3,})')

INLINE_CODE_PATTERN = re.compile(r'(?<!`)(`+)(?!`)(.+?)(?<!`)\1(?!`)')

INLINE_LINK_PATTERN = re.compile(
    r'!?\[(?P<text>(?:\\.|[^\[\]\\]|\[(?:\\.|[^\[\]\\])*\])*)\]'
    r'\(\s*(?:<(?P<angle>[^<>\n]*)>|(?P<href>(?:\\.|[^\s()\\]|\((?:\\.|[^\s()\\])*\))*))'
    r'(?:\s+(?:"[^"\n]*"|\'[^\'\n]*\'|\([^()\n]*\)))?\s*\)'
)

REFERENCE_DEFINITION_PATTERN = re.compile(
    r'^ {0,3}\[(?!\^)(?P<text>(?:\\.|[^\[\]\\])+)\]:[ \t]*'
    r'(?:<(?P<angle>[^<>\n]*)>|(?P<href>\S+))',
    re.MULTILINE
)


def _blank(text: str) -> str:
    return ''.join('\n' if ch == '\n' else ' ' for ch in text)


def mask_code(content: str) -> str:
    """Return ``content`` with fenced blocks and inline code blanked out."""
    lines = content.splitlines(keepends=True)
    masked = []
    fence: Optional[str] = None
    for line in lines:
        match = FENCE_PATTERN.match(line)
        if fence is None:
            if match:
                fence = match.group(1)
                masked.append(_blank(line))
            else:
                masked.append(line)
            continue
        masked.append(_blank(line))
        if match and match.group(1)[0] == fence[0] and len(match.group(1)) >= len(fence):
            if not line.strip().lstrip(fence[0]):
                fence = None
    text = ''.join(masked)
    return INLINE_CODE_PATTERN.sub(lambda m: _blank(m.group(0)), text)


def _href_span(match: 're.Match[str]') -> Tuple[str, int, int]:
    group = 'angle' if match.group('angle') is not None else 'href'
    return match.group(group), match.start(group), match.end(group)


def _line_of(content: str, offset: int) -> int:
    return content.count('\n', 0, offset) + 1


def extract_links(content: str) -> List[ParsedLink]:
    """Extract every link occurrence from Markdown content.

    Args:
        content: Markdown text

    Returns:
        Links ordered by position, each with the offsets of its href
    """
    masked = mask_code(content)
    found = {}

    def add(match: 're.Match[str]') -> None:
        href, start, end = _href_span(match)
        text = content[match.start('text'):match.end('text')]
        found[start] = ParsedLink(
            href=href,
            text=text,
            line=_line_of(content, start),
            start=start,
            end=end,
        )

    for match in INLINE_LINK_PATTERN.finditer(masked):
        add(match)
        # One level of nesting covers badges: [![alt](img.png)](page.md)
        for inner in INLINE_LINK_PATTERN.finditer(masked, match.start('text'), match.end('text')):
            add(inner)

    for match in REFERENCE_DEFINITION_PATTERN.finditer(masked):
        add(match)

    return [found[start] for start in sorted(found)]
