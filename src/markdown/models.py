"""Data models for Markdown link extraction and rewriting."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class ParsedLink:
    """A link occurrence found in Markdown content.

    ``start`` and ``end`` delimit the href itself, so
    ``content[start:end] == href`` for freshly parsed content.

    Attributes:
        href: Link destination as written (without angle brackets)
        text: Link text, image alt text or reference label
        line: 1-based line number of the href
        start: Offset of the first href character
        end: Offset one past the last href character
    """
    href: str
    text: str
    line: int
    start: Optional[int] = None
    end: Optional[int] = None


@dataclass(frozen=True)
class Replacement:
    """A pending href substitution.

    Replacements with offsets are applied positionally; those without are
    applied by searching ``old_href`` on ``line``.

    Attributes:
        line: 1-based line number of the link
        old_href: Href currently in the content
        new_href: Href to write instead
        kind: Category counted in processing results (e.g. "pathMapping")
        start: Offset of the href, when known
        end: End offset of the href, when known
    """
    line: int
    old_href: str
    new_href: str
    kind: str = 'updated'
    start: Optional[int] = None
    end: Optional[int] = None


@dataclass
class ApplyResult:
    """Outcome of applying replacements to one document.

    Attributes:
        content: Content after all applicable replacements
        applied: Number of replacements actually written
        by_kind: Count of applied replacements per kind
    """
    content: str
    applied: int = 0
    by_kind: Dict[str, int] = field(default_factory=dict)


@dataclass
class LinkProcessingConfig:
    """Settings shared by link normalization and batch processing.

    Attributes:
        dataset_root: Absolute dataset root
        docs_folders: Top-level folder names resolved from the dataset root
        exclusion_list: Href prefixes never touched
        concurrency_limit: Maximum files processed at once in a batch
    """
    dataset_root: str
    docs_folders: List[str] = field(default_factory=list)
    exclusion_list: List[str] = field(default_factory=list)
    concurrency_limit: int = 10


@dataclass(frozen=True)
class ErrorLog:
    """A broken link found during dataset validation.

    Attributes:
        type: "BAD LINK FORMAT" or "LINK TARGET NOT FOUND"
        file: Absolute path of the Markdown file
        line_number: 1-based line number
        line: Full text of the offending line
    """
    type: str
    file: str
    line_number: int
    line: str
