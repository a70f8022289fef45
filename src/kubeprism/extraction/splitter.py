#!/usr/bin/env python3
"""
KUBEPRISM SPLITTER - Document Separation
----------------------------------------
Cuts assistant output into candidate documents:
1. `---` separator lines (YAML multi-document convention).
2. Line-scan fallback: assistants often paste manifests with no separator
   and no fence, so a block is opened at an `apiVersion:` line and closed
   at the next blank line.

Author: KubePrism Team
Date: 2026-10-17
"""

import re
from typing import List, Optional

from kubeprism.core.models import Fragment

SEPARATOR_PATTERN = re.compile(r"^---+[ \t]*\r?$", re.MULTILINE)
MANIFEST_START = "apiVersion:"


def trimmed_fragment(text: str, start: int, end: int) -> Optional[Fragment]:
    """
    Fragment for text[start:end] without blank edge lines. The indentation of
    the first content line is kept so the normalizer can dedent the block.
    """
    part = text[start:end].rstrip()
    if not part.strip():
        return None
    lead = part.rfind("\n", 0, len(part) - len(part.lstrip())) + 1
    return Fragment(text=part[lead:], start=start + lead, end=start + len(part))


def split_documents(text: str, offset: int = 0) -> List[Fragment]:
    """Splits on separator lines. Empty parts are discarded."""
    fragments = []
    cursor = 0
    for match in SEPARATOR_PATTERN.finditer(text):
        fragment = trimmed_fragment(text, cursor, match.start())
        if fragment:
            fragments.append(fragment)
        cursor = match.end()

    tail = trimmed_fragment(text, cursor, len(text))
    if tail:
        fragments.append(tail)

    if offset:
        fragments = [Fragment(text=f.text, start=f.start + offset, end=f.end + offset) for f in fragments]
    return fragments


def scan_manifest_blocks(text: str, offset: int = 0) -> List[Fragment]:
    """
    Line-scan fallback. Indentation inside a block is kept as-is; the YAML
    normalizer dedents it later.
    """
    blocks = []
    block_start = None
    block_end = 0
    pos = 0

    for line in text.splitlines(keepends=True):
        stripped = line.strip()
        if block_start is None:
            if stripped.startswith(MANIFEST_START):
                block_start = pos
                block_end = pos + len(line)
        elif not stripped:
            fragment = trimmed_fragment(text, block_start, block_end)
            if fragment:
                blocks.append(fragment)
            block_start = None
        else:
            block_end = pos + len(line)
        pos += len(line)

    if block_start is not None:
        fragment = trimmed_fragment(text, block_start, block_end)
        if fragment:
            blocks.append(fragment)

    if offset:
        blocks = [Fragment(text=f.text, start=f.start + offset, end=f.end + offset) for f in blocks]
    return blocks
