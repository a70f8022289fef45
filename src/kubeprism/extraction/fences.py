#!/usr/bin/env python3
"""
KUBEPRISM FENCES - Fenced Code Block Extraction
-----------------------------------------------
Finds paired ``` / ~~~ fences in assistant output. A fence closes on a line
made of the same fence character, at least as long as the opener.
Unclosed fences are left to the markdown renderer.

Author: KubePrism Team
Date: 2026-10-17
"""

import re
from dataclasses import dataclass
from typing import List, Optional

from kubeprism.core.models import Fragment
from kubeprism.extraction.splitter import trimmed_fragment

# Group 1: fence run, Group 2: info string (language tag)
OPEN_FENCE = re.compile(r"^[ \t]{0,3}(`{3,}|~{3,})[ \t]*([^\s`]*)[^\n`]*$")
CLOSE_FENCE = re.compile(r"^[ \t]{0,3}(`{3,}|~{3,})[ \t]*$")


@dataclass(frozen=True)
class FencedBlock:
    """One fence pair: the whole fenced region plus its inner body."""
    language: str
    start: int
    end: int
    body: Optional[Fragment] = None   # None when the fence is empty

    @property
    def is_yaml(self) -> bool:
        return self.language in ("yaml", "yml")


def _lines_with_offsets(text: str, offset: int):
    pos = 0
    for line in text.splitlines(keepends=True):
        yield offset + pos, line
        pos += len(line)


def extract_fenced_blocks(text: str, offset: int = 0) -> List[FencedBlock]:
    """
    Returns every closed fence in `text`, in source order. Spans are shifted
    by `offset` so callers can work on a slice of a larger document.
    """
    blocks = []
    opener = None   # (fence_run, language, start, body_start)

    for line_start, line in _lines_with_offsets(text, offset):
        content = line.rstrip("\r\n")
        if opener is None:
            match = OPEN_FENCE.match(content)
            if match:
                opener = (match.group(1), match.group(2).lower(), line_start, line_start + len(line))
            continue

        fence, language, start, body_start = opener
        match = CLOSE_FENCE.match(content)
        if not match or match.group(1)[0] != fence[0] or len(match.group(1)) < len(fence):
            continue

        body = trimmed_fragment(text, body_start - offset, line_start - offset)
        if body is not None:
            body = Fragment(text=body.text, start=body.start + offset, end=body.end + offset)

        blocks.append(FencedBlock(language=language, start=start, end=line_start + len(content), body=body))
        opener = None

    return blocks
