from __future__ import annotations

import re
from typing import List, Optional

_NUMBERING_RE = re.compile(r"^\s*\d+\.\s*")


def parse_references(raw: Optional[str]) -> List[str]:
    """Split newline-separated references, dropping blanks and leading ``1.`` numbering."""
    items: List[str] = []
    for line in (raw or "").splitlines():
        cleaned = _NUMBERING_RE.sub("", line).strip()
        if cleaned:
            items.append(cleaned)
    return items
