"""
Song Library - Lyric pages

Splits stored lyric text into verses (blocks separated by a blank line) and
serves them a page at a time.
"""

import re
from typing import List, Sequence, Tuple, TypeVar

T = TypeVar("T")

# One or more blank lines; a "blank" line may hold stray whitespace.
_VERSE_BREAK = re.compile(r"\n(?:[ \t]*\n)+")


def split_verses(text: str) -> List[str]:
    """
    Split lyric text into verses, in document order.

    A verse is a maximal run of non-blank lines.  Windows and old Mac line
    endings are normalised first; surrounding blank lines are dropped, lines
    inside a verse are kept as they are.
    """
    if not text:
        return []
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    verses = (chunk.strip("\n") for chunk in _VERSE_BREAK.split(normalized))
    return [v for v in verses if v.strip()]


def paginate(items: Sequence[T], page: int, page_size: int) -> Tuple[List[T], int]:
    """
    Return one page of *items* and the total item count.

    ``page`` is 1-based.  Both ``page`` and ``page_size`` are clamped up to 1.
    A page past the end comes back empty, still with the real total.
    """
    total = len(items)
    page = max(page, 1)
    page_size = max(page_size, 1)

    start = (page - 1) * page_size
    if start >= total:
        return [], total
    end = min(start + page_size, total)
    return list(items[start:end]), total
