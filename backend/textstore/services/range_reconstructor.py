"""Reassembling a character range from overlapping stored chunks."""
from typing import Sequence

from textstore.models.document import RangeText, TextChunk


def reconstruct(start: int, end: int, chunks: Sequence[TextChunk]) -> RangeText:
    """
    Join chunks that cover ``[start, end)`` and trim to exactly that range.

    The chunks must cover the range contiguously; gaps are not detected and
    produce wrong or short text. An empty chunk set returns an empty range at
    offset 0, which callers treat as "not found".

    Args:
        start: First character offset of the result
        end: Offset one past the last character of the result
        chunks: Stored chunks overlapping the range, in any order

    Returns:
        RangeText for the requested range
    """
    if not chunks:
        return RangeText(text="", start=0, end=0)

    ordered = sorted(chunks, key=lambda chunk: chunk.start)
    joined = "".join(chunk.text for chunk in ordered)
    begin = start - ordered[0].start
    return RangeText(text=joined[begin:begin + (end - start)], start=start, end=end)
