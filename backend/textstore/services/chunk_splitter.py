"""Splitting long texts into bounded, word-respecting chunks."""
from typing import Iterable, List

from textstore.models.document import ChunkSpan, TextPart
from textstore.utils.logger import logger


def assemble_text(parts: Iterable[TextPart]) -> str:
    """Join text parts in ascending sequence order."""
    return "".join(part.text for part in sorted(parts, key=lambda part: part.sequence))


def split_text(max_size: int, text: str) -> List[ChunkSpan]:
    """
    Split text on spaces into chunks of at most ``max_size`` characters.

    Each split happens at the rightmost space at or before position ``max_size``;
    that space becomes the first character of the following chunk. When the
    remaining text has no usable space (none in the window, or only at position 0)
    the whole remainder is emitted as the final chunk, so that chunk may be
    longer than ``max_size``.

    Args:
        max_size: Maximum chunk length for splits made on a space
        text: Text to split

    Returns:
        List of ChunkSpan in increasing offset order
    """
    if max_size <= 0:
        raise ValueError("max_size must be positive")

    chunks: List[ChunkSpan] = []
    offset = 0
    remaining = text

    while remaining:
        pos = remaining.rfind(" ", 0, max_size + 1)
        if pos <= 0:
            chunks.append(ChunkSpan(text=remaining, offset=offset))
            break
        chunks.append(ChunkSpan(text=remaining[:pos], offset=offset))
        offset += pos
        remaining = remaining[pos:]

    logger.debug(f"Chunked text - {len(chunks)} parts.", extra={"chunk_count": len(chunks)})
    return chunks
