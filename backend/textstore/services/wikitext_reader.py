"""Reading wikitext source files into plain text plus typography annotations."""
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

from textstore.exceptions import DocumentEmptyError, ReadError
from textstore.utils.logger import logger

_EMPHASIS = re.compile(r"'''|''")

_STYLES = {
    "'''": "font-weight: bold",
    "''": "font-style: italic",
}


@dataclass
class ParsedText:
    """Plain text with typography annotations over it."""

    text: str
    typography: List[Dict[str, Any]] = field(default_factory=list)


def read_source_file(path: Union[str, Path]) -> str:
    """
    Read a source file as UTF-8.

    Raises:
        ReadError: If the file cannot be read
        DocumentEmptyError: If the file has no content
    """
    path = Path(path)
    try:
        data = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Cannot read {path}: {str(e)}")
        raise ReadError(f"Failed to read {path}: {str(e)}") from e

    if not data:
        raise DocumentEmptyError("No data provided")
    return data


def read_wikitext(raw: str) -> ParsedText:
    """
    Strip wikitext emphasis markup and record it as typography.

    ``'''bold'''`` and ``''italic''`` become ``{start, end, css}`` entries whose
    offsets refer to the stripped text. A marker left open runs to the end of
    the text.

    Args:
        raw: Wikitext source

    Returns:
        ParsedText with the stripped text and typography sorted by start
    """
    pieces = []
    typography = []
    open_markers: Dict[str, int] = {}
    length = 0
    last = 0

    for match in _EMPHASIS.finditer(raw):
        piece = raw[last:match.start()]
        pieces.append(piece)
        length += len(piece)
        last = match.end()

        marker = match.group()
        if marker in open_markers:
            start = open_markers.pop(marker)
            if length > start:
                typography.append({"start": start, "end": length, "css": _STYLES[marker]})
        else:
            open_markers[marker] = length

    tail = raw[last:]
    pieces.append(tail)
    length += len(tail)

    for marker, start in open_markers.items():
        if length > start:
            typography.append({"start": start, "end": length, "css": _STYLES[marker]})

    typography.sort(key=lambda entry: (entry["start"], entry["end"]))
    return ParsedText(text="".join(pieces), typography=typography)
