"""Character-window text chunking with paragraph and sentence snapping.

Splits extracted document text into overlapping windows of at most
``max_chars`` characters (2000 by default, roughly 500 tokens for
``text-embedding-3-small``).  Consecutive windows share ``overlap``
characters (200 by default) so that a rule spanning a boundary, e.g.
"pets are allowed in common areas only on a leash", is fully contained in
at least one chunk.

Boundary selection for each window:

1. **Paragraph** -- the last ``"\\n\\n"`` at or before the tentative end,
   if it lies past the window's midpoint.
2. **Sentence** -- otherwise the last ``". "``, under the same midpoint
   condition; the period stays in the chunk.
3. **Hard cut** -- otherwise the raw ``max_chars`` boundary.

The midpoint condition prevents a paragraph break near the start of a
window from producing a tiny chunk.
"""

from __future__ import annotations

import structlog

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_MAX_CHARS = 2000
DEFAULT_OVERLAP = 200

_PARAGRAPH_BREAK = "\n\n"
_SENTENCE_BREAK = ". "


def _validate(max_chars: int, overlap: int) -> None:
    if max_chars <= 0:
        msg = f"max_chars must be positive, got {max_chars}"
        raise ValueError(msg)
    # A snapped window can be as short as half of max_chars; the next one
    # must still start inside it.
    if overlap < 0 or overlap * 2 >= max_chars:
        msg = f"overlap must satisfy 0 <= overlap < max_chars / 2, got {overlap}"
        raise ValueError(msg)


def _snap_end(text: str, start: int, end: int, max_chars: int) -> int:
    """Move *end* back to a paragraph or sentence boundary when one is close enough."""
    midpoint = start + max_chars / 2

    # A boundary starting exactly at ``end`` still counts.
    paragraph = text.rfind(_PARAGRAPH_BREAK, 0, end + len(_PARAGRAPH_BREAK))
    if paragraph > midpoint:
        return paragraph

    # The kept period must fall inside the window.
    sentence = text.rfind(_SENTENCE_BREAK, 0, end + 1)
    if sentence > midpoint:
        return sentence + 1

    return end


def chunk_text(
    text: str,
    max_chars: int = DEFAULT_MAX_CHARS,
    overlap: int = DEFAULT_OVERLAP,
) -> list[str]:
    """Split *text* into trimmed, overlapping chunks.

    Parameters
    ----------
    text:
        The full extracted text of one document.
    max_chars:
        Maximum window width in characters.
    overlap:
        Characters shared by consecutive windows.

    Returns
    -------
    list[str]
        Non-empty chunks in document order.  Text no longer than
        *max_chars* yields a single chunk equal to ``text.strip()``.

    Raises
    ------
    ValueError
        If *max_chars* is not positive or *overlap* is outside
        ``[0, max_chars / 2)``.
    """
    _validate(max_chars, overlap)

    chunks: list[str] = []
    length = len(text)
    start = 0

    while start < length:
        end = min(start + max_chars, length)
        if end < length:
            end = _snap_end(text, start, end, max_chars)

        piece = text[start:end].strip()
        if piece:
            chunks.append(piece)

        if end >= length:
            break

        # ``end`` lies past the midpoint and ``overlap`` is under half the
        # window, so this always advances.
        start = end - overlap

    return chunks


class TextChunker:
    """Configured wrapper around :func:`chunk_text`.

    Parameters
    ----------
    max_chars:
        Maximum chunk width in characters (default 2000).
    overlap:
        Characters of overlap between consecutive chunks (default 200).
    """

    def __init__(self, max_chars: int = DEFAULT_MAX_CHARS, overlap: int = DEFAULT_OVERLAP) -> None:
        _validate(max_chars, overlap)
        self._max_chars = max_chars
        self._overlap = overlap

    @property
    def max_chars(self) -> int:
        return self._max_chars

    @property
    def overlap(self) -> int:
        return self._overlap

    def chunk(self, text: str) -> list[str]:
        """Split *text* into overlapping chunks using this chunker's window."""
        chunks = chunk_text(text, self._max_chars, self._overlap)
        logger.debug(
            "chunking_complete",
            num_chunks=len(chunks),
            text_length=len(text),
            avg_chars=sum(len(c) for c in chunks) // len(chunks) if chunks else 0,
        )
        return chunks
