# -*- coding: utf-8 -*-
"""
Structure-aware text chunking with character overlap.

Splits a document into size-bounded chunks that respect its structure:
sections (markdown headers or 3+ newlines) -> paragraphs (blank lines) ->
sentences for paragraphs above max_size -> forced word-boundary splits as a
last resort. Each new chunk is seeded with a short suffix of the previous one
so entities mentioned at a boundary keep their context.

Pure functions over the input; no model, no I/O.

References:
    extraction_config.py: CHUNKING_CONFIG for target/max/overlap sizes
"""
# Standard library
import logging
import re
from typing import List, Optional

# Config imports (direct)
from config.extraction_config import CHUNKING_CONFIG

logger = logging.getLogger(__name__)

SECTION_PATTERN = re.compile(r'\n{3,}|(?=^#{1,3}\s)', re.MULTILINE)
PARAGRAPH_PATTERN = re.compile(r'\n\n+')
SENTENCE_PATTERN = re.compile(r'(?<=[.!?])\s+')


# ============================================================================
# SPLITTING HELPERS
# ============================================================================

def split_into_sections(text: str) -> List[str]:
    """Split on markdown headers (#, ##, ###) or runs of 3+ newlines."""
    sections = [s for s in SECTION_PATTERN.split(text) if s.strip()]
    return sections if sections else [text]


def split_into_paragraphs(text: str) -> List[str]:
    return [p for p in PARAGRAPH_PATTERN.split(text) if p.strip()]


def get_overlap_text(text: str, chars: int) -> str:
    """
    Last `chars` characters of text, trimmed forward to a word boundary.

    The cut only moves to the first space if that space falls in the first
    half of the window; otherwise the raw suffix is kept.
    """
    if not text or chars <= 0:
        return ''
    if len(text) <= chars:
        return text

    overlap = text[-chars:]
    first_space = overlap.find(' ')
    if 0 < first_space < chars * 0.5:
        overlap = overlap[first_space + 1:]
    return overlap.strip()


def force_split(text: str, max_size: int) -> List[str]:
    """
    Hard-split text into pieces of at most max_size characters.

    Prefers the last space at or before max_size, unless that space sits in
    the first half of the window (then cuts mid-word at max_size).
    """
    pieces = []
    remaining = text
    while remaining:
        split_point = max_size
        if len(remaining) > max_size:
            last_space = remaining.rfind(' ', 0, max_size + 1)
            if last_space > max_size * 0.5:
                split_point = last_space
        piece = remaining[:split_point].strip()
        if piece:
            pieces.append(piece)
        remaining = remaining[split_point:].strip()
    return pieces


def split_by_sentences(text: str, target_size: int, max_size: int, overlap: int) -> List[str]:
    """
    Accumulate sentences up to target_size with overlap between chunks.

    Sentence chunks still above max_size (one giant sentence) are force-split.
    """
    sentences = SENTENCE_PATTERN.split(text)
    chunks = []
    current = ''

    for sentence in sentences:
        if len(current) + len(sentence) > target_size and current:
            chunks.append(current.strip())
            overlap_text = get_overlap_text(current, overlap)
            current = overlap_text + (' ' if overlap_text else '') + sentence
        else:
            current += (' ' if current else '') + sentence

    if current.strip():
        chunks.append(current.strip())

    final_chunks = []
    for chunk in chunks:
        if len(chunk) > max_size:
            final_chunks.extend(force_split(chunk, max_size))
        else:
            final_chunks.append(chunk)
    return final_chunks


# ============================================================================
# CHUNKER
# ============================================================================

class TextChunker:
    """
    Section/paragraph/sentence chunker.

    Example:
        chunker = TextChunker(target_size=500, max_size=800, overlap=50)
        chunks = chunker.chunk(document_text)
    """

    def __init__(
        self,
        target_size: int = CHUNKING_CONFIG['target_size'],
        max_size: int = CHUNKING_CONFIG['max_size'],
        overlap: int = CHUNKING_CONFIG['overlap_chars'],
    ):
        if max_size < target_size:
            raise ValueError(f"max_size ({max_size}) must be >= target_size ({target_size})")
        self.target_size = target_size
        self.max_size = max_size
        self.overlap = overlap

    def chunk(self, text: Optional[str]) -> List[str]:
        """
        Split text into overlapping chunks, each at most max_size characters.

        Args:
            text: Document text (None or '' yields no chunks)

        Returns:
            Chunk strings in document order
        """
        if not text:
            return []
        if len(text) <= self.target_size:
            stripped = text.strip()
            return [stripped] if stripped else []

        chunks: List[str] = []
        previous_end = ''

        for section in split_into_sections(text):
            current = previous_end

            for paragraph in split_into_paragraphs(section):
                para = paragraph.strip()
                if not para:
                    continue

                if len(para) > self.max_size:
                    # Flush what we have, then split the paragraph by sentences
                    if current.strip():
                        chunks.append(current.strip())
                        previous_end = get_overlap_text(current, self.overlap)
                        current = previous_end

                    sentence_chunks = split_by_sentences(
                        para, self.target_size, self.max_size, self.overlap
                    )
                    for i, sentence_chunk in enumerate(sentence_chunks):
                        if i == 0 and current.strip():
                            chunks.append((current + ' ' + sentence_chunk).strip())
                        else:
                            chunks.append(sentence_chunk.strip())
                    previous_end = get_overlap_text(sentence_chunks[-1], self.overlap)
                    current = previous_end
                    continue

                if len(current) + len(para) + 2 > self.target_size and current.strip():
                    chunks.append(current.strip())
                    previous_end = get_overlap_text(current, self.overlap)
                    current = previous_end + ('\n\n' if previous_end else '') + para
                else:
                    current += ('\n\n' if current else '') + para

            if current.strip() and current.strip() != previous_end.strip():
                chunks.append(current.strip())
                previous_end = get_overlap_text(current, self.overlap)

        chunks = self._drop_redundant(chunks)

        # Overlap prefixes can push a chunk past max_size
        bounded = []
        for chunk in chunks:
            if len(chunk) > self.max_size:
                bounded.extend(force_split(chunk, self.max_size))
            else:
                bounded.append(chunk)

        logger.debug(f"Chunked {len(text)} chars into {len(bounded)} chunks")
        return bounded

    @staticmethod
    def _drop_redundant(chunks: List[str]) -> List[str]:
        """Drop empty chunks and chunks wholly contained in their predecessor."""
        kept = []
        for i, chunk in enumerate(chunks):
            if not chunk.strip():
                continue
            if i > 0 and chunk in chunks[i - 1]:
                continue
            kept.append(chunk)
        return kept


def chunk_text(text: Optional[str], target_size: int = CHUNKING_CONFIG['target_size'],
               max_size: int = CHUNKING_CONFIG['max_size'],
               overlap: int = CHUNKING_CONFIG['overlap_chars']) -> List[str]:
    """Functional shortcut for TextChunker(...).chunk(text)."""
    return TextChunker(target_size, max_size, overlap).chunk(text)
