# -*- coding: utf-8 -*-
"""
Text chunking: sections, then paragraphs, then sentences, with character overlap.
"""
from ravenloom.processing.chunks.text_chunker import TextChunker, chunk_text

__all__ = ['TextChunker', 'chunk_text']
