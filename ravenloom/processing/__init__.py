# -*- coding: utf-8 -*-
"""
Processing package for chunking and entity extraction.

Contains subpackages: chunks (structure-aware text chunking with overlap) and
entities (LLM entity/relationship extraction).
"""
