# -*- coding: utf-8 -*-
"""
Entity and relationship extraction from text chunks.
"""
from ravenloom.processing.entities.entity_extractor import EntityExtractor

__all__ = ['EntityExtractor']
