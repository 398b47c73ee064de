# -*- coding: utf-8 -*-
"""
Knowledge package for facts, decisions and the Ask/Remember flow.

Contains FactExtractor (atomic fact decomposition), FactStore (facts and
decisions with supersession), ScopeStore, ConflictDetector, the Remember
preview store and RavenService (Ask, preview/confirm/cancel Remember,
learning from conversation).
"""
from ravenloom.knowledge.fact_extractor import FactExtractor
from ravenloom.knowledge.fact_store import FactStore
from ravenloom.knowledge.scope_store import ScopeStore
from ravenloom.knowledge.conflict_detector import ConflictDetector
from ravenloom.knowledge.preview_store import InMemoryPreviewStore, PreviewStore
from ravenloom.knowledge.raven_service import RavenService

__all__ = [
    'FactExtractor',
    'FactStore',
    'ScopeStore',
    'ConflictDetector',
    'InMemoryPreviewStore',
    'PreviewStore',
    'RavenService',
]
