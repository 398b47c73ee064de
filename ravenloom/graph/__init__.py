# -*- coding: utf-8 -*-
"""
Knowledge graph package.

Contains GraphStore (idempotent node/edge upserts, chunk storage, user nodes),
UserStore (keyed user facts, user context, name lookup) and DocumentProcessor
(chunk -> extract -> upsert ingestion).
"""
from ravenloom.graph.graph_store import GraphStore
from ravenloom.graph.user_store import UserStore
from ravenloom.graph.document_processor import DocumentProcessor

__all__ = ['GraphStore', 'UserStore', 'DocumentProcessor']
