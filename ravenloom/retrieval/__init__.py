# -*- coding: utf-8 -*-
"""
Retrieval package for GraphRAG search and answer generation.

Contains GraphRAGRetriever (vector entry nodes, edge expansion, linked chunks)
and AnswerGenerator (Claude answers grounded in facts, decisions and graph context).
"""
from ravenloom.retrieval.graph_rag import GraphRAGRetriever
from ravenloom.retrieval.answer_generator import AnswerGenerator

__all__ = ['GraphRAGRetriever', 'AnswerGenerator']
