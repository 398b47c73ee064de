# -*- coding: utf-8 -*-
"""
RavenLoom team knowledge package.

Top-level package for the knowledge pipeline: text chunking, entity and
relationship extraction, knowledge graph upserts on Postgres/pgvector,
GraphRAG retrieval, and the Ask/Remember flow over attributable facts.
"""
