# -*- coding: utf-8 -*-
"""
Module: extraction_config.py
Package: config
Purpose: Configuration for ingestion (chunking, entity extraction, graph upsert)

Secrets and deployment values come from .env; everything else is application
logic and lives here as plain dicts.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# ============================================================================
# CONNECTIONS (from .env; API keys are read by the clients)
# ============================================================================

TOGETHER_BASE_URL = os.getenv('TOGETHER_BASE_URL', 'https://api.together.xyz/v1')
DATABASE_URL = os.getenv('DATABASE_URL', 'postgresql://localhost:5432/ravenloom')

DATABASE_CONFIG = {
    'dsn': DATABASE_URL,
    'min_size': int(os.getenv('RAVENLOOM_DB_POOL_MIN', '2')),
    'max_size': int(os.getenv('RAVENLOOM_DB_POOL_MAX', '10')),
    'command_timeout': 30,
}

LOG_LEVEL = os.getenv('RAVENLOOM_LOG_LEVEL', 'INFO').upper()


# ============================================================================
# CHUNKING
# ============================================================================

CHUNKING_CONFIG = {
    'target_size': 500,      # characters; flush before exceeding
    'max_size': 800,         # hard ceiling, paragraphs above this split by sentence
    'overlap_chars': 50,     # suffix of previous chunk carried forward
}


# ============================================================================
# ENTITY & RELATIONSHIP TAXONOMY
# ============================================================================

ENTITY_TYPES = {
    'person': 'Named individuals (CEO, founder, team members)',
    'product': 'Products, games, services',
    'company': 'Companies, organizations, vendors',
    'concept': 'Abstract concepts, processes, strategies',
    'date': 'Dates, deadlines, timeframes',
    'event': 'Events, launches, meetings',
    'location': 'Places, addresses, regions',
}

# Assigned by the system to user nodes, never requested from the model
TEAM_MEMBER_TYPE = 'team_member'

RELATIONSHIP_TYPES = {
    'IS_A': 'Type relationship (Fugly IS_A mascot)',
    'HAS': 'Possession/attribute (Company HAS product)',
    'WORKS_FOR': 'Employment (Person WORKS_FOR company)',
    'CREATED_BY': 'Authorship (Product CREATED_BY person)',
    'RELATED_TO': 'General association',
    'PART_OF': 'Containment (Feature PART_OF product)',
    'HAPPENS_ON': 'Temporal (Event HAPPENS_ON date)',
    'LOCATED_IN': 'Spatial (Company LOCATED_IN location)',
}

ENTITY_TYPE_NAMES = list(ENTITY_TYPES.keys())
RELATIONSHIP_TYPE_NAMES = list(RELATIONSHIP_TYPES.keys())


# ============================================================================
# LLM EXTRACTION (Together.ai)
# ============================================================================

EXTRACTION_CONFIG = {
    'model_name': os.getenv('RAVENLOOM_EXTRACTION_MODEL', 'Qwen/Qwen2.5-72B-Instruct-Turbo'),
    'temperature': 0.0,      # deterministic extraction
    'max_tokens': 1000,
}


# ============================================================================
# EMBEDDINGS (sentence-transformers)
# ============================================================================

EMBEDDING_CONFIG = {
    'model_name': os.getenv('RAVENLOOM_EMBEDDING_MODEL', 'BAAI/bge-m3'),
    'dimension': int(os.getenv('RAVENLOOM_EMBEDDING_DIM', '1024')),
    'device': os.getenv('RAVENLOOM_EMBEDDING_DEVICE') or None,
}


# ============================================================================
# GRAPH UPSERT
# ============================================================================

GRAPH_CONFIG = {
    'default_source_type': 'document',
    'initial_edge_weight': 1.0,
    'edge_weight_increment': 0.1,
}
