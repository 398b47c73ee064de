# -*- coding: utf-8 -*-
"""
Retrieval Config

GraphRAG search limits, answer generation and the Ask/Remember flow.

The conflict thresholds are heuristics, not contracts: tune them here rather
than in the detector.
"""
import os
from dotenv import load_dotenv

load_dotenv()


# ============================================================================
# GRAPHRAG SEARCH
# ============================================================================

GRAPHRAG_CONFIG = {
    'top_k': 5,                  # entry nodes from vector search
    'hop_depth': 1,              # edge hops from entry nodes
    'max_related_nodes': 10,     # cap on nodes reached via edges
    'max_chunks': 10,            # cap on chunks linked to the node set
}


# ============================================================================
# ANSWER GENERATION (Anthropic)
# ============================================================================

ANSWER_GENERATION_CONFIG = {
    'model': os.getenv('RAVENLOOM_ANSWER_MODEL', 'claude-3-5-haiku-20241022'),
    'max_output_tokens': 600,
    'temperature': 0.5,
    'max_related_in_prompt': 5,
    'fallback_confidence': 0.5,
    'error_answer': "I encountered an error trying to answer your question. Please try again.",
}


# ============================================================================
# FACT EXTRACTION (Together.ai)
# ============================================================================

FACT_EXTRACTION_CONFIG = {
    'model_name': os.getenv('RAVENLOOM_FACT_MODEL', 'Qwen/Qwen2.5-72B-Instruct-Turbo'),
    'temperature': 0.0,
    'max_tokens': 1000,
    'min_confidence': 0.6,       # drop atomic facts below this
    'default_confidence': 0.7,
    'fallback_max_chars': 500,   # whole-text fallback is truncated to this
}


# ============================================================================
# KNOWLEDGE (facts, decisions)
# ============================================================================

KNOWLEDGE_CONFIG = {
    'search_limit': 20,
    'context_fact_limit': 10,
    'context_decision_limit': 5,
    'recent_fact_fallback': 20,  # Ask falls back to recent facts when search is empty
    'keyword_min_length': 3,     # shorter terms ignored in keyword search
    'facts_used_in_answer': 5,
}


# ============================================================================
# REMEMBER (preview -> confirm)
# ============================================================================

REMEMBER_CONFIG = {
    'preview_ttl_seconds': 60 * 60,
    'conflict_candidates': 5,        # similar facts fetched per extracted fact
    'min_candidate_similarity': 0.7, # vector hits below this are not compared
    'duplicate_threshold': 0.85,     # Levenshtein similarity
    'update_overlap_threshold': 0.5, # word overlap ratio
    'question_words': [
        'what', 'when', 'where', 'who', 'why', 'how', 'is', 'are',
        'do', 'does', 'can', 'could', 'would', 'should',
    ],
    'mismatch_suggestion': 'This looks like a question. Would you like to Ask instead?',
    'source_type': 'user_statement',
}
