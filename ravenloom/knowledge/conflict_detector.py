# -*- coding: utf-8 -*-
"""
Remember-side heuristics: question mismatch and fact conflict classification.

Conflict classification compares a newly extracted fact with each
semantically similar existing fact:
    Levenshtein similarity > duplicate_threshold   -> duplicate
    word overlap / smaller word set > update_overlap_threshold -> update
    otherwise                                      -> none (not reported)

Both thresholds are tunables in REMEMBER_CONFIG. CONTRADICTION exists as a
type and has an explanation, but no heuristic here produces it.
"""
# Standard library
import logging
import re
from typing import List

# Third-party
from rapidfuzz.distance import Levenshtein

# Config imports (direct)
from config.retrieval_config import REMEMBER_CONFIG

# Local
from ravenloom.knowledge.fact_store import FactStore
from ravenloom.utils.dataclasses import ConflictType, ExtractedFact, FactConflict, MismatchResult

logger = logging.getLogger(__name__)

EXPLANATION_PREVIEW_CHARS = 100


def detect_mismatch(statement: str, config: dict = None) -> MismatchResult:
    """Flag statements that read like questions (trailing '?' or a leading question word)."""
    config = config or REMEMBER_CONFIG
    trimmed = (statement or '').strip()
    first_word = trimmed.split()[0].lower() if trimmed else ''

    if trimmed.endswith('?') or first_word in config['question_words']:
        return MismatchResult(is_mismatch=True, suggestion=config['mismatch_suggestion'])
    return MismatchResult()


def word_overlap_ratio(a: str, b: str) -> float:
    """Shared words divided by the size of the smaller word set."""
    words_a = set(re.split(r'\s+', a.strip())) - {''}
    words_b = set(re.split(r'\s+', b.strip())) - {''}
    smaller = min(len(words_a), len(words_b))
    if smaller == 0:
        return 0.0
    return len(words_a & words_b) / smaller


def classify_conflict(new_content: str, existing_content: str, config: dict = None) -> ConflictType:
    config = config or REMEMBER_CONFIG
    new_lower = new_content.lower()
    existing_lower = existing_content.lower()

    if Levenshtein.normalized_similarity(new_lower, existing_lower) > config['duplicate_threshold']:
        return ConflictType.DUPLICATE
    if word_overlap_ratio(new_lower, existing_lower) > config['update_overlap_threshold']:
        return ConflictType.UPDATE
    return ConflictType.NONE


def explain_conflict(conflict_type: ConflictType, existing_content: str) -> str:
    quoted = existing_content[:EXPLANATION_PREVIEW_CHARS]
    if len(existing_content) > EXPLANATION_PREVIEW_CHARS:
        quoted += '...'

    if conflict_type == ConflictType.DUPLICATE:
        return f'This appears to be a duplicate of existing knowledge: "{quoted}"'
    if conflict_type == ConflictType.UPDATE:
        return f'This may update existing information: "{quoted}"'
    if conflict_type == ConflictType.CONTRADICTION:
        return f'This may contradict existing knowledge: "{quoted}"'
    return 'Potential conflict with existing knowledge'


class ConflictDetector:
    """
    Example:
        detector = ConflictDetector(fact_store)
        conflicts = await detector.detect_conflicts(team_id, extracted_facts)
    """

    def __init__(self, fact_store: FactStore, config: dict = None):
        self.fact_store = fact_store
        self.config = config or REMEMBER_CONFIG

    async def detect_conflicts(self, team_id: str, extracted_facts: List[ExtractedFact]) -> List[FactConflict]:
        """
        Compare each extracted fact with its most similar existing facts.

        Candidates with a similarity score below min_candidate_similarity are
        skipped; keyword-fallback candidates carry no score and are compared.
        """
        conflicts = []
        for fact in extracted_facts:
            candidates = await self.fact_store.search_facts(
                team_id, fact.content, self.config['conflict_candidates']
            )
            for existing in candidates:
                if existing.similarity is not None and existing.similarity < self.config['min_candidate_similarity']:
                    continue

                conflict_type = classify_conflict(fact.content, existing.content, self.config)
                if conflict_type == ConflictType.NONE:
                    continue

                conflicts.append(FactConflict(
                    existing_fact=existing,
                    conflict_type=conflict_type,
                    explanation=explain_conflict(conflict_type, existing.content),
                    extracted_fact_content=fact.content,
                ))

        logger.info(f"Found {len(conflicts)} conflicts for {len(extracted_facts)} extracted facts")
        return conflicts
