# -*- coding: utf-8 -*-
"""
Atomic fact decomposition.

Turns a freeform statement (or a Q&A answer) into self-contained atomic
facts with one model call. Low-confidence facts are dropped. When the call
fails or returns nothing usable, the whole text becomes a single fact so a
Remember never silently loses the user's statement.
"""
# Standard library
import logging
from typing import List, Optional

# Config imports (direct)
from config.retrieval_config import FACT_EXTRACTION_CONFIG

# Local
from ravenloom.prompts.prompts import (
    ATOMIC_FACT_QA_USER_PROMPT,
    ATOMIC_FACT_SYSTEM_PROMPT,
    ATOMIC_FACT_USER_PROMPT,
)
from ravenloom.utils.dataclasses import AtomicFact
from ravenloom.utils.exceptions import FactExtractionError
from ravenloom.utils.json_parsing import parse_llm_json
from ravenloom.utils.llm_client import LLMClient

logger = logging.getLogger(__name__)


class FactExtractor:
    def __init__(self, llm_client: Optional[LLMClient] = None, config: dict = None):
        self.config = config or FACT_EXTRACTION_CONFIG
        self.llm = llm_client or LLMClient(model=self.config['model_name'])

    async def extract_atomic_facts(self, text: str, question: Optional[str] = None) -> List[AtomicFact]:
        """
        Decompose text into atomic facts.

        Args:
            text: Statement or answer to decompose
            question: Question the text answers, if any (sharpens context)

        Returns:
            Facts with confidence >= min_confidence, or a single whole-text
            fallback fact when extraction fails
        """
        try:
            return await self._extract(text, question)
        except Exception as e:
            logger.warning(f"Atomic fact extraction failed, using whole statement: {e}")
            return [self.fallback_fact(text)]

    def fallback_fact(self, text: str) -> AtomicFact:
        return AtomicFact(
            statement=text.strip()[:self.config['fallback_max_chars']],
            category='general',
            confidence=self.config['default_confidence'],
        )

    async def _extract(self, text: str, question: Optional[str]) -> List[AtomicFact]:
        if question:
            user_prompt = ATOMIC_FACT_QA_USER_PROMPT.format(question=question, text=text)
        else:
            user_prompt = ATOMIC_FACT_USER_PROMPT.format(text=text)

        content = await self.llm.complete(
            ATOMIC_FACT_SYSTEM_PROMPT,
            user_prompt,
            model=self.config['model_name'],
            max_tokens=self.config['max_tokens'],
            temperature=self.config['temperature'],
        )

        payload = parse_llm_json(content, default=None, expect=dict, context='atomic facts')
        if payload is None or not isinstance(payload.get('facts'), list):
            raise FactExtractionError("No 'facts' list in model response")

        facts = []
        for raw in payload['facts']:
            if not isinstance(raw, dict) or not str(raw.get('statement') or '').strip():
                continue
            confidence = _to_float(raw.get('confidence'))
            if confidence is None or confidence < self.config['min_confidence']:
                continue
            entities = raw.get('entities')
            tags = raw.get('context_tags')
            facts.append(AtomicFact(
                statement=str(raw['statement']).strip(),
                category=raw.get('category') or 'general',
                entities=entities if isinstance(entities, list) else [],
                attribute=raw.get('attribute') or None,
                value=_str_or_none(raw.get('value')),
                confidence=confidence or self.config['default_confidence'],
                context_tags=[str(t) for t in tags] if isinstance(tags, list) else [],
            ))

        logger.info(f"Extracted {len(facts)} atomic facts ({len(payload['facts'])} proposed)")
        return facts


def _to_float(value) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _str_or_none(value) -> Optional[str]:
    if value is None or value == '':
        return None
    return str(value)
