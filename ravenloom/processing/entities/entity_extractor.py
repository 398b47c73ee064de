# -*- coding: utf-8 -*-
"""
LLM entity and relationship extractor.

One Together.ai call per chunk with a fixed taxonomy of 7 entity types and
8 relationship types. Extraction is best-effort: a failed call or an
unparseable response yields an empty ExtractionResult, never an exception,
and downstream steps must cope with zero entities for any chunk.

References:
    extraction_config.py: ENTITY_TYPES, RELATIONSHIP_TYPES, EXTRACTION_CONFIG
    prompts.py: ENTITY_EXTRACTION_SYSTEM_PROMPT
"""
# Standard library
import logging
from typing import Any, List, Optional

# Config imports (direct)
from config.extraction_config import EXTRACTION_CONFIG

# Local
from ravenloom.prompts.prompts import ENTITY_EXTRACTION_SYSTEM_PROMPT
from ravenloom.utils.dataclasses import (
    ExtractedEntity,
    ExtractedRelationship,
    ExtractionResult,
)
from ravenloom.utils.json_parsing import parse_llm_json
from ravenloom.utils.llm_client import LLMClient

logger = logging.getLogger(__name__)


class EntityExtractor:
    """
    Extract typed entities and relationships from a text chunk.

    Output format (model side):
    {
        "entities": [{"name": "Fugly", "type": "product", "description": "Mascot"}],
        "relationships": [{"source": "Fugly", "target": "Full Uproar", "relationship": "CREATED_BY"}]
    }

    Types are not validated against the taxonomy: the prompt constrains them
    and unknown types are stored as given.
    """

    def __init__(self, llm_client: Optional[LLMClient] = None, config: dict = None):
        """
        Args:
            llm_client: Chat client (built from TOGETHER_API_KEY if None)
            config: Extraction config (uses EXTRACTION_CONFIG if None)
        """
        self.config = config or EXTRACTION_CONFIG
        self.llm = llm_client or LLMClient(model=self.config['model_name'])

    async def extract(self, text: str) -> ExtractionResult:
        """
        Extract entities and relationships from a single chunk.

        Returns:
            ExtractionResult (empty on any error)
        """
        try:
            content = await self.llm.complete(
                ENTITY_EXTRACTION_SYSTEM_PROMPT,
                text,
                model=self.config['model_name'],
                max_tokens=self.config['max_tokens'],
                temperature=self.config['temperature'],
            )
        except Exception as e:
            logger.error(f"Entity extraction call failed: {e}")
            return ExtractionResult()

        payload = parse_llm_json(content, default={}, context='entity extraction')
        result = ExtractionResult(
            entities=self._parse_entities(payload.get('entities')),
            relationships=self._parse_relationships(payload.get('relationships')),
        )

        logger.info(
            f"Found {len(result.entities)} entities, {len(result.relationships)} relationships"
        )
        return result

    @staticmethod
    def _parse_entities(raw: Any) -> List[ExtractedEntity]:
        if not isinstance(raw, list):
            return []
        entities = []
        for item in raw:
            if not _has_text(item, 'name', 'type'):
                logger.debug(f"Skipping malformed entity: {item!r}")
                continue
            description = item.get('description')
            entities.append(ExtractedEntity(
                name=item['name'].strip(),
                type=item['type'].strip().lower(),
                description=description.strip() if isinstance(description, str) and description.strip() else None,
            ))
        return entities

    @staticmethod
    def _parse_relationships(raw: Any) -> List[ExtractedRelationship]:
        if not isinstance(raw, list):
            return []
        relationships = []
        for item in raw:
            if not _has_text(item, 'source', 'target', 'relationship'):
                logger.debug(f"Skipping malformed relationship: {item!r}")
                continue
            relationships.append(ExtractedRelationship(
                source=item['source'].strip(),
                target=item['target'].strip(),
                relationship=item['relationship'].strip().upper(),
            ))
        return relationships


def _has_text(item: Any, *keys: str) -> bool:
    return isinstance(item, dict) and all(
        isinstance(item.get(k), str) and item[k].strip() for k in keys
    )
