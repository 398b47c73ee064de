# -*- coding: utf-8 -*-
"""
Facts and decisions on PostgreSQL.

Facts are append + invalidate only: nothing here updates a fact's content or
deletes a row. invalidate_fact() closes a fact's validity window and, for
supersession, points it at its replacement. Searches only see valid facts.

Search is semantic first (pgvector cosine distance over fact embeddings) with
a keyword LIKE fallback when the query cannot be embedded, nothing matches,
or the vector query fails.
"""
# Standard library
import asyncio
import json
import logging
import re
from typing import Any, Dict, List, Optional, Sequence

# Third-party
import asyncpg

# Config imports (direct)
from config.retrieval_config import KNOWLEDGE_CONFIG

# Local
from ravenloom.knowledge.fact_extractor import FactExtractor
from ravenloom.utils.database import Database, vec_to_pg
from ravenloom.utils.dataclasses import Decision, Fact, FactAttribution, KnowledgeContext
from ravenloom.utils.embedder import BGEEmbedder

logger = logging.getLogger(__name__)


# ============================================================================
# SQL
# ============================================================================

_FACT_SELECT = """
    SELECT f.id, f.team_id, f.scope_id, f.content, f.entity_type, f.entity_name,
           f.attribute, f.value, f.category, f.confidence_score, f.source_type,
           f.source_id, f.source_quote, f.source_url, f.created_by,
           u.display_name AS created_by_name, f.valid_from, f.valid_until,
           f.superseded_by, f.context_tags, f.metadata, f.created_at, f.updated_at
"""

_FACT_RETURNING = """
    RETURNING id, team_id, scope_id, content, entity_type, entity_name, attribute,
              value, category, confidence_score, source_type, source_id, source_quote,
              source_url, created_by, valid_from, valid_until, superseded_by,
              context_tags, metadata, created_at, updated_at
"""

INSERT_FACT = """
    INSERT INTO facts (team_id, scope_id, content, entity_type, entity_name, attribute, value,
                       category, confidence_score, source_type, source_id, source_quote,
                       source_url, created_by, embedding, context_tags, metadata)
    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, $15::vector, $16::jsonb, $17::jsonb)
""" + _FACT_RETURNING

INVALIDATE_FACT = """
    UPDATE facts
    SET valid_until = NOW(),
        superseded_by = $2,
        updated_at = NOW()
    WHERE id = $1
""" + _FACT_RETURNING

SELECT_FACT = _FACT_SELECT + """
    FROM facts f
    LEFT JOIN users u ON f.created_by = u.id
    WHERE f.id = $1
"""

SEARCH_FACTS_BY_VECTOR = _FACT_SELECT + """,
           1 - (f.embedding <=> $2::vector) AS similarity
    FROM facts f
    LEFT JOIN users u ON f.created_by = u.id
    WHERE f.team_id = $1
      AND f.valid_until IS NULL
      AND f.embedding IS NOT NULL
    ORDER BY f.embedding <=> $2::vector
    LIMIT $3
"""

SEARCH_FACTS_BY_KEYWORD = _FACT_SELECT + """
    FROM facts f
    LEFT JOIN users u ON f.created_by = u.id
    WHERE f.team_id = $1
      AND f.valid_until IS NULL
      AND LOWER(f.content) LIKE ANY($2::text[])
    ORDER BY f.created_at DESC
    LIMIT $3
"""

SELECT_FACT_ATTRIBUTION = """
    SELECT f.source_quote, f.source_url, f.source_type, f.source_id, f.created_by, f.created_at,
           u.display_name, u.email, u.avatar_url
    FROM facts f
    LEFT JOIN users u ON f.created_by = u.id
    WHERE f.id = $1
"""

_DECISION_SELECT = """
    SELECT d.id, d.team_id, d.what, d.why, d.alternatives, d.made_by,
           u.display_name AS made_by_name, d.source_id, d.related_facts, d.created_at
    FROM decisions d
    LEFT JOIN users u ON d.made_by = u.id
"""

INSERT_DECISION = """
    INSERT INTO decisions (team_id, what, why, alternatives, made_by, source_id, related_facts)
    VALUES ($1, $2, $3, $4::jsonb, $5, $6, $7::uuid[])
    RETURNING id, team_id, what, why, alternatives, made_by, source_id, related_facts, created_at
"""

SELECT_DECISIONS = _DECISION_SELECT + """
    WHERE d.team_id = $1
    ORDER BY d.created_at DESC
    LIMIT $2
"""

SEARCH_DECISIONS = _DECISION_SELECT + """
    WHERE d.team_id = $1
      AND (LOWER(d.what) LIKE ANY($2::text[]) OR LOWER(d.why) LIKE ANY($2::text[]))
    ORDER BY d.created_at DESC
    LIMIT $3
"""


# ============================================================================
# ROW MAPPERS
# ============================================================================

def _json_value(value: Any, default: Any) -> Any:
    """JSONB columns arrive as text without a registered codec."""
    if value is None:
        return default
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return default
    return value


def _str_or_none(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def fact_from_row(row) -> Fact:
    keys = row.keys()
    confidence = row['confidence_score']
    return Fact(
        id=str(row['id']),
        team_id=str(row['team_id']),
        scope_id=_str_or_none(row['scope_id']),
        content=row['content'],
        entity_type=row['entity_type'],
        entity_name=row['entity_name'],
        attribute=row['attribute'],
        value=row['value'],
        category=row['category'],
        confidence_score=float(confidence) if confidence is not None else None,
        source_type=row['source_type'],
        source_id=_str_or_none(row['source_id']),
        source_quote=row['source_quote'],
        source_url=row['source_url'],
        created_by=_str_or_none(row['created_by']),
        created_by_name=row['created_by_name'] if 'created_by_name' in keys else None,
        valid_from=row['valid_from'],
        valid_until=row['valid_until'],
        superseded_by=_str_or_none(row['superseded_by']),
        context_tags=list(_json_value(row['context_tags'], [])),
        metadata=_json_value(row['metadata'], None),
        created_at=row['created_at'],
        updated_at=row['updated_at'],
        similarity=float(row['similarity']) if 'similarity' in keys and row['similarity'] is not None else None,
    )


def decision_from_row(row) -> Decision:
    keys = row.keys()
    return Decision(
        id=str(row['id']),
        team_id=str(row['team_id']),
        what=row['what'],
        why=row['why'],
        alternatives=list(_json_value(row['alternatives'], [])),
        made_by=_str_or_none(row['made_by']),
        made_by_name=row['made_by_name'] if 'made_by_name' in keys else None,
        source_id=_str_or_none(row['source_id']),
        related_facts=[str(f) for f in (row['related_facts'] or [])],
        created_at=row['created_at'],
    )


def keyword_patterns(query: str, min_length: int = KNOWLEDGE_CONFIG['keyword_min_length']) -> List[str]:
    """'%term%' LIKE patterns for lowercase query terms of at least min_length chars."""
    terms = [t for t in re.split(r'\s+', query.lower()) if len(t) >= min_length]
    return [f"%{t}%" for t in terms]


# ============================================================================
# STORE
# ============================================================================

class FactStore:
    """
    Example:
        store = FactStore(db, embedder)
        fact = await store.create_fact(team_id, "Fugly is our mascot", category="product")
        facts = await store.search_facts(team_id, "mascot")
    """

    def __init__(
        self,
        db: Database,
        embedder: BGEEmbedder,
        fact_extractor: Optional[FactExtractor] = None,
        config: dict = None,
    ):
        self.db = db
        self.embedder = embedder
        self.fact_extractor = fact_extractor
        self.config = config or KNOWLEDGE_CONFIG

    # ------------------------------------------------------------------
    # Facts
    # ------------------------------------------------------------------

    async def create_fact(
        self,
        team_id: str,
        content: str,
        scope_id: Optional[str] = None,
        category: Optional[str] = 'general',
        entity_type: Optional[str] = None,
        entity_name: Optional[str] = None,
        attribute: Optional[str] = None,
        value: Optional[str] = None,
        confidence_score: Optional[float] = None,
        source_type: str = 'conversation',
        source_id: Optional[str] = None,
        source_quote: Optional[str] = None,
        source_url: Optional[str] = None,
        created_by: Optional[str] = None,
        context_tags: Sequence[str] = (),
        metadata: Optional[Dict[str, Any]] = None,
        embedding: Optional[Sequence[float]] = None,
    ) -> Fact:
        """
        Insert a fact. The content is embedded when no embedding is given;
        a failed embedding stores NULL and the fact is only keyword-searchable.

        Raises:
            asyncpg.PostgresError: insert failed
        """
        if embedding is None:
            embedding = await self.embedder.generate_embedding(content)

        row = await self.db.fetchrow(
            INSERT_FACT,
            team_id,
            scope_id,
            content,
            entity_type,
            entity_name,
            attribute,
            value,
            category,
            confidence_score,
            source_type,
            source_id,
            source_quote,
            source_url,
            created_by,
            vec_to_pg(embedding),
            json.dumps(list(context_tags)),
            json.dumps(metadata) if metadata is not None else None,
        )
        return fact_from_row(row)

    async def create_atomic_facts(
        self,
        team_id: str,
        text: str,
        source_type: str = 'team_answer',
        source_id: Optional[str] = None,
        created_by: Optional[str] = None,
        source_question: Optional[str] = None,
    ) -> List[Fact]:
        """
        Decompose text into atomic facts and store each one.

        A failed insert is logged and skipped; the others are still stored.
        """
        if self.fact_extractor is None:
            raise RuntimeError("FactStore was created without a FactExtractor")

        atomic_facts = await self.fact_extractor.extract_atomic_facts(text, question=source_question)
        created = []
        for atomic in atomic_facts:
            metadata = {'entities': atomic.entities} if atomic.entities else None
            if source_question:
                metadata = dict(metadata or {}, source_question=source_question)
            try:
                fact = await self.create_fact(
                    team_id,
                    atomic.statement,
                    category=atomic.category,
                    attribute=atomic.attribute,
                    value=atomic.value,
                    confidence_score=atomic.confidence,
                    source_type=source_type,
                    source_id=source_id,
                    created_by=created_by,
                    context_tags=atomic.context_tags,
                    metadata=metadata,
                )
            except asyncpg.PostgresError as e:
                logger.error(f"Error creating atomic fact {atomic.statement[:60]!r}: {e}")
                continue
            created.append(fact)

        logger.info(f"Stored {len(created)}/{len(atomic_facts)} atomic facts")
        return created

    async def get_fact(self, fact_id: str) -> Optional[Fact]:
        row = await self.db.fetchrow(SELECT_FACT, fact_id)
        return fact_from_row(row) if row else None

    async def invalidate_fact(self, fact_id: str, superseded_by: Optional[str] = None) -> Optional[Fact]:
        """
        End a fact's validity now. The replacement fact, if any, is untouched.

        Returns:
            The invalidated fact, or None if fact_id does not exist
        """
        row = await self.db.fetchrow(INVALIDATE_FACT, fact_id, superseded_by)
        if row is None:
            return None
        logger.info(f"Invalidated fact {fact_id}" + (f" (superseded by {superseded_by})" if superseded_by else ""))
        return fact_from_row(row)

    async def get_facts(
        self,
        team_id: str,
        category: Optional[str] = None,
        limit: int = 50,
        include_invalid: bool = False,
    ) -> List[Fact]:
        """Newest first; only valid facts unless include_invalid."""
        query = _FACT_SELECT + """
    FROM facts f
    LEFT JOIN users u ON f.created_by = u.id
    WHERE f.team_id = $1"""
        params: List[Any] = [team_id]

        if not include_invalid:
            query += " AND f.valid_until IS NULL"
        if category:
            params.append(category)
            query += f" AND f.category = ${len(params)}"

        params.append(limit)
        query += f" ORDER BY f.created_at DESC LIMIT ${len(params)}"

        rows = await self.db.fetch(query, *params)
        return [fact_from_row(r) for r in rows]

    async def search_facts_by_keyword(self, team_id: str, query: str, limit: int = None) -> List[Fact]:
        """LIKE match on any query term; no usable terms returns the newest facts."""
        limit = limit or self.config['search_limit']
        patterns = keyword_patterns(query, self.config['keyword_min_length'])
        if not patterns:
            return await self.get_facts(team_id, limit=limit)

        rows = await self.db.fetch(SEARCH_FACTS_BY_KEYWORD, team_id, patterns, limit)
        return [fact_from_row(r) for r in rows]

    async def search_facts(self, team_id: str, query: str, limit: int = None) -> List[Fact]:
        """Semantic search over valid facts, falling back to keyword search."""
        limit = limit or self.config['search_limit']
        try:
            embedding = await self.embedder.generate_embedding(query)
            if embedding is not None:
                rows = await self.db.fetch(SEARCH_FACTS_BY_VECTOR, team_id, vec_to_pg(embedding), limit)
                if rows:
                    return [fact_from_row(r) for r in rows]
        except asyncpg.PostgresError as e:
            logger.error(f"Semantic search error, falling back to keyword: {e}")

        return await self.search_facts_by_keyword(team_id, query, limit)

    async def get_fact_attribution(self, fact_id: str) -> Optional[FactAttribution]:
        row = await self.db.fetchrow(SELECT_FACT_ATTRIBUTION, fact_id)
        if row is None:
            return None
        created_by = None
        if row['created_by']:
            created_by = {
                'id': str(row['created_by']),
                'display_name': row['display_name'],
                'email': row['email'],
                'avatar_url': row['avatar_url'],
            }
        return FactAttribution(
            source_quote=row['source_quote'],
            source_url=row['source_url'],
            source_type=row['source_type'],
            source_id=_str_or_none(row['source_id']),
            created_by=created_by,
            created_at=row['created_at'],
        )

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    async def create_decision(
        self,
        team_id: str,
        what: str,
        why: Optional[str] = None,
        alternatives: Sequence[Any] = (),
        made_by: Optional[str] = None,
        source_id: Optional[str] = None,
        related_facts: Sequence[str] = (),
    ) -> Decision:
        row = await self.db.fetchrow(
            INSERT_DECISION,
            team_id,
            what,
            why,
            json.dumps(list(alternatives)),
            made_by,
            source_id,
            list(related_facts),
        )
        return decision_from_row(row)

    async def get_decisions(self, team_id: str, limit: int = 50) -> List[Decision]:
        rows = await self.db.fetch(SELECT_DECISIONS, team_id, limit)
        return [decision_from_row(r) for r in rows]

    async def search_decisions(self, team_id: str, query: str, limit: int = 10) -> List[Decision]:
        patterns = keyword_patterns(query, self.config['keyword_min_length'])
        if not patterns:
            return await self.get_decisions(team_id, limit)
        rows = await self.db.fetch(SEARCH_DECISIONS, team_id, patterns, limit)
        return [decision_from_row(r) for r in rows]

    # ------------------------------------------------------------------
    # Context for Ask
    # ------------------------------------------------------------------

    async def get_knowledge_context(self, team_id: str, query: str) -> KnowledgeContext:
        """Relevant facts and decisions for a question, searched concurrently."""
        facts, decisions = await asyncio.gather(
            self.search_facts(team_id, query, self.config['context_fact_limit']),
            self.search_decisions(team_id, query, self.config['context_decision_limit']),
        )
        return KnowledgeContext(facts=facts, decisions=decisions)
