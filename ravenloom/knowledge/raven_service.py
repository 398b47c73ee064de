# -*- coding: utf-8 -*-
"""
Ask / Remember orchestration.

Ask: read-only answer from facts, decisions and GraphRAG context.
Remember: preview -> confirm. A preview holds the extracted facts and their
conflicts with existing knowledge until the user confirms or cancels it.
Previews are single-use and expire after an hour; confirming an unknown,
consumed or expired preview raises PreviewNotFoundError.

Learning mode: statements picked up from conversation are decomposed and
stored as a background job after the reply has gone out.
"""
# Standard library
import asyncio
import logging
import uuid
from typing import Iterable, List, Optional

# Config imports (direct)
from config.retrieval_config import KNOWLEDGE_CONFIG, REMEMBER_CONFIG

# Local
from ravenloom.knowledge.conflict_detector import ConflictDetector, detect_mismatch
from ravenloom.knowledge.fact_extractor import FactExtractor
from ravenloom.knowledge.fact_store import FactStore
from ravenloom.knowledge.preview_store import InMemoryPreviewStore, PreviewStore
from ravenloom.knowledge.scope_store import ScopeStore
from ravenloom.retrieval.answer_generator import AnswerGenerator
from ravenloom.retrieval.graph_rag import GraphRAGRetriever
from ravenloom.utils.background import BackgroundJobs
from ravenloom.utils.dataclasses import (
    AskResult,
    AtomicFact,
    ConflictType,
    ExtractedFact,
    Fact,
    FactAttribution,
    FactConflict,
    GraphSearchResult,
    RememberPreview,
    RememberResult,
    Scope,
)
from ravenloom.utils.exceptions import PreviewNotFoundError, ScopeNotFoundError

logger = logging.getLogger(__name__)


def to_extracted_fact(atomic: AtomicFact) -> ExtractedFact:
    """Preview shape of an atomic fact; the first entity names the subject."""
    entity_type = entity_name = None
    if atomic.entities:
        first = atomic.entities[0]
        if isinstance(first, dict):
            entity_type = first.get('type') or None
            entity_name = first.get('name') or None
        elif isinstance(first, str):
            entity_name = first
    return ExtractedFact(
        content=atomic.statement,
        entity_type=entity_type,
        entity_name=entity_name,
        attribute=atomic.attribute,
        value=atomic.value,
        category=atomic.category or 'general',
        confidence_score=atomic.confidence or 0.8,
        context_tags=list(atomic.context_tags),
    )


class RavenService:
    """
    Example:
        raven = RavenService(scopes, facts, extractor, detector, retriever, generator)
        preview = await raven.preview_remember(scope_id, user_id, "Fugly is our mascot")
        result = await raven.confirm_remember(preview.preview_id)
        answer = await raven.ask(scope_id, user_id, "Who is our mascot?")
    """

    def __init__(
        self,
        scope_store: ScopeStore,
        fact_store: FactStore,
        fact_extractor: FactExtractor,
        conflict_detector: ConflictDetector,
        retriever: GraphRAGRetriever,
        answer_generator: AnswerGenerator,
        preview_store: Optional[PreviewStore] = None,
        background: Optional[BackgroundJobs] = None,
        config: dict = None,
        knowledge_config: dict = None,
    ):
        self.scope_store = scope_store
        self.fact_store = fact_store
        self.fact_extractor = fact_extractor
        self.conflict_detector = conflict_detector
        self.retriever = retriever
        self.answer_generator = answer_generator
        self.preview_store = preview_store if preview_store is not None else InMemoryPreviewStore()
        self.background = background if background is not None else BackgroundJobs()
        self.config = config or REMEMBER_CONFIG
        self.knowledge_config = knowledge_config or KNOWLEDGE_CONFIG

    async def _require_scope(self, scope_id: str) -> Scope:
        scope = await self.scope_store.get_scope(scope_id)
        if scope is None:
            raise ScopeNotFoundError(scope_id)
        return scope

    # ========================================================================
    # ASK
    # ========================================================================

    async def ask(self, scope_id: str, user_id: str, question: str) -> AskResult:
        """
        Answer a question from the scope's team knowledge.

        Raises:
            ScopeNotFoundError: unknown scope
        """
        logger.info(f"Ask in scope {scope_id} by {user_id}: {question[:80]!r}")
        scope = await self._require_scope(scope_id)
        team_id = scope.team_id

        knowledge = await self.fact_store.get_knowledge_context(team_id, question)
        if not knowledge.facts:
            knowledge.facts = await self.fact_store.get_facts(
                team_id, limit=self.knowledge_config['recent_fact_fallback']
            )
            logger.info(f"No matching facts, using {len(knowledge.facts)} recent facts")

        graph_context = GraphSearchResult()
        try:
            graph_context = await self.retriever.search(team_id, question)
        except Exception as e:
            logger.error(f"GraphRAG search failed, answering without graph context: {e}")

        answer = await self.answer_generator.generate(
            question, knowledge.facts, knowledge.decisions, graph_context
        )

        return AskResult(
            answer=answer.answer,
            confidence=answer.confidence,
            facts_used=knowledge.facts[:self.knowledge_config['facts_used_in_answer']],
            suggested_followups=answer.followups,
        )

    # ========================================================================
    # REMEMBER
    # ========================================================================

    async def preview_remember(
        self,
        scope_id: str,
        user_id: str,
        statement: str,
        source_url: Optional[str] = None,
    ) -> RememberPreview:
        """
        Extract facts from a statement and find conflicts, without writing anything.

        Raises:
            ScopeNotFoundError: unknown scope
        """
        await self.preview_store.purge_expired()
        scope = await self._require_scope(scope_id)

        mismatch = detect_mismatch(statement, self.config)
        atomic_facts = await self.fact_extractor.extract_atomic_facts(statement)
        extracted = [to_extracted_fact(a) for a in atomic_facts]
        conflicts = await self.conflict_detector.detect_conflicts(scope.team_id, extracted)

        preview = RememberPreview(
            preview_id=str(uuid.uuid4()),
            scope_id=scope_id,
            team_id=scope.team_id,
            user_id=user_id,
            source_text=statement,
            extracted_facts=extracted,
            conflicts=conflicts,
            is_mismatch=mismatch.is_mismatch,
            mismatch_suggestion=mismatch.suggestion,
            source_url=source_url,
        )
        await self.preview_store.save(preview)

        logger.info(
            f"Preview {preview.preview_id}: {len(extracted)} facts, {len(conflicts)} conflicts"
            + (" (looks like a question)" if mismatch.is_mismatch else "")
        )
        return preview

    async def confirm_remember(
        self,
        preview_id: str,
        skip_conflict_ids: Iterable[str] = (),
    ) -> RememberResult:
        """
        Commit a preview. Consumes it even if a write fails part-way.

        Per extracted fact, the first conflict not listed in skip_conflict_ids
        decides: update -> store the new fact and invalidate the old one with
        superseded_by pointing at it; duplicate -> skip; no conflict -> store.

        Raises:
            PreviewNotFoundError: unknown, already confirmed, cancelled or expired
        """
        preview = await self.preview_store.take(preview_id)
        if preview is None:
            raise PreviewNotFoundError(preview_id)

        skip_ids = set(skip_conflict_ids or ())
        facts_created: List[Fact] = []
        facts_updated: List[Fact] = []

        for extracted in preview.extracted_facts:
            conflict = self._first_open_conflict(preview.conflicts, extracted.content, skip_ids)

            if conflict is not None and conflict.conflict_type == ConflictType.DUPLICATE:
                logger.debug(f"Skipping duplicate fact: {extracted.content[:60]!r}")
                continue

            fact = await self._store_extracted_fact(preview, extracted)
            if conflict is not None and conflict.conflict_type == ConflictType.UPDATE:
                await self.fact_store.invalidate_fact(conflict.existing_fact.id, superseded_by=fact.id)
                facts_updated.append(fact)
            else:
                facts_created.append(fact)

        return RememberResult(
            success=True,
            facts_created=facts_created,
            facts_updated=facts_updated,
            message=f"Created {len(facts_created)} fact(s), updated {len(facts_updated)} fact(s)",
        )

    async def cancel_remember(self, preview_id: str) -> bool:
        """Drop a preview. Returns False if it did not exist."""
        return await self.preview_store.delete(preview_id)

    async def get_fact_attribution(self, fact_id: str) -> Optional[FactAttribution]:
        return await self.fact_store.get_fact_attribution(fact_id)

    @staticmethod
    def _first_open_conflict(conflicts: List[FactConflict], content: str, skip_ids: set) -> Optional[FactConflict]:
        for conflict in conflicts:
            if conflict.extracted_fact_content == content and conflict.existing_fact.id not in skip_ids:
                return conflict
        return None

    async def _store_extracted_fact(self, preview: RememberPreview, extracted: ExtractedFact) -> Fact:
        return await self.fact_store.create_fact(
            preview.team_id,
            extracted.content,
            scope_id=preview.scope_id,
            category=extracted.category,
            entity_type=extracted.entity_type,
            entity_name=extracted.entity_name,
            attribute=extracted.attribute,
            value=extracted.value,
            confidence_score=extracted.confidence_score,
            source_type=self.config['source_type'],
            source_quote=preview.source_text,
            source_url=preview.source_url,
            created_by=preview.user_id,
            context_tags=extracted.context_tags,
        )

    # ========================================================================
    # LEARNING MODE
    # ========================================================================

    def learn_from_message(
        self,
        team_id: str,
        user_id: str,
        text: str,
        source_id: Optional[str] = None,
    ) -> asyncio.Task:
        """Schedule fact extraction from a conversation message; failures are logged only."""
        return self.background.schedule(
            self.fact_store.create_atomic_facts(
                team_id,
                text,
                source_type='conversation',
                source_id=source_id,
                created_by=user_id,
            ),
            name=f"learn_from_message({team_id})",
        )
