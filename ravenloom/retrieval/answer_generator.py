# -*- coding: utf-8 -*-
"""
Answer generator for the Ask flow.

Builds a knowledge context from GraphRAG results, facts and decisions, asks
Claude for a JSON answer {answer, confidence, followups}, and degrades
gracefully: a non-JSON reply becomes the answer with fallback confidence, a
failed call becomes an apology with confidence 0.
"""

# Standard library
import os
from typing import List, Optional

# Third-party
from anthropic import AsyncAnthropic

# Config imports (direct)
from config.retrieval_config import ANSWER_GENERATION_CONFIG

# Dataclass imports (direct)
from ravenloom.utils.dataclasses import Decision, Fact, GeneratedAnswer, GraphSearchResult

# Utils
from ravenloom.utils.json_parsing import parse_llm_json
from ravenloom.utils.logger import get_logger

# Prompts
from ravenloom.prompts.prompts import ANSWER_GENERATION_SYSTEM_PROMPT, NO_KNOWLEDGE_CONTEXT

logger = get_logger(__name__)


class AnswerGenerator:
    """
    Generate answers from team knowledge using Claude API.

    Handles:
    - Knowledge context assembly (graph, facts, decisions)
    - API calls to Claude
    - JSON recovery with plain-text and error fallbacks
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        config: dict = None,
        client: Optional[AsyncAnthropic] = None,
    ):
        """
        Initialize answer generator.

        Args:
            api_key: Anthropic API key (reads from env if None).
            config: Generation config (uses ANSWER_GENERATION_CONFIG if None).
            client: Preconfigured client (skips the key check).
        """
        self.config = config or ANSWER_GENERATION_CONFIG
        if client is None:
            self.api_key = api_key or os.getenv('ANTHROPIC_API_KEY')
            if not self.api_key:
                raise ValueError("ANTHROPIC_API_KEY not found in environment")
            client = AsyncAnthropic(api_key=self.api_key)
        self.client = client

        logger.info("AnswerGenerator initialized with model: %s", self.config['model'])

    async def generate(
        self,
        question: str,
        facts: List[Fact],
        decisions: List[Decision],
        graph_context: Optional[GraphSearchResult] = None,
    ) -> GeneratedAnswer:
        """
        Answer a question from the supplied knowledge only.

        Returns:
            GeneratedAnswer (never raises for model or parse failures)
        """
        knowledge_context = self.format_knowledge_context(facts, decisions, graph_context)
        system_prompt = ANSWER_GENERATION_SYSTEM_PROMPT.format(
            knowledge_context=knowledge_context or NO_KNOWLEDGE_CONTEXT
        )

        try:
            response = await self.client.messages.create(
                model=self.config['model'],
                max_tokens=self.config['max_output_tokens'],
                temperature=self.config['temperature'],
                system=system_prompt,
                messages=[{"role": "user", "content": question}],
            )
            text = response.content[0].text
        except Exception as e:
            logger.error("Answer generation failed: %s", e)
            return GeneratedAnswer(answer=self.config['error_answer'], confidence=0.0)

        parsed = parse_llm_json(text, default=None, expect=dict, context='answer generation')
        if parsed is None:
            return GeneratedAnswer(answer=text, confidence=self.config['fallback_confidence'])

        followups = parsed.get('followups')
        return GeneratedAnswer(
            answer=parsed.get('answer') or text,
            confidence=_as_confidence(parsed.get('confidence'), self.config['fallback_confidence']),
            followups=[str(f) for f in followups] if isinstance(followups, list) else [],
        )

    def format_knowledge_context(
        self,
        facts: List[Fact],
        decisions: List[Decision],
        graph_context: Optional[GraphSearchResult] = None,
    ) -> str:
        """Render graph excerpts, facts and decisions as numbered prompt sections."""
        sections = []

        if graph_context is not None and graph_context.chunks:
            lines = ['KNOWLEDGE GRAPH CONTEXT:']
            if graph_context.entry_nodes:
                lines.append('Relevant entities: ' + ', '.join(
                    f"{n.name} ({n.type})" for n in graph_context.entry_nodes
                ))
                if graph_context.related_nodes:
                    limit = self.config['max_related_in_prompt']
                    lines.append('Connected to: ' + ', '.join(
                        f"{n.name} ({n.type}) via {n.relationship}"
                        for n in graph_context.related_nodes[:limit]
                    ))
                lines.append('')
            lines.append('Relevant excerpts from knowledge base:')
            for i, chunk in enumerate(graph_context.chunks, 1):
                prefix = f'From "{chunk.source_title}": ' if chunk.source_title else ''
                lines.append(f"\n[{i}] {prefix}{chunk.content}")
            sections.append('\n'.join(lines))

        if facts:
            lines = ['COMPANY KNOWLEDGE (Facts):']
            for i, fact in enumerate(facts, 1):
                line = f"{i}. {fact.content}"
                if fact.category:
                    line += f" [{fact.category}]"
                if fact.entity_type and fact.entity_name:
                    line += f" ({fact.entity_type}: {fact.entity_name})"
                lines.append(line)
            sections.append('\n'.join(lines))

        if decisions:
            lines = ['COMPANY DECISIONS:']
            for i, decision in enumerate(decisions, 1):
                line = f"{i}. {decision.what}"
                if decision.why:
                    line += f" - Reason: {decision.why}"
                lines.append(line)
            sections.append('\n'.join(lines))

        return '\n\n'.join(sections)


def _as_confidence(value, default: float) -> float:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return default
    return min(max(confidence, 0.0), 1.0)
