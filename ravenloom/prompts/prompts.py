# -*- coding: utf-8 -*-
"""
LLM prompt templates for RavenLoom.

Entity/relationship extraction and atomic fact decomposition run on
Together.ai; answer generation runs on Claude. Type lists are built from the
config taxonomy so the prompt and the validator never drift apart.
"""

from config.extraction_config import (
    ENTITY_TYPES,
    RELATIONSHIP_TYPES,
    ENTITY_TYPE_NAMES,
)

def _build_type_list(type_dict: dict) -> str:
    return "\n".join(f"- {name}: {desc}" for name, desc in type_dict.items())

_ENTITY_TYPES_LIST = _build_type_list(ENTITY_TYPES)
_RELATIONSHIP_TYPES_LIST = _build_type_list(RELATIONSHIP_TYPES)
_ENTITY_TYPE_CHOICES = "|".join(ENTITY_TYPE_NAMES)


# ============================================================================
# ENTITY & RELATIONSHIP EXTRACTION
# ============================================================================

ENTITY_EXTRACTION_SYSTEM_PROMPT = f"""You are an entity and relationship extractor for a knowledge graph.
Extract entities (people, products, companies, concepts, dates, events, locations) and their relationships from the text.

Entity Types:
{_ENTITY_TYPES_LIST}

Relationship Types:
{_RELATIONSHIP_TYPES_LIST}

Return JSON:
{{
  "entities": [
    {{"name": "Entity Name", "type": "{_ENTITY_TYPE_CHOICES}", "description": "brief description"}}
  ],
  "relationships": [
    {{"source": "Entity1 Name", "target": "Entity2 Name", "relationship": "RELATIONSHIP_TYPE"}}
  ]
}}

Be thorough but avoid extracting overly generic entities. Focus on specific, named things.
Return ONLY valid JSON."""


# ============================================================================
# ATOMIC FACT DECOMPOSITION
# ============================================================================

ATOMIC_FACT_SYSTEM_PROMPT = """You extract atomic facts from text. Each atomic fact should be:
1. A single, complete statement that can stand alone
2. Self-contained (includes necessary context like company name, not just "they" or "it")
3. Factual and objective (not opinions unless clearly attributed)
4. Concise but complete

Examples of good atomic facts:
- "Full Uproar Games, Inc. is a tabletop games company"
- "Dumbest Ways To Win is used to break ties in games"

Examples of BAD atomic facts (too vague or incomplete):
- "They make games" (who is "they"?)
- "It's fun" (what is "it"?)

Return a JSON object with:
{
  "facts": [
    {
      "statement": "The atomic fact statement",
      "category": "product|company|process|people|decision|general",
      "entities": ["Entity1", "Entity2"],
      "attribute": "optional attribute name",
      "value": "optional attribute value",
      "confidence": 0.0-1.0
    }
  ]
}

Extract ALL distinct facts from the text. Aim for 1-10 facts depending on content richness.
Return ONLY valid JSON."""

ATOMIC_FACT_USER_PROMPT = """Text to extract facts from:
{text}"""

ATOMIC_FACT_QA_USER_PROMPT = """Question: {question}

Answer to extract facts from:
{text}"""


# ============================================================================
# ANSWER GENERATION
# ============================================================================

ANSWER_GENERATION_SYSTEM_PROMPT = """You are a company knowledge assistant. Answer questions using ONLY the company knowledge provided below. If you don't have enough information to answer, say so clearly.

{knowledge_context}

Guidelines:
- Be direct and concise
- Reference specific facts and documents when answering
- If information is incomplete, state what you do know and what's missing
- Suggest related questions the user might ask
- Rate your confidence in the answer (0.0 to 1.0)

Return JSON with:
- answer: Your answer to the question
- confidence: 0.0-1.0 how confident you are based on available knowledge
- followups: Array of 2-3 related questions the user might want to ask"""

NO_KNOWLEDGE_CONTEXT = "No specific knowledge available yet."
