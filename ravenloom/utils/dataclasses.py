# -*- coding: utf-8 -*-
"""
Core data structures for RavenLoom

Single source of truth for the data passed between the ingestion pipeline,
the knowledge graph store, GraphRAG retrieval and the Ask/Remember flow.
Import from this module rather than redefining shapes per service.

Examples:
    from ravenloom.utils.dataclasses import Node, ExtractionResult, SourceInfo

    info = SourceInfo(source_type="document", source_id="doc-42")

"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Dict, Any


# ============================================================================
# ENUMS
# ============================================================================

class ConflictType(str, Enum):
    """How a newly extracted fact relates to an existing one."""
    DUPLICATE = "duplicate"
    UPDATE = "update"
    CONTRADICTION = "contradiction"   # reserved; heuristics never emit it
    NONE = "none"


# ============================================================================
# INGESTION INPUTS
# ============================================================================

@dataclass
class SourceInfo:
    """Provenance attached to nodes, edges and chunks."""
    source_type: str = "document"
    source_id: Optional[str] = None


@dataclass
class Document:
    """A piece of text to ingest into the knowledge graph."""
    content: str
    title: Optional[str] = None
    id: Optional[str] = None


# ============================================================================
# EXTRACTION (LLM output)
# ============================================================================

@dataclass
class ExtractedEntity:
    name: str
    type: str
    description: Optional[str] = None


@dataclass
class ExtractedRelationship:
    source: str
    target: str
    relationship: str


@dataclass
class ExtractionResult:
    """Entities and relationships found in one chunk. Empty on any failure."""
    entities: List[ExtractedEntity] = field(default_factory=list)
    relationships: List[ExtractedRelationship] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.entities and not self.relationships


# ============================================================================
# KNOWLEDGE GRAPH
# ============================================================================

@dataclass
class Node:
    """
    Entity node. Identity is (team_id, lower(name), type).

    similarity is set on vector-search hits, relationship on nodes reached
    through an edge during expansion. user_id is set on team_member nodes.
    """
    id: str
    team_id: str
    name: str
    type: str
    description: Optional[str] = None
    mention_count: int = 1
    source_type: Optional[str] = None
    source_id: Optional[str] = None
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    similarity: Optional[float] = None
    relationship: Optional[str] = None
    weight: Optional[float] = None


@dataclass
class Edge:
    """Directed, weighted relationship. Identity is (source, target, relationship)."""
    id: str
    team_id: str
    source_node_id: str
    target_node_id: str
    relationship: str
    weight: float = 1.0
    source_type: Optional[str] = None
    source_id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class KnowledgeChunk:
    """Immutable slice of source text linked to the nodes discovered in it."""
    content: str
    id: Optional[str] = None
    team_id: Optional[str] = None
    source_type: Optional[str] = None
    source_id: Optional[str] = None
    source_title: Optional[str] = None
    linked_node_ids: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None


@dataclass
class ProcessingStats:
    """Counts from process_document()."""
    nodes: int = 0
    edges: int = 0
    chunks: int = 0


@dataclass
class GraphStats:
    node_count: int = 0
    edge_count: int = 0
    chunk_count: int = 0


@dataclass
class GraphSearchResult:
    entry_nodes: List[Node] = field(default_factory=list)
    related_nodes: List[Node] = field(default_factory=list)
    chunks: List[KnowledgeChunk] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.entry_nodes and not self.related_nodes and not self.chunks


# ============================================================================
# FACTS & DECISIONS
# ============================================================================

@dataclass
class Fact:
    """
    Atomic, attributable statement of team knowledge.

    Never deleted: invalidation sets valid_until and, for supersession,
    superseded_by.
    """
    id: str
    team_id: str
    content: str
    scope_id: Optional[str] = None
    entity_type: Optional[str] = None
    entity_name: Optional[str] = None
    attribute: Optional[str] = None
    value: Optional[str] = None
    category: Optional[str] = None
    confidence_score: Optional[float] = None
    source_type: Optional[str] = None
    source_id: Optional[str] = None
    source_quote: Optional[str] = None
    source_url: Optional[str] = None
    created_by: Optional[str] = None
    created_by_name: Optional[str] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    superseded_by: Optional[str] = None
    context_tags: List[str] = field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    similarity: Optional[float] = None

    @property
    def is_valid(self) -> bool:
        return self.valid_until is None


@dataclass
class Decision:
    id: str
    team_id: str
    what: str
    why: Optional[str] = None
    alternatives: List[Any] = field(default_factory=list)
    made_by: Optional[str] = None
    made_by_name: Optional[str] = None
    source_id: Optional[str] = None
    related_facts: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None


@dataclass
class FactAttribution:
    source_quote: Optional[str] = None
    source_url: Optional[str] = None
    source_type: Optional[str] = None
    source_id: Optional[str] = None
    created_by: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None


@dataclass
class KnowledgeContext:
    facts: List[Fact] = field(default_factory=list)
    decisions: List[Decision] = field(default_factory=list)


@dataclass
class Scope:
    id: str
    team_id: str
    name: Optional[str] = None
    parent_scope_id: Optional[str] = None


# ============================================================================
# USERS
# ============================================================================

@dataclass
class UserFact:
    """One keyed fact about a user (nickname, role, preference)."""
    id: str
    team_id: str
    user_id: str
    fact_type: str
    key: str
    value: str
    context: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class UserContext:
    """
    What the assistant knows about a user.

    facts is grouped by fact_type, then key -> value.
    """
    user_id: str
    display_name: str
    email: Optional[str] = None
    node_id: Optional[str] = None
    facts: Dict[str, Dict[str, str]] = field(default_factory=dict)
    preferred_name: Optional[str] = None


@dataclass
class UserMatch:
    user_id: str
    display_name: Optional[str] = None
    email: Optional[str] = None


# ============================================================================
# ASK / REMEMBER
# ============================================================================

@dataclass
class AtomicFact:
    """Raw decomposition output from the model."""
    statement: str
    category: str = "general"
    entities: List[Any] = field(default_factory=list)
    attribute: Optional[str] = None
    value: Optional[str] = None
    confidence: float = 0.7
    context_tags: List[str] = field(default_factory=list)


@dataclass
class ExtractedFact:
    """A candidate fact held in a Remember preview."""
    content: str
    entity_type: Optional[str] = None
    entity_name: Optional[str] = None
    attribute: Optional[str] = None
    value: Optional[str] = None
    category: str = "general"
    confidence_score: float = 0.8
    context_tags: List[str] = field(default_factory=list)


@dataclass
class FactConflict:
    existing_fact: Fact
    conflict_type: ConflictType
    explanation: str
    extracted_fact_content: str


@dataclass
class MismatchResult:
    is_mismatch: bool = False
    suggestion: Optional[str] = None


@dataclass
class RememberPreview:
    """Pending Remember statement awaiting confirm/cancel. Process-local."""
    preview_id: str
    scope_id: str
    team_id: str
    user_id: str
    source_text: str
    extracted_facts: List[ExtractedFact] = field(default_factory=list)
    conflicts: List[FactConflict] = field(default_factory=list)
    is_mismatch: bool = False
    mismatch_suggestion: Optional[str] = None
    source_url: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class RememberResult:
    success: bool
    facts_created: List[Fact] = field(default_factory=list)
    facts_updated: List[Fact] = field(default_factory=list)
    message: str = ""


@dataclass
class GeneratedAnswer:
    answer: str
    confidence: float = 0.5
    followups: List[str] = field(default_factory=list)


@dataclass
class AskResult:
    answer: str
    confidence: float
    facts_used: List[Fact] = field(default_factory=list)
    suggested_followups: List[str] = field(default_factory=list)
