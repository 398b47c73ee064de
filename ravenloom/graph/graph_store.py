# -*- coding: utf-8 -*-
"""
Knowledge graph storage: node/edge upserts and chunk rows on PostgreSQL.

Node identity is (team_id, lower(name), type), enforced by a unique index.
Upserts never surface a uniqueness error: an insert that loses a race
re-selects the winner. Edges are keyed by (source, target, relationship)
and gain weight on every repeat observation. Neither mention counts nor
weights ever decrease.

Embeddings are computed for new nodes only; repeat mentions cost one UPDATE.

References:
    schema.sql: kg_nodes, kg_edges, kg_chunks
    extraction_config.py: GRAPH_CONFIG for edge weights
"""
# Standard library
import logging
from dataclasses import replace
from typing import Any, Iterable, Optional

# Third-party
import asyncpg

# Config imports (direct)
from config.extraction_config import GRAPH_CONFIG, TEAM_MEMBER_TYPE

# Local
from ravenloom.utils.database import Database, vec_to_pg
from ravenloom.utils.dataclasses import (
    Edge,
    ExtractedEntity,
    ExtractedRelationship,
    GraphStats,
    KnowledgeChunk,
    Node,
    SourceInfo,
)
from ravenloom.utils.embedder import BGEEmbedder

logger = logging.getLogger(__name__)


# ============================================================================
# SQL
# ============================================================================

# Column lists reused across queries (embeddings are never read back)
NODE_COLUMNS = (
    "id, team_id, user_id, name, type, description, mention_count, "
    "source_type, source_id, created_at, updated_at"
)
EDGE_COLUMNS = (
    "id, team_id, source_node_id, target_node_id, relationship, weight, "
    "source_type, source_id, created_at"
)
CHUNK_COLUMNS = (
    "id, team_id, content, source_type, source_id, source_title, "
    "linked_node_ids, created_at"
)

SELECT_NODE_BY_IDENTITY = f"""
    SELECT {NODE_COLUMNS} FROM kg_nodes
    WHERE team_id = $1 AND lower(name) = lower($2) AND type = $3
"""

# Most-mentioned node wins; ties go to the newest, then to id
SELECT_NODE_BY_NAME = f"""
    SELECT {NODE_COLUMNS} FROM kg_nodes
    WHERE team_id = $1 AND lower(name) = lower($2)
    ORDER BY mention_count DESC, created_at DESC, id
    LIMIT 1
"""

INCREMENT_NODE_MENTION = f"""
    UPDATE kg_nodes
    SET mention_count = mention_count + 1,
        description = COALESCE(description, $2),
        updated_at = NOW()
    WHERE id = $1
    RETURNING {NODE_COLUMNS}
"""

INSERT_NODE = f"""
    INSERT INTO kg_nodes (team_id, name, type, description, embedding, source_type, source_id)
    VALUES ($1, $2, $3, $4, $5::vector, $6, $7)
    RETURNING {NODE_COLUMNS}
"""

SELECT_USER_NODE = f"""
    SELECT {NODE_COLUMNS} FROM kg_nodes
    WHERE team_id = $1 AND user_id = $2 AND type = $3
"""

# A same-named team_member node is claimed for this user rather than duplicated
UPSERT_USER_NODE = f"""
    INSERT INTO kg_nodes (team_id, user_id, name, type, description, embedding, source_type, source_id)
    VALUES ($1, $2, $3, $4, $5, $6::vector, 'user', $7)
    ON CONFLICT (team_id, lower(name), type) DO UPDATE SET
        user_id = EXCLUDED.user_id,
        updated_at = NOW()
    RETURNING {NODE_COLUMNS}
"""

SELECT_EDGE = f"""
    SELECT {EDGE_COLUMNS} FROM kg_edges
    WHERE source_node_id = $1 AND target_node_id = $2 AND relationship = $3
"""

REINFORCE_EDGE = f"""
    UPDATE kg_edges SET weight = weight + $2
    WHERE id = $1
    RETURNING {EDGE_COLUMNS}
"""

INSERT_EDGE = f"""
    INSERT INTO kg_edges (team_id, source_node_id, target_node_id, relationship, weight, source_type, source_id)
    VALUES ($1, $2, $3, $4, $5, $6, $7)
    RETURNING {EDGE_COLUMNS}
"""

INSERT_CHUNK = f"""
    INSERT INTO kg_chunks (team_id, content, embedding, source_type, source_id, source_title, linked_node_ids)
    VALUES ($1, $2, $3::vector, $4, $5, $6, $7::uuid[])
    RETURNING {CHUNK_COLUMNS}
"""

GRAPH_STATS = """
    SELECT
        (SELECT COUNT(*) FROM kg_nodes WHERE team_id = $1) AS node_count,
        (SELECT COUNT(*) FROM kg_edges WHERE team_id = $1) AS edge_count,
        (SELECT COUNT(*) FROM kg_chunks WHERE team_id = $1) AS chunk_count
"""


# ============================================================================
# ROW MAPPERS
# ============================================================================

def _str_or_none(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def node_from_row(row) -> Node:
    """Shared by every node query; optional similarity/relationship/weight columns."""
    keys = row.keys()
    return Node(
        id=str(row['id']),
        team_id=str(row['team_id']),
        name=row['name'],
        type=row['type'],
        description=row['description'],
        mention_count=row['mention_count'],
        source_type=row['source_type'],
        source_id=_str_or_none(row['source_id']),
        user_id=_str_or_none(row['user_id']) if 'user_id' in keys else None,
        created_at=row['created_at'],
        updated_at=row['updated_at'],
        similarity=float(row['similarity']) if 'similarity' in keys and row['similarity'] is not None else None,
        relationship=row['relationship'] if 'relationship' in keys else None,
        weight=float(row['weight']) if 'weight' in keys and row['weight'] is not None else None,
    )


def edge_from_row(row) -> Edge:
    return Edge(
        id=str(row['id']),
        team_id=str(row['team_id']),
        source_node_id=str(row['source_node_id']),
        target_node_id=str(row['target_node_id']),
        relationship=row['relationship'],
        weight=float(row['weight']),
        source_type=row['source_type'],
        source_id=_str_or_none(row['source_id']),
        created_at=row['created_at'],
    )


def chunk_from_row(row) -> KnowledgeChunk:
    return KnowledgeChunk(
        id=str(row['id']),
        team_id=str(row['team_id']),
        content=row['content'],
        source_type=row['source_type'],
        source_id=_str_or_none(row['source_id']),
        source_title=row['source_title'],
        linked_node_ids=[str(n) for n in (row['linked_node_ids'] or [])],
        created_at=row['created_at'],
    )


def node_embedding_text(entity: ExtractedEntity) -> str:
    """Text embedded for a new node: '{type}: {name}. {description}'."""
    return f"{entity.type}: {entity.name}. {entity.description or ''}".strip()


# ============================================================================
# STORE
# ============================================================================

class GraphStore:
    """
    Node, edge and chunk persistence for one database.

    Every method is a short sequence of single-statement round trips; no
    transaction spans calls.

    Example:
        store = GraphStore(db, embedder)
        node = await store.upsert_node(team_id, ExtractedEntity("Fugly", "product"))
    """

    def __init__(self, db: Database, embedder: BGEEmbedder, config: dict = None):
        self.db = db
        self.embedder = embedder
        self.config = config or GRAPH_CONFIG

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    async def upsert_node(
        self,
        team_id: str,
        entity: ExtractedEntity,
        source_info: Optional[SourceInfo] = None,
    ) -> Node:
        """
        Create the node or count another mention of it.

        Existing node: mention_count + 1, description backfilled only when
        currently NULL, no new embedding. New node: embedded and inserted.
        A concurrent insert of the same identity is absorbed by re-selecting
        the winner and counting this mention on it.

        Raises:
            ValueError: blank name or type
            asyncpg.PostgresError: any other database failure
        """
        if not entity.name or not entity.name.strip() or not entity.type:
            raise ValueError(f"Entity needs a name and a type: {entity!r}")
        entity = replace(entity, name=entity.name.strip())
        source_info = source_info or SourceInfo(self.config['default_source_type'])

        existing = await self.db.fetchrow(SELECT_NODE_BY_IDENTITY, team_id, entity.name, entity.type)
        if existing is not None:
            row = await self.db.fetchrow(INCREMENT_NODE_MENTION, existing['id'], entity.description)
            return node_from_row(row)

        embedding = await self.embedder.generate_embedding(node_embedding_text(entity))
        try:
            row = await self.db.fetchrow(
                INSERT_NODE,
                team_id,
                entity.name,
                entity.type,
                entity.description,
                vec_to_pg(embedding),
                source_info.source_type,
                source_info.source_id,
            )
        except asyncpg.UniqueViolationError:
            logger.info(f"Node '{entity.name}' ({entity.type}) created concurrently, using winner")
            winner = await self.db.fetchrow(SELECT_NODE_BY_IDENTITY, team_id, entity.name, entity.type)
            if winner is None:
                raise
            row = await self.db.fetchrow(INCREMENT_NODE_MENTION, winner['id'], entity.description)

        return node_from_row(row)

    async def find_node(self, team_id: str, name: str, node_type: Optional[str] = None) -> Optional[Node]:
        """Case-insensitive lookup; without a type the most-mentioned match wins."""
        if node_type:
            row = await self.db.fetchrow(SELECT_NODE_BY_IDENTITY, team_id, name, node_type)
        else:
            row = await self.db.fetchrow(SELECT_NODE_BY_NAME, team_id, name)
        return node_from_row(row) if row else None

    async def get_user_node(self, team_id: str, user_id: str) -> Optional[Node]:
        row = await self.db.fetchrow(SELECT_USER_NODE, team_id, user_id, TEAM_MEMBER_TYPE)
        return node_from_row(row) if row else None

    async def get_or_create_user_node(
        self,
        team_id: str,
        user_id: str,
        display_name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Node:
        """
        The team_member node representing a user.

        Name falls back from display name to the email local part to
        'User <first 8 chars of id>'.
        """
        existing = await self.get_user_node(team_id, user_id)
        if existing is not None:
            return existing

        name = display_name or (email.split('@')[0] if email else None) or f"User {str(user_id)[:8]}"
        embedding = await self.embedder.generate_embedding(f"{TEAM_MEMBER_TYPE}: {name}. Team member.")
        row = await self.db.fetchrow(
            UPSERT_USER_NODE,
            team_id,
            user_id,
            name,
            TEAM_MEMBER_TYPE,
            f"Team member: {name}",
            vec_to_pg(embedding),
            str(user_id),
        )
        logger.info(f"Created user node: {name}")
        return node_from_row(row)

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    async def create_edge(
        self,
        team_id: str,
        relationship: ExtractedRelationship,
        source_info: Optional[SourceInfo] = None,
    ) -> Optional[Edge]:
        """
        Create the edge or reinforce it.

        Returns:
            The edge, or None when an endpoint name does not resolve to a
            node or a concurrent insert won the race
        """
        source_info = source_info or SourceInfo(self.config['default_source_type'])

        source = await self.find_node(team_id, relationship.source)
        target = await self.find_node(team_id, relationship.target)
        if source is None or target is None:
            logger.debug(
                f"Skipping edge {relationship.source} -[{relationship.relationship}]-> "
                f"{relationship.target}: unresolved endpoint"
            )
            return None

        existing = await self.db.fetchrow(SELECT_EDGE, source.id, target.id, relationship.relationship)
        if existing is not None:
            row = await self.db.fetchrow(
                REINFORCE_EDGE, existing['id'], self.config['edge_weight_increment']
            )
            return edge_from_row(row)

        try:
            row = await self.db.fetchrow(
                INSERT_EDGE,
                team_id,
                source.id,
                target.id,
                relationship.relationship,
                self.config['initial_edge_weight'],
                source_info.source_type,
                source_info.source_id,
            )
        except asyncpg.UniqueViolationError:
            logger.info(f"Edge {source.name} -[{relationship.relationship}]-> {target.name} created concurrently")
            return None

        return edge_from_row(row)

    # ------------------------------------------------------------------
    # Chunks & stats
    # ------------------------------------------------------------------

    async def create_chunk(
        self,
        team_id: str,
        content: str,
        source_info: Optional[SourceInfo] = None,
        source_title: Optional[str] = None,
        linked_node_ids: Iterable[str] = (),
    ) -> KnowledgeChunk:
        """Store an embedded chunk linked to the nodes found in it."""
        source_info = source_info or SourceInfo(self.config['default_source_type'])
        embedding = await self.embedder.generate_embedding(content)
        row = await self.db.fetchrow(
            INSERT_CHUNK,
            team_id,
            content,
            vec_to_pg(embedding),
            source_info.source_type,
            source_info.source_id,
            source_title,
            list(linked_node_ids),
        )
        return chunk_from_row(row)

    async def get_graph_stats(self, team_id: str) -> GraphStats:
        row = await self.db.fetchrow(GRAPH_STATS, team_id)
        if row is None:
            return GraphStats()
        return GraphStats(
            node_count=int(row['node_count']),
            edge_count=int(row['edge_count']),
            chunk_count=int(row['chunk_count']),
        )
