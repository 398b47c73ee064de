# -*- coding: utf-8 -*-
"""
GraphRAG retrieval over the team knowledge graph.

Pipeline:
    1. Embed the query (no embedding -> empty result)
    2. Vector search for entry nodes (cosine distance, non-null embeddings only)
    3. No entry nodes -> most recent chunks for the team (degraded mode)
    4. Expand along edges in either direction, strongest edges first
    5. Collect chunks linked to entry + related nodes, deduplicated by content,
       newest first

hop_depth > 1 repeats step 4 breadth-first from the nodes found in the
previous hop; all hops share the max_related_nodes cap.

References:
    retrieval_config.py: GRAPHRAG_CONFIG for top_k, hop_depth and caps
"""
# Standard library
import logging
from typing import List, Optional

# Config imports (direct)
from config.retrieval_config import GRAPHRAG_CONFIG

# Local
from ravenloom.graph.graph_store import CHUNK_COLUMNS, NODE_COLUMNS, chunk_from_row, node_from_row
from ravenloom.utils.database import Database, vec_to_pg
from ravenloom.utils.dataclasses import GraphSearchResult, Node
from ravenloom.utils.embedder import BGEEmbedder

logger = logging.getLogger(__name__)


def _prefixed(columns: str, alias: str) -> str:
    return ", ".join(f"{alias}.{c.strip()}" for c in columns.split(','))


ENTRY_NODE_SEARCH = f"""
    SELECT {NODE_COLUMNS}, 1 - (embedding <=> $1::vector) AS similarity
    FROM kg_nodes
    WHERE team_id = $2 AND embedding IS NOT NULL
    ORDER BY embedding <=> $1::vector
    LIMIT $3
"""

RECENT_CHUNKS = f"""
    SELECT {CHUNK_COLUMNS} FROM kg_chunks
    WHERE team_id = $1
    ORDER BY created_at DESC
    LIMIT $2
"""

# One hop from $2 in either direction, skipping $3; each neighbour keeps its
# strongest edge
RELATED_NODES = f"""
    SELECT * FROM (
        SELECT DISTINCT ON (n.id) {_prefixed(NODE_COLUMNS, 'n')}, e.relationship, e.weight
        FROM kg_edges e
        JOIN kg_nodes n ON n.id = CASE
            WHEN e.source_node_id = ANY($2::uuid[]) THEN e.target_node_id
            ELSE e.source_node_id
        END
        WHERE e.team_id = $1
          AND (e.source_node_id = ANY($2::uuid[]) OR e.target_node_id = ANY($2::uuid[]))
          AND n.id <> ALL($3::uuid[])
        ORDER BY n.id, e.weight DESC
    ) related
    ORDER BY weight DESC, name
    LIMIT $4
"""

LINKED_CHUNKS = f"""
    SELECT * FROM (
        SELECT DISTINCT ON (content) {CHUNK_COLUMNS}
        FROM kg_chunks
        WHERE team_id = $1 AND linked_node_ids && $2::uuid[]
        ORDER BY content, created_at DESC
    ) linked
    ORDER BY created_at DESC
    LIMIT $3
"""


class GraphRAGRetriever:
    """
    Vector entry points plus graph expansion.

    Example:
        retriever = GraphRAGRetriever(db, embedder)
        result = await retriever.search(team_id, "Who created Fugly?")
        for chunk in result.chunks:
            print(chunk.content)
    """

    def __init__(self, db: Database, embedder: BGEEmbedder, config: dict = None):
        self.db = db
        self.embedder = embedder
        self.config = config or GRAPHRAG_CONFIG

    async def search(
        self,
        team_id: str,
        query: str,
        top_k: Optional[int] = None,
        hop_depth: Optional[int] = None,
    ) -> GraphSearchResult:
        """
        Retrieve entry nodes, related nodes and linked chunks for a query.

        Args:
            team_id: Team whose graph is searched
            query: Natural-language question
            top_k: Entry nodes from vector search (default from config)
            hop_depth: Edge hops from entry nodes (default from config)

        Returns:
            GraphSearchResult (all empty when the query cannot be embedded)
        """
        top_k = top_k or self.config['top_k']
        hop_depth = hop_depth if hop_depth is not None else self.config['hop_depth']

        logger.info(f"GraphRAG search: {query[:80]!r}")

        embedding = await self.embedder.generate_embedding(query)
        if embedding is None:
            logger.warning("Failed to embed query, returning empty result")
            return GraphSearchResult()

        rows = await self.db.fetch(ENTRY_NODE_SEARCH, vec_to_pg(embedding), team_id, top_k)
        entry_nodes = [node_from_row(r) for r in rows]
        logger.info(f"Found {len(entry_nodes)} entry nodes")

        if not entry_nodes:
            rows = await self.db.fetch(RECENT_CHUNKS, team_id, top_k)
            chunks = [chunk_from_row(r) for r in rows]
            logger.info(f"No entry nodes, falling back to {len(chunks)} recent chunks")
            return GraphSearchResult(chunks=chunks)

        related_nodes = await self._expand(team_id, [n.id for n in entry_nodes], hop_depth)
        logger.info(f"Found {len(related_nodes)} related nodes via edges")

        node_ids = [n.id for n in entry_nodes] + [n.id for n in related_nodes]
        rows = await self.db.fetch(LINKED_CHUNKS, team_id, node_ids, self.config['max_chunks'])
        chunks = [chunk_from_row(r) for r in rows]
        logger.info(f"Retrieved {len(chunks)} chunks")

        return GraphSearchResult(
            entry_nodes=entry_nodes,
            related_nodes=related_nodes,
            chunks=chunks,
        )

    async def _expand(self, team_id: str, entry_ids: List[str], hop_depth: int) -> List[Node]:
        """Breadth-first edge expansion, capped at max_related_nodes overall."""
        related: List[Node] = []
        seen = list(entry_ids)
        frontier = list(entry_ids)

        for _ in range(max(hop_depth, 0)):
            remaining = self.config['max_related_nodes'] - len(related)
            if remaining <= 0 or not frontier:
                break
            rows = await self.db.fetch(RELATED_NODES, team_id, frontier, seen, remaining)
            hop_nodes = [node_from_row(r) for r in rows]
            related.extend(hop_nodes)
            frontier = [n.id for n in hop_nodes]
            seen = seen + frontier

        return related
