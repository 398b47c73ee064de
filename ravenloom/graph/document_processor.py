# -*- coding: utf-8 -*-
"""
Document ingestion: chunk -> extract -> upsert nodes -> edges -> chunk rows.

Chunks are processed strictly in document order so mention counts and edge
weights reflect the document deterministically. A failure on one entity or
one relationship is logged and skipped; the rest of the document still
lands in the graph.
"""
# Standard library
import logging
from typing import List, Optional

# Local
from ravenloom.graph.graph_store import GraphStore
from ravenloom.processing.chunks.text_chunker import TextChunker
from ravenloom.processing.entities.entity_extractor import EntityExtractor
from ravenloom.utils.dataclasses import Document, ProcessingStats, SourceInfo

logger = logging.getLogger(__name__)


class DocumentProcessor:
    """
    Example:
        processor = DocumentProcessor(store, extractor)
        stats = await processor.process_document(team_id, Document(content=text, title="Handbook"))
    """

    def __init__(
        self,
        store: GraphStore,
        extractor: EntityExtractor,
        chunker: Optional[TextChunker] = None,
    ):
        self.store = store
        self.extractor = extractor
        self.chunker = chunker or TextChunker()

    async def process_document(
        self,
        team_id: str,
        document: Document,
        source_info: Optional[SourceInfo] = None,
    ) -> ProcessingStats:
        """
        Ingest one document into the team's knowledge graph.

        Args:
            team_id: Owning team
            document: Text plus optional title and id
            source_info: Provenance (defaults to a 'document' source keyed by document.id)

        Returns:
            ProcessingStats with nodes upserted, edges created/reinforced and chunks stored
        """
        source_info = source_info or SourceInfo(source_type='document', source_id=document.id)
        stats = ProcessingStats()

        chunks = self.chunker.chunk(document.content)
        logger.info(f"Processing document '{document.title or document.id}': {len(chunks)} chunks")

        for index, chunk in enumerate(chunks):
            extraction = await self.extractor.extract(chunk)

            node_ids: List[str] = []
            for entity in extraction.entities:
                try:
                    node = await self.store.upsert_node(team_id, entity, source_info)
                except Exception as e:
                    logger.error(f"Chunk {index}: failed to upsert entity '{entity.name}': {e}")
                    continue
                if node.id not in node_ids:
                    node_ids.append(node.id)
                stats.nodes += 1

            for relationship in extraction.relationships:
                try:
                    edge = await self.store.create_edge(team_id, relationship, source_info)
                except Exception as e:
                    logger.error(
                        f"Chunk {index}: failed to create edge "
                        f"{relationship.source} -[{relationship.relationship}]-> {relationship.target}: {e}"
                    )
                    continue
                if edge is not None:
                    stats.edges += 1

            await self.store.create_chunk(
                team_id,
                chunk,
                source_info=source_info,
                source_title=document.title,
                linked_node_ids=node_ids,
            )
            stats.chunks += 1

        logger.info(
            f"Document processed: {stats.nodes} nodes, {stats.edges} edges, {stats.chunks} chunks"
        )
        return stats
