#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Script: run_ingest.py
Package: scripts
Purpose: CLI for ingesting documents into a team's knowledge graph

Chunks each file, extracts entities and relationships with Together.ai,
upserts nodes and edges, and stores linked chunks in PostgreSQL.

Usage:
    python scripts/run_ingest.py --team TEAM_ID docs/handbook.md
    python scripts/run_ingest.py --team TEAM_ID docs/*.md --init-schema
    python scripts/run_ingest.py --team TEAM_ID notes.txt --stats
"""

import sys
import argparse
import asyncio
from pathlib import Path
from typing import Optional

# Project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Config imports (direct)
from config.extraction_config import LOG_LEVEL

# Local imports
from ravenloom.graph.document_processor import DocumentProcessor
from ravenloom.graph.graph_store import GraphStore
from ravenloom.processing.entities.entity_extractor import EntityExtractor
from ravenloom.utils.database import Database
from ravenloom.utils.dataclasses import Document, ProcessingStats, SourceInfo
from ravenloom.utils.embedder import BGEEmbedder
from ravenloom.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


# ============================================================================
# ARGUMENT PARSING
# ============================================================================

def parse_args():
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Ingest documents into the RavenLoom knowledge graph",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/run_ingest.py --team TEAM_ID docs/handbook.md
  python scripts/run_ingest.py --team TEAM_ID docs/*.md --init-schema
        """
    )

    parser.add_argument(
        'paths',
        nargs='+',
        type=Path,
        help='Text or markdown files to ingest'
    )

    parser.add_argument(
        '--team',
        required=True,
        help='Team id that owns the graph'
    )

    parser.add_argument(
        '--source-type',
        default='document',
        help='Provenance type recorded on nodes, edges and chunks (default: document)'
    )

    parser.add_argument(
        '--init-schema',
        action='store_true',
        help='Apply schema.sql before ingesting'
    )

    parser.add_argument(
        '--stats',
        action='store_true',
        help='Print graph totals for the team when done'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        help='Also write logs to this file'
    )

    return parser.parse_args()


# ============================================================================
# INGESTION
# ============================================================================

def read_document(path: Path) -> Optional[Document]:
    """Load a UTF-8 text file as a Document, or None (logged) when it can't be read."""
    if not path.is_file():
        logger.warning(f"Skipping {path}: not a file")
        return None
    try:
        content = path.read_text(encoding='utf-8')
    except UnicodeDecodeError as e:
        logger.warning(f"Skipping {path}: not valid UTF-8 ({e.reason} at byte {e.start})")
        return None
    return Document(content=content, title=path.stem, id=str(path))


async def ingest(args) -> ProcessingStats:
    """Process every file in order and return the summed counts."""
    totals = ProcessingStats()

    async with Database() as db:
        if args.init_schema:
            await db.initialize_schema()

        store = GraphStore(db, BGEEmbedder())
        processor = DocumentProcessor(store, EntityExtractor())

        for path in args.paths:
            document = read_document(path)
            if document is None:
                continue

            stats = await processor.process_document(
                args.team,
                document,
                SourceInfo(source_type=args.source_type, source_id=str(path)),
            )
            totals.nodes += stats.nodes
            totals.edges += stats.edges
            totals.chunks += stats.chunks

        if args.stats:
            graph = await store.get_graph_stats(args.team)
            print(f"Graph for team {args.team}: {graph.node_count} nodes, "
                  f"{graph.edge_count} edges, {graph.chunk_count} chunks")

    return totals


def main():
    args = parse_args()
    setup_logging(level=LOG_LEVEL, log_file=args.log_file)

    totals = asyncio.run(ingest(args))

    print("=" * 60)
    print(f"Ingested {len(args.paths)} file(s): {totals.nodes} node upserts, "
          f"{totals.edges} edges, {totals.chunks} chunks")
    print("=" * 60)


if __name__ == '__main__':
    main()
