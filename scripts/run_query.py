#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Script: run_query.py
Package: scripts
Purpose: CLI for Ask, Remember and GraphRAG search against a scope

Usage:
    python scripts/run_query.py ask --scope SCOPE_ID --user USER_ID "Who created Fugly?"
    python scripts/run_query.py remember --scope SCOPE_ID --user USER_ID "Fugly is our mascot" --yes
    python scripts/run_query.py search --team TEAM_ID "Fugly" --hops 2 --json
"""

import sys
import argparse
import asyncio
import json
from dataclasses import asdict
from pathlib import Path

# Project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Config imports (direct)
from config.extraction_config import LOG_LEVEL

# Local imports
from ravenloom.knowledge.conflict_detector import ConflictDetector
from ravenloom.knowledge.fact_extractor import FactExtractor
from ravenloom.knowledge.fact_store import FactStore
from ravenloom.knowledge.raven_service import RavenService
from ravenloom.knowledge.scope_store import ScopeStore
from ravenloom.retrieval.answer_generator import AnswerGenerator
from ravenloom.retrieval.graph_rag import GraphRAGRetriever
from ravenloom.utils.database import Database
from ravenloom.utils.embedder import BGEEmbedder
from ravenloom.utils.exceptions import NotFoundError
from ravenloom.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


# ============================================================================
# ARGUMENT PARSING
# ============================================================================

def parse_args():
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="RavenLoom Ask / Remember / GraphRAG search",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--log-file', type=str, help='Also write logs to this file')
    parser.add_argument('--json', action='store_true', help='Print the raw result as JSON')

    sub = parser.add_subparsers(dest='command', required=True)

    ask = sub.add_parser('ask', help='Answer a question from team knowledge')
    ask.add_argument('question', type=str)
    ask.add_argument('--scope', required=True)
    ask.add_argument('--user', required=True)

    remember = sub.add_parser('remember', help='Preview (and optionally confirm) a statement')
    remember.add_argument('statement', type=str)
    remember.add_argument('--scope', required=True)
    remember.add_argument('--user', required=True)
    remember.add_argument('--source-url', type=str)
    remember.add_argument('--yes', action='store_true', help='Confirm without prompting')
    remember.add_argument(
        '--skip-conflict',
        action='append',
        default=[],
        help='Existing fact id to leave untouched (repeatable)'
    )

    search = sub.add_parser('search', help='Raw GraphRAG search')
    search.add_argument('query', type=str)
    search.add_argument('--team', required=True)
    search.add_argument('--top-k', type=int)
    search.add_argument('--hops', type=int)

    return parser.parse_args()


# ============================================================================
# PIPELINE LOADING
# ============================================================================

def load_service(db: Database, embedder: BGEEmbedder) -> RavenService:
    """Wire the Ask/Remember service on one database and embedder."""
    fact_extractor = FactExtractor()
    fact_store = FactStore(db, embedder, fact_extractor)
    return RavenService(
        scope_store=ScopeStore(db),
        fact_store=fact_store,
        fact_extractor=fact_extractor,
        conflict_detector=ConflictDetector(fact_store),
        retriever=GraphRAGRetriever(db, embedder),
        answer_generator=AnswerGenerator(),
    )


def print_result(result, as_json: bool):
    if as_json:
        print(json.dumps(asdict(result), indent=2, default=str))


# ============================================================================
# COMMANDS
# ============================================================================

async def run_ask(service: RavenService, args):
    result = await service.ask(args.scope, args.user, args.question)
    if args.json:
        return print_result(result, True)

    print(f"\n{result.answer}\n")
    print(f"Confidence: {result.confidence:.2f}")
    for fact in result.facts_used:
        print(f"  - {fact.content}")
    if result.suggested_followups:
        print("\nYou could also ask:")
        for followup in result.suggested_followups:
            print(f"  ? {followup}")


async def run_remember(service: RavenService, args):
    preview = await service.preview_remember(args.scope, args.user, args.statement, args.source_url)
    if args.json and not args.yes:
        return print_result(preview, True)

    if preview.is_mismatch:
        print(f"Note: {preview.mismatch_suggestion}")
    print(f"\nExtracted {len(preview.extracted_facts)} fact(s):")
    for fact in preview.extracted_facts:
        print(f"  + {fact.content}")
    for conflict in preview.conflicts:
        print(f"  ! [{conflict.conflict_type.value}] {conflict.explanation} (fact {conflict.existing_fact.id})")

    confirm = args.yes or input("\nSave these facts? [y/N] ").strip().lower() == 'y'
    if not confirm:
        await service.cancel_remember(preview.preview_id)
        print("Cancelled.")
        return

    result = await service.confirm_remember(preview.preview_id, args.skip_conflict)
    if args.json:
        return print_result(result, True)
    print(result.message)


async def run_search(service: RavenService, args):
    result = await service.retriever.search(args.team, args.query, top_k=args.top_k, hop_depth=args.hops)
    if args.json:
        return print_result(result, True)

    print("\nEntry nodes:")
    for node in result.entry_nodes:
        print(f"  {node.name} ({node.type}) similarity={node.similarity:.3f}")
    print("\nRelated nodes:")
    for node in result.related_nodes:
        print(f"  {node.name} ({node.type}) via {node.relationship} weight={node.weight:.1f}")
    print(f"\nChunks: {len(result.chunks)}")
    for i, chunk in enumerate(result.chunks, 1):
        print(f"\n[{i}] {chunk.source_title or ''}\n{chunk.content[:300]}")


COMMANDS = {
    'ask': run_ask,
    'remember': run_remember,
    'search': run_search,
}


async def run(args) -> int:
    async with Database() as db:
        service = load_service(db, BGEEmbedder())
        try:
            await COMMANDS[args.command](service, args)
        except NotFoundError as e:
            logger.error(e.message)
            return 1
    return 0


def main():
    args = parse_args()
    setup_logging(level=LOG_LEVEL, log_file=args.log_file)
    sys.exit(asyncio.run(run(args)))


if __name__ == '__main__':
    main()
