# -*- coding: utf-8 -*-
"""
Module: test_run_ingest.py
Package: tests.cli
Purpose: Unit tests for the ingestion CLI's file handling
"""

# Standard library
from argparse import Namespace
from unittest.mock import AsyncMock, MagicMock, patch

# Third-party
import pytest

# Local
from scripts.run_ingest import ingest, read_document
from ravenloom.utils.dataclasses import ProcessingStats


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def files(tmp_path):
    good = tmp_path / "handbook.md"
    good.write_text("Fugly is our mascot.", encoding='utf-8')
    bad = tmp_path / "export.txt"
    bad.write_bytes(b"caf\xe9 \xff\xfe broken")
    return good, bad


def _args(paths):
    return Namespace(
        paths=paths,
        team='team-1',
        source_type='document',
        init_schema=False,
        stats=False,
    )


# ============================================================================
# TESTS
# ============================================================================

def test_read_document_uses_file_stem_as_title(files):
    good, _ = files

    document = read_document(good)

    assert document.content == "Fugly is our mascot."
    assert document.title == "handbook"
    assert document.id == str(good)


def test_read_document_skips_invalid_utf8(files):
    _, bad = files

    assert read_document(bad) is None


def test_read_document_skips_missing_path(tmp_path):
    assert read_document(tmp_path / "missing.md") is None
    assert read_document(tmp_path) is None


@pytest.mark.asyncio
async def test_ingest_continues_past_undecodable_file(files):
    """Test one bad file is skipped and the remaining files are still ingested."""
    good, bad = files
    processor = MagicMock()
    processor.process_document = AsyncMock(return_value=ProcessingStats(nodes=2, edges=1, chunks=1))
    database = MagicMock()
    database.return_value.__aenter__ = AsyncMock(return_value=MagicMock())
    database.return_value.__aexit__ = AsyncMock(return_value=False)

    with patch('scripts.run_ingest.Database', database), \
            patch('scripts.run_ingest.GraphStore'), \
            patch('scripts.run_ingest.BGEEmbedder'), \
            patch('scripts.run_ingest.EntityExtractor'), \
            patch('scripts.run_ingest.DocumentProcessor', return_value=processor):
        totals = await ingest(_args([bad, good]))

    assert processor.process_document.await_count == 1
    document = processor.process_document.await_args.args[1]
    assert document.title == "handbook"
    assert (totals.nodes, totals.edges, totals.chunks) == (2, 1, 1)
