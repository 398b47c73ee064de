# -*- coding: utf-8 -*-
"""
Module: test_entity_extraction.py
Package: tests.processing
Purpose: Unit tests for LLM entity/relationship extraction with a mocked client

Tests:
- Fenced JSON parsing and normalization
- Malformed items are skipped
- Garbage responses and failed calls yield an empty result
"""

# Third-party
import pytest

# Config imports (direct)
from config.extraction_config import EXTRACTION_CONFIG

# Local
from ravenloom.processing.entities.entity_extractor import EntityExtractor
from ravenloom.prompts.prompts import ENTITY_EXTRACTION_SYSTEM_PROMPT


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def extractor(mock_llm):
    return EntityExtractor(llm_client=mock_llm)


FENCED_RESPONSE = """```json
{
  "entities": [
    {"name": " Fugly ", "type": "Product", "description": "Our mascot"},
    {"name": "Full Uproar", "type": "company", "description": "  "}
  ],
  "relationships": [
    {"source": "Fugly", "target": "Full Uproar", "relationship": "created_by"}
  ]
}
```"""


# ============================================================================
# TESTS
# ============================================================================

@pytest.mark.asyncio
async def test_extract_parses_fenced_json(extractor, mock_llm):
    """Test entities and relationships are parsed and normalized."""
    mock_llm.complete.return_value = FENCED_RESPONSE

    result = await extractor.extract("Fugly was created by Full Uproar.")

    assert [(e.name, e.type, e.description) for e in result.entities] == [
        ("Fugly", "product", "Our mascot"),
        ("Full Uproar", "company", None),
    ]
    assert len(result.relationships) == 1
    rel = result.relationships[0]
    assert (rel.source, rel.target, rel.relationship) == ("Fugly", "Full Uproar", "CREATED_BY")


@pytest.mark.asyncio
async def test_extract_uses_extraction_prompt_and_config(extractor, mock_llm):
    """Test the model call carries the system prompt and deterministic settings."""
    mock_llm.complete.return_value = '{"entities": [], "relationships": []}'

    await extractor.extract("chunk text")

    mock_llm.complete.assert_awaited_once_with(
        ENTITY_EXTRACTION_SYSTEM_PROMPT,
        "chunk text",
        model=EXTRACTION_CONFIG['model_name'],
        max_tokens=EXTRACTION_CONFIG['max_tokens'],
        temperature=EXTRACTION_CONFIG['temperature'],
    )


@pytest.mark.asyncio
async def test_extract_skips_malformed_items(extractor, mock_llm):
    """Test items missing required fields are dropped, others kept."""
    mock_llm.complete.return_value = """{
        "entities": [{"name": "Fugly"}, {"name": "", "type": "product"}, "junk",
                     {"name": "Ravenloom", "type": "product"}],
        "relationships": [{"source": "Fugly", "relationship": "HAS"}, 42]
    }"""

    result = await extractor.extract("text")

    assert [e.name for e in result.entities] == ["Ravenloom"]
    assert result.relationships == []


@pytest.mark.asyncio
async def test_extract_garbage_returns_empty(extractor, mock_llm):
    """Test a non-JSON reply yields an empty result, not an error."""
    mock_llm.complete.return_value = "Sorry, I can't help with that."

    result = await extractor.extract("text")

    assert result.is_empty


@pytest.mark.asyncio
async def test_extract_call_failure_returns_empty(extractor, mock_llm):
    """Test network/API errors are absorbed."""
    mock_llm.complete.side_effect = ConnectionError("timeout")

    result = await extractor.extract("text")

    assert result.is_empty


@pytest.mark.asyncio
async def test_extract_non_list_sections(extractor, mock_llm):
    mock_llm.complete.return_value = '{"entities": "none", "relationships": null}'

    result = await extractor.extract("text")

    assert result.is_empty
