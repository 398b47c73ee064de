# -*- coding: utf-8 -*-
"""
Module: test_fact_extractor.py
Package: tests.knowledge
Purpose: Unit tests for atomic fact decomposition with a mocked client
"""

# Third-party
import pytest

# Local
from ravenloom.knowledge.fact_extractor import FactExtractor


@pytest.fixture
def extractor(mock_llm):
    return FactExtractor(llm_client=mock_llm)


FACTS_RESPONSE = """```json
{
  "facts": [
    {"statement": "Full Uproar Games is a tabletop games company", "category": "company",
     "entities": ["Full Uproar Games"], "confidence": 0.95, "context_tags": ["about"]},
    {"statement": "Fugly is the mascot of Full Uproar Games", "category": "product",
     "entities": [{"name": "Fugly", "type": "product"}], "attribute": "role", "value": "mascot",
     "confidence": 0.9},
    {"statement": "They might be fun", "confidence": 0.3},
    {"statement": "   ", "confidence": 0.9},
    "not a fact"
  ]
}
```"""


@pytest.mark.asyncio
async def test_extract_filters_low_confidence(extractor, mock_llm):
    """Test confident, well-formed facts are kept and others dropped."""
    mock_llm.complete.return_value = FACTS_RESPONSE

    facts = await extractor.extract_atomic_facts("Full Uproar Games makes games. Fugly is our mascot.")

    assert [f.statement for f in facts] == [
        "Full Uproar Games is a tabletop games company",
        "Fugly is the mascot of Full Uproar Games",
    ]
    assert facts[0].context_tags == ["about"]
    assert facts[1].entities == [{"name": "Fugly", "type": "product"}]
    assert (facts[1].attribute, facts[1].value) == ("role", "mascot")


@pytest.mark.asyncio
async def test_question_context_in_prompt(extractor, mock_llm):
    """Test a source question is included in the user prompt."""
    mock_llm.complete.return_value = '{"facts": []}'

    await extractor.extract_atomic_facts("Every Friday.", question="When do we ship?")

    user_prompt = mock_llm.complete.await_args.args[1]
    assert "Question: When do we ship?" in user_prompt
    assert "Every Friday." in user_prompt


@pytest.mark.asyncio
async def test_unparseable_response_falls_back_to_whole_text(extractor, mock_llm):
    """Test a garbage reply keeps the statement as a single general fact."""
    mock_llm.complete.return_value = "I think there are some facts here."

    facts = await extractor.extract_atomic_facts("  Fugly is our mascot.  ")

    assert len(facts) == 1
    assert facts[0].statement == "Fugly is our mascot."
    assert facts[0].category == "general"
    assert facts[0].confidence == pytest.approx(0.7)


@pytest.mark.asyncio
async def test_call_failure_falls_back_and_truncates(extractor, mock_llm):
    """Test the whole-text fallback is capped at 500 characters."""
    mock_llm.complete.side_effect = ConnectionError("timeout")

    facts = await extractor.extract_atomic_facts("x" * 900)

    assert len(facts) == 1
    assert len(facts[0].statement) == 500
