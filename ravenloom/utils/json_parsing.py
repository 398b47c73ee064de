# -*- coding: utf-8 -*-
"""
JSON recovery for LLM responses.

Every call site that asks a model for JSON goes through parse_llm_json():
find a fenced ```json block anywhere in the text and parse its interior,
otherwise parse the raw text, and hand back the caller's default when that
fails. Callers decide what "no result" means by choosing the default.
"""
# Standard library
import json
import logging
import re
from typing import Any, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')

FENCED_BLOCK_PATTERN = re.compile(r'```(?:json)?\s*([\s\S]*?)```')


def strip_code_fence(content: str) -> str:
    """Return the interior of the first fenced code block, or the stripped text."""
    if not content:
        return ''
    match = FENCED_BLOCK_PATTERN.search(content)
    if match:
        return match.group(1).strip()
    return content.strip()


def parse_llm_json(
    content: Optional[str],
    default: T,
    expect: Optional[type] = None,
    context: str = 'llm response',
) -> Any:
    """
    Parse JSON out of a model response.

    Args:
        content: Raw model text (may be None)
        default: Returned on empty input, parse failure or type mismatch
        expect: Required top-level type. Defaults to type(default) when
            default is not None.
        context: Label used in the warning log

    Returns:
        Parsed JSON value or default
    """
    if expect is None and default is not None:
        expect = type(default)

    text = strip_code_fence(content or '')
    if not text:
        logger.warning(f"Empty {context}, using default")
        return default

    try:
        result = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(f"JSON parse error for {context}: {e} (first 200 chars: {text[:200]!r})")
        return default

    if expect is not None and not isinstance(result, expect):
        logger.warning(
            f"Unexpected JSON type for {context}: got {type(result).__name__}, "
            f"expected {expect.__name__}"
        )
        return default

    return result
