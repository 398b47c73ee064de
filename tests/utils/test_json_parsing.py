# -*- coding: utf-8 -*-
"""
Module: test_json_parsing.py
Package: tests.utils
Purpose: Unit tests for JSON recovery from model responses
"""

# Local
from ravenloom.utils.json_parsing import parse_llm_json, strip_code_fence


# ============================================================================
# TESTS: strip_code_fence
# ============================================================================

def test_strip_json_fence():
    """Test fenced ```json block interior is returned."""
    text = 'Here you go:\n```json\n{"a": 1}\n```\nThanks'
    assert strip_code_fence(text) == '{"a": 1}'


def test_strip_bare_fence():
    """Test fence without a language tag."""
    assert strip_code_fence('```\n[1, 2]\n```') == '[1, 2]'


def test_strip_no_fence():
    """Test unfenced text is only trimmed."""
    assert strip_code_fence('  {"a": 1}  ') == '{"a": 1}'


def test_strip_empty():
    assert strip_code_fence('') == ''
    assert strip_code_fence(None) == ''


# ============================================================================
# TESTS: parse_llm_json
# ============================================================================

def test_parse_fenced_object():
    """Test the common model reply shape."""
    content = '```json\n{"entities": [], "relationships": []}\n```'
    assert parse_llm_json(content, default={}) == {"entities": [], "relationships": []}


def test_parse_raw_object():
    assert parse_llm_json('{"answer": "yes"}', default={}) == {"answer": "yes"}


def test_parse_garbage_returns_default():
    """Test unparseable text yields the caller's default."""
    assert parse_llm_json("I could not find any entities.", default={}) == {}


def test_parse_empty_returns_default():
    assert parse_llm_json(None, default=[]) == []
    assert parse_llm_json('   ', default={}) == {}


def test_parse_type_mismatch_returns_default():
    """Test a list where an object is expected falls back to default."""
    assert parse_llm_json('[1, 2, 3]', default={}) == {}


def test_parse_explicit_expect_with_none_default():
    """Test default=None with explicit expect."""
    assert parse_llm_json('"just a string"', default=None, expect=dict) is None
    assert parse_llm_json('{"k": 1}', default=None, expect=dict) == {"k": 1}


def test_parse_without_expect_accepts_any_type():
    """Test default=None and no expect accepts any JSON value."""
    assert parse_llm_json('[1]', default=None) == [1]
