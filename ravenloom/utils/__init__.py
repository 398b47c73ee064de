# -*- coding: utf-8 -*-
"""
Utilities package shared across RavenLoom.

Contains logging setup, dataclasses, exceptions, the asyncpg database wrapper,
the BGE-M3 embedder, the chat-completion client, LLM JSON parsing and the
background job runner.
"""
