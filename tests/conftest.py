# -*- coding: utf-8 -*-
"""
Module: conftest.py
Package: tests
Purpose: Shared fixtures (in-memory graph database, fake embedder, fake LLM)

The graph and user stores issue a fixed set of SQL statements; FakeGraphDatabase
dispatches on those constants and keeps nodes, edges, chunks and user facts
in dicts with the same identity rules as the real unique indexes.
"""

# Standard library
import sys
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock

# Project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Third-party
import asyncpg
import pytest

# Local
from ravenloom.graph import graph_store as sql
from ravenloom.graph import user_store as user_sql
from ravenloom.utils.embedder import BGEEmbedder
from ravenloom.utils.llm_client import LLMClient


# ============================================================================
# FAKE DATABASE
# ============================================================================

class FakeGraphDatabase:
    """
    Minimal stand-in for Database covering the graph and user store queries.

    Set node_race / edge_race to make the next INSERT lose a concurrent race:
    a competing row is written first and UniqueViolationError is raised.
    """

    def __init__(self):
        self.nodes = {}
        self.edges = {}
        self.chunks = []
        self.users = {}
        self.user_facts = {}
        self.node_race = False
        self.edge_race = False
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def _now(self):
        self._clock += timedelta(seconds=1)
        return self._clock

    # -- node helpers ---------------------------------------------------

    def _node_by_identity(self, team_id, name, node_type):
        for node in self.nodes.values():
            if node['team_id'] == team_id and node['name'].lower() == name.lower() and node['type'] == node_type:
                return node
        return None

    def _new_node(self, team_id, name, node_type, description, embedding, source_type, source_id, user_id=None):
        now = self._now()
        node = {
            'id': str(uuid.uuid4()),
            'team_id': team_id,
            'user_id': user_id,
            'name': name,
            'type': node_type,
            'description': description,
            'mention_count': 1,
            'source_type': source_type,
            'source_id': source_id,
            'created_at': now,
            'updated_at': now,
            'embedding': embedding,
        }
        self.nodes[node['id']] = node
        return node

    def _edge_by_identity(self, source_id, target_id, relationship):
        for edge in self.edges.values():
            if (edge['source_node_id'], edge['target_node_id'], edge['relationship']) == (source_id, target_id, relationship):
                return edge
        return None

    def _new_edge(self, team_id, source_id, target_id, relationship, weight, source_type, source_ref):
        edge = {
            'id': str(uuid.uuid4()),
            'team_id': team_id,
            'source_node_id': source_id,
            'target_node_id': target_id,
            'relationship': relationship,
            'weight': weight,
            'source_type': source_type,
            'source_id': source_ref,
            'created_at': self._now(),
        }
        self.edges[edge['id']] = edge
        return edge

    def _user_match(self, user_id):
        user = self.users.get(user_id, {})
        return {'user_id': user_id, 'display_name': user.get('display_name'), 'email': user.get('email')}

    def add_user(self, user_id, display_name=None, email=None):
        self.users[user_id] = {'id': user_id, 'display_name': display_name, 'email': email}

    # -- Database interface ---------------------------------------------

    async def fetch(self, query, *args):
        if query == user_sql.SELECT_USER_FACTS:
            team_id, user_id = args
            facts = [
                f for f in self.user_facts.values()
                if f['team_id'] == team_id and f['user_id'] == user_id
            ]
            return sorted(facts, key=lambda f: (f['fact_type'], f['key']))

        raise AssertionError(f"Unexpected query: {query}")

    async def fetchrow(self, query, *args):
        if query == sql.SELECT_NODE_BY_IDENTITY:
            return self._node_by_identity(*args)

        if query == sql.SELECT_NODE_BY_NAME:
            team_id, name = args
            matches = [
                n for n in self.nodes.values()
                if n['team_id'] == team_id and n['name'].lower() == name.lower()
            ]
            matches.sort(key=lambda n: (-n['mention_count'], -n['created_at'].timestamp(), n['id']))
            return matches[0] if matches else None

        if query == sql.INCREMENT_NODE_MENTION:
            node_id, description = args
            node = self.nodes[node_id]
            node['mention_count'] += 1
            if node['description'] is None:
                node['description'] = description
            node['updated_at'] = self._now()
            return node

        if query == sql.INSERT_NODE:
            team_id, name, node_type, description, embedding, source_type, source_id = args
            if self.node_race:
                self.node_race = False
                self._new_node(team_id, name, node_type, None, None, 'document', 'other-worker')
                raise asyncpg.UniqueViolationError("duplicate key value violates unique constraint")
            if self._node_by_identity(team_id, name, node_type):
                raise asyncpg.UniqueViolationError("duplicate key value violates unique constraint")
            return self._new_node(team_id, name, node_type, description, embedding, source_type, source_id)

        if query == sql.SELECT_USER_NODE:
            team_id, user_id, node_type = args
            for node in self.nodes.values():
                if node['team_id'] == team_id and node['user_id'] == user_id and node['type'] == node_type:
                    return node
            return None

        if query == sql.UPSERT_USER_NODE:
            team_id, user_id, name, node_type, description, embedding, source_id = args
            existing = self._node_by_identity(team_id, name, node_type)
            if existing:
                existing['user_id'] = user_id
                existing['updated_at'] = self._now()
                return existing
            return self._new_node(team_id, name, node_type, description, embedding, 'user', source_id, user_id=user_id)

        if query == sql.SELECT_EDGE:
            return self._edge_by_identity(*args)

        if query == sql.REINFORCE_EDGE:
            edge_id, increment = args
            edge = self.edges[edge_id]
            edge['weight'] += increment
            return edge

        if query == sql.INSERT_EDGE:
            team_id, source_id, target_id, relationship, weight, source_type, source_ref = args
            if self.edge_race:
                self.edge_race = False
                self._new_edge(team_id, source_id, target_id, relationship, weight, 'document', 'other-worker')
                raise asyncpg.UniqueViolationError("duplicate key value violates unique constraint")
            return self._new_edge(team_id, source_id, target_id, relationship, weight, source_type, source_ref)

        if query == sql.INSERT_CHUNK:
            team_id, content, embedding, source_type, source_id, source_title, linked = args
            chunk = {
                'id': str(uuid.uuid4()),
                'team_id': team_id,
                'content': content,
                'source_type': source_type,
                'source_id': source_id,
                'source_title': source_title,
                'linked_node_ids': list(linked),
                'created_at': self._now(),
            }
            self.chunks.append(chunk)
            return chunk

        if query == sql.GRAPH_STATS:
            team_id, = args
            return {
                'node_count': sum(1 for n in self.nodes.values() if n['team_id'] == team_id),
                'edge_count': sum(1 for e in self.edges.values() if e['team_id'] == team_id),
                'chunk_count': sum(1 for c in self.chunks if c['team_id'] == team_id),
            }

        if query == user_sql.UPSERT_USER_FACT:
            team_id, user_id, fact_type, key, value, context = args
            identity = (team_id, user_id, fact_type, key)
            now = self._now()
            fact = self.user_facts.get(identity)
            if fact is None:
                fact = {
                    'id': str(uuid.uuid4()),
                    'team_id': team_id,
                    'user_id': user_id,
                    'fact_type': fact_type,
                    'key': key,
                    'created_at': now,
                }
                self.user_facts[identity] = fact
            fact.update(value=value, context=context, updated_at=now)
            return fact

        if query == user_sql.SELECT_USER_FACT:
            return self.user_facts.get(tuple(args))

        if query == user_sql.SELECT_USER_PROFILE:
            user_id, = args
            return self.users.get(user_id)

        if query == user_sql.FIND_USER_BY_NICKNAME:
            team_id, name, fact_type = args
            facts = [
                f for f in self.user_facts.values()
                if f['team_id'] == team_id and f['fact_type'] == fact_type and f['value'].lower() == name.lower()
            ]
            facts.sort(key=lambda f: f['updated_at'], reverse=True)
            return self._user_match(facts[0]['user_id']) if facts else None

        if query == user_sql.FIND_USER_BY_NODE:
            team_id, name, node_type = args
            for node in self.nodes.values():
                if (node['team_id'] == team_id and node['type'] == node_type and node['user_id']
                        and node['name'].lower() == name.lower()):
                    return self._user_match(node['user_id'])
            return None

        if query == user_sql.FIND_USER_BY_ACCOUNT:
            team_id, name, node_type = args
            members = {
                n['user_id'] for n in self.nodes.values()
                if n['team_id'] == team_id and n['type'] == node_type and n['user_id']
            }
            for user in self.users.values():
                local_part = (user['email'] or '').split('@')[0]
                if user['id'] in members and name.lower() in ((user['display_name'] or '').lower(), local_part.lower()):
                    return self._user_match(user['id'])
            return None

        raise AssertionError(f"Unexpected query: {query}")


# ============================================================================
# FIXTURES
# ============================================================================

TEAM_ID = '11111111-1111-1111-1111-111111111111'


@pytest.fixture
def team_id():
    """Team used by graph and knowledge tests."""
    return TEAM_ID


@pytest.fixture
def fake_db():
    """In-memory graph database."""
    return FakeGraphDatabase()


@pytest.fixture
def mock_embedder():
    """Embedder returning a fixed 4-dim vector without loading a model."""
    embedder = AsyncMock(spec=BGEEmbedder)
    embedder.generate_embedding.return_value = [0.1, 0.2, 0.3, 0.4]
    return embedder


@pytest.fixture
def mock_llm():
    """Chat client whose complete() return value each test sets."""
    return AsyncMock(spec=LLMClient)
