# -*- coding: utf-8 -*-
"""
Module: test_user_store.py
Package: tests.graph
Purpose: Unit tests for user facts, user context and name lookup

Tests:
- Keyed upsert replaces the value under the same key
- Facts grouped by type, preferred name from the nickname fact
- Name lookup order: nickname, team_member node, account name
"""

# Third-party
import pytest

# Local
from ravenloom.graph.graph_store import GraphStore
from ravenloom.graph.user_store import UserStore


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def graph_store(fake_db, mock_embedder):
    return GraphStore(fake_db, mock_embedder)


@pytest.fixture
def users(fake_db, graph_store):
    return UserStore(fake_db, graph_store)


# ============================================================================
# TESTS: USER FACTS
# ============================================================================

@pytest.mark.asyncio
async def test_store_same_key_replaces_value(users, fake_db, team_id):
    """Test storing a key twice keeps one row with the latest value."""
    first = await users.store_user_fact(team_id, 'u1', 'role', 'title', 'Designer')
    second = await users.store_user_fact(team_id, 'u1', 'role', 'title', 'Marketing lead', 'said in standup')

    assert first.id == second.id
    assert second.value == 'Marketing lead'
    assert second.context == 'said in standup'
    assert len(fake_db.user_facts) == 1


@pytest.mark.asyncio
async def test_get_user_facts_ordered_by_type_and_key(users, team_id):
    await users.store_user_fact(team_id, 'u1', 'role', 'title', 'Lead')
    await users.store_user_fact(team_id, 'u1', 'nickname', 'preferred_name', 'Shawn')
    await users.store_user_fact(team_id, 'u1', 'nickname', 'alias', 'Shawny')
    await users.store_user_fact(team_id, 'u2', 'role', 'title', 'Intern')

    facts = await users.get_user_facts(team_id, 'u1')

    assert [(f.fact_type, f.key) for f in facts] == [
        ('nickname', 'alias'),
        ('nickname', 'preferred_name'),
        ('role', 'title'),
    ]


@pytest.mark.asyncio
async def test_get_user_fact_missing_returns_none(users, team_id):
    await users.store_user_fact(team_id, 'u1', 'role', 'title', 'Lead')

    assert (await users.get_user_fact(team_id, 'u1', 'role', 'title')).value == 'Lead'
    assert await users.get_user_fact(team_id, 'u1', 'role', 'team') is None


# ============================================================================
# TESTS: USER CONTEXT
# ============================================================================

@pytest.mark.asyncio
async def test_user_context_groups_facts_and_preferred_name(users, graph_store, fake_db, team_id):
    """Test context merges profile, node and facts grouped by type."""
    fake_db.add_user('u1', display_name='Shawn Smith', email='shawn@example.com')
    node = await graph_store.get_or_create_user_node(team_id, 'u1', display_name='Shawn Smith')
    await users.store_user_fact(team_id, 'u1', 'nickname', 'preferred_name', 'Shawn')
    await users.store_user_fact(team_id, 'u1', 'role', 'title', 'Marketing lead')

    context = await users.get_user_context(team_id, 'u1')

    assert context.display_name == 'Shawn Smith'
    assert context.email == 'shawn@example.com'
    assert context.node_id == node.id
    assert context.facts == {
        'nickname': {'preferred_name': 'Shawn'},
        'role': {'title': 'Marketing lead'},
    }
    assert context.preferred_name == 'Shawn'


@pytest.mark.asyncio
async def test_user_context_without_profile_uses_node_name(users, graph_store, team_id):
    await graph_store.get_or_create_user_node(team_id, 'u1', email='pat@example.com')

    context = await users.get_user_context(team_id, 'u1')

    assert context.display_name == 'pat'
    assert context.email is None
    assert context.preferred_name is None


@pytest.mark.asyncio
async def test_user_context_for_unknown_user(users, team_id):
    context = await users.get_user_context(team_id, 'nobody')

    assert context.display_name == 'Unknown'
    assert context.node_id is None
    assert context.facts == {}


# ============================================================================
# TESTS: NAME LOOKUP
# ============================================================================

@pytest.mark.asyncio
async def test_find_user_by_nickname_first(users, graph_store, fake_db, team_id):
    """Test a nickname wins over a team_member node with the same name."""
    fake_db.add_user('u1', display_name='Shawn Smith')
    await graph_store.get_or_create_user_node(team_id, 'u2', display_name='Bear')
    await users.store_user_fact(team_id, 'u1', 'nickname', 'preferred_name', 'Bear')

    match = await users.find_user_by_name(team_id, 'bear')

    assert match.user_id == 'u1'
    assert match.display_name == 'Shawn Smith'


@pytest.mark.asyncio
async def test_find_user_by_team_member_node(users, graph_store, team_id):
    await graph_store.get_or_create_user_node(team_id, 'u2', display_name='Pat Lee')

    match = await users.find_user_by_name(team_id, ' PAT LEE ')

    assert match.user_id == 'u2'


@pytest.mark.asyncio
async def test_find_user_by_email_local_part(users, graph_store, fake_db, team_id):
    """Test the account fallback matches the email local part of a team member."""
    fake_db.add_user('u3', display_name='Robin Q', email='rq@example.com')
    await graph_store.get_or_create_user_node(team_id, 'u3', display_name='Robin Q')

    match = await users.find_user_by_name(team_id, 'RQ')

    assert match.user_id == 'u3'
    assert match.email == 'rq@example.com'


@pytest.mark.asyncio
async def test_find_user_ignores_other_teams(users, graph_store, fake_db, team_id):
    fake_db.add_user('u4', display_name='Sam', email='sam@example.com')
    await graph_store.get_or_create_user_node('another-team', 'u4', display_name='Sam')

    assert await users.find_user_by_name(team_id, 'Sam') is None
    assert await users.find_user_by_name(team_id, '   ') is None
