# -*- coding: utf-8 -*-
"""
Facts about team members and name lookup.

User facts are keyed by (team_id, user_id, fact_type, key); storing the same
key again replaces its value. A 'nickname' fact doubles as an alias when
resolving a spoken name back to a user.

References:
    schema.sql: user_facts, users, kg_nodes
    graph_store.py: team_member nodes
"""
# Standard library
import logging
from typing import List, Optional

# Config imports (direct)
from config.extraction_config import TEAM_MEMBER_TYPE

# Local
from ravenloom.graph.graph_store import GraphStore
from ravenloom.utils.database import Database
from ravenloom.utils.dataclasses import UserContext, UserFact, UserMatch

logger = logging.getLogger(__name__)

NICKNAME_FACT_TYPE = 'nickname'
PREFERRED_NAME_KEY = 'preferred_name'


# ============================================================================
# SQL
# ============================================================================

USER_FACT_COLUMNS = (
    "id, team_id, user_id, fact_type, key, value, context, created_at, updated_at"
)

UPSERT_USER_FACT = f"""
    INSERT INTO user_facts (team_id, user_id, fact_type, key, value, context)
    VALUES ($1, $2, $3, $4, $5, $6)
    ON CONFLICT (team_id, user_id, fact_type, key) DO UPDATE SET
        value = EXCLUDED.value,
        context = EXCLUDED.context,
        updated_at = NOW()
    RETURNING {USER_FACT_COLUMNS}
"""

SELECT_USER_FACTS = f"""
    SELECT {USER_FACT_COLUMNS} FROM user_facts
    WHERE team_id = $1 AND user_id = $2
    ORDER BY fact_type, key
"""

SELECT_USER_FACT = f"""
    SELECT {USER_FACT_COLUMNS} FROM user_facts
    WHERE team_id = $1 AND user_id = $2 AND fact_type = $3 AND key = $4
"""

SELECT_USER_PROFILE = """
    SELECT id, email, display_name FROM users WHERE id = $1
"""

# Name lookup, tried in order: nickname fact, team_member node, account name
FIND_USER_BY_NICKNAME = """
    SELECT uf.user_id, u.display_name, u.email
    FROM user_facts uf
    LEFT JOIN users u ON uf.user_id = u.id
    WHERE uf.team_id = $1 AND uf.fact_type = $3
      AND lower(uf.value) = lower($2)
    ORDER BY uf.updated_at DESC
    LIMIT 1
"""

FIND_USER_BY_NODE = """
    SELECT kn.user_id, u.display_name, u.email
    FROM kg_nodes kn
    LEFT JOIN users u ON kn.user_id = u.id
    WHERE kn.team_id = $1 AND kn.type = $3
      AND kn.user_id IS NOT NULL
      AND lower(kn.name) = lower($2)
    LIMIT 1
"""

FIND_USER_BY_ACCOUNT = """
    SELECT u.id AS user_id, u.display_name, u.email
    FROM users u
    WHERE (lower(u.display_name) = lower($2) OR lower(split_part(u.email, '@', 1)) = lower($2))
      AND EXISTS (
          SELECT 1 FROM kg_nodes kn
          WHERE kn.team_id = $1 AND kn.user_id = u.id AND kn.type = $3
      )
    LIMIT 1
"""


def user_fact_from_row(row) -> UserFact:
    return UserFact(
        id=str(row['id']),
        team_id=str(row['team_id']),
        user_id=str(row['user_id']),
        fact_type=row['fact_type'],
        key=row['key'],
        value=row['value'],
        context=row['context'],
        created_at=row['created_at'],
        updated_at=row['updated_at'],
    )


def user_match_from_row(row) -> UserMatch:
    return UserMatch(
        user_id=str(row['user_id']),
        display_name=row['display_name'],
        email=row['email'],
    )


# ============================================================================
# STORE
# ============================================================================

class UserStore:
    """
    Keyed user facts plus the per-user context handed to the assistant.

    Example:
        users = UserStore(db, graph_store)
        await users.store_user_fact(team_id, user_id, 'nickname', 'preferred_name', 'Shawn')
        context = await users.get_user_context(team_id, user_id)
        context.preferred_name  # 'Shawn'
    """

    def __init__(self, db: Database, graph_store: GraphStore):
        self.db = db
        self.graph_store = graph_store

    async def store_user_fact(
        self,
        team_id: str,
        user_id: str,
        fact_type: str,
        key: str,
        value: str,
        context: Optional[str] = None,
    ) -> UserFact:
        """Insert or replace the value stored under (fact_type, key)."""
        row = await self.db.fetchrow(UPSERT_USER_FACT, team_id, user_id, fact_type, key, value, context)
        logger.info(f"Stored user fact: {user_id} {fact_type}:{key} = {value}")
        return user_fact_from_row(row)

    async def get_user_facts(self, team_id: str, user_id: str) -> List[UserFact]:
        rows = await self.db.fetch(SELECT_USER_FACTS, team_id, user_id)
        return [user_fact_from_row(r) for r in rows]

    async def get_user_fact(self, team_id: str, user_id: str, fact_type: str, key: str) -> Optional[UserFact]:
        row = await self.db.fetchrow(SELECT_USER_FACT, team_id, user_id, fact_type, key)
        return user_fact_from_row(row) if row else None

    async def get_user_context(self, team_id: str, user_id: str) -> UserContext:
        """
        Profile, team_member node and facts for one user.

        Display name falls back from the users row to the node name to
        'Unknown'. preferred_name comes from the nickname/preferred_name fact.
        """
        node = await self.graph_store.get_user_node(team_id, user_id)
        facts = await self.get_user_facts(team_id, user_id)
        profile = await self.db.fetchrow(SELECT_USER_PROFILE, user_id)

        display_name = (profile['display_name'] if profile else None) or (node.name if node else None)
        context = UserContext(
            user_id=user_id,
            display_name=display_name or 'Unknown',
            email=profile['email'] if profile else None,
            node_id=node.id if node else None,
        )

        for fact in facts:
            context.facts.setdefault(fact.fact_type, {})[fact.key] = fact.value

        context.preferred_name = context.facts.get(NICKNAME_FACT_TYPE, {}).get(PREFERRED_NAME_KEY)
        return context

    async def find_user_by_name(self, team_id: str, name: str) -> Optional[UserMatch]:
        """Resolve a name to a user: nickname first, then team_member node, then account name."""
        name = name.strip()
        if not name:
            return None

        for query, kind in (
            (FIND_USER_BY_NICKNAME, NICKNAME_FACT_TYPE),
            (FIND_USER_BY_NODE, TEAM_MEMBER_TYPE),
            (FIND_USER_BY_ACCOUNT, TEAM_MEMBER_TYPE),
        ):
            row = await self.db.fetchrow(query, team_id, name, kind)
            if row is not None:
                return user_match_from_row(row)

        logger.debug(f"No user matches name '{name}'")
        return None
