# -*- coding: utf-8 -*-
"""
Scope lookup. A scope belongs to exactly one team; Ask and Remember resolve
the team through the scope they are called with.
"""
# Standard library
import logging
from typing import Optional

# Local
from ravenloom.utils.database import Database
from ravenloom.utils.dataclasses import Scope

logger = logging.getLogger(__name__)

SELECT_SCOPE = "SELECT id, team_id, name, parent_scope_id FROM scopes WHERE id = $1"

INSERT_SCOPE = """
    INSERT INTO scopes (team_id, name, parent_scope_id)
    VALUES ($1, $2, $3)
    RETURNING id, team_id, name, parent_scope_id
"""


def scope_from_row(row) -> Scope:
    parent = row['parent_scope_id']
    return Scope(
        id=str(row['id']),
        team_id=str(row['team_id']),
        name=row['name'],
        parent_scope_id=str(parent) if parent is not None else None,
    )


class ScopeStore:
    def __init__(self, db: Database):
        self.db = db

    async def get_scope(self, scope_id: str) -> Optional[Scope]:
        row = await self.db.fetchrow(SELECT_SCOPE, scope_id)
        return scope_from_row(row) if row else None

    async def create_scope(self, team_id: str, name: str, parent_scope_id: Optional[str] = None) -> Scope:
        row = await self.db.fetchrow(INSERT_SCOPE, team_id, name, parent_scope_id)
        logger.info(f"Created scope '{name}' for team {team_id}")
        return scope_from_row(row)
