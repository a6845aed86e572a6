"""
SQLite implementation of the local key-value cache.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from countdown.core.exceptions import InfrastructureError
from countdown.core.logger import setup_logger
from countdown.infrastructure.local.database import KeyValueORM, get_session_factory
from countdown.interfaces.local_cache import ILocalCache

logger = setup_logger(__name__)


class SqliteLocalCache(ILocalCache):
    """Key-value cache stored as JSON text in a single table."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    async def get(self, key: str) -> Optional[Any]:
        try:
            async with self._session_factory() as session:
                orm = await session.get(KeyValueORM, key)
                if orm is None:
                    return None
                raw = orm.value
        except SQLAlchemyError as e:
            raise InfrastructureError(f"Failed to read local cache key {key}: {e}") from e

        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Local cache key {key} holds invalid JSON, ignoring it")
            return None

    async def set(self, key: str, value: Any) -> None:
        encoded = json.dumps(value)
        try:
            async with self._session_factory() as session:
                orm = await session.get(KeyValueORM, key)
                if orm is None:
                    session.add(KeyValueORM(key=key, value=encoded))
                else:
                    orm.value = encoded
                await session.commit()
        except SQLAlchemyError as e:
            raise InfrastructureError(f"Failed to write local cache key {key}: {e}") from e

    async def delete(self, key: str) -> bool:
        try:
            async with self._session_factory() as session:
                orm = await session.get(KeyValueORM, key)
                if orm is None:
                    return False
                await session.delete(orm)
                await session.commit()
                return True
        except SQLAlchemyError as e:
            raise InfrastructureError(f"Failed to delete local cache key {key}: {e}") from e
