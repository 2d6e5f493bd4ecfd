"""Async Data Access Layer for the KV table.

Values are stored as JSON text. Readers must tolerate absent keys, so
`get` returns None both for missing rows and for rows that no longer
decode.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Optional

from utils.database_init import AsyncDatabaseInitializer

LOGGER = logging.getLogger(__name__)


class KeyValueDAL:
    """Durable JSON key-value storage.

    The constructor accepts an `AsyncDatabaseInitializer` (or any object
    exposing an async `connection()` context manager that yields an
    `aiosqlite.Connection`).
    """

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def get(self, key: str) -> Optional[Any]:
        """Return the decoded value stored under `key`, or None."""
        async with self._db.connection() as conn:
            cur = await conn.execute("SELECT value FROM KV WHERE key = ?", (key,))
            row = await cur.fetchone()
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except (TypeError, ValueError):
            LOGGER.warning("Ignoring undecodable value stored under %r", key)
            return None

    async def set(self, key: str, value: Any) -> None:
        """Store `value` as JSON under `key`, replacing any previous value."""
        payload = json.dumps(value)
        async with self._db.connection() as conn:
            await conn.execute(
                "INSERT INTO KV (key, value, updated_at) VALUES (?, ?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at",
                (key, payload, int(time.time())),
            )
            await conn.commit()
