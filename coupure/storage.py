# coupure/storage.py
from __future__ import annotations

from typing import Dict, Optional, Protocol

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


class Storage(Protocol):
    """Stockage clé/valeur durable de l'appareil (blobs texte)."""

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...


class MemoryStorage:
    """Stockage volatile (tests, mode éphémère)."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def remove(self, key: str) -> None:
        self.data.pop(key, None)


class SqlStorage:
    """
    Table unique kv_store(key, value) derrière une session SQLAlchemy async.
    La table est créée au premier accès.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._sessions = session_factory
        self._ready = False

    async def _ensure_table(self, db: AsyncSession) -> None:
        if self._ready:
            return
        await db.execute(text("""
            CREATE TABLE IF NOT EXISTS kv_store (
              key   TEXT PRIMARY KEY,
              value TEXT NOT NULL
            )
        """))
        await db.commit()
        self._ready = True

    async def get(self, key: str) -> Optional[str]:
        async with self._sessions() as db:
            await self._ensure_table(db)
            res = await db.execute(text("SELECT value FROM kv_store WHERE key = :k"), {"k": key})
            return res.scalar_one_or_none()

    async def set(self, key: str, value: str) -> None:
        async with self._sessions() as db:
            await self._ensure_table(db)
            try:
                await db.execute(text("""
                    INSERT INTO kv_store (key, value) VALUES (:k, :v)
                    ON CONFLICT (key) DO UPDATE SET value = excluded.value
                """), {"k": key, "v": value})
                await db.commit()
            except Exception:
                await db.rollback()
                raise

    async def remove(self, key: str) -> None:
        async with self._sessions() as db:
            await self._ensure_table(db)
            await db.execute(text("DELETE FROM kv_store WHERE key = :k"), {"k": key})
            await db.commit()
