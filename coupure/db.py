# coupure/db.py : moteur local (SQLite via aiosqlite par défaut, Postgres possible)
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from coupure.config import STORE_DATABASE_URL


def make_engine(url: str = STORE_DATABASE_URL):
    return create_async_engine(url, pool_pre_ping=True)


def make_sessionmaker(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, expire_on_commit=False)


engine = make_engine()
SessionLocal = make_sessionmaker(engine)
