# Overview: Persistence gateway; owns the SQLAlchemy engine and the transactional scope.

"""
Persistence Gateway

Every engine operation runs inside exactly one ``gateway.transaction()``
block. The block commits on normal exit and rolls back on every other exit
path, so a failed operation never leaves a partial write behind.

SQLite notes:
- pysqlite's implicit BEGIN is disabled and each transaction starts with
  BEGIN IMMEDIATE, so writers serialise at transaction start. This is what
  makes the read-check-write sequences in the services safe on SQLite, which
  ignores SELECT ... FOR UPDATE.
- Foreign keys are enforced via PRAGMA on every new connection.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .exceptions import CajaLedgerError, StorageError
from .models import Base

logger = logging.getLogger(__name__)


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _is_sqlite_memory(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def _install_sqlite_hooks(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Let SQLAlchemy emit BEGIN itself (see _on_begin)
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class PersistenceGateway:
    """
    Injected connection/transaction provider.

    One instance per process (or per test). Services receive it at
    construction; nothing in the package reaches for a global handle.
    """

    def __init__(self, database_url: str, *, echo: bool = False):
        self.database_url = database_url

        engine_kwargs: dict = {"echo": echo}
        if _is_sqlite(database_url):
            engine_kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
            if _is_sqlite_memory(database_url):
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_pre_ping"] = True

        self.engine: Engine = create_engine(database_url, **engine_kwargs)
        if _is_sqlite(database_url):
            _install_sqlite_hooks(self.engine)

        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def __repr__(self) -> str:
        return f"<PersistenceGateway url={self.engine.url!r}>"

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Scoped transaction: commit on success, rollback on any exception.

        Domain errors (CajaLedgerError) propagate unchanged. SQLAlchemy errors
        are rolled back and re-raised as StorageError.
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except CajaLedgerError:
            session.rollback()
            raise
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Transaction rolled back after storage failure")
            raise StorageError(f"storage failure: {exc.__class__.__name__}") from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_all(self) -> None:
        Base.metadata.create_all(self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()
