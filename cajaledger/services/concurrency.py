# Overview: Row-locking helpers shared by the mutating services.

from __future__ import annotations

from sqlalchemy.orm import Session


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; the gateway serialises SQLite
    writers with BEGIN IMMEDIATE instead. Other DBs honor the lock.
    """
    return query.with_for_update()


def get_for_update(session: Session, model, entity_id: int):
    """Load one row by primary key under a row lock, or None."""
    return lock_for_update(session.query(model).filter(model.id == entity_id)).first()
